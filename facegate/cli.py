import click
from flask.cli import with_appcontext
from facegate.errors import ServiceError
from facegate.extensions import db
from facegate.models.identity import Role
from facegate.services import user_service


@click.command("reset-db")
@click.confirmation_option(
    prompt="All identities and audit events will be deleted. Continue?"
)
@with_appcontext
def reset_db_command():
    """Drop and recreate the identities and audit_events tables."""
    db.drop_all()
    db.create_all()

    click.echo(f"Tables recreated: {', '.join(sorted(db.metadata.tables))}.")


@click.command("create-admin")
@click.argument("email")
@click.argument("name")
@click.password_option()
@with_appcontext
def create_admin_command(email, name, password):
    """Provision an admin identity; the face is enrolled on first login."""
    try:
        identity = user_service.create_identity(
            email, name, password=password, role=Role.ADMIN.value
        )
    except ServiceError as e:
        raise click.ClickException(e.message)

    click.echo(f"Admin {identity.email} created (ID {identity.id}).")
    click.echo("Complete face registration on first login to activate the account.")


def register_commands(app):
    """Register CLI commands with the application instance."""
    app.cli.add_command(reset_db_command)
    app.cli.add_command(create_admin_command)
