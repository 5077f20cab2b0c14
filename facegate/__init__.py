"""
Flask App Factory
==================
Membuat dan mengkonfigurasi aplikasi Flask menggunakan Application Factory pattern.
"""

from flask import Flask
from facegate.config import Config
from facegate.extensions import db, migrate

__version__ = "1.0.0"


def create_app(config_class=Config):
    """
    Membuat instance Flask application.

    Args:
        config_class: Kelas konfigurasi yang digunakan.

    Returns:
        Flask: Instance aplikasi Flask yang sudah dikonfigurasi.
    """
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Inisialisasi ekstensi
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models agar dikenali oleh SQLAlchemy
    from facegate.models import identity, audit_event  # noqa: F401

    # Register blueprints & error handlers
    from facegate.api import register_blueprints, register_error_handlers
    register_blueprints(app)
    register_error_handlers(app)

    # Register CLI commands
    from facegate.cli import register_commands
    register_commands(app)

    # Buat tabel database jika belum ada
    with app.app_context():
        db.create_all()

    return app
