"""
Shared fixtures: aplikasi Flask dengan SQLite in-memory.
"""

import pytest

from facegate import create_app
from facegate.config import Config
from facegate.extensions import db


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    JWT_SECRET = "test-jwt-secret-with-enough-length-for-hs256"
    JWT_EXPIRATION_HOURS = 24


@pytest.fixture
def app():
    """Aplikasi baru dengan database kosong untuk setiap test."""
    app = create_app(TestConfig)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def app_ctx(app):
    """Application context untuk memanggil service secara langsung."""
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def file_app(tmp_path):
    """Aplikasi dengan SQLite berbasis file, untuk test yang memakai banyak thread."""

    class FileConfig(TestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'facegate.db'}"

    app = create_app(FileConfig)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()
