"""Shared pytest fixtures for the application tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
from flask import Flask
from flask.testing import FlaskClient

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app import create_app  # noqa: E402
from config import Config  # noqa: E402
from models import db  # noqa: E402


class _BaseTestConfig(Config):
    TESTING = True
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = "*"
    RATE_LIMIT = "1000 per minute"


def make_config(tmp_path: Path, **overrides) -> type[Config]:
    """Build a config class pointing at files under ``tmp_path``."""

    class TestConfig(_BaseTestConfig):
        DATABASE_PATH = str(tmp_path / "database.db")
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'database.db'}"
        UPLOAD_DIR = str(tmp_path / "uploads")

    for key, value in overrides.items():
        setattr(TestConfig, key, value)
    return TestConfig


@pytest.fixture()
def app(tmp_path) -> Flask:
    """Create a Flask application backed by a temporary database file."""

    application = create_app(make_config(tmp_path))

    yield application

    with application.app_context():
        db.session.remove()
        db.engine.dispose()


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Return a test client for the Flask app."""

    return app.test_client()


@pytest.fixture()
def store(app: Flask):
    """Yield the app's record store inside an application context."""

    with app.app_context():
        yield app.extensions["record_store"]
