"""SQLite-backed record store for users and shows."""

from __future__ import annotations

from flask import Flask, current_app
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models import db
from models.show import Show
from models.user import User

EXTENSION_KEY = "record_store"

SHOW_FIELDS = ("title", "description", "location", "starts_at", "image")


class RecordStoreError(Exception):
    """Base class for record store failures."""


class StorageUnavailable(RecordStoreError):
    """The database file could not be opened, created or bootstrapped."""


class DuplicateKey(RecordStoreError):
    """An insert or update collided with a unique column."""


class RecordStore:
    """Explicit handle on the application's database.

    One instance is built per application by :meth:`initialize` and handed
    to request handlers through :func:`get_record_store`.
    """

    def __init__(self, database: SQLAlchemy):
        self.db = database

    @classmethod
    def initialize(cls, app: Flask, database: SQLAlchemy = db) -> "RecordStore":
        """Open (or create) the database and make sure every table exists.

        ``create_all`` only issues ``CREATE TABLE`` for missing tables, so
        running this against an existing file leaves its rows untouched.
        """

        uri = app.config.get("SQLALCHEMY_DATABASE_URI")
        store = cls(database)
        try:
            database.init_app(app)
            with app.app_context():
                database.create_all()
        except (SQLAlchemyError, OSError) as exc:
            raise StorageUnavailable(f"Cannot open database at {uri}: {exc}") from exc

        app.extensions[EXTENSION_KEY] = store
        app.logger.info("Connected to SQLite database at %s", uri)
        return store

    @property
    def session(self):
        return self.db.session

    def _commit(self, duplicate_message: str) -> None:
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise DuplicateKey(duplicate_message) from exc

    # Users

    def insert_user(self, email: str, password: str) -> int:
        """Insert a user and return its new id.

        The password is stored exactly as given.
        """

        if not email or not password:
            raise ValueError("Email and password are required.")

        user = User(email=email, password=password)
        self.session.add(user)
        self._commit(f"A user with email {email!r} already exists.")
        return user.id

    def get_user(self, user_id: int) -> User | None:
        return self.session.get(User, user_id)

    def find_user_by_email(self, email: str) -> User | None:
        return User.query.filter_by(email=email).first()

    def update_user(
        self,
        user_id: int,
        *,
        email: str | None = None,
        password: str | None = None,
    ) -> User | None:
        """Change a user's email and/or password. The id never changes."""

        if email is not None and not email:
            raise ValueError("Email must not be empty.")
        if password is not None and not password:
            raise ValueError("Password must not be empty.")

        user = self.get_user(user_id)
        if user is None:
            return None
        if email is not None:
            user.email = email
        if password is not None:
            user.password = password
        self._commit(f"A user with email {email!r} already exists.")
        return user

    def delete_user(self, user_id: int) -> bool:
        user = self.get_user(user_id)
        if user is None:
            return False
        self.session.delete(user)
        self.session.commit()
        return True

    # Shows

    def create_show(self, **fields) -> Show:
        unknown = set(fields) - set(SHOW_FIELDS)
        if unknown:
            raise ValueError(f"Unknown show fields: {', '.join(sorted(unknown))}.")
        if not fields.get("title"):
            raise ValueError("Title is required.")

        show = Show(**fields)
        self.session.add(show)
        self.session.commit()
        return show

    def get_show(self, show_id: int) -> Show | None:
        return self.session.get(Show, show_id)

    def list_shows(self) -> list[Show]:
        return Show.query.order_by(Show.created_at.desc(), Show.id.desc()).all()

    def update_show(self, show_id: int, **fields) -> Show | None:
        show = self.get_show(show_id)
        if show is None:
            return None
        unknown = set(fields) - set(SHOW_FIELDS)
        if unknown:
            raise ValueError(f"Unknown show fields: {', '.join(sorted(unknown))}.")
        if "title" in fields and not fields["title"]:
            raise ValueError("Title must not be empty.")

        for name, value in fields.items():
            setattr(show, name, value)
        self.session.commit()
        return show

    def delete_show(self, show_id: int) -> Show | None:
        """Delete a show and return the removed record, or None if absent."""

        show = self.get_show(show_id)
        if show is None:
            return None
        self.session.delete(show)
        self.session.commit()
        return show


def get_record_store() -> RecordStore:
    """Return the record store attached to the current application."""

    store = current_app.extensions.get(EXTENSION_KEY)
    if store is None:
        raise StorageUnavailable("The record store has not been initialized.")
    return store
