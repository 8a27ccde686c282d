"""Pytest fixtures: a fresh in-memory SQLite app per test, the ORM session and a user factory."""

import bcrypt
import pytest
from sqlalchemy import select

from notecards import create_app
from notecards.config import Config
from notecards.extensions import db
from notecards.models import Category, User
from notecards.schema import ensure_schema
from notecards.services import Accounts


class TestingConfig(Config):
    __test__ = False  # Prevent pytest from collecting this as a test class

    TESTING = True
    SECRET_KEY = "test-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    DB_CONNECT_RETRIES = 1
    DB_CONNECT_DELAY = 0


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        ensure_schema(db.engine, app.config["DEFAULT_CATEGORY_NAME"])
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    """The Flask-SQLAlchemy session, inside an app context."""
    with app.app_context():
        yield db.session


@pytest.fixture
def make_user(store):
    """Register a user through Accounts and return their id."""

    def _make_user(name="Alice", email=None, password="secret123"):
        email = email or f"{name.lower()}@example.com"
        return Accounts(store).register(name, email, password)

    return _make_user


class NoRows:
    """Result stand-in for a lookup that finds nothing."""

    def first(self):
        return None


def bcryptjs_hash(password):
    """bcrypt hash in the $2a$ variant that bcryptjs writes."""
    hashed = bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=4)).decode()
    return "$2a$" + hashed[4:]


def category_names(store, user_id):
    return store.execute(
        select(Category.name).where(Category.user_id == user_id).order_by(Category.name)
    ).scalars().all()


def user_count(store):
    return len(store.execute(select(User.id)).all())
