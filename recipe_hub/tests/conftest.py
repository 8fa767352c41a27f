"""Pytest configuration and fixtures for service layer tests."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, scoped_session
from sqlalchemy.pool import StaticPool

from recipe_hub.models.base import Base
from recipe_hub.services import credential_service
from recipe_hub.services.dto import AuthInfo, RegisterUserRequest


class PlainHasher:
    """Cheap hasher so fixtures don't pay bcrypt's cost."""

    def hash(self, secret):
        return f"plain${secret}"

    def verify(self, secret, stored):
        if not stored.startswith("plain$"):
            raise ValueError("unknown credential format")
        return stored == f"plain${secret}"


@pytest.fixture(autouse=True)
def plain_hasher():
    """Install the cheap hasher for every test; restore the default afterwards."""
    credential_service.set_credential_hasher(PlainHasher())
    yield
    credential_service.set_credential_hasher(None)


@pytest.fixture(scope="function")
def test_db():
    """Provide a clean test database for each test function.

    This fixture:
    1. Creates an in-memory SQLite database
    2. Creates all tables
    3. Provides the database to the test
    4. Drops all tables after the test completes
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    from recipe_hub import models  # noqa: F401

    Base.metadata.create_all(engine)

    session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    Session = scoped_session(session_factory)

    # Monkey-patch the global session factory for tests
    import recipe_hub.services.database as db_module

    original_get_session = db_module.get_session_factory
    db_module.get_session_factory = lambda: Session

    yield Session

    Session.remove()
    Base.metadata.drop_all(engine)
    engine.dispose()

    db_module.get_session_factory = original_get_session


def _register(name, gender="Female", birthday="1990-04-12", password="secret"):
    from recipe_hub.services import user_service

    return user_service.register(
        RegisterUserRequest(name=name, gender=gender, birthday=birthday, password=password)
    )


@pytest.fixture(scope="function")
def alice(test_db):
    """Registered user; returns the AuthInfo."""
    return AuthInfo(author_id=_register("alice"), password="secret")


@pytest.fixture(scope="function")
def bob(test_db):
    """Second registered user."""
    return AuthInfo(author_id=_register("bob", gender="Male", birthday="1985-11-30"), password="secret")


@pytest.fixture(scope="function")
def carol(test_db):
    """Third registered user."""
    return AuthInfo(author_id=_register("carol", birthday="2001-02-03"), password="secret")


@pytest.fixture(scope="function")
def register_user(test_db):
    """Factory fixture: register a user by name and return its AuthInfo."""

    def _factory(name, **kwargs):
        password = kwargs.get("password", "secret")
        return AuthInfo(author_id=_register(name, **kwargs), password=password)

    return _factory


@pytest.fixture(scope="function")
def sample_recipe(test_db, alice):
    """A recipe owned by alice; returns its id."""
    from recipe_hub.services import recipe_service

    return recipe_service.create_recipe(
        {
            "name": "Lemon Tart",
            "description": "Sharp and sweet",
            "category": "Dessert",
            "cook_time": "PT40M",
            "prep_time": "PT20M",
            "calories": 320.0,
            "servings": 8,
            "ingredient_parts": ["lemon", "Butter", "sugar", "flour"],
        },
        alice,
    )
