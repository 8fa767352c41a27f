"""Tests for database session helpers."""

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

import recipe_hub.services.database as db_module
from recipe_hub.services.database import create_database_engine, run_in_session
from recipe_hub.services.exceptions import DatabaseError, RecipeNotFound


class TestRunInSession:
    """Tests for run_in_session."""

    def test_returns_work_result(self, test_db):
        assert run_in_session(lambda sess: sess.execute(text("SELECT 1")).scalar()) == 1

    def test_uses_caller_session(self, test_db):
        session = test_db()
        seen = []
        run_in_session(seen.append, session)
        assert seen == [session]

    def test_wraps_sqlalchemy_error(self, test_db):
        def broken(sess):
            sess.execute(text("SELECT * FROM no_such_table"))

        with pytest.raises(DatabaseError) as exc_info:
            run_in_session(broken, failure="Failed to read")
        assert "Failed to read" in str(exc_info.value)
        assert isinstance(exc_info.value.original_error, OperationalError)

    def test_service_errors_pass_through(self, test_db):
        def missing(sess):
            raise RecipeNotFound(7)

        with pytest.raises(RecipeNotFound):
            run_in_session(missing)


class TestCloseConnections:
    """Tests for close_connections."""

    def test_resets_globals(self, monkeypatch):
        monkeypatch.setattr(db_module, "_engine", create_database_engine("sqlite:///:memory:"))
        monkeypatch.setattr(db_module, "_SessionFactory", object())

        db_module.close_connections()

        assert db_module._engine is None
        assert db_module._SessionFactory is None

    def test_safe_without_engine(self, monkeypatch):
        monkeypatch.setattr(db_module, "_engine", None)
        db_module.close_connections()
        assert db_module._engine is None
