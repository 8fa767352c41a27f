"""Tests for configuration."""

import pytest

from recipe_hub.utils import config as config_module
from recipe_hub.utils.config import Config, get_config, reset_config


@pytest.fixture(autouse=True)
def fresh_config(monkeypatch):
    monkeypatch.delenv(config_module.ENV_VAR_DATABASE_URL, raising=False)
    monkeypatch.delenv(config_module.ENV_VAR_ENVIRONMENT, raising=False)
    reset_config()
    yield
    reset_config()


def test_sqlite_file_by_default():
    config = Config("production")
    assert config.database_url.startswith("sqlite:///")
    assert config.database_url.endswith("recipe_hub.db")
    assert config.is_production


def test_development_uses_project_data_dir():
    config = Config("development")
    assert config.database_path.parent.name == "data"
    assert config.is_development


def test_env_var_overrides_url(monkeypatch):
    monkeypatch.setenv(config_module.ENV_VAR_DATABASE_URL, "postgresql://db/recipes")
    config = Config()
    assert config.database_url == "postgresql://db/recipes"
    assert config.database_exists()


def test_explicit_url_wins(monkeypatch):
    monkeypatch.setenv(config_module.ENV_VAR_DATABASE_URL, "postgresql://db/recipes")
    assert Config(database_url="sqlite:///:memory:").database_url == "sqlite:///:memory:"


def test_singleton_keeps_first_environment(monkeypatch):
    monkeypatch.setenv(config_module.ENV_VAR_ENVIRONMENT, "development")
    first = get_config()
    assert first.environment == "development"
    assert get_config("production") is first
