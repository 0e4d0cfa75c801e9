"""Shared fixtures for the proxy test suite."""

import pytest

import config
from main import create_app
from token_manager import TokenCache, TokenManager

LOGIN_URL = f"{config.UPSTREAM_HOST}{config.LOGIN_ENDPOINT}"
NOW = 1_700_000_000.0


@pytest.fixture
def credentials(monkeypatch):
    monkeypatch.setenv("LOGIN_USERNAME", "operator")
    monkeypatch.setenv("LOGIN_PASSWORD", "password")
    monkeypatch.setenv("APP_KEY", "app-key-123")


@pytest.fixture
def cache():
    return TokenCache()


@pytest.fixture
def manager(cache):
    return TokenManager(cache, host=config.UPSTREAM_HOST, clock=lambda: NOW)


@pytest.fixture
def client(manager):
    app = create_app(token_manager=manager)
    app.config["TESTING"] = True
    return app.test_client()
