"""
Shared fixtures: an isolated SQLite file and environment per test.
"""
import asyncio
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from config import get_settings

_PROVIDER_ENV = (
    "OPENAI_API_KEY",
    "OPENAI_BASE_URL",
    "PERPLEXITY_API_KEY",
    "PERPLEXITY_BASE_URL",
    "SANDBOX_TIMEOUT_MS",
)


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point the app at a temp database and drop provider credentials."""
    monkeypatch.setenv("CODEIDE_DB", str(tmp_path / "codeide.db"))
    monkeypatch.setenv("STATIC_ROOT", str(tmp_path / "static"))
    for name in _PROVIDER_ENV:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


@pytest.fixture
def run():
    """Run a coroutine to completion."""
    return asyncio.run


@pytest.fixture
def app():
    from interact import create_app

    flask_app = create_app()
    flask_app.config.update(TESTING=True)
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


def completion(content):
    """Build an object shaped like an OpenAI chat completion."""
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.fixture
def fake_openai():
    """A stand-in for the SDK client: set ``.chat.completions.create`` behaviour per test."""
    return MagicMock()
