"""Shared test fixtures and configuration."""

import os

import pytest


# Pin every setting so a developer's environment or .env cannot leak in
TEST_ENV = {
    "PAYLOAD_SEARCH_DEFAULT_FIELD": "_all",
    "PAYLOAD_SEARCH_DEFAULT_ANALYZER": "standard",
    "PAYLOAD_SEARCH_MAX_EXPANSIONS": "50",
    "PAYLOAD_SEARCH_LOG_LEVEL": "info",
    "PAYLOAD_SEARCH_LOG_JSON": "true",
}

for key, value in TEST_ENV.items():
    os.environ[key] = value

from payload_search.scoring import provider as provider_module  # noqa: E402


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Reset settings environment variables before each test."""
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)


@pytest.fixture(autouse=True)
def reset_similarity_registry():
    """Tests register their own IB components; drop them afterwards."""
    yield
    provider_module.unregister_all()


@pytest.fixture
def title_body_weights():
    return {"title": 2.0, "body": 1.0}
