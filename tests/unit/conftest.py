"""Shared fixtures for unit tests."""

import pytest

from nestconf.config import ENCLOSING_CONFIGURATION_ENV
from nestconf.resolver import EnclosingConfigurationResolver, reset_default_resolver


@pytest.fixture(autouse=True)
def isolated_defaults(monkeypatch):
    """Keep the process-wide resolver and environment out of each test."""
    monkeypatch.delenv(ENCLOSING_CONFIGURATION_ENV, raising=False)
    reset_default_resolver()
    yield
    reset_default_resolver()


@pytest.fixture
def resolver() -> EnclosingConfigurationResolver:
    """Provide a resolver with its own empty cache."""
    return EnclosingConfigurationResolver()
