"""Global test configuration for TOFU Consent."""

import os
from datetime import datetime, UTC

import pytest

from tofu_consent.manager.consent_engine import ConsentDecisionEngine
from tofu_consent.models.client import ClientDetails
from tofu_consent.stores.memory import (
    InMemoryApprovalStore,
    InMemoryClientRegistry,
    InMemoryWhitelistStore,
)

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture(autouse=True, scope="session")
def _set_test_env_vars():
    """Set environment variables for Settings validation.

    Only sets values that aren't already present, so real env vars take
    precedence.
    """
    defaults = {
        "STORE_BACKEND": "memory",
        "ADMIN_API_KEY": "test-admin-key",
        "PROTOCOL_API_KEY": "test-protocol-key",
    }
    originals = {}
    for key, value in defaults.items():
        if key not in os.environ:
            os.environ[key] = value
            originals[key] = None
        else:
            originals[key] = os.environ[key]

    # Clear the lru_cache on get_settings so it picks up the new env vars
    from tofu_consent.config import get_settings
    get_settings.cache_clear()

    yield

    # Restore original env state
    for key, original in originals.items():
        if original is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = original
    get_settings.cache_clear()


@pytest.fixture
def approvals() -> InMemoryApprovalStore:
    return InMemoryApprovalStore()


@pytest.fixture
def whitelist() -> InMemoryWhitelistStore:
    return InMemoryWhitelistStore()


@pytest.fixture
def clients() -> InMemoryClientRegistry:
    return InMemoryClientRegistry([
        ClientDetails(client_id="client-1", scopes={"read", "write"}),
        ClientDetails(client_id="client-2", scopes={"openid", "profile", "email"}),
    ])


@pytest.fixture
def engine(approvals, whitelist, clients) -> ConsentDecisionEngine:
    return ConsentDecisionEngine(
        approvals=approvals,
        whitelist=whitelist,
        clients=clients,
        clock=lambda: NOW,
    )


@pytest.fixture
def now() -> datetime:
    """The fixed time the engine fixture sees."""
    return NOW
