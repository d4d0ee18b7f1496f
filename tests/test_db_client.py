"""Tests for the Supabase-backed stores."""

from datetime import datetime, UTC
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest

from tofu_consent.config import Settings
from tofu_consent.db.client import (
    DatabaseClient,
    SupabaseApprovalStore,
    SupabaseClientRegistry,
    SupabaseWhitelistStore,
)
from tofu_consent.exceptions import (
    ApprovedSiteNotFoundError,
    ClientNotFoundError,
    ConfigurationError,
    WhitelistEntryNotFoundError,
)
from tofu_consent.manager.consent_engine import ConsentDecisionEngine
from tofu_consent.models.approval import ApprovedSite, WhitelistedSite
from tofu_consent.models.request import AuthorizationRequest, Identity
from tofu_consent.stores.base import ApprovalStore, ClientRegistry, WhitelistStore
from tofu_consent.stores.memory import InMemoryClientRegistry, InMemoryWhitelistStore


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

def _query(rows: list[dict]) -> MagicMock:
    """A fluent query mock whose execute() returns the given rows."""
    query = MagicMock()
    for method in ("select", "eq", "limit", "insert", "upsert", "delete"):
        getattr(query, method).return_value = query
    query.execute.return_value = MagicMock(data=rows)
    return query


@pytest.fixture
def supabase_settings() -> Settings:
    return Settings(
        store_backend="supabase",
        supabase_url="https://test.supabase.co",
        supabase_key="test-supabase-key",
    )


@pytest.fixture
def db(supabase_settings):
    """DatabaseClient with a mocked Supabase client."""
    with patch("tofu_consent.db.client.get_settings", return_value=supabase_settings), \
         patch("tofu_consent.db.client.create_client") as create_client:
        create_client.return_value = MagicMock()
        client = DatabaseClient()
    return client


def _site_row(**overrides) -> dict:
    site = ApprovedSite(client_id="client-1", user_id="alice", allowed_scopes={"read"})
    return {**site.model_dump(mode="json"), **overrides}


# ---------------------------------------------------------------------------
# DatabaseClient
# ---------------------------------------------------------------------------

class TestDatabaseClient:
    """Tests for DatabaseClient construction and health."""

    def test_requires_supabase_settings(self):
        with patch("tofu_consent.db.client.get_settings", return_value=Settings(supabase_url=None, supabase_key=None)):
            with pytest.raises(ConfigurationError):
                DatabaseClient()

    def test_creates_client_from_settings(self, supabase_settings):
        with patch("tofu_consent.db.client.get_settings", return_value=supabase_settings), \
             patch("tofu_consent.db.client.create_client") as create_client:
            DatabaseClient()
        create_client.assert_called_once_with(
            "https://test.supabase.co", "test-supabase-key"
        )

    def test_health_check_healthy(self, db):
        db.client.table.return_value = _query([])

        result = db.health_check()

        assert result["healthy"] is True
        assert result["error"] is None
        assert result["latency_ms"] >= 0

    def test_health_check_unhealthy(self, db):
        query = _query([])
        query.execute.side_effect = RuntimeError("connection refused")
        db.client.table.return_value = query

        result = db.health_check()

        assert result["healthy"] is False
        assert "connection refused" in result["error"]


# ---------------------------------------------------------------------------
# SupabaseApprovalStore
# ---------------------------------------------------------------------------

class TestSupabaseApprovalStore:
    """Tests for SupabaseApprovalStore."""

    def test_satisfies_protocol(self, db):
        assert isinstance(SupabaseApprovalStore(db), ApprovalStore)

    def test_find_by_client_and_user(self, db):
        row = _site_row()
        query = _query([row])
        db.client.table.return_value = query

        sites = SupabaseApprovalStore(db).find_by_client_and_user("client-1", "alice")

        db.client.table.assert_called_with("approved_sites")
        query.eq.assert_any_call("client_id", "client-1")
        query.eq.assert_any_call("user_id", "alice")
        assert len(sites) == 1
        assert str(sites[0].id) == row["id"]
        assert sites[0].allowed_scopes == frozenset({"read"})

    def test_save_upserts_json(self, db):
        site = ApprovedSite(client_id="client-1", user_id="alice", allowed_scopes={"read"})
        query = _query([site.model_dump(mode="json")])
        db.client.table.return_value = query

        saved = SupabaseApprovalStore(db).save(site)

        data = query.upsert.call_args.args[0]
        assert data["id"] == str(site.id)
        assert data["allowed_scopes"] == ["read"]
        assert saved == site

    def test_create_inserts_row(self, db):
        entry = WhitelistedSite(client_id="client-1", allowed_scopes={"read"})
        expires = datetime(2030, 1, 1, tzinfo=UTC)
        query = _query([])
        db.client.table.return_value = query

        site = SupabaseApprovalStore(db).create(
            "client-1", "alice", expires, entry.allowed_scopes, entry
        )

        data = query.insert.call_args.args[0]
        assert data["client_id"] == "client-1"
        assert data["user_id"] == "alice"
        assert data["whitelisted_site_id"] == str(entry.id)
        assert site.expires_at == expires
        assert site.allowed_scopes == frozenset({"read"})

    def test_get_missing(self, db):
        db.client.table.return_value = _query([])
        assert SupabaseApprovalStore(db).get(uuid4()) is None

    def test_find_by_user(self, db):
        db.client.table.return_value = _query([_site_row(), _site_row(client_id="c2")])
        assert len(SupabaseApprovalStore(db).find_by_user("alice")) == 2

    def test_remove_missing(self, db):
        db.client.table.return_value = _query([])
        with pytest.raises(ApprovedSiteNotFoundError):
            SupabaseApprovalStore(db).remove(uuid4())

    def test_remove(self, db):
        site_id = uuid4()
        query = _query([{"id": str(site_id)}])
        db.client.table.return_value = query

        SupabaseApprovalStore(db).remove(site_id)

        query.delete.assert_called_once()
        query.eq.assert_called_with("id", str(site_id))


# ---------------------------------------------------------------------------
# SupabaseWhitelistStore
# ---------------------------------------------------------------------------

class TestSupabaseWhitelistStore:
    """Tests for SupabaseWhitelistStore."""

    def test_satisfies_protocol(self, db):
        assert isinstance(SupabaseWhitelistStore(db), WhitelistStore)

    def test_find_by_client(self, db):
        entry = WhitelistedSite(client_id="client-1", allowed_scopes={"openid"})
        db.client.table.return_value = _query([entry.model_dump(mode="json")])

        found = SupabaseWhitelistStore(db).find_by_client("client-1")

        db.client.table.assert_called_with("whitelisted_sites")
        assert found == entry

    def test_find_by_client_missing(self, db):
        db.client.table.return_value = _query([])
        assert SupabaseWhitelistStore(db).find_by_client("client-1") is None

    def test_save_upserts_on_client_id(self, db):
        entry = WhitelistedSite(client_id="client-1", allowed_scopes={"openid"})
        query = _query([])
        db.client.table.return_value = query

        assert SupabaseWhitelistStore(db).save(entry) == entry
        assert query.upsert.call_args.kwargs["on_conflict"] == "client_id"

    def test_remove_missing(self, db):
        db.client.table.return_value = _query([])
        with pytest.raises(WhitelistEntryNotFoundError):
            SupabaseWhitelistStore(db).remove("client-1")


# ---------------------------------------------------------------------------
# SupabaseClientRegistry
# ---------------------------------------------------------------------------

class TestSupabaseClientRegistry:
    """Tests for SupabaseClientRegistry."""

    def test_satisfies_protocol(self, db):
        assert isinstance(SupabaseClientRegistry(db), ClientRegistry)

    def test_load(self, db):
        db.client.table.return_value = _query([
            {"client_id": "client-1", "scopes": ["read", "write"], "client_name": "One"},
        ])

        client = SupabaseClientRegistry(db).load("client-1")

        db.client.table.assert_called_with("clients")
        assert client.scopes == {"read", "write"}

    def test_load_unknown(self, db):
        db.client.table.return_value = _query([])
        with pytest.raises(ClientNotFoundError):
            SupabaseClientRegistry(db).load("unknown")


# ---------------------------------------------------------------------------
# Rows without timezone information
# ---------------------------------------------------------------------------

class TestNaiveTimestampRows:
    """Rows from timestamp columns without a time zone are read as UTC."""

    def _engine(self, db) -> ConsentDecisionEngine:
        return ConsentDecisionEngine(
            approvals=SupabaseApprovalStore(db),
            whitelist=InMemoryWhitelistStore(),
            clients=InMemoryClientRegistry(),
            clock=lambda: datetime(2024, 6, 1, 12, 0, tzinfo=UTC),
        )

    def _naive_row(self, expires_at: str) -> dict:
        return _site_row(
            created_at="2024-05-01T08:00:00",
            accessed_at="2024-05-01T08:00:00",
            expires_at=expires_at,
        )

    def test_find_returns_utc_timestamps(self, db):
        db.client.table.return_value = _query([self._naive_row("2030-01-01T00:00:00")])

        site = SupabaseApprovalStore(db).find_by_client_and_user("client-1", "alice")[0]

        assert site.expires_at == datetime(2030, 1, 1, tzinfo=UTC)
        assert site.created_at.tzinfo is not None
        assert site.accessed_at.tzinfo is not None

    def test_unexpired_naive_row_pre_approves(self, db):
        row = self._naive_row("2030-01-01T00:00:00")
        db.client.table.return_value = _query([row])
        request = AuthorizationRequest(client_id="client-1", requested_scopes={"read"})

        result = self._engine(db).check_for_pre_approval(
            request, Identity(user_id="alice", is_authenticated=True)
        )

        assert result.approved
        assert str(result.extension_properties["approved_site"]) == row["id"]

    def test_expired_naive_row_skipped(self, db):
        db.client.table.return_value = _query([self._naive_row("2020-01-01T00:00:00")])
        request = AuthorizationRequest(client_id="client-1", requested_scopes={"read"})

        result = self._engine(db).check_for_pre_approval(
            request, Identity(user_id="alice", is_authenticated=True)
        )

        assert not result.approved
        assert "approved_site" not in result.extension_properties
