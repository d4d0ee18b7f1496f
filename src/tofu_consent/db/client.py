"""Supabase database client for approved sites, whitelist and clients."""

import logging
import time
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from supabase import create_client, Client

from tofu_consent.config import get_settings
from tofu_consent.exceptions import (
    ApprovedSiteNotFoundError,
    ClientNotFoundError,
    ConfigurationError,
    WhitelistEntryNotFoundError,
)
from tofu_consent.models.approval import ApprovedSite, WhitelistedSite
from tofu_consent.models.client import ClientDetails

logger = logging.getLogger(__name__)

APPROVED_SITES_TABLE = "approved_sites"
WHITELISTED_SITES_TABLE = "whitelisted_sites"
CLIENTS_TABLE = "clients"


class DatabaseClient:
    """Client for the Supabase connection shared by the stores below."""

    def __init__(self) -> None:
        settings = get_settings()
        if not settings.supabase_url or not settings.supabase_key:
            raise ConfigurationError(
                "SUPABASE_URL and SUPABASE_KEY are required for the supabase backend"
            )
        self.client: Client = create_client(
            settings.supabase_url,
            settings.supabase_key,
        )

    def table(self, name: str):
        """Start a query on a table."""
        return self.client.table(name)

    def health_check(self) -> dict[str, Any]:
        """Check database connectivity and return health status.

        Returns:
            Dict with:
                - healthy: bool - whether the database is reachable
                - latency_ms: float - query latency in milliseconds
                - error: str | None - error message if unhealthy
        """
        start = time.perf_counter()
        try:
            self.table(CLIENTS_TABLE).select("client_id").limit(1).execute()
            latency_ms = (time.perf_counter() - start) * 1000

            return {
                "healthy": True,
                "latency_ms": round(latency_ms, 2),
                "error": None,
            }
        except Exception as e:
            latency_ms = (time.perf_counter() - start) * 1000
            logger.error(f"Database health check failed: {e}")

            return {
                "healthy": False,
                "latency_ms": round(latency_ms, 2),
                "error": str(e),
            }


class SupabaseApprovalStore:
    """ApprovalStore backed by the approved_sites table."""

    def __init__(self, db: DatabaseClient) -> None:
        self.db = db

    def find_by_client_and_user(
        self, client_id: str, user_id: str
    ) -> list[ApprovedSite]:
        """Get all approved sites for a client/user pair.

        Args:
            client_id: The OAuth2 client ID
            user_id: The user ID

        Returns:
            List of approved sites, in no particular order
        """
        result = (
            self.db.table(APPROVED_SITES_TABLE)
            .select("*")
            .eq("client_id", client_id)
            .eq("user_id", user_id)
            .execute()
        )
        return [ApprovedSite(**row) for row in result.data]

    def save(self, site: ApprovedSite) -> ApprovedSite:
        """Insert or update an approved site.

        Args:
            site: The approved site

        Returns:
            The stored approved site
        """
        result = (
            self.db.table(APPROVED_SITES_TABLE)
            .upsert(site.model_dump(mode="json"))
            .execute()
        )
        logger.debug(f"Saved approved site {site.id}")
        if result.data:
            return ApprovedSite(**result.data[0])
        return site

    def create(
        self,
        client_id: str,
        user_id: str,
        expires_at: datetime | None,
        allowed_scopes: Iterable[str],
        whitelisted_site: WhitelistedSite | None,
    ) -> ApprovedSite:
        """Create and store a new approved site.

        Args:
            client_id: The OAuth2 client ID
            user_id: The user ID
            expires_at: Expiration, or None to never expire
            allowed_scopes: Scopes the approval covers
            whitelisted_site: Whitelist entry that triggered the approval, if any

        Returns:
            The created approved site
        """
        now = datetime.now(UTC)
        site = ApprovedSite(
            client_id=client_id,
            user_id=user_id,
            allowed_scopes=frozenset(allowed_scopes),
            created_at=now,
            accessed_at=now,
            expires_at=expires_at,
            whitelisted_site_id=whitelisted_site.id if whitelisted_site else None,
        )
        result = (
            self.db.table(APPROVED_SITES_TABLE)
            .insert(site.model_dump(mode="json"))
            .execute()
        )
        logger.debug(f"Created approved site {site.id} for {client_id}/{user_id}")
        if result.data:
            return ApprovedSite(**result.data[0])
        return site

    def get(self, site_id: UUID) -> ApprovedSite | None:
        """Get an approved site by ID.

        Args:
            site_id: The approved site ID

        Returns:
            ApprovedSite if found, None otherwise
        """
        result = (
            self.db.table(APPROVED_SITES_TABLE)
            .select("*")
            .eq("id", str(site_id))
            .execute()
        )
        if result.data:
            return ApprovedSite(**result.data[0])
        return None

    def find_by_user(self, user_id: str) -> list[ApprovedSite]:
        """Get all approved sites for a user."""
        result = (
            self.db.table(APPROVED_SITES_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .execute()
        )
        return [ApprovedSite(**row) for row in result.data]

    def remove(self, site_id: UUID) -> None:
        """Delete an approved site.

        Raises:
            ApprovedSiteNotFoundError: If no row was deleted
        """
        result = (
            self.db.table(APPROVED_SITES_TABLE)
            .delete()
            .eq("id", str(site_id))
            .execute()
        )
        if not result.data:
            raise ApprovedSiteNotFoundError(str(site_id))
        logger.debug(f"Removed approved site {site_id}")


class SupabaseWhitelistStore:
    """WhitelistStore backed by the whitelisted_sites table."""

    def __init__(self, db: DatabaseClient) -> None:
        self.db = db

    def find_by_client(self, client_id: str) -> WhitelistedSite | None:
        """Get the whitelist entry for a client.

        Args:
            client_id: The OAuth2 client ID

        Returns:
            WhitelistedSite if the client is whitelisted, None otherwise
        """
        result = (
            self.db.table(WHITELISTED_SITES_TABLE)
            .select("*")
            .eq("client_id", client_id)
            .limit(1)
            .execute()
        )
        if result.data:
            return WhitelistedSite(**result.data[0])
        return None

    def list_all(self) -> list[WhitelistedSite]:
        result = self.db.table(WHITELISTED_SITES_TABLE).select("*").execute()
        return [WhitelistedSite(**row) for row in result.data]

    def save(self, entry: WhitelistedSite) -> WhitelistedSite:
        """Create or replace the whitelist entry for entry.client_id."""
        result = (
            self.db.table(WHITELISTED_SITES_TABLE)
            .upsert(entry.model_dump(mode="json"), on_conflict="client_id")
            .execute()
        )
        logger.debug(f"Saved whitelist entry for {entry.client_id}")
        if result.data:
            return WhitelistedSite(**result.data[0])
        return entry

    def remove(self, client_id: str) -> None:
        """Delete a client's whitelist entry.

        Raises:
            WhitelistEntryNotFoundError: If the client had no entry
        """
        result = (
            self.db.table(WHITELISTED_SITES_TABLE)
            .delete()
            .eq("client_id", client_id)
            .execute()
        )
        if not result.data:
            raise WhitelistEntryNotFoundError(client_id)
        logger.debug(f"Removed whitelist entry for {client_id}")


class SupabaseClientRegistry:
    """ClientRegistry backed by the clients table."""

    def __init__(self, db: DatabaseClient) -> None:
        self.db = db

    def load(self, client_id: str) -> ClientDetails:
        """Load a registered client.

        Raises:
            ClientNotFoundError: If the client is not registered
        """
        result = (
            self.db.table(CLIENTS_TABLE)
            .select("*")
            .eq("client_id", client_id)
            .execute()
        )
        if not result.data:
            raise ClientNotFoundError(client_id)
        return ClientDetails(**result.data[0])
