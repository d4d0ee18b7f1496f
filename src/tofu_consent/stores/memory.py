"""Dict-backed stores for development, tests and single-process use."""

import logging
from collections.abc import Iterable
from datetime import datetime, UTC
from uuid import UUID

from tofu_consent.exceptions import (
    ApprovedSiteNotFoundError,
    ClientNotFoundError,
    WhitelistEntryNotFoundError,
)
from tofu_consent.models.approval import ApprovedSite, WhitelistedSite
from tofu_consent.models.client import ClientDetails

logger = logging.getLogger(__name__)


class InMemoryApprovalStore:
    """Approved sites keyed by id.

    Lookups return copies so callers must save() to persist changes.
    """

    def __init__(self) -> None:
        self._sites: dict[UUID, ApprovedSite] = {}

    def find_by_client_and_user(
        self, client_id: str, user_id: str
    ) -> list[ApprovedSite]:
        return [
            site.model_copy()
            for site in self._sites.values()
            if site.client_id == client_id and site.user_id == user_id
        ]

    def save(self, site: ApprovedSite) -> ApprovedSite:
        self._sites[site.id] = site.model_copy()
        return site

    def create(
        self,
        client_id: str,
        user_id: str,
        expires_at: datetime | None,
        allowed_scopes: Iterable[str],
        whitelisted_site: WhitelistedSite | None,
    ) -> ApprovedSite:
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
        logger.debug(f"Created approved site {site.id} for {client_id}/{user_id}")
        return self.save(site)

    def get(self, site_id: UUID) -> ApprovedSite | None:
        site = self._sites.get(site_id)
        return site.model_copy() if site else None

    def find_by_user(self, user_id: str) -> list[ApprovedSite]:
        return [
            site.model_copy()
            for site in self._sites.values()
            if site.user_id == user_id
        ]

    def remove(self, site_id: UUID) -> None:
        if site_id not in self._sites:
            raise ApprovedSiteNotFoundError(str(site_id))
        del self._sites[site_id]


class InMemoryWhitelistStore:
    """Whitelist entries keyed by client id."""

    def __init__(self, entries: Iterable[WhitelistedSite] = ()) -> None:
        self._entries: dict[str, WhitelistedSite] = {}
        for entry in entries:
            self.save(entry)

    def find_by_client(self, client_id: str) -> WhitelistedSite | None:
        return self._entries.get(client_id)

    def list_all(self) -> list[WhitelistedSite]:
        return list(self._entries.values())

    def save(self, entry: WhitelistedSite) -> WhitelistedSite:
        self._entries[entry.client_id] = entry
        return entry

    def remove(self, client_id: str) -> None:
        if client_id not in self._entries:
            raise WhitelistEntryNotFoundError(client_id)
        del self._entries[client_id]


class InMemoryClientRegistry:
    """Registered clients keyed by client id."""

    def __init__(self, clients: Iterable[ClientDetails] = ()) -> None:
        self._clients = {client.client_id: client for client in clients}

    @classmethod
    def from_mapping(cls, mapping: dict[str, list[str]]) -> "InMemoryClientRegistry":
        """Build a registry from a {client_id: [scopes]} mapping."""
        return cls(
            ClientDetails(client_id=client_id, scopes=set(scopes))
            for client_id, scopes in mapping.items()
        )

    def register(self, client: ClientDetails) -> None:
        self._clients[client.client_id] = client

    def load(self, client_id: str) -> ClientDetails:
        client = self._clients.get(client_id)
        if client is None:
            raise ClientNotFoundError(client_id)
        return client
