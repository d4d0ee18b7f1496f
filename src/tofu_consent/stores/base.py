"""Collaborator protocols consumed by the consent engine.

The engine only needs find_by_client_and_user/save/create, find_by_client
and load. The remaining methods back the admin routes.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Protocol, runtime_checkable
from uuid import UUID

from tofu_consent.models.approval import ApprovedSite, WhitelistedSite
from tofu_consent.models.client import ClientDetails


@runtime_checkable
class ApprovalStore(Protocol):
    """Durable store of approved sites."""

    def find_by_client_and_user(
        self, client_id: str, user_id: str
    ) -> list[ApprovedSite]: ...

    def save(self, site: ApprovedSite) -> ApprovedSite: ...

    def create(
        self,
        client_id: str,
        user_id: str,
        expires_at: datetime | None,
        allowed_scopes: Iterable[str],
        whitelisted_site: WhitelistedSite | None,
    ) -> ApprovedSite: ...

    def get(self, site_id: UUID) -> ApprovedSite | None: ...

    def find_by_user(self, user_id: str) -> list[ApprovedSite]: ...

    def remove(self, site_id: UUID) -> None: ...


@runtime_checkable
class WhitelistStore(Protocol):
    """Administrator-managed whitelist, at most one entry per client."""

    def find_by_client(self, client_id: str) -> WhitelistedSite | None: ...

    def list_all(self) -> list[WhitelistedSite]: ...

    def save(self, entry: WhitelistedSite) -> WhitelistedSite: ...

    def remove(self, client_id: str) -> None: ...


@runtime_checkable
class ClientRegistry(Protocol):
    """Lookup of registered clients.

    load() raises ClientNotFoundError for unknown client ids.
    """

    def load(self, client_id: str) -> ClientDetails: ...
