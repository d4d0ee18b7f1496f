"""Stored trust records: approved sites and whitelisted sites."""

from datetime import datetime, UTC
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator


class WhitelistedSite(BaseModel):
    """Administrator-managed client that skips interactive consent.

    Requests are auto-approved only while their scopes stay within
    allowed_scopes.
    """

    id: UUID = Field(default_factory=uuid4)
    client_id: str
    allowed_scopes: set[str] = Field(default_factory=set)
    creator_user_id: str | None = None


class WhitelistUpdate(BaseModel):
    """Request to create or replace a client's whitelist entry."""

    allowed_scopes: set[str]
    creator_user_id: str | None = None


class ApprovedSite(BaseModel):
    """A remembered consent decision for one (client, user) pair.

    allowed_scopes is fixed at creation. accessed_at moves every time the
    record satisfies a pre-approval check. A record with an expires_at in
    the past is ignored, never deleted.
    """

    id: UUID = Field(default_factory=uuid4)
    client_id: str
    user_id: str
    allowed_scopes: frozenset[str] = Field(default_factory=frozenset)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    accessed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    expires_at: datetime | None = None  # None = never expires
    whitelisted_site_id: UUID | None = None  # None = explicit user consent

    @field_validator("created_at", "accessed_at", "expires_at")
    @classmethod
    def _as_utc(cls, value: datetime | None) -> datetime | None:
        """Treat naive timestamps as UTC so expiry checks compare cleanly."""
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check whether the record's timeout has passed."""
        if self.expires_at is None:
            return False
        return (now or datetime.now(UTC)) > self.expires_at
