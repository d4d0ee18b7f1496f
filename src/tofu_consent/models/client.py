"""Registered OAuth2 client details."""

from pydantic import BaseModel, Field


class ClientDetails(BaseModel):
    """The subset of client registration the consent engine needs."""

    client_id: str
    scopes: set[str] = Field(default_factory=set)
    client_name: str | None = None
