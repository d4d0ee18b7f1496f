"""Storage contracts and in-memory implementations."""

from tofu_consent.stores.base import ApprovalStore, ClientRegistry, WhitelistStore
from tofu_consent.stores.memory import (
    InMemoryApprovalStore,
    InMemoryClientRegistry,
    InMemoryWhitelistStore,
)

__all__ = [
    "ApprovalStore",
    "ClientRegistry",
    "InMemoryApprovalStore",
    "InMemoryClientRegistry",
    "InMemoryWhitelistStore",
    "WhitelistStore",
]
