"""Supabase-backed stores."""

from tofu_consent.db.client import (
    DatabaseClient,
    SupabaseApprovalStore,
    SupabaseClientRegistry,
    SupabaseWhitelistStore,
)

__all__ = [
    "DatabaseClient",
    "SupabaseApprovalStore",
    "SupabaseClientRegistry",
    "SupabaseWhitelistStore",
]
