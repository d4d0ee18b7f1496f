"""Consent decision logic."""

from tofu_consent.manager.consent_engine import ConsentDecisionEngine, scopes_match

__all__ = ["ConsentDecisionEngine", "scopes_match"]
