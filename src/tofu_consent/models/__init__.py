"""Pydantic models for TOFU Consent - the contracts."""

from tofu_consent.models.approval import (
    ApprovedSite,
    WhitelistedSite,
    WhitelistUpdate,
)
from tofu_consent.models.client import ClientDetails
from tofu_consent.models.request import (
    APPROVAL_PARAMETER,
    APPROVED_SITE_PROPERTY,
    REMEMBER_PARAMETER,
    SCOPE_PARAMETER_PREFIX,
    ApprovalStatus,
    AuthorizationRequest,
    ConsentStepRequest,
    Identity,
)

__all__ = [
    "APPROVAL_PARAMETER",
    "APPROVED_SITE_PROPERTY",
    "REMEMBER_PARAMETER",
    "SCOPE_PARAMETER_PREFIX",
    "ApprovalStatus",
    "ApprovedSite",
    "AuthorizationRequest",
    "ClientDetails",
    "ConsentStepRequest",
    "Identity",
    "WhitelistedSite",
    "WhitelistUpdate",
]
