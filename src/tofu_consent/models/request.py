"""Authorization request and identity models.

The protocol layer owns an AuthorizationRequest for the lifetime of one
authorization flow. The consent engine reads and mutates it in place.
"""

from typing import Any

from pydantic import BaseModel, Field

# Approval parameter names posted back by the consent page
APPROVAL_PARAMETER = "user_oauth_approval"
REMEMBER_PARAMETER = "remember"
SCOPE_PARAMETER_PREFIX = "scope_"

# Extension property pointing at the approved site that justified approval
APPROVED_SITE_PROPERTY = "approved_site"


class Identity(BaseModel):
    """The authenticated user driving the flow."""

    user_id: str
    is_authenticated: bool = False


class AuthorizationRequest(BaseModel):
    """An in-flight OAuth2 authorization request."""

    client_id: str
    requested_scopes: set[str] = Field(default_factory=set)
    approved: bool = False
    approval_parameters: dict[str, str] = Field(default_factory=dict)
    extension_properties: dict[str, Any] = Field(default_factory=dict)

    @property
    def user_approved(self) -> bool:
        """Whether the approval parameters carry a positive user decision.

        Best-effort coercion: only a case-insensitive "true" counts, anything
        else (including a missing parameter) is False.
        """
        value = self.approval_parameters.get(APPROVAL_PARAMETER)
        return value is not None and value.lower() == "true"


class ConsentStepRequest(BaseModel):
    """Body for the consent endpoints: one request plus the acting user."""

    request: AuthorizationRequest
    identity: Identity


class ApprovalStatus(BaseModel):
    """Response from the approval check endpoint."""

    approved: bool
