"""FastAPI routes for consent decisions and trust record management."""

import logging
from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status

from tofu_consent import __version__
from tofu_consent.api.auth import AdminOnly, ProtocolOnly
from tofu_consent.config import get_settings
from tofu_consent.db.client import (
    DatabaseClient,
    SupabaseApprovalStore,
    SupabaseClientRegistry,
    SupabaseWhitelistStore,
)
from tofu_consent.exceptions import (
    ApprovedSiteNotFoundError,
    ClientNotFoundError,
    WhitelistEntryNotFoundError,
)
from tofu_consent.manager.consent_engine import ConsentDecisionEngine
from tofu_consent.models.approval import ApprovedSite, WhitelistedSite, WhitelistUpdate
from tofu_consent.models.request import (
    ApprovalStatus,
    AuthorizationRequest,
    ConsentStepRequest,
)
from tofu_consent.stores.base import ApprovalStore, ClientRegistry, WhitelistStore
from tofu_consent.stores.memory import (
    InMemoryApprovalStore,
    InMemoryClientRegistry,
    InMemoryWhitelistStore,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# Dependency injection
_db_client: DatabaseClient | None = None
_approval_store: ApprovalStore | None = None
_whitelist_store: WhitelistStore | None = None
_client_registry: ClientRegistry | None = None
_engine: ConsentDecisionEngine | None = None


def _build_stores() -> None:
    """Create the stores for the configured backend."""
    global _db_client, _approval_store, _whitelist_store, _client_registry
    settings = get_settings()

    if settings.store_backend == "supabase":
        _db_client = DatabaseClient()
        _approval_store = SupabaseApprovalStore(_db_client)
        _whitelist_store = SupabaseWhitelistStore(_db_client)
        _client_registry = SupabaseClientRegistry(_db_client)
    else:
        _approval_store = InMemoryApprovalStore()
        _whitelist_store = InMemoryWhitelistStore()
        _client_registry = InMemoryClientRegistry.from_mapping(
            settings.registered_clients
        )
    logger.info(f"Using {settings.store_backend} store backend")


def get_approval_store() -> ApprovalStore:
    """Get or create the approved site store."""
    if _approval_store is None:
        _build_stores()
    return _approval_store


def get_whitelist_store() -> WhitelistStore:
    """Get or create the whitelist store."""
    if _whitelist_store is None:
        _build_stores()
    return _whitelist_store


def get_client_registry() -> ClientRegistry:
    """Get or create the client registry."""
    if _client_registry is None:
        _build_stores()
    return _client_registry


def get_engine() -> ConsentDecisionEngine:
    """Get or create consent engine instance."""
    global _engine
    if _engine is None:
        _engine = ConsentDecisionEngine(
            approvals=get_approval_store(),
            whitelist=get_whitelist_store(),
            clients=get_client_registry(),
        )
    return _engine


Engine = Annotated[ConsentDecisionEngine, Depends(get_engine)]
Approvals = Annotated[ApprovalStore, Depends(get_approval_store)]
Whitelist = Annotated[WhitelistStore, Depends(get_whitelist_store)]


@router.get("/health")
def health() -> dict[str, Any]:
    """Health check endpoint."""
    settings = get_settings()
    result: dict[str, Any] = {
        "status": "healthy",
        "version": __version__,
        "store_backend": settings.store_backend,
    }
    if _db_client is not None:
        db_health = _db_client.health_check()
        result["database"] = db_health
        if not db_health["healthy"]:
            result["status"] = "degraded"
    return result


# -------------------------------------------------------------------------
# Consent decisions
# -------------------------------------------------------------------------


@router.post(
    "/consent/approved",
    response_model=ApprovalStatus,
    dependencies=[ProtocolOnly],
)
def check_approved(body: ConsentStepRequest, engine: Engine) -> ApprovalStatus:
    """Report whether the request is approved or was just approved by the user."""
    return ApprovalStatus(approved=engine.is_approved(body.request, body.identity))


@router.post(
    "/consent/pre-approval",
    response_model=AuthorizationRequest,
    dependencies=[ProtocolOnly],
)
def pre_approval(
    body: ConsentStepRequest, engine: Engine
) -> AuthorizationRequest:
    """Approve the request from a stored approval or the whitelist, if possible."""
    return engine.check_for_pre_approval(body.request, body.identity)


@router.post(
    "/consent/decision",
    response_model=AuthorizationRequest,
    dependencies=[ProtocolOnly],
)
def record_decision(
    body: ConsentStepRequest, engine: Engine
) -> AuthorizationRequest:
    """Apply the user's answer from the consent page."""
    try:
        return engine.update_after_approval(body.request, body.identity)
    except ClientNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


# -------------------------------------------------------------------------
# Approved sites (admin)
# -------------------------------------------------------------------------


@router.get(
    "/approved-sites",
    response_model=list[ApprovedSite],
    dependencies=[AdminOnly],
)
def list_approved_sites(
    approvals: Approvals,
    user_id: str,
    client_id: str | None = None,
) -> list[ApprovedSite]:
    """List a user's approved sites, optionally for a single client."""
    if client_id is not None:
        return approvals.find_by_client_and_user(client_id, user_id)
    return approvals.find_by_user(user_id)


@router.delete(
    "/approved-sites/{site_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[AdminOnly],
)
def revoke_approved_site(site_id: UUID, approvals: Approvals) -> Response:
    """Revoke an approved site so the next request asks the user again."""
    try:
        approvals.remove(site_id)
    except ApprovedSiteNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    logger.info(f"Revoked approved site {site_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# -------------------------------------------------------------------------
# Whitelist (admin)
# -------------------------------------------------------------------------


@router.get(
    "/whitelist",
    response_model=list[WhitelistedSite],
    dependencies=[AdminOnly],
)
def list_whitelist(whitelist: Whitelist) -> list[WhitelistedSite]:
    """List every whitelisted client."""
    return whitelist.list_all()


@router.get(
    "/whitelist/{client_id}",
    response_model=WhitelistedSite,
    dependencies=[AdminOnly],
)
def get_whitelist_entry(client_id: str, whitelist: Whitelist) -> WhitelistedSite:
    """Get a client's whitelist entry."""
    entry = whitelist.find_by_client(client_id)
    if entry is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(WhitelistEntryNotFoundError(client_id)),
        )
    return entry


@router.put(
    "/whitelist/{client_id}",
    response_model=WhitelistedSite,
    dependencies=[AdminOnly],
)
def put_whitelist_entry(
    client_id: str,
    update: WhitelistUpdate,
    whitelist: Whitelist,
) -> WhitelistedSite:
    """Whitelist a client, replacing any existing entry's scopes."""
    existing = whitelist.find_by_client(client_id)
    entry = WhitelistedSite(
        client_id=client_id,
        allowed_scopes=update.allowed_scopes,
        creator_user_id=update.creator_user_id,
    )
    if existing is not None:
        entry.id = existing.id
    saved = whitelist.save(entry)
    logger.info(f"Whitelisted {client_id} for scopes {sorted(update.allowed_scopes)}")
    return saved


@router.delete(
    "/whitelist/{client_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[AdminOnly],
)
def delete_whitelist_entry(client_id: str, whitelist: Whitelist) -> Response:
    """Remove a client from the whitelist.

    Approved sites already created from the entry are left in place.
    """
    try:
        whitelist.remove(client_id)
    except WhitelistEntryNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    logger.info(f"Removed {client_id} from whitelist")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
