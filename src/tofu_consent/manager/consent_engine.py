"""Trust-on-first-use consent decisions.

Whitelisted clients are approved automatically, and an approved site is
created the first time a given user reaches one. Every other client needs
the user's consent on the first visit; if the user asks to remember the
decision, later requests within the granted scopes skip the consent page.

Blacklisted clients are rejected upstream, before this engine is reached.
"""

import logging
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta, UTC

from tofu_consent.models.request import (
    APPROVED_SITE_PROPERTY,
    REMEMBER_PARAMETER,
    SCOPE_PARAMETER_PREFIX,
    AuthorizationRequest,
    Identity,
)
from tofu_consent.stores.base import ApprovalStore, ClientRegistry, WhitelistStore

logger = logging.getLogger(__name__)

REMEMBER_NONE = "none"
REMEMBER_ONE_HOUR = "one-hour"
ONE_HOUR = timedelta(hours=1)


def scopes_match(requested: Iterable[str], allowed: Iterable[str]) -> bool:
    """Check whether every requested scope is among the allowed scopes.

    An empty request is trivially covered.
    """
    return set(requested) <= set(allowed)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ConsentDecisionEngine:
    """Decides whether an authorization request needs interactive consent.

    The protocol layer calls, in order:
    - check_for_pre_approval() before rendering the consent page
    - update_after_approval() once the user has answered
    - is_approved() to find out whether the flow may continue

    The engine holds no per-request state; everything lives in the
    caller's AuthorizationRequest and the injected stores.
    """

    def __init__(
        self,
        approvals: ApprovalStore,
        whitelist: WhitelistStore,
        clients: ClientRegistry,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.approvals = approvals
        self.whitelist = whitelist
        self.clients = clients
        self._clock = clock

    def is_approved(
        self, request: AuthorizationRequest, identity: Identity
    ) -> bool:
        """Whether the request is approved, or the user just approved it.

        An approval flag set earlier in the flow wins regardless of the
        parameters or the authentication state.
        """
        if request.approved:
            return True
        return identity.is_authenticated and request.user_approved

    def check_for_pre_approval(
        self, request: AuthorizationRequest, identity: Identity
    ) -> AuthorizationRequest:
        """Approve the request from a standing trust relationship, if any.

        A stored, unexpired approval covering the requested scopes wins
        first. Failing that, a whitelist entry covering them creates a new
        never-expiring approved site for this user. Otherwise the request
        comes back unapproved and the user has to be asked.

        Args:
            request: The in-flight authorization request (mutated in place)
            identity: The authenticated user

        Returns:
            The same request, approved if trust was found
        """
        client_id = request.client_id
        user_id = identity.user_id
        now = self._clock()

        for site in self.approvals.find_by_client_and_user(client_id, user_id):
            if site.is_expired(now):
                continue
            if scopes_match(request.requested_scopes, site.allowed_scopes):
                site.accessed_at = now
                self.approvals.save(site)

                request.extension_properties[APPROVED_SITE_PROPERTY] = site.id
                request.approved = True
                logger.debug(
                    f"Pre-approved {client_id} for {user_id} via approved site {site.id}"
                )
                return request

        entry = self.whitelist.find_by_client(client_id)
        if entry is not None and scopes_match(
            request.requested_scopes, entry.allowed_scopes
        ):
            site = self.approvals.create(
                client_id, user_id, None, entry.allowed_scopes, entry
            )
            request.extension_properties[APPROVED_SITE_PROPERTY] = site.id
            request.approved = True
            logger.info(
                f"Whitelisted client {client_id} approved for {user_id}, "
                f"created approved site {site.id}"
            )
            return request

        logger.debug(f"No pre-approval for {client_id}/{user_id}, consent required")
        return request

    def update_after_approval(
        self, request: AuthorizationRequest, identity: Identity
    ) -> AuthorizationRequest:
        """Apply the user's answer from the consent page.

        Scopes come from the scope_* parameters, restricted to the client's
        registered scopes; this may widen or narrow the original request.
        A "remember" choice other than "none" stores an approved site,
        valid for one hour for "one-hour" and indefinitely otherwise.

        Args:
            request: The in-flight authorization request (mutated in place)
            identity: The authenticated user

        Returns:
            The same request, approved if the user said yes

        Raises:
            ClientNotFoundError: If the client is not registered
        """
        client_id = request.client_id
        user_id = identity.user_id
        client = self.clients.load(client_id)

        # Parsed again here: the protocol layer may have reset request state
        # between the consent page and this call
        if not request.user_approved:
            logger.debug(f"User {user_id} did not approve {client_id}")
            return request

        request.approved = True

        allowed_scopes: set[str] = set()
        for key, scope in request.approval_parameters.items():
            if not key.startswith(SCOPE_PARAMETER_PREFIX):
                continue
            if scope in client.scopes:
                allowed_scopes.add(scope)
            else:
                logger.debug(f"Dropping unregistered scope {scope!r} for {client_id}")

        request.requested_scopes = allowed_scopes

        remember = request.approval_parameters.get(REMEMBER_PARAMETER)
        if not remember or remember == REMEMBER_NONE:
            return request

        expires_at = None
        if remember == REMEMBER_ONE_HOUR:
            expires_at = self._clock() + ONE_HOUR

        site = self.approvals.create(
            client_id, user_id, expires_at, allowed_scopes, None
        )
        request.extension_properties[APPROVED_SITE_PROPERTY] = site.id
        logger.info(
            f"Remembered approval of {client_id} for {user_id} as approved site "
            f"{site.id} (expires: {expires_at.isoformat() if expires_at else 'never'})"
        )
        return request
