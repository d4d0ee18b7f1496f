"""API key checks for the consent and trust record management routes.

Consent routes take the user identity from the request body, so only the
protocol layer holding the protocol key may call them.
"""

import hmac
import logging
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from tofu_consent.config import Settings, get_settings

logger = logging.getLogger(__name__)


def _check_api_key(expected: str | None, presented: str | None, scope: str) -> None:
    """Compare a presented API key with the configured one.

    Raises:
        HTTPException: 503 if no key is configured, 401 if the key is
            missing or wrong
    """
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{scope.capitalize()} API is disabled",
        )

    if not presented or not hmac.compare_digest(presented.encode(), expected.encode()):
        logger.warning(f"Invalid {scope} API key attempted")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
        )


async def require_admin_key(
    settings: Annotated[Settings, Depends(get_settings)],
    x_api_key: Annotated[str | None, Header()] = None,
) -> None:
    """Validate the X-Api-Key header against the configured admin key."""
    _check_api_key(settings.admin_api_key, x_api_key, "admin")


async def require_protocol_key(
    settings: Annotated[Settings, Depends(get_settings)],
    x_api_key: Annotated[str | None, Header()] = None,
) -> None:
    """Validate the X-Api-Key header against the configured protocol key."""
    _check_api_key(settings.protocol_api_key, x_api_key, "protocol")


# Dependencies for key-protected routes
AdminOnly = Depends(require_admin_key)
ProtocolOnly = Depends(require_protocol_key)
