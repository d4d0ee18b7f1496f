"""TOFU Consent - trust-on-first-use approval decisions for OAuth2 flows."""

__version__ = "0.1.0"

from tofu_consent.exceptions import ClientNotFoundError, ConsentError

__all__ = ["__version__", "ClientNotFoundError", "ConsentError"]
