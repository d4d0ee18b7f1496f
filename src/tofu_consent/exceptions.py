"""Custom exceptions for TOFU Consent."""


class ConsentError(Exception):
    """Base class for consent service errors."""


class ClientNotFoundError(ConsentError):
    """Raised when a client id is not known to the client registry."""

    def __init__(self, client_id: str) -> None:
        self.client_id = client_id
        super().__init__(f"Client not found: {client_id}")


class ApprovedSiteNotFoundError(ConsentError):
    """Raised when an approved site id does not exist."""

    def __init__(self, site_id: str) -> None:
        self.site_id = site_id
        super().__init__(f"Approved site not found: {site_id}")


class WhitelistEntryNotFoundError(ConsentError):
    """Raised when a client has no whitelist entry."""

    def __init__(self, client_id: str) -> None:
        self.client_id = client_id
        super().__init__(f"No whitelist entry for client: {client_id}")


class ConfigurationError(ConsentError):
    """Raised when settings are missing values the chosen backend needs."""
