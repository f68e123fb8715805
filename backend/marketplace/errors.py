# Overview: Domain error taxonomy; each error knows the HTTP status it maps to.

"""
Marketplace errors.

Services raise these; the app-level error handlers registered in
create_app() translate them into the JSON response envelope. Anything that
is not a MarketplaceError is treated as an internal failure (500).
"""


class MarketplaceError(Exception):
    """Base class for errors that are reported to the client verbatim."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(MarketplaceError):
    """Missing or malformed request fields."""

    status_code = 400
    default_message = "Invalid request"


class Unauthenticated(MarketplaceError):
    """Missing, malformed or unverifiable credential."""

    status_code = 401
    default_message = "Not authorized"


class Forbidden(MarketplaceError):
    """Role, ownership or account-status mismatch."""

    status_code = 403
    default_message = "Not authorized to perform this action"


class NotFound(MarketplaceError):
    """Referenced entity is absent."""

    status_code = 404
    default_message = "Not found"


class InvalidState(MarketplaceError):
    """Operation is not legal for the entity's current state."""

    status_code = 400
    default_message = "Operation not allowed in the current state"
