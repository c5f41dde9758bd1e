"""
Exception taxonomy for the authentication core.

Every AuthError carries the HTTP status and the client-safe message used by
the application's exception handler. The concrete class is what gets logged.
"""


class AuthError(Exception):
    """Base exception for authentication and authorization failures."""

    status_code: int = 500
    public_message: str = "An internal error occurred"

    def __init__(self, message: str | None = None):
        self.message = message or self.public_message
        super().__init__(self.message)

    @property
    def kind(self) -> str:
        return type(self).__name__


class ConfigurationError(Exception):
    """Raised when settings are missing or invalid at startup."""

    pass


class DuplicateIdentity(AuthError):
    """Raised when an email address is already registered."""

    status_code = 409
    public_message = "Email already registered"

    def __init__(self, email: str):
        self.email = email
        super().__init__(self.public_message)


class InvalidCredentials(AuthError):
    """Login mismatch. Never says whether the email exists."""

    status_code = 401
    public_message = "Invalid credentials"


class AccountDisabled(AuthError):
    """Correct password, but the account has been deactivated."""

    status_code = 401
    public_message = "Account is disabled"


class TokenError(AuthError):
    """Base for every reason a presented bearer token is rejected."""

    status_code = 401
    public_message = "Not authorized, please log in"


class InvalidToken(TokenError):
    """Missing, malformed, tampered, revoked or orphaned token."""

    pass


class ExpiredToken(TokenError):
    """Validly signed token past its expiry."""

    pass


class UserInactive(TokenError):
    """Token belongs to a user that has since been deactivated."""

    pass


class CredentialLookupTimeout(InvalidToken):
    """The store did not answer within the configured ceiling."""

    pass


class Forbidden(AuthError):
    """Authenticated, but the role is not allowed."""

    status_code = 403
    public_message = "Not authorized to access this resource"


class UserNotFound(AuthError):
    """Raised when a user id does not exist."""

    status_code = 404
    public_message = "User not found"

    def __init__(self, user_id: int):
        self.user_id = user_id
        super().__init__(self.public_message)


class InvalidOperation(AuthError):
    """A well-formed request the current state does not allow."""

    status_code = 400
    public_message = "Invalid operation"
