"""Login error taxonomy.

Services raise these errors; the login route catches them and renders the
``{"success": false, "message": ...}`` body with the matching status code.
Errors with ``expose = False`` carry internal detail that is logged but
replaced by ``public_message`` in the response.
"""

GENERIC_FAILURE_MESSAGE = "An error occurred during login. Please try again later."


class LoginError(Exception):
    """Base class for all login errors."""

    status_code = 500
    expose = True
    public_message = GENERIC_FAILURE_MESSAGE

    def __init__(self, message: str | None = None):
        super().__init__(message or self.public_message)

    @property
    def client_message(self) -> str:
        return str(self) if self.expose else self.public_message


class ValidationError(LoginError):
    """Missing or malformed request input."""

    status_code = 400


class MethodNotAllowedError(LoginError):
    status_code = 405
    public_message = "Method not allowed. Only POST requests are accepted."


class AuthenticationError(LoginError):
    """Unknown email or digest mismatch. The message never says which."""

    status_code = 401
    public_message = "Invalid email or password."

    def __init__(self):
        super().__init__(self.public_message)


class AccountInactiveError(LoginError):
    status_code = 403
    public_message = "Your account is not active. Please contact administrator."


class StorageError(LoginError):
    """The account store failed. Detail stays server-side."""

    expose = False


class StorageConnectionError(StorageError):
    public_message = "Database connection failed. Please try again later."


class StorageQueryError(StorageError):
    pass


class BookkeepingUpdateError(StorageError):
    """The LastUsed update failed. Logged by the caller and never surfaced."""
