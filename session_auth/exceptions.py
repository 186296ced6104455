"""Auth exceptions.

Messages are safe to show to clients; internal detail belongs in the logs.
"""


class AuthException(Exception):
    """Base auth exception with HTTP status."""

    # Transport should drop any session cookies the client still holds.
    clear_session_cookies = False

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class InvalidCredentials(AuthException):
    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message, status_code=401)


class InvalidToken(AuthException):
    """Signature, structure, type or expiry check failed."""

    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(message, status_code=401)


class SessionNotFound(AuthException):
    """No refresh token is stored for the principal."""

    clear_session_cookies = True

    def __init__(self, message: str = "Refresh token not found"):
        super().__init__(message, status_code=401)


class TokenMismatch(AuthException):
    """Presented refresh token differs from the stored one (replay or stale token)."""

    clear_session_cookies = True

    def __init__(self, message: str = "Invalid refresh token"):
        super().__init__(message, status_code=401)


class PrincipalNotFound(AuthException):
    def __init__(self, message: str = "User not found"):
        super().__init__(message, status_code=404)


class EmailAlreadyExists(AuthException):
    def __init__(self, message: str = "Email is already in use"):
        super().__init__(message, status_code=409)


class PersistenceError(AuthException):
    """Credential store unavailable or write rejected."""

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message, status_code=500)
