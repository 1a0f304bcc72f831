"""
Authentication-specific exceptions.

Every exception carries a stable ``kind`` so clients can branch on the
failure without parsing the human-readable message.
"""
from fastapi import HTTPException, status


class AuthException(HTTPException):
    """Base class for authentication exceptions."""
    kind = "AUTH_ERROR"

    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=detail)


class EmailAlreadyExistsException(AuthException):
    """Exception raised when email already exists."""
    kind = "DUPLICATE_IDENTITY"

    def __init__(self, detail: str = "Email already registered"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class RegistrationValidationException(AuthException):
    """Exception raised when a role-specific registration field is missing or invalid."""
    kind = "VALIDATION_ERROR"

    def __init__(self, detail: str = "Invalid registration data"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class InvalidCredentialsException(AuthException):
    """Exception raised when credentials are invalid."""
    kind = "INVALID_CREDENTIALS"

    def __init__(self, detail: str = "Invalid email or password"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class EmailNotVerifiedException(AuthException):
    """Exception raised when an unverified account tries to log in."""
    kind = "EMAIL_NOT_VERIFIED"

    def __init__(self, detail: str = "Please verify your email before logging in"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class TokenExpiredException(AuthException):
    """Exception raised when token has expired."""
    kind = "TOKEN_EXPIRED"

    def __init__(self, detail: str = "Token has expired"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class InvalidTokenException(AuthException):
    """Exception raised when token is invalid."""
    kind = "INVALID_TOKEN"

    def __init__(self, detail: str = "Invalid token"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class ResourceNotFoundException(AuthException):
    """Exception raised when a requested record does not exist."""
    kind = "RESOURCE_NOT_FOUND"

    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class NotAuthenticatedException(AuthException):
    """Exception raised when a protected route is called without a valid session token."""
    kind = "NOT_AUTHENTICATED"

    def __init__(self, detail: str = "Not authenticated"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)
        self.headers = {"WWW-Authenticate": "Bearer"}


class PermissionDeniedException(AuthException):
    """Exception raised when user doesn't have required permissions."""
    kind = "PERMISSION_DENIED"

    def __init__(self, detail: str = "Permission denied"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class RoleDeniedException(PermissionDeniedException):
    """Exception raised when user doesn't have required role."""

    def __init__(self, required_roles: list, user_role: str):
        detail = f"Access denied. Required roles: {required_roles}. Your role: {user_role}"
        super().__init__(detail=detail)
