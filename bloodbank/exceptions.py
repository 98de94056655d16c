"""
Error taxonomy for the blood bank service.
Every exception carries the HTTP status it maps to and a client-safe detail.
"""
from fastapi import status


class BloodBankException(Exception):
    """Base class for errors surfaced to API callers"""
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Request could not be processed"

    def __init__(self, detail: str = None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class DuplicateIdentityException(BloodBankException):
    """Username or email is already registered"""
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"{field.capitalize()} already exists")


class DuplicateBatchException(BloodBankException):
    """Batch number is already used by another blood unit"""
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, batch_number: str):
        self.batch_number = batch_number
        super().__init__(f"Batch number already exists: {batch_number}")


class InvalidCredentialsException(BloodBankException):
    """Unknown username or wrong password; the two are never told apart"""
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Incorrect username or password"


class InvalidOrExpiredTokenException(BloodBankException):
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Invalid or expired token"


class InactivePrincipalException(BloodBankException):
    """Exception raised when a deactivated account tries to authenticate"""
    status_code = status.HTTP_403_FORBIDDEN
    detail = "Account is deactivated"


class NotFoundException(BloodBankException):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str, identifier=None):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found")


class InsufficientQuantityException(BloodBankException):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, requested: int, available: int = None):
        self.requested = requested
        self.available = available
        super().__init__("Insufficient blood quantity")


class InvalidQuantityException(BloodBankException):
    detail = "Quantity must be a positive integer"


class UnauthorizedException(BloodBankException):
    """Authenticated principal does not satisfy the route's role predicate"""
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, reason: str = "Access forbidden"):
        self.reason = reason
        super().__init__(reason)


class AuthenticationRequiredException(BloodBankException):
    """Anonymous request reached a protected route"""
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Authentication required"
