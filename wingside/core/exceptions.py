"""
Error types for the Wingside API.

Each exception carries its HTTP status. Services call the `raise_*` helpers,
which build the exception (so message wording lives in one place) and raise
it as a FastAPI HTTPException.
"""
from typing import Optional

from fastapi import HTTPException, status


class WingsideException(Exception):
    """Base exception for Wingside"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)

    def to_http(self) -> HTTPException:
        return HTTPException(status_code=self.status_code, detail=self.message)


class NotFoundError(WingsideException):
    """Lead, customer or reward does not exist"""
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str = "Resource", resource_id: Optional[str] = None):
        if resource_id:
            super().__init__(f"{resource} with id '{resource_id}' not found")
        else:
            super().__init__(f"{resource} not found")


class AlreadyExistsError(WingsideException):
    """A one-time record was requested twice, e.g. a reward claim"""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, resource: str = "Resource", field: Optional[str] = None, value: Optional[str] = None):
        detail = f" with {field} '{value}'" if field and value else ""
        super().__init__(f"{resource}{detail} already exists")


class ConflictError(AlreadyExistsError):
    """A unique value (lead email) is already taken"""
    status_code = status.HTTP_409_CONFLICT


class UnauthorizedError(WingsideException):
    """Missing or invalid bearer token / cron secret"""
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(message)

    def to_http(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail=self.message,
            headers={"WWW-Authenticate": "Bearer"},
        )


class ForbiddenError(WingsideException):
    """Authenticated but not an admin"""
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "You don't have permission to access this resource"):
        super().__init__(message)


class ValidationError(WingsideException):
    """Business-rule validation failed"""
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, message: str = "Validation failed", field: Optional[str] = None):
        if field:
            message = f"Validation failed for field '{field}': {message}"
        super().__init__(message)


class ServiceUnavailableError(WingsideException):
    """Site closed for maintenance"""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, message: str = "Service temporarily unavailable"):
        super().__init__(message)


# HTTP Exception helpers
def raise_not_found(resource: str = "Resource", resource_id: str = None):
    """Raise 404 HTTPException"""
    raise NotFoundError(resource, resource_id).to_http()


def raise_already_exists(resource: str = "Resource", field: str = None, value: str = None):
    """Raise 400 HTTPException for a repeated one-time action"""
    raise AlreadyExistsError(resource, field, value).to_http()


def raise_conflict(resource: str = "Resource", field: str = None, value: str = None):
    """Raise 409 HTTPException for a duplicate unique value"""
    raise ConflictError(resource, field, value).to_http()


def raise_unauthorized(message: str = "Could not validate credentials"):
    """Raise 401 HTTPException"""
    raise UnauthorizedError(message).to_http()


def raise_forbidden(message: str = "You don't have permission to access this resource"):
    """Raise 403 HTTPException"""
    raise ForbiddenError(message).to_http()


def raise_validation_error(message: str = "Validation failed", field: str = None):
    """Raise 422 HTTPException"""
    raise ValidationError(message, field).to_http()


def raise_service_unavailable(message: str = "Service temporarily unavailable"):
    """Raise 503 HTTPException"""
    raise ServiceUnavailableError(message).to_http()
