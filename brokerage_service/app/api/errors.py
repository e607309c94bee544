# Maps service-layer exceptions onto HTTP responses
from fastapi import HTTPException

from brokerage_service.app.service.exceptions import (
    AuthenticationError,
    BrokerageServiceError,
    CodeGenerationError,
    DuplicateEntityError,
    EntityNotFoundError,
    EntityValidationError,
    PermissionDeniedError,
)


def http_error(exc: BrokerageServiceError) -> HTTPException:
    if isinstance(exc, EntityNotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, EntityValidationError):
        return HTTPException(status_code=400, detail={"message": str(exc), "errors": exc.errors})
    if isinstance(exc, DuplicateEntityError):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, AuthenticationError):
        return HTTPException(status_code=401, detail=str(exc))
    if isinstance(exc, PermissionDeniedError):
        return HTTPException(status_code=403, detail=str(exc))
    if isinstance(exc, CodeGenerationError):
        return HTTPException(status_code=500, detail=str(exc))
    return HTTPException(status_code=500, detail="Internal Server Error")
