"""
Custom exceptions for the Brokerage service.
"""
from typing import Dict, List, Optional


class BrokerageServiceError(Exception):
    """Base class for exceptions in this module."""
    pass

class EntityNotFoundError(BrokerageServiceError):
    """Raised when a referenced record does not exist."""
    def __init__(self, entity: str, entity_id: Optional[str] = None, message: Optional[str] = None):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(message or f"{entity} not found with id of {entity_id}")

class EntityValidationError(BrokerageServiceError):
    """Raised when a record fails validation. Carries field-level messages."""
    def __init__(self, errors: List[Dict[str, str]]):
        self.errors = errors
        super().__init__("; ".join(e["message"] for e in errors) or "Validation failed")

    @classmethod
    def single(cls, field: str, message: str) -> "EntityValidationError":
        return cls([{"field": field, "message": message}])

class DuplicateEntityError(BrokerageServiceError):
    """Raised when a write would violate a uniqueness rule."""
    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)

class AuthenticationError(BrokerageServiceError):
    """Raised when a caller cannot be authenticated."""
    pass

class PermissionDeniedError(BrokerageServiceError):
    """Raised when an authenticated caller is not allowed to perform an action."""
    pass

class CodeGenerationError(BrokerageServiceError):
    """Raised when a unique code could not be allocated within the retry budget."""
    def __init__(self, field: str, attempts: int):
        self.field = field
        self.attempts = attempts
        super().__init__(f"Could not allocate a unique value for '{field}' after {attempts} attempts.")
