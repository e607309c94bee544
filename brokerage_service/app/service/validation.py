"""
Record validation shared by the create and update paths.

Field-shape rules live on the pydantic models; the cross-field business rules
below run on the fully merged record, so an update is validated exactly like a
create.
"""
from typing import Any, Dict, Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from brokerage_service.app.models.client_db import ClientType
from brokerage_service.app.models.risk_note_db import MOTOR_CATEGORY, MotorDetails, MotorSubcategory
from brokerage_service.app.service.exceptions import EntityValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)

FieldErrors = List[Dict[str, str]]

# Set by the store on creation; never changed by an update payload
IMMUTABLE_FIELDS = ("id", "createdAt", "updatedAt", "version", "_id")


def field_errors_from_pydantic(error: ValidationError) -> FieldErrors:
    errors = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ()) if part not in ("body",))
        errors.append({"field": location or "body", "message": item.get("msg", "Invalid value")})
    return errors


def validate_model(model_cls: Type[ModelT], data: Dict[str, Any]) -> ModelT:
    try:
        return model_cls.model_validate(data)
    except ValidationError as e:
        raise EntityValidationError(field_errors_from_pydantic(e))


def merge_update(existing: Dict[str, Any], changes: Dict[str, Any], protected: Iterable[str] = ()) -> Dict[str, Any]:
    """Top-level merge of an update payload over the stored document."""
    blocked = set(IMMUTABLE_FIELDS) | set(protected)
    merged = dict(existing)
    for key, value in changes.items():
        if key in blocked or key.startswith("$"):
            continue
        merged[key] = value
    return merged


def ensure_valid(errors: FieldErrors) -> None:
    if errors:
        raise EntityValidationError(errors)


# --- Business rules ---

def client_errors(client_type: str, first_name: Optional[str], last_name: Optional[str], company_name: Optional[str]) -> FieldErrors:
    errors: FieldErrors = []
    if client_type == ClientType.INDIVIDUAL.value:
        if not first_name:
            errors.append({"field": "firstName", "message": "First name is required for individual clients"})
        if not last_name:
            errors.append({"field": "lastName", "message": "Last name is required for individual clients"})
    elif client_type == ClientType.CORPORATE.value and not company_name:
        errors.append({"field": "companyName", "message": "Company name is required for corporate clients"})
    return errors


def policy_holder_errors(client: Optional[str], group: Optional[str]) -> FieldErrors:
    if not client and not group:
        return [{"field": "client", "message": "Either client or group must be specified"}]
    return []


def motor_errors(policy_category: str, sub_category: Optional[str], motor_details: Optional[MotorDetails]) -> FieldErrors:
    """Motor risk notes need a known subcategory and complete vehicle details."""
    if policy_category != MOTOR_CATEGORY:
        return []
    errors: FieldErrors = []
    if not sub_category:
        errors.append({"field": "subCategory", "message": "Subcategory is required for Motor policy"})
    elif sub_category not in {s.value for s in MotorSubcategory}:
        errors.append({"field": "subCategory", "message": "Invalid subcategory for Motor policy"})
    if motor_details is None or not motor_details.is_complete():
        errors.append({"field": "motorDetails", "message": "Complete motor details are required for Motor policy"})
    return errors
