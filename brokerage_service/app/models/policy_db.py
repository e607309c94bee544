from enum import Enum
from typing import Any, List, Optional

from pydantic import Field

from .base import CamelModel, DocumentBase, UtcDatetime


class PolicyType(str, Enum):
    HOME = "Home"
    LIFE = "Life"
    BUSINESS = "Business"
    AUTO = "Auto"

class PolicyStatus(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    PENDING = "Pending"
    EXPIRED = "Expired"
    CANCELLED = "Cancelled"

class PaymentFrequency(str, Enum):
    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"
    SEMI_ANNUALLY = "Semi-Annually"
    ANNUALLY = "Annually"
    ONE_TIME = "One-Time"


class PolicyFields(CamelModel):
    policy_type: PolicyType
    # Exactly which holder is set is checked by the policy validation rules
    client: Optional[str] = None
    group: Optional[str] = None
    insured_item: str = Field(min_length=1)
    description: Optional[str] = None
    coverage_amount: float
    premium: float
    deductible: Optional[float] = None
    payment_frequency: PaymentFrequency = PaymentFrequency.MONTHLY
    start_date: UtcDatetime
    end_date: UtcDatetime
    status: PolicyStatus = PolicyStatus.PENDING
    claims: List[Any] = Field(default_factory=list)
    documents: List[str] = Field(default_factory=list)


class PolicyCreate(PolicyFields):
    policy_number: Optional[str] = None


class PolicyDB(DocumentBase, PolicyFields):
    policy_number: Optional[str] = None # assigned on insert


class PolicyRenewal(CamelModel):
    new_start_date: Optional[UtcDatetime] = None
    new_end_date: Optional[UtcDatetime] = None
    new_premium: Optional[float] = None
