from enum import Enum
from typing import List, Optional

from pydantic import Field

from .base import CamelModel, DocumentBase, EMAIL_PATTERN, PHONE_PATTERN, UtcDatetime


class ClientType(str, Enum):
    INDIVIDUAL = "Individual"
    CORPORATE = "Corporate"
    GROUP = "Group"

class Department(str, Enum):
    SALES = "Sales"
    FINANCE = "Finance"
    OPERATIONS = "Operations"
    MARKETING = "Marketing"
    HUMAN_RESOURCES = "Human Resources"
    CUSTOMER_SERVICE = "Customer Service"
    LEGAL = "Legal"
    IT = "IT"
    OTHER = "Other"

class KycStatus(str, Enum):
    COMPLETE = "Complete"
    INCOMPLETE = "Incomplete"
    PENDING = "Pending"
    REJECTED = "Rejected"

class AccountStatus(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    PENDING = "Pending"
    SUSPENDED = "Suspended"


class ContactPerson(CamelModel):
    name: str = Field(min_length=1)
    phone_number: str = Field(pattern=PHONE_PATTERN)
    email: Optional[str] = Field(default=None, pattern=EMAIL_PATTERN)
    department: Department = Department.OTHER
    is_main_contact: bool = False


class ClientFields(CamelModel):
    client_type: ClientType
    # Individual
    first_name: Optional[str] = None
    middle_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[UtcDatetime] = None
    occupation: Optional[str] = None
    # Corporate
    company_name: Optional[str] = None
    # Common
    postal_address: Optional[str] = None
    physical_address: Optional[str] = None
    coordinates: Optional[str] = None
    phone_number: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    email: Optional[str] = Field(default=None, pattern=EMAIL_PATTERN)
    contact_persons: List[ContactPerson] = Field(default_factory=list)
    referred_by: Optional[str] = None
    kyc_documents: List[str] = Field(default_factory=list)
    kyc_status: KycStatus = KycStatus.INCOMPLETE
    account_status: AccountStatus = AccountStatus.PENDING
    is_group: bool = False


class ClientCreate(ClientFields):
    client_code: Optional[str] = None


class ClientDB(DocumentBase, ClientFields):
    client_code: Optional[str] = None # assigned on insert
