from typing import List, Optional

from pydantic import Field

from .base import CamelModel, DocumentBase, EMAIL_PATTERN, INTERNATIONAL_PHONE_PATTERN
from .client_db import KycStatus


class CompanyContactPerson(CamelModel):
    name: str = Field(min_length=1)
    phone_number: str = Field(pattern=INTERNATIONAL_PHONE_PATTERN)
    email: Optional[str] = Field(default=None, pattern=EMAIL_PATTERN)
    department: Optional[str] = None
    is_main_contact: bool = False


class Branch(CamelModel):
    name: Optional[str] = None
    address: Optional[str] = None


class CompanyKycDocuments(CamelModel):
    license: Optional[str] = None
    registration: Optional[str] = None
    tax_clearance: Optional[str] = None

    def is_complete(self) -> bool:
        return bool(self.license and self.registration and self.tax_clearance)


class InsuranceCompanyFields(CamelModel):
    company_name: str = Field(min_length=1)
    postal_address: Optional[str] = None
    physical_address: Optional[str] = None
    coordinates: Optional[str] = None
    phone_number: Optional[str] = Field(default=None, pattern=INTERNATIONAL_PHONE_PATTERN)
    email: Optional[str] = Field(default=None, pattern=EMAIL_PATTERN)
    website: Optional[str] = None
    contact_persons: List[CompanyContactPerson] = Field(default_factory=list)
    branches: List[Branch] = Field(default_factory=list)
    kyc_documents: CompanyKycDocuments = Field(default_factory=CompanyKycDocuments)
    kyc_status: KycStatus = KycStatus.INCOMPLETE


class InsuranceCompanyCreate(InsuranceCompanyFields):
    code: Optional[str] = None


class InsuranceCompanyDB(DocumentBase, InsuranceCompanyFields):
    code: Optional[str] = None # assigned on insert
