from enum import Enum

from pydantic import Field

from .base import CamelModel, DocumentBase, EMAIL_PATTERN, utc_now, UtcDatetime


class CoverageType(str, Enum):
    HEALTH = "health"
    LIFE = "life"
    AUTO = "auto"
    HOME = "home"

class ApplicationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ApplicationFields(CamelModel):
    client_name: str = Field(min_length=1)
    client_email: str = Field(pattern=EMAIL_PATTERN)
    coverage_type: CoverageType
    premium_amount: float = Field(ge=0)
    status: ApplicationStatus = ApplicationStatus.PENDING
    application_date: UtcDatetime = Field(default_factory=utc_now)


class ApplicationCreate(ApplicationFields):
    pass


class ApplicationDB(DocumentBase, ApplicationFields):
    pass
