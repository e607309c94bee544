from enum import Enum
from typing import Optional

from pydantic import Field

from .base import CamelModel, DocumentBase, UtcDatetime


MOTOR_CATEGORY = "Motor"

class MotorSubcategory(str, Enum):
    PRIVATE = "Private"
    COMMERCIAL_OWN_GOODS = "CommercialOwnGoods"
    COMMERCIAL_GENERAL_CARTAGE = "CommercialGeneralCartage"
    COMMERCIAL_INSTITUTIONAL_VEHICLE = "CommercialInstitutionalVehicle"
    COMMERCIAL_SPECIAL_VEHICLE = "CommercialSpecialVehicle"
    COMMERCIAL_SPECIAL_VEHICLE_THIRD_PARTY_ONLY = "CommercialSpecialVehicleThirdPartyOnly"
    COMMERCIAL_THREE_WHEELER = "CommercialThreeWheeler"
    CYCLE = "Cycle"
    CYCLE_THIRD_PARTY_ONLY = "CycleThirdPartyOnly"


class MotorDetails(CamelModel):
    registration_number: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[str] = None

    def is_complete(self) -> bool:
        return all([self.registration_number, self.make, self.model, self.year])


class CoverExtras(CamelModel):
    recovery: float = 0
    windscreen: float = 0
    entertainment: float = 0
    repair: float = 0
    third_party_property: float = 0
    third_party_passenger: float = 0
    third_party_others: float = 0


class OptionalExtensionValues(CamelModel):
    """Limits or rates for the optional extensions, keyed by extension."""
    no_blame_no_excess: float = 0
    windscreen_mirror: float = 0
    emergency_medical_section_iii: float = Field(default=0, alias="emergencyMedicalSectionIII")
    excess_theft: float = 0
    return_to_invoice: float = 0
    drive_through: float = 0
    car_hire: float = 0
    personal_effects: float = 0
    forced_atm: float = Field(default=0, alias="forcedATM")
    personal_accident: float = 0


class IncludeOptionalExtensions(CamelModel):
    no_blame_no_excess: bool = False
    windscreen_mirror: bool = False
    emergency_medical_section_iii: bool = Field(default=False, alias="emergencyMedicalSectionIII")
    excess_theft: bool = False
    return_to_invoice: bool = False
    drive_through: bool = False
    car_hire: bool = False
    personal_effects: bool = False
    forced_atm: bool = Field(default=False, alias="forcedATM")
    personal_accident: bool = False


class PremiumBreakdown(CamelModel):
    policy_category: str = Field(min_length=1)
    selected_policy: str = Field(min_length=1)
    sum_insured: float
    rate: float
    base_premium: float
    terrorism: bool = False
    terrorism_rate: float = 0
    terrorism_premium: float = 0
    excess_protector: bool = False
    excess_protector_rate: float = 0
    excess_protector_premium: float = 0
    cover_extras: CoverExtras = Field(default_factory=CoverExtras)
    cover_extra_rates: CoverExtras = Field(default_factory=CoverExtras)
    cover_extra_premium: float = 0
    optional_ext_limits: OptionalExtensionValues = Field(default_factory=OptionalExtensionValues)
    optional_ext_rates: OptionalExtensionValues = Field(default_factory=OptionalExtensionValues)
    include_optional_ext: IncludeOptionalExtensions = Field(default_factory=IncludeOptionalExtensions)
    optional_ext_premium: float = 0
    training_levy: float = 0
    pcf_levy: float = 0
    stamp_duty: float = 0
    total_premium: float


class RiskNoteFields(CamelModel):
    client: str = Field(min_length=1)
    insurance_company: str = Field(min_length=1)
    policy_category: str = Field(min_length=1)
    sub_category: Optional[str] = None
    motor_details: Optional[MotorDetails] = None
    premium_breakdown: PremiumBreakdown
    risk_note_doc_url: Optional[str] = None
    start_date: Optional[UtcDatetime] = None
    end_date: Optional[UtcDatetime] = None


class RiskNoteCreate(RiskNoteFields):
    policy_number: Optional[str] = None


class RiskNoteDB(DocumentBase, RiskNoteFields):
    policy_number: Optional[str] = None # assigned on insert
