import datetime
from enum import Enum
from typing import List, Optional

from pydantic import Field

from .base import CamelModel, DocumentBase


class ClaimStatus(str, Enum):
    DRAFT = "Draft"
    SUBMITTED = "Submitted"
    PROCESSING = "Processing"
    APPROVED = "Approved"
    REJECTED = "Rejected"

class ClaimType(str, Enum):
    WINDSCREEN = "Windscreen"
    ACCIDENT = "Accident"
    OTHER = "Other"

class CoverType(str, Enum):
    COMPREHENSIVE = "Comprehensive"
    TPO = "TPO"
    TPFT = "TPF&T"

class LicenseType(str, Enum):
    FULL = "Full"
    PROVISIONAL = "Provisional"

class RoadSurface(str, Enum):
    WET = "Wet"
    DRY = "Dry"


class ClaimPolicyDetails(CamelModel):
    policy_number: Optional[str] = None
    period_from: Optional[str] = None
    period_to: Optional[str] = None
    financier: Optional[str] = None
    cover_type: Optional[CoverType] = None


class ClaimVehicle(CamelModel):
    registration_number: Optional[str] = None
    make_model: Optional[str] = None
    year_of_manufacture: Optional[str] = None
    carrying_capacity: Optional[str] = None
    trailer_registration_number: Optional[str] = None
    trailer_capacity: Optional[str] = None
    use_purpose: Optional[str] = None
    on_hire: bool = False


class CommercialVehicleDetails(CamelModel):
    type_of_goods: Optional[str] = None
    owner_of_goods: Optional[str] = None
    trailer_attached: bool = False
    trailer_registration: Optional[str] = None
    used_with_owner_consent: bool = True
    carrying_passengers_for_hire: bool = False
    number_of_passengers: int = 0
    purpose_if_not_carriage: Optional[str] = None


class DriverDetails(CamelModel):
    full_name: Optional[str] = None
    address: Optional[str] = None
    occupation: Optional[str] = None
    date_of_birth: Optional[str] = None
    relationship_to_insured: Optional[str] = None
    driving_experience: Optional[str] = None
    license_type: Optional[LicenseType] = None
    license_obtained_date: Optional[str] = None
    license_number: Optional[str] = None
    license_expiry_date: Optional[str] = None
    offense_history: Optional[str] = None
    previous_accidents: bool = False
    previous_accident_details: Optional[str] = None
    driving_with_consent: bool = True
    blamed_for_accident: bool = False
    admitted_liability: bool = False
    physical_defect: Optional[str] = None
    under_influence: bool = False
    license_suspended: bool = False
    suspension_details: Optional[str] = None


class AccidentDetails(CamelModel):
    date: Optional[str] = None
    time: Optional[str] = None
    place: Optional[str] = None
    road_surface: Optional[RoadSurface] = None
    visibility: Optional[str] = None
    speed_of_insured_vehicle: Optional[str] = None
    speed_of_other_vehicle: Optional[str] = None
    warning_given_by_you: Optional[str] = None
    warning_given_by_other_party: Optional[str] = None
    reported_to_police: bool = False
    police_station: Optional[str] = None
    police_officer_details: Optional[str] = None
    alcohol_drug_test: Optional[str] = None
    police_state_who_to_blame: Optional[str] = None
    sketch_plan: Optional[str] = None
    driver_statement: Optional[str] = None
    owner_statement: Optional[str] = None


class WindscreenDetails(CamelModel):
    date: Optional[str] = None
    driver_name: Optional[str] = None
    license_no: Optional[str] = None
    incident_desc: Optional[str] = None
    repairer: Optional[str] = None
    replacement_cost: Optional[str] = None


class DamageDetails(CamelModel):
    nature_of_damage: Optional[str] = None
    inspection_location: Optional[str] = None
    inspection_date_time: Optional[str] = None


class VehicleInvolved(CamelModel):
    registration_number: Optional[str] = None
    make_type: Optional[str] = None
    owner_name: Optional[str] = None
    owner_address: Optional[str] = None
    insurer: Optional[str] = None
    policy_number: Optional[str] = None


class InjuredPerson(CamelModel):
    name: Optional[str] = None
    address: Optional[str] = None
    nature_of_injury: Optional[str] = None
    in_out_patient: Optional[str] = None


class ClaimDocuments(CamelModel):
    police_abstract_url: Optional[str] = None
    driver_license_url: Optional[str] = None
    vehicle_logbook_url: Optional[str] = None
    psv_license_url: Optional[str] = None
    other_documents: List[str] = Field(default_factory=list)


class ClaimPolicyFields(CamelModel):
    policy_id: str = Field(min_length=1) # RiskNote id
    status: ClaimStatus = ClaimStatus.DRAFT
    claim_type: Optional[ClaimType] = None
    policy: ClaimPolicyDetails = Field(default_factory=ClaimPolicyDetails)
    vehicle: ClaimVehicle = Field(default_factory=ClaimVehicle)
    commercial_vehicle: Optional[CommercialVehicleDetails] = None
    driver: DriverDetails = Field(default_factory=DriverDetails)
    accident_details: Optional[AccidentDetails] = None
    windscreen_details: Optional[WindscreenDetails] = None
    damage_details: DamageDetails = Field(default_factory=DamageDetails)
    other_vehicles_involved: List[VehicleInvolved] = Field(default_factory=list)
    persons_injured: List[InjuredPerson] = Field(default_factory=list)
    documents: ClaimDocuments = Field(default_factory=ClaimDocuments)
    declaration_accepted: bool = False
    declaration_date: Optional[str] = None
    driver_signature_url: Optional[str] = None
    policy_holder_signature_url: Optional[str] = None


class ClaimPolicyCreate(ClaimPolicyFields):
    claim_number: Optional[str] = None


class ClaimPolicyDB(DocumentBase, ClaimPolicyFields):
    claim_number: Optional[str] = None # assigned on insert


class ClaimStatusUpdate(CamelModel):
    status: str


def claim_month_prefix(moment: Optional[datetime.datetime] = None) -> str:
    """Returns the CL<YY><MM> prefix shared by all claims filed in the given month."""
    moment = moment or datetime.datetime.now(datetime.UTC)
    return f"CL{moment:%y%m}"
