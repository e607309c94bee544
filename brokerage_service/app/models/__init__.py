from .client_db import ClientDB, ClientCreate
from .group_db import GroupDB, GroupCreate, GroupMember
from .insurance_company_db import InsuranceCompanyDB, InsuranceCompanyCreate
from .policy_db import PolicyDB, PolicyCreate, PolicyRenewal
from .risk_note_db import RiskNoteDB, RiskNoteCreate
from .claim_policy_db import ClaimPolicyDB, ClaimPolicyCreate, ClaimStatusUpdate
from .user_db import UserDB, UserCreate
from .application_db import ApplicationDB, ApplicationCreate

__all__ = [
    "ClientDB",
    "ClientCreate",
    "GroupDB",
    "GroupCreate",
    "GroupMember",
    "InsuranceCompanyDB",
    "InsuranceCompanyCreate",
    "PolicyDB",
    "PolicyCreate",
    "PolicyRenewal",
    "RiskNoteDB",
    "RiskNoteCreate",
    "ClaimPolicyDB",
    "ClaimPolicyCreate",
    "ClaimStatusUpdate",
    "UserDB",
    "UserCreate",
    "ApplicationDB",
    "ApplicationCreate",
]
