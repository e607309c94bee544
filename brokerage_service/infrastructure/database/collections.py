# Collection names for the brokerage document store
CLIENTS = "clients"
GROUPS = "groups"
INSURANCE_COMPANIES = "insurance_companies"
POLICIES = "policies"
RISK_NOTES = "risk_notes"
CLAIM_POLICIES = "claim_policies"
USERS = "users"
APPLICATIONS = "applications"
COUNTERS = "counters"
