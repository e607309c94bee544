"""
Route access table.

Every route the application serves is listed here with either PUBLIC or the set
of roles allowed to call it. A route missing from the table is refused, so a new
endpoint stays closed until it is added below.
"""
from typing import Dict, FrozenSet, List, Optional, Tuple

from starlette.routing import compile_path

from brokerage_service.app.models.user_db import UserRole

API_PREFIX = "/api/v1"

PUBLIC: FrozenSet[str] = frozenset({"*"})

READ_ROLES = frozenset({UserRole.ADMIN.value, UserRole.MANAGER.value, UserRole.AGENT.value, UserRole.SUPPORT.value})
WRITE_ROLES = frozenset({UserRole.ADMIN.value, UserRole.MANAGER.value, UserRole.AGENT.value})
MANAGE_ROLES = frozenset({UserRole.ADMIN.value, UserRole.MANAGER.value})
ADMIN_ONLY = frozenset({UserRole.ADMIN.value})

RouteKey = Tuple[str, str]


def _crud(base: str, param: str) -> Dict[RouteKey, FrozenSet[str]]:
    item = f"{base}/{{{param}}}"
    return {
        ("GET", base): READ_ROLES,
        ("POST", base): WRITE_ROLES,
        ("GET", item): READ_ROLES,
        ("PUT", item): WRITE_ROLES,
        ("DELETE", item): MANAGE_ROLES,
    }


ACCESS_RULES: Dict[RouteKey, FrozenSet[str]] = {
    ("GET", "/health"): PUBLIC,

    # Authentication
    ("POST", f"{API_PREFIX}/auth/login"): PUBLIC,
    ("POST", f"{API_PREFIX}/auth/registeradmin"): PUBLIC,
    ("POST", f"{API_PREFIX}/auth/forgotpassword"): PUBLIC,
    ("PUT", f"{API_PREFIX}/auth/resetpassword/{{token}}"): PUBLIC,
    ("POST", f"{API_PREFIX}/auth/register"): ADMIN_ONLY,
    ("GET", f"{API_PREFIX}/auth/me"): READ_ROLES,
    ("PUT", f"{API_PREFIX}/auth/updateprofile"): READ_ROLES,

    # User administration
    ("GET", f"{API_PREFIX}/users"): MANAGE_ROLES,
    ("GET", f"{API_PREFIX}/users/{{user_id}}"): MANAGE_ROLES,
    ("PUT", f"{API_PREFIX}/users/{{user_id}}"): MANAGE_ROLES,
    ("DELETE", f"{API_PREFIX}/users/{{user_id}}"): MANAGE_ROLES,

    # Clients
    **_crud(f"{API_PREFIX}/clients", "client_id"),
    ("GET", f"{API_PREFIX}/clients/type/{{client_type}}"): READ_ROLES,
    ("POST", f"{API_PREFIX}/clients/{{client_id}}/kyc"): WRITE_ROLES,
    ("GET", f"{API_PREFIX}/clients/{{client_id}}/policies"): READ_ROLES,

    # Groups
    **_crud(f"{API_PREFIX}/groups", "group_id"),
    ("POST", f"{API_PREFIX}/groups/{{group_id}}/members"): WRITE_ROLES,
    ("DELETE", f"{API_PREFIX}/groups/{{group_id}}/members/{{client_id}}"): WRITE_ROLES,
    ("GET", f"{API_PREFIX}/groups/{{group_id}}/policies"): READ_ROLES,

    # Insurance companies
    **_crud(f"{API_PREFIX}/insurance-companies", "company_id"),
    ("POST", f"{API_PREFIX}/insurance-companies/{{company_id}}/kyc"): WRITE_ROLES,

    # Policies
    **_crud(f"{API_PREFIX}/policies", "policy_id"),
    ("PUT", f"{API_PREFIX}/policies/{{policy_id}}/renew"): WRITE_ROLES,

    # Risk notes
    **_crud(f"{API_PREFIX}/risk-notes", "note_id"),
    ("GET", f"{API_PREFIX}/risk-notes/client/{{client_id}}"): READ_ROLES,
    ("GET", f"{API_PREFIX}/risk-notes/insurance-company/{{company_id}}"): READ_ROLES,

    # Claim policies
    **_crud(f"{API_PREFIX}/claim-policies", "claim_id"),
    ("PATCH", f"{API_PREFIX}/claim-policies/{{claim_id}}/status"): WRITE_ROLES,

    # Applications: intake is open, review is staff only
    ("POST", f"{API_PREFIX}/applications"): PUBLIC,
    ("GET", f"{API_PREFIX}/applications"): READ_ROLES,
    ("GET", f"{API_PREFIX}/applications/{{application_id}}"): READ_ROLES,
}


def rule_for(method: str, route_path: str) -> Optional[FrozenSet[str]]:
    return ACCESS_RULES.get((method.upper(), route_path))


_COMPILED_RULES = [
    (method, template, compile_path(template)[0], rule)
    for (method, template), rule in ACCESS_RULES.items()
]


def resolve_rule(
    method: str, request_path: str, route_template: Optional[str] = None
) -> Tuple[Optional[str], Optional[FrozenSet[str]]]:
    """
    Finds the rule whose template matches the concrete request path. The
    template of the matched route, with or without its mount prefix, picks
    between templates that match the same path.
    Returns (None, None) when no rule applies.
    """
    method = method.upper()
    matches: List[Tuple[str, FrozenSet[str]]] = [
        (template, rule)
        for rule_method, template, regex, rule in _COMPILED_RULES
        if rule_method == method and regex.match(request_path)
    ]
    if route_template and len(matches) > 1:
        matches = [m for m in matches if m[0].endswith(route_template)] or matches
    if not matches:
        return None, None
    return matches[0]


def is_public(rule: FrozenSet[str]) -> bool:
    return rule is PUBLIC
