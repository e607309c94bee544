# Request-scoped dependencies shared by the API routers
import logging
from typing import Dict, Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from motor.motor_asyncio import AsyncIOMotorDatabase

from brokerage_service.app.api import access_policy
from brokerage_service.app.service.exceptions import AuthenticationError
from brokerage_service.app.service.users import AuthContext, authenticate
from brokerage_service.infrastructure.database.connection import get_db

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def _route_path(request: Request) -> str:
    # Path below any proxy root_path, the same path the router matched on
    path = request.scope.get("path", request.url.path)
    root_path = request.scope.get("root_path", "")
    if root_path and path.startswith(root_path):
        path = path[len(root_path):] or "/"
    return path


async def enforce_access_policy(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncIOMotorDatabase = Depends(get_db),
) -> Optional[AuthContext]:
    """
    Applied to every route. Looks the matched route up in the access table,
    authenticates the bearer token and checks the caller's role.
    Returns None for public routes.
    """
    request_path = _route_path(request)
    route_template = getattr(request.scope.get("route"), "path", None)
    route_path, rule = access_policy.resolve_rule(request.method, request_path, route_template)
    if rule is None:
        logger.warning(f"Refusing {request.method} {request_path}: route has no access rule.")
        raise HTTPException(status_code=403, detail="Not authorized to access this route")
    if access_policy.is_public(rule):
        return None

    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Not authorized to access this route")
    try:
        auth = await authenticate(db, credentials.credentials)
    except AuthenticationError as e:
        logger.info(f"Rejected token on {request.method} {route_path}: {e}")
        raise HTTPException(status_code=401, detail=str(e))

    if auth.role not in rule:
        raise HTTPException(status_code=403, detail=f"User role {auth.role} is not authorized to access this route")
    return auth


async def get_auth_context(auth: Optional[AuthContext] = Depends(enforce_access_policy)) -> AuthContext:
    # Resolved once per request together with the app-wide policy check
    if auth is None:
        raise HTTPException(status_code=401, detail="Not authorized to access this route")
    return auth


def list_params(request: Request) -> Dict[str, str]:
    return dict(request.query_params)
