# API Router for Authentication
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from brokerage_service.app.api.dependencies import get_auth_context
from brokerage_service.app.api.errors import http_error
from brokerage_service.app.models.base import CamelModel
from brokerage_service.app.models.user_db import UserCreate
from brokerage_service.app.service import users as user_service
from brokerage_service.app.service.exceptions import BrokerageServiceError
from brokerage_service.app.service.users import AuthContext
from brokerage_service.infrastructure.database.connection import get_db

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["Authentication"])


# --- Request bodies ---

class LoginRequest(CamelModel):
    phone_number: Optional[str] = None
    password: Optional[str] = None

class AdminRegistrationRequest(UserCreate):
    admin_key: Optional[str] = None

class ForgotPasswordRequest(CamelModel):
    phone_number: Optional[str] = None

class ResetPasswordRequest(CamelModel):
    password: Optional[str] = None


@router.post("/login", summary="Exchange phone number and password for an access token")
async def login_api(payload: LoginRequest = Body(...), db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        return await user_service.login(db, payload.phone_number, payload.password)
    except BrokerageServiceError as e:
        raise http_error(e)


@router.post("/register", status_code=201, summary="Create a staff user")
async def register_api(
    payload: UserCreate = Body(...),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        user = await user_service.register_user(db, payload, auth)
    except BrokerageServiceError as e:
        logger.warning(f"User registration by {auth.user_id} rejected: {e}")
        raise http_error(e)
    return {"success": True, "data": user}


@router.post("/registeradmin", status_code=201, summary="Create an admin user with the registration key")
async def register_admin_api(payload: AdminRegistrationRequest = Body(...), db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        user = await user_service.register_admin(db, payload, payload.admin_key)
    except BrokerageServiceError as e:
        logger.warning(f"Admin registration rejected: {e}")
        raise http_error(e)
    return {"success": True, "data": user}


@router.post("/forgotpassword", summary="Issue a password reset token")
async def forgot_password_api(payload: ForgotPasswordRequest = Body(...), db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        data = await user_service.forgot_password(db, payload.phone_number)
    except BrokerageServiceError as e:
        raise http_error(e)
    return {"success": True, "data": data}


@router.put("/resetpassword/{token}", summary="Set a new password using a reset token")
async def reset_password_api(token: str, payload: ResetPasswordRequest = Body(...), db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        return await user_service.reset_password(db, token, payload.password)
    except BrokerageServiceError as e:
        raise http_error(e)


@router.get("/me", summary="Get the authenticated user")
async def me_api(auth: AuthContext = Depends(get_auth_context), db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        user = await user_service.get_me(db, auth)
    except BrokerageServiceError as e:
        raise http_error(e)
    return {"success": True, "data": user}


@router.put("/updateprofile", summary="Update the authenticated user's own profile")
async def update_profile_api(
    changes: Dict[str, Any] = Body(...),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        user = await user_service.update_profile(db, auth, changes)
    except BrokerageServiceError as e:
        logger.warning(f"Profile update for {auth.user_id} rejected: {e}")
        raise http_error(e)
    return {"success": True, "data": user}
