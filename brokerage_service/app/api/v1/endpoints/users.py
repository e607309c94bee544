# API Router for User administration
import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from brokerage_service.app.api.dependencies import get_auth_context, list_params
from brokerage_service.app.api.errors import http_error
from brokerage_service.app.service import users as user_service
from brokerage_service.app.service.exceptions import BrokerageServiceError
from brokerage_service.app.service.users import AuthContext
from brokerage_service.infrastructure.database.connection import get_db

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", summary="List staff users")
async def list_users_api(params: Dict[str, str] = Depends(list_params), db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        return await user_service.list_users(db, params)
    except BrokerageServiceError as e:
        raise http_error(e)


@router.get("/{user_id}", summary="Get a staff user")
async def get_user_api(user_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        user = await user_service.get_user(db, user_id)
    except BrokerageServiceError as e:
        raise http_error(e)
    return {"success": True, "data": user}


@router.put("/{user_id}", summary="Update a staff user")
async def update_user_api(
    user_id: str,
    changes: Dict[str, Any] = Body(...),
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    try:
        user = await user_service.update_user(db, user_id, changes, auth)
    except BrokerageServiceError as e:
        logger.warning(f"Update of user {user_id} by {auth.user_id} rejected: {e}")
        raise http_error(e)
    return {"success": True, "data": user}


@router.delete("/{user_id}", summary="Delete a staff user")
async def delete_user_api(user_id: str, auth: AuthContext = Depends(get_auth_context), db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        await user_service.delete_user(db, user_id, auth)
    except BrokerageServiceError as e:
        logger.warning(f"Deletion of user {user_id} by {auth.user_id} rejected: {e}")
        raise http_error(e)
    return {"success": True, "data": {}}
