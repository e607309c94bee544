"""
Staff users: authentication, self-service profile, and user administration.

Password material (hash, reset digest, reset expiry) is written here and never
returned by any read path.
"""
import datetime
import logging
import secrets
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from brokerage_service.app.config import settings
from brokerage_service.app.models.base import utc_now
from brokerage_service.app.models.user_db import (
    PUBLIC_USER_PROJECTION,
    USER_SECRET_FIELDS,
    UserCreate,
    UserDB,
    UserFields,
    UserRole,
)
from brokerage_service.app.service import records, security
from brokerage_service.app.service.exceptions import (
    AuthenticationError,
    DuplicateEntityError,
    EntityNotFoundError,
    EntityValidationError,
    PermissionDeniedError,
)
from brokerage_service.app.service.listing import fetch_page
from brokerage_service.app.service.query_builder import QueryConfig, build_query
from brokerage_service.app.service.validation import validate_model
from brokerage_service.infrastructure.database import collections, entity_store

logger = logging.getLogger(__name__)

ENTITY = "User"

USER_QUERY = QueryConfig(
    search_fields=("name", "phoneNumber", "email"),
    hidden_fields=USER_SECRET_FIELDS,
)

PROFILE_FIELDS = ("name", "email", "phoneNumber")


@dataclass(frozen=True)
class AuthContext:
    """The authenticated caller, passed explicitly to handlers that need it."""
    user_id: str
    role: str
    name: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value


def user_summary(user: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "_id": user.get("id"),
        "id": user.get("id"),
        "name": user.get("name"),
        "phoneNumber": user.get("phoneNumber"),
        "role": user.get("role"),
        "email": user.get("email"),
    }


def token_response(user: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "success": True,
        "token": security.create_access_token(user["id"], user.get("role")),
        "user": user_summary(user),
    }


async def _ensure_phone_available(db: AsyncIOMotorDatabase, phone_number: str, exclude_id: Optional[str] = None) -> None:
    query: Dict[str, Any] = {"phoneNumber": phone_number}
    if exclude_id:
        query["id"] = {"$ne": exclude_id}
    if await entity_store.record_exists(db, collections.USERS, query):
        raise DuplicateEntityError("User with that phone number already exists", field="phoneNumber")


async def _insert_user(db: AsyncIOMotorDatabase, payload: UserCreate, role: str, created_by: Optional[str]) -> Dict[str, Any]:
    await _ensure_phone_available(db, payload.phone_number)
    user = UserDB(
        **payload.model_dump(exclude={"password", "role"}),
        role=role,
        password_hash=security.hash_password(payload.password),
        created_by=created_by,
    )
    document = await entity_store.insert_record(db, collections.USERS, user.to_document())
    records.record_created(ENTITY, document)
    return document


# --- Authentication ---

async def authenticate(db: AsyncIOMotorDatabase, token: str) -> AuthContext:
    """Resolves a bearer token to the stored user it names."""
    payload = security.decode_access_token(token)
    user = await entity_store.get_record(db, collections.USERS, payload["sub"], {"id": 1, "role": 1, "name": 1})
    if user is None:
        raise AuthenticationError("Not authorized to access this route")
    return AuthContext(user_id=user["id"], role=user.get("role"), name=user.get("name"))


async def login(db: AsyncIOMotorDatabase, phone_number: Optional[str], password: Optional[str]) -> Dict[str, Any]:
    if not phone_number or not password:
        raise EntityValidationError.single("phoneNumber", "Please provide phone number and password")
    user = await entity_store.find_one_record(db, collections.USERS, {"phoneNumber": phone_number})
    if user is None or not security.verify_password(password, user.get("passwordHash", "")):
        logger.warning(f"Failed login attempt for phone number {phone_number}.")
        raise AuthenticationError("Invalid credentials")
    logger.info(f"User {user['id']} logged in.")
    return token_response(user)


async def register_admin(db: AsyncIOMotorDatabase, payload: UserCreate, admin_key: Optional[str]) -> Dict[str, Any]:
    expected = settings.ADMIN_REGISTRATION_KEY
    # Disabled entirely while no key is configured
    if not expected or not admin_key or not secrets.compare_digest(admin_key, expected):
        raise AuthenticationError("Invalid admin registration key")
    document = await _insert_user(db, payload, UserRole.ADMIN.value, created_by=None)
    logger.info(f"New admin user created: {document.get('name')}")
    return user_summary(document)


async def register_user(db: AsyncIOMotorDatabase, payload: UserCreate, actor: AuthContext) -> Dict[str, Any]:
    if payload.role == UserRole.ADMIN.value and not actor.is_admin:
        raise PermissionDeniedError("Not authorized to create admin users")
    document = await _insert_user(db, payload, payload.role, created_by=actor.user_id)
    return user_summary(document)


async def forgot_password(db: AsyncIOMotorDatabase, phone_number: Optional[str]) -> Dict[str, Any]:
    user = await entity_store.find_one_record(db, collections.USERS, {"phoneNumber": phone_number}, {"id": 1}) if phone_number else None
    if user is None:
        raise EntityNotFoundError(ENTITY, message="There is no user with that phone number")
    token, digest = security.new_reset_token()
    expires = utc_now() + datetime.timedelta(minutes=settings.PASSWORD_RESET_TOKEN_TTL_MINUTES)
    await entity_store.update_record(
        db, collections.USERS, {"id": user["id"]},
        {"$set": {"resetPasswordToken": digest, "resetPasswordExpire": expires}},
    )
    logger.info(f"Password reset requested for user {user['id']}.")
    # No SMS gateway: the token goes back to the caller
    return {"resetToken": token, "message": "In production, this token would be sent via SMS"}


async def reset_password(db: AsyncIOMotorDatabase, token: str, password: Optional[str]) -> Dict[str, Any]:
    if not password or len(password) < 6:
        raise EntityValidationError.single("password", "Password must be at least 6 characters")
    user = await entity_store.find_one_record(
        db, collections.USERS,
        {"resetPasswordToken": security.hash_reset_token(token), "resetPasswordExpire": {"$gt": utc_now()}},
    )
    if user is None:
        raise EntityValidationError.single("token", "Invalid token or token has expired")
    updated = await entity_store.update_record(
        db, collections.USERS, {"id": user["id"]},
        {
            "$set": {"passwordHash": security.hash_password(password), "updatedAt": utc_now()},
            "$unset": {"resetPasswordToken": "", "resetPasswordExpire": ""},
            "$inc": {"version": 1},
        },
    )
    if updated is None:
        raise EntityNotFoundError(ENTITY, user["id"])
    logger.info(f"Password reset completed for user {user['id']}.")
    return token_response(updated)


async def get_me(db: AsyncIOMotorDatabase, actor: AuthContext) -> Dict[str, Any]:
    return await get_user(db, actor.user_id)


async def update_profile(db: AsyncIOMotorDatabase, actor: AuthContext, changes: Dict[str, Any]) -> Dict[str, Any]:
    existing = await records.load_or_404(db, collections.USERS, ENTITY, actor.user_id)
    allowed = {key: changes[key] for key in PROFILE_FIELDS if changes.get(key)}
    validate_model(UserFields, {**existing, **allowed})
    if allowed.get("phoneNumber") and allowed["phoneNumber"] != existing.get("phoneNumber"):
        await _ensure_phone_available(db, allowed["phoneNumber"], exclude_id=actor.user_id)
    update: Dict[str, Any] = {**allowed, "updatedAt": utc_now()}
    if changes.get("password"):
        if len(changes["password"]) < 6:
            raise EntityValidationError.single("password", "Password must be at least 6 characters")
        update["passwordHash"] = security.hash_password(changes["password"])
    updated = await entity_store.update_record(
        db, collections.USERS, {"id": actor.user_id}, {"$set": update, "$inc": {"version": 1}},
    )
    if updated is None:
        raise EntityNotFoundError(ENTITY, message="User not found")
    return user_summary(updated)


# --- User administration ---

async def list_users(db: AsyncIOMotorDatabase, params: Mapping[str, str]) -> Dict[str, Any]:
    spec = build_query(params, USER_QUERY)
    return await fetch_page(db, collections.USERS, spec)


async def get_user(db: AsyncIOMotorDatabase, user_id: str) -> Dict[str, Any]:
    projection = {**records.DETAIL_PROJECTION, **PUBLIC_USER_PROJECTION}
    return await records.load_or_404(db, collections.USERS, ENTITY, user_id, projection)


async def update_user(db: AsyncIOMotorDatabase, user_id: str, changes: Dict[str, Any], actor: AuthContext) -> Dict[str, Any]:
    if changes.get("role") == UserRole.ADMIN.value and not actor.is_admin:
        raise PermissionDeniedError("Not authorized to create admin users")
    # Passwords only change through the reset and profile flows
    changes = {k: v for k, v in changes.items() if k != "password" and k not in USER_SECRET_FIELDS}
    existing = await records.load_or_404(db, collections.USERS, ENTITY, user_id)
    user = records.merged_model(existing, changes, UserDB, protected=("createdBy",))
    if user.phone_number != existing.get("phoneNumber"):
        await _ensure_phone_available(db, user.phone_number, exclude_id=user_id)
    saved = await records.save_update(db, collections.USERS, ENTITY, existing, user)
    return records.public_record(saved, hidden=USER_SECRET_FIELDS)


async def delete_user(db: AsyncIOMotorDatabase, user_id: str, actor: AuthContext) -> None:
    user = await records.load_or_404(db, collections.USERS, ENTITY, user_id, {"id": 1, "role": 1})
    if user.get("role") == UserRole.ADMIN.value and not actor.is_admin:
        raise PermissionDeniedError("Not authorized to delete admin users")
    await records.delete_or_404(db, collections.USERS, ENTITY, user_id)
    logger.info(f"User {user_id} deleted by {actor.user_id}.")
