"""
Seeds or clears staff users.

    brokerage-seed -i    create the initial admin user from SEED_ADMIN_* settings
    brokerage-seed -d    delete every user
"""
import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from brokerage_service.app.config import settings
from brokerage_service.app.models.user_db import UserDB, UserRole
from brokerage_service.app import observability  # noqa: F401  sets up JSON logging
from brokerage_service.app.service.security import hash_password
from brokerage_service.infrastructure.database import collections, connection, entity_store

logger = logging.getLogger(__name__)


async def create_admin(db: AsyncIOMotorDatabase) -> bool:
    """
    Creates the seed admin unless an admin, or any user holding the seed phone
    number, already exists. Returns True when a user was created.
    """
    existing = {"$or": [{"role": UserRole.ADMIN.value}, {"phoneNumber": settings.SEED_ADMIN_PHONE}]}
    if await entity_store.record_exists(db, collections.USERS, existing):
        logger.info("Admin user already exists")
        return False
    admin = UserDB(
        name=settings.SEED_ADMIN_NAME,
        phone_number=settings.SEED_ADMIN_PHONE,
        email=settings.SEED_ADMIN_EMAIL,
        role=UserRole.ADMIN,
        password_hash=hash_password(settings.SEED_ADMIN_PASSWORD),
    )
    await entity_store.insert_record(db, collections.USERS, admin.to_document())
    logger.info(f"Admin user created with phone number {admin.phone_number}")
    return True


async def delete_all_users(db: AsyncIOMotorDatabase) -> int:
    deleted = await entity_store.delete_all_records(db, collections.USERS)
    logger.info("All users deleted")
    return deleted


async def _run(action: str) -> None:
    await connection.connect_to_mongo()
    try:
        if action == "import":
            await create_admin(connection.db)
        else:
            await delete_all_users(connection.db)
    finally:
        connection.close_mongo_connection()


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="brokerage-seed", description="Seed or clear brokerage staff users.")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("-i", dest="action", action="store_const", const="import", help="create the initial admin user")
    group.add_argument("-d", dest="action", action="store_const", const="delete", help="delete all users")
    args = parser.parse_args(argv)

    try:
        asyncio.run(_run(args.action))
    except ConnectionError as e:
        logger.error(f"Seeder could not reach MongoDB: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
