# beneficiary_api/scripts/create_admin.py
"""
Create the first approved admin account, or promote an existing one.

    python -m beneficiary_api.scripts.create_admin --email admin@example.com --name Admin
"""
import argparse
import asyncio
import getpass
import logging
from datetime import datetime

from beneficiary_api.models.user import UserRole, UserStatus
from beneficiary_api.schemas.user import UserCreate
from beneficiary_api.services.db import close_db, init_db
from beneficiary_api.services.user_service import user_service

logger = logging.getLogger(__name__)


async def create_admin(email: str, name: str, password: str) -> None:
    user = await user_service.get_user_by_email(email)
    if user:
        await user.set(
            {
                "role": UserRole.ADMIN,
                "status": UserStatus.APPROVED,
                "updated_at": datetime.utcnow(),
            }
        )
        logger.info("Promoted existing user %s to approved admin", email)
        return

    await user_service.create_user(
        UserCreate(name=name, email=email, password=password),
        role=UserRole.ADMIN,
        user_status=UserStatus.APPROVED,
    )
    logger.info("Created admin %s", email)


async def main(email: str, name: str, password: str) -> None:
    await init_db()
    try:
        await create_admin(email, name, password)
    finally:
        await close_db()


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    parser = argparse.ArgumentParser(description="Create an approved admin account")
    parser.add_argument("--email", required=True)
    parser.add_argument("--name", default="Administrator")
    parser.add_argument("--password", help="Prompted for when omitted")
    args = parser.parse_args()
    password = args.password or getpass.getpass("Password: ")
    asyncio.run(main(args.email, args.name, password))
