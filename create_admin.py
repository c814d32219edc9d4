#!/usr/bin/env python3
"""
Create an admin account. Admins cannot sign up through the API.

Usage:
    python create_admin.py --email admin@househunt.io --name "Site Admin" --password <password>
"""

import argparse
import asyncio
import getpass
import logging
import sys

from house_hunt.database import AsyncSessionLocal, create_tables, close_db_connection
from house_hunt.models.user import UserRole
from house_hunt.repositories.user import UserRepository

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def create_admin(name: str, email: str, password: str) -> bool:
    """
    Create the admin user, creating tables first if needed.

    Returns:
        True if the account was created
    """
    await create_tables()
    try:
        async with AsyncSessionLocal() as session:
            repo = UserRepository(session)
            user = await repo.create_user({
                "name": name,
                "email": email,
                "password": password,
                "role": UserRole.ADMIN,
            })
            logger.info(f"Admin created: {user.email} (ID: {user.id})")
            return True
    except ValueError as e:
        logger.error(f"Could not create admin: {e}")
        return False
    finally:
        await close_db_connection()


def main() -> int:
    parser = argparse.ArgumentParser(description="Create a House Hunt admin account")
    parser.add_argument("--email", required=True, help="Admin email address")
    parser.add_argument("--name", default="Administrator", help="Display name")
    parser.add_argument("--password", help="Password (prompted when omitted)")
    args = parser.parse_args()

    password = args.password or getpass.getpass("Admin password: ")
    created = asyncio.run(create_admin(args.name, args.email, password))
    return 0 if created else 1


if __name__ == "__main__":
    sys.exit(main())
