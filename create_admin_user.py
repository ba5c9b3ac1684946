#!/usr/bin/env python3
"""
Seed the default admin portal accounts, or reset a user's password.

Usage:
    python create_admin_user.py                      # create admin and staff if missing
    python create_admin_user.py --reset admin        # set a new password for 'admin'
"""

import argparse
import getpass
import logging
import sys

from eventbooking import config
from eventbooking.database import Database, transaction
from eventbooking.domain.users.repository import UserRepository
from eventbooking.security_utils import check_password_strength, hash_password

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)

DEFAULT_USERS = [
    {"username": "admin", "email": "admin@example.com", "role": "admin"},
    {"username": "staff", "email": "staff@example.com", "role": "staff"},
]


def prompt_password(username: str) -> str:
    while True:
        password = getpass.getpass(f"Password for {username}: ")
        problems = check_password_strength(password)
        if problems:
            print(f"❌ {problems[0]}")
            continue
        if getpass.getpass("Confirm password: ") != password:
            print("❌ Passwords do not match")
            continue
        return password


def seed_users(db, passwords: dict[str, str]) -> list[str]:
    """Create each default user that does not exist yet; returns the usernames created"""
    created = []
    with transaction(db, "seed_users"):
        for user in DEFAULT_USERS:
            if UserRepository.get_user_by_username(db, user["username"]):
                logger.info(f"ℹ️  {user['username']} already exists")
                continue
            UserRepository.create_user(
                db, password_hash=hash_password(passwords[user["username"]]), **user
            )
            created.append(user["username"])
            logger.info(f"✅ Created {user['role']} user '{user['username']}'")
    return created


def reset_password(db, username: str, password: str) -> None:
    user = UserRepository.get_user_by_username(db, username)
    if not user:
        raise SystemExit(f"❌ User '{username}' not found")
    with transaction(db, "set_password", username):
        UserRepository.set_password_hash(db, user, hash_password(password))
    logger.info(f"✅ Password updated for '{username}'")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed admin portal users")
    parser.add_argument("--reset", metavar="USERNAME", help="Set a new password for USERNAME")
    args = parser.parse_args()

    database = Database(config.DATABASE_URL)
    database.init()
    database.create_schema()
    db = database.session()
    try:
        if args.reset:
            reset_password(db, args.reset, prompt_password(args.reset))
        else:
            missing = [
                u["username"]
                for u in DEFAULT_USERS
                if not UserRepository.get_user_by_username(db, u["username"])
            ]
            seed_users(db, {username: prompt_password(username) for username in missing})
    except KeyboardInterrupt:
        sys.exit(1)
    finally:
        db.close()
        database.dispose()
