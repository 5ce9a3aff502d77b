"""
Seed demo employee and customer accounts.

Usage:
    python seed.py            # add missing accounts
    python seed.py --reset    # clear employees/customers first
"""

import argparse
from datetime import datetime, timezone
from typing import Dict, List

from database import Database
from logging_config import get_logger
from security import hash_password

logger = get_logger(__name__)

EMPLOYEES = [
    {"username": "admin", "full_name": "System Administrator", "password": "admin123"},
    {"username": "manager", "full_name": "Payment Manager", "password": "admin123"},
    {"username": "alice", "full_name": "Alice Banda", "password": "StrongPass@123"},
    {"username": "mike", "full_name": "Michael S.", "password": "AnotherP@ss1"},
]

CUSTOMERS = [
    {
        "username": "john_doe",
        "full_name": "John Doe",
        "password": "password123",
        "email": "john.doe@example.com",
        "account_number": "ACC123456789",
    },
    {
        "username": "sarah_smith",
        "full_name": "Sarah Smith",
        "password": "password123",
        "email": "sarah.smith@example.com",
        "account_number": "ACC987654321",
    },
    {
        "username": "mike_johnson",
        "full_name": "Mike Johnson",
        "password": "password123",
        "email": "mike.johnson@example.com",
        "account_number": "ACC555666777",
    },
]


def _insert_missing(db: Database, collection_name: str, role: str, accounts: List[Dict]) -> int:
    collection = db.collection(collection_name)
    inserted = 0
    for account in accounts:
        if collection.find_one({"username": account["username"]}):
            logger.info("seed_skipped_existing", username=account["username"])
            continue
        doc = {k: v for k, v in account.items() if k != "password"}
        doc.update(
            {
                "password_hash": hash_password(account["password"]),
                "role": role,
                "is_active": True,
                "permissions": [],
                "created_at": datetime.now(timezone.utc),
            }
        )
        collection.insert_one(doc)
        inserted += 1
    return inserted


def seed_accounts(db: Database, reset: bool = False) -> Dict[str, int]:
    if reset:
        db.collection("employees").delete_many({})
        db.collection("customers").delete_many({})
        logger.info("seed_reset")
    counts = {
        "employees": _insert_missing(db, "employees", "employee", EMPLOYEES),
        "customers": _insert_missing(db, "customers", "customer", CUSTOMERS),
    }
    logger.info("seed_completed", **counts)
    return counts


if __name__ == "__main__":
    from config import get_settings
    from logging_config import setup_logging

    parser = argparse.ArgumentParser(description="Seed demo portal accounts")
    parser.add_argument("--reset", action="store_true", help="delete existing employees and customers first")
    args = parser.parse_args()

    settings = get_settings()
    setup_logging(settings.log_level, settings.app_env)
    database = Database(settings.database_url, settings.database_name).connect()
    try:
        seed_accounts(database, reset=args.reset)
    finally:
        database.close()
