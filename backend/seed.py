#!/usr/bin/env python3
"""
IMF Gadget API — Seed data
Creates the demo admin/agent accounts and a starter gadget inventory.
Safe to run repeatedly: existing usernames and codenames are skipped.

Usage:
    python seed.py
"""

import asyncio
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from auth import AuthService
from codenames import codename_exists
from database import close_db, get_db_context, init_db
from models import Gadget, GadgetStatus, User, UserRole

logger = logging.getLogger("imf-gadgets.seed")

SEED_USERS = [
    {"username": "imfadmin", "password": "secretadmin123", "role": UserRole.ADMIN},
    {"username": "agent007", "password": "agent007", "role": UserRole.AGENT},
]

SEED_GADGETS = [
    {"name": "Explosive Pen", "codename": "The Midnight Scribe", "status": GadgetStatus.AVAILABLE},
    {"name": "Facial Recognition Glasses", "codename": "The Phantom Watcher", "status": GadgetStatus.AVAILABLE},
    {"name": "Grappling Watch", "codename": "The Silver Ascender", "status": GadgetStatus.DEPLOYED},
]


async def seed(db: AsyncSession) -> dict:
    """Insert missing seed rows. Returns counts of rows created."""
    created = {"users": 0, "gadgets": 0}

    for spec in SEED_USERS:
        result = await db.execute(select(User.id).where(User.username == spec["username"]))
        if result.first():
            continue
        db.add(User(
            username=spec["username"],
            password_hash=AuthService.hash_password(spec["password"]),
            role=spec["role"],
        ))
        created["users"] += 1

    for spec in SEED_GADGETS:
        if await codename_exists(db, spec["codename"]):
            continue
        db.add(Gadget(**spec))
        created["gadgets"] += 1

    await db.flush()
    return created


async def main():
    await init_db()
    async with get_db_context() as db:
        created = await seed(db)
    await close_db()
    logger.info(f"✅ Database seeded ({created['users']} users, {created['gadgets']} gadgets)")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(name)s] %(levelname)s %(message)s")
    asyncio.run(main())
