"""
Codename generation for gadgets.

Codenames take the form "The <Adjective> <Noun>" drawn from two fixed word
lists. A candidate is rejected if any gadget already carries it. The pool is
only 100 combinations, so after ``max_attempts`` collisions a short hex
suffix is appended to break the tie. The unique constraint on
``gadgets.codename`` is still the final word on duplicates.
"""

import logging
import random
import secrets
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models import Gadget

logger = logging.getLogger("imf-gadgets.codenames")

ADJECTIVES = [
    "Phantom", "Shadow", "Silent", "Stealth", "Covert",
    "Midnight", "Golden", "Silver", "Iron", "Ghost",
]

NOUNS = [
    "Eagle", "Phoenix", "Hawk", "Falcon", "Wolf",
    "Viper", "Cobra", "Raven", "Panther", "Tiger",
]

DEFAULT_MAX_ATTEMPTS = 25
SUFFIX_BYTES = 2


def compose_codename(adjective: str, noun: str) -> str:
    return f"The {adjective} {noun}"


async def codename_exists(db: AsyncSession, codename: str) -> bool:
    result = await db.execute(select(Gadget.id).where(Gadget.codename == codename))
    return result.first() is not None


async def generate_codename(
    db: AsyncSession,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    adjectives: Sequence[str] = ADJECTIVES,
    nouns: Sequence[str] = NOUNS,
) -> str:
    """Return a codename no existing gadget uses."""
    codename = ""
    for _ in range(max_attempts):
        codename = compose_codename(random.choice(adjectives), random.choice(nouns))
        if not await codename_exists(db, codename):
            return codename

    logger.warning(
        f"No free codename after {max_attempts} attempts — falling back to suffixed codenames"
    )
    base = codename or compose_codename(random.choice(adjectives), random.choice(nouns))
    while True:
        candidate = f"{base} {secrets.token_hex(SUFFIX_BYTES).upper()}"
        if not await codename_exists(db, candidate):
            return candidate
