"""
Gadget service — CRUD and status transitions over the gadget store.

Status lifecycle::

    Available ──► Deployed ──► Decommissioned | Destroyed
        └────────────────────► Decommissioned | Destroyed

Only ``decommission_gadget`` and ``destroy_gadget`` are restricted
transitions. ``update_gadget`` overwrites whatever fields it is given,
status included, and does not guard transitions out of the terminal states.
"""

import logging
import secrets
import string
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from codenames import generate_codename
from errors import BadRequestError, NotFoundError
from models import Gadget, GadgetStatus, utcnow
from probability import generate_success_probability

logger = logging.getLogger("imf-gadgets.gadgets")

CONFIRMATION_CODE_LENGTH = 6
CONFIRMATION_CODE_ALPHABET = string.ascii_uppercase + string.digits
CREATE_RETRIES = 3


# ============================================================
# SCHEMAS
# ============================================================

class GadgetOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    codename: str
    status: GadgetStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    decommissioned_at: Optional[datetime] = None


class GadgetWithProbability(GadgetOut):
    success_probability: int


def generate_confirmation_code() -> str:
    return "".join(secrets.choice(CONFIRMATION_CODE_ALPHABET) for _ in range(CONFIRMATION_CODE_LENGTH))


def with_probability(gadget: Gadget) -> GadgetWithProbability:
    data = GadgetOut.model_validate(gadget).model_dump()
    return GadgetWithProbability(**data, success_probability=generate_success_probability())


# ============================================================
# SERVICE
# ============================================================

class GadgetService:
    """Gadget operations bound to one database session"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_or_404(self, gadget_id: str) -> Gadget:
        result = await self.db.execute(select(Gadget).where(Gadget.id == gadget_id))
        gadget = result.scalar_one_or_none()
        if not gadget:
            raise NotFoundError("Gadget not found")
        return gadget

    async def _save(self, gadget: Gadget) -> Gadget:
        self.db.add(gadget)
        await self.db.commit()
        await self.db.refresh(gadget)
        return gadget

    async def list_gadgets(self, status: Optional[GadgetStatus] = None) -> List[GadgetWithProbability]:
        query = select(Gadget)
        if status:
            query = query.where(Gadget.status == status)
        query = query.order_by(Gadget.created_at)
        result = await self.db.execute(query)
        return [with_probability(g) for g in result.scalars().all()]

    async def get_gadgets_by_status(self, status: GadgetStatus) -> List[GadgetWithProbability]:
        return await self.list_gadgets(status)

    async def get_gadget(self, gadget_id: str) -> GadgetWithProbability:
        return with_probability(await self._get_or_404(gadget_id))

    async def create_gadget(self, name: Optional[str]) -> Gadget:
        if not name or not name.strip():
            raise BadRequestError("Gadget name is required")

        for attempt in range(1, CREATE_RETRIES + 1):
            codename = await generate_codename(self.db)
            gadget = Gadget(name=name, codename=codename, status=GadgetStatus.AVAILABLE)
            try:
                await self._save(gadget)
            except IntegrityError:
                # Another request claimed the codename between check and insert
                await self.db.rollback()
                if attempt == CREATE_RETRIES:
                    raise
                logger.warning(f"Codename {codename!r} taken concurrently, retrying ({attempt}/{CREATE_RETRIES})")
                continue
            logger.info(f"Created gadget {gadget.id} as {gadget.codename!r}")
            return gadget

    async def update_gadget(
        self,
        gadget_id: str,
        name: Optional[str] = None,
        status: Optional[GadgetStatus] = None,
    ) -> Gadget:
        if not name and not status:
            raise BadRequestError("At least one field to update is required")

        gadget = await self._get_or_404(gadget_id)
        if name:
            gadget.name = name
        if status:
            gadget.status = status
        await self._save(gadget)
        logger.info(f"Updated gadget {gadget.id}")
        return gadget

    async def decommission_gadget(self, gadget_id: str) -> Gadget:
        gadget = await self._get_or_404(gadget_id)
        gadget.status = GadgetStatus.DECOMMISSIONED
        gadget.decommissioned_at = utcnow()
        await self._save(gadget)
        logger.info(f"Decommissioned gadget {gadget.id}")
        return gadget

    async def destroy_gadget(self, gadget_id: str) -> Gadget:
        gadget = await self._get_or_404(gadget_id)
        gadget.status = GadgetStatus.DESTROYED
        await self._save(gadget)
        logger.info(f"Destroyed gadget {gadget.id}")
        return gadget

    async def self_destruct(self, gadget_id: str, confirmation_code: Optional[str]) -> Gadget:
        """Destroy a gadget behind a confirmation code.

        The expected code is drawn fresh on every call and never stored, so
        it can only match by chance. It is echoed back in the error body as a
        simulation of an out-of-band delivery channel.
        """
        expected_code = generate_confirmation_code()
        if not confirmation_code or confirmation_code != expected_code:
            logger.warning(f"Self-destruct of {gadget_id} rejected: confirmation code mismatch")
            raise BadRequestError(
                "Invalid confirmation code",
                expectedCode=expected_code,
                message="This is a simulation - in a real app, this code would be sent securely",
            )
        return await self.destroy_gadget(gadget_id)
