"""
Gadget Router — inventory, updates, decommissioning and self-destruct
Reads are open to any authenticated agent; mutations need the admin role,
except self-destruct which any authenticated user may attempt.
"""

import logging
from contextlib import contextmanager
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from auth import CurrentUser, get_current_user, require_admin
from database import get_db_session
from errors import InternalError
from gadget_service import GadgetOut, GadgetService, GadgetWithProbability
from models import GadgetStatus

logger = logging.getLogger("imf-gadgets.gadgets")

router = APIRouter(prefix="/api/gadgets", tags=["Gadgets"])


# ── Schemas ──────────────────────────────────────────────────

class GadgetCreate(BaseModel):
    name: Optional[str] = None


class GadgetUpdate(BaseModel):
    name: Optional[str] = None
    status: Optional[GadgetStatus] = None


class SelfDestructRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    confirmation_code: Optional[str] = None


class GadgetActionResponse(BaseModel):
    message: str
    gadget: GadgetOut


# ── Dependencies ─────────────────────────────────────────────

def get_gadget_service(db: AsyncSession = Depends(get_db_session)) -> GadgetService:
    return GadgetService(db)


@contextmanager
def persistence_errors(message: str):
    """Map store failures to a 500 carrying an operation-specific message"""
    try:
        yield
    except SQLAlchemyError:
        logger.exception(message)
        raise InternalError(message)


# ── Reads ────────────────────────────────────────────────────

@router.get("", response_model=List[GadgetWithProbability])
async def list_gadgets(
    status: Optional[GadgetStatus] = None,
    service: GadgetService = Depends(get_gadget_service),
    user: CurrentUser = Depends(get_current_user),
):
    with persistence_errors("Failed to retrieve gadgets"):
        return await service.list_gadgets(status)


@router.get("/status/{status}", response_model=List[GadgetWithProbability])
async def list_gadgets_by_status(
    status: GadgetStatus,
    service: GadgetService = Depends(get_gadget_service),
    user: CurrentUser = Depends(get_current_user),
):
    with persistence_errors("Failed to retrieve gadgets by status"):
        return await service.get_gadgets_by_status(status)


@router.get("/{gadget_id}", response_model=GadgetWithProbability)
async def get_gadget(
    gadget_id: str,
    service: GadgetService = Depends(get_gadget_service),
    user: CurrentUser = Depends(get_current_user),
):
    with persistence_errors("Failed to retrieve gadget"):
        return await service.get_gadget(gadget_id)


# ── Mutations ────────────────────────────────────────────────

@router.post("", response_model=GadgetOut, status_code=201)
async def create_gadget(
    body: GadgetCreate,
    service: GadgetService = Depends(get_gadget_service),
    user: CurrentUser = Depends(require_admin),
):
    with persistence_errors("Failed to create gadget"):
        return await service.create_gadget(body.name)


@router.patch("/{gadget_id}", response_model=GadgetOut)
async def update_gadget(
    gadget_id: str,
    body: GadgetUpdate,
    service: GadgetService = Depends(get_gadget_service),
    user: CurrentUser = Depends(require_admin),
):
    with persistence_errors("Failed to update gadget"):
        return await service.update_gadget(gadget_id, name=body.name, status=body.status)


@router.delete("/{gadget_id}", response_model=GadgetActionResponse)
async def decommission_gadget(
    gadget_id: str,
    service: GadgetService = Depends(get_gadget_service),
    user: CurrentUser = Depends(require_admin),
):
    with persistence_errors("Failed to decommission gadget"):
        gadget = await service.decommission_gadget(gadget_id)
    return GadgetActionResponse(message="Gadget decommissioned successfully", gadget=GadgetOut.model_validate(gadget))


@router.post("/{gadget_id}/self-destruct", response_model=GadgetActionResponse)
async def self_destruct_gadget(
    gadget_id: str,
    body: Optional[SelfDestructRequest] = None,
    service: GadgetService = Depends(get_gadget_service),
    user: CurrentUser = Depends(get_current_user),
):
    code = body.confirmation_code if body else None
    with persistence_errors("Self-destruct sequence failed"):
        gadget = await service.self_destruct(gadget_id, code)
    return GadgetActionResponse(
        message="Gadget self-destruct sequence completed successfully",
        gadget=GadgetOut.model_validate(gadget),
    )
