# models.py — Database models for the IMF Gadget API
# - UUID string primary keys
# - Two-role system (admin, agent)
# - Gadgets are never deleted; status transitions only

import uuid
from datetime import datetime, timezone
from enum import Enum as PyEnum
from sqlalchemy import Column, String, DateTime, Enum as SQLEnum, Index
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow():
    return datetime.now(timezone.utc)


def new_uuid():
    return str(uuid.uuid4())


# ============================================================
# ENUMS
# ============================================================

class UserRole(str, PyEnum):
    ADMIN = "admin"
    AGENT = "agent"


class GadgetStatus(str, PyEnum):
    AVAILABLE = "Available"
    DEPLOYED = "Deployed"
    DESTROYED = "Destroyed"
    DECOMMISSIONED = "Decommissioned"


# ============================================================
# USERS
# ============================================================

class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=new_uuid)
    username = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    role = Column(SQLEnum(UserRole), default=UserRole.AGENT, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)


# ============================================================
# GADGETS
# ============================================================

class Gadget(Base):
    __tablename__ = "gadgets"

    id = Column(String, primary_key=True, default=new_uuid)
    name = Column(String, nullable=False)
    codename = Column(String, unique=True, nullable=False, index=True)
    status = Column(SQLEnum(GadgetStatus), default=GadgetStatus.AVAILABLE, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
    decommissioned_at = Column(DateTime(timezone=True), nullable=True)  # set by decommission only

    __table_args__ = (
        Index("idx_gadget_status", "status"),
    )
