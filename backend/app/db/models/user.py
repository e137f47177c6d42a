"""User ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, func
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base
from app.db.types import UTCDateTime


class User(Base):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    created_at = Column(UTCDateTime, nullable=False, server_default=func.now())
