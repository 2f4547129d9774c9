# Begin: src/intake/infrastructure/models.py ***
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

import sqlalchemy as sa
from sqlalchemy import ForeignKey
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from src.shared.database import Base

# JSONB on Postgres, plain JSON elsewhere (SQLite in tests)
JSONType = sa.JSON().with_variant(JSONB(), "postgresql")


class IntakeSessionORM(Base):
    __tablename__ = "intake_sessions"

    identity: Mapped[str] = mapped_column(sa.String(20), primary_key=True)
    state: Mapped[str] = mapped_column(sa.String(32), nullable=False)
    municipality: Mapped[Optional[str]] = mapped_column(sa.String(120), nullable=True)
    selected_office_id: Mapped[Optional[UUID]] = mapped_column(sa.Uuid, nullable=True)

    # collected fields + option registry + its version counter
    collected: Mapped[Dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)

    version: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    last_activity_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
    )

    # optimistic concurrency: every ORM UPDATE carries "WHERE version = :loaded"
    __mapper_args__ = {"version_id_col": version}


class OfficeORM(Base):
    __tablename__ = "offices"

    id: Mapped[UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    municipality: Mapped[Optional[str]] = mapped_column(sa.String(120), nullable=True, index=True)
    state_code: Mapped[Optional[str]] = mapped_column(sa.String(2), nullable=True)
    representative_name: Mapped[Optional[str]] = mapped_column(sa.String(200), nullable=True)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
    )


class CategoryORM(Base):
    __tablename__ = "request_categories"

    id: Mapped[UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid.uuid4)
    # NULL office = general category offered to offices without their own
    office_id: Mapped[Optional[UUID]] = mapped_column(
        sa.Uuid, ForeignKey("offices.id", ondelete="CASCADE"), nullable=True, index=True
    )
    name: Mapped[str] = mapped_column(sa.String(120), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)


class ContactORM(Base):
    __tablename__ = "contacts"

    id: Mapped[UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid.uuid4)
    office_id: Mapped[Optional[UUID]] = mapped_column(
        sa.Uuid, ForeignKey("offices.id", ondelete="SET NULL"), nullable=True
    )
    name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(sa.String(20), nullable=True, index=True)
    mobile: Mapped[Optional[str]] = mapped_column(sa.String(20), nullable=True, index=True)
    tax_id: Mapped[Optional[str]] = mapped_column(sa.String(11), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(sa.String(200), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(sa.String(120), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True), nullable=True)


class ServiceRequestORM(Base):
    __tablename__ = "service_requests"

    id: Mapped[UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid.uuid4)
    tracking_code: Mapped[str] = mapped_column(sa.String(32), nullable=False, unique=True)
    office_id: Mapped[UUID] = mapped_column(sa.Uuid, ForeignKey("offices.id"), nullable=False, index=True)
    contact_id: Mapped[UUID] = mapped_column(sa.Uuid, ForeignKey("contacts.id"), nullable=False)
    category_id: Mapped[Optional[UUID]] = mapped_column(
        sa.Uuid, ForeignKey("request_categories.id"), nullable=True
    )
    title: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    description: Mapped[str] = mapped_column(sa.Text, nullable=False)
    status: Mapped[str] = mapped_column(sa.String(32), nullable=False, default="recebida")
    priority: Mapped[str] = mapped_column(sa.String(16), nullable=False, default="media")
    channel: Mapped[str] = mapped_column(sa.String(16), nullable=False, default="whatsapp")
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
    )


class RequestHistoryORM(Base):
    __tablename__ = "request_history"

    id: Mapped[UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid.uuid4)
    request_id: Mapped[UUID] = mapped_column(
        sa.Uuid, ForeignKey("service_requests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    action: Mapped[str] = mapped_column(sa.String(32), nullable=False)
    previous_status: Mapped[Optional[str]] = mapped_column(sa.String(32), nullable=True)
    new_status: Mapped[str] = mapped_column(sa.String(32), nullable=False)
    note: Mapped[Optional[str]] = mapped_column(sa.Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
    )
# End: src/intake/infrastructure/models.py ***
