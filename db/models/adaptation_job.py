"""
db/models/adaptation_job.py

Adaptation job model for background batch tracking.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Float, Index, Integer, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests).
JSONPayload = JSON().with_variant(JSONB(), "postgresql")


class AdaptationJobStatus:
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class AdaptationJob(Base, TimestampMixin):
    __tablename__ = "adaptation_jobs"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    marketplace: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Target marketplace key",
    )
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=AdaptationJobStatus.PENDING,
    )
    total_items: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    items_processed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    items_successful: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    items_failed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    average_confidence: Mapped[float | None] = mapped_column(Float, nullable=True)
    current_step: Mapped[str | None] = mapped_column(String(255), nullable=True)
    request_payload: Mapped[dict[str, Any] | None] = mapped_column(
        JSONPayload,
        nullable=True,
        comment="Submitted records, overrides and source file metadata",
    )
    result_payload: Mapped[dict[str, Any] | None] = mapped_column(
        JSONPayload,
        nullable=True,
        comment="Per-item adaptation results",
    )
    error_message: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    __table_args__ = (
        Index("ix_adaptation_jobs_marketplace", "marketplace"),
        Index("ix_adaptation_jobs_status", "status"),
        Index("ix_adaptation_jobs_created_at", "created_at"),
        Index("ix_adaptation_jobs_marketplace_status", "marketplace", "status"),
    )
