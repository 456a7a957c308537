"""
Repository for adaptation job lifecycle persistence and status lookup.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from db.base import utcnow
from db.models.adaptation_job import AdaptationJob, AdaptationJobStatus


class AdaptationJobRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create_job(
        self,
        *,
        marketplace: str,
        total_items: int,
        request_payload: dict[str, Any] | None = None,
    ) -> AdaptationJob:
        job = AdaptationJob(
            marketplace=marketplace,
            status=AdaptationJobStatus.PENDING,
            total_items=total_items,
            items_processed=0,
            items_successful=0,
            items_failed=0,
            request_payload=request_payload,
        )
        self._session.add(job)
        self._session.flush()
        self._session.refresh(job)
        return job

    def get_job(self, job_id: uuid.UUID) -> AdaptationJob | None:
        return self._session.get(AdaptationJob, job_id)

    def list_jobs(
        self,
        *,
        limit: int = 100,
        marketplace: str | None = None,
        status: str | None = None,
    ) -> list[AdaptationJob]:
        stmt: Select[tuple[AdaptationJob]] = select(AdaptationJob)

        if marketplace:
            stmt = stmt.where(AdaptationJob.marketplace == marketplace)
        if status:
            stmt = stmt.where(AdaptationJob.status == status)

        stmt = stmt.order_by(AdaptationJob.created_at.desc()).limit(max(1, limit))
        return list(self._session.scalars(stmt).all())

    def mark_running(self, *, job_id: uuid.UUID) -> AdaptationJob | None:
        job = self.get_job(job_id)
        if job is None:
            return None
        job.status = AdaptationJobStatus.RUNNING
        job.started_at = utcnow()
        job.completed_at = None
        job.error_message = None
        return job

    def record_progress(
        self,
        *,
        job_id: uuid.UUID,
        items_processed: int,
        items_successful: int,
        items_failed: int,
        current_step: str | None = None,
    ) -> AdaptationJob | None:
        job = self.get_job(job_id)
        if job is None:
            return None
        job.items_processed = items_processed
        job.items_successful = items_successful
        job.items_failed = items_failed
        job.current_step = current_step[:255] if current_step else None
        return job

    def mark_completed(
        self,
        *,
        job_id: uuid.UUID,
        average_confidence: float | None,
        result_payload: dict[str, Any] | None = None,
    ) -> AdaptationJob | None:
        job = self.get_job(job_id)
        if job is None:
            return None
        job.status = AdaptationJobStatus.COMPLETED
        job.completed_at = utcnow()
        job.average_confidence = average_confidence
        job.result_payload = result_payload
        job.error_message = None
        return job

    def mark_failed(
        self,
        *,
        job_id: uuid.UUID,
        error_message: str,
        result_payload: dict[str, Any] | None = None,
    ) -> AdaptationJob | None:
        job = self.get_job(job_id)
        if job is None:
            return None
        job.status = AdaptationJobStatus.FAILED
        job.completed_at = utcnow()
        job.error_message = error_message
        if result_payload is not None:
            job.result_payload = result_payload
        return job
