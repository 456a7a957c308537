"""
Adaptation job service: background batch dispatch and lifecycle tracking.
"""

from __future__ import annotations

import dataclasses
import logging
import uuid
from collections.abc import Callable, Mapping, Sequence
from functools import lru_cache
from typing import Any, Protocol

from fastapi import BackgroundTasks
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.domain.adaptation import AdaptationResult
from app.domain.catalog import ProductRecord
from app.logging_utils import log_event
from app.services.adaptation_orchestrator import (
    AdaptationOrchestrator,
    EmptyBatchError,
    get_adaptation_orchestrator,
)
from db.models.adaptation_job import AdaptationJob
from db.repositories.adaptation_job_repository import AdaptationJobRepository

logger = logging.getLogger(__name__)


class AdaptationJobPersistenceError(RuntimeError):
    """
    Raised when an adaptation job cannot be stored.
    """


class AdaptationTaskExecutor(Protocol):
    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        ...


class FastAPIBackgroundTaskExecutor:
    def __init__(self, background_tasks: BackgroundTasks) -> None:
        self._background_tasks = background_tasks

    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        self._background_tasks.add_task(task, *args, **kwargs)


def serialize_result(result: AdaptationResult) -> dict[str, Any]:
    """
    JSON-ready form of one adaptation result.
    """

    return dataclasses.asdict(result)


class AdaptationJobService:
    """
    Coordinates job creation, background execution, and status persistence.
    """

    def __init__(
        self,
        *,
        session_factory: sessionmaker[Session] | Callable[[], Session] | None = None,
        orchestrator: AdaptationOrchestrator | None = None,
    ) -> None:
        if session_factory is None:
            from db.session import SessionLocal

            self._session_factory = SessionLocal
        else:
            self._session_factory = session_factory

        self._orchestrator = orchestrator or get_adaptation_orchestrator()

    def trigger_batch(
        self,
        *,
        db: Session,
        executor: AdaptationTaskExecutor,
        marketplace: str,
        records: Sequence[ProductRecord],
        overrides: Mapping[str, str] | None = None,
        source_file: str | None = None,
    ) -> AdaptationJob:
        """
        Validate the batch, persist a pending job, and schedule it.

        Raises EmptyBatchError or UnknownMarketplaceError without creating a job,
        and AdaptationJobPersistenceError when the job cannot be stored.
        """

        if not records:
            raise EmptyBatchError("Batch must contain at least one record.")
        template = self._orchestrator.registry.require(marketplace)

        request_payload = {
            "records": [dict(record) for record in records],
            "overrides": dict(overrides) if overrides else None,
            "source_file": source_file,
            "template_id": template.id,
            "template_version": template.version,
        }

        repository = AdaptationJobRepository(db)
        try:
            with db.begin():
                job = repository.create_job(
                    marketplace=template.marketplace.value,
                    total_items=len(records),
                    request_payload=request_payload,
                )
        except SQLAlchemyError as exc:
            logger.exception("Failed to persist adaptation job marketplace=%s", template.marketplace.value)
            raise AdaptationJobPersistenceError("Unable to persist adaptation job.") from exc

        try:
            executor.submit(
                self._run_adaptation_job,
                job.id,
                template.marketplace.value,
                [dict(record) for record in records],
                dict(overrides) if overrides else None,
            )
        except Exception:
            with db.begin():
                repository.mark_failed(
                    job_id=job.id,
                    error_message="Failed to schedule adaptation job.",
                )
            raise

        return job

    def get_job_status(self, *, db: Session, job_id: uuid.UUID) -> AdaptationJob | None:
        repository = AdaptationJobRepository(db)
        return repository.get_job(job_id)

    def list_job_statuses(
        self,
        *,
        db: Session,
        limit: int = 100,
        marketplace: str | None = None,
        status: str | None = None,
    ) -> list[AdaptationJob]:
        repository = AdaptationJobRepository(db)
        return repository.list_jobs(limit=limit, marketplace=marketplace, status=status)

    def _run_adaptation_job(
        self,
        job_id: uuid.UUID,
        marketplace: str,
        records: list[ProductRecord],
        overrides: dict[str, str] | None,
    ) -> None:
        with self._session_factory() as db:
            repository = AdaptationJobRepository(db)
            try:
                running_job = repository.mark_running(job_id=job_id)
                if running_job is None:
                    raise RuntimeError(f"Adaptation job not found: {job_id}")
                db.commit()

                results: list[dict[str, Any]] = []
                confidences: list[int] = []
                for result, progress in self._orchestrator.iter_batch(records, marketplace, overrides=overrides):
                    results.append(serialize_result(result))
                    confidences.append(result.confidence)
                    repository.record_progress(
                        job_id=job_id,
                        items_processed=progress.items_processed,
                        items_successful=progress.items_successful,
                        items_failed=progress.items_failed,
                        current_step=progress.current_step,
                    )
                    db.commit()
                    log_event(
                        logger,
                        logging.DEBUG,
                        "adaptation_job_progress",
                        job_id=job_id,
                        percentage=progress.percentage,
                        eta_seconds=round(progress.estimated_seconds_remaining, 2),
                    )

                average = round(sum(confidences) / len(confidences), 2) if confidences else None
                completed_job = repository.mark_completed(
                    job_id=job_id,
                    average_confidence=average,
                    result_payload={"results": results},
                )
                if completed_job is None:
                    raise RuntimeError(f"Adaptation job not found: {job_id}")
                db.commit()
                log_event(
                    logger,
                    logging.INFO,
                    "adaptation_job_completed",
                    job_id=job_id,
                    marketplace=marketplace,
                    items=len(results),
                    average_confidence=average,
                )
            except Exception as exc:
                self._mark_job_failed(db=db, job_id=job_id, exc=exc)

    def _mark_job_failed(self, *, db: Session, job_id: uuid.UUID, exc: Exception) -> None:
        repository = AdaptationJobRepository(db)
        error_message = f"{type(exc).__name__}: {exc}"
        logger.exception("Adaptation job failed id=%s error=%s", job_id, error_message)
        try:
            db.rollback()
            failed_job = repository.mark_failed(
                job_id=job_id,
                error_message=error_message[:2000],
            )
            if failed_job is None:
                logger.error("Unable to mark adaptation job as failed because it was not found id=%s", job_id)
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("Failed to persist failed adaptation job state id=%s", job_id)


@lru_cache(maxsize=1)
def get_adaptation_job_service() -> AdaptationJobService:
    return AdaptationJobService()
