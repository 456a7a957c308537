"""
tests/test_adaptation_jobs.py

Pytest tests for adaptation job persistence and background execution.

An in-memory SQLite database stands in for PostgreSQL; the task executor runs
jobs inline so the full pending -> running -> completed/failed lifecycle can be
asserted synchronously.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Iterator
from typing import Any

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.catalog.template_registry import MarketplaceTemplateRegistry, UnknownMarketplaceError
from app.services.adaptation_job_service import (
    AdaptationJobPersistenceError,
    AdaptationJobService,
)
from app.services.adaptation_orchestrator import AdaptationOrchestrator, EmptyBatchError
from app.services.synthesis_service import AttributeSynthesisEngine
from db.base import Base
from db.models.adaptation_job import AdaptationJob, AdaptationJobStatus
from db.repositories.adaptation_job_repository import AdaptationJobRepository

RECORDS = [
    {
        "sku": "TSH001",
        "title": "Premium Cotton T-Shirt",
        "brand": "FashionCo",
        "category": "T-Shirts",
        "color": "Navy Blue",
        "price": 29.99,
        "images": ["https://x/a.jpg"],
    },
    {
        "sku": "DRS002",
        "title": "Womens Linen Dress",
        "brand": "FashionCo",
        "category": "Dresses",
        "color": "White",
        "price": 59.0,
        "images": ["https://x/b.jpg"],
    },
]


class InlineExecutor:
    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        task(*args, **kwargs)


class RefusingExecutor:
    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        raise RuntimeError("worker pool is shutting down")


class _SkuFailingEngine(AttributeSynthesisEngine):
    def __init__(self, failing_sku: str) -> None:
        super().__init__()
        self.failing_sku = failing_sku

    def synthesize(self, record, missing_required_attrs, marketplace, template=None):  # type: ignore[no-untyped-def]
        if record.get("sku") == self.failing_sku:
            raise ValueError("cannot synthesize")
        return super().synthesize(record, missing_required_attrs, marketplace, template)


class _BrokenOrchestrator(AdaptationOrchestrator):
    def iter_batch(self, records, marketplace, *, overrides=None):  # type: ignore[no-untyped-def]
        raise RuntimeError("template store unavailable")


def _sqlite_factory(*, create_schema: bool = True) -> sessionmaker[Session]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    if create_schema:
        Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def session_factory() -> Iterator[sessionmaker[Session]]:
    factory = _sqlite_factory()
    yield factory
    factory.kw["bind"].dispose()


def _service(
    session_factory: sessionmaker[Session],
    engine: AttributeSynthesisEngine | None = None,
    orchestrator_cls: type[AdaptationOrchestrator] = AdaptationOrchestrator,
) -> AdaptationJobService:
    orchestrator = orchestrator_cls(
        registry=MarketplaceTemplateRegistry(),
        synthesis_engine=engine or AttributeSynthesisEngine(),
    )
    return AdaptationJobService(session_factory=session_factory, orchestrator=orchestrator)


def _reload(session_factory: sessionmaker[Session], job_id: uuid.UUID) -> AdaptationJob:
    with session_factory() as db:
        job = AdaptationJobRepository(db).get_job(job_id)
        assert job is not None
        return job


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class TestAdaptationJobRepository:
    def test_lifecycle_updates(self, session_factory: sessionmaker[Session]) -> None:
        with session_factory() as db:
            repository = AdaptationJobRepository(db)
            job = repository.create_job(marketplace="namshi", total_items=3, request_payload={"records": []})
            db.commit()

            assert job.status == AdaptationJobStatus.PENDING
            assert job.items_processed == 0
            assert job.created_at is not None

            running = repository.mark_running(job_id=job.id)
            assert running is not None and running.started_at is not None

            repository.record_progress(
                job_id=job.id,
                items_processed=2,
                items_successful=1,
                items_failed=1,
                current_step="x" * 300,
            )
            completed = repository.mark_completed(
                job_id=job.id,
                average_confidence=72.5,
                result_payload={"results": [{"confidence": 80}]},
            )
            db.commit()

            assert completed is not None
            assert completed.status == AdaptationJobStatus.COMPLETED
            assert completed.completed_at is not None
            assert len(completed.current_step or "") == 255
            assert completed.items_failed == 1

    def test_list_jobs_filters(self, session_factory: sessionmaker[Session]) -> None:
        with session_factory() as db:
            repository = AdaptationJobRepository(db)
            namshi = repository.create_job(marketplace="namshi", total_items=1)
            repository.create_job(marketplace="amazon", total_items=1)
            repository.mark_failed(job_id=namshi.id, error_message="boom")
            db.commit()

            assert len(repository.list_jobs()) == 2
            assert [job.marketplace for job in repository.list_jobs(marketplace="amazon")] == ["amazon"]
            assert [job.id for job in repository.list_jobs(status=AdaptationJobStatus.FAILED)] == [namshi.id]
            assert len(repository.list_jobs(limit=0)) == 1

    def test_unknown_job_ids(self, session_factory: sessionmaker[Session]) -> None:
        with session_factory() as db:
            repository = AdaptationJobRepository(db)
            missing = uuid.uuid4()
            assert repository.get_job(missing) is None
            assert repository.mark_running(job_id=missing) is None
            assert repository.mark_failed(job_id=missing, error_message="x") is None


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class TestAdaptationJobService:
    def test_batch_runs_to_completion(self, session_factory: sessionmaker[Session]) -> None:
        service = _service(session_factory)

        with session_factory() as db:
            job = service.trigger_batch(
                db=db,
                executor=InlineExecutor(),
                marketplace="Namshi",
                records=RECORDS,
                source_file="catalog.csv",
            )

        stored = _reload(session_factory, job.id)
        assert stored.status == AdaptationJobStatus.COMPLETED
        assert stored.marketplace == "namshi"
        assert stored.total_items == 2
        assert stored.items_processed == 2
        assert stored.items_successful == 2
        assert stored.items_failed == 0
        assert stored.current_step == "Processed DRS002"
        assert stored.average_confidence is not None and stored.average_confidence > 0
        assert stored.request_payload["template_id"] == "namshi_v3"
        assert stored.request_payload["source_file"] == "catalog.csv"

        results = stored.result_payload["results"]
        assert [result["original_record"]["sku"] for result in results] == ["TSH001", "DRS002"]
        assert results[1]["adapted_record"]["gender"] == "Women"
        assert results[0]["adapted_record"]["category"] == "Tops/T-Shirts"

    def test_failed_item_is_counted_and_job_completes(self, session_factory: sessionmaker[Session]) -> None:
        service = _service(session_factory, engine=_SkuFailingEngine("TSH001"))

        with session_factory() as db:
            job = service.trigger_batch(db=db, executor=InlineExecutor(), marketplace="namshi", records=RECORDS)

        stored = _reload(session_factory, job.id)
        assert stored.status == AdaptationJobStatus.COMPLETED
        assert stored.items_successful == 1
        assert stored.items_failed == 1
        first = stored.result_payload["results"][0]
        assert first["confidence"] == 0
        assert first["issues"] == ["Processing failed: cannot synthesize"]

    def test_runtime_failure_marks_job_failed(self, session_factory: sessionmaker[Session]) -> None:
        service = _service(session_factory, orchestrator_cls=_BrokenOrchestrator)

        with session_factory() as db:
            job = service.trigger_batch(db=db, executor=InlineExecutor(), marketplace="namshi", records=RECORDS)

        stored = _reload(session_factory, job.id)
        assert stored.status == AdaptationJobStatus.FAILED
        assert stored.error_message == "RuntimeError: template store unavailable"
        assert stored.completed_at is not None

    def test_scheduling_failure_marks_job_failed_and_reraises(
        self, session_factory: sessionmaker[Session]
    ) -> None:
        service = _service(session_factory)

        with session_factory() as db:
            with pytest.raises(RuntimeError, match="shutting down"):
                service.trigger_batch(db=db, executor=RefusingExecutor(), marketplace="namshi", records=RECORDS)

        with session_factory() as db:
            jobs = service.list_job_statuses(db=db)
        assert len(jobs) == 1
        assert jobs[0].status == AdaptationJobStatus.FAILED
        assert jobs[0].error_message == "Failed to schedule adaptation job."

    def test_invalid_batches_create_no_job(self, session_factory: sessionmaker[Session]) -> None:
        service = _service(session_factory)

        with session_factory() as db:
            with pytest.raises(EmptyBatchError):
                service.trigger_batch(db=db, executor=InlineExecutor(), marketplace="namshi", records=[])
            with pytest.raises(UnknownMarketplaceError):
                service.trigger_batch(db=db, executor=InlineExecutor(), marketplace="etsy", records=RECORDS)
            assert service.list_job_statuses(db=db) == []

    def test_storage_failure_raises_persistence_error(self) -> None:
        factory = _sqlite_factory(create_schema=False)
        service = _service(factory)

        with factory() as db:
            with pytest.raises(AdaptationJobPersistenceError):
                service.trigger_batch(db=db, executor=InlineExecutor(), marketplace="namshi", records=RECORDS)
