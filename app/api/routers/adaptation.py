"""
app/api/routers/adaptation.py

Template adaptation preview and batch job endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.catalog.template_registry import UnknownMarketplaceError
from app.schemas.adaptation import (
    AdaptationJobAcceptedResponse,
    AdaptationJobListResponse,
    AdaptationJobResultsResponse,
    AdaptationJobStatusResponse,
    AdaptationPreviewResponse,
    AdaptationRequest,
    AdaptationResultResponse,
)
from app.services.adaptation_job_service import (
    AdaptationJobPersistenceError,
    AdaptationJobService,
    FastAPIBackgroundTaskExecutor,
    get_adaptation_job_service,
)
from app.services.adaptation_orchestrator import (
    AdaptationOrchestrator,
    EmptyBatchError,
    get_adaptation_orchestrator,
)
from db.models.adaptation_job import AdaptationJob
from db.session import get_db

router = APIRouter(tags=["adaptation"])


@router.post("/adaptations/{marketplace}/preview", response_model=AdaptationPreviewResponse)
def preview_adaptation(
    marketplace: str,
    payload: AdaptationRequest,
    orchestrator: AdaptationOrchestrator = Depends(get_adaptation_orchestrator),
) -> AdaptationPreviewResponse:
    """
    Adapt records synchronously without persisting a job.
    """

    try:
        results = orchestrator.process_batch(payload.records, marketplace, overrides=payload.overrides)
    except UnknownMarketplaceError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except EmptyBatchError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return AdaptationPreviewResponse(
        marketplace=orchestrator.registry.require(marketplace).marketplace.value,
        results=[AdaptationResultResponse.from_domain(result) for result in results],
    )


@router.post(
    "/adaptations/{marketplace}/jobs",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=AdaptationJobAcceptedResponse,
)
def trigger_adaptation_job(
    marketplace: str,
    payload: AdaptationRequest,
    background_tasks: BackgroundTasks,
    source_file: str | None = Query(default=None, description="Optional name of the uploaded sheet"),
    db: Session = Depends(get_db),
    job_service: AdaptationJobService = Depends(get_adaptation_job_service),
) -> AdaptationJobAcceptedResponse:
    try:
        job = job_service.trigger_batch(
            db=db,
            executor=FastAPIBackgroundTaskExecutor(background_tasks),
            marketplace=marketplace,
            records=payload.records,
            overrides=payload.overrides,
            source_file=source_file,
        )
    except UnknownMarketplaceError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except EmptyBatchError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except AdaptationJobPersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to persist adaptation job.",
        ) from exc

    return AdaptationJobAcceptedResponse(
        job_id=job.id,
        marketplace=job.marketplace,
        status=job.status,
        total_items=job.total_items,
        created_at=job.created_at,
    )


@router.get("/adaptations/jobs", response_model=AdaptationJobListResponse)
def list_adaptation_jobs(
    marketplace: str | None = Query(default=None, description="Optional marketplace filter"),
    status_filter: str | None = Query(default=None, alias="status", description="Optional status filter"),
    limit: int = Query(default=100, ge=1, le=500, description="Max jobs returned"),
    db: Session = Depends(get_db),
    job_service: AdaptationJobService = Depends(get_adaptation_job_service),
) -> AdaptationJobListResponse:
    jobs = job_service.list_job_statuses(db=db, limit=limit, marketplace=marketplace, status=status_filter)
    return AdaptationJobListResponse(jobs=[_to_status_response(job) for job in jobs])


@router.get("/adaptations/jobs/{job_id}", response_model=AdaptationJobStatusResponse)
def get_adaptation_job(
    job_id: UUID,
    db: Session = Depends(get_db),
    job_service: AdaptationJobService = Depends(get_adaptation_job_service),
) -> AdaptationJobStatusResponse:
    return _to_status_response(_require_job(job_service, db, job_id))


@router.get("/adaptations/jobs/{job_id}/results", response_model=AdaptationJobResultsResponse)
def get_adaptation_job_results(
    job_id: UUID,
    db: Session = Depends(get_db),
    job_service: AdaptationJobService = Depends(get_adaptation_job_service),
) -> AdaptationJobResultsResponse:
    job = _require_job(job_service, db, job_id)
    payload = job.result_payload or {}
    return AdaptationJobResultsResponse(
        job_id=job.id,
        status=job.status,
        results=list(payload.get("results") or []),
    )


def _require_job(job_service: AdaptationJobService, db: Session, job_id: UUID) -> AdaptationJob:
    job = job_service.get_job_status(db=db, job_id=job_id)
    if job is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Adaptation job not found: {job_id}",
        )
    return job


def _to_status_response(job: AdaptationJob) -> AdaptationJobStatusResponse:
    percentage = 100 if job.total_items <= 0 else round(job.items_processed * 100 / job.total_items)
    return AdaptationJobStatusResponse(
        job_id=job.id,
        marketplace=job.marketplace,
        status=job.status,
        total_items=job.total_items,
        items_processed=job.items_processed,
        items_successful=job.items_successful,
        items_failed=job.items_failed,
        percentage=percentage,
        current_step=job.current_step,
        average_confidence=job.average_confidence,
        created_at=job.created_at,
        updated_at=job.updated_at,
        started_at=job.started_at,
        completed_at=job.completed_at,
        error_message=job.error_message,
    )
