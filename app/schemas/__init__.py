"""
app/schemas package marker.
"""

from app.schemas.adaptation import (
    AdaptationJobAcceptedResponse,
    AdaptationJobListResponse,
    AdaptationJobResultsResponse,
    AdaptationJobStatusResponse,
    AdaptationPreviewResponse,
    AdaptationRequest,
    AdaptationResultResponse,
)
from app.schemas.ingestion import IngestionResponse
from app.schemas.templates import (
    MarketplaceListResponse,
    MarketplaceTemplateResponse,
    TemplateUpdateRequest,
)

__all__ = [
    "AdaptationJobAcceptedResponse",
    "AdaptationJobListResponse",
    "AdaptationJobResultsResponse",
    "AdaptationJobStatusResponse",
    "AdaptationPreviewResponse",
    "AdaptationRequest",
    "AdaptationResultResponse",
    "IngestionResponse",
    "MarketplaceListResponse",
    "MarketplaceTemplateResponse",
    "TemplateUpdateRequest",
]
