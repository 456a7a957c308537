"""
app/services package marker.
"""

from app.services.ingestion_service import (
    SheetIngestionService,
    TabularIngestionNormalizer,
    UnsupportedFileError,
    get_sheet_ingestion_service,
)
from app.services.synthesis_service import (
    AttributeSynthesisEngine,
    RuleBasedContentGenerator,
    build_content_generator,
    get_synthesis_engine,
)
from app.services.template_adaptation_service import TemplateAdaptationService, calculate_confidence
from app.services.adaptation_orchestrator import (
    AdaptationOrchestrator,
    EmptyBatchError,
    get_adaptation_orchestrator,
)
from app.services.adaptation_job_service import (
    AdaptationJobPersistenceError,
    AdaptationJobService,
    get_adaptation_job_service,
)

__all__ = [
    "AdaptationJobPersistenceError",
    "AdaptationJobService",
    "get_adaptation_job_service",
    "AdaptationOrchestrator",
    "EmptyBatchError",
    "get_adaptation_orchestrator",
    "AttributeSynthesisEngine",
    "RuleBasedContentGenerator",
    "build_content_generator",
    "get_synthesis_engine",
    "SheetIngestionService",
    "TabularIngestionNormalizer",
    "UnsupportedFileError",
    "get_sheet_ingestion_service",
    "TemplateAdaptationService",
    "calculate_confidence",
]
