"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.adaptation_job import AdaptationJob, AdaptationJobStatus

__all__ = [
    "AdaptationJob",
    "AdaptationJobStatus",
]
