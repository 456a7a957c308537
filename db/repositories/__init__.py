"""
Repository layer exports.
"""

from db.repositories.adaptation_job_repository import AdaptationJobRepository

__all__ = [
    "AdaptationJobRepository",
]
