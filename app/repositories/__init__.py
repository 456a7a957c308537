"""
app/repositories package marker.
"""

from app.repositories.template_store import InMemoryTemplateStore, TemplateStore

__all__ = [
    "InMemoryTemplateStore",
    "TemplateStore",
]
