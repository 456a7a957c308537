"""
app/repositories/template_store.py

Storage seam for marketplace templates.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from app.domain.catalog import Marketplace, MarketplaceTemplate


class TemplateStore(Protocol):
    def get(self, marketplace: Marketplace) -> MarketplaceTemplate | None:
        ...

    def put(self, template: MarketplaceTemplate) -> None:
        ...

    def all(self) -> list[MarketplaceTemplate]:
        ...


class InMemoryTemplateStore:
    """
    Process-local template store. Entries are only ever replaced, never edited.
    """

    def __init__(self, templates: Iterable[MarketplaceTemplate] = ()) -> None:
        self._templates: dict[Marketplace, MarketplaceTemplate] = {}
        for template in templates:
            self.put(template)

    def get(self, marketplace: Marketplace) -> MarketplaceTemplate | None:
        return self._templates.get(marketplace)

    def put(self, template: MarketplaceTemplate) -> None:
        self._templates[template.marketplace] = template

    def all(self) -> list[MarketplaceTemplate]:
        return list(self._templates.values())
