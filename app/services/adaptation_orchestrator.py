"""
app/services/adaptation_orchestrator.py

Per-item and batch adaptation of product records to a marketplace template.

One item runs: attribute extraction and mapping, mapping application,
ancillary inference, synthesis of missing required attributes, title and
description enhancement, then compliance validation. Batches run items
strictly in order; a failing item becomes a zero-confidence result and the
batch continues.
"""

from __future__ import annotations

import dataclasses
import logging
import time
from collections.abc import Callable, Iterator, Mapping, Sequence
from functools import lru_cache
from typing import Any

from app.catalog.template_registry import MarketplaceTemplateRegistry, get_template_registry
from app.domain.adaptation import AdaptationResult, BatchProgress
from app.domain.catalog import Marketplace, MarketplaceTemplate, ProductRecord
from app.logging_utils import log_event
from app.services.synthesis_service import (
    DESCRIPTION_FIELDS,
    TITLE_FIELDS,
    AttributeSynthesisEngine,
    field_spec,
    get_synthesis_engine,
    resolve_enum_value,
)
from app.services.template_adaptation_service import TemplateAdaptationService
from app.validators.compliance_validator import ComplianceValidator, is_blank

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[BatchProgress], None]


class EmptyBatchError(ValueError):
    """
    Raised when a batch contains no records.
    """


def _max_length(template: MarketplaceTemplate, field_name: str | None) -> int | None:
    attribute = template.attribute(field_name) if field_name else None
    if attribute is None or attribute.validation is None:
        return None
    return attribute.validation.max_length


class AdaptationOrchestrator:
    """
    Sequences mapping, synthesis and validation for records of one marketplace.
    """

    def __init__(
        self,
        *,
        registry: MarketplaceTemplateRegistry | None = None,
        adaptation_service: TemplateAdaptationService | None = None,
        synthesis_engine: AttributeSynthesisEngine | None = None,
        validator: ComplianceValidator | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._registry = registry or get_template_registry()
        self._adaptation_service = adaptation_service or TemplateAdaptationService(library=self._registry.library)
        self._synthesis_engine = synthesis_engine or get_synthesis_engine()
        self._validator = validator or ComplianceValidator()
        self._clock = clock

    @property
    def registry(self) -> MarketplaceTemplateRegistry:
        return self._registry

    def adapt(
        self,
        record: ProductRecord,
        marketplace: str | Marketplace,
        *,
        overrides: Mapping[str, str] | None = None,
    ) -> AdaptationResult:
        """
        Adapt one record. Raises UnknownMarketplaceError for unknown keys.
        """

        template = self._registry.require(marketplace)
        return self.adapt_to_template(record, template, overrides=overrides)

    def adapt_to_template(
        self,
        record: ProductRecord,
        template: MarketplaceTemplate,
        *,
        overrides: Mapping[str, str] | None = None,
    ) -> AdaptationResult:
        analysis = self._adaptation_service.analyze([record], template, overrides=overrides)
        adapted = self._adaptation_service.apply_mappings(record, analysis, template)

        inferred = self._infer_ancillary(adapted, record, template)
        adapted.update(inferred)

        missing = [attribute for attribute in template.required_attributes if is_blank(adapted.get(attribute.name))]
        context = {**adapted, **record}
        generated = self._synthesis_engine.synthesize(context, missing, template.marketplace.value, template)
        adapted.update(generated)

        title_field = next((name for name in template.attribute_names if name in TITLE_FIELDS), None)
        description_field = next((name for name in template.attribute_names if name in DESCRIPTION_FIELDS), None)
        adapted = self._synthesis_engine.enhance(
            adapted,
            title_field=title_field,
            description_field=description_field,
            context={**adapted, **record},
            title_max_length=_max_length(template, title_field),
            description_max_length=_max_length(template, description_field),
        )

        transformations = dict(analysis.transformations)
        for name in generated:
            transformations[name] = f"Generate using {self._synthesis_engine.generator_name} based on existing fields"

        return dataclasses.replace(
            analysis,
            transformations=transformations,
            original_record=dict(record),
            adapted_record=adapted,
            generated_fields=list(generated),
            inferred_fields=list(inferred),
            compliance_issues=self._validator.validate(adapted, template),
        )

    def _infer_ancillary(
        self,
        adapted: ProductRecord,
        record: ProductRecord,
        template: MarketplaceTemplate,
    ) -> dict[str, Any]:
        inferred = self._synthesis_engine.infer_ancillary_attributes({**adapted, **record})
        for name, value in list(inferred.items()):
            attribute = template.attribute(name)
            if attribute is not None and attribute.enum_values and isinstance(value, str):
                inferred[name] = resolve_enum_value(value, field_spec(attribute, template))
        return inferred

    def iter_batch(
        self,
        records: Sequence[ProductRecord],
        marketplace: str | Marketplace,
        *,
        overrides: Mapping[str, str] | None = None,
    ) -> Iterator[tuple[AdaptationResult, BatchProgress]]:
        """
        Yield (result, progress) per record. Stop iterating to cancel.

        Raises EmptyBatchError or UnknownMarketplaceError before the first item.
        """

        if not records:
            raise EmptyBatchError("Batch must contain at least one record.")
        template = self._registry.require(marketplace)
        return self._run_batch(records, template, overrides)

    def _run_batch(
        self,
        records: Sequence[ProductRecord],
        template: MarketplaceTemplate,
        overrides: Mapping[str, str] | None,
    ) -> Iterator[tuple[AdaptationResult, BatchProgress]]:
        total = len(records)
        started = self._clock()
        successful = 0
        failed = 0

        for index, record in enumerate(records, start=1):
            label = self._item_label(record, index)
            try:
                result = self.adapt_to_template(record, template, overrides=overrides)
                successful += 1
            except Exception as exc:
                failed += 1
                logger.warning(
                    "Adaptation failed item=%s marketplace=%s error=%s",
                    label,
                    template.marketplace.value,
                    exc,
                    exc_info=True,
                )
                result = AdaptationResult.failure(
                    f"Processing failed: {exc}",
                    marketplace=template.marketplace.value,
                    record=record if isinstance(record, Mapping) else None,
                )

            elapsed = self._clock() - started
            progress = BatchProgress(
                current_item=index,
                total_items=total,
                items_processed=index,
                items_successful=successful,
                items_failed=failed,
                current_step=f"Processed {label}",
                estimated_seconds_remaining=(total - index) * elapsed / index,
            )
            yield result, progress

    def process_batch(
        self,
        records: Sequence[ProductRecord],
        marketplace: str | Marketplace,
        on_progress: ProgressCallback | None = None,
        *,
        overrides: Mapping[str, str] | None = None,
    ) -> list[AdaptationResult]:
        """
        Adapt every record in order, reporting progress after each item.
        """

        results: list[AdaptationResult] = []
        progress: BatchProgress | None = None
        for result, progress in self.iter_batch(records, marketplace, overrides=overrides):
            results.append(result)
            self._notify(on_progress, progress)

        if progress is not None:
            log_event(
                logger,
                logging.INFO,
                "adaptation_batch_completed",
                marketplace=str(marketplace.value if isinstance(marketplace, Marketplace) else marketplace),
                total_items=progress.total_items,
                items_successful=progress.items_successful,
                items_failed=progress.items_failed,
            )
        return results

    def _notify(self, on_progress: ProgressCallback | None, progress: BatchProgress) -> None:
        if on_progress is None:
            return
        try:
            on_progress(progress)
        except Exception:
            logger.exception("Batch progress callback failed at item %s", progress.current_item)

    def _item_label(self, record: Any, index: int) -> str:
        if isinstance(record, Mapping) and record.get("sku"):
            return str(record["sku"])
        return f"item {index}"


@lru_cache(maxsize=1)
def get_adaptation_orchestrator() -> AdaptationOrchestrator:
    return AdaptationOrchestrator()
