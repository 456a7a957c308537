"""
app/services/ingestion_service.py

Tabular ingestion: turn an uploaded sheet into canonical product records.

Header cells are normalized and resolved through a static alias table;
unrecognized columns are dropped. Row problems are collected as strings
and never abort the sheet.
"""

from __future__ import annotations

import io
import logging
import re
from collections.abc import Sequence
from functools import lru_cache
from pathlib import PurePath
from typing import Any
from urllib.parse import urlparse

import pandas as pd

from app.config import get_ingestion_settings
from app.domain.adaptation import IngestionResult
from app.domain.catalog import ProductRecord

logger = logging.getLogger(__name__)

REQUIRED_STANDARD_FIELDS: tuple[str, ...] = ("sku", "title")
SUPPORTED_EXTENSIONS: tuple[str, ...] = (".csv", ".xlsx", ".xls")

STANDARD_FIELD_ALIASES: dict[str, str] = {
    # Identity
    "sku": "sku",
    "sku_id": "sku",
    "product_id": "sku",
    "item_id": "sku",
    "id": "sku",
    "title": "title",
    "product_name": "title",
    "product_title": "title",
    "name": "title",
    "item_name": "title",
    # Brand
    "brand": "brand",
    "brand_name": "brand",
    "manufacturer": "brand",
    # Category
    "category": "category",
    "product_type": "category",
    "item_type": "category",
    "category_path": "category",
    "product_category": "category",
    # Material
    "material": "material",
    "material_type": "material",
    "fabric": "material",
    "fabric_material": "material",
    # Gender
    "gender": "gender",
    "target_gender": "gender",
    "gender_target": "gender",
    "department": "gender",
    # Color
    "color": "color",
    "colour": "color",
    "color_name": "color",
    "primary_color": "color",
    "color_desc": "color",
    # Size
    "size": "size",
    "size_name": "size",
    "size_info": "size",
    # Description
    "description": "description",
    "product_description": "description",
    "product_desc": "description",
    "long_description": "description",
    # Price
    "price": "price",
    "selling_price": "price",
    "list_price": "price",
    "retail_price": "price",
    "unit_price": "price",
    # Images
    "images": "images",
    "image_urls": "images",
    "product_images": "images",
    "main_image": "images",
    "image_url": "images",
}

_NON_ALNUM_RUN = re.compile(r"[^a-z0-9]+")
_IMAGE_SEPARATORS = re.compile(r"[,;|\n]")
_PRICE_NOISE = re.compile(r"[^\d.,]")


class UnsupportedFileError(ValueError):
    """
    Raised when an upload cannot be read as a sheet.
    """


class RowConversionError(ValueError):
    """
    Raised for one row that cannot become a product record.
    """


def normalize_field_name(header: Any) -> str:
    """
    Lower-case, trim, collapse non-alphanumeric runs to `_`, strip edge `_`.
    """

    return _NON_ALNUM_RUN.sub("_", str(header).strip().lower()).strip("_")


def standard_field_name(header: Any) -> str | None:
    return STANDARD_FIELD_ALIASES.get(normalize_field_name(header))


def parse_price(raw: Any) -> float | None:
    """
    Parse a currency string; return None when no number can be read.

    Commas count as decimal separators ("99,90" -> 99.9). When several
    separators remain, only the last one is decimal ("1,234.56" -> 1234.56).
    """

    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return None if pd.isna(raw) else float(raw)

    cleaned = _PRICE_NOISE.sub("", str(raw)).replace(",", ".")
    if not cleaned:
        return None
    whole, separator, fraction = cleaned.rpartition(".")
    if separator:
        cleaned = f"{whole.replace('.', '')}.{fraction}"
    try:
        return float(cleaned)
    except ValueError:
        return None


def is_valid_url(value: str) -> bool:
    parsed = urlparse(value)
    return bool(parsed.scheme) and bool(parsed.netloc)


def parse_image_urls(raw: Any) -> list[str]:
    """
    Split an image cell on `, ; | newline` and keep well-formed URLs.
    """

    if raw is None:
        return []
    parts = raw if isinstance(raw, (list, tuple)) else _IMAGE_SEPARATORS.split(str(raw))
    urls = [str(part).strip() for part in parts]
    return [url for url in urls if url and is_valid_url(url)]


def _is_blank_cell(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and pd.isna(value):
        return True
    return isinstance(value, str) and value.strip() == ""


class TabularIngestionNormalizer:
    """
    Converts a header row plus data rows into canonical product records.
    """

    def __init__(self, *, log_validation_errors: bool = True) -> None:
        self._log_validation_errors = log_validation_errors

    def normalize(
        self,
        header_row: Sequence[Any],
        data_rows: Sequence[Sequence[Any]],
        *,
        file_name: str | None = None,
    ) -> IngestionResult:
        if not header_row or not data_rows:
            return IngestionResult(
                records=[],
                errors=["File must contain at least a header row and one data row"],
                total_rows=len(data_rows),
                valid_rows=0,
                file_name=file_name,
                headers=[str(header) for header in header_row or []],
            )

        fields = [standard_field_name(header) for header in header_row]
        errors: list[str] = []

        missing = [name for name in REQUIRED_STANDARD_FIELDS if name not in fields]
        if missing:
            self._record_error(errors, f"Missing required fields: {', '.join(missing)}")

        records: list[ProductRecord] = []
        # Header is spreadsheet row 1.
        for row_number, row in enumerate(data_rows, start=2):
            try:
                records.append(self.convert_row(fields, row))
            except RowConversionError as exc:
                self._record_error(errors, f"Row {row_number}: {exc}")

        logger.info(
            "Sheet normalized file=%s total_rows=%s valid_rows=%s errors=%s",
            file_name,
            len(data_rows),
            len(records),
            len(errors),
        )
        return IngestionResult(
            records=records,
            errors=errors,
            total_rows=len(data_rows),
            valid_rows=len(records),
            file_name=file_name,
            headers=[str(header) for header in header_row],
        )

    def convert_row(self, fields: Sequence[str | None], row: Sequence[Any]) -> ProductRecord:
        """
        Build one record from a row aligned with resolved header fields.
        """

        record: ProductRecord = {}
        for index, field_name in enumerate(fields):
            if field_name is None or index >= len(row):
                continue
            value = row[index]
            if _is_blank_cell(value):
                continue

            if field_name == "images":
                record["images"] = parse_image_urls(value)
            elif field_name == "price":
                price = parse_price(value)
                if price is not None:
                    record["price"] = price
            else:
                record[field_name] = str(value).strip()

        if not record.get("sku"):
            raise RowConversionError("SKU is required")
        if not record.get("title"):
            raise RowConversionError("Product title is required")
        return record

    def field_mapping_suggestions(self, headers: Sequence[Any]) -> dict[str, list[str]]:
        """
        Group raw headers by the standard field each resolves to.
        """

        suggestions: dict[str, list[str]] = {}
        for header in headers:
            field_name = standard_field_name(header)
            if field_name is not None:
                suggestions.setdefault(field_name, []).append(str(header))
        return suggestions

    def _record_error(self, errors: list[str], message: str) -> None:
        errors.append(message)
        if self._log_validation_errors:
            logger.warning("Sheet validation error: %s", message)


def read_tabular_file(
    file_name: str,
    content: bytes,
    *,
    max_bytes: int | None = None,
) -> tuple[list[str], list[list[Any]]]:
    """
    Read the first sheet of a CSV or Excel upload as (header_row, data_rows).

    Cells are read as strings so that SKUs and prices keep their raw form.
    """

    extension = PurePath(file_name or "").suffix.lower()
    if extension not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFileError(
            f"Unsupported file type '{extension or file_name}'. "
            f"Supported types: {', '.join(SUPPORTED_EXTENSIONS)}."
        )
    if max_bytes is not None and len(content) > max_bytes:
        raise UnsupportedFileError(f"File exceeds maximum upload size of {max_bytes} bytes.")
    if not content:
        raise UnsupportedFileError("Uploaded file is empty.")

    buffer = io.BytesIO(content)
    try:
        if extension == ".csv":
            frame = pd.read_csv(
                buffer,
                header=None,
                dtype=str,
                keep_default_na=False,
                encoding="utf-8-sig",
                skip_blank_lines=True,
            )
        else:
            frame = pd.read_excel(buffer, header=None, dtype=str, keep_default_na=False, sheet_name=0)
    except (ValueError, UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise UnsupportedFileError(f"Failed to read {file_name}: {exc}") from exc

    rows = frame.values.tolist()
    if not rows:
        return [], []
    header_row = [str(cell) for cell in rows[0]]
    data_rows = [list(row) for row in rows[1:] if any(not _is_blank_cell(cell) for cell in row)]
    return header_row, data_rows


class SheetIngestionService:
    """
    Reads an uploaded file and normalizes it in one call.
    """

    def __init__(
        self,
        *,
        max_upload_bytes: int,
        normalizer: TabularIngestionNormalizer | None = None,
    ) -> None:
        self._max_upload_bytes = max_upload_bytes
        self._normalizer = normalizer or TabularIngestionNormalizer()

    @property
    def normalizer(self) -> TabularIngestionNormalizer:
        return self._normalizer

    def ingest(self, *, file_name: str, content: bytes) -> IngestionResult:
        header_row, data_rows = read_tabular_file(file_name, content, max_bytes=self._max_upload_bytes)
        return self._normalizer.normalize(header_row, data_rows, file_name=file_name)


@lru_cache(maxsize=1)
def get_sheet_ingestion_service() -> SheetIngestionService:
    """
    Return singleton ingestion service configured from environment settings.
    """

    settings = get_ingestion_settings()
    return SheetIngestionService(
        max_upload_bytes=settings.max_upload_bytes,
        normalizer=TabularIngestionNormalizer(log_validation_errors=settings.log_validation_errors),
    )
