"""
app/api/routers/templates.py

Marketplace template HTTP endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from app.catalog.template_registry import (
    MarketplaceTemplateRegistry,
    TemplateUpdateError,
    UnknownMarketplaceError,
    get_template_registry,
)
from app.schemas.templates import (
    MarketplaceListResponse,
    MarketplaceTemplateResponse,
    TemplateUpdateRequest,
)

router = APIRouter(tags=["templates"])


@router.get("/templates", response_model=MarketplaceListResponse)
def list_marketplaces(
    registry: MarketplaceTemplateRegistry = Depends(get_template_registry),
) -> MarketplaceListResponse:
    return MarketplaceListResponse(marketplaces=registry.list_supported_marketplaces())


@router.get("/templates/{marketplace}", response_model=MarketplaceTemplateResponse)
def get_template(
    marketplace: str,
    registry: MarketplaceTemplateRegistry = Depends(get_template_registry),
) -> MarketplaceTemplateResponse:
    try:
        template = registry.require(marketplace)
    except UnknownMarketplaceError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return MarketplaceTemplateResponse.from_domain(template)


@router.patch("/templates/{marketplace}", response_model=MarketplaceTemplateResponse)
def update_template(
    marketplace: str,
    payload: TemplateUpdateRequest,
    registry: MarketplaceTemplateRegistry = Depends(get_template_registry),
) -> MarketplaceTemplateResponse:
    """
    Apply a partial update; the template version is bumped on success.
    """

    try:
        registry.update_template(marketplace, payload.changes)
        template = registry.require(marketplace)
    except UnknownMarketplaceError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except TemplateUpdateError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.to_dict(),
        ) from exc
    return MarketplaceTemplateResponse.from_domain(template)
