"""
Product endpoints

Reads come from the local projection; writes go through the mutation
gateway and show up once the next snapshot arrives.
"""
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from app.api.auth import get_session_manager, require_user
from app.models.product import Product
from app.services import metrics
from app.services.product_filter import filter_products
from app.services.session import SessionManager

router = APIRouter(prefix="/products", tags=["products"], dependencies=[Depends(require_user)])
selection_router = APIRouter(prefix="/selection", tags=["products"], dependencies=[Depends(require_user)])


# ── Schemas ──────────────────────────────────────────────

class FieldUpdate(BaseModel):
    field: str
    value: Any = None


def _metrics_out(product: Product, threshold: float) -> dict:
    roas = metrics.calculate_roas(product.price, product.cogs)
    return {
        "cogs_display": metrics.format_currency(product.cogs),
        "price_display": metrics.format_currency(product.price),
        "margin_display": metrics.format_margin(product.price, product.cogs),
        "roas": roas,
        "roas_display": metrics.format_roas(roas),
        "roas_rating": metrics.roas_rating(roas, threshold),
    }


def _row_out(product: Product, threshold: float) -> dict:
    return {
        "id": product.id,
        "name": product.name,
        "status": product.status.value,
        "cogs": product.cogs,
        "price": product.price,
        **_metrics_out(product, threshold),
    }


def _threshold(manager: SessionManager) -> float:
    return manager.context.settings.roas_good_threshold


def _get_local(manager: SessionManager, product_id: str) -> Product:
    product = manager.product_store.get(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


# ── Products ─────────────────────────────────────────────

@router.get("")
async def list_products(
    q: str = Query("", description="Filter by name or status"),
    manager: SessionManager = Depends(get_session_manager),
):
    """Product list rows, newest first, optionally filtered."""
    store = manager.product_store
    threshold = _threshold(manager)
    items = filter_products(store.products, q)
    return {
        "count": len(store),
        "loading": store.loading,
        "selected_id": store.selected_id,
        "items": [_row_out(p, threshold) for p in items],
    }


@router.post("", status_code=201)
async def create_product(manager: SessionManager = Depends(get_session_manager)):
    """Create a blank product and select it."""
    product_id = await manager.gateway.create_product()
    if product_id is None:
        raise HTTPException(status_code=503, detail="Product could not be created")
    manager.product_store.select(product_id)
    return {"id": product_id}


@router.get("/{product_id}")
async def get_product(product_id: str, manager: SessionManager = Depends(get_session_manager)):
    """Every stored field plus derived metrics."""
    product = _get_local(manager, product_id)
    return {**product.to_document(), "metrics": _metrics_out(product, _threshold(manager))}


@router.patch("/{product_id}")
async def update_product(
    product_id: str,
    body: FieldUpdate,
    manager: SessionManager = Depends(get_session_manager),
):
    try:
        ok = await manager.gateway.update_field(product_id, body.field, body.value)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {"success": ok}


@router.delete("/{product_id}")
async def delete_product(product_id: str, manager: SessionManager = Depends(get_session_manager)):
    ok = await manager.gateway.delete_product(product_id)
    return {"success": ok}


# ── Competitors ──────────────────────────────────────────

@router.patch("/{product_id}/competitors/{index}")
async def update_competitor(
    product_id: str,
    index: int,
    body: FieldUpdate,
    manager: SessionManager = Depends(get_session_manager),
):
    product = _get_local(manager, product_id)
    if not 0 <= index < len(product.competitors):
        raise HTTPException(status_code=404, detail="Competitor not found")
    try:
        ok = await manager.gateway.update_competitor(product_id, index, body.field, body.value)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {"success": ok}


# ── Other links ──────────────────────────────────────────

@router.post("/{product_id}/links", status_code=201)
async def add_link(product_id: str, manager: SessionManager = Depends(get_session_manager)):
    _get_local(manager, product_id)
    link_id = await manager.gateway.add_link(product_id)
    if link_id is None:
        raise HTTPException(status_code=503, detail="Link could not be added")
    return {"id": link_id}


@router.patch("/{product_id}/links/{link_id}")
async def update_link(
    product_id: str,
    link_id: str,
    body: FieldUpdate,
    manager: SessionManager = Depends(get_session_manager),
):
    _get_local(manager, product_id)
    try:
        ok = await manager.gateway.update_link(product_id, link_id, body.field, body.value)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {"success": ok}


@router.delete("/{product_id}/links/{link_id}")
async def delete_link(product_id: str, link_id: str, manager: SessionManager = Depends(get_session_manager)):
    _get_local(manager, product_id)
    ok = await manager.gateway.delete_link(product_id, link_id)
    return {"success": ok}


# ── Selection ────────────────────────────────────────────

@selection_router.get("")
async def get_selection(manager: SessionManager = Depends(get_session_manager)):
    product = manager.product_store.selected
    if product is None:
        return {"selected_id": None, "product": None}
    return {
        "selected_id": product.id,
        "product": {**product.to_document(), "metrics": _metrics_out(product, _threshold(manager))},
    }


@selection_router.put("/{product_id}")
async def select_product(product_id: str, manager: SessionManager = Depends(get_session_manager)):
    _get_local(manager, product_id)
    manager.product_store.select(product_id)
    return {"selected_id": product_id}


@selection_router.delete("")
async def clear_selection(manager: SessionManager = Depends(get_session_manager)):
    manager.product_store.select(None)
    return {"selected_id": None}
