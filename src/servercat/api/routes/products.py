# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Product CRUD endpoints, mounted under both ``/products`` and ``/productos``."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Query

from servercat.api.deps import AppServices, get_services
from servercat.api.rbac import (
    Principal,
    check_resource_ownership,
    require_create,
    require_delete,
    require_read,
    require_update,
)
from servercat.catalog.validation import parse_product_id
from servercat.security.integrity import unwrap_signed_payload

router = APIRouter()


@router.get("")
async def list_products(
    search: str | None = Query(default=None, description="Case-insensitive title substring"),
    estado: str | None = Query(default=None, description="activo | inactivo | mantenimiento"),
    services: AppServices = Depends(get_services),
    _principal: Principal = Depends(require_read),
) -> list[dict[str, Any]]:
    """List products, optionally filtered by title and status."""
    products = await services.catalog.list_products(search=search, status=estado)
    return [p.to_public() for p in products]


@router.get("/{product_id}")
async def get_product(
    product_id: str,
    services: AppServices = Depends(get_services),
    _principal: Principal = Depends(require_read),
) -> dict[str, Any]:
    product = await services.catalog.get(parse_product_id(product_id))
    return product.to_public()


@router.post("", status_code=201)
async def create_product(
    payload: dict[str, Any] = Body(...),
    services: AppServices = Depends(get_services),
    _principal: Principal = Depends(require_create),
) -> dict[str, Any]:
    """Create a product; signed bodies (``data``/``signature``/``timestamp``) are verified first."""
    data = unwrap_signed_payload(payload, services.integrity)
    product = await services.catalog.create(data)
    return product.to_public()


@router.api_route("/{product_id}", methods=["PUT", "PATCH"])
async def update_product(
    product_id: str,
    payload: dict[str, Any] = Body(...),
    services: AppServices = Depends(get_services),
    _principal: Principal = Depends(require_update),
    _owner: Principal = Depends(check_resource_ownership),
) -> dict[str, Any]:
    """Partially update a product; PUT and PATCH behave identically."""
    pid = parse_product_id(product_id)
    data = unwrap_signed_payload(payload, services.integrity)
    product = await services.catalog.update(pid, data)
    return product.to_public()


@router.delete("/{product_id}", status_code=204)
async def delete_product(
    product_id: str,
    services: AppServices = Depends(get_services),
    _principal: Principal = Depends(require_delete),
    _owner: Principal = Depends(check_resource_ownership),
) -> None:
    await services.catalog.delete(parse_product_id(product_id))
