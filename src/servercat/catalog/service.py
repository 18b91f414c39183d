# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Catalog use cases: list, fetch, create, update, and delete products."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from servercat.catalog.models import Product, SelfLink
from servercat.catalog.repository import ProductRepository
from servercat.catalog.validation import validate_create, validate_update
from servercat.core.exceptions import NotFoundError, ValidationFailedError

logger = logging.getLogger("servercat.catalog.service")

# Never writable by clients
PROTECTED_FIELDS: tuple[str, ...] = ("id", "fechaCreacion", "self", "link")


@contextmanager
def _entity_errors() -> Iterator[None]:
    """Report entity-level rejections as client validation errors."""
    try:
        yield
    except ValidationError as exc:
        details = [
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
        ]
        raise ValidationFailedError(
            "The provided product data does not meet the requirements", details=details
        ) from exc


class ProductCatalog:
    """Coordinates validation, id assignment, and persistence of products."""

    def __init__(self, repository: ProductRepository, *, public_base_url: str = "https://ejemplo.com") -> None:
        self._repo = repository
        self._base_url = public_base_url.rstrip("/")

    @property
    def repository(self) -> ProductRepository:
        return self._repo

    async def list_products(self, *, search: str | None = None, status: str | None = None) -> list[Product]:
        products = await self._repo.find_by_title(search) if search else await self._repo.find_all()
        if status:
            products = [p for p in products if p.status == status]
        return products

    async def get(self, product_id: int) -> Product:
        product = await self._repo.find_by_id(product_id)
        if product is None:
            raise NotFoundError(f"Product {product_id} not found")
        return product

    async def create(self, payload: Any) -> Product:
        data = validate_create(payload)
        with _entity_errors():
            draft = Product.model_validate(
                {
                    **data,
                    "id": 0,
                    "fechaCreacion": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
                    "self": {"link": ""},
                }
            )
        # Ids are only reserved for products that will actually be stored
        product_id = await self._repo.next_id()
        product = draft.model_copy(
            update={"id": product_id, "self_link": SelfLink(link=f"{self._base_url}/productos/{product_id}")}
        )
        saved = await self._repo.save(product)
        logger.info("Created product %d (%s)", saved.id, saved.title)
        return saved

    async def update(self, product_id: int, payload: Any) -> Product:
        if isinstance(payload, dict):
            payload = {k: v for k, v in payload.items() if k not in PROTECTED_FIELDS}
        changes = validate_update(payload)
        with _entity_errors():
            updated = await self._repo.update(product_id, changes)
        if updated is None:
            raise NotFoundError(f"Product {product_id} not found")
        logger.info("Updated product %d fields=%s", product_id, sorted(changes))
        return updated

    async def delete(self, product_id: int) -> None:
        if not await self._repo.delete(product_id):
            raise NotFoundError(f"Product {product_id} not found")
        logger.info("Deleted product %d", product_id)
