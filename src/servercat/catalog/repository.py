# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Product storage interface and the process-local in-memory implementation."""

from __future__ import annotations

import abc
from typing import Any

from servercat.catalog.models import Product, ProductStatus


class ProductRepository(abc.ABC):
    """Abstract product store.

    Implementations are async so the catalog service can be backed by a
    real database without changing callers.
    """

    @abc.abstractmethod
    async def find_all(self) -> list[Product]:
        """Return every product in insertion order."""

    @abc.abstractmethod
    async def find_by_id(self, product_id: int) -> Product | None:
        """Return the product with *product_id*, or ``None``."""

    @abc.abstractmethod
    async def save(self, product: Product) -> Product:
        """Store a new product and return it."""

    @abc.abstractmethod
    async def update(self, product_id: int, changes: dict[str, Any]) -> Product | None:
        """Merge *changes* (wire field names) into a product; ``None`` if absent."""

    @abc.abstractmethod
    async def delete(self, product_id: int) -> bool:
        """Remove a product; returns whether anything was removed."""

    @abc.abstractmethod
    async def next_id(self) -> int:
        """Reserve and return the next product id."""

    @abc.abstractmethod
    async def find_by_title(self, term: str) -> list[Product]:
        """Case-insensitive substring search over titles."""

    @abc.abstractmethod
    async def find_by_status(self, status: ProductStatus | str) -> list[Product]:
        """Return products currently in *status*."""


def _seed_products() -> list[Product]:
    return [
        Product(
            id=1,
            titulo="Servidor VPS Básico",
            descripcion="Servidor VPS con recursos básicos para proyectos pequeños",
            precio=9990,
            nucleos=1,
            ram=1,
            disco=20,
            cluster="Cluster Norte",
            estado=ProductStatus.ACTIVE,
            fechaCreacion="2023-11-04T14:30:00Z",
            self={"link": "https://ejemplo.com/productos/1"},
        ),
        Product(
            id=2,
            titulo="Servidor VPS Avanzado",
            descripcion="Servidor VPS con más recursos para aplicaciones medianas",
            precio=12990,
            nucleos=2,
            ram=2,
            disco=50,
            cluster="Cluster Sur",
            estado=ProductStatus.ACTIVE,
            fechaCreacion="2023-11-05T10:00:00Z",
            self={"link": "https://ejemplo.com/productos/2"},
        ),
    ]


class InMemoryProductRepository(ProductRepository):
    """List-backed store seeded with two sample offerings; ids start at 3."""

    def __init__(self, products: list[Product] | None = None, *, next_id: int | None = None) -> None:
        self._products: list[Product] = list(products) if products is not None else _seed_products()
        if next_id is None:
            next_id = max((p.id for p in self._products), default=0) + 1
        self._next_id = next_id

    def _index_of(self, product_id: int) -> int | None:
        for index, product in enumerate(self._products):
            if product.id == product_id:
                return index
        return None

    async def find_all(self) -> list[Product]:
        return list(self._products)

    async def find_by_id(self, product_id: int) -> Product | None:
        index = self._index_of(product_id)
        return self._products[index] if index is not None else None

    async def save(self, product: Product) -> Product:
        self._products.append(product)
        return product

    async def update(self, product_id: int, changes: dict[str, Any]) -> Product | None:
        index = self._index_of(product_id)
        if index is None:
            return None
        merged = self._products[index].model_dump(by_alias=True) | changes
        updated = Product.model_validate(merged)
        self._products[index] = updated
        return updated

    async def delete(self, product_id: int) -> bool:
        index = self._index_of(product_id)
        if index is None:
            return False
        del self._products[index]
        return True

    async def next_id(self) -> int:
        value = self._next_id
        self._next_id += 1
        return value

    async def find_by_title(self, term: str) -> list[Product]:
        needle = term.lower()
        return [p for p in self._products if needle in p.title.lower()]

    async def find_by_status(self, status: ProductStatus | str) -> list[Product]:
        return [p for p in self._products if p.status == status]
