# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""In-memory catalog of server offerings."""

from servercat.catalog.models import Product, ProductStatus, SelfLink
from servercat.catalog.repository import InMemoryProductRepository, ProductRepository
from servercat.catalog.service import ProductCatalog

__all__ = [
    "InMemoryProductRepository",
    "Product",
    "ProductCatalog",
    "ProductRepository",
    "ProductStatus",
    "SelfLink",
]
