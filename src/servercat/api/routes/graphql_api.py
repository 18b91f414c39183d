# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""GraphQL endpoint exposing product queries and creation."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends
from graphql import GraphQLError, GraphQLResolveInfo, build_schema, graphql
from pydantic import BaseModel

from servercat.api.deps import AppServices, get_services
from servercat.api.rbac import Permission, Principal, authenticate, check_permission
from servercat.core.exceptions import ApiError

logger = logging.getLogger("servercat.api.graphql")

router = APIRouter()

SCHEMA_SDL = """
type SelfLink {
  link: String!
}

type Product {
  id: Int!
  titulo: String!
  descripcion: String!
  precio: Float!
  nucleos: Int!
  ram: Int!
  disco: Int!
  cluster: String
  estado: String!
  fechaCreacion: String!
  self: SelfLink!
}

type Query {
  products(search: String, estado: String): [Product!]!
  productos(search: String, estado: String): [Product!]!
  product(id: Int!): Product
  producto(id: Int!): Product
}

type Mutation {
  createProduct(
    titulo: String!
    descripcion: String!
    precio: Float!
    nucleos: Int!
    ram: Int!
    disco: Int!
    cluster: String
    estado: String
  ): Product!
  createProducto(
    titulo: String!
    descripcion: String!
    precio: Float!
    nucleos: Int!
    ram: Int!
    disco: Int!
    cluster: String
    estado: String
  ): Product!
}
"""

schema = build_schema(SCHEMA_SDL)


class GraphQLRequest(BaseModel):
    query: str
    variables: dict[str, Any] | None = None
    operationName: str | None = None


# ---------------------------------------------------------------------------
# Resolvers (looked up by field name on the root value)
# ---------------------------------------------------------------------------


def _context(info: GraphQLResolveInfo) -> tuple[AppServices, Principal]:
    return info.context["services"], info.context["principal"]


async def _resolve_products(
    info: GraphQLResolveInfo, search: str | None = None, estado: str | None = None
) -> list[dict[str, Any]]:
    services, principal = _context(info)
    check_permission(principal, Permission.READ_PRODUCTS)
    products = await services.catalog.list_products(search=search, status=estado)
    return [p.to_public() for p in products]


async def _resolve_product(info: GraphQLResolveInfo, id: int) -> dict[str, Any] | None:
    services, principal = _context(info)
    check_permission(principal, Permission.READ_PRODUCTS)
    product = await services.catalog.repository.find_by_id(id)
    return product.to_public() if product is not None else None


async def _resolve_create(info: GraphQLResolveInfo, **fields: Any) -> dict[str, Any]:
    services, principal = _context(info)
    check_permission(principal, Permission.CREATE_PRODUCTS)
    payload = {k: v for k, v in fields.items() if v is not None}
    product = await services.catalog.create(payload)
    return product.to_public()


ROOT_VALUE: dict[str, Any] = {
    "products": _resolve_products,
    "productos": _resolve_products,
    "product": _resolve_product,
    "producto": _resolve_product,
    "createProduct": _resolve_create,
    "createProducto": _resolve_create,
}


def _format_error(error: GraphQLError) -> dict[str, Any]:
    formatted = dict(error.formatted)
    original = error.original_error
    if isinstance(original, ApiError):
        formatted["extensions"] = {"code": original.error_code}
        if original.details is not None:
            formatted["extensions"]["details"] = original.details
    elif original is not None:
        logger.error("GraphQL resolver failed: %s", original, exc_info=original)
    return formatted


@router.post("/graphql")
async def graphql_endpoint(
    body: GraphQLRequest,
    services: AppServices = Depends(get_services),
    principal: Principal = Depends(authenticate),
) -> dict[str, Any]:
    """Execute a GraphQL document for an authenticated caller.

    Permission failures and validation errors surface in ``errors`` with
    their error code under ``extensions.code``.
    """
    result = await graphql(
        schema,
        body.query,
        root_value=ROOT_VALUE,
        context_value={"services": services, "principal": principal},
        variable_values=body.variables,
        operation_name=body.operationName,
    )
    response: dict[str, Any] = {"data": result.data}
    if result.errors:
        response["errors"] = [_format_error(e) for e in result.errors]
    return response
