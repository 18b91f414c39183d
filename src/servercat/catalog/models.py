# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Product entity: a priced server offering with hardware specs and a lifecycle status."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator


class ProductStatus(StrEnum):
    ACTIVE = "activo"
    INACTIVE = "inactivo"
    MAINTENANCE = "mantenimiento"


class SelfLink(BaseModel):
    link: str


class Product(BaseModel):
    """A catalog entry.

    Wire names (aliases) are the Spanish field names clients send and
    receive; Python attributes use English names.  Assignments are
    re-validated, so an instance cannot drift into an invalid state.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        validate_assignment=True,
        str_strip_whitespace=True,
    )

    id: int
    title: str = Field(alias="titulo", min_length=1)
    description: str = Field(alias="descripcion", min_length=1)
    price: int | float = Field(alias="precio")
    cores: StrictInt = Field(alias="nucleos", ge=1)
    ram: StrictInt = Field(alias="ram", ge=1)
    disk: StrictInt = Field(alias="disco", ge=1)
    cluster: str | None = Field(default=None, alias="cluster")
    status: ProductStatus = Field(default=ProductStatus.ACTIVE, alias="estado")
    created_at: str = Field(alias="fechaCreacion")
    self_link: SelfLink = Field(alias="self")

    @field_validator("price")
    @classmethod
    def _non_negative_price(cls, v: int | float) -> int | float:
        if isinstance(v, bool) or v < 0:
            raise ValueError("precio must be a non-negative number")
        return v

    @field_validator("cluster")
    @classmethod
    def _blank_cluster_is_none(cls, v: str | None) -> str | None:
        return v or None

    def change_status(self, status: str | ProductStatus) -> None:
        try:
            self.status = ProductStatus(status)
        except ValueError as exc:
            allowed = ", ".join(s.value for s in ProductStatus)
            raise ValueError(f"Invalid status. Allowed: {allowed}") from exc

    def to_public(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")
