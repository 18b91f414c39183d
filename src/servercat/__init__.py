# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""servercat - Hardened CRUD API over an in-memory server-offering catalog."""

__version__ = "0.2.0"

__all__ = ["__version__"]
