# src/nugi_catalog/errors.py
from __future__ import annotations

from typing import List


class CatalogError(Exception):
    """Base class for catalog errors surfaced to callers."""


class ProductNotFoundError(CatalogError):
    def __init__(self, product_id: str):
        super().__init__(f"Produk tidak ditemukan: {product_id}")
        self.product_id = product_id


class ProductValidationError(CatalogError):
    """Raised with every missing or invalid field at once."""

    def __init__(self, missing: List[str]):
        super().__init__("Field yang kurang: " + ", ".join(missing))
        self.missing = list(missing)
