# src/nugi_catalog/validation.py
from __future__ import annotations

from typing import List

from .errors import ProductValidationError
from .normalize import positive
from .schema import UnifiedProduct
from .taxonomy import get_taxonomy

REQUIRED_TEXT = [
    ("steel", "steel"),
    ("handle_material", "handleMaterial"),
    ("blade_style", "bladeStyle"),
    ("handle_style", "handleStyle"),
]


def invalid_fields(product: UnifiedProduct) -> List[str]:
    """
    Names (camelCase, as the admin form sends them) of every field that keeps
    the product from being persisted. Empty when the product is complete.
    """
    missing: List[str] = []
    if not product.title.strip():
        missing.append("title")
    if not positive(product.price):
        missing.append("price")
    if not get_taxonomy().is_valid_category(product.category):
        missing.append("category")
    if not any(img.strip() for img in product.images):
        missing.append("images")
    for attr, name in REQUIRED_TEXT:
        if not getattr(product, attr).strip():
            missing.append(name)
    if not positive(product.blade_length_cm):
        missing.append("bladeLengthCm")
    if not positive(product.handle_length_cm):
        missing.append("handleLengthCm")
    if product.blade_thickness_mm is not None and not positive(product.blade_thickness_mm):
        missing.append("bladeThicknessMm")
    if product.weight_gr is not None and not positive(product.weight_gr):
        missing.append("weightGr")
    return missing


def validate_product(product: UnifiedProduct) -> UnifiedProduct:
    missing = invalid_fields(product)
    if missing:
        raise ProductValidationError(missing)
    return product
