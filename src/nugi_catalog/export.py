# src/nugi_catalog/export.py
from __future__ import annotations

import csv
from datetime import date
from typing import Iterable, List, Optional

import pandas as pd

from .schema import UnifiedProduct, to_legacy_product, utc_now_iso

EXPORT_COLUMNS = [
    "id",
    "title",
    "price",
    "category",
    "images",
    "steel",
    "handleMaterial",
    "bladeLengthCm",
    "handleLengthCm",
    "bladeStyle",
    "handleStyle",
    "createdAt",
]

# Columns of the first storefront: one image, lengths without unit suffix
LEGACY_EXPORT_COLUMNS = [
    "id",
    "title",
    "price",
    "category",
    "image",
    "steel",
    "handleMaterial",
    "bladeLength",
    "handleLength",
    "bladeStyle",
    "handleStyle",
]

# Template rows offered when there is nothing to export yet
EXAMPLE_ROWS = [
    {
        "id": "",
        "title": "Pisau Chef Damascus Premium",
        "price": 850000,
        "category": "Kitchen",
        "images": "/images/chef-damascus.jpg",
        "steel": "Damascus Steel",
        "handleMaterial": "Pakka Wood",
        "bladeLengthCm": 20,
        "handleLengthCm": 12,
        "bladeStyle": "Chef Knife",
        "handleStyle": "Ergonomic",
    },
    {
        "id": "",
        "title": "Tactical Survival Knife",
        "price": 450000,
        "category": "Tactical",
        "images": "/images/tactical-survival.jpg",
        "steel": "D2 Steel",
        "handleMaterial": "G10",
        "bladeLengthCm": 15,
        "handleLengthCm": 11,
        "bladeStyle": "Drop Point",
        "handleStyle": "Textured Grip",
    },
]


def product_to_row(product: UnifiedProduct) -> dict:
    """Flatten a product into export columns; images are joined with ';'."""
    return {
        "id": product.id,
        "title": product.title,
        "price": product.price,
        "category": product.category,
        "images": ";".join(product.images),
        "steel": product.steel,
        "handleMaterial": product.handle_material,
        "bladeLengthCm": product.blade_length_cm,
        "handleLengthCm": product.handle_length_cm,
        "bladeStyle": product.blade_style,
        "handleStyle": product.handle_style,
        "createdAt": product.created_at or utc_now_iso(),
    }


def export_filename(today: Optional[date] = None, legacy: bool = False) -> str:
    today = today or date.today()
    kind = "products-legacy" if legacy else "products"
    return f"nugi-home-{kind}-{today.isoformat()}.csv"


def products_to_csv(products: Iterable[UnifiedProduct], include_examples: bool = True) -> str:
    """
    Render products as CSV text that the importer reads back. An empty
    catalog yields the example rows so admins get a filled-in template.
    """
    rows: List[dict] = [product_to_row(p) for p in products]
    if not rows and include_examples:
        now = utc_now_iso()
        rows = [{**r, "createdAt": now} for r in EXAMPLE_ROWS]
    df = pd.DataFrame(rows, columns=EXPORT_COLUMNS)
    return df.to_csv(index=False, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")


def products_to_legacy_csv(products: Iterable[UnifiedProduct]) -> str:
    """
    Render products in the single-image layout older spreadsheets use. Only
    the cover image survives; the importer reads the result back through its
    legacy column aliases.
    """
    rows = [to_legacy_product(p).to_dict() for p in products]
    df = pd.DataFrame(rows, columns=LEGACY_EXPORT_COLUMNS)
    return df.to_csv(index=False, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
