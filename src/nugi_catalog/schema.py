# src/nugi_catalog/schema.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


Number = Union[int, float]
SpecValue = Union[str, int, float]
ProductType = Literal["knife", "tool"]


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class CamelModel(BaseModel):
    """
    Python attributes are snake_case; stored JSON and HTTP payloads use camelCase.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class MakerInfo(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    email: str = ""
    name: str = ""


class UnifiedProduct(CamelModel):
    """
    Canonical product record after normalization.

    Fields are lenient on purpose: normalization never rejects a record, and
    completeness is checked separately (see validation.py) before anything is
    persisted from untrusted input.
    """
    id: str = ""
    title: str = ""
    price: Number = 0
    type: ProductType = "knife"
    category: str = ""

    # images[0] is the cover; image mirrors it for older readers
    images: List[str] = Field(default_factory=list)
    image: Optional[str] = None

    steel: str = ""
    handle_material: str = ""

    # Dimensions
    blade_length_cm: Number = 0
    handle_length_cm: Number = 0
    blade_thickness_mm: Optional[Number] = None
    weight_gr: Optional[Number] = None

    # Styles
    blade_style: str = ""
    handle_style: str = ""

    description: Optional[str] = None
    specs: Optional[Dict[str, SpecValue]] = None

    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    created_by: Optional[MakerInfo] = None
    updated_by: Optional[MakerInfo] = None

    def maker_names(self) -> List[str]:
        names = []
        for maker in (self.created_by, self.updated_by):
            if maker is not None and maker.name:
                names.append(maker.name)
        return names


class RawProduct(CamelModel):
    """
    Untrusted product input (CSV row, admin form, legacy record). Every field
    is optional; normalize_product turns it into a UnifiedProduct.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    title: Optional[str] = None
    price: Optional[Any] = None
    type: Optional[str] = None
    category: Optional[str] = None

    images: Optional[List[str]] = None
    image: Optional[str] = None

    steel: Optional[str] = None
    handle_material: Optional[str] = None

    blade_length_cm: Optional[Any] = None
    handle_length_cm: Optional[Any] = None
    # legacy names, implicitly centimeters
    blade_length: Optional[Any] = None
    handle_length: Optional[Any] = None
    blade_thickness_mm: Optional[Any] = None
    weight_gr: Optional[Any] = None

    blade_style: Optional[str] = None
    handle_style: Optional[str] = None

    description: Optional[str] = None
    specs: Optional[Dict[str, SpecValue]] = None

    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    created_by: Optional[MakerInfo] = None
    updated_by: Optional[MakerInfo] = None


# Rows coming out of the CSV parser
ParsedRow = RawProduct


class LegacyProduct(CamelModel):
    """Single-image, single-category shape used by the first storefront."""
    id: str
    title: str
    price: Number
    category: str
    image: str
    steel: str
    handle_material: str
    blade_length: Number
    handle_length: Number
    blade_style: str
    handle_style: str


def to_legacy_product(product: UnifiedProduct) -> LegacyProduct:
    return LegacyProduct(
        id=product.id,
        title=product.title,
        price=product.price,
        category=product.category,
        image=product.images[0] if product.images else "",
        steel=product.steel,
        handle_material=product.handle_material,
        blade_length=product.blade_length_cm,
        handle_length=product.handle_length_cm,
        blade_style=product.blade_style,
        handle_style=product.handle_style,
    )
