# src/nugi_catalog/normalize.py
from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ValidationError
from pydantic.alias_generators import to_camel

from .schema import MakerInfo, Number, SpecValue, UnifiedProduct, utc_now_iso
from .taxonomy import PRODUCT_TYPES, classify_category

log = logging.getLogger(__name__)


# --------------------------
# Coercion helpers
# --------------------------
def coerce_number(value: Any) -> float | int:
    """
    Best-effort numeric coercion for form and CSV values.

    Numbers pass through, blank strings count as 0, anything unparseable
    becomes NaN so callers can reject it with a finiteness check.
    """
    if value is None or isinstance(value, bool):
        return math.nan
    if isinstance(value, (int, float)):
        return value
    text = str(value).strip()
    if not text:
        return 0
    try:
        number = float(text)
    except ValueError:
        return math.nan
    return int(number) if number.is_integer() else number


def is_finite_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def clean_specs(value: Any) -> Optional[Dict[str, SpecValue]]:
    """
    Keep only string keys with string or numeric values. Anything that is not
    a mapping yields None.
    """
    if not isinstance(value, Mapping):
        return None
    out: Dict[str, SpecValue] = {}
    for k, v in value.items():
        if isinstance(v, bool) or not isinstance(v, (str, int, float)):
            continue
        out[str(k)] = v
    return out


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _text_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    return _text(value)


def _maker(value: Any) -> Optional[MakerInfo]:
    if value is None:
        return None
    if isinstance(value, MakerInfo):
        return value
    try:
        return MakerInfo.model_validate(value)
    except ValidationError:
        log.debug("Dropping malformed maker record: %r", value)
        return None


def _as_mapping(raw: Any) -> Dict[str, Any]:
    if isinstance(raw, BaseModel):
        return raw.model_dump(by_alias=True, exclude_none=True)
    if not isinstance(raw, Mapping):
        raise TypeError(f"Cannot normalize product from {type(raw).__name__}")
    # accept snake_case keys from Python callers alongside camelCase JSON
    return {(to_camel(k) if isinstance(k, str) and "_" in k else k): v for k, v in raw.items()}


def _first_present(*values: Any) -> Any:
    for v in values:
        if v is not None:
            return v
    return None


def _resolve_images(data: Mapping[str, Any]) -> List[str]:
    images = data.get("images")
    if isinstance(images, (list, tuple)) and len(images) > 0:
        return [_text(x) for x in images]
    image = data.get("image")
    if isinstance(image, str) and image:
        return [image]
    return []


# --------------------------
# Normalization
# --------------------------
def normalize_product(raw: Any) -> UnifiedProduct:
    """
    Convert any product shape (legacy flat product, knife/tool record without
    a type, or an already canonical product) into a UnifiedProduct.

    Total over mappings and models: bad values degrade to defaults instead of
    raising. Normalizing a canonical product returns an equal product.
    """
    data = _as_mapping(raw)

    resolved = classify_category(_text(data.get("category")))
    explicit_type = data.get("type")
    product_type = explicit_type if explicit_type in PRODUCT_TYPES else resolved.type

    images = _resolve_images(data)
    image = images[0] if images else _text_or_none(data.get("image"))

    price = data.get("price")
    thickness = data.get("bladeThicknessMm")
    weight = data.get("weightGr")

    now = utc_now_iso()

    return UnifiedProduct(
        id=_text(data.get("id")),
        title=_text(data.get("title")),
        price=coerce_number(price) if price is not None else 0,
        type=product_type,
        category=resolved.category,
        images=images,
        image=image,
        steel=_text(data.get("steel")),
        handle_material=_text(data.get("handleMaterial")),
        blade_length_cm=coerce_number(_first_present(data.get("bladeLengthCm"), data.get("bladeLength"), 0)),
        handle_length_cm=coerce_number(_first_present(data.get("handleLengthCm"), data.get("handleLength"), 0)),
        blade_thickness_mm=coerce_number(thickness) if thickness is not None else None,
        weight_gr=coerce_number(weight) if weight is not None else None,
        blade_style=_text(data.get("bladeStyle")),
        handle_style=_text(data.get("handleStyle")),
        description=_text_or_none(data.get("description")),
        specs=clean_specs(data.get("specs")),
        created_at=_text_or_none(data.get("createdAt")) or now,
        updated_at=_text_or_none(data.get("updatedAt")) or now,
        created_by=_maker(data.get("createdBy")),
        updated_by=_maker(data.get("updatedBy")),
    )


def merge_update(existing: UnifiedProduct, updates: Any) -> UnifiedProduct:
    """
    Apply a partial update over a stored product. The id and creation time
    stay those of the stored record; updatedAt is refreshed.
    """
    patch = {k: v for k, v in _as_mapping(updates).items() if v is not None}
    # a bare legacy image replaces the gallery instead of being shadowed by it
    if "image" in patch and "images" not in patch:
        patch["images"] = [patch["image"]]

    data = existing.to_dict()
    # the stored type follows the stored category; re-derive it on a category change
    if "category" in patch and "type" not in patch:
        data.pop("type", None)
    # the stored cover image would otherwise rebuild a gallery the patch emptied
    if "images" in patch:
        data.pop("image", None)
    data.update(patch)
    data["id"] = existing.id
    data["createdAt"] = existing.created_at
    data["updatedAt"] = utc_now_iso()
    return normalize_product(data)


def positive(value: Optional[Number]) -> bool:
    return is_finite_number(value) and value > 0
