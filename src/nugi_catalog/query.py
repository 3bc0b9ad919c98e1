# src/nugi_catalog/query.py
from __future__ import annotations

from typing import Iterable, List, Literal, Mapping, Optional, Sequence, Tuple

from pydantic import BaseModel, Field, field_validator

from .normalize import coerce_number, is_finite_number, positive
from .schema import CamelModel, UnifiedProduct

ALL = "all"

# Slider bounds always included in the facet ranges
DEFAULT_PRICE_RANGE: Tuple[float, float] = (50000, 2000000)
DEFAULT_BLADE_LENGTH_RANGE: Tuple[float, float] = (5, 50)

SortField = Literal["price", "title", "category"]
SortOrder = Literal["asc", "desc"]


class FilterSpec(BaseModel):
    type: str = ALL
    category: str = ALL
    search: str = ""
    steel: str = ALL
    handle: str = ALL
    maker: str = ALL
    price: Optional[Tuple[float, float]] = None
    blade_length: Optional[Tuple[float, float]] = None
    sort_by: SortField = "price"
    sort_order: SortOrder = "asc"

    @field_validator("sort_by", mode="before")
    @classmethod
    def _sort_by(cls, v):
        return v if v in ("price", "title", "category") else "price"

    @field_validator("sort_order", mode="before")
    @classmethod
    def _sort_order(cls, v):
        return "desc" if v == "desc" else "asc"

    @classmethod
    def from_query_params(cls, params: Mapping[str, str]) -> "FilterSpec":
        """
        Build filters from the storefront query string. Missing bounds of a
        range are open-ended.
        """
        def bounds(lo_key: str, hi_key: str) -> Optional[Tuple[float, float]]:
            lo = _bound(params.get(lo_key))
            hi = _bound(params.get(hi_key))
            if lo is None and hi is None:
                return None
            return (lo if lo is not None else float("-inf"), hi if hi is not None else float("inf"))

        return cls(
            type=params.get("type") or ALL,
            category=params.get("category") or ALL,
            search=params.get("search") or "",
            steel=params.get("steel") or ALL,
            handle=params.get("handle") or ALL,
            maker=params.get("maker") or ALL,
            price=bounds("minPrice", "maxPrice"),
            blade_length=bounds("minBlade", "maxBlade"),
            sort_by=params.get("sortBy") or "price",
            sort_order=params.get("sortOrder") or "asc",
        )


def _bound(value: Optional[str]) -> Optional[float]:
    if value is None or not str(value).strip():
        return None
    number = coerce_number(value)
    return number if is_finite_number(number) else None


class Range(BaseModel):
    min: float
    max: float


class Facets(CamelModel):
    steels: List[str] = Field(default_factory=list)
    handles: List[str] = Field(default_factory=list)
    makers: List[str] = Field(default_factory=list)
    price_range: Range
    blade_length_range: Range


class QueryResult(BaseModel):
    results: List[UnifiedProduct]
    facets: Facets
    total: int


# --------------------------
# Filtering
# --------------------------
def _in_range(value, bounds: Optional[Tuple[float, float]]) -> bool:
    if bounds is None:
        return True
    lo, hi = bounds
    return is_finite_number(value) and lo <= value <= hi


def matches(product: UnifiedProduct, spec: FilterSpec) -> bool:
    if spec.type != ALL and product.type != spec.type:
        return False
    if spec.category != ALL and product.category != spec.category:
        return False
    if spec.search:
        needle = spec.search.lower()
        haystack = [product.title, product.description or ""]
        if not any(needle in text.lower() for text in haystack):
            return False
    if spec.steel != ALL and product.steel != spec.steel:
        return False
    if spec.handle != ALL and product.handle_material != spec.handle:
        return False
    if spec.maker != ALL and spec.maker not in product.maker_names():
        return False
    if not _in_range(product.price, spec.price):
        return False
    if not _in_range(product.blade_length_cm, spec.blade_length):
        return False
    return True


def sort_products(products: Sequence[UnifiedProduct], sort_by: str = "price", order: str = "asc") -> List[UnifiedProduct]:
    """
    Stable sort. Strings compare by code point, no locale collation.
    """
    attr = {"price": "price", "title": "title", "category": "category"}.get(sort_by, "price")
    return sorted(products, key=lambda p: getattr(p, attr), reverse=(order == "desc"))


# --------------------------
# Facets
# --------------------------
def _value_range(values: Iterable[float], bounds: Tuple[float, float]) -> Range:
    values = [v for v in values if positive(v)]
    return Range(min=min(values + [bounds[0]]), max=max(values + [bounds[1]]))


def compute_facets(products: Sequence[UnifiedProduct]) -> Facets:
    """
    Filter options derived from the candidate set. Callers pass the unfiltered
    catalog so that choosing one filter does not narrow the others.
    """
    steels = sorted({p.steel for p in products if p.steel})
    handles = sorted({p.handle_material for p in products if p.handle_material})
    makers = sorted({name for p in products for name in p.maker_names()})
    return Facets(
        steels=steels,
        handles=handles,
        makers=makers,
        price_range=_value_range((p.price for p in products), DEFAULT_PRICE_RANGE),
        blade_length_range=_value_range((p.blade_length_cm for p in products), DEFAULT_BLADE_LENGTH_RANGE),
    )


def query_products(products: Iterable[UnifiedProduct], spec: Optional[FilterSpec] = None) -> QueryResult:
    spec = spec or FilterSpec()
    candidates = list(products)
    filtered = [p for p in candidates if matches(p, spec)]
    results = sort_products(filtered, spec.sort_by, spec.sort_order)
    return QueryResult(results=results, facets=compute_facets(candidates), total=len(results))
