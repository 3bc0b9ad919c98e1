# src/nugi_catalog/taxonomy.py
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Dict, Mapping, Tuple

import yaml


KNIFE = "knife"
TOOL = "tool"
PRODUCT_TYPES: Tuple[str, ...] = (KNIFE, TOOL)


@dataclass(frozen=True)
class Classification:
    type: str
    category: str


class Taxonomy:
    """
    Closed set of categories per product type, plus the remap table for
    categories used by the first version of the catalog.
    """

    def __init__(self, raw: Dict):
        self.raw = raw

        types = raw.get("types", {}) or {}
        self.knife_categories: Tuple[str, ...] = tuple(types.get(KNIFE, []) or [])
        self.tool_categories: Tuple[str, ...] = tuple(types.get(TOOL, []) or [])
        self.all_categories: Tuple[str, ...] = self.knife_categories + self.tool_categories

        overlap = set(self.knife_categories) & set(self.tool_categories)
        if overlap:
            raise ValueError(f"Categories listed under both types: {sorted(overlap)}")

        self.legacy: Mapping[str, Classification] = {
            str(k): Classification(type=v["type"], category=v["category"])
            for k, v in (raw.get("legacy", {}) or {}).items()
        }
        self.default_type: str = raw.get("default_type", KNIFE)

    @staticmethod
    def load(path: str | Path | None = None) -> "Taxonomy":
        """
        Load taxonomy.yaml from the given path, or from the package directory by default.
        """
        if path is None:
            path = Path(__file__).with_name("taxonomy.yaml")
        path = Path(path)
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return Taxonomy(data or {})

    # -----------------------
    # Membership
    # -----------------------
    def is_knife_category(self, category: str) -> bool:
        return category in self.knife_categories

    def is_tool_category(self, category: str) -> bool:
        return category in self.tool_categories

    def is_valid_category(self, category: str) -> bool:
        return category in self.all_categories

    # -----------------------
    # Classification
    # -----------------------
    def classify(self, category: str) -> Classification:
        """
        Resolve the product type for a category string. Never raises: unknown
        categories keep their name and fall back to the default type.
        """
        if self.is_knife_category(category):
            return Classification(KNIFE, category)
        if self.is_tool_category(category):
            return Classification(TOOL, category)
        legacy = self.legacy.get(category)
        if legacy is not None:
            return legacy
        return Classification(self.default_type, category)

    def product_type(self, category: str) -> str:
        return self.classify(category).type


@lru_cache(maxsize=1)
def get_taxonomy() -> Taxonomy:
    return Taxonomy.load()


def classify_category(category: str) -> Classification:
    return get_taxonomy().classify(category)


def product_type_for(category: str) -> str:
    return get_taxonomy().product_type(category)


def is_knife_category(category: str) -> bool:
    return get_taxonomy().is_knife_category(category)


def is_tool_category(category: str) -> bool:
    return get_taxonomy().is_tool_category(category)


KNIFE_CATEGORIES: Tuple[str, ...] = get_taxonomy().knife_categories
TOOL_CATEGORIES: Tuple[str, ...] = get_taxonomy().tool_categories
ALL_CATEGORIES: Tuple[str, ...] = get_taxonomy().all_categories
