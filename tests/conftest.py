"""Shared fixtures for the catalog test suite."""

import pytest

from nugi_catalog.schema import MakerInfo, UnifiedProduct
from nugi_catalog.storage import JsonFileStore, MemoryStore

CSV_HEADER = "Title,Price,Category,Images,Steel,HandleMaterial,BladeLengthCm,HandleLengthCm,BladeStyle,HandleStyle"
TANTO_ROW = "Tanto X,500000,Tactical,/img1.jpg;/img2.jpg,D2,G10,12,11,Tanto,Textured"

STAMP = "2024-01-01T00:00:00.000Z"


def _make_product(**overrides) -> UnifiedProduct:
    data = dict(
        id="k_1",
        title="Chef Knife",
        price=850000,
        type="knife",
        category="Kitchen",
        images=["/img/chef.jpg"],
        image="/img/chef.jpg",
        steel="Damascus",
        handle_material="Pakka Wood",
        blade_length_cm=20,
        handle_length_cm=12,
        blade_style="Chef",
        handle_style="Ergonomic",
        created_at=STAMP,
        updated_at=STAMP,
    )
    data.update(overrides)
    if "images" in overrides and "image" not in overrides:
        data["image"] = data["images"][0] if data["images"] else None
    return UnifiedProduct(**data)


@pytest.fixture
def make_product():
    """Factory for canonical products with sensible defaults."""
    return _make_product


@pytest.fixture
def catalog():
    """A small mixed catalog of knives and tools."""
    return [
        _make_product(),
        _make_product(
            id="k_2", title="Tanto Tactical", price=450000, category="Tactical",
            images=["/img/tanto.jpg"], steel="D2", handle_material="G10",
            blade_length_cm=15, description="Tough drop-in for outdoor work",
            created_by=MakerInfo(email="budi@example.com", name="Budi"),
        ),
        _make_product(
            id="t_1", title="Forest Axe", price=1200000, type="tool", category="Axe",
            images=["/img/axe.jpg"], steel="1075", handle_material="Hickory",
            blade_length_cm=9, handle_length_cm=60,
            updated_by=MakerInfo(email="sari@example.com", name="Sari"),
        ),
        _make_product(
            id="t_2", title="Golok Machete", price=450000, type="tool", category="Machete",
            images=["/img/golok.jpg"], steel="D2", handle_material="Sono Wood",
            blade_length_cm=35, handle_length_cm=14,
            created_by=MakerInfo(email="budi@example.com", name="Budi"),
        ),
    ]


@pytest.fixture
def csv_text():
    return f"{CSV_HEADER}\n{TANTO_ROW}\n"


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def file_store(tmp_path):
    return JsonFileStore(tmp_path / "data" / "products.db.json")
