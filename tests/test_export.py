"""Tests for CSV export."""

from datetime import date

from nugi_catalog.csv_import import parse_product_csv, split_csv_line
from nugi_catalog.export import (
    EXPORT_COLUMNS,
    LEGACY_EXPORT_COLUMNS,
    export_filename,
    products_to_csv,
    products_to_legacy_csv,
)


def test_export_reimports(catalog):
    text = products_to_csv(catalog)
    rows = parse_product_csv(text)
    assert [r.id for r in rows] == ["k_1", "k_2", "t_1", "t_2"]
    assert rows[2].type == "tool"
    assert rows[0].price == 850000
    assert rows[1].handle_material == "G10"


def test_header_row(catalog):
    header = products_to_csv(catalog).splitlines()[0]
    assert split_csv_line(header) == EXPORT_COLUMNS


def test_multiple_images_joined(make_product):
    text = products_to_csv([make_product(images=["/a.jpg", "/b.jpg"])])
    assert "/a.jpg;/b.jpg" in text
    assert parse_product_csv(text)[0].images == ["/a.jpg", "/b.jpg"]


def test_title_with_comma_is_quoted(make_product):
    text = products_to_csv([make_product(title="Knife, Large")])
    assert '"Knife, Large"' in text
    assert parse_product_csv(text)[0].title == "Knife, Large"


def test_empty_catalog_gets_example_rows():
    rows = parse_product_csv(products_to_csv([]))
    assert [r.title for r in rows] == ["Pisau Chef Damascus Premium", "Tactical Survival Knife"]
    assert all(r.id is None for r in rows)


def test_empty_catalog_without_examples():
    assert products_to_csv([], include_examples=False).strip() == ",".join(EXPORT_COLUMNS)


def test_filename():
    assert export_filename(date(2024, 3, 9)) == "nugi-home-products-2024-03-09.csv"
    assert export_filename(date(2024, 3, 9), legacy=True) == "nugi-home-products-legacy-2024-03-09.csv"


def test_legacy_export_keeps_cover_image_only(make_product):
    text = products_to_legacy_csv([make_product(images=["/a.jpg", "/b.jpg"])])
    assert split_csv_line(text.splitlines()[0]) == LEGACY_EXPORT_COLUMNS
    row = parse_product_csv(text)[0]
    assert row.images == ["/a.jpg"]
    assert row.blade_length_cm == 20
    assert row.handle_length_cm == 12


def test_legacy_export_of_product_without_images(make_product):
    text = products_to_legacy_csv([make_product(images=[])])
    assert parse_product_csv(text) == []
