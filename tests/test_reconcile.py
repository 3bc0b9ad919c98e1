"""Tests for import reconciliation against an existing catalog."""

import re

import pytest

from nugi_catalog.csv_import import parse_product_csv
from nugi_catalog.reconcile import apply_import, generate_id, reconcile
from nugi_catalog.schema import RawProduct

from conftest import STAMP


def _row(title, **kw):
    data = dict(
        title=title, price=500000, category="Tactical", images=["/a.jpg"], image="/a.jpg",
        steel="D2", handle_material="G10", blade_length_cm=12, handle_length_cm=11,
        blade_style="Tanto", handle_style="Textured", type="knife",
    )
    data.update(kw)
    return RawProduct(**data)


class TestAppend:
    def test_duplicate_title_is_case_insensitive(self, catalog):
        result = reconcile([_row("chef KNIFE"), _row("Brand New")], catalog, "append")
        assert result.stats.added == 1
        assert result.stats.skipped == 1
        assert [p.title for p in result.to_persist] == ["Brand New"]

    def test_duplicate_id_is_skipped(self, catalog):
        result = reconcile([_row("Another Name", id="k_2")], catalog, "append")
        assert result.stats.skipped == 1
        assert result.to_persist == []

    def test_generated_ids(self, catalog):
        result = reconcile([_row("One"), _row("Two")], catalog)
        ids = [p.id for p in result.to_persist]
        assert all(re.match(r"^p_[0-9a-z]+$", i) for i in ids)
        assert len(set(ids)) == 2

    def test_rows_kept_in_input_order(self):
        titles = [f"Knife {i}" for i in range(6)]
        result = reconcile([_row(t) for t in titles], [])
        assert [p.title for p in result.to_persist] == titles


class TestUpdateAndReplace:
    def test_update_counts(self, catalog):
        result = reconcile([_row("Chef Knife v2", id="k_1"), _row("Fresh", id="n_1")], catalog, "update")
        assert result.stats.updated == 1
        assert result.stats.added == 1
        assert len(result.to_persist) == 2

    def test_update_keeps_created_at(self, catalog):
        result = reconcile([_row("Chef Knife v2", id="k_1")], catalog, "update")
        merged = apply_import(catalog, result, "update")
        by_id = {p.id: p for p in merged}
        assert len(merged) == len(catalog)
        assert by_id["k_1"].title == "Chef Knife v2"
        assert by_id["k_1"].created_at == STAMP
        assert by_id["k_1"].updated_at != STAMP

    def test_replace_discards_previous_collection(self, catalog):
        result = reconcile([_row("Chef Knife"), _row("Only Other")], catalog, "replace")
        assert result.stats.added == 2
        merged = apply_import(catalog, result, "replace")
        assert sorted(p.title for p in merged) == ["Chef Knife", "Only Other"]

    def test_append_merge_keeps_existing(self, catalog):
        result = reconcile([_row("Brand New")], catalog, "append")
        merged = apply_import(catalog, result, "append")
        assert len(merged) == len(catalog) + 1


class TestErrors:
    def test_failing_row_is_recorded_and_others_continue(self, catalog, monkeypatch):
        import nugi_catalog.reconcile as reconcile_mod

        real = reconcile_mod.normalize_product

        def flaky(row):
            if row.title == "Broken":
                raise RuntimeError("boom")
            return real(row)

        monkeypatch.setattr(reconcile_mod, "normalize_product", flaky)
        result = reconcile([_row("Good"), _row("Broken"), _row("Also Good")], catalog)
        assert result.stats.added == 2
        assert result.stats.errors == ['Row "Broken": boom']

    @pytest.mark.parametrize("mode", ["merge", "", "APPEND"])
    def test_unknown_mode(self, mode):
        with pytest.raises(ValueError):
            reconcile([], [], mode)


def test_generate_id_shape():
    assert re.match(r"^p_[0-9a-z]+$", generate_id())
    assert generate_id("t_").startswith("t_")


def test_importing_same_file_twice(memory_store, csv_text):
    first = memory_store.import_rows(parse_product_csv(csv_text), "append")
    assert (first.stats.added, first.stats.skipped) == (1, 0)

    second = memory_store.import_rows(parse_product_csv(csv_text), "append")
    assert (second.stats.added, second.stats.skipped) == (0, 1)
    assert len(memory_store.read_products()) == 1
