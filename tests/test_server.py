"""Tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from nugi_catalog.config import Settings, get_settings
from nugi_catalog.server import app, get_store, is_admin
from nugi_catalog.storage import MemoryStore

from conftest import CSV_HEADER, TANTO_ROW

AUTH = {"Authorization": "Bearer secret"}


@pytest.fixture
def store(catalog):
    return MemoryStore(catalog)


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_settings] = lambda: Settings(admin_token="secret")
    yield TestClient(app)
    app.dependency_overrides.clear()


def _payload(**kw):
    data = {
        "title": "Butcher Breaker",
        "price": 700000,
        "category": "Butcher",
        "images": ["/img/breaker.jpg"],
        "steel": "AUS-8",
        "handleMaterial": "Polypropylene",
        "bladeLengthCm": 25,
        "handleLengthCm": 13,
        "bladeStyle": "Breaking",
        "handleStyle": "Textured",
    }
    data.update(kw)
    return data


class TestPublicRoutes:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["storage"] == "memory"

    def test_unified_listing(self, client):
        resp = client.get("/api/products/unified", params={"type": "tool", "sortBy": "title"})
        assert resp.status_code == 200
        body = resp.json()
        assert [p["id"] for p in body["products"]] == ["t_1", "t_2"]
        assert body["total"] == 2
        assert body["filters"] == {"type": "tool", "sortBy": "title"}
        assert body["facets"]["steels"] == ["1075", "D2", "Damascus"]
        assert body["facets"]["priceRange"] == {"min": 50000, "max": 2000000}

    def test_unified_price_bounds(self, client):
        resp = client.get("/api/products/unified", params={"maxPrice": "450000"})
        assert sorted(p["id"] for p in resp.json()["products"]) == ["k_2", "t_2"]

    def test_products_use_camel_case(self, client):
        product = client.get("/api/products/k_1").json()
        assert product["handleMaterial"] == "Pakka Wood"
        assert product["bladeLengthCm"] == 20

    def test_unknown_product(self, client):
        assert client.get("/api/products/missing").status_code == 404


class TestAuth:
    @pytest.mark.parametrize("headers", [{}, {"Authorization": "Bearer wrong"}, {"Authorization": "secret"}])
    def test_admin_routes_require_token(self, client, headers):
        assert client.post("/api/admin/products", json=_payload(), headers=headers).status_code == 401
        assert client.get("/api/admin/db-status", headers=headers).status_code == 401

    def test_no_configured_token_denies_everyone(self):
        assert not is_admin("Bearer anything", Settings(admin_token=None))
        assert is_admin("Bearer secret", Settings(admin_token="secret"))


class TestAdminCrud:
    def test_create(self, client, store):
        resp = client.post("/api/admin/products", json=_payload(), headers=AUTH)
        assert resp.status_code == 200
        product = resp.json()["product"]
        assert product["type"] == "knife"
        assert store.get_product(product["id"]) is not None

    def test_create_invalid(self, client):
        resp = client.post("/api/admin/products", json=_payload(steel="", images=[]), headers=AUTH)
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Field yang kurang: images, steel"

    def test_update(self, client, store):
        resp = client.put("/api/admin/products", json={"id": "k_1", "price": 900000}, headers=AUTH)
        assert resp.status_code == 200
        assert store.get_product("k_1").price == 900000

    def test_update_needs_id(self, client):
        assert client.put("/api/admin/products", json={"price": 1}, headers=AUTH).status_code == 400

    def test_update_unknown(self, client):
        resp = client.put("/api/admin/products", json={"id": "zzz", "price": 1}, headers=AUTH)
        assert resp.status_code == 404

    def test_delete(self, client, store):
        assert client.delete("/api/admin/products", params={"id": "t_2"}, headers=AUTH).status_code == 200
        assert store.get_product("t_2") is None
        assert client.delete("/api/admin/products", params={"id": "t_2"}, headers=AUTH).status_code == 404
        assert client.delete("/api/admin/products", headers=AUTH).status_code == 400


class TestImportExport:
    def _upload(self, client, text, mode="append"):
        return client.post(
            "/api/admin/products/import",
            files={"file": ("products.csv", text.encode("utf-8"), "text/csv")},
            data={"mode": mode},
            headers=AUTH,
        )

    def test_import_then_reimport(self, client, store):
        text = f"{CSV_HEADER}\n{TANTO_ROW}\n"
        first = self._upload(client, text)
        assert first.status_code == 200
        assert first.json()["stats"]["added"] == 1
        assert first.json()["message"] == "Import selesai: 1 ditambahkan, 0 diperbarui, 0 dilewati"

        second = self._upload(client, text)
        assert second.json()["stats"]["skipped"] == 1
        assert len(store.read_products()) == 5

    def test_replace(self, client, store):
        resp = self._upload(client, f"{CSV_HEADER}\n{TANTO_ROW}\n", mode="replace")
        assert resp.status_code == 200
        assert [p.title for p in store.read_products()] == ["Tanto X"]

    def test_import_rejects_bad_input(self, client):
        assert self._upload(client, "Title,Price\nA,1\n").status_code == 400
        assert self._upload(client, f"{CSV_HEADER}\n{TANTO_ROW}\n", mode="merge").status_code == 400
        no_file = client.post("/api/admin/products/import", data={"mode": "append"}, headers=AUTH)
        assert no_file.status_code == 400

    def test_export(self, client):
        resp = client.get("/api/admin/products/export", headers=AUTH)
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert "nugi-home-products-" in resp.headers["content-disposition"]
        assert resp.text.splitlines()[0].startswith("id,title,price")

    def test_legacy_export(self, client):
        resp = client.get("/api/admin/products/export", params={"legacy": "true"}, headers=AUTH)
        assert resp.status_code == 200
        assert "nugi-home-products-legacy-" in resp.headers["content-disposition"]
        assert resp.text.splitlines()[0] == (
            "id,title,price,category,image,steel,handleMaterial,bladeLength,handleLength,bladeStyle,handleStyle"
        )

    def test_import_with_deeply_nested_specs(self, client, store):
        text = f"{CSV_HEADER},Specs\n{TANTO_ROW},{'[' * 200000}\n"
        resp = self._upload(client, text)
        assert resp.status_code == 200
        assert resp.json()["stats"]["added"] == 1

    def test_db_status(self, client):
        body = client.get("/api/admin/db-status", headers=AUTH).json()
        assert body["totalProducts"] == 4
        assert body["storageType"] == "memory"
