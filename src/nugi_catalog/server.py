# src/nugi_catalog/server.py
from __future__ import annotations

import logging
import secrets
from typing import Any, Dict, Optional

from fastapi import Body, Depends, FastAPI, File, Form, Header, HTTPException, Query, Request, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel

from .config import Settings, get_settings
from .csv_import import parse_product_csv
from .errors import ProductNotFoundError, ProductValidationError
from .export import export_filename, products_to_csv, products_to_legacy_csv
from .query import FilterSpec, query_products
from .reconcile import MERGE_MODES, ImportStats
from .storage import ProductStore, open_store

log = logging.getLogger(__name__)

app = FastAPI(
    title="Nugi Home Catalog API",
    description="Knife & tool catalog: unified products, filtering, admin CRUD and CSV import",
    version="2.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

_store: Optional[ProductStore] = None


class ImportResponse(BaseModel):
    success: bool
    stats: ImportStats
    message: str


# ---------
# Dependencies
# ---------
def get_store() -> ProductStore:
    global _store
    if _store is None:
        _store = open_store(get_settings())
    return _store


def is_admin(authorization: Optional[str], settings: Settings) -> bool:
    """Bearer token check; with no token configured nobody is admin."""
    if not settings.admin_token or not authorization:
        return False
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return False
    return secrets.compare_digest(token.strip(), settings.admin_token)


def require_admin(
    authorization: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> None:
    if not is_admin(authorization, settings):
        raise HTTPException(status_code=401, detail="Unauthorized")


# ---------
# Public routes
# ---------
@app.get("/health")
def health(store: ProductStore = Depends(get_store)):
    return {"status": "healthy", "storage": store.storage_type, "persistent": store.persistent}


@app.get("/api/products/unified")
def unified_products(request: Request, store: ProductStore = Depends(get_store)):
    """
    Filtered, sorted catalog plus facet options for the filter panel.

    **Example:**
    ```
    GET /api/products/unified?type=knife&steel=D2&minPrice=100000&sortBy=title
    ```
    """
    params = dict(request.query_params)
    spec = FilterSpec.from_query_params(params)
    try:
        result = query_products(store.read_products(), spec)
    except Exception as e:
        log.exception("Error fetching unified products")
        raise HTTPException(status_code=500, detail=f"Failed to fetch products: {e}")
    return {
        "products": [p.to_dict() for p in result.results],
        "total": result.total,
        "filters": params,
        "facets": result.facets.to_dict(),
    }


@app.get("/api/products/{product_id}")
def product_detail(product_id: str, store: ProductStore = Depends(get_store)):
    product = store.get_product(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Produk tidak ditemukan.")
    return product.to_dict()


# ---------
# Admin routes
# ---------
@app.post("/api/admin/products", dependencies=[Depends(require_admin)])
def create_product(payload: Dict[str, Any] = Body(...), store: ProductStore = Depends(get_store)):
    try:
        product = store.add_product(payload)
    except ProductValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        log.exception("Create product failed")
        raise HTTPException(status_code=500, detail=f"Gagal menyimpan produk: {e}")
    return {"success": True, "product": product.to_dict()}


@app.put("/api/admin/products", dependencies=[Depends(require_admin)])
def update_product(payload: Dict[str, Any] = Body(...), store: ProductStore = Depends(get_store)):
    product_id = payload.get("id")
    if not product_id:
        raise HTTPException(status_code=400, detail="Field yang kurang: id")
    updates = {k: v for k, v in payload.items() if k != "id"}
    try:
        product = store.update_product(str(product_id), updates)
    except ProductNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ProductValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        log.exception("Update product failed")
        raise HTTPException(status_code=500, detail=f"Gagal memperbarui produk: {e}")
    return {"success": True, "product": product.to_dict()}


@app.delete("/api/admin/products", dependencies=[Depends(require_admin)])
def delete_product(id: Optional[str] = Query(default=None), store: ProductStore = Depends(get_store)):
    if not id:
        raise HTTPException(status_code=400, detail="Field yang kurang: id")
    try:
        store.delete_product(id)
    except ProductNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        log.exception("Delete product failed")
        raise HTTPException(status_code=500, detail=f"Gagal menghapus produk: {e}")
    return {"success": True}


@app.post("/api/admin/products/import", response_model=ImportResponse, dependencies=[Depends(require_admin)])
async def import_products(
    file: Optional[UploadFile] = File(default=None),
    mode: str = Form(default="append"),
    store: ProductStore = Depends(get_store),
):
    """
    Import products from a CSV upload. `mode` is append (skip known ids and
    titles), update (upsert) or replace (drop the current catalog).
    """
    if file is None:
        raise HTTPException(status_code=400, detail="File tidak ditemukan.")
    if mode not in MERGE_MODES:
        raise HTTPException(status_code=400, detail=f"Mode tidak valid: {mode}")

    try:
        text = (await file.read()).decode("utf-8")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="File harus berupa teks UTF-8.")

    rows = parse_product_csv(text)
    if not rows:
        raise HTTPException(status_code=400, detail="CSV tidak valid atau kosong.")

    try:
        result = store.import_rows(rows, mode)
    except Exception as e:
        log.exception("CSV import failed")
        raise HTTPException(status_code=500, detail=f"Import gagal: {e}")

    s = result.stats
    return ImportResponse(
        success=True,
        stats=s,
        message=f"Import selesai: {s.added} ditambahkan, {s.updated} diperbarui, {s.skipped} dilewati",
    )


@app.get("/api/admin/products/export", dependencies=[Depends(require_admin)])
def export_products(legacy: bool = Query(default=False), store: ProductStore = Depends(get_store)):
    """
    Download the catalog as CSV. `legacy=true` writes the single-image
    columns of the first storefront.
    """
    try:
        products = store.read_products()
        content = products_to_legacy_csv(products) if legacy else products_to_csv(products)
    except Exception as e:
        log.exception("Export failed")
        raise HTTPException(status_code=500, detail=f"Gagal mengekspor data produk: {e}")
    return Response(
        content=content,
        media_type="text/csv",
        headers={
            "Content-Disposition": f'attachment; filename="{export_filename(legacy=legacy)}"',
            "Cache-Control": "no-cache",
        },
    )


@app.get("/api/admin/db-status", dependencies=[Depends(require_admin)])
def db_status(store: ProductStore = Depends(get_store)):
    return store.info()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port)
