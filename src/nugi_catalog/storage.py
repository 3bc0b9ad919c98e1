# src/nugi_catalog/storage.py
from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .errors import ProductNotFoundError, ProductValidationError
from .normalize import merge_update, normalize_product
from .reconcile import ImportResult, apply_import, generate_id, reconcile
from .schema import ParsedRow, UnifiedProduct, utc_now_iso
from .validation import validate_product

log = logging.getLogger(__name__)

SCHEMA_VERSION = "2.0"


def _metadata(products: List[UnifiedProduct], created_at: Optional[str] = None) -> Dict[str, Any]:
    return {
        "version": SCHEMA_VERSION,
        "createdAt": created_at or utc_now_iso(),
        "totalProducts": len(products),
        "productTypes": {
            "knives": sum(1 for p in products if p.type == "knife"),
            "tools": sum(1 for p in products if p.type == "tool"),
        },
    }


class ProductStore:
    """
    Whole-collection product storage. Subclasses implement read_products and
    write_products; the helpers below are read-modify-write on top of them and
    serialize through one lock per store instance.
    """

    storage_type = "abstract"
    persistent = False

    def __init__(self) -> None:
        self._lock = threading.RLock()

    # ---------- contract ----------
    def read_products(self) -> List[UnifiedProduct]:
        raise NotImplementedError

    def write_products(self, products: Iterable[UnifiedProduct]) -> None:
        raise NotImplementedError

    # ---------- helpers ----------
    def get_product(self, product_id: str) -> Optional[UnifiedProduct]:
        for p in self.read_products():
            if p.id == product_id:
                return p
        return None

    def add_product(self, raw: Any) -> UnifiedProduct:
        """
        Normalize, validate and upsert one product. A re-used id keeps the
        stored createdAt.
        """
        product = validate_product(normalize_product(raw))
        now = utc_now_iso()
        with self._lock:
            products = self.read_products()
            if not product.id:
                product.id = generate_id()
            product.updated_at = now
            for i, existing in enumerate(products):
                if existing.id == product.id:
                    product.created_at = existing.created_at or product.created_at
                    products[i] = product
                    break
            else:
                products.append(product)
            self.write_products(products)
        log.info("Saved product %s (%s)", product.id, product.title)
        return product

    def add_many(self, records: Iterable[Any]) -> List[UnifiedProduct]:
        """
        Upsert a batch of product records in one write. Records that fail
        validation are logged and skipped; the rest are saved.
        """
        now = utc_now_iso()
        saved: List[UnifiedProduct] = []
        with self._lock:
            products = self.read_products()
            index = {p.id: i for i, p in enumerate(products)}
            for raw in records:
                try:
                    product = validate_product(normalize_product(raw))
                except (ProductValidationError, TypeError) as e:
                    title = raw.get("title") if isinstance(raw, dict) else getattr(raw, "title", None)
                    log.warning("Skipping invalid product %r: %s", title, e)
                    continue
                if not product.id:
                    product.id = generate_id()
                product.updated_at = now
                if product.id in index:
                    previous = products[index[product.id]]
                    product.created_at = previous.created_at or product.created_at
                    products[index[product.id]] = product
                else:
                    index[product.id] = len(products)
                    products.append(product)
                saved.append(product)
            if saved:
                self.write_products(products)
        log.info("Saved %d products in bulk", len(saved))
        return saved

    def import_rows(self, rows: Iterable[ParsedRow], mode: str = "append") -> ImportResult:
        """
        Reconcile parsed CSV rows against the stored catalog and write the
        outcome back in one pass. Nothing is written when no row survives.
        """
        with self._lock:
            existing = self.read_products()
            result = reconcile(list(rows), existing, mode)
            if result.to_persist:
                self.write_products(apply_import(existing, result, mode))
        s = result.stats
        log.info("Import (%s): %d added, %d updated, %d skipped, %d errors",
                 mode, s.added, s.updated, s.skipped, len(s.errors))
        return result

    def update_product(self, product_id: str, updates: Any) -> UnifiedProduct:
        with self._lock:
            products = self.read_products()
            for i, existing in enumerate(products):
                if existing.id == product_id:
                    product = validate_product(merge_update(existing, updates))
                    products[i] = product
                    self.write_products(products)
                    log.info("Updated product %s", product_id)
                    return product
        raise ProductNotFoundError(product_id)

    def delete_product(self, product_id: str) -> None:
        with self._lock:
            products = self.read_products()
            kept = [p for p in products if p.id != product_id]
            if len(kept) == len(products):
                raise ProductNotFoundError(product_id)
            self.write_products(kept)
        log.info("Deleted product %s", product_id)

    def info(self) -> Dict[str, Any]:
        products = self.read_products()
        return {
            "storageType": self.storage_type,
            "persistent": self.persistent,
            "location": self.location,
            **_metadata(products),
        }

    @property
    def location(self) -> str:
        return self.storage_type


class JsonFileStore(ProductStore):
    """
    Products kept in one JSON document: {"products": [...], "metadata": {...}}.
    """

    storage_type = "file"
    persistent = True

    def __init__(self, path: str | Path):
        super().__init__()
        self.path = Path(path)

    @property
    def location(self) -> str:
        return str(self.path)

    def _ensure(self) -> None:
        if self.path.exists():
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._dump({"products": [], "metadata": _metadata([])})

    def _dump(self, doc: Dict[str, Any]) -> None:
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(doc, ensure_ascii=False, indent=2), encoding="utf-8")
        tmp.replace(self.path)

    def _load(self) -> Dict[str, Any]:
        self._ensure()
        try:
            doc = json.loads(self.path.read_text(encoding="utf-8"))
        except ValueError:
            log.error("Unreadable product database at %s; treating it as empty", self.path)
            return {"products": []}
        if not isinstance(doc, dict) or not isinstance(doc.get("products"), list):
            log.error("Unexpected product database layout at %s; treating it as empty", self.path)
            return {"products": []}
        return doc

    def read_products(self) -> List[UnifiedProduct]:
        doc = self._load()
        products = []
        for raw in doc["products"]:
            if isinstance(raw, dict):
                products.append(normalize_product(raw))
        return products

    def write_products(self, products: Iterable[UnifiedProduct]) -> None:
        products = list(products)
        with self._lock:
            created_at = None
            if self.path.exists():
                created_at = (self._load().get("metadata") or {}).get("createdAt")
            self._dump({
                "products": [p.to_dict() for p in products],
                "metadata": _metadata(products, created_at),
            })


class MemoryStore(ProductStore):
    """
    In-process store for read-only hosting. Writes are accepted but are lost
    when the process exits.
    """

    storage_type = "memory"
    persistent = False

    def __init__(self, products: Iterable[UnifiedProduct] = ()):
        super().__init__()
        self._products: List[UnifiedProduct] = [normalize_product(p) for p in products]

    def read_products(self) -> List[UnifiedProduct]:
        return [p.model_copy(deep=True) for p in self._products]

    def write_products(self, products: Iterable[UnifiedProduct]) -> None:
        with self._lock:
            self._products = [p.model_copy(deep=True) for p in products]
        log.warning("Memory storage: %d products kept in-process only", len(self._products))


def open_store(settings) -> ProductStore:
    if settings.storage == "memory":
        return MemoryStore()
    return JsonFileStore(settings.db_path)
