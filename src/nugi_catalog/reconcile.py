# src/nugi_catalog/reconcile.py
from __future__ import annotations

import logging
import random
import string
import time
from typing import Dict, Iterable, List, Literal, Sequence, get_args

from pydantic import BaseModel, Field

from .normalize import normalize_product
from .schema import ParsedRow, UnifiedProduct, utc_now_iso

log = logging.getLogger(__name__)

MergeMode = Literal["append", "update", "replace"]
MERGE_MODES = get_args(MergeMode)

_BASE36 = string.digits + string.ascii_lowercase


def _base36(n: int) -> str:
    if n == 0:
        return "0"
    out = []
    while n:
        n, r = divmod(n, 36)
        out.append(_BASE36[r])
    return "".join(reversed(out))


def generate_id(prefix: str = "p_") -> str:
    """
    Timestamp-derived id with a short random suffix. Unique with high
    probability, not guaranteed.
    """
    millis = int(time.time() * 1000)
    suffix = "".join(random.choices(_BASE36, k=4))
    return f"{prefix}{_base36(millis)}{suffix}"


class ImportStats(BaseModel):
    added: int = 0
    updated: int = 0
    skipped: int = 0
    errors: List[str] = Field(default_factory=list)


class ImportResult(BaseModel):
    to_persist: List[UnifiedProduct] = Field(default_factory=list)
    stats: ImportStats = Field(default_factory=ImportStats)


def check_mode(mode: str) -> MergeMode:
    if mode not in MERGE_MODES:
        raise ValueError(f"Unknown import mode {mode!r}; expected one of {', '.join(MERGE_MODES)}")
    return mode  # type: ignore[return-value]


def reconcile(
    rows: Sequence[ParsedRow],
    existing: Iterable[UnifiedProduct],
    mode: str = "append",
) -> ImportResult:
    """
    Decide, row by row and in file order, which imported rows get persisted.

    append  - rows whose id or (case-insensitive) title already exists are skipped
    update  - every row is kept; counted as updated when its id exists
    replace - every row is kept and counted as added; apply_import drops the
              previous collection
    """
    mode = check_mode(mode)
    existing = list(existing)
    known_ids = {p.id for p in existing}
    known_titles = {p.title.lower() for p in existing}

    result = ImportResult()
    stats = result.stats

    for row in rows:
        title = row.title or ""
        try:
            product = normalize_product(row)
            if not product.id:
                product.id = generate_id()

            if mode == "append":
                if product.id in known_ids or product.title.lower() in known_titles:
                    stats.skipped += 1
                    continue
                stats.added += 1
            elif mode == "update":
                if product.id in known_ids:
                    stats.updated += 1
                else:
                    stats.added += 1
            else:
                stats.added += 1
            result.to_persist.append(product)
        except Exception as e:
            log.warning("Import row %r failed: %s", title, e)
            stats.errors.append(f'Row "{title}": {e}')

    return result


def apply_import(
    existing: Iterable[UnifiedProduct],
    result: ImportResult,
    mode: str = "append",
) -> List[UnifiedProduct]:
    """
    Build the collection to write back after an import.

    Imported products are upserted by id; a stored product keeps its original
    createdAt. In replace mode the previous collection is discarded first.
    """
    mode = check_mode(mode)
    timestamp = utc_now_iso()
    base = [] if mode == "replace" else list(existing)

    merged: Dict[str, UnifiedProduct] = {p.id: p for p in base}
    for product in result.to_persist:
        previous = merged.get(product.id)
        product = product.model_copy(update={"updated_at": timestamp})
        if previous is not None and previous.created_at:
            product.created_at = previous.created_at
        merged[product.id] = product
    return list(merged.values())
