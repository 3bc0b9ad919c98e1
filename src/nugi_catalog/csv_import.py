# src/nugi_catalog/csv_import.py
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from .normalize import clean_specs, coerce_number, is_finite_number
from .schema import ParsedRow
from .taxonomy import KNIFE, PRODUCT_TYPES, TOOL, get_taxonomy

log = logging.getLogger(__name__)

# Header aliases, English and Indonesian. Compared after normalize_key.
HEADER_ALIASES: Dict[str, List[str]] = {
    "id": ["id"],
    "title": ["title", "judul", "nama"],
    "price": ["price", "harga"],
    "type": ["type", "tipe", "jenis"],
    "category": ["category", "kategori"],
    "images": ["images", "imageurls", "photos", "fotos", "galeri"],
    "image": ["image", "photo", "foto", "gambar", "fotourl"],
    "steel": ["steel", "bahanbaja", "baja"],
    "handleMaterial": ["handlematerial", "bahangagang"],
    "bladeLengthCm": ["bladelengthcm", "panjangbilahcm"],
    "bladeLength": ["bladelength", "panjangbilah"],
    "handleLengthCm": ["handlelengthcm", "panjanggagangcm"],
    "handleLength": ["handlelength", "panjanggagang"],
    "bladeThicknessMm": ["bladethicknessmm", "bladethickness", "tebalbilahmm", "tebalbilah"],
    "weightGr": ["weightgr", "weight", "beratgr", "berat"],
    "bladeStyle": ["bladestyle", "modelbilah"],
    "handleStyle": ["handlestyle", "modelgagang"],
    "description": ["description", "deskripsi"],
    "specs": ["specs", "spesifikasi"],
}

REQUIRED_COLUMNS = ["title", "price", "category", "steel", "handleMaterial", "bladeStyle", "handleStyle"]

# Each group is satisfied by any one of its columns
REQUIRED_ANY = {
    "images": ["images", "image"],
    "bladeLengthCm": ["bladeLengthCm", "bladeLength"],
    "handleLengthCm": ["handleLengthCm", "handleLength"],
}

IMAGE_DELIMITER = ";"

_KEY_STRIP = re.compile(r"[\s\-_]")
_LINE_SPLIT = re.compile(r"\r?\n")


# --------------------------
# Tokenizing
# --------------------------
def normalize_key(key: str) -> str:
    return _KEY_STRIP.sub("", key.lower())


def split_csv_line(line: str) -> List[str]:
    """
    Split one CSV line on commas outside double quotes. A doubled quote inside
    a quoted section is a literal quote. Every field is trimmed afterwards,
    quoted or not.
    """
    fields: List[str] = []
    buf: List[str] = []
    in_quotes = False
    i = 0
    n = len(line)
    while i < n:
        ch = line[i]
        if ch == '"':
            if in_quotes and i + 1 < n and line[i + 1] == '"':
                buf.append('"')
                i += 2
                continue
            in_quotes = not in_quotes
        elif ch == "," and not in_quotes:
            fields.append("".join(buf).strip())
            buf = []
        else:
            buf.append(ch)
        i += 1
    fields.append("".join(buf).strip())
    return fields


def strip_quotes(value: str) -> str:
    """Drop one matching pair of surrounding ' or " characters."""
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1].strip()
    return value


def split_images(cell: str) -> List[str]:
    images = []
    for part in cell.split(IMAGE_DELIMITER):
        part = strip_quotes(part)
        if part:
            images.append(part)
    return images


# --------------------------
# Header resolution
# --------------------------
def _find_columns(header: Sequence[str]) -> Dict[str, int]:
    normalized = [normalize_key(h) for h in header]
    mapping: Dict[str, int] = {}
    for key, aliases in HEADER_ALIASES.items():
        for alias in aliases:
            alias = normalize_key(alias)
            if alias in normalized:
                mapping[key] = normalized.index(alias)
                break
    return mapping


def missing_columns(header: Sequence[str]) -> List[str]:
    """Required fields the header does not provide, in a stable order."""
    found = _find_columns(header)
    missing = [k for k in REQUIRED_COLUMNS if k not in found]
    for group, options in REQUIRED_ANY.items():
        if not any(opt in found for opt in options):
            missing.append(group)
    return missing


def resolve_columns(header: Sequence[str]) -> Optional[Dict[str, int]]:
    """
    Map canonical field names to column indices, or None when the header is
    missing a required column (the whole file is rejected in that case).
    """
    if missing_columns(header):
        return None
    return _find_columns(header)


# --------------------------
# Rows
# --------------------------
def _cell(parts: Sequence[str], cols: Dict[str, int], key: str) -> str:
    idx = cols.get(key)
    if idx is None or idx >= len(parts):
        return ""
    return parts[idx]


def _optional_number(text: str):
    if not text:
        return None
    value = coerce_number(text)
    return value if is_finite_number(value) else None


def _infer_type(category: str, explicit: str) -> str:
    explicit = explicit.lower()
    if explicit in PRODUCT_TYPES:
        return explicit
    tx = get_taxonomy()
    if tx.is_tool_category(category):
        return TOOL
    return KNIFE


def _parse_specs(cell: str):
    if not cell:
        return None
    try:
        return clean_specs(json.loads(cell))
    except (ValueError, RecursionError):
        return None


def parse_row(parts: Sequence[str], cols: Dict[str, int]) -> Tuple[Optional[ParsedRow], Optional[str]]:
    """
    Turn one tokenized data line into a row, or explain why it is skipped.
    """
    title = strip_quotes(_cell(parts, cols, "title"))
    if not title:
        return None, "missing title"

    images = split_images(_cell(parts, cols, "images")) or split_images(_cell(parts, cols, "image"))
    if not images:
        return None, "missing image"

    category = strip_quotes(_cell(parts, cols, "category"))
    if not get_taxonomy().is_valid_category(category):
        return None, f"unknown category {category!r}"

    blade_text = _cell(parts, cols, "bladeLengthCm") or _cell(parts, cols, "bladeLength")
    handle_text = _cell(parts, cols, "handleLengthCm") or _cell(parts, cols, "handleLength")
    price = coerce_number(_cell(parts, cols, "price"))
    blade_length = coerce_number(blade_text)
    handle_length = coerce_number(handle_text)
    for name, value in (("price", price), ("blade length", blade_length), ("handle length", handle_length)):
        if not is_finite_number(value):
            return None, f"invalid {name}"

    texts = {}
    for key in ("steel", "handleMaterial", "bladeStyle", "handleStyle"):
        texts[key] = strip_quotes(_cell(parts, cols, key))
        if not texts[key]:
            return None, f"missing {key}"

    row = ParsedRow(
        id=strip_quotes(_cell(parts, cols, "id")) or None,
        title=title,
        price=price,
        type=_infer_type(category, strip_quotes(_cell(parts, cols, "type"))),
        category=category,
        images=images,
        image=images[0],
        steel=texts["steel"],
        handle_material=texts["handleMaterial"],
        blade_length_cm=blade_length,
        handle_length_cm=handle_length,
        blade_thickness_mm=_optional_number(_cell(parts, cols, "bladeThicknessMm")),
        weight_gr=_optional_number(_cell(parts, cols, "weightGr")),
        blade_style=texts["bladeStyle"],
        handle_style=texts["handleStyle"],
        description=strip_quotes(_cell(parts, cols, "description")) or None,
        specs=_parse_specs(_cell(parts, cols, "specs")),
    )
    return row, None


@dataclass
class CsvParseResult:
    rows: List[ParsedRow] = field(default_factory=list)
    skipped: List[Tuple[int, str]] = field(default_factory=list)  # (line number, reason)
    missing_columns: List[str] = field(default_factory=list)


def parse_product_csv_report(text: str) -> CsvParseResult:
    """
    Parse product CSV text and keep track of what was dropped and why.
    """
    result = CsvParseResult()
    if text.startswith("\ufeff"):
        text = text[1:]

    lines = [ln for ln in _LINE_SPLIT.split(text) if ln.strip()]
    if len(lines) < 2:
        return result

    header = split_csv_line(lines[0])
    cols = resolve_columns(header)
    if cols is None:
        result.missing_columns = missing_columns(header)
        log.warning("CSV rejected, missing columns: %s", ", ".join(result.missing_columns))
        return result

    for lineno, line in enumerate(lines[1:], start=2):
        row, reason = parse_row(split_csv_line(line), cols)
        if row is None:
            log.debug("Skipping CSV line %d: %s", lineno, reason)
            result.skipped.append((lineno, reason or "invalid row"))
            continue
        result.rows.append(row)
    return result


def parse_product_csv(text: str) -> List[ParsedRow]:
    return parse_product_csv_report(text).rows
