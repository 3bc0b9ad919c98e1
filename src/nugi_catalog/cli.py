# src/nugi_catalog/cli.py
from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .config import get_settings
from .csv_import import parse_product_csv_report
from .export import products_to_csv, products_to_legacy_csv
from .logging_config import setup_logging
from .query import FilterSpec, query_products
from .reconcile import MERGE_MODES
from .storage import JsonFileStore, ProductStore, open_store

app = typer.Typer(help="Nugi Home catalog: CSV import/export, queries and the API server")

CONSOLE = Console()


def _store(db: Optional[str]) -> ProductStore:
    if db:
        return JsonFileStore(db)
    return open_store(get_settings())


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")):
    setup_logging("DEBUG" if verbose else get_settings().log_level, console=Console(stderr=True))


@app.command("import-csv")
def import_csv(
    csv_path: str = typer.Argument(..., help="Path to the products CSV"),
    mode: str = typer.Option("append", help="append | update | replace"),
    db: Optional[str] = typer.Option(None, help="Product database JSON (defaults to settings)"),
):
    """
    Parse a product CSV and merge it into the catalog.
    """
    if mode not in MERGE_MODES:
        CONSOLE.print(f"[red]Unknown mode {mode!r}; use one of {', '.join(MERGE_MODES)}")
        raise typer.Exit(code=2)

    path = Path(csv_path)
    CONSOLE.rule("[bold]Import start")
    CONSOLE.print(f"Reading: {path}")
    parsed = parse_product_csv_report(path.read_text(encoding="utf-8"))

    if parsed.missing_columns:
        CONSOLE.print(f"[red]Missing columns: {', '.join(parsed.missing_columns)}")
        raise typer.Exit(code=1)
    if not parsed.rows:
        CONSOLE.print("[red]CSV tidak valid atau kosong.")
        raise typer.Exit(code=1)

    store = _store(db)
    result = store.import_rows(parsed.rows, mode)
    stats = result.stats

    t = Table(title="Import Summary", show_lines=True)
    t.add_column("Metric")
    t.add_column("Value", justify="right")
    t.add_row("Mode", mode)
    t.add_row("Valid rows", str(len(parsed.rows)))
    t.add_row("Rejected rows", str(len(parsed.skipped)))
    t.add_row("Added", str(stats.added))
    t.add_row("Updated", str(stats.updated))
    t.add_row("Skipped (duplicates)", str(stats.skipped))
    t.add_row("Errors", str(len(stats.errors)))
    t.add_row("Database", store.location)
    CONSOLE.print(t)

    for lineno, reason in parsed.skipped:
        CONSOLE.print(f"  line {lineno}: {reason}")
    for err in stats.errors:
        CONSOLE.print(f"[yellow]  {err}")
    CONSOLE.rule("[bold green]Done")


@app.command("load-json")
def load_json(
    json_path: str = typer.Argument(..., help="JSON list of products, or a database file with a 'products' key"),
    db: Optional[str] = typer.Option(None, help="Product database JSON (defaults to settings)"),
):
    """
    Bulk upsert product records (seed files, old database dumps) by id.
    """
    data = json.loads(Path(json_path).read_text(encoding="utf-8"))
    records = data.get("products") if isinstance(data, dict) else data
    if not isinstance(records, list):
        CONSOLE.print("[red]Expected a list of products or a {'products': [...]} document")
        raise typer.Exit(code=1)

    store = _store(db)
    saved = store.add_many(r for r in records if isinstance(r, dict))
    CONSOLE.print(f"Saved {len(saved)} of {len(records)} products to {store.location}")


@app.command("export")
def export(
    out_path: str = typer.Argument(..., help="Where to write the CSV"),
    legacy: bool = typer.Option(False, help="Single-image columns of the first storefront"),
    db: Optional[str] = typer.Option(None, help="Product database JSON (defaults to settings)"),
):
    """Write the catalog as an importable CSV."""
    products = _store(db).read_products()
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    text = products_to_legacy_csv(products) if legacy else products_to_csv(products)
    out.write_text(text, encoding="utf-8")
    CONSOLE.print(f"Exported to {out}")


@app.command("query")
def query(
    search: str = typer.Option("", help="Substring of title or description"),
    type_: str = typer.Option("all", "--type", help="knife | tool | all"),
    category: str = typer.Option("all"),
    steel: str = typer.Option("all"),
    handle: str = typer.Option("all"),
    maker: str = typer.Option("all"),
    sort_by: str = typer.Option("price", help="price | title | category"),
    desc: bool = typer.Option(False, help="Sort descending"),
    db: Optional[str] = typer.Option(None, help="Product database JSON (defaults to settings)"),
):
    """Filter the catalog and print matches with the available facets."""
    spec = FilterSpec(
        type=type_, category=category, search=search, steel=steel, handle=handle,
        maker=maker, sort_by=sort_by, sort_order="desc" if desc else "asc",
    )
    result = query_products(_store(db).read_products(), spec)

    t = Table(title=f"Products ({result.total})")
    t.add_column("ID")
    t.add_column("Title")
    t.add_column("Type")
    t.add_column("Category")
    t.add_column("Steel")
    t.add_column("Price", justify="right")
    for p in result.results:
        t.add_row(p.id, p.title, p.type, p.category, p.steel, f"{p.price:,}")
    CONSOLE.print(t)

    f = result.facets
    CONSOLE.print(f"Steels: {', '.join(f.steels) or '-'}")
    CONSOLE.print(f"Handles: {', '.join(f.handles) or '-'}")
    CONSOLE.print(f"Makers: {', '.join(f.makers) or '-'}")
    CONSOLE.print(f"Price: {f.price_range.min:,.0f} - {f.price_range.max:,.0f}")


@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None),
    port: Optional[int] = typer.Option(None),
    reload: bool = typer.Option(False),
):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "nugi_catalog.server:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        access_log=True,
    )


if __name__ == "__main__":
    app()
