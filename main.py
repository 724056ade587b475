"""CLI entry point for the SKU generator."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from config import THEMES, settings
from database import init_database
from utils.sku import SEPARATORS, AttributeRule


def _open_collection():
    """Open the configured database and return (connection, store, collection)."""
    from database.connection import get_db
    from services.sku_collection import SkuCollection
    from services.storage import SqliteBlobStore

    init_database(settings.database_path)
    conn = get_db(settings.database_path)
    store = SqliteBlobStore(conn)
    return conn, store, SkuCollection(store)


def _parse_pairs(pairs: tuple[str, ...]) -> dict[str, str]:
    """Turn NAME=VALUE options into an ordered mapping."""
    result: dict[str, str] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep:
            raise click.BadParameter(f"expected NAME=VALUE, got {pair!r}", param_hint="--attr")
        name = name.strip().lower()
        if name not in settings.attribute_names:
            raise click.BadParameter(
                f"unknown attribute {name!r} (choose from {', '.join(settings.attribute_names)})",
                param_hint="--attr",
            )
        result[name] = value
    return {n: result[n] for n in settings.attribute_names if n in result}


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """SKU generator for clothing collections."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


@cli.command()
def init_db() -> None:
    """Initialise the SQLite database (creates tables if missing)."""
    from database.connection import get_db
    from database.models import list_keys

    init_database(settings.database_path)
    print(f"Database initialised at {settings.database_path}")
    conn = get_db(settings.database_path)
    try:
        keys = list_keys(conn)
    finally:
        conn.close()
    print(f"Stored slots: {', '.join(keys) if keys else 'none'}")


@cli.command()
def web() -> None:
    """Start the Flask API server."""
    from api.app import create_app

    init_database(settings.database_path)
    app = create_app()
    app.run(
        host=settings.flask_host,
        port=settings.flask_port,
        debug=settings.flask_debug,
    )


@cli.command()
@click.option("--product", required=True, help="Product or collection name.")
@click.option("--year", default="", help="Year; its last two digits are fused to the product code.")
@click.option("--attr", "attrs", multiple=True, metavar="NAME=VALUE", help="Free-text attribute.")
@click.option("--full", "full", multiple=True, metavar="NAME", help="Use the full text of an attribute.")
@click.option(
    "--rule",
    type=click.Choice([r.value for r in AttributeRule]),
    default=lambda: settings.default_rule.value,
    show_default="configured default",
    help="rule1: first letters of first word, rule2: initials of first words.",
)
@click.option(
    "--separator",
    type=click.Choice(SEPARATORS),
    default=lambda: settings.default_separator,
    show_default="configured default",
)
@click.option("--size", "sizes", multiple=True, required=True, help="Size, repeat for several.")
@click.option("--dry-run", is_flag=True, help="Show the SKUs without storing them.")
def generate(
    product: str,
    year: str,
    attrs: tuple[str, ...],
    full: tuple[str, ...],
    rule: str,
    separator: str,
    sizes: tuple[str, ...],
    dry_run: bool,
) -> None:
    """Generate SKUs for one product, one per size."""
    from services.sku_collection import FormInputs, GenerationConfig

    bad_sizes = [s for s in sizes if s.strip().upper() not in settings.sizes]
    if bad_sizes:
        raise click.BadParameter(
            f"unknown size(s) {', '.join(bad_sizes)} (choose from {', '.join(settings.sizes)})",
            param_hint="--size",
        )

    attributes = _parse_pairs(attrs)
    full_mode = {name.strip().lower(): True for name in full}
    unknown = sorted(set(full_mode) - set(settings.attribute_names))
    if unknown:
        raise click.BadParameter(f"unknown attribute(s) {', '.join(unknown)}", param_hint="--full")
    form = FormInputs(product=product, year=year, attributes=attributes, full_mode=full_mode)
    config = GenerationConfig(rule=rule, separator=separator)

    conn, _, collection = _open_collection()
    try:
        try:
            if dry_run:
                result = collection.preview(form, list(sizes), config)
            else:
                result = collection.add_batch(form, list(sizes), config)
        except ValueError as exc:
            raise click.ClickException(str(exc)) from exc

        verb = "Would add" if dry_run else "Added"
        print(f"{verb} {len(result.accepted)} SKU(s):")
        for record in result.accepted:
            print(f"  {record.sku}")
        for record in result.skipped:
            print(f"  {record.sku} (already exists, skipped)")
    finally:
        conn.close()


@cli.command("list")
def list_skus() -> None:
    """Show the stored SKUs."""
    conn, _, collection = _open_collection()
    try:
        if not len(collection):
            print("No SKUs yet.")
            return

        print(f"{'#':>4}  {'SKU':<28} {'Product':<24} {'Size':<6} {'Rule':<6} {'Sep':<3}")
        print("-" * 76)
        for idx, record in enumerate(collection):
            print(
                f"{idx:>4}  "
                f"{record.sku:<28} "
                f"{record.product[:24]:<24} "
                f"{record.size:<6} "
                f"{record.rule.value:<6} "
                f"{record.separator:<3}"
            )
        print(f"\nTotal: {len(collection)} SKU(s)")
    finally:
        conn.close()


@cli.command()
@click.argument("index", type=int)
def delete(index: int) -> None:
    """Delete the SKU at position INDEX (as shown by `list`)."""
    conn, _, collection = _open_collection()
    try:
        try:
            removed = collection.delete(index)
        except IndexError as exc:
            raise click.ClickException(str(exc)) from exc
        print(f"Deleted {removed.sku}")
    finally:
        conn.close()


@cli.command()
@click.confirmation_option(prompt="Delete every stored SKU?")
def clear() -> None:
    """Delete every stored SKU."""
    conn, _, collection = _open_collection()
    try:
        count = collection.clear()
        print(f"Deleted {count} SKU(s)")
    finally:
        conn.close()


@cli.command()
@click.option("--format", "fmt", type=click.Choice(["csv", "xlsx"]), default="csv")
@click.option("--output", type=click.Path(dir_okay=False), help="Output file path.")
def export(fmt: str, output: str | None) -> None:
    """Export the stored SKUs as CSV or XLSX."""
    from services.exporter import export_collection

    conn, _, collection = _open_collection()
    try:
        content, _, filename = export_collection(collection.records, fmt)
    finally:
        conn.close()

    path = Path(output) if output else Path(settings.export_dir) / filename
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    print(f"Exported {len(collection)} SKU(s) to {path}")


@cli.command()
@click.argument("indices", nargs=-1, type=int)
def print_labels(indices: tuple[int, ...]) -> None:
    """Generate a barcode label PDF for the SKUs at INDICES (all when omitted)."""
    from services.label_generator import create_label_sheet

    conn, _, collection = _open_collection()
    try:
        records = collection.records
    finally:
        conn.close()

    if indices:
        missing = [i for i in indices if not 0 <= i < len(records)]
        if missing:
            raise click.ClickException(f"No SKU at position(s): {', '.join(map(str, missing))}")
        records = [records[i] for i in indices]
    if not records:
        print("No SKUs to print.")
        return

    output = str(Path(settings.label_output_dir) / "labels.pdf")
    try:
        create_label_sheet(records, output)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    print(f"Label sheet saved to {output}")


@cli.command()
@click.argument("value", required=False, type=click.Choice(THEMES))
def theme(value: str | None) -> None:
    """Show or set the theme preference."""
    from services.preferences import load_theme, save_theme

    conn, store, _ = _open_collection()
    try:
        if value is None:
            print(load_theme(store))
            return
        if not save_theme(store, value):
            raise click.ClickException("Could not save theme preference")
        print(f"Theme set to {value}")
    finally:
        conn.close()


if __name__ == "__main__":
    cli()
