"""Tabular export of the SKU collection.

Produces one row per record as CSV text or as an XLSX workbook.  Every
value is written as a string so SKUs and years survive spreadsheet
round-trips untouched.
"""

from __future__ import annotations

import csv
import logging
from collections.abc import Sequence
from io import BytesIO, StringIO

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from services.sku_collection import SkuRecord

logger = logging.getLogger(__name__)

SHEET_NAME = "SKUs"
EXPORT_FORMATS = {
    "csv": ("text/csv", "skus.csv"),
    "xlsx": (
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "skus.xlsx",
    ),
}


def _column_title(name: str) -> str:
    return name.replace("_", " ").title()


def build_table(records: Sequence[SkuRecord]) -> tuple[list[str], list[list[str]]]:
    """Return (headers, rows) for the collection.

    Attribute columns follow first-seen order across records.  A
    ``<Name> Full`` column is added for every attribute that had full mode
    switched on in at least one record.
    """
    attribute_names: list[str] = []
    full_names: list[str] = []
    for record in records:
        for name in record.attributes:
            if name not in attribute_names:
                attribute_names.append(name)
        for name, enabled in record.full_mode.items():
            if enabled and name not in full_names:
                full_names.append(name)

    headers = [
        "SKU",
        *(_column_title(n) for n in attribute_names),
        "Size",
        "Rule",
        "Separator",
        *(f"{_column_title(n)} Full" for n in full_names),
    ]
    rows = [
        [
            record.sku,
            *(record.attributes.get(n, "") for n in attribute_names),
            record.size,
            record.rule.value,
            record.separator,
            *("Yes" if record.full_mode.get(n) else "No" for n in full_names),
        ]
        for record in records
    ]
    return headers, rows


def export_csv(records: Sequence[SkuRecord]) -> str:
    """Serialise the collection as comma-separated values."""
    headers, rows = build_table(records)
    buffer = StringIO()
    writer = csv.writer(buffer)
    writer.writerow(headers)
    writer.writerows(rows)
    return buffer.getvalue()


def export_xlsx(records: Sequence[SkuRecord]) -> bytes:
    """Serialise the collection as an XLSX workbook with a single sheet.

    Control characters the XLSX format cannot hold are dropped from cell text.
    """
    headers, rows = build_table(records)
    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_NAME

    for row_idx, values in enumerate([headers, *rows], start=1):
        for col_idx, value in enumerate(values, start=1):
            text = ILLEGAL_CHARACTERS_RE.sub("", value)
            cell = ws.cell(row=row_idx, column=col_idx, value=text)
            # openpyxl treats a leading "=" as a formula
            cell.data_type = "s"
            cell.number_format = "@"
            if row_idx == 1:
                cell.font = Font(bold=True)

    for col_idx, header in enumerate(headers, start=1):
        width = max([len(header), *(len(row[col_idx - 1]) for row in rows)])
        ws.column_dimensions[get_column_letter(col_idx)].width = min(width + 2, 60)
    ws.freeze_panes = "A2"

    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def export_collection(records: Sequence[SkuRecord], fmt: str) -> tuple[bytes, str, str]:
    """Export in *fmt* and return (content, mimetype, filename).

    Raises ValueError for unknown formats.
    """
    if fmt not in EXPORT_FORMATS:
        msg = f"format must be one of {', '.join(EXPORT_FORMATS)}"
        raise ValueError(msg)
    mimetype, filename = EXPORT_FORMATS[fmt]
    content = export_csv(records).encode("utf-8") if fmt == "csv" else export_xlsx(records)
    logger.info("Exported %d SKU(s) as %s", len(records), fmt)
    return content, mimetype, filename
