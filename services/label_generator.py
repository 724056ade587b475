"""Barcode label generation for SKUs.

Generates Code128 barcode images via python-barcode and assembles
printable PDF label sheets (Avery 5160) and single thermal labels
using reportlab.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from io import BytesIO
from pathlib import Path

import barcode
from barcode.errors import BarcodeError
from barcode.writer import ImageWriter
from reportlab.lib.pagesizes import LETTER
from reportlab.lib.units import inch
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen.canvas import Canvas

from services.sku_collection import SkuRecord

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Avery 5160 layout constants
# ---------------------------------------------------------------------------

PAGE_W, PAGE_H = LETTER  # 612 x 792 points
LABEL_W = 2.625 * inch
LABEL_H = 1.0 * inch
MARGIN_TOP = 0.5 * inch
MARGIN_LEFT = 0.1875 * inch
GAP_H = 0.125 * inch
GAP_V = 0
COLS = 3
ROWS = 10
LABELS_PER_PAGE = COLS * ROWS


def label_caption(record: SkuRecord) -> str:
    """Text printed under the barcode: product name and size."""
    product = record.product.strip()
    if not product:
        return f"Size {record.size}"
    return f"{product} - {record.size}"


# ---------------------------------------------------------------------------
# Barcode image generation
# ---------------------------------------------------------------------------


def generate_barcode_image(sku: str) -> bytes:
    """Generate a Code128 barcode as PNG bytes for the given SKU.

    Raises ValueError when the SKU holds characters Code128 cannot encode.
    """
    buffer = BytesIO()
    try:
        code128 = barcode.get("code128", sku, writer=ImageWriter())
        code128.write(buffer, options={
            "module_width": 0.3,
            "module_height": 8.0,
            "text_distance": 3.0,
            "font_size": 8,
            "quiet_zone": 2.0,
            "write_text": False,
        })
    except BarcodeError as exc:
        msg = f"SKU {sku!r} cannot be encoded as Code128"
        raise ValueError(msg) from exc
    return buffer.getvalue()


# ---------------------------------------------------------------------------
# Label sheet (Avery 5160)
# ---------------------------------------------------------------------------


def create_label_sheet(records: Sequence[SkuRecord], output_path: str) -> str:
    """Create an Avery 5160 label sheet PDF with one label per record.

    Returns the *output_path* string.  Raises ValueError when *records*
    is empty.
    """
    if not records:
        msg = "no SKUs to print"
        raise ValueError(msg)

    Path(output_path).parent.mkdir(parents=True, exist_ok=True)

    c = Canvas(output_path, pagesize=LETTER)

    for idx, record in enumerate(records):
        page_idx = idx % LABELS_PER_PAGE
        if idx > 0 and page_idx == 0:
            c.showPage()

        col = page_idx % COLS
        row = page_idx // COLS

        x = MARGIN_LEFT + col * (LABEL_W + GAP_H)
        y = PAGE_H - MARGIN_TOP - (row + 1) * (LABEL_H + GAP_V)

        c.setFont("Helvetica-Bold", 7)
        c.drawCentredString(x + LABEL_W / 2, y + LABEL_H - 12, record.sku)

        img = ImageReader(BytesIO(generate_barcode_image(record.sku)))
        c.drawImage(
            img,
            x + 10,
            y + 10,
            width=LABEL_W - 20,
            height=LABEL_H - 30,
            preserveAspectRatio=True,
            anchor="c",
        )

        c.setFont("Helvetica", 5)
        c.drawCentredString(x + LABEL_W / 2, y + 3, label_caption(record))

    c.save()
    logger.info("Label sheet saved to %s (%d labels)", output_path, len(records))
    return output_path


# ---------------------------------------------------------------------------
# Single thermal label
# ---------------------------------------------------------------------------


def create_single_label(record: SkuRecord) -> bytes:
    """Create a single thermal-printer label (2" x 1") as PDF bytes."""
    buffer = BytesIO()
    width = 2 * inch
    height = 1 * inch
    c = Canvas(buffer, pagesize=(width, height))

    c.setFont("Helvetica-Bold", 8)
    c.drawCentredString(width / 2, height - 12, record.sku)

    img = ImageReader(BytesIO(generate_barcode_image(record.sku)))
    c.drawImage(
        img,
        5,
        12,
        width=width - 10,
        height=height - 30,
        preserveAspectRatio=True,
        anchor="c",
    )

    c.setFont("Helvetica", 6)
    c.drawCentredString(width / 2, 3, label_caption(record))

    c.save()
    return buffer.getvalue()
