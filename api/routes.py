"""API endpoints for the SKU generator."""

from __future__ import annotations

import logging
import os
from io import BytesIO
from typing import Any

from flask import Blueprint, g, jsonify, request, send_file

from api.errors import error_response, handle_errors
from api.exceptions import NotFoundError, ValidationError
from config import THEMES, settings
from database.connection import get_db
from services.exporter import EXPORT_FORMATS, export_collection
from services.preferences import load_theme, save_theme
from services.sku_collection import (
    FormInputs,
    GenerationConfig,
    SkuCollection,
    SkuRecord,
)
from services.storage import SqliteBlobStore
from utils.sku import SEPARATORS, AttributeRule

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__, url_prefix="/api")


# ---------------------------------------------------------------------------
# DB lifecycle
# ---------------------------------------------------------------------------


@api_bp.before_request
def _open_db() -> None:
    """Open a database connection and store it on flask.g."""
    g.db = get_db(settings.database_path)
    g.store = SqliteBlobStore(g.db)


@api_bp.teardown_request
def _close_db(exc: BaseException | None = None) -> None:
    """Close the per-request database connection."""
    g.pop("store", None)
    db = g.pop("db", None)
    if db is not None:
        db.close()


def _collection() -> SkuCollection:
    return SkuCollection(g.store)


def _dump(records: list[SkuRecord]) -> list[dict[str, Any]]:
    return [record.model_dump(mode="json") for record in records]


def _parse_generation_request() -> tuple[FormInputs, list[str], GenerationConfig]:
    """Validate a generate/preview body against the configured form."""
    data = request.get_json(silent=True)
    if not data or not isinstance(data, dict):
        raise ValidationError("Request body must be JSON")

    attributes = data.get("attributes") or {}
    full_mode = data.get("full_mode") or {}
    if not isinstance(attributes, dict) or not isinstance(full_mode, dict):
        raise ValidationError("'attributes' and 'full_mode' must be objects")
    unknown = sorted((set(attributes) | set(full_mode)) - set(settings.attribute_names))
    if unknown:
        raise ValidationError(f"Unknown attribute(s): {', '.join(unknown)}")

    sizes = data.get("sizes") or []
    if not isinstance(sizes, list):
        raise ValidationError("'sizes' must be a list")
    sizes = [str(s).strip().upper() for s in sizes]
    bad_sizes = [s for s in sizes if s not in settings.sizes]
    if bad_sizes:
        raise ValidationError(f"Unknown size(s): {', '.join(bad_sizes)}")

    form = FormInputs(
        product=data.get("product") or "",
        year=str(data.get("year") or ""),
        # configured order decides the token order in the SKU
        attributes={n: attributes[n] for n in settings.attribute_names if n in attributes},
        full_mode=full_mode,
    )
    config = GenerationConfig(
        rule=data.get("rule") or settings.default_rule,
        separator=data.get("separator") or settings.default_separator,
    )
    return form, sizes, config


# ===========================================================================
# Form options
# ===========================================================================


@api_bp.route("/options", methods=["GET"])
@handle_errors
def get_options() -> tuple:
    """Return the choices the generation form offers."""
    return jsonify({
        "sizes": settings.sizes,
        "attributes": settings.attribute_names,
        "rules": [{"value": r.value, "label": r.label} for r in AttributeRule],
        "separators": list(SEPARATORS),
        "themes": list(THEMES),
        "export_formats": list(EXPORT_FORMATS),
        "defaults": {
            "rule": settings.default_rule.value,
            "separator": settings.default_separator,
        },
    }), 200


# ===========================================================================
# SKU collection
# ===========================================================================


@api_bp.route("/skus", methods=["GET"])
@handle_errors
def list_skus() -> tuple:
    """List the stored SKUs in insertion order."""
    return jsonify(_dump(_collection().records)), 200


@api_bp.route("/skus/preview", methods=["POST"])
@handle_errors
def preview_skus() -> tuple:
    """Derive SKUs for the submitted form without storing them."""
    form, sizes, config = _parse_generation_request()
    result = _collection().preview(form, sizes, config)
    return jsonify({
        "accepted": _dump(result.accepted),
        "skipped": _dump(result.skipped),
    }), 200


@api_bp.route("/skus", methods=["POST"])
@handle_errors
def generate_skus() -> tuple:
    """Generate one SKU per selected size and append the new ones."""
    form, sizes, config = _parse_generation_request()
    collection = _collection()
    result = collection.add_batch(form, sizes, config)
    return jsonify({
        "accepted": len(result.accepted),
        "skipped": len(result.skipped),
        "records": _dump(result.accepted),
        "total": len(collection),
    }), 201


@api_bp.route("/skus/<int:index>", methods=["DELETE"])
@handle_errors
def delete_sku(index: int) -> tuple:
    """Delete the SKU at the given table position."""
    collection = _collection()
    removed = collection.delete(index)
    return jsonify({"deleted": removed.model_dump(mode="json"), "total": len(collection)}), 200


@api_bp.route("/skus", methods=["DELETE"])
@handle_errors
def clear_skus() -> tuple:
    """Delete every stored SKU."""
    count = _collection().clear()
    return jsonify({"deleted": count, "total": 0}), 200


@api_bp.route("/skus/export", methods=["GET"])
@handle_errors
def export_skus() -> tuple:
    """Download the collection as CSV or XLSX."""
    fmt = request.args.get("format", "csv").lower()
    content, mimetype, filename = export_collection(_collection().records, fmt)
    return send_file(
        BytesIO(content),
        mimetype=mimetype,
        as_attachment=True,
        download_name=filename,
    )


# ===========================================================================
# Labels
# ===========================================================================


@api_bp.route("/labels/generate", methods=["POST"])
@handle_errors
def generate_labels() -> tuple:
    """Generate a barcode label sheet PDF for all or selected SKUs."""
    from services.label_generator import create_label_sheet

    records = _collection().records
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return error_response("Request body must be a JSON object", 400)
    indices = data.get("indices")
    if indices is not None:
        if not isinstance(indices, list) or not indices:
            return error_response("'indices' must be a non-empty list", 400)
        missing = [i for i in indices if not isinstance(i, int) or not 0 <= i < len(records)]
        if missing:
            raise NotFoundError(f"No SKU at position(s): {', '.join(map(str, missing))}")
        records = [records[i] for i in indices]

    if not records:
        return error_response("No SKUs to print", 400)

    output_dir = settings.label_output_dir
    os.makedirs(output_dir, exist_ok=True)
    output_path = os.path.join(output_dir, "labels.pdf")
    create_label_sheet(records, output_path)

    return jsonify({"path": output_path, "count": len(records)}), 200


@api_bp.route("/labels/<int:index>", methods=["GET"])
@handle_errors
def single_label(index: int) -> tuple:
    """Return a single thermal label PDF for one SKU."""
    from services.label_generator import create_single_label

    collection = _collection()
    if index >= len(collection):
        raise NotFoundError(f"No SKU at position {index}")
    record = collection[index]
    return send_file(
        BytesIO(create_single_label(record)),
        mimetype="application/pdf",
        download_name=f"{record.sku.replace('/', '_').replace(':', '_')}.pdf",
    )


# ===========================================================================
# Theme preference
# ===========================================================================


@api_bp.route("/theme", methods=["GET"])
@handle_errors
def get_theme() -> tuple:
    """Return the stored theme preference."""
    return jsonify({"theme": load_theme(g.store)}), 200


@api_bp.route("/theme", methods=["PUT"])
@handle_errors
def set_theme() -> tuple:
    """Store a new theme preference."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or "theme" not in data:
        return error_response("Missing required field: theme", 400)
    saved = save_theme(g.store, data["theme"])
    if not saved:
        logger.warning("Theme %s kept for this session only", data["theme"])
    return jsonify({"theme": data["theme"], "saved": saved}), 200
