"""SKU collection: batch generation, deduplication and write-through storage.

The module-level functions never mutate their inputs; each returns a new
list.  :class:`SkuCollection` wraps them for one session, holding the
in-memory collection and persisting it after every mutation.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, TypeAdapter, field_validator

from services.storage import COLLECTION_KEY, BlobStore
from utils.sku import (
    SEPARATORS,
    AttributeRule,
    compose_sku,
    derive_attribute_code,
    derive_product_code,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------


class SkuRecord(BaseModel):
    """A generated SKU plus the inputs and settings that produced it."""

    model_config = ConfigDict(frozen=True)

    sku: str
    attributes: dict[str, str]
    size: str
    rule: AttributeRule
    separator: str
    full_mode: dict[str, bool] = {}
    created_at: str = ""

    @property
    def product(self) -> str:
        return self.attributes.get("product", "")


class FormInputs(BaseModel):
    """Raw field values as typed by the user."""

    product: str = ""
    year: str = ""
    attributes: dict[str, str] = {}
    full_mode: dict[str, bool] = {}


class GenerationConfig(BaseModel):
    """Rule and separator applied to one generation."""

    rule: AttributeRule = AttributeRule.FIRST_LETTERS
    separator: str = "-"

    @field_validator("separator")
    @classmethod
    def _known_separator(cls, value: str) -> str:
        if value not in SEPARATORS:
            msg = f"separator must be one of {' '.join(SEPARATORS)}"
            raise ValueError(msg)
        return value


_COLLECTION_ADAPTER = TypeAdapter(list[SkuRecord])


def _now() -> str:
    """Return the current UTC timestamp as an ISO-8601 string."""
    return datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S")


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


def load_collection(store: BlobStore) -> list[SkuRecord]:
    """Load the stored collection.

    A missing slot, an unreadable store or a malformed payload all give an
    empty collection; the failure is logged, never raised.
    """
    try:
        raw = store.get(COLLECTION_KEY)
    except Exception as exc:
        logger.warning("Could not read stored SKUs: %s", exc)
        return []
    if not raw:
        return []
    try:
        return _COLLECTION_ADAPTER.validate_json(raw)
    except ValueError as exc:
        logger.warning("Discarding malformed SKU collection payload: %s", exc)
        return []


def serialize_collection(collection: Sequence[SkuRecord]) -> str:
    """Encode the collection as a JSON list of record objects."""
    return _COLLECTION_ADAPTER.dump_json(list(collection)).decode("utf-8")


def persist_collection(store: BlobStore, collection: Sequence[SkuRecord]) -> bool:
    """Write the full collection back to *store*.

    Best-effort: returns False and logs on failure instead of raising.
    """
    try:
        store.set(COLLECTION_KEY, serialize_collection(collection))
    except Exception:
        logger.warning("Failed to persist %d SKU(s)", len(collection), exc_info=True)
        return False
    return True


# ---------------------------------------------------------------------------
# Generation and collection operations
# ---------------------------------------------------------------------------


def generate_batch(
    form: FormInputs,
    sizes: Sequence[str],
    config: GenerationConfig | None = None,
) -> list[SkuRecord]:
    """Build one record per selected size, in the order the sizes are given.

    Raises ValueError when the product text is blank or no size is selected.
    """
    config = config or GenerationConfig()
    if not form.product.strip():
        msg = "product is required"
        raise ValueError(msg)
    if not sizes:
        msg = "at least one size must be selected"
        raise ValueError(msg)

    product_code = derive_product_code(form.product, form.year, config.rule)
    full_mode = {name: bool(form.full_mode.get(name, False)) for name in form.attributes}
    attribute_codes = [
        derive_attribute_code(text, config.rule, full_mode[name])
        for name, text in form.attributes.items()
    ]
    attributes = {"product": form.product, "year": form.year, **form.attributes}
    created_at = _now()

    records = []
    for size in sizes:
        size_token = size.strip().upper()
        records.append(
            SkuRecord(
                sku=compose_sku(product_code, attribute_codes, size_token, config.separator),
                attributes=attributes,
                size=size_token,
                rule=config.rule,
                separator=config.separator,
                full_mode=full_mode,
                created_at=created_at,
            )
        )
    return records


def append_unique(
    collection: Sequence[SkuRecord],
    candidates: Sequence[SkuRecord],
) -> tuple[list[SkuRecord], int]:
    """Append candidates whose SKU is not already present.

    Existing order is kept and survivors follow in candidate order.  A
    candidate repeating an earlier candidate of the same batch is dropped
    too.  Returns (new_collection, accepted_count).
    """
    seen = {record.sku for record in collection}
    accepted: list[SkuRecord] = []
    for candidate in candidates:
        if candidate.sku in seen:
            continue
        seen.add(candidate.sku)
        accepted.append(candidate)
    return [*collection, *accepted], len(accepted)


def delete_at(collection: Sequence[SkuRecord], index: int) -> list[SkuRecord]:
    """Return the collection without the record at *index*.

    Raises IndexError for negative or out-of-range positions.
    """
    if not 0 <= index < len(collection):
        msg = f"No SKU at position {index}"
        raise IndexError(msg)
    return [*collection[:index], *collection[index + 1 :]]


def clear(collection: Sequence[SkuRecord]) -> list[SkuRecord]:  # noqa: ARG001
    """Return an empty collection."""
    return []


# ---------------------------------------------------------------------------
# Session wrapper
# ---------------------------------------------------------------------------


@dataclass
class BatchResult:
    """Outcome of adding one generated batch."""

    accepted: list[SkuRecord] = field(default_factory=list)
    skipped: list[SkuRecord] = field(default_factory=list)


class SkuCollection:
    """The collection owned by one session, persisted after every change."""

    def __init__(self, store: BlobStore) -> None:
        self._store = store
        self._records = load_collection(store)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[SkuRecord]:
        return iter(self._records)

    def __getitem__(self, index: int) -> SkuRecord:
        return self._records[index]

    @property
    def records(self) -> list[SkuRecord]:
        return list(self._records)

    def preview(
        self,
        form: FormInputs,
        sizes: Sequence[str],
        config: GenerationConfig | None = None,
    ) -> BatchResult:
        """Generate a batch and report which records would be accepted."""
        candidates = generate_batch(form, sizes, config)
        _, result = _merge(self._records, candidates)
        return result

    def add_batch(
        self,
        form: FormInputs,
        sizes: Sequence[str],
        config: GenerationConfig | None = None,
    ) -> BatchResult:
        """Generate a batch, append the new SKUs and persist."""
        candidates = generate_batch(form, sizes, config)
        self._records, result = _merge(self._records, candidates)
        if result.accepted:
            self._save()
        logger.info(
            "Added %d SKU(s), skipped %d duplicate(s)",
            len(result.accepted),
            len(result.skipped),
        )
        return result

    def delete(self, index: int) -> SkuRecord:
        """Remove and return the record at *index*."""
        remaining = delete_at(self._records, index)
        removed = self._records[index]
        self._records = remaining
        self._save()
        return removed

    def clear(self) -> int:
        """Remove every record. Returns how many were removed."""
        count = len(self._records)
        self._records = clear(self._records)
        self._save()
        return count

    def _save(self) -> None:
        persist_collection(self._store, self._records)


def _merge(
    existing: Sequence[SkuRecord],
    candidates: Sequence[SkuRecord],
) -> tuple[list[SkuRecord], BatchResult]:
    """Run append_unique and split the candidates into accepted and skipped."""
    updated, count = append_unique(existing, candidates)
    accepted = updated[len(updated) - count :]
    accepted_ids = {id(record) for record in accepted}
    skipped = [c for c in candidates if id(c) not in accepted_ids]
    return updated, BatchResult(accepted=accepted, skipped=skipped)
