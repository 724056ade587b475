"""Theme preference stored alongside the SKU collection."""

from __future__ import annotations

import logging

from config import THEMES, settings
from services.storage import THEME_KEY, BlobStore

logger = logging.getLogger(__name__)


def load_theme(store: BlobStore) -> str:
    """Return the stored theme, falling back to the configured default."""
    try:
        theme = store.get(THEME_KEY)
    except Exception as exc:
        logger.warning("Could not read theme preference: %s", exc)
        return settings.default_theme
    if theme not in THEMES:
        return settings.default_theme
    return theme


def save_theme(store: BlobStore, theme: str) -> bool:
    """Persist *theme*. Raises ValueError for unknown themes.

    Storage failures are logged and reported as False.
    """
    if theme not in THEMES:
        msg = f"theme must be one of {', '.join(THEMES)}"
        raise ValueError(msg)
    try:
        store.set(THEME_KEY, theme)
    except Exception:
        logger.warning("Failed to persist theme %r", theme, exc_info=True)
        return False
    return True
