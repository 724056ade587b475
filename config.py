"""Application configuration loaded from environment variables."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator, model_validator

from utils.sku import SEPARATORS, AttributeRule

load_dotenv()

_PROJECT_ROOT = Path(__file__).resolve().parent

logger = logging.getLogger(__name__)

DEFAULT_SIZES = ["XS", "S", "M", "L", "XL", "XXL"]
DEFAULT_ATTRIBUTES = ["article", "color"]
THEMES = ("light", "dark")


def _split_list(raw: str) -> list[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


class Config(BaseModel):
    """Centralised app configuration backed by env vars."""

    # App paths
    database_path: str = str(_PROJECT_ROOT / "data" / "sku_store.db")
    export_dir: str = str(_PROJECT_ROOT / "data" / "exports")
    label_output_dir: str = str(_PROJECT_ROOT / "data" / "labels")

    # SKU generation
    sizes: list[str] = DEFAULT_SIZES
    attribute_names: list[str] = DEFAULT_ATTRIBUTES
    default_rule: AttributeRule = AttributeRule.FIRST_LETTERS
    default_separator: str = "-"
    default_theme: str = "light"

    # Flask
    flask_host: str = "127.0.0.1"
    flask_port: int = 5000
    flask_debug: bool = True
    flask_secret_key: str = "change-me-in-production"  # noqa: S105
    cors_origins: list[str] = ["http://localhost:5173"]

    @field_validator("sizes")
    @classmethod
    def _upper_sizes(cls, value: list[str]) -> list[str]:
        return [s.strip().upper() for s in value if s.strip()]

    @field_validator("attribute_names")
    @classmethod
    def _lower_attribute_names(cls, value: list[str]) -> list[str]:
        names = [n.strip().lower() for n in value if n.strip()]
        reserved = {"product", "year"} & set(names)
        if reserved:
            msg = f"attribute names clash with reserved fields: {', '.join(sorted(reserved))}"
            raise ValueError(msg)
        return names

    @field_validator("default_separator")
    @classmethod
    def _known_separator(cls, value: str) -> str:
        if value not in SEPARATORS:
            msg = f"default_separator must be one of {', '.join(SEPARATORS)}"
            raise ValueError(msg)
        return value

    @field_validator("default_theme")
    @classmethod
    def _known_theme(cls, value: str) -> str:
        if value not in THEMES:
            msg = f"default_theme must be one of {', '.join(THEMES)}"
            raise ValueError(msg)
        return value

    @model_validator(mode="after")
    def _warn_odd_settings(self) -> Config:
        """Log warnings for settings that are valid but probably unintended."""
        if not self.sizes:
            logger.warning("SKU_SIZES is empty — no SKUs can be generated")
        if not self.flask_debug and self.flask_secret_key == "change-me-in-production":  # noqa: S105
            logger.warning("FLASK_SECRET_KEY is still the default value")
        return self

    @classmethod
    def from_env(cls) -> Config:
        """Build config from environment variables."""
        return cls(
            database_path=os.getenv(
                "DATABASE_PATH", str(_PROJECT_ROOT / "data" / "sku_store.db")
            ),
            export_dir=os.getenv("EXPORT_DIR", str(_PROJECT_ROOT / "data" / "exports")),
            label_output_dir=os.getenv("LABEL_OUTPUT_DIR", str(_PROJECT_ROOT / "data" / "labels")),
            sizes=_split_list(os.getenv("SKU_SIZES", ",".join(DEFAULT_SIZES))),
            attribute_names=_split_list(os.getenv("SKU_ATTRIBUTES", ",".join(DEFAULT_ATTRIBUTES))),
            default_rule=os.getenv("DEFAULT_RULE", AttributeRule.FIRST_LETTERS.value),
            default_separator=os.getenv("DEFAULT_SEPARATOR", "-"),
            default_theme=os.getenv("DEFAULT_THEME", "light"),
            flask_host=os.getenv("FLASK_HOST", "127.0.0.1"),
            flask_port=int(os.getenv("FLASK_PORT", "5000")),
            flask_debug=os.getenv("FLASK_DEBUG", "true").lower() in ("1", "true", "yes"),
            flask_secret_key=os.getenv("FLASK_SECRET_KEY", "change-me-in-production"),
            cors_origins=_split_list(os.getenv("CORS_ORIGINS", "http://localhost:5173")),
        )


settings = Config.from_env()
