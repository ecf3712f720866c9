"""Configuration management for the slip ledger service.

Loads and validates YAML configuration with sensible defaults
for preprocessing, OCR, slip parsing, and budgeting settings.
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

from slipledger.budget.jars import JAR_RULES

logger = logging.getLogger(__name__)


class PreprocessingConfig(BaseModel):
    """Configuration for slip image preprocessing."""

    resize_enabled: bool = True
    target_width: int = Field(default=1800, gt=0)
    enhance_enabled: bool = True
    contrast: float = Field(default=60.0, ge=-255.0, lt=259.0)
    threshold_offset: int = 25
    min_threshold: int = Field(default=100, ge=0, le=255)
    ink_darkening: int = Field(default=40, ge=0, le=255)


class OCRConfig(BaseModel):
    """Configuration for the Tesseract recognition engine."""

    tesseract_cmd: str | None = None
    lang: str = "eng+tha"
    psm: int = 6


class ParserConfig(BaseModel):
    """Configuration for slip text parsing."""

    note_max_length: int = Field(default=180, gt=0)
    placeholder_note: str = "OCR จากสลิป"


class BudgetConfig(BaseModel):
    """Jar percentages applied to incoming money."""

    jar_percents: dict[str, float] = Field(
        default_factory=lambda: {
            "expense": 0.4,
            "saving": 0.2,
            "investment": 0.2,
            "debt": 0.2,
        }
    )

    @field_validator("jar_percents")
    @classmethod
    def _check_jar_percents(cls, value: dict[str, float]) -> dict[str, float]:
        if not value:
            raise ValueError("at least one jar is required")
        unknown = sorted(set(value) - {rule.key for rule in JAR_RULES})
        if unknown:
            raise ValueError(f"Unknown jars: {', '.join(unknown)}")
        if any(p < 0 for p in value.values()):
            raise ValueError("jar percents must not be negative")
        if abs(sum(value.values()) - 1.0) > 1e-6:
            raise ValueError("jar percents must sum to 1")
        return value


class ServerConfig(BaseModel):
    """Where the API server listens."""

    host: str = "0.0.0.0"
    port: int = Field(default=8000, gt=0, lt=65536)


class AppConfig(BaseModel):
    """Top-level application configuration."""

    preprocessing: PreprocessingConfig = Field(default_factory=PreprocessingConfig)
    ocr: OCRConfig = Field(default_factory=OCRConfig)
    parser: ParserConfig = Field(default_factory=ParserConfig)
    budget: BudgetConfig = Field(default_factory=BudgetConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    log_level: str = "INFO"


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated application configuration.
    """
    if path is None:
        path = Path("configs/config.yaml")

    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        return AppConfig(**raw)

    logger.info("No config file found at %s, using defaults", path)
    return AppConfig()
