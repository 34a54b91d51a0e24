"""Configuration loader for the book lending application."""

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from booklending.models.item import DEFAULT_COVER_URL


class AppInfo(BaseModel):
    """Application metadata."""

    name: str = "Book Lending"
    version: str = "1.0.0"


class StorageConfig(BaseModel):
    """Storage paths configuration."""

    sqlite_path: str = "./db/lending.db"
    catalog_path: str = "./data/catalog.yaml"


class CatalogConfig(BaseModel):
    """Catalog display configuration."""

    fallback_image: str = DEFAULT_COVER_URL


class LendingConfig(BaseModel):
    """Loan rules configuration."""

    loan_days: int = Field(default=14, ge=1)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class AppConfig(BaseModel):
    """Root application configuration."""

    app: AppInfo = Field(default_factory=AppInfo)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    lending: LendingConfig = Field(default_factory=LendingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(config_path: str | Path = "config.yaml") -> AppConfig:
    """Load configuration from YAML file and environment variables.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Fully populated AppConfig instance.
    """
    load_dotenv()

    yaml_data: dict = {}
    config_file = Path(config_path)
    if config_file.exists():
        with open(config_file) as f:
            yaml_data = yaml.safe_load(f) or {}

    config = AppConfig(**yaml_data)

    # Environment overrides
    db_path = os.getenv("LENDING_DB_PATH")
    if db_path:
        config.storage.sqlite_path = db_path
    log_level = os.getenv("LENDING_LOG_LEVEL")
    if log_level:
        config.logging.level = log_level.upper()

    return config
