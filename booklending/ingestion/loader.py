"""Catalog seed file loader."""

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from booklending.models.item import Item

logger = logging.getLogger(__name__)


def load_catalog_file(file_path: str | Path) -> list[Item]:
    """Read catalog items from a YAML seed file.

    The file holds a top-level ``items`` list; each entry carries the
    Item fields (``id``, ``title``, ``category``, ``cohort`` and so on).

    Args:
        file_path: Path to the YAML file.

    Returns:
        The parsed items, in file order.

    Raises:
        FileNotFoundError: If file_path does not exist.
        ValueError: If the file is not a mapping with an ``items`` list,
            or an entry is not a valid item.
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Catalog file not found: {path}")

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict) or not isinstance(data.get("items", []), list):
        raise ValueError(f"Catalog file {path} must contain an 'items' list")

    items: list[Item] = []
    for index, entry in enumerate(data.get("items", [])):
        if not isinstance(entry, dict):
            raise ValueError(f"Catalog entry #{index} in {path} is not a mapping")
        try:
            items.append(Item(**entry))
        except ValidationError as e:
            raise ValueError(f"Invalid catalog entry #{index} in {path}: {e}") from e

    logger.info("Loaded %d catalog items from %s", len(items), path)
    return items
