"""Catalog ingestion from seed files."""

from booklending.ingestion.loader import load_catalog_file

__all__ = ["load_catalog_file"]
