"""Catalog query data model."""

from typing import Literal

from pydantic import BaseModel

from booklending.models.item import Category, Cohort

# Sentinel matching every category or cohort
ALL = "all"


class CatalogQuery(BaseModel):
    """Search parameters for filtering the catalog."""

    text: str = ""
    category: Category | Literal["all"] = ALL
    cohort: Cohort | Literal["all"] = ALL
