"""Data models for the book lending core."""

from booklending.models.item import DEFAULT_COVER_URL, Category, Cohort, Item
from booklending.models.query import ALL, CatalogQuery
from booklending.models.request import BorrowRequest, ItemState, RequestStatus

__all__ = [
    "ALL",
    "BorrowRequest",
    "CatalogQuery",
    "Category",
    "Cohort",
    "DEFAULT_COVER_URL",
    "Item",
    "ItemState",
    "RequestStatus",
]
