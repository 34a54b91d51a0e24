"""Stateless catalog filtering."""

from collections.abc import Iterable

from booklending.models.item import Item
from booklending.models.query import ALL, CatalogQuery


def matches(item: Item, query: CatalogQuery) -> bool:
    """Check whether a single item satisfies every predicate of the query."""
    needle = query.text.strip().lower()
    if needle and needle not in item.title.lower() and needle not in item.author.lower():
        return False
    if query.category != ALL and item.category != query.category:
        return False
    if query.cohort != ALL and item.cohort != query.cohort:
        return False
    return True


def filter_items(items: Iterable[Item], query: CatalogQuery) -> list[Item]:
    """Filter a catalog snapshot by text, category and cohort.

    Text matches case-insensitively against title or author, and an empty
    text matches everything. The ``"all"`` sentinel disables the category
    or cohort predicate. The result keeps the input order and is rebuilt
    from scratch on every call.

    Args:
        items: Catalog snapshot to filter. Not modified.
        query: Search parameters.

    Returns:
        The matching items, in their original order.
    """
    return [item for item in items if matches(item, query)]
