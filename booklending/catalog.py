"""In-memory catalog store owning all item records."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable

from booklending.errors import NotFoundError
from booklending.models.item import Item

logger = logging.getLogger(__name__)


class CatalogStore:
    """Holds catalog items keyed by id, in insertion order.

    Items are created by ingestion and handed to the constructor; the only
    mutation afterwards is ``set_availability``. Readers always get copies,
    so a caller can never change a stored item directly.

    Args:
        items: Initial catalog contents. Ids must be unique.

    Raises:
        ValueError: If two items share an id.
    """

    def __init__(self, items: Iterable[Item] = ()) -> None:
        self._lock = threading.RLock()
        self._items: dict[int, Item] = {}
        for item in items:
            if item.id in self._items:
                raise ValueError(f"Duplicate item id in catalog: {item.id}")
            self._items[item.id] = item.model_copy()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        with self._lock:
            return item_id in self._items

    def get(self, item_id: int) -> Item:
        """Return a copy of the item with the given id.

        Raises:
            NotFoundError: If no such item exists.
        """
        with self._lock:
            item = self._items.get(item_id)
            if item is None:
                raise NotFoundError("item", item_id)
            return item.model_copy()

    def list(self) -> list[Item]:
        """Return a snapshot of every item in insertion order."""
        with self._lock:
            return [item.model_copy() for item in self._items.values()]

    def set_availability(self, item_id: int, available: bool) -> Item:
        """Mark an item as available or issued.

        Setting the value an item already has is a successful no-op.

        Args:
            item_id: Id of the item to update.
            available: New availability flag.

        Returns:
            A copy of the updated item.

        Raises:
            NotFoundError: If no such item exists.
        """
        with self._lock:
            item = self._items.get(item_id)
            if item is None:
                raise NotFoundError("item", item_id)
            if item.available == available:
                logger.debug("Item %s already has available=%s", item_id, available)
                return item.model_copy()
            updated = item.model_copy(update={"available": available})
            self._items[item_id] = updated
            logger.info("Item %s availability set to %s", item_id, available)
            return updated.model_copy()
