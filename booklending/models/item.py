"""Catalog item data model."""

from collections.abc import Callable
from enum import Enum

from pydantic import BaseModel

# Cover shown when an item has no usable image reference
DEFAULT_COVER_URL = "https://placehold.co/600x400?text=No+Cover"


class Category(str, Enum):
    """Department an item is shelved under."""

    AI_ML = "AI ML"
    CO = "CO"
    EJ = "EJ"
    CIVIL = "CIVIL"
    ME = "ME"


class Cohort(str, Enum):
    """Study year an item is intended for."""

    FY = "FY"
    SY = "SY"
    TY = "TY"


class Item(BaseModel):
    """A single lendable unit in the catalog."""

    id: int
    title: str
    author: str = ""
    description: str = ""
    category: Category
    cohort: Cohort
    available: bool = True
    image_ref: str = ""

    def display_image(
        self,
        is_reachable: Callable[[str], bool] | None = None,
        fallback: str = DEFAULT_COVER_URL,
    ) -> str:
        """Return the cover reference to render for this item.

        Args:
            is_reachable: Optional predicate checking whether a reference
                can be loaded. Skipped when None.
            fallback: Reference used when ``image_ref`` is empty or unreachable.

        Returns:
            ``image_ref`` if usable, otherwise ``fallback``.
        """
        if not self.image_ref.strip():
            return fallback
        if is_reachable is not None and not is_reachable(self.image_ref):
            return fallback
        return self.image_ref
