"""Borrow request data model."""

from datetime import date
from enum import Enum

from pydantic import BaseModel, Field


class RequestStatus(str, Enum):
    """Lifecycle status of a borrow request."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not RequestStatus.PENDING


class ItemState(str, Enum):
    """What a given requester can do with a catalog item."""

    REQUESTED = "requested"  # requester has a pending request for it
    REQUESTABLE = "requestable"
    UNAVAILABLE = "unavailable"  # issued to someone


class BorrowRequest(BaseModel):
    """A requester's claim on a catalog item.

    ``item_title`` is copied from the item when the request is created
    and is not refreshed if the item is renamed later. ``due_date`` is
    set when the request is approved.
    """

    id: int
    item_id: int
    item_title: str
    requester_id: str
    created_at: date = Field(default_factory=date.today)
    status: RequestStatus = RequestStatus.PENDING
    due_date: date | None = None

    def days_until_due(self, today: date | None = None) -> int | None:
        """Days left before the item must be returned, negative when overdue."""
        if self.due_date is None:
            return None
        return (self.due_date - (today or date.today())).days
