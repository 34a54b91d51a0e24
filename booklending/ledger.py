"""Request ledger owning borrow request records and their status transitions."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from datetime import date

from booklending.errors import InvalidStateError, NotFoundError
from booklending.models.request import BorrowRequest, RequestStatus

logger = logging.getLogger(__name__)

# Transitions allowed by set_status, keyed by current status
ALLOWED_TRANSITIONS: dict[RequestStatus, frozenset[RequestStatus]] = {
    RequestStatus.PENDING: frozenset({RequestStatus.APPROVED, RequestStatus.REJECTED}),
    RequestStatus.APPROVED: frozenset(),
    RequestStatus.REJECTED: frozenset(),
}


class RequestLedger:
    """Stores borrow requests for all requesters.

    Ids come from a sequence that only moves forward: a cancelled request
    is removed, but its id is remembered and never handed out again.
    The ledger knows nothing about the catalog.

    Args:
        requests: Existing requests, e.g. loaded from storage.
        next_id: Next id to assign. Defaults to one past the highest known id.
        cancelled_ids: Ids of requests that were cancelled earlier.
        last_created: Creation date of the newest request ever made, kept
            across restarts because that request may since have been cancelled.
        today: Clock returning the current date.
    """

    def __init__(
        self,
        requests: Iterable[BorrowRequest] = (),
        next_id: int | None = None,
        cancelled_ids: Iterable[int] = (),
        last_created: date | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._lock = threading.RLock()
        self._today = today
        self._requests: dict[int, BorrowRequest] = {}
        for request in requests:
            if request.id in self._requests:
                raise ValueError(f"Duplicate request id in ledger: {request.id}")
            self._requests[request.id] = request.model_copy()
        self._cancelled: set[int] = set(cancelled_ids)

        highest = max([0, *self._requests, *self._cancelled])
        self._next_id = max(next_id or 1, highest + 1)
        known_dates = [r.created_at for r in self._requests.values()]
        if last_created is not None:
            known_dates.append(last_created)
        self._last_created: date | None = max(known_dates, default=None)

    @property
    def next_id(self) -> int:
        with self._lock:
            return self._next_id

    @property
    def cancelled_ids(self) -> list[int]:
        with self._lock:
            return sorted(self._cancelled)

    @property
    def last_created_at(self) -> date | None:
        with self._lock:
            return self._last_created

    def list(self) -> list[BorrowRequest]:
        """Return a snapshot of all requests in creation order."""
        with self._lock:
            return [r.model_copy() for r in self._requests.values()]

    def list_for(self, requester_id: str) -> list[BorrowRequest]:
        """Return a snapshot of one requester's requests in creation order."""
        with self._lock:
            return [
                r.model_copy()
                for r in self._requests.values()
                if r.requester_id == requester_id
            ]

    def get(self, request_id: int) -> BorrowRequest:
        """Return a copy of a request.

        Raises:
            NotFoundError: If the id is unknown or was cancelled.
        """
        with self._lock:
            return self._lookup(request_id).model_copy()

    def has_pending(self, item_id: int, requester_id: str) -> bool:
        """Check whether the requester has a pending request for the item."""
        with self._lock:
            return any(
                r.item_id == item_id
                and r.requester_id == requester_id
                and r.status is RequestStatus.PENDING
                for r in self._requests.values()
            )

    def create(self, item_id: int, item_title: str, requester_id: str) -> BorrowRequest:
        """Record a new pending request.

        The creation date never moves backwards relative to earlier
        requests, even if the clock does.

        Args:
            item_id: Id of the requested item.
            item_title: Title copied from the item for display.
            requester_id: Who is asking for the item.

        Returns:
            A copy of the new request.
        """
        with self._lock:
            created_at = self._today()
            if self._last_created is not None and created_at < self._last_created:
                created_at = self._last_created
            request = BorrowRequest(
                id=self._next_id,
                item_id=item_id,
                item_title=item_title,
                requester_id=requester_id,
                created_at=created_at,
                status=RequestStatus.PENDING,
            )
            self._requests[request.id] = request
            self._next_id += 1
            self._last_created = created_at
            logger.debug("Created request %s for item %s", request.id, item_id)
            return request.model_copy()

    def cancel(self, request_id: int) -> BorrowRequest:
        """Remove a pending request.

        Returns:
            The removed request.

        Raises:
            NotFoundError: If the id was never issued.
            InvalidStateError: If the request is approved, rejected or
                already cancelled. The ledger is left unchanged.
        """
        with self._lock:
            request = self._lookup(request_id, attempted="cancelled")
            if request.status.is_terminal:
                raise InvalidStateError(request_id, request.status.value, "cancelled")
            del self._requests[request_id]
            self._cancelled.add(request_id)
            logger.debug("Cancelled request %s", request_id)
            return request.model_copy()

    def set_status(
        self,
        request_id: int,
        new_status: RequestStatus,
        due_date: date | None = None,
    ) -> BorrowRequest:
        """Move a pending request to approved or rejected.

        Args:
            request_id: Id of the request to update.
            new_status: Target status.
            due_date: Return date recorded on an approved request.

        Raises:
            NotFoundError: If the id was never issued.
            InvalidStateError: If the transition is not allowed, including
                pending to pending and any change to a cancelled request.
            ValueError: If a due date is given for anything but an approval.
        """
        new_status = RequestStatus(new_status)
        if due_date is not None and new_status is not RequestStatus.APPROVED:
            raise ValueError("A due date can only be set when approving a request")
        with self._lock:
            request = self._lookup(request_id, attempted=new_status.value)
            if new_status not in ALLOWED_TRANSITIONS[request.status]:
                raise InvalidStateError(request_id, request.status.value, new_status.value)
            updated = request.model_copy(update={"status": new_status, "due_date": due_date})
            self._requests[request_id] = updated
            logger.debug("Request %s moved to %s", request_id, new_status.value)
            return updated.model_copy()

    def _lookup(self, request_id: int, attempted: str | None = None) -> BorrowRequest:
        # Caller holds the lock
        request = self._requests.get(request_id)
        if request is not None:
            return request
        if attempted is not None and request_id in self._cancelled:
            raise InvalidStateError(request_id, "cancelled", attempted)
        raise NotFoundError("request", request_id)
