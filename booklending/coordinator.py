"""Coordinator validating and executing lending commands across both stores."""

import logging
import threading
from collections.abc import Callable
from datetime import date, timedelta

from booklending.catalog import CatalogStore
from booklending.errors import (
    AlreadyRequestedError,
    ItemUnavailableError,
    LendingError,
    NotFoundError,
)
from booklending.filters import filter_items
from booklending.ledger import RequestLedger
from booklending.models.item import Item
from booklending.models.query import CatalogQuery
from booklending.models.request import BorrowRequest, ItemState, RequestStatus

logger = logging.getLogger(__name__)

# Days an approved loan lasts before the item is due back
DEFAULT_LOAN_DAYS = 14


class LendingCoordinator:
    """Entry point used by the display layer.

    The coordinator is the only component that reads or changes both the
    catalog and the ledger within one operation. Commands run under a
    single write lock so that every check-then-act sequence (dedup check
    plus creation, approval plus availability change) is atomic.

    Args:
        catalog: Store owning the items.
        ledger: Store owning the borrow requests.
        loan_days: Loan period used to set the due date on approval.
        today: Clock returning the current date.
    """

    def __init__(
        self,
        catalog: CatalogStore,
        ledger: RequestLedger,
        loan_days: int = DEFAULT_LOAN_DAYS,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._catalog = catalog
        self._ledger = ledger
        self._loan_days = loan_days
        self._today = today
        self._write_lock = threading.Lock()

    @property
    def catalog(self) -> CatalogStore:
        return self._catalog

    @property
    def ledger(self) -> RequestLedger:
        return self._ledger

    # -- Reads -------------------------------------------------------------

    def list_catalog(self) -> list[Item]:
        return self._catalog.list()

    def filter_catalog(self, query: CatalogQuery) -> list[Item]:
        return filter_items(self._catalog.list(), query)

    def list_my_requests(self, requester_id: str) -> list[BorrowRequest]:
        return self._ledger.list_for(requester_id)

    def item_state(self, item_id: int, requester_id: str) -> ItemState:
        """Tell a requester whether an item is already requested, requestable or issued.

        A pending request wins over availability, so an item the requester
        is waiting on shows as requested even if it has since been issued.

        Raises:
            NotFoundError: If the item does not exist.
        """
        with self._write_lock:
            item = self._catalog.get(item_id)
            if self._ledger.has_pending(item_id, requester_id):
                return ItemState.REQUESTED
        return ItemState.REQUESTABLE if item.available else ItemState.UNAVAILABLE

    # -- Commands ----------------------------------------------------------

    def request_item(self, item_id: int, requester_id: str) -> BorrowRequest:
        """Submit a borrow request for an item.

        The item stays available while the request is pending; only an
        approval marks it as issued.

        Args:
            item_id: Id of the requested item.
            requester_id: Who is asking.

        Returns:
            The new pending request.

        Raises:
            NotFoundError: If the item does not exist.
            ItemUnavailableError: If the item is currently issued.
            AlreadyRequestedError: If the requester already has a pending
                request for this item.
        """
        with self._write_lock:
            try:
                item = self._catalog.get(item_id)
                if not item.available:
                    raise ItemUnavailableError(item_id)
                if self._ledger.has_pending(item_id, requester_id):
                    raise AlreadyRequestedError(item_id, requester_id)
            except LendingError as e:
                logger.warning("Request for item %s by %r refused: %s", item_id, requester_id, e)
                raise
            request = self._ledger.create(item.id, item.title, requester_id)

        logger.info(
            "Request %s created for item %s by %r", request.id, item_id, requester_id
        )
        return request

    def cancel_request(self, request_id: int) -> BorrowRequest:
        """Cancel a pending request.

        Returns:
            The removed request.

        Raises:
            NotFoundError: If the request id was never issued.
            InvalidStateError: If the request is no longer pending.
        """
        with self._write_lock:
            request = self._ledger.cancel(request_id)
        logger.info("Request %s cancelled", request_id)
        return request

    def approve_request(self, request_id: int) -> BorrowRequest:
        """Approve a pending request and mark its item as issued.

        The request gets a due date ``loan_days`` after today.
        The approval is committed first. If the catalog update then fails,
        the approval is kept and the mismatch is logged instead of rolled
        back.

        Raises:
            NotFoundError: If the request id was never issued.
            InvalidStateError: If the request is not pending.
        """
        with self._write_lock:
            due_date = self._today() + timedelta(days=self._loan_days)
            request = self._ledger.set_status(request_id, RequestStatus.APPROVED, due_date=due_date)
            try:
                self._catalog.set_availability(request.item_id, False)
            except NotFoundError:
                logger.error(
                    "Request %s approved but item %s is missing from the catalog; "
                    "availability not updated",
                    request_id,
                    request.item_id,
                )
        logger.info(
            "Request %s approved for item %s, due %s", request_id, request.item_id, due_date
        )
        return request

    def reject_request(self, request_id: int) -> BorrowRequest:
        """Reject a pending request. The catalog is not touched.

        Raises:
            NotFoundError: If the request id was never issued.
            InvalidStateError: If the request is not pending.
        """
        with self._write_lock:
            request = self._ledger.set_status(request_id, RequestStatus.REJECTED)
        logger.info("Request %s rejected", request_id)
        return request

    def return_item(self, item_id: int) -> Item:
        """Mark an issued item as available again.

        Raises:
            NotFoundError: If the item does not exist.
        """
        with self._write_lock:
            item = self._catalog.set_availability(item_id, True)
        logger.info("Item %s returned", item_id)
        return item
