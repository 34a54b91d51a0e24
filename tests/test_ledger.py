"""Tests for the request ledger."""

from datetime import date

import pytest

from booklending.errors import InvalidStateError, NotFoundError
from booklending.ledger import RequestLedger
from booklending.models import BorrowRequest, RequestStatus


@pytest.fixture
def ledger() -> RequestLedger:
    return RequestLedger(today=lambda: date(2023, 5, 15))


class TestCreate:
    def test_create_pending_request(self, ledger: RequestLedger) -> None:
        request = ledger.create(3, "Web Development Technologies", "s1")
        assert request.id == 1
        assert request.status is RequestStatus.PENDING
        assert request.item_title == "Web Development Technologies"
        assert request.created_at == date(2023, 5, 15)

    def test_ids_increase(self, ledger: RequestLedger) -> None:
        first = ledger.create(1, "A", "s1")
        second = ledger.create(2, "B", "s1")
        assert second.id == first.id + 1

    def test_ids_not_reused_after_cancel(self, ledger: RequestLedger) -> None:
        first = ledger.create(1, "A", "s1")
        ledger.cancel(first.id)
        second = ledger.create(1, "A", "s1")
        assert second.id > first.id

    def test_created_at_never_goes_backwards(self) -> None:
        days = iter([date(2023, 5, 15), date(2023, 5, 10), date(2023, 5, 16)])
        ledger = RequestLedger(today=lambda: next(days))
        dates = [ledger.create(i, "T", "s1").created_at for i in range(3)]
        assert dates == [date(2023, 5, 15), date(2023, 5, 15), date(2023, 5, 16)]


class TestQueries:
    def test_list_for_filters_by_requester(self, ledger: RequestLedger) -> None:
        ledger.create(1, "A", "s1")
        ledger.create(2, "B", "s2")
        ledger.create(3, "C", "s1")
        assert [r.item_id for r in ledger.list_for("s1")] == [1, 3]
        assert [r.item_id for r in ledger.list_for("s2")] == [2]
        assert ledger.list_for("nobody") == []

    def test_list_all(self, ledger: RequestLedger) -> None:
        ledger.create(1, "A", "s1")
        ledger.create(2, "B", "s2")
        assert [r.id for r in ledger.list()] == [1, 2]

    def test_has_pending(self, ledger: RequestLedger) -> None:
        ledger.create(1, "A", "s1")
        assert ledger.has_pending(1, "s1") is True
        assert ledger.has_pending(1, "s2") is False
        assert ledger.has_pending(2, "s1") is False

    def test_has_pending_false_after_decision(self, ledger: RequestLedger) -> None:
        request = ledger.create(1, "A", "s1")
        ledger.set_status(request.id, RequestStatus.REJECTED)
        assert ledger.has_pending(1, "s1") is False

    def test_get_missing_raises(self, ledger: RequestLedger) -> None:
        with pytest.raises(NotFoundError):
            ledger.get(42)

    def test_snapshot_is_a_copy(self, ledger: RequestLedger) -> None:
        request = ledger.create(1, "A", "s1")
        ledger.list()[0].status = RequestStatus.APPROVED
        assert ledger.get(request.id).status is RequestStatus.PENDING


class TestCancel:
    def test_cancel_pending_removes_it(self, ledger: RequestLedger) -> None:
        request = ledger.create(1, "A", "s1")
        removed = ledger.cancel(request.id)
        assert removed.id == request.id
        assert ledger.list_for("s1") == []
        assert ledger.cancelled_ids == [request.id]

    @pytest.mark.parametrize("status", [RequestStatus.APPROVED, RequestStatus.REJECTED])
    def test_cancel_terminal_request_fails(
        self, ledger: RequestLedger, status: RequestStatus
    ) -> None:
        request = ledger.create(1, "A", "s1")
        ledger.set_status(request.id, status)
        before = ledger.list()

        with pytest.raises(InvalidStateError):
            ledger.cancel(request.id)
        assert ledger.list() == before

    def test_double_cancel_is_invalid_state(self, ledger: RequestLedger) -> None:
        request = ledger.create(1, "A", "s1")
        ledger.cancel(request.id)
        with pytest.raises(InvalidStateError) as excinfo:
            ledger.cancel(request.id)
        assert excinfo.value.current == "cancelled"

    def test_cancel_unknown_is_not_found(self, ledger: RequestLedger) -> None:
        with pytest.raises(NotFoundError):
            ledger.cancel(7)


class TestSetStatus:
    def test_approve(self, ledger: RequestLedger) -> None:
        request = ledger.create(1, "A", "s1")
        updated = ledger.set_status(request.id, RequestStatus.APPROVED)
        assert updated.status is RequestStatus.APPROVED
        assert ledger.get(request.id).status is RequestStatus.APPROVED

    def test_reject_accepts_string_status(self, ledger: RequestLedger) -> None:
        request = ledger.create(1, "A", "s1")
        assert ledger.set_status(request.id, "rejected").status is RequestStatus.REJECTED

    def test_pending_to_pending_is_invalid(self, ledger: RequestLedger) -> None:
        request = ledger.create(1, "A", "s1")
        with pytest.raises(InvalidStateError):
            ledger.set_status(request.id, RequestStatus.PENDING)

    @pytest.mark.parametrize(
        ("first", "second"),
        [
            (RequestStatus.APPROVED, RequestStatus.REJECTED),
            (RequestStatus.APPROVED, RequestStatus.PENDING),
            (RequestStatus.APPROVED, RequestStatus.APPROVED),
            (RequestStatus.REJECTED, RequestStatus.APPROVED),
            (RequestStatus.REJECTED, RequestStatus.PENDING),
        ],
    )
    def test_terminal_statuses_are_final(
        self, ledger: RequestLedger, first: RequestStatus, second: RequestStatus
    ) -> None:
        request = ledger.create(1, "A", "s1")
        ledger.set_status(request.id, first)
        with pytest.raises(InvalidStateError):
            ledger.set_status(request.id, second)
        assert ledger.get(request.id).status is first

    def test_cancelled_request_cannot_be_approved(self, ledger: RequestLedger) -> None:
        request = ledger.create(1, "A", "s1")
        ledger.cancel(request.id)
        with pytest.raises(InvalidStateError):
            ledger.set_status(request.id, RequestStatus.APPROVED)

    def test_unknown_request_not_found(self, ledger: RequestLedger) -> None:
        with pytest.raises(NotFoundError):
            ledger.set_status(9, RequestStatus.APPROVED)

    def test_unknown_status_value_rejected(self, ledger: RequestLedger) -> None:
        request = ledger.create(1, "A", "s1")
        with pytest.raises(ValueError):
            ledger.set_status(request.id, "cancelled")


class TestRestore:
    def test_rebuild_from_records(self) -> None:
        records = [
            BorrowRequest(
                id=1, item_id=3, item_title="Web", requester_id="s1",
                created_at=date(2023, 5, 15), status="pending",
            ),
            BorrowRequest(
                id=2, item_id=2, item_title="DBMS", requester_id="s1",
                created_at=date(2023, 5, 10), status="approved",
            ),
        ]
        ledger = RequestLedger(records, cancelled_ids=[5])
        assert ledger.next_id == 6
        assert ledger.has_pending(3, "s1") is True
        assert ledger.create(1, "C", "s1").id == 6

    def test_explicit_next_id_wins_when_higher(self) -> None:
        ledger = RequestLedger(next_id=10)
        assert ledger.create(1, "A", "s1").id == 10

    def test_created_at_continues_from_records(self) -> None:
        records = [
            BorrowRequest(
                id=1, item_id=3, item_title="Web", requester_id="s1",
                created_at=date(2030, 1, 1),
            )
        ]
        ledger = RequestLedger(records, today=lambda: date(2023, 1, 1))
        assert ledger.create(1, "A", "s1").created_at == date(2030, 1, 1)

    def test_duplicate_ids_rejected(self) -> None:
        record = BorrowRequest(id=1, item_id=3, item_title="Web", requester_id="s1")
        with pytest.raises(ValueError, match="Duplicate request id"):
            RequestLedger([record, record])


class TestDueDate:
    def test_approval_records_due_date(self, ledger: RequestLedger) -> None:
        request = ledger.create(1, "A", "s1")
        approved = ledger.set_status(request.id, RequestStatus.APPROVED, due_date=date(2023, 5, 29))
        assert approved.due_date == date(2023, 5, 29)
        assert ledger.get(request.id).due_date == date(2023, 5, 29)

    def test_pending_request_has_no_due_date(self, ledger: RequestLedger) -> None:
        assert ledger.create(1, "A", "s1").due_date is None

    def test_due_date_only_on_approval(self, ledger: RequestLedger) -> None:
        request = ledger.create(1, "A", "s1")
        with pytest.raises(ValueError, match="due date"):
            ledger.set_status(request.id, RequestStatus.REJECTED, due_date=date(2023, 5, 29))
        assert ledger.get(request.id).status is RequestStatus.PENDING


class TestLastCreated:
    def test_tracks_newest_creation(self, ledger: RequestLedger) -> None:
        assert ledger.last_created_at is None
        ledger.create(1, "A", "s1")
        assert ledger.last_created_at == date(2023, 5, 15)

    def test_kept_after_cancelling_newest(self, ledger: RequestLedger) -> None:
        request = ledger.create(1, "A", "s1")
        ledger.cancel(request.id)
        assert ledger.last_created_at == date(2023, 5, 15)

    def test_restored_date_bounds_new_requests(self) -> None:
        ledger = RequestLedger(last_created=date(2023, 6, 1), today=lambda: date(2023, 5, 1))
        assert ledger.create(1, "A", "s1").created_at == date(2023, 6, 1)
