"""Recoverable errors raised by the catalog, ledger and coordinator.

Each error carries a short ``notice`` suitable for showing to the user.
"""


class LendingError(Exception):
    """Base class for expected lending failures."""

    notice = "The operation could not be completed."


class NotFoundError(LendingError):
    """A referenced item or request id does not exist."""

    def __init__(self, kind: str, key: int) -> None:
        self.kind = kind
        self.key = key
        self.notice = f"No {kind} with id {key} was found."
        super().__init__(f"{kind} {key} not found")


class AlreadyRequestedError(LendingError):
    """The requester already has a pending request for the item."""

    notice = "You've already requested this book and it's pending approval."

    def __init__(self, item_id: int, requester_id: str) -> None:
        self.item_id = item_id
        self.requester_id = requester_id
        super().__init__(
            f"requester {requester_id!r} already has a pending request for item {item_id}"
        )


class ItemUnavailableError(LendingError):
    """The item is currently issued and cannot be requested."""

    notice = "This book is currently issued and cannot be requested."

    def __init__(self, item_id: int) -> None:
        self.item_id = item_id
        super().__init__(f"item {item_id} is not available")


class InvalidStateError(LendingError):
    """The request cannot make the attempted transition."""

    def __init__(self, request_id: int, current: str, attempted: str) -> None:
        self.request_id = request_id
        self.current = current
        self.attempted = attempted
        self.notice = f"Request {request_id} is {current} and cannot be {attempted}."
        super().__init__(f"request {request_id}: cannot go from {current} to {attempted}")
