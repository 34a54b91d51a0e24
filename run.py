"""Command line entry point for the book lending application."""

import argparse
import logging
import sys
from pathlib import Path

from booklending.config import AppConfig, load_config
from booklending.coordinator import LendingCoordinator
from booklending.errors import LendingError
from booklending.ingestion import load_catalog_file
from booklending.models import (
    ALL,
    BorrowRequest,
    CatalogQuery,
    Category,
    Cohort,
    Item,
    ItemState,
    RequestStatus,
)
from booklending.storage.database import locked_state

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="booklending", description="Browse and request library books.")
    parser.add_argument("--config", default="config.yaml", help="Path to the YAML config file")
    sub = parser.add_subparsers(dest="command", required=True)

    listing = sub.add_parser("list", help="List the whole catalog")
    listing.add_argument("--requester", help="Show what this requester can do with each book")

    search = sub.add_parser("search", help="Filter the catalog")
    search.add_argument("text", nargs="?", default="")
    search.add_argument("--category", default=ALL, choices=[ALL, *(c.value for c in Category)])
    search.add_argument("--cohort", default=ALL, choices=[ALL, *(c.value for c in Cohort)])
    search.add_argument("--requester", help="Show what this requester can do with each book")

    request = sub.add_parser("request", help="Request a book")
    request.add_argument("item_id", type=int)
    request.add_argument("--requester", required=True)

    requests = sub.add_parser("requests", help="List a requester's requests")
    requests.add_argument("--requester", required=True)

    for name, help_text in (
        ("cancel", "Cancel a pending request"),
        ("approve", "Approve a pending request"),
        ("reject", "Reject a pending request"),
    ):
        command = sub.add_parser(name, help=help_text)
        command.add_argument("request_id", type=int)

    returned = sub.add_parser("return", help="Mark a book as returned")
    returned.add_argument("item_id", type=int)

    return parser


def load_seed(config: AppConfig) -> list[Item]:
    """Read the catalog file used to fill an empty database."""
    catalog_path = Path(config.storage.catalog_path)
    if not catalog_path.exists():
        logger.warning("Catalog is empty and no catalog file exists at %s", catalog_path)
        return []
    return load_catalog_file(catalog_path)


# Labels for the action a requester can take on a book
STATE_LABELS: dict[ItemState, str] = {
    ItemState.REQUESTED: "Requested",
    ItemState.REQUESTABLE: "Issue",
    ItemState.UNAVAILABLE: "Unavailable",
}


def format_item(item: Item, fallback_image: str, state: ItemState | None = None) -> str:
    status = "available" if item.available else "issued"
    line = (
        f"[{item.id}] {item.title} by {item.author} "
        f"({item.category.value}, {item.cohort.value}) {status} "
        f"cover={item.display_image(fallback=fallback_image)}"
    )
    if state is not None:
        line += f" action={STATE_LABELS[state]}"
    return line


def format_request(request: BorrowRequest) -> str:
    line = (
        f"#{request.id} {request.item_title} (item {request.item_id}) "
        f"requested {request.created_at.isoformat()} [{request.status.value}]"
    )
    if request.status is RequestStatus.APPROVED and request.due_date is not None:
        line += f" return due {request.due_date.isoformat()} (in {request.days_until_due()} days)"
    return line


def print_items(
    items: list[Item], coordinator: LendingCoordinator, requester: str | None, fallback: str
) -> None:
    for item in items:
        state = coordinator.item_state(item.id, requester) if requester else None
        print(format_item(item, fallback, state))


def execute(args: argparse.Namespace, coordinator: LendingCoordinator, config: AppConfig) -> None:
    """Run one command and print its outcome."""
    fallback = config.catalog.fallback_image

    if args.command == "list":
        print_items(coordinator.list_catalog(), coordinator, args.requester, fallback)
        return

    if args.command == "search":
        query = CatalogQuery(text=args.text, category=args.category, cohort=args.cohort)
        print_items(coordinator.filter_catalog(query), coordinator, args.requester, fallback)
        return

    if args.command == "requests":
        for request in coordinator.list_my_requests(args.requester):
            print(format_request(request))
        return

    if args.command == "request":
        request = coordinator.request_item(args.item_id, args.requester)
        print(f"Book Requested: {format_request(request)}")
    elif args.command == "cancel":
        request = coordinator.cancel_request(args.request_id)
        print(f"Request Cancelled: {format_request(request)}")
    elif args.command == "approve":
        request = coordinator.approve_request(args.request_id)
        print(f"Request Approved: {format_request(request)}")
    elif args.command == "reject":
        request = coordinator.reject_request(args.request_id)
        print(f"Request Rejected: {format_request(request)}")
    elif args.command == "return":
        item = coordinator.return_item(args.item_id)
        print(f"Book Returned: {format_item(item, fallback)}")


def main(argv: list[str] | None = None) -> int:
    """Parse arguments and run the command inside one locked database transaction.

    Concurrent runs against the same database wait for each other, so
    each one sees the state the previous one saved.
    """
    args = build_parser().parse_args(argv)
    config = load_config(args.config)
    logging.basicConfig(level=config.logging.level, format=config.logging.format)

    with locked_state(config.storage.sqlite_path, seed=lambda: load_seed(config)) as (catalog, ledger):
        coordinator = LendingCoordinator(catalog, ledger, loan_days=config.lending.loan_days)
        try:
            execute(args, coordinator, config)
        except LendingError as e:
            print(e.notice, file=sys.stderr)
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
