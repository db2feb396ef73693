# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING
from uuid import UUID

from dotenv import load_dotenv

from catalogix.app import build_runtime, import_feed, recompute_all, recover_stale
from catalogix.config import ConfigurationError, configure_logging
from catalogix.domain.errors import InputValidationError
from catalogix.domain.model import InboxStatus, ValueType
from catalogix.domain.operations import (
    accept_suggestion,
    batch_link_suggested,
    create_attribute_from_inbox,
    get_conflict_detail,
    get_entry,
    get_schema,
    ignore_inbox_item,
    link_inbox_item,
    list_conflicts,
    list_inbox,
    refresh_inbox_suggestions,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from catalogix.app import CatalogRuntime

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile multi-supplier product catalogs")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    feed = subparsers.add_parser("import", help="Import a JSON-lines supplier feed")
    feed.add_argument("path", type=Path, help="Feed file, one JSON record per line")
    feed.add_argument(
        "--no-recompute",
        action="store_true",
        help="Only store the records; leave affected entries pending",
    )

    recompute = subparsers.add_parser("recompute", help="Recompute derived catalog state")
    recompute.add_argument(
        "--stale",
        action="store_true",
        help="Only re-run entries left pending or failed",
    )

    inbox = subparsers.add_parser("inbox", help="Review unmatched attribute labels")
    inbox_sub = inbox.add_subparsers(dest="inbox_command", required=True)
    inbox_list = inbox_sub.add_parser("list", help="List inbox items, most frequent first")
    inbox_list.add_argument(
        "--status",
        choices=[status.value for status in InboxStatus],
        default=InboxStatus.NEW.value,
        help="Item status to show (default: %(default)s)",
    )
    inbox_link = inbox_sub.add_parser("link", help="Map a label to an existing attribute")
    inbox_link.add_argument("item_id", type=str)
    inbox_link.add_argument("attribute_id", type=str)
    inbox_accept = inbox_sub.add_parser("accept", help="Accept the suggested attribute")
    inbox_accept.add_argument("item_id", type=str)
    inbox_ignore = inbox_sub.add_parser("ignore", help="Ignore a label from now on")
    inbox_ignore.add_argument("item_id", type=str)
    inbox_create = inbox_sub.add_parser("create", help="Create a new attribute from a label")
    inbox_create.add_argument("item_id", type=str)
    inbox_create.add_argument("--key", type=str, help="Dictionary key (default: supplier:<code>)")
    inbox_create.add_argument("--code", type=str, help="Attribute code (default: the label)")
    inbox_create.add_argument(
        "--type",
        dest="value_type",
        choices=[value_type.value for value_type in ValueType],
        default=ValueType.TEXT.value,
    )
    inbox_batch = inbox_sub.add_parser("batch-link", help="Accept every suggestion at once")
    inbox_batch.add_argument(
        "--min-confidence",
        type=float,
        default=0.0,
        help="Skip suggestions below this confidence (default: %(default)s)",
    )
    inbox_sub.add_parser("refresh", help="Recalculate suggestions against the dictionary")

    conflicts = subparsers.add_parser("conflicts", help="Show attribute conflicts")
    conflicts.add_argument("--limit", type=int, help="Maximum number of conflicts to list")
    conflicts.add_argument("--entry", type=str, help="Entry id or SKU for a detailed view")
    conflicts.add_argument("--attribute", type=str, help="Attribute id for a detailed view")

    schema = subparsers.add_parser("schema", help="Show the effective schema of a category")
    schema.add_argument("category_id", type=str)

    entry = subparsers.add_parser("entry", help="Show one catalog entry")
    entry.add_argument("key", type=str, help="Entry id or SKU")

    return parser.parse_args(list(argv))


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValueError(f"Invalid UUID: {value}") from exc


def _entry_key(value: str) -> UUID | str:
    try:
        return UUID(value)
    except ValueError:
        return value


def _validate(args: argparse.Namespace) -> None:
    if args.command == "import" and not args.path.is_file():
        raise ValueError(f"Feed file not found: {args.path}")
    if args.command == "conflicts" and (args.entry is None) != (args.attribute is None):
        raise ValueError("--entry and --attribute must be given together")
    if args.command == "conflicts" and args.attribute is not None:
        _parse_uuid(args.attribute)
    if args.command == "schema":
        _parse_uuid(args.category_id)
    if args.command == "inbox" and hasattr(args, "item_id"):
        _parse_uuid(args.item_id)
    if args.command == "inbox" and args.inbox_command == "link":
        _parse_uuid(args.attribute_id)


def _run_import(runtime: CatalogRuntime, args: argparse.Namespace) -> None:
    report = import_feed(args.path, runtime=runtime, drain=not args.no_recompute)
    for key, message in report.rejected:
        print(f"rejected {key}: {message}")
    print(
        f"stored={len(report.results)} rejected={len(report.rejected)} "
        f"new_entries={report.created_entries} unmatched_labels={report.unmatched_labels}"
    )
    if report.drain is not None and report.drain.failed:
        print(f"recompute failed for {len(report.drain.failed)} entries")


def _run_recompute(runtime: CatalogRuntime, args: argparse.Namespace) -> None:
    report = recover_stale(runtime) if args.stale else recompute_all(runtime)
    print(f"completed={report.completed} retried={report.retried} failed={len(report.failed)}")


def _run_inbox(runtime: CatalogRuntime, args: argparse.Namespace) -> None:
    uow_factory = runtime.unit_of_work_factory
    command = args.inbox_command
    if command == "list":
        for item in list_inbox(unit_of_work_factory=uow_factory, status=InboxStatus(args.status)):
            suggestion = (
                f" -> {item.suggested_attribute_id} ({item.suggested_confidence:.2f})"
                if item.suggested_attribute_id is not None and item.suggested_confidence is not None
                else ""
            )
            examples = ", ".join(item.examples)
            print(f"{item.id}  x{item.frequency}  {item.label!r} [{examples}]{suggestion}")
        return
    if command == "refresh":
        print(f"refreshed {refresh_inbox_suggestions(unit_of_work_factory=uow_factory)} items")
        return
    if command == "batch-link":
        outcomes = batch_link_suggested(
            unit_of_work_factory=uow_factory,
            intents=runtime.queue,
            min_confidence=args.min_confidence,
        )
        for outcome in outcomes:
            if not outcome.succeeded:
                print(f"skipped {outcome.item_id}: {outcome.error}")
        print(f"linked {sum(1 for outcome in outcomes if outcome.succeeded)} items")
    else:
        item_id = _parse_uuid(args.item_id)
        if command == "link":
            link_inbox_item(
                item_id,
                _parse_uuid(args.attribute_id),
                unit_of_work_factory=uow_factory,
                intents=runtime.queue,
            )
        elif command == "accept":
            accept_suggestion(item_id, unit_of_work_factory=uow_factory, intents=runtime.queue)
        elif command == "ignore":
            ignore_inbox_item(item_id, unit_of_work_factory=uow_factory)
        elif command == "create":
            definition = create_attribute_from_inbox(
                item_id,
                unit_of_work_factory=uow_factory,
                intents=runtime.queue,
                key=args.key,
                code=args.code,
                value_type=ValueType(args.value_type),
            )
            print(f"created attribute {definition.id} ({definition.key}/{definition.code})")
        else:
            raise ValueError(f"Unsupported inbox command: {command}")
    runtime.pool.drain()


def _run_conflicts(runtime: CatalogRuntime, args: argparse.Namespace) -> None:
    if args.entry is not None:
        entry = get_entry(_entry_key(args.entry), unit_of_work_factory=runtime.unit_of_work_factory)
        detail = get_conflict_detail(
            entry.entry.id,
            _parse_uuid(args.attribute),
            unit_of_work_factory=runtime.unit_of_work_factory,
            policy=runtime.policy,
        )
        print(detail.rationale)
        for row in detail.rows:
            marker = "*" if row.is_active else " "
            source = "manual" if row.is_manual_override else str(row.supplier_id)
            print(f"{marker} {row.priority_score:>3}  {row.raw_value!r}  ({source})")
        return
    for summary in list_conflicts(unit_of_work_factory=runtime.unit_of_work_factory, limit=args.limit):
        print(
            f"{summary.sku}  {summary.attribute_key}  "
            f"conflicts={summary.conflict_count}  active={summary.active_value!r}"
        )


def _run_schema(runtime: CatalogRuntime, args: argparse.Namespace) -> None:
    for resolved in get_schema(
        _parse_uuid(args.category_id),
        unit_of_work_factory=runtime.unit_of_work_factory,
    ):
        flags = "required" if resolved.required else "optional"
        unit = f" [{resolved.unit}]" if resolved.unit else ""
        print(
            f"{resolved.position if resolved.position is not None else '-':>3}  "
            f"{resolved.attribute.key}/{resolved.attribute.code}{unit}  {flags}  "
            f"origin={resolved.origin}"
        )


def _run_entry(runtime: CatalogRuntime, args: argparse.Namespace) -> None:
    view = get_entry(_entry_key(args.key), unit_of_work_factory=runtime.unit_of_work_factory)
    entry = view.entry
    print(f"{entry.sku}  {entry.display_names.best() or '-'}  status={entry.recompute_status}")
    print(
        f"stock={entry.total_stock}  retail={entry.min_retail_price}..{entry.max_retail_price}  "
        f"purchase={entry.min_purchase_price}  quality={entry.quality_score}%"
    )
    if entry.verdict is not None:
        print(f"blocking: {', '.join(entry.verdict.blocking_codes) or '-'}")
        print(f"warnings: {', '.join(entry.verdict.warning_codes) or '-'}")
    for link in view.links:
        primary = " primary" if link.is_primary else ""
        print(f"link {link.supplier_entity_id} {link.link_type} {link.confidence:.2f}{primary}")
    for value in view.values:
        conflict = f"  conflicts={value.row.conflict_count}" if value.row.has_conflict else ""
        print(f"  {value.attribute.code}: {value.row.raw_value}{conflict}")
    print(
        f"attributes={view.stats.total} conflicting={view.stats.conflicting} "
        f"overridden={view.stats.overridden}"
    )


_HANDLERS = {
    "import": _run_import,
    "recompute": _run_recompute,
    "inbox": _run_inbox,
    "conflicts": _run_conflicts,
    "schema": _run_schema,
    "entry": _run_entry,
}


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args: argparse.Namespace
    try:
        parsed_args = _parse_args(args_list)
        _validate(parsed_args)
    except ValueError:
        configure_logging()
        log.exception("CLI validation error")
        sys.exit(2)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        runtime = build_runtime()
        _HANDLERS[parsed_args.command](runtime, parsed_args)
    except (InputValidationError, ConfigurationError):
        log.exception("Invalid input")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
