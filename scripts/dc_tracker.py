#!/usr/bin/env python3
"""
Saved DC tracker: list, inspect and move delivery challans through their
lifecycle from the command line.

Storage and catalog endpoints come from the active config
(get_active_config): the packaged defaults, an optional --config file and
CHALLAN_* environment variables.

Usage:
    python3 scripts/dc_tracker.py [--config FILE] [--user NAME] <command> [options]

Examples:
    # Pending DCs older than a week
    python3 scripts/dc_tracker.py list --queue pending --filter overdue

    # Mark a DC returned, then link its invoice
    python3 scripts/dc_tracker.py --user asha return <dc-id> --by "Asha"
    python3 scripts/dc_tracker.py --user asha invoice <dc-id> --ref INV-104

    # Export the returned queue to CSV
    python3 scripts/dc_tracker.py export --queue returned --output returned.csv

    # Search the procedure catalog
    python3 scripts/dc_tracker.py search "tibia nail" --type Trauma
"""

from __future__ import annotations

import argparse
import sys
from datetime import date
from pathlib import Path

# Project root on sys.path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

STATUSES = ("pending", "returned", "completed", "cash")
QUICK_FILTERS = ("all", "today", "week", "month", "overdue")
SORT_KEYS = ("date", "dcNo", "party", "items", "days", "status")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Track saved delivery challans.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--config", type=Path, default=None, help="YAML file layered over the defaults.")
    parser.add_argument("--user", default=None, help="Log in as this user before changing anything.")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("list", help="List DCs in one status queue.")
    p.add_argument("--queue", choices=STATUSES, default="pending")
    p.add_argument("--filter", dest="quick_filter", choices=QUICK_FILTERS, default="all")
    p.add_argument("--search", default="", help="Match hospital name or DC number.")
    p.add_argument("--from", dest="date_from", type=date.fromisoformat, default=None)
    p.add_argument("--to", dest="date_to", type=date.fromisoformat, default=None)
    p.add_argument("--sort", choices=SORT_KEYS, default="date")
    p.add_argument("--asc", action="store_true", help="Ascending order (default: descending).")

    p = sub.add_parser("show", help="Show one DC with its history.")
    p.add_argument("dc_id")

    p = sub.add_parser("return", help="Mark a pending DC returned.")
    p.add_argument("dc_id")
    p.add_argument("--by", required=True, help="Who returned the material.")
    p.add_argument("--remarks", default="")

    p = sub.add_parser("invoice", help="Link an invoice (returned or cash DC -> completed).")
    p.add_argument("dc_id")
    p.add_argument("--ref", required=True, help="Invoice number.")
    p.add_argument("--remarks", default="")

    p = sub.add_parser("cash", help="Move a returned DC to the cash queue.")
    p.add_argument("dc_id")
    p.add_argument("--amount", required=True)
    p.add_argument("--remarks", default="")

    p = sub.add_parser("revert", help="Move a DC one step back (returned -> pending, completed -> returned).")
    p.add_argument("dc_id")

    p = sub.add_parser("delete", help="Delete a DC (non-pending DCs need the delete password).")
    p.add_argument("dc_id")
    p.add_argument("--password", default=None)

    p = sub.add_parser("export", help="Export one queue as CSV.")
    p.add_argument("--queue", choices=STATUSES, default="pending")
    p.add_argument("--output", type=Path, default=None, help="File to write (default: stdout).")

    p = sub.add_parser("search", help="Fuzzy search the procedure catalog.")
    p.add_argument("query")
    p.add_argument("--type", dest="procedure_type", default="All")
    p.add_argument("--items", action="store_true", help="Search items instead of procedures.")
    p.add_argument("--instruments", action="store_true", help="Search instruments instead of procedures.")
    return parser


def _print_dc_line(dc, selector) -> None:
    from challan_kernel.selectors import format_date

    flag = " OVERDUE" if selector.is_overdue(dc) else ""
    print(
        f"{format_date(dc.display_date)}  {dc.dc_no:<10} {dc.hospital_name:<30} "
        f"{dc.status.value.upper():<9} items={dc.total_qty:<4} "
        f"days={selector.days_pending(dc)}{flag}  [{dc.id}]"
    )


def _print_dc(dc) -> None:
    print(f"DC {dc.dc_no}  ({dc.id})")
    print(f"  Hospital:   {dc.hospital_name}")
    print(f"  Status:     {dc.status.value.upper()}")
    print(f"  Saved at:   {dc.saved_at.isoformat()}")
    print(f"  Material:   {dc.material_type}")
    if dc.received_by:
        print(f"  Received by: {dc.received_by}")
    if dc.remarks:
        print(f"  Remarks:    {dc.remarks}")
    if dc.returned_by:
        print(f"  Returned:   {dc.returned_by} at {dc.returned_at.isoformat() if dc.returned_at else '-'}")
    if dc.invoice_ref:
        print(f"  Invoice:    {dc.invoice_ref}")
    if dc.cash_amount is not None:
        print(f"  Cash:       {dc.cash_amount}")
    print(f"  Items ({dc.total_qty}):")
    for item in dc.items:
        sizes = ", ".join(f"{s.size or '-'} x{s.qty}" for s in item.sizes)
        print(f"    - {item.name} [{item.procedure}] {sizes}")
    if dc.instruments:
        print(f"  Instruments: {', '.join(dc.instruments)}")
    if dc.box_numbers:
        print(f"  Boxes:      {', '.join(dc.box_numbers)}")
    print("  History:")
    for event in dc.history:
        arrow = f"{event.from_status.value.upper()} -> " if event.from_status else ""
        print(f"    {event.at.isoformat() if event.at else '-'}  {event.action.value}  {arrow}{event.to_status.value.upper()}")


def _run_search(args, config) -> int:
    from challan_catalog import CatalogService
    from challan_catalog.adapters import HttpCsvFeed

    feed = HttpCsvFeed(config.catalog.feed_url, timeout=config.catalog.timeout_seconds)
    catalog = CatalogService(feed, threshold=config.catalog.search_threshold)
    catalog.load()
    if args.items:
        hits = catalog.search_items(args.query)
    elif args.instruments:
        hits = catalog.search_instruments(args.query)
    else:
        hits = [
            f"{p.name}  ({p.type})"
            for p in catalog.search_procedures(args.query, type=args.procedure_type)
        ]
    for hit in hits:
        print(hit)
    if not hits:
        print("No matches.")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    # Lazy imports so we fail fast on args first
    from challan_config import get_active_config
    from challan_kernel.domain import DcStatus, SessionContext, SystemClock
    from challan_kernel.exceptions import ChallanError
    from challan_kernel.logging_config import configure_logging
    from challan_kernel.selectors import DcTrackerSelector, QuickFilter, SortKey, TrackerQuery
    from challan_kernel.services import DcLifecycleService
    from challan_storage import build_store

    try:
        config = get_active_config(args.config)
    except (OSError, ValueError) as e:
        print(f"ERROR: Failed to load config: {e}", file=sys.stderr)
        return 1
    configure_logging(level=config.logging.level)

    try:
        if args.command == "search":
            return _run_search(args, config)

        session = None
        if args.user:
            session = SessionContext()
            session.login(args.user)
        clock = SystemClock()
        service = DcLifecycleService(
            build_store(config.storage),
            clock,
            session=session,
            delete_password=config.lifecycle.delete_password,
        )

        if args.command in ("list", "export"):
            selector = DcTrackerSelector(
                service.list_all(), clock, overdue_days=config.lifecycle.overdue_days,
            )
            if args.command == "export":
                dcs = selector.sort(selector.filter_queue(DcStatus(args.queue)), SortKey.DATE)
                text = selector.export_csv(dcs)
                if args.output:
                    args.output.write_text(text, encoding="utf-8")
                    print(f"Wrote {len(dcs)} DCs to {args.output}")
                else:
                    sys.stdout.write(text)
                return 0

            rows = selector.query(TrackerQuery(
                queue=DcStatus(args.queue),
                quick_filter=QuickFilter(args.quick_filter),
                text=args.search,
                date_from=args.date_from,
                date_to=args.date_to,
                sort_by=SortKey(args.sort),
                descending=not args.asc,
            ))
            metrics = selector.dashboard()
            counts = selector.status_counts()
            print(
                f"Total {metrics.total_dcs} | pending {metrics.pending_dcs} | "
                f"avg turnaround {metrics.avg_turnaround_days}d | items out {metrics.total_items_out}"
            )
            print("  ".join(f"{s.value}={counts[s]}" for s in DcStatus))
            for dc in rows:
                _print_dc_line(dc, selector)
            if not rows:
                print("No DCs found.")
            return 0

        if args.command == "show":
            _print_dc(service.get(args.dc_id))
        elif args.command == "return":
            dc = service.mark_returned(args.dc_id, args.by, args.remarks)
            print(f"DC {dc.dc_no} marked RETURNED.")
        elif args.command == "invoice":
            dc = service.link_invoice(args.dc_id, args.ref, args.remarks)
            print(f"DC {dc.dc_no} COMPLETED with invoice {dc.invoice_ref}.")
        elif args.command == "cash":
            dc = service.move_to_cash(args.dc_id, args.amount, args.remarks)
            print(f"DC {dc.dc_no} moved to CASH ({dc.cash_amount}).")
        elif args.command == "revert":
            current = service.get(args.dc_id)
            if current.status == DcStatus.RETURNED:
                dc = service.move_back_to_pending(args.dc_id)
            elif current.status == DcStatus.COMPLETED:
                dc = service.move_back_to_returned(args.dc_id)
            else:
                print(f"ERROR: Nothing to revert for a {current.status.value.upper()} DC.", file=sys.stderr)
                return 1
            print(f"DC {dc.dc_no} moved back to {dc.status.value.upper()}.")
        elif args.command == "delete":
            service.delete_protected(args.dc_id, args.password)
            print(f"DC {args.dc_id} deleted.")
    except ChallanError as e:
        print(f"ERROR [{e.code}]: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
