#!/usr/bin/env python3
"""
Link Checker CLI - Command line interface for monitoring your link collection
"""
import argparse
import asyncio
import contextlib
import os
import signal
import sys
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv

from link_checker.logging_config import setup_logging, get_logger

logger = get_logger("cli")

STATUS_ICONS = {
    "idle": "[.]",
    "checking": "[~]",
    "working": "[OK]",
    "redirect": "[->]",
    "blocked": "[X]",
    "timeout": "[T]",
    "slow": "[S]",
    "failed": "[!]",
}


def get_settings():
    """Get Config instance, honouring LINK_CHECKER_CONFIG."""
    from link_checker.config import get_config
    return get_config(Path(os.getenv("LINK_CHECKER_CONFIG", "config.yaml")))


def get_store():
    """Load the LinkStore snapshot."""
    from link_checker.link_store import LinkStore
    return LinkStore.load(Path(get_settings().store.links_file))


def save_store(store):
    store.save(Path(get_settings().store.links_file))


def get_pipeline(store):
    from link_checker.ingestion import IngestionPipeline
    from link_checker.remote_fetcher import RemoteFetcher

    config = get_settings()
    return IngestionPipeline(
        store,
        default_category=config.ingest.default_category,
        remote_source_url=config.ingest.remote_source_url,
        fetcher=RemoteFetcher(timeout_ms=config.ingest.fetch_timeout_ms),
    )


def print_summary(label: str, summary):
    print(f"{label}: {summary.total} total, {summary.added} added, {summary.skipped} skipped")


def cmd_add(args):
    """Add one or more links to the collection."""
    from link_checker.exceptions import DuplicateURLError
    from link_checker.ingestion import ALLOWED_SCHEMES
    from link_checker.models import LinkRecord

    store = get_store()
    added = 0

    for url in args.urls:
        if not url.startswith(ALLOWED_SCHEMES):
            print(f"Not an http(s) URL: {url}")
            continue
        try:
            store.insert(LinkRecord(url=url, category=args.category))
        except DuplicateURLError:
            logger.warning("Duplicate link, already exists: %s", url)
            print(f"Already exists: {url}")
            continue
        added += 1
        print(f"Added: {url}")

    if added > 0:
        save_store(store)
        print(f"\nAdded {added} new link(s). Run 'link-checker scan' to check them.")


def cmd_import(args):
    """Import links from a text file, one URL per line."""
    store = get_store()
    summary = get_pipeline(store).ingest_file(args.file)
    if summary.added:
        save_store(store)
    print_summary("Import result", summary)


def cmd_update(args):
    """Pull the remote link list and merge new links."""
    store = get_store()
    summary = asyncio.run(get_pipeline(store).update_from_remote(url=args.url))

    if summary.error:
        print(f"Update failed: {summary.error}", file=sys.stderr)
        sys.exit(1)

    if summary.added:
        save_store(store)
    print_summary("Remote update result", summary)


async def _run_scan(store, config, simulate: bool, use_tui: bool):
    from link_checker.checker import HttpChecker, SimulatedChecker
    from link_checker.scan_coordinator import ScanCoordinator
    from link_checker.status_tracker import get_status_tracker
    from link_checker.tui import ScanTUI

    if simulate:
        checker = SimulatedChecker()
        checker_context = contextlib.nullcontext(checker)
    else:
        checker = HttpChecker(
            follow_redirects=config.scan.follow_redirects,
            user_agent=config.scan.user_agent,
        )
        checker_context = checker

    status_tracker = get_status_tracker() if use_tui else None
    coordinator = ScanCoordinator.from_config(
        store, checker, config, status_tracker=status_tracker
    )

    loop = asyncio.get_running_loop()
    with contextlib.suppress(NotImplementedError):
        loop.add_signal_handler(signal.SIGINT, coordinator.stop)

    async with checker_context:
        tui = ScanTUI(status_tracker) if status_tracker else None
        if tui:
            async with tui.live_context():
                progress = await coordinator.start()
            tui.print_summary()
        else:
            progress = await coordinator.start()

    with contextlib.suppress(NotImplementedError):
        loop.remove_signal_handler(signal.SIGINT)
    return progress


def cmd_scan(args):
    """Check every link in the collection."""
    config = get_settings()
    if args.batch_size is not None:
        config.scan.batch_size = args.batch_size
    if args.timeout is not None:
        config.scan.probe_timeout_ms = args.timeout

    store = get_store()
    if len(store) == 0:
        logger.info("No links to check. Use 'link-checker import' or 'link-checker update' first.")
        return

    use_tui = args.tui or config.scan.enable_tui
    progress = asyncio.run(_run_scan(store, config, args.simulate, use_tui))
    save_store(store)

    if progress and progress.completed < progress.total:
        logger.info("Scan stopped at %d/%d links", progress.completed, progress.total)
    if not use_tui:
        cmd_stats(args)


def cmd_list(args):
    """List links in the collection."""
    store = get_store()
    try:
        records = store.filter(args.query or "", args.tab)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    if not records:
        print("No links found matching criteria.")
        return

    for i, record in enumerate(records[:args.limit], 1):
        icon = STATUS_ICONS.get(record.status.value, "[?]")
        star = " *" if record.is_favorite else ""
        latency = f" {record.latency_ms}ms" if record.latency_ms is not None else ""
        print(f"{i}. {icon} {record.url}{latency}{star}")

        if args.verbose:
            print(f"   Id: {record.id}")
            print(f"   Category: {record.category}")
            if record.status_code is not None:
                print(f"   HTTP: {record.status_code}")
            if record.last_checked_at:
                print(f"   Checked: {record.last_checked_at.isoformat(timespec='seconds')}")

    total = len(records)
    if total > args.limit:
        print(f"\n... and {total - args.limit} more. Use --limit to see more.")

    print(f"\nTotal: {total} links")


def cmd_stats(args):
    """Show statistics about the collection."""
    stats = get_store().stats()

    print("=== Link Health Statistics ===\n")
    print(f"Total links: {stats['total']}")
    for key in ["working", "redirect", "slow", "blocked", "timeout", "failed", "idle"]:
        label = "Pending" if key == "idle" else key.title()
        print(f"{label + ':':<13}{stats[key]}")


def cmd_export(args):
    """Export links as plain text, one URL per line."""
    output = get_store().serialize_links()

    if args.output == "-":
        print(output)
        return

    path = Path(args.output or f"links_export_{datetime.now():%Y%m%d}.txt")
    path.write_text(output, encoding="utf-8")
    print(f"Exported to {path}")


def cmd_favorite(args):
    """Toggle the favorite flag of a link."""
    from link_checker.exceptions import LinkNotFoundError

    store = get_store()
    try:
        is_favorite = store.toggle_favorite(args.id)
    except LinkNotFoundError as e:
        logger.error("%s", e)
        sys.exit(1)

    save_store(store)
    url = store.get(args.id).url
    print(f"{'Starred' if is_favorite else 'Unstarred'}: {url}")


def main():
    from link_checker.link_store import FILTER_TABS

    parser = argparse.ArgumentParser(
        prog="link-checker",
        description="Link Checker - Monitor the reachability of your link collection"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # add command
    add_parser = subparsers.add_parser("add", help="Add links to collection")
    add_parser.add_argument("urls", nargs="+", help="URLs to add")
    add_parser.add_argument("-c", "--category", default="Manual", help="Category label")
    add_parser.set_defaults(func=cmd_add)

    # import command
    import_parser = subparsers.add_parser("import", help="Import links from a text file")
    import_parser.add_argument("file", help="Text file with one URL per line")
    import_parser.set_defaults(func=cmd_import)

    # update command
    update_parser = subparsers.add_parser("update", help="Merge links from the remote list")
    update_parser.add_argument("--url", help="Override the configured remote list URL")
    update_parser.set_defaults(func=cmd_update)

    # scan command
    scan_parser = subparsers.add_parser("scan", help="Check all links")
    scan_parser.add_argument("--simulate", action="store_true", help="Use randomized results instead of the network")
    scan_parser.add_argument("--tui", action="store_true", help="Show TUI progress")
    scan_parser.add_argument("-b", "--batch-size", type=int, help="Links checked concurrently")
    scan_parser.add_argument("--timeout", type=int, help="Probe timeout in milliseconds")
    scan_parser.set_defaults(func=cmd_scan)

    # list command
    list_parser = subparsers.add_parser("list", help="List links")
    list_parser.add_argument("-q", "--query", help="Filter by URL or category substring")
    list_parser.add_argument("-t", "--tab", choices=FILTER_TABS, default="all", help="Filter by status")
    list_parser.add_argument("-l", "--limit", type=int, default=20, help="Max links to show")
    list_parser.add_argument("-v", "--verbose", action="store_true", help="Show details")
    list_parser.set_defaults(func=cmd_list)

    # stats command
    stats_parser = subparsers.add_parser("stats", help="Show statistics")
    stats_parser.set_defaults(func=cmd_stats)

    # export command
    export_parser = subparsers.add_parser("export", help="Export links as text")
    export_parser.add_argument("-o", "--output", help="Output file, '-' for stdout")
    export_parser.set_defaults(func=cmd_export)

    # favorite command
    fav_parser = subparsers.add_parser("favorite", help="Toggle favorite flag of a link")
    fav_parser.add_argument("id", help="Link id (see 'list -v')")
    fav_parser.set_defaults(func=cmd_favorite)

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    load_dotenv()
    setup_logging()
    args.func(args)


if __name__ == "__main__":
    main()
