"""
Membership Sync Projection Rebuild Tool
---------------------------------------
• Opens the configured event store (EVENT_STORE_BACKEND / EVENT_STORE_JSONL_PATH)
• Replays the full log into fresh read models (projectors only)
• Never runs reactors: no workspace command is issued

Usage:
    python scripts/rebuild_projections.py
    python scripts/rebuild_projections.py --path var/events.jsonl --show-customers
"""

import argparse
import asyncio
import sys

from rich.console import Console
from rich.table import Table

from membership_sync.common.exceptions.exceptions import MembershipSyncException
from membership_sync.config.event_store_config import EventStoreConfig, get_event_store_config
from membership_sync.config.logging_config import setup_logging
from membership_sync.core.startup import create_sync_engine
from membership_sync.infra.event_store.event_store import create_event_store
from membership_sync.infra.feature_flags.provider import StaticFeatureFlags
from membership_sync.infra.jobs.job_queue import RecordingJobQueue

console = Console()


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Rebuild membership read models from the event log")
    parser.add_argument("--path", help="JSON-lines event log (overrides EVENT_STORE_JSONL_PATH)")
    parser.add_argument("--show-customers", action="store_true", help="Print every customer row")
    return parser.parse_args()


async def main() -> int:
    args = parse_args()
    setup_logging(service_name="rebuild_projections")

    config = get_event_store_config()
    if args.path:
        config = EventStoreConfig(backend="jsonl", jsonl_path=args.path, fsync=config.fsync)

    job_queue = RecordingJobQueue()
    try:
        engine = await create_sync_engine(
            event_store=create_event_store(config),
            job_queue=job_queue,
            feature_flags=StaticFeatureFlags(),
        )
    except MembershipSyncException as e:
        console.print(f"[red]Rebuild failed:[/red] {e}")
        return 1

    progress = engine.rebuilder.history[-1] if engine.rebuilder.history else None

    summary = Table(title="Read models")
    summary.add_column("Read model")
    summary.add_column("Rows", justify="right")
    summary.add_row("customers", str(len(await engine.customer_repo.all())))
    summary.add_row("  of which members", str(await engine.customer_repo.count_members()))
    summary.add_row("subscriptions", str(len(await engine.subscription_repo.all())))
    console.print(summary)

    console.print(f"Events replayed: {progress.events_processed if progress else 0}")
    if progress and progress.errors:
        console.print(f"[yellow]{len(progress.errors)} handler errors during replay[/yellow]")
        for error in progress.errors:
            console.print(f"  #{error['sequence_number']} {error['event_type']} ({error['handler']}): {error['error']}")

    if args.show_customers:
        customers = Table(title="Customers")
        for column in ("external_id", "email", "name", "member"):
            customers.add_column(column)
        for customer in await engine.customer_repo.all():
            customers.add_row(str(customer.external_id), customer.email, customer.full_name, str(customer.is_member))
        console.print(customers)

    await engine.shutdown()

    if job_queue.commands:
        console.print(f"[red]Replay enqueued {len(job_queue.commands)} workspace commands[/red]")
        return 2
    return 1 if progress and progress.errors else 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
