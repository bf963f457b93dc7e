"""Flask CLI commands for reclaiming unconfirmed registrations."""

from __future__ import annotations

import time

import click
from flask import current_app
from flask.cli import with_appcontext

from storefront.services._shared.settings import AccountSettings
from storefront.services.sweep.service import SweepWorker


def build_worker(app=None) -> SweepWorker:
    """Sweep worker configured from the current app."""
    app = app or current_app._get_current_object()
    return SweepWorker(
        app,
        settings=AccountSettings.from_mapping(app.config),
        interval=float(app.config.get("SWEEP_INTERVAL_SECONDS", 60)),
    )


@click.group("sweep")
def sweep_cli() -> None:
    """Pending-registration sweep commands."""


@sweep_cli.command("run")
@click.option("--once", is_flag=True, help="Run a single cycle and exit.")
@with_appcontext
def run_command(once: bool) -> None:
    """Purge pending accounts whose confirmation window has passed."""
    worker = build_worker()
    if once:
        report = worker.run_once()
        click.echo(f"scanned={report.scanned} purged={report.purged} failed={report.failed}")
        return

    click.echo(f"Sweeping every {worker.interval:g}s; press Ctrl+C to stop.")
    worker.start()
    try:
        while worker.running:
            time.sleep(1.0)
    except KeyboardInterrupt:
        pass
    finally:
        worker.stop()
