"""``flask seed``: demo catalog and accounts for local development."""

from __future__ import annotations

import logging

import click
from flask import current_app
from flask.cli import with_appcontext
from sqlalchemy.exc import SQLAlchemyError

from storefront.core.extensions import db
from storefront.core.security import DEFAULT_BCRYPT_ROUNDS
from storefront.seeds import seed_data

LOGGER = logging.getLogger(__name__)


def _bcrypt_rounds() -> int:
    return int(current_app.config.get("BCRYPT_LOG_ROUNDS", DEFAULT_BCRYPT_ROUNDS))


def _print_report(summary: dict[str, dict[str, int]]) -> None:
    click.echo("Seed summary:")
    if not summary:
        click.echo("  (nothing to seed)")
        return
    pad = max(len(table) for table in summary)
    for table in sorted(summary):
        counts = summary[table]
        click.echo(
            f"  {table:<{pad}}  created={counts.get('created', 0):>2}"
            f"  existing={counts.get('existing', 0):>2}"
        )


def _refuse_in_production() -> None:
    cfg = current_app.config
    if cfg.get("TESTING") or cfg.get("DEBUG"):
        return
    if str(cfg.get("APP_ENV", cfg.get("ENV", "production"))).lower() == "production":
        raise click.UsageError("'flask seed fresh' cannot run against a production database.")


def _seed(verbose: bool) -> None:
    try:
        summary = seed_data.run_all(db, verbose=verbose, rounds=_bcrypt_rounds())
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise click.ClickException(f"Seeding failed: {exc}") from exc
    _print_report(summary)


@click.group("seed")
@click.option("--verbose", is_flag=True, help="Log each seeding step.")
@click.pass_context
def seed_cli(ctx: click.Context, verbose: bool) -> None:
    """Populate the database with demo data."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    if verbose:
        logging.getLogger(seed_data.__name__).setLevel(logging.DEBUG)


@seed_cli.command("run")
@click.pass_context
@with_appcontext
def run_command(ctx: click.Context) -> None:
    """Upsert the demo products plus an admin and a shopper account."""
    _seed(bool(ctx.obj.get("verbose")))


@seed_cli.command("fresh")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
@with_appcontext
def fresh_command(ctx: click.Context, yes: bool) -> None:
    """Recreate every table, then seed."""
    _refuse_in_production()
    if not yes:
        click.confirm("All carts, orders and accounts will be deleted. Continue?", abort=True)
    LOGGER.info("Recreating schema")
    db.session.remove()
    db.drop_all()
    db.create_all()
    _seed(bool(ctx.obj.get("verbose")))
