"""Command-line entry point for the AWS cost viewer."""

from __future__ import annotations

import logging
import sys
import threading
from concurrent.futures import ThreadPoolExecutor

import typer

from awscosts.client import CostExplorerClient
from awscosts.config import load_settings, resolve_credentials
from awscosts.errors import CostExplorerError, FetchCancelled, format_error
from awscosts.render import render_dashboard_text
from awscosts.session import CostSession, Dashboard
from awscosts.tui import run_interactive

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="Terminal UI for viewing AWS Cost Explorer data with charts",
    add_completion=False,
)


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        force=True,
    )


def _load_dashboard(session: CostSession) -> Dashboard:
    """Refresh on a worker thread so Ctrl-C abandons the fetch between requests."""
    cancel = threading.Event()
    with ThreadPoolExecutor(max_workers=1) as pool:
        future = pool.submit(session.load, cancel=cancel)
        try:
            return future.result()
        except KeyboardInterrupt as e:
            cancel.set()
            logger.info("Interrupted, stopping after the in-flight request")
            # raises FetchCancelled unless the worker already finished
            future.result()
            raise FetchCancelled("interrupted") from e


@app.command()
def main(
    profile: str = typer.Option(
        "default",
        "--profile",
        "-p",
        envvar="AWS_PROFILE",
        help="AWS profile to use.",
    ),
    region: str | None = typer.Option(
        None,
        "--region",
        "-r",
        envvar="AWS_REGION",
        help="AWS region (defaults to profile region or us-east-1).",
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging on stderr."),
    no_tui: bool = typer.Option(
        False,
        "--no-tui",
        help="Print costs as plain text instead of the interactive view.",
    ),
) -> None:
    """Show current month, previous month and 6-month cost trend by service."""
    _configure_logging(debug)
    logger.info("Starting AWS cost viewer (profile=%s)", profile)

    try:
        settings = load_settings(profile, region)
        credentials = resolve_credentials(settings.profile, settings.region)
        with CostExplorerClient(
            credentials,
            timeout=settings.timeout,
            keep_zero_amounts=settings.keep_zero_amounts,
        ) as client:
            dashboard = _load_dashboard(CostSession(client, attempts=settings.retries))
    except CostExplorerError as e:
        typer.echo(format_error(e), err=True)
        raise typer.Exit(1) from e
    except FetchCancelled as e:
        typer.echo(f"Cancelled: {e}", err=True)
        raise typer.Exit(130) from e

    if no_tui:
        typer.echo(
            render_dashboard_text(dashboard.current, dashboard.previous, dashboard.trend),
            nl=False,
        )
        for warning in dashboard.warnings:
            typer.echo(f"warning: {warning}", err=True)
        return

    run_interactive(dashboard)


if __name__ == "__main__":
    app()
