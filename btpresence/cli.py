"""Typer CLI entrypoint."""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path

import typer

from btpresence.core import report
from btpresence.core.config import load_config
from btpresence.core.errors import BtPresenceError
from btpresence.core.service import ScanService
from btpresence.core.vendor import VendorResolver

app = typer.Typer(help="Time-windowed Bluetooth device presence scanner")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _fail(exc: BtPresenceError) -> typer.Exit:
    typer.echo(f"Error: {exc}", err=True)
    return typer.Exit(code=exc.exit_code)


@app.command("scan")
def scan(
    config: Path | None = typer.Option(None, "--config", "-c", help="JSON or YAML config file"),
    output_dir: Path | None = typer.Option(None, "--output-dir", help="Directory for the report file"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Do not echo the report"),
) -> None:
    """Run one scan session and write its report."""
    try:
        scan_config = load_config(config)
        if output_dir is not None:
            scan_config = replace(scan_config, output_dir=output_dir)
        service = ScanService(scan_config)
        result = service.scan(echo=None if quiet else typer.echo)
    except BtPresenceError as exc:
        raise _fail(exc) from None

    if result.write_error:
        typer.echo(f"Warning: {result.write_error}", err=True)
    if not quiet:
        typer.echo(report.render(result.document))
    if not result.has_records:
        typer.echo("No Bluetooth devices were recorded", err=True)
        raise typer.Exit(code=1)
    if not result.write_error:
        typer.echo(f"Report written to {result.path}", err=True)


@app.command("vendor")
def vendor(
    address: str,
    oui: Path | None = typer.Option(None, "--oui", help="IEEE oui.csv table to search"),
) -> None:
    """Print the manufacturer registered for ADDRESS's prefix."""
    resolver = VendorResolver.from_path(oui)
    typer.echo(f"{address.upper()} -> {resolver.resolve(address)}")


@app.command("config")
def show_config(
    config: Path | None = typer.Option(None, "--config", "-c", help="JSON or YAML config file"),
) -> None:
    """Print the resolved scan configuration."""
    try:
        scan_config = load_config(config)
    except BtPresenceError as exc:
        raise _fail(exc) from None

    typer.echo(f"mode: {scan_config.mode.value}")
    typer.echo(f"start_after_duration: {scan_config.start_after_duration}")
    typer.echo(f"scan_duration: {scan_config.scan_duration}")
    typer.echo(f"instant_window: {scan_config.instant_window}")
    typer.echo(f"poll_interval: {scan_config.poll_interval}")
    typer.echo(f"gap_tolerance: {scan_config.gap_tolerance}")
    typer.echo(f"output_dir: {scan_config.output_dir}")
    typer.echo(f"oui_path: {scan_config.oui_path or '<packaged>'}")
    typer.echo(f"adapter: {scan_config.adapter or '<first available>'}")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
