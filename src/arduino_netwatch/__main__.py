"""CLI entry point for Arduino Netwatch."""

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Optional

import click

from .config import Config
from .discovery import DeviceDiscoveryService
from .gateway import GatewayError, HTTPCallGateway
from .models import WifiInfo, snapshot_to_dict
from .utils.logging import setup_logging


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2))


@click.group()
@click.option(
    "--config-file", "-c",
    type=click.Path(exists=True, dir_okay=False, resolve_path=True),
    help="Path to a JSON configuration file.",
    envvar="ARDUINO_NETWATCH_CONFIG_FILE"
)
@click.option(
    "--log-level", "-l",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None,
    help="Override the logging level (e.g., DEBUG, INFO).",
)
@click.option(
    "--log-format",
    type=click.Choice(["console", "json"], case_sensitive=False),
    default=None,
    help="Override logging format.",
)
@click.pass_context
def cli(ctx: click.Context, config_file: Optional[str], log_level: Optional[str], log_format: Optional[str]) -> None:
    """Arduino Netwatch - polls an Arduino board for the devices on its network."""
    try:
        cfg = Config.from_file(Path(config_file)) if config_file else Config()
    except Exception as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        sys.exit(1)

    if log_level:
        cfg.logging.level = log_level.upper()
    if log_format:
        cfg.logging.format = log_format.lower()
    setup_logging(cfg.logging)

    ctx.ensure_object(dict)
    ctx.obj["config"] = cfg


@cli.command()
@click.pass_context
def devices(ctx: click.Context) -> None:
    """Runs one discovery cycle and prints the device snapshot as JSON."""
    config: Config = ctx.obj["config"]

    async def run_once() -> DeviceDiscoveryService:
        async with HTTPCallGateway(config) as gateway:
            service = DeviceDiscoveryService(gateway, config)
            await service.poll_network()
            return service

    service = asyncio.run(run_once())
    if service.last_error is not None:
        click.echo(f"Discovery failed: {service.last_error}", err=True)
        sys.exit(1)
    _echo_json(snapshot_to_dict(service.current_snapshot()))


@cli.command()
@click.pass_context
def wifi(ctx: click.Context) -> None:
    """Prints the board's WIFI status as JSON."""
    config: Config = ctx.obj["config"]

    async def query() -> WifiInfo:
        async with HTTPCallGateway(config) as gateway:
            return await DeviceDiscoveryService(gateway, config).wifi_status()

    try:
        info = asyncio.run(query())
    except GatewayError as e:
        _echo_json(WifiInfo().model_dump(mode="json"))
        click.echo(f"WIFI status unavailable: {e}", err=True)
        sys.exit(1)
    _echo_json(info.model_dump(mode="json"))


@cli.command()
@click.option("--iterations", "-n", type=int, default=None, help="Stop after printing this many snapshots.")
@click.pass_context
def watch(ctx: click.Context, iterations: Optional[int]) -> None:
    """Runs the discovery service and prints the snapshot every poll interval."""
    config: Config = ctx.obj["config"]
    interval = config.discovery.poll_interval_seconds

    async def run_service() -> None:
        async with HTTPCallGateway(config) as gateway:
            async with DeviceDiscoveryService(gateway, config) as service:
                printed = 0
                while iterations is None or printed < iterations:
                    await asyncio.sleep(interval)
                    _echo_json({
                        "updated": service.last_updated.isoformat() if service.last_updated else None,
                        "devices": snapshot_to_dict(service.current_snapshot()),
                    })
                    printed += 1

    try:
        asyncio.run(run_service())
    except KeyboardInterrupt:
        click.echo("\nStopped.", err=True)
        sys.exit(130)


@cli.command()
def version() -> None:
    """Show version information."""
    from . import __version__
    click.echo(f"Arduino Netwatch v{__version__}")


@cli.command()
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show current configuration."""
    config: Config = ctx.obj["config"]
    click.echo(json.dumps(config.model_dump(mode="json"), indent=2))


if __name__ == "__main__":
    cli()
