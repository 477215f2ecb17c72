"""
Main entry point for the upload queue command line client.

This module provides the command-line interface: it checks the environment,
builds a queue from configuration, submits local files and reports how each
upload went.
"""

import asyncio
import dataclasses
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from loguru import logger

from .core.domain.environment import Capabilities
from .core.domain.events import Event, QueueEvent
from .core.services.queue import UploadQueue
from .core.services.transfer import Transfer
from .infrastructure.capabilities import check_capabilities
from .infrastructure.config.loader import ConfigLoader
from .infrastructure.config.models import ApplicationConfig
from .infrastructure.files import describe_paths
from .infrastructure.logging.setup import setup_logging
from .infrastructure.transport.http import AiohttpTransport

cli = typer.Typer(
    name="upload-queue",
    help="Upload files to an HTTP endpoint through a bounded-concurrency queue"
)


@dataclass
class UploadReport:
    """Outcome of one command line upload run."""
    accepted: List[Transfer] = field(default_factory=list)
    rejected: List[Transfer] = field(default_factory=list)
    succeeded: List[Transfer] = field(default_factory=list)
    failed: List[Transfer] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return bool(self.accepted) and not self.failed

    def record_rejected(self, event: Event) -> None:
        self.rejected.extend(event.data)

    def record_added(self, event: Event) -> None:
        transfer: Transfer = event.data
        self.accepted.append(transfer)
        transfer.on_progress(_log_progress)
        transfer.on_end_send(self.record_success)
        transfer.on_send_fail(self.record_failure)

    def record_success(self, event: Event) -> None:
        self.succeeded.append(event.source)

    def record_failure(self, event: Event) -> None:
        self.failed.append(event.source)


def _log_progress(event: Event) -> None:
    transfer: Transfer = event.source
    progress = event.data['progress']
    logger.debug(
        f"{transfer.name}: {progress.loaded}/{progress.total} bytes "
        f"({progress.percentage:.0f}%) at {event.data['rate']:.0f} B/s"
    )


def _parse_field_values(values: List[str]) -> Dict[str, str]:
    fields = {}
    for item in values:
        name, sep, value = item.partition('=')
        if not sep or not name:
            raise typer.BadParameter(f"Expected NAME=VALUE, got {item!r}")
        fields[name] = value
    return fields


async def run_upload(config: ApplicationConfig, capabilities: Capabilities,
                     paths: List[Path]) -> UploadReport:
    """
    Submit local files to a new queue and wait until the upload finishes.

    Args:
        config: Application configuration
        capabilities: Result of the capability check
        paths: Files to upload

    Returns:
        Report of accepted, rejected, succeeded and failed transfers
    """
    report = UploadReport()
    finished = asyncio.Event()

    async with AiohttpTransport(config.transport) as transport:
        queue = UploadQueue(
            transport,
            config.queue,
            capabilities=capabilities,
            listeners={
                QueueEvent.UNACCEPTED_FILES: report.record_rejected,
                QueueEvent.QUEUE_ADD: report.record_added,
                QueueEvent.UPLOAD_FINISH: lambda event: finished.set(),
            }
        )

        queue.submit(describe_paths(paths))
        if not report.accepted:
            return report

        queue.begin_upload()
        try:
            await finished.wait()
        except asyncio.CancelledError:
            logger.info(f"Upload interrupted, dropping {queue.length} pending file(s)")
            queue.clear()
            for transfer in queue.active:
                transfer.cancel()
            raise

        logger.info(f"Queue statistics: {queue.get_statistics()}")

    return report


def _print_report(report: UploadReport) -> None:
    for transfer in report.rejected:
        message = transfer.error.message if transfer.error else "rejected"
        typer.echo(f"REJECTED  {transfer.name}: {message}", err=True)
    for transfer in report.succeeded:
        status = transfer.response.status if transfer.response else "-"
        typer.echo(f"OK        {transfer.name} ({transfer.size} bytes, HTTP {status})")
    for transfer in report.failed:
        status = transfer.response.status if transfer.response else transfer.state.value
        typer.echo(f"FAILED    {transfer.name} ({status})", err=True)


@cli.command()
def upload(
    files: List[Path] = typer.Argument(
        ..., exists=True, help="Files to upload"
    ),
    config_file: Optional[str] = typer.Option(
        None, "--config", "-c", help="Configuration file path"
    ),
    url: Optional[str] = typer.Option(
        None, "--url", "-u", help="Endpoint to post files to"
    ),
    field_name: Optional[str] = typer.Option(
        None, "--field", help="Form field name for the file"
    ),
    concurrency: Optional[int] = typer.Option(
        None, "--concurrency", "-n", help="Simultaneous uploads"
    ),
    field_values: List[str] = typer.Option(
        [], "--field-value", "-F", help="Extra form field as NAME=VALUE"
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Logging level"
    )
) -> None:
    """Upload files through the queue."""

    config = ConfigLoader().load_config(config_file)

    overrides: Dict[str, Any] = {}
    if url:
        overrides['post_url'] = url
    if field_name:
        overrides['field_name'] = field_name
    if concurrency is not None:
        overrides['upload_concurrency'] = concurrency
    if field_values:
        overrides['extra_fields'] = {
            **(config.queue.extra_fields or {}),
            **_parse_field_values(field_values)
        }
    try:
        config.queue = dataclasses.replace(config.queue, **overrides)
    except ValueError as e:
        typer.echo(f"Invalid option: {e}", err=True)
        sys.exit(2)

    if log_level:
        config.logging.level = log_level.upper()

    setup_logging(config.logging)

    capabilities = check_capabilities()
    if not capabilities.fully_supported:
        typer.echo(
            f"Environment not supported, missing: {', '.join(capabilities.missing)}", err=True)
        sys.exit(1)

    logger.info(f"Starting {config.name} v{config.version}")

    try:
        report = asyncio.run(run_upload(config, capabilities, files))
    except KeyboardInterrupt:
        logger.info("Upload interrupted by user")
        sys.exit(130)

    _print_report(report)
    if not report.ok:
        sys.exit(1)


@cli.command()
def init_config(
    output: str = typer.Option(
        "upload-queue.yaml", "--output", "-o", help="Output configuration file"
    ),
    format: str = typer.Option(
        "yaml", "--format", "-f", help="Configuration format (yaml/json)"
    )
) -> None:
    """Generate a default configuration file."""

    config = ApplicationConfig()
    config_loader = ConfigLoader()

    try:
        config_loader.save_config(config, output, format)
        typer.echo(f"Default configuration saved to {output}")
    except ValueError as e:
        typer.echo(f"Error saving configuration: {e}", err=True)
        sys.exit(1)


@cli.command()
def validate_config(
    config_file: str = typer.Argument(...,
                                      help="Configuration file to validate")
) -> None:
    """Validate a configuration file."""

    config_loader = ConfigLoader()

    try:
        config = config_loader.load_config(config_file)
        typer.echo(f"Configuration file {config_file} is valid")
        typer.echo(f"Endpoint: {config.queue.post_url}")
        typer.echo(f"Concurrency: {config.queue.upload_concurrency}")
    except (ValueError, FileNotFoundError) as e:
        typer.echo(f"Configuration validation failed: {e}", err=True)
        sys.exit(1)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
