"""Command-line front end for running an ingestion batch against the backend."""
import asyncio
import json
from pathlib import Path

import click

from dino_ingestor.portal.clients import build_http_client
from dino_ingestor.portal.models import (
    BatchReport,
    IngestionMetrics,
    Notification,
    NotificationSeverity,
    SelectedFile,
)
from dino_ingestor.portal.notifications import NotificationQueue
from dino_ingestor.portal.orchestrator import UploadOrchestrator
from dino_ingestor.utils.config import get_service_configuration, get_settings


def format_bytes(num_bytes: int) -> str:
    """Format bytes as human-readable string."""
    size = float(num_bytes)
    for unit in ["B", "KB", "MB", "GB"]:
        if size < 1024.0:
            return f"{size:.1f}{unit}"
        size /= 1024.0
    return f"{size:.1f}TB"


def echo_notification(notification: Notification) -> None:
    """Print a notification as it is raised."""
    if notification.severity is NotificationSeverity.ERROR:
        click.secho(f"✗ {notification.title}: {notification.body}", fg="red", err=True)
    else:
        click.secho(f"✓ {notification.title}: {notification.body}", fg="green")


def print_summary(metrics: IngestionMetrics, report: BatchReport) -> None:
    """Print the portal cards after a batch."""
    click.echo("\n" + "=" * 60)
    click.echo("INGESTION SUMMARY")
    click.echo("=" * 60)
    click.echo(f"  Files uploaded:   {report.succeeded_count}/{len(report.results)}")
    click.echo(f"  Batch volume:     {format_bytes(report.accumulated_bytes)}")
    click.echo(f"  Files ingested:   {metrics.file_count}")
    click.echo(f"  Data ingested:    {format_bytes(metrics.total_bytes)}")
    click.echo(f"  Cost:             {metrics.cost:.2f} {metrics.currency}")
    click.echo(f"  Period:           {metrics.cost_period_label or 'N/A'}")
    click.echo("=" * 60 + "\n")


def print_json_output(
    metrics: IngestionMetrics,
    report: BatchReport,
    notifications: NotificationQueue,
) -> None:
    """Print batch outcome, metrics and notifications as JSON."""
    output = {
        "aborted": report.aborted,
        "uploads": {
            "succeeded": report.succeeded_count,
            "failed": report.failed_count,
            "accumulated_bytes": report.accumulated_bytes,
            "progress": list(report.progress_history),
        },
        "metrics": {
            "file_count": metrics.file_count,
            "total_bytes": metrics.total_bytes,
            "cost": metrics.cost,
            "currency": metrics.currency,
            "cost_period": metrics.cost_period_label,
        },
        "notifications": [
            {
                "id": notification.identifier,
                "title": notification.title,
                "body": notification.body,
                "severity": notification.severity.value,
            }
            for notification in notifications
        ],
    }
    click.echo(json.dumps(output, indent=2))


async def run_upload(
    database: str,
    table: str,
    files: list[SelectedFile],
    *,
    base_url: str | None = None,
    run_name: str | None = None,
    notifications: NotificationQueue | None = None,
) -> tuple[UploadOrchestrator, BatchReport]:
    """Run one batch with settings loaded once and passed down explicitly."""
    settings = get_settings()
    portal_settings = settings.portal
    if base_url:
        portal_settings = portal_settings.model_copy(update={"base_url": base_url})
    job_template = get_service_configuration(settings=settings).jobs.template

    async with build_http_client(portal_settings) as http:
        orchestrator = UploadOrchestrator.from_http_client(
            http,
            job_template=job_template,
            notifications=notifications,
        )
        orchestrator.select_files(files)
        report = await orchestrator.run_batch(
            database,
            table,
            run_name=run_name,
        )
    return orchestrator, report


@click.group()
def main() -> None:
    """DINO - Data Ingestion Non Optimized."""


@main.command()
@click.argument("files", nargs=-1, type=click.Path(exists=True, dir_okay=False))
@click.option("--database", "-d", default="", help="Target database name")
@click.option("--table", "-t", default="", help="Target table name")
@click.option("--base-url", default=None, help="Backend URL (defaults to DINO_PORTAL__BASE_URL)")
@click.option("--run-name", default=None, help="Job run name (defaults to the job template)")
@click.option(
    "--json",
    "output_json",
    is_flag=True,
    help="Output the batch outcome as JSON instead of formatted text",
)
def upload(
    files: tuple[str, ...],
    database: str,
    table: str,
    base_url: str | None,
    run_name: str | None,
    output_json: bool,
) -> None:
    """
    Upload FILES to DATABASE/TABLE, refresh metrics and trigger the ingestion job.

    Examples:

        dino-portal upload -d sales -t orders data/*.txt

        dino-portal upload -d sales -t orders --json orders.txt
    """
    selected = [SelectedFile.from_path(Path(path)) for path in files]
    notifications = NotificationQueue(on_notify=None if output_json else echo_notification)

    orchestrator, report = asyncio.run(
        run_upload(
            database,
            table,
            selected,
            base_url=base_url,
            run_name=run_name,
            notifications=notifications,
        )
    )
    if output_json:
        print_json_output(orchestrator.metrics, report, notifications)
    elif not report.aborted:
        print_summary(orchestrator.metrics, report)

    if report.aborted or report.failed_count:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
