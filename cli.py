"""CLI commands for seatline notification and capacity management."""

import asyncio
from uuid import UUID

import typer

from seatline.config.logging import setup_logging
from seatline.config.settings import settings
from seatline.events import capacity
from seatline.events.dtos import EventNotFoundError
from seatline.events.repository.read_models import SqlEventReadModel
from seatline.main import init_sentry
from seatline.notifications import get_dispatcher, get_notification_service
from seatline.notifications.lifecycle import (
    InvalidNotificationTransitionError,
    NotificationNotFoundError,
)

app = typer.Typer(help="CLI commands for seatline notification and capacity management")


@app.callback()
def main():
    setup_logging()
    init_sentry()


@app.command()
def dispatch(
    limit: int = typer.Option(
        None,
        "--limit",
        "-l",
        help="Maximum notifications to fetch per sweep (defaults to the configured batch size)",
    ),
):
    """Run a single sweep over due and retryable notifications."""
    result = asyncio.run(get_dispatcher().process_batch(limit))

    typer.secho(f"Processed {result.processed} notifications", fg=typer.colors.GREEN)
    typer.secho(f"  Sent: {result.sent}", fg=typer.colors.BLUE)
    typer.secho(f"  Failed: {result.failed}", fg=typer.colors.RED if result.failed else typer.colors.BLUE)
    typer.secho(f"  Cancelled: {result.cancelled}", fg=typer.colors.BLUE)
    typer.secho(f"  Skipped: {result.skipped}", fg=typer.colors.BLUE)


@app.command()
def run_scheduler(
    interval: int = typer.Option(
        None,
        "--interval",
        "-i",
        help="Seconds between sweeps (defaults to the configured sweep interval)",
    ),
):
    """Sweep notifications forever."""
    interval = interval or settings.notification_sweep_interval_seconds
    typer.secho(f"Sweeping notifications every {interval}s, Ctrl+C to stop", fg=typer.colors.GREEN)
    try:
        asyncio.run(get_dispatcher().run_forever(interval))
    except KeyboardInterrupt:
        typer.secho("Scheduler stopped", fg=typer.colors.YELLOW)


@app.command()
def cleanup(
    days: int = typer.Option(
        None,
        "--days",
        "-d",
        help="Delete notifications older than this many days (defaults to the retention window)",
    ),
):
    """Delete old notifications."""
    deleted = asyncio.run(get_notification_service().cleanup_old_notifications(days))
    typer.secho(f"Deleted {deleted} notifications", fg=typer.colors.GREEN)


@app.command()
def cancel_notification(
    notification_id: str = typer.Argument(
        ...,
        help="Notification UUID",
    ),
):
    """Cancel a pending or failed notification."""
    try:
        notification = asyncio.run(get_notification_service().cancel_notification(UUID(notification_id)))
    except (NotificationNotFoundError, InvalidNotificationTransitionError) as e:
        typer.secho(str(e), fg=typer.colors.RED)
        raise typer.Exit(1)

    typer.secho("Notification cancelled!", fg=typer.colors.GREEN)
    typer.secho(f"  Type: {notification.type.value}", fg=typer.colors.BLUE)
    typer.secho(f"  User ID: {notification.user_id}", fg=typer.colors.CYAN)


@app.command(name="capacity")
def show_capacity(
    event_id: str = typer.Argument(
        ...,
        help="Event UUID",
    ),
):
    """Show seats, waitlist and remaining spots of an event."""

    async def _capacity_info():
        read_model = SqlEventReadModel()
        event = await read_model.get_event(UUID(event_id))
        if event is None:
            raise EventNotFoundError(event_id)
        return event, capacity.get_capacity_info(event, await read_model.get_event_rsvps(event.id))

    try:
        event, info = asyncio.run(_capacity_info())
    except EventNotFoundError as e:
        typer.secho(str(e), fg=typer.colors.RED)
        raise typer.Exit(1)

    typer.secho(event.title, fg=typer.colors.GREEN)
    typer.secho(
        f"  Capacity: {'unlimited' if info.capacity is None else info.capacity}",
        fg=typer.colors.BLUE,
    )
    typer.secho(f"  Going: {info.going_count}", fg=typer.colors.BLUE)
    typer.secho(f"  Waitlisted: {info.waitlisted_count}", fg=typer.colors.BLUE)
    if info.capacity is not None:
        typer.secho(f"  Available: {info.available_spots}", fg=typer.colors.CYAN)
    if info.is_at_capacity:
        typer.secho("  Event is full", fg=typer.colors.YELLOW)


if __name__ == "__main__":
    app()
