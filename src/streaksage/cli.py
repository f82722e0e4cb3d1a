"""Command-line interface for StreakSage."""

from __future__ import annotations

import time
from datetime import date, datetime
from pathlib import Path
from typing import Optional

import click

from .config import BaseConfig
from .context import AppContext, create_app_context
from .logging_config import setup_logging
from .models.habit import FREQUENCIES
from .services.export_csv import export_stats_csv
from .services.habits import HABIT_TABS, HabitService, filter_habits, today_completion_rate
from .services.notifications import NOTIFICATION_TABS, NotificationNotFound, Toast
from .services.progress import (
    available_years,
    category_breakdown,
    heatmap_cells,
    streak_overview,
)
from .services.stats import InvalidArgument

DATE_TYPE = click.DateTime(formats=["%Y-%m-%d"])


def _day(value: Optional[datetime], app: AppContext) -> date:
    return value.date() if value is not None else app.today()


def _habit_or_fail(app: AppContext, name: str):
    habit = app.habit_repo.get_by_name(name, user_id=app.require_user_id())
    if habit is None:
        raise click.ClickException(f"No habit named {name!r}")
    return habit


def _days(count: int) -> str:
    return f"{count} day" if count == 1 else f"{count} days"


def echo_toast(toast: Toast) -> None:
    click.echo(f"{toast.icon} {toast.message}")


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Track daily habits, streaks and progress."""

    if ctx.obj is None:
        config = BaseConfig()
        setup_logging(config)
        ctx.obj = create_app_context(config, toast_sink=echo_toast)


@cli.command("init-db")
@click.pass_obj
def init_db(app: AppContext) -> None:
    """Create the database schema (idempotent)."""

    click.echo(f"Database ready at {app.config.DATABASE_URL}")


@cli.command("add")
@click.argument("name")
@click.option("--description", default="", help="Short description")
@click.option("--category", default="other", show_default=True)
@click.option("--frequency", type=click.Choice(FREQUENCIES), default="daily", show_default=True)
@click.option("--reminder", "reminder_time", default=None, help="Daily reminder time, HH:MM")
@click.option("--favorite", is_flag=True, default=False)
@click.pass_obj
def add_habit(
    app: AppContext,
    name: str,
    description: str,
    category: str,
    frequency: str,
    reminder_time: Optional[str],
    favorite: bool,
) -> None:
    """Add a new habit."""

    try:
        habit = app.habits.add_habit(
            name,
            user_id=app.require_user_id(),
            description=description,
            category=category,
            frequency=frequency,
            reminder_time=reminder_time,
            is_favorite=favorite,
        )
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Added habit #{habit.id}: {habit.name}")


@cli.command("done")
@click.argument("name")
@click.option("--date", "day", type=DATE_TYPE, default=None, help="Day to toggle (default: today)")
@click.pass_obj
def toggle_done(app: AppContext, name: str, day: Optional[datetime]) -> None:
    """Toggle completion of NAME for a day."""

    habit = _habit_or_fail(app, name)
    when = _day(day, app)
    user_id = app.require_user_id()
    stats = app.habits.toggle_completion(habit.id, when, user_id=user_id, today=app.today())
    done = app.habit_repo.get_entry(habit.id, when, user_id=user_id) is not None
    state = "done" if done else "not done"
    click.echo(f"{habit.name} marked {state} for {when.isoformat()}")
    click.echo(f"Streak: {_days(stats.current_streak)} | Progress: {stats.rolling_progress_percent}%")


@cli.command("stats")
@click.option("--date", "day", type=DATE_TYPE, default=None, help="Reference day (default: today)")
@click.option("--window", type=int, default=None, help="Rolling window in days")
@click.option("--tab", type=click.Choice(HABIT_TABS), default="all", show_default=True)
@click.pass_obj
def show_stats(app: AppContext, day: Optional[datetime], window: Optional[int], tab: str) -> None:
    """Show streak and rolling progress for every active habit."""

    today = _day(day, app)
    user_id = app.require_user_id()
    service = app.habits
    if window is not None:
        service = HabitService(app.habit_repo, window_days=window)

    try:
        summaries = service.dashboard(today, user_id=user_id)
    except InvalidArgument as exc:
        raise click.BadParameter(str(exc), param_hint="--window") from exc

    if not summaries:
        click.echo("No habits yet. Add one with `streaksage add NAME`.")
        return
    rows = filter_habits(summaries, tab, today)
    if not rows:
        click.echo(f"No habits under the '{tab}' tab.")
        return

    click.echo(f"Today's progress: {today_completion_rate(summaries)}%")
    for summary in rows:
        mark = "x" if summary.done_today else " "
        streak = summary.stats.current_streak
        streak_text = f"{_days(streak)} streak" if streak > 0 else "Start your streak today!"
        click.echo(
            f"[{mark}] {summary.habit.name}: {streak_text}, "
            f"{summary.stats.rolling_progress_percent}% over {service.window_days} days"
        )


@cli.command("notifications")
@click.option("--tab", type=click.Choice(NOTIFICATION_TABS), default="all", show_default=True)
@click.pass_obj
def list_notifications(app: AppContext, tab: str) -> None:
    """List notifications grouped by day."""

    user_id = app.require_user_id()
    groups = app.notifications.grouped(
        user_id=user_id, today=app.today(), tab=tab, tz_name=app.config.TIMEZONE
    )
    click.echo(f"{app.notifications.unread_count(user_id=user_id)} unread")
    for label, items in groups:
        click.echo(label)
        for notification in items:
            flag = "*" if not notification.is_read else " "
            click.echo(f"  {flag} #{notification.id} [{notification.type}] {notification.message}")


@cli.command("read")
@click.argument("notification_id", type=int, required=False)
@click.option("--all", "all_", is_flag=True, default=False, help="Mark every notification read")
@click.pass_obj
def mark_read(app: AppContext, notification_id: Optional[int], all_: bool) -> None:
    """Mark a notification (or all of them) as read."""

    user_id = app.require_user_id()
    if all_:
        count = app.notifications.mark_all_as_read(user_id=user_id)
        click.echo(f"Marked {count} notifications read")
        return
    if notification_id is None:
        raise click.UsageError("Pass a notification id or --all")
    try:
        app.notifications.mark_as_read(notification_id, user_id=user_id)
    except NotificationNotFound as exc:
        raise click.ClickException(f"No notification #{notification_id}") from exc
    click.echo(f"Marked #{notification_id} read")


@cli.command("heatmap")
@click.option("--habit", "habit_name", default=None, help="Limit to one habit")
@click.option("--year", type=int, default=None, help="Calendar year (default: this year)")
@click.option("--output", type=click.Path(dir_okay=False, path_type=Path), default=None)
@click.pass_obj
def heatmap(app: AppContext, habit_name: Optional[str], year: Optional[int], output: Optional[Path]) -> None:
    """Render a completion heatmap PNG for a year."""

    from .services.charts import heatmap_png

    user_id = app.require_user_id()
    year = year or app.today().year
    if habit_name:
        habit = _habit_or_fail(app, habit_name)
        dates = app.habit_repo.get_completed_dates(habit.id, user_id=user_id)
    else:
        dates = set()
        for _, habit_dates in app.habits.completion_records(user_id=user_id):
            dates |= habit_dates

    path = heatmap_png(dates, year, output_path=output)
    total = sum(1 for _, level in heatmap_cells(dates, year) if level)
    click.echo(f"{total} completions in {year}; chart written to {path}")


@cli.command("top-streaks")
@click.option("--output", type=click.Path(dir_okay=False, path_type=Path), default=None)
@click.pass_obj
def top_streaks(app: AppContext, output: Optional[Path]) -> None:
    """Render a bar chart of the longest current streaks."""

    from .services.charts import streak_bar_png

    overview = streak_overview(app.habits.dashboard(app.today(), user_id=app.require_user_id()))
    path = streak_bar_png(overview, output_path=output)
    click.echo(f"{overview['active']} active streaks, best {_days(overview['longest'])}")
    click.echo(f"Chart written to {path}")


@cli.command("progress")
@click.option("--year", type=int, default=None, help="Calendar year (default: this year)")
@click.pass_obj
def progress(app: AppContext, year: Optional[int]) -> None:
    """Show completion per category for a year."""

    records = app.habits.completion_records(user_id=app.require_user_id())
    current_year = app.today().year
    years = available_years((dates for _, dates in records), current_year)
    year = year or current_year

    click.echo(f"Years with activity: {', '.join(str(y) for y in years)}")
    rows = category_breakdown(records, year)
    if not rows:
        click.echo("No habits yet. Add one with `streaksage add NAME`.")
        return
    click.echo(f"Categories in {year}:")
    for row in rows:
        noun = "habit" if row["count"] == 1 else "habits"
        click.echo(f"  {row['name']}: {row['value']}% ({row['count']} {noun})")


@cli.command("export")
@click.argument("output", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--date", "day", type=DATE_TYPE, default=None)
@click.pass_obj
def export(app: AppContext, output: Path, day: Optional[datetime]) -> None:
    """Export per-habit stats to a CSV file."""

    summaries = app.habits.dashboard(_day(day, app), user_id=app.require_user_id())
    path = export_stats_csv(summaries=summaries, output_path=output)
    click.echo(f"Export written: {path}")


@cli.command("remind")
@click.option("--watch", is_flag=True, default=False, help="Keep running and fire reminders on schedule")
@click.pass_obj
def remind(app: AppContext, watch: bool) -> None:
    """Send reminders for habits due today and not yet done."""

    from .scheduler import ReminderScheduler

    scheduler = ReminderScheduler(
        app.habits, app.notifications, user_id=app.require_user_id(), tz_name=app.config.TIMEZONE
    )
    if watch:
        scheduler.start()
        click.echo(f"Scheduled {len(scheduler.jobs())} reminders; press Ctrl-C to stop")
        try:
            while True:
                time.sleep(60)
        except KeyboardInterrupt:
            scheduler.stop()
        return

    sent = 0
    for habit in app.habit_repo.list_active(user_id=app.require_user_id()):
        if habit.reminder_time and scheduler.send_due_reminder(habit.id):
            sent += 1
    click.echo(f"Sent {sent} reminders")


def main() -> None:  # pragma: no cover - console script entry
    cli()


__all__ = ["cli", "main"]
