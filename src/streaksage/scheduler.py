"""Background scheduler that sends habit reminders at their configured time."""

from __future__ import annotations

import logging
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from .services.habits import HabitNotFound, HabitService, is_due_on, parse_reminder_time
from .services.notifications import NotificationService
from .services.stats import local_today

logger = logging.getLogger("streaksage.scheduler")

JOB_PREFIX = "reminder-"


class ReminderScheduler:
    """Runs one cron job per active habit that has a ``reminder_time``."""

    def __init__(
        self,
        habits: HabitService,
        notifications: NotificationService,
        *,
        user_id: int,
        tz_name: str = "UTC",
        scheduler: Optional[BackgroundScheduler] = None,
    ):
        """Initialize the scheduler.

        Args:
            habits: Habit service used to look up habits and their completions
            notifications: Service that stores and fans out the reminders
            user_id: Owner whose habits are scheduled
            tz_name: Time zone the reminder times and "today" are expressed in
            scheduler: Optional pre-built APScheduler instance (tests)
        """
        self.habits = habits
        self.notifications = notifications
        self.user_id = user_id
        self.tz_name = tz_name
        self.scheduler = scheduler or BackgroundScheduler(timezone=tz_name)

    def start(self) -> None:
        """Sync jobs and start the background scheduler."""
        if self.scheduler.running:
            logger.warning("Scheduler already running")
            return
        self.refresh()
        self.scheduler.start()
        logger.info("Reminder scheduler started", extra={"jobs": len(self.jobs())})

    def stop(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Reminder scheduler stopped")

    def refresh(self) -> None:
        """Replace reminder jobs so they match the current habits."""
        for job in self.scheduler.get_jobs():
            if job.id.startswith(JOB_PREFIX):
                self.scheduler.remove_job(job.id)

        for habit in self.habits.repo.list_active(user_id=self.user_id):
            if not habit.reminder_time:
                continue
            hour, minute = parse_reminder_time(habit.reminder_time)
            self.scheduler.add_job(
                func=self.send_due_reminder,
                trigger=CronTrigger(hour=hour, minute=minute, timezone=self.tz_name),
                args=[habit.id],
                id=f"{JOB_PREFIX}{habit.id}",
                name=f"Reminder: {habit.name}",
                replace_existing=True,
            )

    def jobs(self) -> list[str]:
        return sorted(job.id for job in self.scheduler.get_jobs() if job.id.startswith(JOB_PREFIX))

    def send_due_reminder(self, habit_id: int) -> bool:
        """Send a reminder if the habit is due today and not done yet."""
        try:
            habit = self.habits.get_habit(habit_id, user_id=self.user_id)
        except HabitNotFound:
            logger.warning("Reminder fired for missing habit", extra={"habit_id": habit_id})
            return False

        today = local_today(self.tz_name)
        if not habit.is_active or not is_due_on(habit, today):
            return False
        if today in self.habits.repo.get_completed_dates(habit_id, user_id=self.user_id):
            return False

        self.notifications.create_habit_reminder(user_id=self.user_id, habit=habit)
        return True
