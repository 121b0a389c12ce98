"""Daily reminder adapter - APScheduler cron job delivering over Telegram."""

import asyncio
import logging
from typing import Callable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.cron import CronTrigger
from telegram import Bot
from telegram.error import TelegramError

from parish.config import Config, load_config

logger = logging.getLogger(__name__)

JOB_ID = "daily_reminder"


async def _send_telegram(token: str, user_ids: list[int], text: str) -> None:
    async with Bot(token) as bot:
        for user_id in user_ids:
            try:
                await bot.send_message(chat_id=user_id, text=text)
            except TelegramError as e:
                logger.error(f"Failed to send reminder to user {user_id}: {e}")


def send_telegram_reminder(config: Config, text: str) -> None:
    """Deliver a reminder to every configured Telegram user."""
    asyncio.run(_send_telegram(config.telegram_bot_token, config.telegram_allowed_users, text))


class ReminderScheduler:
    """
    Daily reminder scheduler.

    Implements NotificationScheduler protocol. "Permission" is granted when a
    delivery channel is configured. The scheduler is started by the caller
    (see `parish reminders serve`); jobs added before start stay pending.
    """

    def __init__(
        self,
        config: Config | None = None,
        scheduler: BaseScheduler | None = None,
        deliver: Callable[[str], None] | None = None,
        should_remind: Callable[[], bool] | None = None,
    ):
        self.config = config or load_config()
        if scheduler is None:
            kwargs = {"timezone": self.config.timezone} if self.config.timezone else {}
            scheduler = BackgroundScheduler(**kwargs)
        self.scheduler = scheduler
        self._deliver = deliver
        self.should_remind = should_remind

    @property
    def has_channel(self) -> bool:
        if self._deliver is not None:
            return True
        return bool(self.config.telegram_bot_token and self.config.telegram_allowed_users)

    def request_permission(self) -> bool:
        """Granted iff reminders have somewhere to go."""
        if not self.has_channel:
            logger.warning("No reminder channel configured (TELEGRAM_BOT_TOKEN / TELEGRAM_ALLOWED_USERS)")
            return False
        return True

    def schedule_daily(self, hour: int, minute: int) -> str | None:
        """Schedule the daily reminder, replacing any existing one."""
        self.cancel_all()
        try:
            job = self.scheduler.add_job(
                self.fire,
                CronTrigger(hour=hour, minute=minute),
                id=JOB_ID,
                replace_existing=True,
            )
        except ValueError as e:
            logger.error(f"Failed to schedule daily reminder: {e}")
            return None
        logger.info(f"Scheduled daily reminder at {hour:02d}:{minute:02d}")
        return job.id

    def cancel_all(self) -> None:
        """Cancel every scheduled reminder."""
        try:
            self.scheduler.remove_all_jobs()
        except Exception as e:
            logger.error(f"Failed to cancel reminders: {e}")

    def fire(self) -> None:
        """Job body: deliver the reminder unless today's practice is already done."""
        if self.should_remind is not None and not self.should_remind():
            logger.info("Session already completed today, skipping reminder")
            return
        logger.info("Sending daily reminder")
        if self._deliver is not None:
            self._deliver(self.config.reminder_message)
        else:
            send_telegram_reminder(self.config, self.config.reminder_message)

    def start(self) -> None:
        """Start the underlying scheduler (blocks for BlockingScheduler)."""
        self.scheduler.start()
