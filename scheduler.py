"""Reminder scheduling on top of a notification service.

Turns "remind daily at HH:MM for medication X" into schedule/cancel
requests and hands back the opaque reminder handles.
"""

import asyncio
from typing import Optional

from config import settings
from errors import SchedulingError
from logger_config import setup_logger
from notifications import NotificationService
from schemas import DailyTrigger, ReminderContent
from timeutil import parse_time

logger = setup_logger(__name__, 'scheduler.log')


class ReminderScheduler:
    """Schedules and cancels daily reminders.

    Args:
        service: Notification service that delivers the reminders
        timeout: Seconds to wait for a single schedule request
    """

    def __init__(self, service: NotificationService, timeout: Optional[float] = None):
        self.service = service
        self.timeout = timeout if timeout is not None else settings.SCHEDULE_TIMEOUT_SECONDS

    async def request_permission(self) -> bool:
        """Ask the notification service for permission to show reminders."""
        try:
            granted = await self.service.request_permission()
        except Exception as e:
            logger.error(f"Permission request failed: {str(e)}")
            return False

        if not granted:
            logger.warning("Notifications disabled - enable them in settings for reminders")
        return granted

    async def schedule_daily(self, title: str, hhmm: str) -> str:
        """Schedule a reminder repeating every day at hhmm.

        Args:
            title: Medication name shown in the reminder
            hhmm: Time of day, HH:MM 24h

        Returns:
            str: Handle identifying the scheduled reminder

        Raises:
            InvalidTimeError: If hhmm is not a valid time
            SchedulingError: If the notification service fails or times out
        """
        hour, minute = parse_time(hhmm)

        content = ReminderContent(
            title=settings.REMINDER_TITLE_TEMPLATE.format(name=title),
            body=settings.REMINDER_BODY
        )
        trigger = DailyTrigger(hour=hour, minute=minute, repeats=True)

        try:
            handle = await asyncio.wait_for(
                self.service.schedule(content, trigger),
                timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            raise SchedulingError(f"Timed out scheduling reminder for {title} at {hhmm}") from e
        except Exception as e:
            raise SchedulingError(f"Could not schedule reminder for {title} at {hhmm}: {str(e)}") from e

        logger.info(f"Scheduled daily reminder {handle} for {title} at {hhmm}")
        return handle

    async def cancel(self, handle: str) -> None:
        """Cancel a reminder. Failures are logged and ignored."""
        try:
            await self.service.cancel(handle)
        except Exception as e:
            logger.warning(f"Failed to cancel reminder {handle}: {str(e)}")
