"""Notification services used to deliver daily medication reminders.

Two implementations share the same async interface:

- LocalNotificationService keeps reminders in process memory and fires
  them from the background worker loop.
- HttpNotificationService forwards schedule/cancel requests to a push
  gateway over HTTP.

Both raise NotificationError on failure. Callers are expected to go
through scheduler.ReminderScheduler rather than use these directly.
"""

import uuid
from datetime import datetime
from typing import Callable, Dict, List, Optional, Protocol

import httpx
from pydantic import BaseModel

from errors import NotificationError
from logger_config import setup_logger
from schemas import DailyTrigger, ReminderContent

logger = setup_logger(__name__, 'notifications.log')


class ScheduledReminder(BaseModel):
    """A reminder registered with a notification service."""

    handle: str
    content: ReminderContent
    trigger: DailyTrigger


ReminderListener = Callable[[ScheduledReminder], None]


class NotificationService(Protocol):
    """Interface of a notification service."""

    async def request_permission(self) -> bool: ...

    async def schedule(self, content: ReminderContent, trigger: DailyTrigger) -> str: ...

    async def cancel(self, handle: str) -> None: ...

    def add_listener(self, listener: ReminderListener) -> None: ...


class LocalNotificationService:
    """In-process notification service.

    Reminders fire when fire_due() is called during their minute; each
    reminder fires at most once per calendar minute.
    """

    def __init__(self, permission_granted: bool = True):
        self.permission_granted = permission_granted
        self._scheduled: Dict[str, ScheduledReminder] = {}
        self._listeners: List[ReminderListener] = []
        self._last_fired: Dict[str, str] = {}

    async def request_permission(self) -> bool:
        return self.permission_granted

    async def schedule(self, content: ReminderContent, trigger: DailyTrigger) -> str:
        if not self.permission_granted:
            raise NotificationError("Notification permission denied")

        handle = str(uuid.uuid4())
        self._scheduled[handle] = ScheduledReminder(handle=handle, content=content, trigger=trigger)
        logger.info(f"Scheduled reminder {handle} at {trigger.hour:02d}:{trigger.minute:02d}: {content.title}")
        return handle

    async def cancel(self, handle: str) -> None:
        # Unknown handles were already cancelled
        if self._scheduled.pop(handle, None) is not None:
            self._last_fired.pop(handle, None)
            logger.info(f"Cancelled reminder {handle}")

    def add_listener(self, listener: ReminderListener) -> None:
        self._listeners.append(listener)

    def scheduled(self) -> List[ScheduledReminder]:
        """Currently scheduled reminders, in scheduling order."""
        return list(self._scheduled.values())

    def due_at(self, now: datetime) -> List[ScheduledReminder]:
        """Reminders whose trigger matches the hour and minute of ``now``."""
        return [
            reminder for reminder in self._scheduled.values()
            if reminder.trigger.hour == now.hour and reminder.trigger.minute == now.minute
        ]

    def fire_due(self, now: Optional[datetime] = None) -> List[ScheduledReminder]:
        """Deliver reminders due at ``now`` to every listener.

        Returns:
            List[ScheduledReminder]: Reminders fired by this call
        """
        now = now or datetime.now()
        minute_key = now.strftime("%Y-%m-%dT%H:%M")

        fired = []
        for reminder in self.due_at(now):
            if self._last_fired.get(reminder.handle) == minute_key:
                continue
            self._last_fired[reminder.handle] = minute_key
            fired.append(reminder)

            logger.info(f"Reminder {reminder.handle} fired: {reminder.content.title}")
            for listener in self._listeners:
                try:
                    listener(reminder)
                except Exception as e:
                    logger.error(f"Reminder listener failed for {reminder.handle}: {str(e)}", exc_info=True)

        return fired


class HttpNotificationService:
    """Push gateway client.

    Endpoints (relative to base_url):
    - POST /notifications/schedule  -> {"id": "<handle>"}
    - DELETE /notifications/{handle}
    - GET /notifications/permission -> {"status": "granted" | "denied"}
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        url = f"{self.base_url}{path}"
        try:
            if self._client is not None:
                return await self._client.request(method, url, **kwargs)
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                return await client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise NotificationError(f"Timeout calling {method} {url}") from e
        except httpx.RequestError as e:
            raise NotificationError(f"Network error calling {method} {url}: {str(e)}") from e

    async def request_permission(self) -> bool:
        response = await self._request("GET", "/notifications/permission")
        if response.status_code != 200:
            raise NotificationError(
                f"Permission check failed. Status: {response.status_code}, Response: {response.text}"
            )
        return response.json().get("status") == "granted"

    async def schedule(self, content: ReminderContent, trigger: DailyTrigger) -> str:
        payload = {
            "content": content.model_dump(),
            "trigger": trigger.model_dump()
        }
        response = await self._request("POST", "/notifications/schedule", json=payload)

        if response.status_code not in (200, 201):
            raise NotificationError(
                f"Schedule request failed. Status: {response.status_code}, Response: {response.text}"
            )

        handle = response.json().get("id")
        if not handle:
            raise NotificationError(f"Schedule response missing id: {response.text}")

        logger.info(f"Push gateway scheduled reminder {handle}: {content.title}")
        return str(handle)

    async def cancel(self, handle: str) -> None:
        response = await self._request("DELETE", f"/notifications/{handle}")

        # 404: already fired or cancelled
        if response.status_code not in (200, 204, 404):
            raise NotificationError(
                f"Cancel request failed for {handle}. Status: {response.status_code}, Response: {response.text}"
            )

    def add_listener(self, listener: ReminderListener) -> None:
        """No-op: the gateway delivers fired reminders to the device, never back here."""
