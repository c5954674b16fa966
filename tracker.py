"""Medication tracker: the operations offered to the UI.

Wires the registry, the ledger and the persistence gateway together.
Every mutating operation saves the collection it changed right after the
in-memory update; save failures are logged by the gateway and do not
affect the result.
"""

from datetime import date, datetime
from typing import List, Optional, Sequence, Union

from sqlalchemy.orm import sessionmaker

import database
from adherence import compute_adherence, todays_doses
from config import settings
from errors import ValidationError
from ledger import DoseLedger
from logger_config import setup_logger
from notifications import (
    HttpNotificationService,
    LocalNotificationService,
    NotificationService,
    ScheduledReminder,
)
from persistence import PersistenceGateway, SqlKeyValueStore
from registry import MedicationRegistry
from scheduler import ReminderScheduler
from schemas import AdherenceReport, DoseSlot, Medication
from timeutil import canonical_time, local_today, trailing_window

logger = setup_logger(__name__, 'tracker.log')


class MedicationTracker:
    """Application state and the operations that act on it."""

    def __init__(
        self,
        scheduler: ReminderScheduler,
        gateway: PersistenceGateway,
        registry: Optional[MedicationRegistry] = None,
        ledger: Optional[DoseLedger] = None
    ):
        self.scheduler = scheduler
        self.gateway = gateway
        self.registry = registry or MedicationRegistry(scheduler)
        self.ledger = ledger or DoseLedger()

    def load(self) -> None:
        """Restore registry and ledger from the store."""
        medications, entries = self.gateway.load_state()
        self.registry.load(medications)
        self.ledger.load(entries)

    async def add_medication(self, name: str, times: Union[str, Sequence[str]]) -> Medication:
        medication = await self.registry.add_medication(name, times)
        self.gateway.save_medications(self.registry.list())
        return medication

    async def remove_medication(self, medication_id: str) -> bool:
        removed = await self.registry.remove_medication(medication_id)
        if removed:
            self.gateway.save_medications(self.registry.list())
        return removed

    async def reschedule_all(self) -> int:
        """Re-register every medication's reminders with the notification service."""
        rescheduled = await self.registry.reschedule_all()
        if rescheduled:
            self.gateway.save_medications(self.registry.list())
        return rescheduled

    def list(self) -> List[Medication]:
        return self.registry.list()

    def record_taken(
        self,
        medication_id: str,
        time: str,
        day: Optional[Union[date, str]] = None
    ) -> bool:
        """Mark a dose slot as taken (defaults to today).

        Raises:
            InvalidTimeError: If time is not a valid HH:MM value
            ValidationError: If the medication is unknown or has no such slot
        """
        time = canonical_time(time)
        medication = self.registry.get(medication_id)
        if medication is None:
            raise ValidationError(f"Unknown medication: {medication_id}")
        if time not in medication.times:
            raise ValidationError(f"{medication.name} has no dose at {time}")

        created = self.ledger.record_taken(medication_id, time, day or local_today())
        if created:
            self.gateway.save_logs(self.ledger.entries())
        return created

    def is_taken(self, medication_id: str, time: str, day: Optional[Union[date, str]] = None) -> bool:
        return self.ledger.is_taken(medication_id, time, day or local_today())

    def compute_adherence(self, today: Optional[date] = None) -> AdherenceReport:
        today = today or local_today()
        window = trailing_window(today, settings.ADHERENCE_WINDOW_DAYS)
        return compute_adherence(
            self.registry.list(),
            self.ledger.entries_within_dates(window),
            today=today
        )

    def todays_doses(self, today: Optional[date] = None) -> List[DoseSlot]:
        """Today's dose slots sorted by time, with taken flags for today."""
        today = today or local_today()
        slots = todays_doses(self.registry.list())
        for slot in slots:
            slot.taken = self.ledger.is_taken(slot.medication_id, slot.time, today)
        return slots

    def handle_reminder_fired(self, reminder: ScheduledReminder) -> None:
        """Listener for fired reminders."""
        logger.info(
            f"Reminder {reminder.handle} delivered at {datetime.now().strftime('%H:%M')}: "
            f"{reminder.content.title} - {reminder.content.body}"
        )


def build_notification_service() -> NotificationService:
    """Notification service selected by NOTIFICATION_BACKEND."""
    if settings.NOTIFICATION_BACKEND == "http":
        return HttpNotificationService(settings.NOTIFICATION_API_URL, timeout=settings.SCHEDULE_TIMEOUT_SECONDS)
    return LocalNotificationService()


def build_tracker(
    service: NotificationService,
    session_factory: Optional[sessionmaker] = None
) -> MedicationTracker:
    """Assemble a tracker on the configured (or given) database."""
    if session_factory is None:
        session_factory = database.SessionLocal

    gateway = PersistenceGateway(SqlKeyValueStore(session_factory))
    return MedicationTracker(ReminderScheduler(service), gateway)
