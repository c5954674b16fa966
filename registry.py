"""Medication registry.

Owns the list of medications and the reminder handles scheduled for each
of their times. A medication is appended only after all of its reminders
were scheduled, so a listed medication never lacks a handle.
"""

import uuid
from typing import Dict, List, Optional, Sequence, Union

from errors import SchedulingError, ValidationError
from logger_config import setup_logger
from scheduler import ReminderScheduler
from schemas import Medication
from timeutil import parse_times

logger = setup_logger(__name__, 'registry.log')


class MedicationRegistry:
    """In-memory medication list with reminder bookkeeping."""

    def __init__(self, scheduler: ReminderScheduler, medications: Optional[List[Medication]] = None):
        self.scheduler = scheduler
        self._medications: List[Medication] = list(medications or [])

    def load(self, medications: Sequence[Medication]) -> None:
        """Replace the in-memory state (used at startup)."""
        self._medications = list(medications)

    def list(self) -> List[Medication]:
        """Medications in insertion order."""
        return list(self._medications)

    def get(self, medication_id: str) -> Optional[Medication]:
        for medication in self._medications:
            if medication.id == medication_id:
                return medication
        return None

    async def add_medication(self, name: str, times: Union[str, Sequence[str]]) -> Medication:
        """Validate, schedule reminders for, and register a medication.

        Args:
            name: Display name (surrounding whitespace is trimmed)
            times: Comma-separated string or sequence of HH:MM tokens

        Returns:
            Medication: The registered medication

        Raises:
            ValidationError: Empty name or no times
            InvalidTimeError: A malformed or out-of-range time
            SchedulingError: A reminder could not be scheduled; reminders
                scheduled earlier in this call are cancelled
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Enter a name and at least one time (e.g., 08:00).")

        parsed_times = parse_times(times)
        if not parsed_times:
            raise ValidationError("Enter a name and at least one time (e.g., 08:00).")

        handles: Dict[str, List[str]] = {}
        scheduled: List[str] = []
        try:
            for time in parsed_times:
                handle = await self.scheduler.schedule_daily(name, time)
                scheduled.append(handle)
                handles.setdefault(time, []).append(handle)
        except SchedulingError as e:
            logger.error(f"Scheduling failed for {name}, rolling back {len(scheduled)} reminder(s): {str(e)}")
            for handle in scheduled:
                await self.scheduler.cancel(handle)
            raise

        medication = Medication(
            id=str(uuid.uuid4()),
            name=name,
            times=parsed_times,
            reminder_handles=handles
        )
        self._medications.append(medication)

        logger.info(f"Added medication {medication.id} ({name}) at {', '.join(parsed_times)}")
        return medication

    async def reschedule_all(self) -> int:
        """Schedule a fresh set of reminders for every medication.

        For notification services whose reminders do not outlive the
        process. A medication whose reminders cannot be scheduled keeps its
        stored handles.

        Returns:
            int: Number of medications rescheduled
        """
        rescheduled = 0
        medications = []
        for medication in self._medications:
            handles: Dict[str, List[str]] = {}
            try:
                for time in medication.times:
                    handle = await self.scheduler.schedule_daily(medication.name, time)
                    handles.setdefault(time, []).append(handle)
            except SchedulingError as e:
                logger.error(f"Could not reschedule {medication.id} ({medication.name}): {str(e)}")
                for time_handles in handles.values():
                    for handle in time_handles:
                        await self.scheduler.cancel(handle)
                medications.append(medication)
                continue

            medications.append(medication.model_copy(update={"reminder_handles": handles}))
            rescheduled += 1

        self._medications = medications
        return rescheduled

    async def remove_medication(self, medication_id: str) -> bool:
        """Cancel a medication's reminders and remove it.

        Returns:
            bool: True if removed, False if the ID is unknown
        """
        medication = self.get(medication_id)
        if medication is None:
            return False

        for handle in medication.all_handles():
            await self.scheduler.cancel(handle)

        self._medications = [m for m in self._medications if m.id != medication_id]
        logger.info(f"Removed medication {medication_id} ({medication.name})")
        return True
