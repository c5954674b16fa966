"""Dose ledger: append-only log of confirmed doses."""

from datetime import date, datetime, timezone
from typing import Iterable, List, Optional, Sequence, Union

from logger_config import setup_logger
from schemas import DoseLogEntry
from timeutil import as_date, canonical_time

logger = setup_logger(__name__, 'ledger.log')


class DoseLedger:
    """Holds at most one entry per (date, medication_id, time)."""

    def __init__(self, entries: Optional[List[DoseLogEntry]] = None):
        self._entries: List[DoseLogEntry] = list(entries or [])

    def load(self, entries: Sequence[DoseLogEntry]) -> None:
        """Replace the in-memory log (used at startup)."""
        self._entries = list(entries)

    def entries(self) -> List[DoseLogEntry]:
        return list(self._entries)

    def is_taken(self, medication_id: str, time: str, day: Union[date, str]) -> bool:
        """Whether the slot was recorded. "8:00" and "08:00" are the same slot.

        Raises:
            InvalidTimeError: If time is not a valid HH:MM value
        """
        time = canonical_time(time)
        day = as_date(day)
        return any(
            entry.medication_id == medication_id and entry.time == time and entry.date == day
            for entry in self._entries
        )

    def record_taken(
        self,
        medication_id: str,
        time: str,
        day: Union[date, str],
        taken_at: Optional[datetime] = None
    ) -> bool:
        """Record a dose as taken.

        Recording the same slot again is a no-op. The time is stored
        zero-padded.

        Returns:
            bool: True if a new entry was appended

        Raises:
            InvalidTimeError: If time is not a valid HH:MM value
        """
        time = canonical_time(time)
        day = as_date(day)
        if self.is_taken(medication_id, time, day):
            return False

        entry = DoseLogEntry(
            date=day,
            medication_id=medication_id,
            time=time,
            taken_at=taken_at or datetime.now(timezone.utc)
        )
        self._entries.append(entry)

        logger.info(f"Dose taken: medication {medication_id} at {time} on {day.isoformat()}")
        return True

    def entries_within_dates(self, dates: Iterable[Union[date, str]]) -> List[DoseLogEntry]:
        """Entries whose date is one of ``dates``."""
        wanted = {as_date(d) for d in dates}
        return [entry for entry in self._entries if entry.date in wanted]
