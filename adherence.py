"""Adherence over the trailing window and the daily dose view.

Both are pure functions over snapshots of the registry and the ledger.
"""

from datetime import date
from typing import List, Optional, Sequence

from config import settings
from schemas import AdherenceReport, DoseLogEntry, DoseSlot, Medication
from timeutil import local_today, trailing_window


def compute_adherence(
    medications: Sequence[Medication],
    entries: Sequence[DoseLogEntry],
    today: Optional[date] = None,
    window_days: Optional[int] = None
) -> AdherenceReport:
    """Compare scheduled and taken doses over the trailing window.

    Every slot of every current medication counts as scheduled on each
    day of the window, including days before the medication was added.
    Entries of deleted medications still count as taken.
    """
    if window_days is None:
        window_days = settings.ADHERENCE_WINDOW_DAYS
    window = set(trailing_window(today or local_today(), window_days))

    slots_per_day = sum(len(medication.times) for medication in medications)
    scheduled_count = slots_per_day * window_days
    taken_count = sum(1 for entry in entries if entry.date in window)

    if scheduled_count == 0:
        pct = 0
    else:
        # Round half up
        pct = (200 * taken_count + scheduled_count) // (2 * scheduled_count)

    return AdherenceReport(pct=pct, scheduled_count=scheduled_count, taken_count=taken_count)


def todays_doses(medications: Sequence[Medication]) -> List[DoseSlot]:
    """Every (medication, time) slot, sorted by time.

    Ties keep medication insertion order.
    """
    slots = [
        DoseSlot(medication_id=medication.id, name=medication.name, time=time)
        for medication in medications
        for time in medication.times
    ]
    return sorted(slots, key=lambda slot: slot.time)
