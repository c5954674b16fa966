"""Pydantic schemas for the Medication Adherence Tracker.

This module defines the domain records (medications, dose log entries),
the reminder request sent to the notification service, and the request and
response bodies of the HTTP API.

Stored records use camelCase aliases (``notifIds``, ``medId``,
``takenAtISO``) so the persisted JSON keeps its established shape.
"""

from pydantic import BaseModel, Field, field_validator
from datetime import date as Date, datetime
from typing import Dict, List, Optional, Union


class Medication(BaseModel):
    """A medication and its daily reminder slots.

    ``reminder_handles`` maps each time to the handles returned by the
    notification service, one handle per occurrence of that time in
    ``times``.
    """

    id: str = Field(..., description="Opaque unique medication ID (UUID)")

    name: str = Field(..., min_length=1, description="Display name")

    times: List[str] = Field(
        ...,
        min_length=1,
        description="Daily reminder times in HH:MM 24h format, in entry order",
        examples=[["08:00", "20:00"]]
    )

    reminder_handles: Dict[str, List[str]] = Field(
        default_factory=dict,
        alias="notifIds",
        description="Time -> notification handles scheduled for that time"
    )

    @field_validator("reminder_handles", mode="before")
    @classmethod
    def wrap_single_handles(cls, value):
        # Older records hold one handle string per time
        if isinstance(value, dict):
            return {
                time: [handle] if isinstance(handle, str) else handle
                for time, handle in value.items()
            }
        return value

    def all_handles(self) -> List[str]:
        """Every handle owned by this medication, in time order."""
        handles = []
        for time in dict.fromkeys(self.times):
            handles.extend(self.reminder_handles.get(time, []))
        return handles

    class Config:
        """Pydantic config"""
        populate_by_name = True


class DoseLogEntry(BaseModel):
    """A confirmed dose for one (date, medication, time) slot."""

    date: Date = Field(..., description="Calendar date the dose was due")
    medication_id: str = Field(..., alias="medId", description="ID of the medication")
    time: str = Field(..., description="Scheduled slot in HH:MM 24h format")
    taken_at: datetime = Field(..., alias="takenAtISO", description="When the dose was confirmed")

    class Config:
        """Pydantic config"""
        populate_by_name = True


class DoseSlot(BaseModel):
    """One row of the daily dose view."""

    medication_id: str
    name: str
    time: str
    taken: bool = False


class AdherenceReport(BaseModel):
    """Scheduled vs. taken doses over the trailing window."""

    pct: int = Field(..., description="Rounded adherence percentage")
    scheduled_count: int = Field(..., ge=0)
    taken_count: int = Field(..., ge=0)


class ReminderContent(BaseModel):
    """What the notification shows."""

    title: str
    body: str
    sound: bool = True


class DailyTrigger(BaseModel):
    """Repeating trigger firing every day at hour:minute local time."""

    hour: int = Field(..., ge=0, le=23)
    minute: int = Field(..., ge=0, le=59)
    repeats: bool = True


class MedicationCreate(BaseModel):
    """Schema for adding a medication.

    ``times`` may be a list or a comma-separated string such as
    "8:00, 20:00". Name and time checks happen in the registry so that
    errors name the offending token.
    """

    name: str = Field(
        ...,
        max_length=200,
        description="Medication name",
        examples=["Amoxicillin"]
    )

    times: Union[List[str], str] = Field(
        ...,
        description="Reminder times (HH:MM)",
        examples=[["08:00", "20:00"], "08:00, 20:00"]
    )


class DoseTakenRequest(BaseModel):
    """Schema for marking a dose as taken."""

    medication_id: str = Field(..., description="ID of the medication")
    time: str = Field(..., description="Scheduled slot in HH:MM 24h format")
    date: Optional[Date] = Field(None, description="Dose date, defaults to today")
