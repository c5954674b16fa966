"""FastAPI server for the Medication Adherence Tracker.

This module exposes the tracker operations over HTTP for a local UI.
State lives in a single MedicationTracker created at startup; the
reminder worker runs in the same event loop when the local notification
backend is used.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import date
from typing import List, Optional

from fastapi import FastAPI, Depends, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

import schemas
from background_worker import reminder_loop
from config import settings
from errors import SchedulingError, ValidationError
from logger_config import setup_logger
from notifications import LocalNotificationService
from timeutil import canonical_time, local_today
from tracker import MedicationTracker, build_notification_service, build_tracker

logger = setup_logger(__name__, 'api.log')

_tracker: Optional[MedicationTracker] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load state, ask for notification permission and start the worker."""
    global _tracker

    service = build_notification_service()
    _tracker = build_tracker(service)
    _tracker.load()
    await _tracker.scheduler.request_permission()

    worker = None
    if isinstance(service, LocalNotificationService):
        await _tracker.reschedule_all()
        service.add_listener(_tracker.handle_reminder_fired)
        if settings.WORKER_ENABLED:
            worker = asyncio.create_task(reminder_loop(service))

    logger.info(f"Tracker ready with {len(_tracker.list())} medication(s)")
    try:
        yield
    finally:
        if worker is not None:
            worker.cancel()
            try:
                await worker
            except asyncio.CancelledError:
                pass
        _tracker = None


# Create FastAPI application
app = FastAPI(
    title="Medication Adherence Tracker API",
    description="Local medication reminders, dose logging and 7-day adherence",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Local UI dev servers
origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_tracker() -> MedicationTracker:
    """Tracker dependency for FastAPI."""
    if _tracker is None:
        raise HTTPException(status_code=503, detail="Tracker not initialized")
    return _tracker


@app.get("/")
def root():
    """Root endpoint - service information"""
    return {
        "service": "Medication Adherence Tracker API",
        "version": "1.0.0",
        "status": "healthy",
        "endpoints": {
            "docs": "/docs",
            "health": "/health",
            "medications": "/medications",
            "today": "/doses/today",
            "adherence": "/adherence"
        }
    }


@app.get("/health")
def health_check(tracker: MedicationTracker = Depends(get_tracker)):
    """Health check endpoint for monitoring"""
    return {
        "status": "healthy",
        "service": "medication_tracker",
        "medications": len(tracker.list()),
        "notifications": settings.NOTIFICATION_BACKEND
    }


@app.post("/medications", response_model=schemas.Medication, status_code=201)
async def add_medication(
    medication: schemas.MedicationCreate,
    tracker: MedicationTracker = Depends(get_tracker)
):
    """Add a medication and schedule its daily reminders.

    Request body example:
    ```json
    {"name": "Amoxicillin", "times": "8:00, 20:00"}
    ```
    """
    try:
        return await tracker.add_medication(medication.name, medication.times)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SchedulingError as e:
        raise HTTPException(status_code=502, detail=f"Schedule failed: {str(e)}")


@app.get("/medications", response_model=List[schemas.Medication])
def list_medications(tracker: MedicationTracker = Depends(get_tracker)):
    """List medications in the order they were added."""
    return tracker.list()


@app.delete("/medications/{medication_id}", status_code=200)
async def remove_medication(
    medication_id: str,
    tracker: MedicationTracker = Depends(get_tracker)
):
    """Remove a medication and cancel its reminders.

    Removing an unknown or already removed medication is not an error.
    """
    removed = await tracker.remove_medication(medication_id)
    return {"medication_id": medication_id, "removed": removed}


@app.get("/doses/today", response_model=List[schemas.DoseSlot])
def list_todays_doses(tracker: MedicationTracker = Depends(get_tracker)):
    """Today's dose slots sorted by time, with taken flags."""
    return tracker.todays_doses()


@app.post("/doses/taken", status_code=200)
def mark_taken(
    request: schemas.DoseTakenRequest,
    tracker: MedicationTracker = Depends(get_tracker)
):
    """Mark a dose as taken. Marking the same slot twice is a no-op.

    The time must be one of the medication's scheduled times.
    """
    day = request.date or local_today()
    try:
        created = tracker.record_taken(request.medication_id, request.time, day)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "medication_id": request.medication_id,
        "time": canonical_time(request.time),
        "date": day.isoformat(),
        "taken": True,
        "created": created
    }


@app.get("/doses/taken")
def check_taken(
    medication_id: str = Query(..., description="Medication ID"),
    time: str = Query(..., description="Slot time (HH:MM)"),
    day: Optional[date] = Query(None, alias="date", description="Dose date, defaults to today"),
    tracker: MedicationTracker = Depends(get_tracker)
):
    """Check whether a dose slot was taken."""
    day = day or local_today()
    try:
        time = canonical_time(time)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "medication_id": medication_id,
        "time": time,
        "date": day.isoformat(),
        "taken": tracker.is_taken(medication_id, time, day)
    }


@app.get("/adherence", response_model=schemas.AdherenceReport)
def get_adherence(tracker: MedicationTracker = Depends(get_tracker)):
    """Adherence over the trailing window ending today."""
    return tracker.compute_adherence()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host=settings.API_HOST,
        port=settings.API_PORT,
        log_level="info"
    )
