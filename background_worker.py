"""Background worker delivering local medication reminders.

The worker:
- Runs continuously, checking for due reminders every WORKER_CHECK_INTERVAL seconds
- Fires reminders of the in-process notification service whose minute has come
- Logs errors and keeps running

Run standalone for a quick check of stored medications:
    python background_worker.py

The standalone worker only reads the store: it reschedules stored
medications on its own in-process notifier and never writes the new
handles back. Do not run it next to the API server, which already runs
this loop in-process; both would deliver the same reminders.
"""

import asyncio
import signal
import sys
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import sessionmaker

from config import settings
from logger_config import setup_logger
from notifications import LocalNotificationService
from tracker import MedicationTracker, build_tracker

logger = setup_logger(__name__, 'worker.log')

# Global flag for graceful shutdown
shutdown_requested = False


def signal_handler(signum, frame):
    """Handle shutdown signals gracefully."""
    global shutdown_requested
    logger.info(f"Received signal {signum}, initiating graceful shutdown...")
    shutdown_requested = True


def process_due_reminders(service: LocalNotificationService, now: Optional[datetime] = None) -> int:
    """Fire every reminder due at now.

    Returns:
        int: Number of reminders fired
    """
    try:
        fired = service.fire_due(now)
    except Exception as e:
        logger.error(f"Error in process_due_reminders: {str(e)}", exc_info=True)
        return 0

    if fired:
        logger.info(f"Fired {len(fired)} reminder(s)")
    else:
        logger.debug("No reminders due at this time")
    return len(fired)


async def reminder_loop(
    service: LocalNotificationService,
    interval: Optional[int] = None,
    should_stop: Callable[[], bool] = lambda: shutdown_requested
):
    """Main worker loop.

    Checks for due reminders at the configured interval until should_stop()
    returns True or the task is cancelled.
    """
    interval = interval or settings.WORKER_CHECK_INTERVAL
    logger.info(f"Reminder worker started (check interval: {interval} seconds)")

    iteration = 0
    while not should_stop():
        iteration += 1
        logger.debug(f"Worker iteration {iteration} started")

        process_due_reminders(service)

        # Break sleep into 1-second intervals to allow quick shutdown
        for _ in range(interval):
            if should_stop():
                break
            await asyncio.sleep(1)

    logger.info("Reminder worker shutting down gracefully")


async def prepare_standalone(
    service: LocalNotificationService,
    session_factory: Optional[sessionmaker] = None
) -> MedicationTracker:
    """Load stored medications and schedule them on service without saving.

    Returns:
        MedicationTracker: The read-only tracker whose listener is attached
    """
    tracker = build_tracker(service, session_factory)
    tracker.load()
    # registry-level reschedule: the new handles stay in this process
    rescheduled = await tracker.registry.reschedule_all()
    service.add_listener(tracker.handle_reminder_fired)
    logger.info(f"Scheduled {rescheduled} medication(s) for local delivery")
    return tracker


async def run_standalone():
    """Reschedule stored medications locally and deliver their reminders."""
    service = LocalNotificationService()
    await prepare_standalone(service)
    await reminder_loop(service)


def main():
    """Main entry point for the background worker."""
    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)

    logger.info("=" * 60)
    logger.info("Medication Tracker - Reminder Worker")
    logger.info("=" * 60)

    if not settings.WORKER_ENABLED:
        logger.warning("Worker is disabled in configuration. Exiting.")
        sys.exit(0)

    try:
        asyncio.run(run_standalone())
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt")
    except Exception as e:
        logger.error(f"Fatal error in reminder worker: {str(e)}", exc_info=True)
        sys.exit(1)

    logger.info("Reminder worker stopped")
    sys.exit(0)


if __name__ == "__main__":
    main()
