"""Persistence gateway: loads and saves tracker state to the key-value store.

Durability is best-effort. Any store failure is caught here, whether a
PersistenceError from the SQL store or whatever a custom store raises.
Load problems degrade to empty state and save problems are logged;
neither is raised to the caller, and in-memory state is never rolled
back because a write failed.
"""

from typing import List, Optional, Protocol, Sequence, Tuple

from pydantic import TypeAdapter, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

import crud
from config import settings
from errors import PersistenceError
from logger_config import setup_logger
from schemas import DoseLogEntry, Medication

logger = setup_logger(__name__, 'persistence.log')

MEDICATION_LIST = TypeAdapter(List[Medication])
DOSE_LOG_LIST = TypeAdapter(List[DoseLogEntry])


class KeyValueStore(Protocol):
    """Get/set-by-key string store."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class SqlKeyValueStore:
    """Key-value store on a SQLAlchemy database.

    Database errors are raised as PersistenceError.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def get(self, key: str) -> Optional[str]:
        db = self.session_factory()
        try:
            return crud.get_value(db, key)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not read '{key}': {str(e)}") from e
        finally:
            db.close()

    def set(self, key: str, value: str) -> None:
        db = self.session_factory()
        try:
            crud.set_value(db, key, value)
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(f"Could not write '{key}': {str(e)}") from e
        finally:
            db.close()


class PersistenceGateway:
    """Serializes medications and dose logs as JSON under two store keys."""

    def __init__(
        self,
        store: KeyValueStore,
        medications_key: Optional[str] = None,
        logs_key: Optional[str] = None
    ):
        self.store = store
        self.medications_key = medications_key or settings.MEDICATIONS_KEY
        self.logs_key = logs_key or settings.DOSE_LOGS_KEY

    def _load(self, key: str, adapter: TypeAdapter) -> list:
        try:
            raw = self.store.get(key)
        except Exception as e:
            logger.warning(f"Load failed for '{key}', starting empty: {str(e)}")
            return []

        if raw is None:
            return []

        try:
            return adapter.validate_json(raw)
        except (ValidationError, ValueError) as e:
            logger.warning(f"Unreadable data under '{key}', starting empty: {str(e)}")
            return []

    def load_state(self) -> Tuple[List[Medication], List[DoseLogEntry]]:
        """Read medications and dose logs.

        Returns:
            Tuple: (medications, dose log entries); a missing or corrupt key
            yields an empty list for that key only
        """
        medications = self._load(self.medications_key, MEDICATION_LIST)
        entries = self._load(self.logs_key, DOSE_LOG_LIST)
        logger.info(f"Loaded {len(medications)} medication(s) and {len(entries)} dose log entries")
        return medications, entries

    def _save(self, key: str, adapter: TypeAdapter, items: Sequence) -> bool:
        try:
            payload = adapter.dump_json(list(items), by_alias=True).decode("utf-8")
            self.store.set(key, payload)
        except Exception as e:
            logger.error(f"Save failed for '{key}': {str(e)}")
            return False
        return True

    def save_medications(self, medications: Sequence[Medication]) -> bool:
        """Write the medication list. Returns False if the write failed."""
        return self._save(self.medications_key, MEDICATION_LIST, medications)

    def save_logs(self, entries: Sequence[DoseLogEntry]) -> bool:
        """Write the dose log. Returns False if the write failed."""
        return self._save(self.logs_key, DOSE_LOG_LIST, entries)
