"""CRUD operations on the key-value store table.

Functions take an open session and commit their own writes.
"""

from sqlalchemy.orm import Session
from typing import Optional
from datetime import datetime, timezone

from database import StoreEntry


def get_value(db: Session, key: str) -> Optional[str]:
    """Get the value stored under key.

    Args:
        db: Database session
        key: Store key

    Returns:
        Optional[str]: Stored value, None if the key is absent
    """
    entry = db.get(StoreEntry, key)
    return entry.value if entry else None


def set_value(db: Session, key: str, value: str) -> StoreEntry:
    """Insert or replace the value stored under key.

    Args:
        db: Database session
        key: Store key
        value: Serialized value

    Returns:
        StoreEntry: The written entry

    Raises:
        SQLAlchemyError: On database errors
    """
    now = datetime.now(timezone.utc)

    entry = db.get(StoreEntry, key)
    if entry is None:
        entry = StoreEntry(key=key, value=value, updated_at=now)
        db.add(entry)
    else:
        entry.value = value
        entry.updated_at = now

    db.commit()
    db.refresh(entry)
    return entry
