"""Database module for the Medication Adherence Tracker.

This module defines the key-value table backing the persistent store and
database session management. Values are opaque strings; the persistence
gateway decides what goes in them.
"""

from sqlalchemy import create_engine, Column, String, Text, DateTime
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from config import settings

# SQLAlchemy Base
Base = declarative_base()


class StoreEntry(Base):
    """One key of the persistent key-value store."""

    __tablename__ = "store_entries"

    key = Column(String, primary_key=True, doc="Store key, e.g. '@meds_v1'")
    value = Column(Text, nullable=False, doc="Serialized value")
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        doc="When the value was last written (timezone-aware)"
    )

    def __repr__(self):
        """String representation"""
        return f"<StoreEntry(key={self.key}, size={len(self.value or '')}, updated={self.updated_at})>"


def create_session_factory(database_url: str) -> sessionmaker:
    """Create an engine for database_url, ensure tables exist, return a session factory.

    In-memory SQLite ("sqlite://") shares one connection so every session
    sees the same data.
    """
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    engine_kwargs = {}
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        engine_kwargs["poolclass"] = StaticPool

    db_engine = create_engine(database_url, connect_args=connect_args, echo=False, **engine_kwargs)
    Base.metadata.create_all(bind=db_engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


# Session Factory for the configured database
SessionLocal = create_session_factory(settings.DATABASE_URL)
