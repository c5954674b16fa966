"""Medication Adherence Tracker - daily dose reminders and adherence tracking.

Local-first: medications and dose logs live in a local key-value store and
reminders are scheduled with a notification service.

Features:
- Medications with one or more daily HH:MM reminder times
- Recurring daily reminders, cancelled when a medication is removed
- Idempotent "dose taken" log per date and time slot
- 7-day trailing adherence percentage
- HTTP API for a local UI

Components:
- config: Application settings
- timeutil: HH:MM and calendar date helpers
- schemas: Pydantic data model
- notifications: Local and push-gateway notification services
- scheduler: Daily reminder scheduling
- registry: Medication registry
- ledger: Dose log
- adherence: Adherence and today's dose view
- database / crud: SQLAlchemy key-value store
- persistence: Load/save of tracker state
- tracker: Operations offered to the UI
- background_worker: Local reminder delivery loop
- api_server: FastAPI REST API

Usage:
    python api_server.py
"""

__version__ = "1.0.0"
__author__ = "Mayur"
__description__ = "Local medication reminder and adherence tracker"
