"""Configuration module for the Medication Adherence Tracker.

This module provides configuration settings using Pydantic Settings.
Environment variables can be used to override default values.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings for the tracker.

    All settings can be overridden via environment variables.
    Example: export DATABASE_URL="sqlite:///./other.db"
    """

    # Store Configuration
    DATABASE_URL: str = "sqlite:///./medications.db"
    """Backing database for the key-value store. Default: SQLite file in current directory"""

    MEDICATIONS_KEY: str = "@meds_v1"
    """Store key holding the serialized medication list"""

    DOSE_LOGS_KEY: str = "@logs_v1"
    """Store key holding the serialized dose log"""

    # Adherence
    ADHERENCE_WINDOW_DAYS: int = 7
    """Length of the trailing adherence window, today included"""

    # Reminder Content
    REMINDER_TITLE_TEMPLATE: str = "Time for {name}"
    """Notification title; {name} is replaced by the medication name"""

    REMINDER_BODY: str = "Tap to log your dose."
    """Notification body shown with every reminder"""

    SCHEDULE_TIMEOUT_SECONDS: float = 30.0
    """Upper bound for a single schedule request to the notification service"""

    # Notification Service
    NOTIFICATION_BACKEND: str = "local"
    """'local' for the in-process notifier, 'http' for a push gateway"""

    NOTIFICATION_API_URL: str = "http://127.0.0.1:8010"
    """Base URL of the push gateway when NOTIFICATION_BACKEND is 'http'"""

    # API Server Configuration
    API_HOST: str = "127.0.0.1"
    """API server host address (local UI only)"""

    API_PORT: int = 8005
    """API server port"""

    # Background Worker Configuration
    WORKER_ENABLED: bool = True
    """Enable/disable the local reminder delivery loop"""

    WORKER_CHECK_INTERVAL: int = 30
    """Interval in seconds between checks for due reminders"""

    # Logging
    LOG_LEVEL: str = "INFO"
    """Level for all tracker loggers"""

    LOG_DIR: str = ""
    """Directory for rotating log files. Empty: 'logs' next to the source"""

    class Config:
        """Pydantic config"""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


# Global settings instance
settings = Settings()
