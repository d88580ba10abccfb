"""Configuration settings for the learning engine."""
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from nativepace.services.review_queue import DEFAULT_DUE_PATTERNS_LIMIT, DEFAULT_NEW_PATTERNS_LIMIT
from nativepace.services.spaced_repetition import DEFAULT_AVERAGE_TIME_MS
from nativepace.services.text_similarity import DEFAULT_SIMILARITY_THRESHOLD

# Load environment variables from .env file
env_file = ".env.test" if os.getenv("ENV") == "test" else ".env"
load_dotenv(env_file)


@dataclass
class DatabaseSettings:
    """Database configuration settings."""
    url: str = os.getenv("DATABASE_URL", "sqlite:///nativepace.db")
    echo: bool = os.getenv("DATABASE_ECHO", "false").lower() == "true"


@dataclass
class LoggingSettings:
    """Logging configuration settings."""
    level: str = os.getenv("LOG_LEVEL", "INFO")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    dir: Optional[str] = os.getenv("LOG_DIR", None)
    rotation: str = os.getenv("LOG_ROTATION", "midnight")
    interval: int = int(os.getenv("LOG_INTERVAL", "1"))
    backup_count: int = int(os.getenv("LOG_BACKUP_COUNT", "7"))


@dataclass
class LearningSettings:
    """Learning engine settings."""
    similarity_threshold: int = int(os.getenv("SIMILARITY_THRESHOLD", str(DEFAULT_SIMILARITY_THRESHOLD)))
    average_response_time_ms: int = int(
        os.getenv("AVERAGE_RESPONSE_TIME_MS", str(DEFAULT_AVERAGE_TIME_MS))
    )
    due_patterns_limit: int = int(os.getenv("DUE_PATTERNS_LIMIT", str(DEFAULT_DUE_PATTERNS_LIMIT)))
    new_patterns_limit: int = int(os.getenv("NEW_PATTERNS_LIMIT", str(DEFAULT_NEW_PATTERNS_LIMIT)))


@dataclass
class MonitoringSettings:
    """Prometheus exporter settings."""
    enabled: bool = os.getenv("METRICS_ENABLED", "false").lower() == "true"
    port: int = int(os.getenv("METRICS_PORT", "9090"))


def get_database_settings() -> DatabaseSettings:
    """Get database settings."""
    return DatabaseSettings()


def get_logging_settings() -> LoggingSettings:
    """Get logging settings."""
    return LoggingSettings()


def get_learning_settings() -> LearningSettings:
    """Get learning settings."""
    return LearningSettings()


def get_monitoring_settings() -> MonitoringSettings:
    """Get monitoring settings."""
    return MonitoringSettings()


@dataclass
class Settings:
    """Main settings class that combines all configuration settings."""
    database: DatabaseSettings = field(default_factory=get_database_settings)
    logging: LoggingSettings = field(default_factory=get_logging_settings)
    learning: LearningSettings = field(default_factory=get_learning_settings)
    monitoring: MonitoringSettings = field(default_factory=get_monitoring_settings)

    def validate(self) -> None:
        """Validate settings and raise ValueError if invalid."""
        if not self.database.url:
            raise ValueError("DATABASE_URL is required")

        if self.learning.similarity_threshold < 0 or self.learning.similarity_threshold > 100:
            raise ValueError("SIMILARITY_THRESHOLD must be between 0 and 100")

        if self.learning.average_response_time_ms <= 0:
            raise ValueError("AVERAGE_RESPONSE_TIME_MS must be positive")

        if self.learning.due_patterns_limit < 1:
            raise ValueError("DUE_PATTERNS_LIMIT must be positive")

        if self.learning.new_patterns_limit < 1:
            raise ValueError("NEW_PATTERNS_LIMIT must be positive")

        if self.monitoring.port < 1 or self.monitoring.port > 65535:
            raise ValueError("METRICS_PORT must be a valid TCP port")


# Create global settings instance
settings = Settings()
settings.validate()
