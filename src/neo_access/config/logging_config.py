"""Logging configuration for neo-access.

Configures stdlib logging from environment variables so services embedding
the access layer get the same verbosity controls across processes.
"""

import logging
import logging.config
import os
from typing import Dict, Any
from enum import Enum


class LogLevel(str, Enum):
    """Supported log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogVerbosity(str, Enum):
    """Log verbosity modes."""
    QUIET = "QUIET"      # Only errors and critical
    NORMAL = "NORMAL"    # Warnings and above
    VERBOSE = "VERBOSE"  # Info level logging
    DEBUG = "DEBUG"      # Full debug logging


class LogFormat(str, Enum):
    """Log format options."""
    SIMPLE = "simple"
    DETAILED = "detailed"
    JSON = "json"


_FORMATS = {
    LogFormat.SIMPLE: "%(asctime)s - %(levelname)s - %(message)s",
    LogFormat.DETAILED: "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s",
    LogFormat.JSON: '{"time":"%(asctime)s","level":"%(levelname)s","module":"%(name)s","message":"%(message)s"}',
}


def get_log_level_from_verbosity(verbosity: str) -> str:
    """Map verbosity mode to log level, NORMAL for unknown values."""
    verbosity_map = {
        LogVerbosity.QUIET: LogLevel.ERROR.value,
        LogVerbosity.NORMAL: LogLevel.WARNING.value,
        LogVerbosity.VERBOSE: LogLevel.INFO.value,
        LogVerbosity.DEBUG: LogLevel.DEBUG.value,
    }
    try:
        return verbosity_map[LogVerbosity(verbosity.upper())]
    except ValueError:
        return LogLevel.WARNING.value


class LoggingConfig:
    """Logging configuration manager."""

    # Noisy components kept at WARNING unless debugging
    QUIET_MODULES = [
        "neo_access.features.cache.adapters",
        "neo_access.features.wildcards",
    ]

    # Third-party modules that should only log errors
    ERROR_ONLY_MODULES = [
        "asyncio",
        "asyncpg",
        "redis",
    ]

    @classmethod
    def build(cls) -> Dict[str, Any]:
        """Build the dictConfig mapping from the environment."""
        log_level = os.getenv("LOG_LEVEL")
        log_verbosity = os.getenv("LOG_VERBOSITY", "NORMAL")
        log_format = os.getenv("LOG_FORMAT", LogFormat.SIMPLE.value).lower()

        # An explicit LOG_LEVEL wins over the verbosity mode
        if log_level and log_level.upper() in LogLevel.__members__:
            effective_log_level = log_level.upper()
        else:
            effective_log_level = get_log_level_from_verbosity(log_verbosity)

        try:
            format_string = _FORMATS[LogFormat(log_format)]
        except ValueError:
            format_string = _FORMATS[LogFormat.SIMPLE]

        logging_config: Dict[str, Any] = {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": format_string,
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "level": effective_log_level,
                    "formatter": "default",
                    "stream": "ext://sys.stdout",
                },
            },
            "root": {
                "level": effective_log_level,
                "handlers": ["console"],
            },
            "loggers": {}
        }

        for module in cls.QUIET_MODULES:
            logging_config["loggers"][module] = {
                "level": "WARNING" if effective_log_level != "DEBUG" else "DEBUG",
                "handlers": ["console"],
                "propagate": False,
            }

        for module in cls.ERROR_ONLY_MODULES:
            logging_config["loggers"][module] = {
                "level": "ERROR",
                "handlers": ["console"],
                "propagate": False,
            }

        return logging_config

    @classmethod
    def configure(cls) -> None:
        """Configure logging based on environment variables."""
        logging_config = cls.build()
        logging.config.dictConfig(logging_config)

        logger = logging.getLogger(__name__)
        level = logging_config["root"]["level"]
        if level == "DEBUG":
            logger.debug(f"Logging configured: level={level}")

    @classmethod
    def set_module_level(cls, module_name: str, level: str) -> None:
        """Set log level for a specific module."""
        logging.getLogger(module_name).setLevel(getattr(logging, level.upper()))

    @classmethod
    def silence_module(cls, module_name: str) -> None:
        """Silence all logging from a module."""
        cls.set_module_level(module_name, "CRITICAL")


def setup_logging() -> None:
    """Setup logging configuration from environment variables.

    Called once on package import; services may call it again after
    changing the environment.
    """
    LoggingConfig.configure()


def get_logger(name: str) -> logging.Logger:
    """Get a configured logger (usually for ``__name__``)."""
    return logging.getLogger(name)
