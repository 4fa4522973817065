"""Configuration module for neo-access.

Settings, constants and logging setup shared by every feature.
"""

from .constants import (
    AssignmentKind,
    CacheDefaults,
    CacheKeys,
    CacheStore,
    DatabaseSchemas,
    DEFAULT_GUARD,
    MissingFeatureBehavior,
    RelationType,
    WildcardDefaults,
    WildcardDialect,
)
from .settings import AccessSettings, get_settings
from .logging_config import (
    setup_logging,
    get_logger,
    LogFormat,
    LogVerbosity,
    LoggingConfig,
)

__all__ = [
    # Constants
    "AssignmentKind",
    "CacheDefaults",
    "CacheKeys",
    "CacheStore",
    "DatabaseSchemas",
    "DEFAULT_GUARD",
    "MissingFeatureBehavior",
    "RelationType",
    "WildcardDefaults",
    "WildcardDialect",

    # Settings
    "AccessSettings",
    "get_settings",

    # Logging configuration
    "setup_logging",
    "get_logger",
    "LogFormat",
    "LogVerbosity",
    "LoggingConfig",
]
