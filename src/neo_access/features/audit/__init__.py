"""Audit logging of subject grant changes, checks and denials."""

from .protocols import AuditLogger
from .logging_audit_logger import AUDIT_LOGGER_NAME, LoggingAuditLogger
from .audit_trail import AuditTrail

__all__ = [
    "AuditLogger",
    "AUDIT_LOGGER_NAME",
    "LoggingAuditLogger",
    "AuditTrail",
]
