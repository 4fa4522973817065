"""Audit logger writing to the standard logging system.

Records go to the ``neo_access.audit`` logger. Changes are logged at INFO,
checks at DEBUG and denials at WARNING. Each record also carries the event
as a dict in ``record.audit`` for structured handlers.
"""

import logging
from typing import Any, Dict, List, Optional

from ...config.constants import AssignmentKind
from ...core.value_objects import ContextReference, SubjectReference

AUDIT_LOGGER_NAME = "neo_access.audit"

_GRANTED = {
    AssignmentKind.PERMISSION: ("permission_granted", "Permissions granted"),
    AssignmentKind.ROLE: ("role_assigned", "Roles assigned"),
    AssignmentKind.CAPABILITY: ("capability_assigned", "Capabilities assigned"),
}
_REVOKED = {
    AssignmentKind.PERMISSION: ("permission_revoked", "Permissions revoked"),
    AssignmentKind.ROLE: ("role_removed", "Roles removed"),
    AssignmentKind.CAPABILITY: ("capability_removed", "Capabilities removed"),
}


class LoggingAuditLogger:
    """Default audit logger."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(AUDIT_LOGGER_NAME)

    async def log_granted(
        self,
        subject: SubjectReference,
        kind: AssignmentKind,
        names: List[str],
        context: Optional[ContextReference] = None,
    ) -> None:
        action, message = _GRANTED[kind]
        self._log(logging.INFO, message, action, subject, context, {f"{kind.value}s": names})

    async def log_revoked(
        self,
        subject: SubjectReference,
        kind: AssignmentKind,
        names: List[str],
        context: Optional[ContextReference] = None,
    ) -> None:
        action, message = _REVOKED[kind]
        self._log(logging.INFO, message, action, subject, context, {f"{kind.value}s": names})

    async def log_check(
        self,
        subject: SubjectReference,
        kind: AssignmentKind,
        name: str,
        result: bool,
        context: Optional[ContextReference] = None,
    ) -> None:
        self._log(
            logging.DEBUG,
            f"{kind.value.capitalize()} check",
            f"{kind.value}_check",
            subject,
            context,
            {kind.value: name, "result": "granted" if result else "denied"},
        )

    async def log_access_denied(
        self,
        subject: SubjectReference,
        kind: AssignmentKind,
        name: str,
        context: Optional[ContextReference] = None,
    ) -> None:
        self._log(
            logging.WARNING,
            "Access denied",
            "access_denied",
            subject,
            context,
            {"type": kind.value, "name": name},
        )

    def _log(
        self,
        level: int,
        message: str,
        action: str,
        subject: SubjectReference,
        context: Optional[ContextReference],
        data: Dict[str, Any],
    ) -> None:
        event = {
            "action": action,
            "subject": subject.to_dict(),
            "context": context.to_dict() if context else None,
            **data,
        }
        details = " ".join(f"{key}={value}" for key, value in data.items())
        scope = f" in {context.key}" if context else ""
        self.logger.log(level, f"[audit] {message}: {subject.key}{scope} {details}", extra={"audit": event})
