"""Settings-driven dispatch of authorization events to an audit logger."""

import logging
from typing import Dict, List, Optional

from ...config.constants import AssignmentKind
from ...config.settings import AccessSettings, get_settings
from ...core.value_objects import ContextReference, SubjectReference
from .logging_audit_logger import LoggingAuditLogger
from .protocols import AuditLogger

logger = logging.getLogger(__name__)


class AuditTrail:
    """Decides which events reach the audit logger.

    Nothing is recorded unless ``audit_enabled`` is set. Changes, checks and
    denials each have their own switch. A failing audit logger is logged and
    never changes the outcome of the operation being audited.
    """

    def __init__(
        self,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[AccessSettings] = None,
    ):
        self.settings = settings or get_settings()
        self.audit_logger = audit_logger or LoggingAuditLogger()

    @property
    def logs_changes(self) -> bool:
        return self.settings.audit_enabled and self.settings.audit_log_changes

    @property
    def logs_checks(self) -> bool:
        return self.settings.audit_enabled and self.settings.audit_log_checks

    @property
    def logs_denials(self) -> bool:
        return self.settings.audit_enabled and self.settings.audit_log_denials

    async def record_change(
        self,
        assign: bool,
        subject: SubjectReference,
        kind: AssignmentKind,
        names: List[str],
        context: Optional[ContextReference] = None,
    ) -> None:
        if not names or not self.logs_changes:
            return
        try:
            if assign:
                await self.audit_logger.log_granted(subject, kind, names, context)
            else:
                await self.audit_logger.log_revoked(subject, kind, names, context)
        except Exception as e:
            logger.error(f"Audit logger failed to record {kind.value} change for {subject.key}: {e}")

    async def record_checks(
        self,
        subject: SubjectReference,
        kind: AssignmentKind,
        results: Dict[str, bool],
        context: Optional[ContextReference] = None,
    ) -> None:
        """Record one check event per name, and a denial for each failed name."""
        for name, result in results.items():
            try:
                if self.logs_checks:
                    await self.audit_logger.log_check(subject, kind, name, result, context)
                if not result and self.logs_denials:
                    await self.audit_logger.log_access_denied(subject, kind, name, context)
            except Exception as e:
                logger.error(f"Audit logger failed to record {kind.value} check for {subject.key}: {e}")

    async def record_denials(
        self,
        subject: SubjectReference,
        kind: AssignmentKind,
        names: List[str],
        context: Optional[ContextReference] = None,
    ) -> None:
        if not self.logs_denials:
            return
        for name in names:
            try:
                await self.audit_logger.log_access_denied(subject, kind, name, context)
            except Exception as e:
                logger.error(f"Audit logger failed to record denial for {subject.key}: {e}")
