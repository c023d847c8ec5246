"""
Audit Logger

DESIGN DECISION: Every account action and every change to a user's
records is logged as a structured event. This provides:
1. Traceability of who changed what
2. Debugging capability
3. A signal for repeated failed logins

Events are written to the structured log only. They are deliberately
not kept in the store: deleting an account must leave nothing behind
that is keyed by that user.
"""

import logging
from collections import deque
from typing import Optional
from uuid import UUID

import structlog

from finora.models.audit import AuditEvent, AuditEventBuilder, AuditEventType


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structlog output through the stdlib root logger at level."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level, logging.INFO))


class AuditLogger:
    """
    Central audit logging service.
    
    Severity decides the log level; the event body becomes the
    structured fields of the log line.
    """
    
    def __init__(self, history_size: int = 500):
        self._logger = structlog.get_logger("finora.audit")
        self._history: deque[AuditEvent] = deque(maxlen=history_size)
    
    @property
    def history(self) -> list[AuditEvent]:
        """Most recent events logged by this instance, oldest first."""
        return list(self._history)
    
    async def log(self, event: AuditEvent) -> None:
        log_dict = event.to_log_dict()
        
        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)
        
        self._history.append(event)
    
    async def log_user_registered(self, user_id: UUID) -> None:
        await self.log(AuditEventBuilder.user_registered(user_id))
    
    async def log_login(self, user_id: UUID) -> None:
        await self.log(AuditEventBuilder.login_succeeded(user_id))
    
    async def log_login_failed(self) -> None:
        await self.log(AuditEventBuilder.login_failed())
    
    async def log_account_deleted(self, user_id: UUID, removed: dict[str, int]) -> None:
        await self.log(AuditEventBuilder.account_deleted(user_id, removed))
    
    async def log_record_change(
        self,
        event_type: AuditEventType,
        user_id: UUID,
        entity_type: str,
        entity_id: Optional[UUID] = None,
        details: Optional[dict] = None,
    ) -> None:
        """Log a create/update/delete of one of the user's records."""
        event = AuditEventBuilder.record_changed(
            event_type=event_type,
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details,
        )
        await self.log(event)
    
    async def log_lesson_completed(
        self,
        user_id: UUID,
        lesson_id: str,
        score_percent: int,
        points_awarded: int,
    ) -> None:
        await self.log(AuditEventBuilder.lesson_completed(
            user_id=user_id,
            lesson_id=lesson_id,
            score_percent=score_percent,
            points_awarded=points_awarded,
        ))
    
    async def log_quiz_failed(self, user_id: UUID, lesson_id: str, score_percent: int) -> None:
        await self.log(AuditEventBuilder.quiz_failed(user_id, lesson_id, score_percent))
    
    async def log_validation_failed(
        self,
        field: str,
        message: str,
        user_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.validation_failed(field, message, user_id))
    
    async def log_store_corrupted(self, collection: str, error_message: str) -> None:
        await self.log(AuditEventBuilder.store_corrupted(collection, error_message))
    
    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        await self.log(AuditEventBuilder.system_error(error_type, error_message, details))
