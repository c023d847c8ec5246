"""
Audit Models for Finora

Every account-level action and every mutation of a user's records is
described by an AuditEvent. This provides:
1. Traceability of who changed what
2. Debugging information when things go wrong
3. A place to notice repeated failed logins

DESIGN DECISION: Events reference users and records by id only.
Emails, names and credentials never appear in an event.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from finora.models.entities import utcnow


class AuditEventType(str, Enum):
    """
    Types of events we audit.
    """
    # Account lifecycle
    USER_REGISTERED = "user_registered"
    LOGIN_SUCCEEDED = "login_succeeded"
    LOGIN_FAILED = "login_failed"
    LOGOUT = "logout"
    SESSION_RESTORED = "session_restored"
    PASSWORD_CHANGED = "password_changed"
    PASSWORD_CHANGE_FAILED = "password_change_failed"
    PROFILE_UPDATED = "profile_updated"
    ACCOUNT_DELETED = "account_deleted"
    
    # Record mutations
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_DELETED = "transaction_deleted"
    BUDGET_SET = "budget_set"
    DEBT_ADDED = "debt_added"
    DEBT_PAYMENT_RECORDED = "debt_payment_recorded"
    GOAL_ADDED = "goal_added"
    GOAL_UPDATED = "goal_updated"
    GOAL_DELETED = "goal_deleted"
    
    # Learning
    LESSON_COMPLETED = "lesson_completed"
    QUIZ_FAILED = "quiz_failed"
    
    # Problems
    VALIDATION_FAILED = "validation_failed"
    STORE_CORRUPTED = "store_corrupted"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.
    """
    
    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utcnow,
        description="When the event occurred (UTC)"
    )
    
    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO
    
    # Who and what
    user_id: Optional[UUID] = Field(
        default=None,
        description="Acting user, when known"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of record (e.g., 'transaction', 'debt')"
    )
    entity_id: Optional[UUID] = None
    
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)
    
    error_message: Optional[str] = None
    is_user_action: bool = Field(
        default=True,
        description="Was this triggered by a user action?"
    )
    
    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "user_id": str(self.user_id) if self.user_id else None,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.
    
    Usage:
        event = AuditEventBuilder.user_registered(user_id)
        event = AuditEventBuilder.record_changed(
            AuditEventType.DEBT_ADDED, user_id, "debt", debt_id)
    """
    
    @staticmethod
    def user_registered(user_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_REGISTERED,
            user_id=user_id,
            entity_type="user",
            entity_id=user_id,
            description="New account registered",
        )
    
    @staticmethod
    def login_succeeded(user_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_SUCCEEDED,
            user_id=user_id,
            description="User logged in",
        )
    
    @staticmethod
    def login_failed() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_FAILED,
            severity=AuditSeverity.WARNING,
            description="Login rejected: invalid credentials",
        )
    
    @staticmethod
    def account_deleted(user_id: UUID, removed: dict[str, int]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_DELETED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type="user",
            entity_id=user_id,
            description="Account and all owned records deleted",
            details={"removed_records": removed},
        )
    
    @staticmethod
    def record_changed(
        event_type: AuditEventType,
        user_id: UUID,
        entity_type: str,
        entity_id: Optional[UUID] = None,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            description=event_type.value.replace("_", " ").capitalize(),
            details=details or {},
        )
    
    @staticmethod
    def lesson_completed(
        user_id: UUID,
        lesson_id: str,
        score_percent: int,
        points_awarded: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LESSON_COMPLETED,
            user_id=user_id,
            entity_type="lesson",
            description=f"Lesson {lesson_id} passed with {score_percent}%",
            details={
                "lesson_id": lesson_id,
                "score_percent": score_percent,
                "points_awarded": points_awarded,
            },
        )
    
    @staticmethod
    def quiz_failed(user_id: UUID, lesson_id: str, score_percent: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.QUIZ_FAILED,
            user_id=user_id,
            entity_type="lesson",
            description=f"Lesson {lesson_id} quiz scored {score_percent}%",
            details={"lesson_id": lesson_id, "score_percent": score_percent},
        )
    
    @staticmethod
    def validation_failed(
        field: str,
        message: str,
        user_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            description=f"Input rejected: {field}",
            details={"field": field},
            error_message=message,
        )
    
    @staticmethod
    def store_corrupted(collection: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_CORRUPTED,
            severity=AuditSeverity.CRITICAL,
            description=f"Stored collection could not be read: {collection}",
            details={"collection": collection},
            error_message=error_message,
            is_user_action=False,
        )
    
    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            details=details or {},
            error_message=error_message,
            is_user_action=False,
        )
