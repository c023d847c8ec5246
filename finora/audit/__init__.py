"""Audit logging package."""

from finora.audit.logger import AuditLogger, configure_logging

__all__ = ["AuditLogger", "configure_logging"]
