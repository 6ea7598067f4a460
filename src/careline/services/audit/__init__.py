"""Audit log exports."""

from .service import AuditLog

__all__ = ["AuditLog"]
