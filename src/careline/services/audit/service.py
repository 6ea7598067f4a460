"""Append-only access audit trail."""

from __future__ import annotations

import uuid
from typing import Any, Optional

from ...errors import InvalidInputError
from ...models.domain import AuditEntry, utc_now_iso
from ...persistence.repository import DeliveryRepository


class AuditLog:
    def __init__(self, repository: DeliveryRepository) -> None:
        self.repository = repository

    def record(
        self,
        action: str,
        details: dict[str, Any] | None = None,
        actor: Optional[str] = None,
    ) -> AuditEntry:
        if not action or not action.strip():
            raise InvalidInputError("action is required")
        entry = AuditEntry(
            id=uuid.uuid4().hex,
            action=action.strip().upper(),
            actor=actor,
            details=dict(details or {}),
            created_at=utc_now_iso(),
        )
        self.repository.append_audit_entry(entry)
        return entry

    def list_entries(self, action: Optional[str] = None, limit: Optional[int] = None) -> list[dict]:
        """Newest first."""
        wanted = action.strip().upper() if action else None
        entries: list[dict] = []
        for record in reversed(self.repository.load_audit_entries()):
            if wanted and record.get("action") != wanted:
                continue
            entries.append(record)
            if limit and len(entries) >= limit:
                break
        return entries
