"""Notification log and audit log schemas."""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class MessageTemplateModel(BaseModel):
    subject: str
    body: str


class TemplateSetModel(BaseModel):
    patient: Optional[MessageTemplateModel] = None
    facility: Optional[MessageTemplateModel] = None
    admin: Optional[MessageTemplateModel] = None


class NotificationEventModel(BaseModel):
    id: str
    type: str
    stop_id: Optional[str] = None
    driver_id: Optional[str] = None
    status: Optional[str] = None
    templates: TemplateSetModel
    extra: Dict[str, Any] = Field(default_factory=dict)
    created_at: str


class SendNotificationRequest(BaseModel):
    destination: str = Field(..., min_length=1, description="Phone number or email address.")


class AuditRequest(BaseModel):
    action: str = Field(..., min_length=1)
    details: Dict[str, Any] = Field(default_factory=dict)
    actor: Optional[str] = None


class AuditEntryModel(BaseModel):
    id: str
    action: str
    actor: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)
    created_at: str = Field(..., alias="createdAt")
