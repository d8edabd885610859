"""Audit log Pydantic response schema definitions."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class AuditLogResponse(BaseModel):
    """One audit row; ``metadata`` is read from the model's ``extra_metadata``."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: UUID
    user_id: UUID | None
    username: str | None
    action: str
    entity_type: str | None
    entity_id: str | None
    description: str | None
    old_values: dict[str, Any] | None
    new_values: dict[str, Any] | None
    metadata: dict[str, Any] | None = Field(default=None, validation_alias="extra_metadata")
    ip_address: str | None
    user_agent: str | None
    request_method: str | None
    request_url: str | None
    status_code: int | None
    execution_time_ms: int | None
    severity: str
    status: str
    error_message: str | None
    timestamp: datetime
    correlation_id: str | None


class AuditStatistics(BaseModel):
    since: datetime
    total: int
    by_action: dict[str, int]
    by_severity: dict[str, int]


class CleanupResponse(BaseModel):
    deleted_count: int
    retention_days: int


class SecurityMetrics(BaseModel):
    """Security counters over the last 24 hours plus the current block list."""

    failed_logins_last_24_hours: int
    critical_events_last_24_hours: int
    access_denied_last_24_hours: int
    suspicious_activities_last_24_hours: int
    blocked_ips_count: int
    blocked_ips: list[str]
    top_failed_ips: dict[str, int]
