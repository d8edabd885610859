"""Audit log ORM model — one row per audited API call or security event.

The ``metadata`` column is exposed as ``extra_metadata`` because
``metadata`` is reserved on declarative classes.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import JSON, Index, Integer, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, UtcDateTime

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JsonType = JSON().with_variant(JSONB(), "postgresql")

MAX_ERROR_LENGTH: int = 5000


class AuditAction(str, Enum):
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    LOGIN_FAILED = "LOGIN_FAILED"
    TOKEN_REFRESH = "TOKEN_REFRESH"
    PASSWORD_CHANGE = "PASSWORD_CHANGE"
    PASSWORD_RESET = "PASSWORD_RESET"
    CREATE = "CREATE"
    READ = "READ"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    BULK_CREATE = "BULK_CREATE"
    BULK_UPDATE = "BULK_UPDATE"
    BULK_DELETE = "BULK_DELETE"
    ACCESS_DENIED = "ACCESS_DENIED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    UNAUTHORIZED_ACCESS = "UNAUTHORIZED_ACCESS"
    SUSPICIOUS_ACTIVITY = "SUSPICIOUS_ACTIVITY"
    EXPORT = "EXPORT"
    IMPORT = "IMPORT"
    BACKUP = "BACKUP"
    RESTORE = "RESTORE"
    CONSENT_GIVEN = "CONSENT_GIVEN"
    CONSENT_REVOKED = "CONSENT_REVOKED"
    DATA_EXPORT_REQUEST = "DATA_EXPORT_REQUEST"
    DATA_DELETION_REQUEST = "DATA_DELETION_REQUEST"
    CONFIGURATION_CHANGE = "CONFIGURATION_CHANGE"
    SYSTEM_ERROR = "SYSTEM_ERROR"
    SYSTEM_WARNING = "SYSTEM_WARNING"
    CACHE_CLEAR = "CACHE_CLEAR"
    FILE_UPLOAD = "FILE_UPLOAD"
    FILE_DOWNLOAD = "FILE_DOWNLOAD"
    FILE_DELETE = "FILE_DELETE"


class AuditSeverity(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class AuditStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    PARTIAL_SUCCESS = "PARTIAL_SUCCESS"
    IN_PROGRESS = "IN_PROGRESS"


SECURITY_ACTIONS: tuple[str, ...] = (
    AuditAction.LOGIN_FAILED.value,
    AuditAction.ACCESS_DENIED.value,
    AuditAction.PERMISSION_DENIED.value,
    AuditAction.UNAUTHORIZED_ACCESS.value,
    AuditAction.SUSPICIOUS_ACTIVITY.value,
)


class AuditLog(Base):
    """Audit trail entry.

    Attributes:
        id: Unique identifier
        user_id: Acting user, None for anonymous calls
        username: Acting username (kept even if the user is deleted)
        action: AuditAction value
        entity_type: Affected entity, e.g. "Member"
        entity_id: Affected entity id
        description: Human readable summary
        old_values: State before the change
        new_values: State after the change
        extra_metadata: Free-form context (column "metadata")
        ip_address: Client IP (max 45, IPv6)
        user_agent: Client user agent (max 500)
        request_method: HTTP method
        request_url: Request URL
        status_code: HTTP status returned
        execution_time_ms: Handler duration
        severity: AuditSeverity value
        status: AuditStatus value
        error_message: Failure message (max 5000)
        stack_trace: Failure traceback (max 5000)
        timestamp: Event time
        session_id: Client session identifier
        correlation_id: Request correlation identifier
    """

    __tablename__ = "audit_logs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # No FK — audit rows outlive the users they mention
    user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    username: Mapped[str | None] = mapped_column(String(50), nullable=True)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    entity_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    old_values: Mapped[dict | None] = mapped_column(JsonType, nullable=True)
    new_values: Mapped[dict | None] = mapped_column(JsonType, nullable=True)
    extra_metadata: Mapped[dict | None] = mapped_column("metadata", JsonType, nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(500), nullable=True)
    request_method: Mapped[str | None] = mapped_column(String(10), nullable=True)
    request_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    status_code: Mapped[int | None] = mapped_column(Integer, nullable=True)
    execution_time_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    severity: Mapped[str] = mapped_column(String(20), default=AuditSeverity.INFO.value)
    status: Mapped[str] = mapped_column(String(20), default=AuditStatus.SUCCESS.value)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    stack_trace: Mapped[str | None] = mapped_column(Text, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(UtcDateTime, default=lambda: datetime.now(timezone.utc))
    session_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    correlation_id: Mapped[str | None] = mapped_column(String(100), nullable=True)

    __table_args__ = (
        Index("ix_audit_logs_user_id", "user_id"),
        Index("ix_audit_logs_timestamp", "timestamp"),
        Index("ix_audit_logs_entity", "entity_type", "entity_id"),
    )
