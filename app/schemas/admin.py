"""Admin tooling schemas — bulk operations, scheduled publication, health, cache."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class BulkOperationType(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    PUBLISH = "PUBLISH"
    UNPUBLISH = "UNPUBLISH"


class BulkEntityType(str, Enum):
    MEMBER = "MEMBER"
    PLAYER = "PLAYER"
    TOURNAMENT = "TOURNAMENT"
    NEWS_ARTICLE = "NEWS_ARTICLE"
    MEDIA_ITEM = "MEDIA_ITEM"
    DISTRICT = "DISTRICT"
    DOWNLOAD = "DOWNLOAD"


# === Bulk operations ===

class BulkOperationRequest(BaseModel):
    """Bulk operation request.

    Attributes:
        operation: What to do with every entity
        entity_type: Which table the ids belong to
        entity_ids: Target ids, at least one
        update_fields: Field values for UPDATE (news articles: title, content)
    """

    operation: BulkOperationType
    entity_type: BulkEntityType
    entity_ids: list[UUID] = Field(min_length=1)
    update_fields: dict[str, Any] | None = None


class BulkOperationResult(BaseModel):
    entity_id: UUID
    success: bool
    message: str
    error_details: str | None = None


class BulkOperationResponse(BaseModel):
    operation_id: UUID
    operation: BulkOperationType
    entity_type: BulkEntityType
    total_count: int
    success_count: int
    failure_count: int
    results: list[BulkOperationResult]


# === Scheduled publication ===

class SchedulePublicationRequest(BaseModel):
    entity_type: BulkEntityType
    entity_id: UUID
    scheduled_date: datetime


class ScheduledPublication(BaseModel):
    entity_type: BulkEntityType = BulkEntityType.NEWS_ARTICLE
    entity_id: UUID
    title: str
    scheduled_date: datetime


class ProcessResult(BaseModel):
    published_count: int


# === Health ===

class ComponentHealth(BaseModel):
    status: str
    details: dict[str, Any] = {}


class SystemHealthResponse(BaseModel):
    status: str
    components: dict[str, ComponentHealth]
    metrics: dict[str, Any]
    timestamp: datetime


class QuickHealthResponse(BaseModel):
    status: str
    timestamp: datetime


# === Cache ===

class CacheClearResponse(BaseModel):
    message: str
    cache_name: str | None = None
    cleared_keys: int


class CacheStatsResponse(BaseModel):
    backend: str
    hits: int
    misses: int
    hit_rate: float
    keys: int
