"""Admin Router — bulk operations, scheduled publication, health and cache.

Every endpoint requires the ADMIN or SUPER_ADMIN role.
"""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query
from loguru import logger

from app.api.deps import AdminUser, DbSession, RequestContext
from app.middleware.audit import AuditRoute, audit_as
from app.models.audit_log import AuditAction
from app.schemas.admin import (
    BulkEntityType,
    BulkOperationRequest,
    BulkOperationResponse,
    CacheClearResponse,
    CacheStatsResponse,
    ProcessResult,
    QuickHealthResponse,
    SchedulePublicationRequest,
    ScheduledPublication,
    SystemHealthResponse,
)
from app.schemas.common import CountResponse
from app.services.audit_service import audit_service
from app.services.bulk_operation_service import bulk_operation_service
from app.services.health_service import health_service
from app.services.scheduling_service import scheduling_service
from app.utils.cache import cache

router: APIRouter = APIRouter(route_class=AuditRoute)


# === Bulk operations ===

@router.post("/bulk-operations", response_model=BulkOperationResponse)
async def bulk_operation(
    data: BulkOperationRequest,
    db: DbSession,
    current_user: AdminUser,
    info: RequestContext,
) -> BulkOperationResponse:
    """Apply one operation to many entities.

    Per-entity problems are reported in ``results``; an unexpected error
    rolls back the whole batch.
    """
    try:
        result: BulkOperationResponse = await bulk_operation_service.execute(db, data, current_user, info)
    except HTTPException:
        raise
    except Exception:
        await db.rollback()
        logger.exception("Bulk {} on {} rolled back", data.operation.value, data.entity_type.value)
        raise
    await db.commit()
    return result


# === Scheduled publication ===

@router.post("/schedule-publication", response_model=ScheduledPublication, status_code=201)
async def schedule_publication(
    data: SchedulePublicationRequest, db: DbSession, current_user: AdminUser
) -> ScheduledPublication:
    result: ScheduledPublication = await scheduling_service.schedule(db, data)
    await db.commit()
    return result


@router.delete("/schedule-publication/{entity_type}/{entity_id}", status_code=204)
async def cancel_scheduled_publication(
    entity_type: BulkEntityType, entity_id: UUID, db: DbSession, current_user: AdminUser
) -> None:
    await scheduling_service.cancel(db, entity_type, entity_id)
    await db.commit()


@router.get("/scheduled-publications", response_model=list[ScheduledPublication])
async def list_scheduled_publications(db: DbSession, current_user: AdminUser) -> list[ScheduledPublication]:
    return await scheduling_service.list_scheduled(db)


@router.get("/scheduled-publications/count", response_model=CountResponse)
async def count_scheduled_publications(db: DbSession, current_user: AdminUser) -> CountResponse:
    return CountResponse(count=await scheduling_service.count_scheduled(db))


@router.get("/scheduled-publications/range", response_model=list[ScheduledPublication])
async def scheduled_publications_in_range(
    db: DbSession, current_user: AdminUser, start: datetime, end: datetime
) -> list[ScheduledPublication]:
    return await scheduling_service.scheduled_between(db, start, end)


@router.post("/scheduled-publications/process", response_model=ProcessResult)
async def process_scheduled_publications(db: DbSession, current_user: AdminUser) -> ProcessResult:
    """Publish every due article now instead of waiting for the next pass."""
    published = await scheduling_service.process_due(db)
    await db.commit()
    return ProcessResult(published_count=published)


# === Health ===

@router.get("/health", response_model=SystemHealthResponse)
async def system_health(db: DbSession, current_user: AdminUser) -> SystemHealthResponse:
    return await health_service.system_health(db)


@router.get("/health/quick", response_model=QuickHealthResponse)
async def quick_health(db: DbSession, current_user: AdminUser) -> QuickHealthResponse:
    return await health_service.quick_health(db)


# === Cache ===

@router.post("/cache/clear", response_model=CacheClearResponse)
@audit_as(AuditAction.CACHE_CLEAR)
async def clear_cache(
    db: DbSession,
    current_user: AdminUser,
    info: RequestContext,
    cache_name: Annotated[str | None, Query(max_length=50)] = None,
) -> CacheClearResponse:
    cleared = await cache.clear(cache_name)
    target = cache_name or "all"
    await audit_service.audit(
        db,
        AuditAction.CACHE_CLEAR,
        user=current_user,
        entity_type="Cache",
        entity_id=target,
        description=f"Cleared cache: {target} ({cleared} keys)",
        info=info,
    )
    await db.commit()
    logger.info("Cache {} cleared by {} ({} keys)", target, current_user.username, cleared)
    return CacheClearResponse(
        message=f"Cache '{cache_name}' cleared" if cache_name else "All caches cleared",
        cache_name=cache_name,
        cleared_keys=cleared,
    )


@router.get("/cache/stats", response_model=CacheStatsResponse)
async def cache_stats(current_user: AdminUser) -> CacheStatsResponse:
    return CacheStatsResponse(**await cache.stats())
