"""Bulk operation service — apply one operation to many entities at once.

Entities that do not exist are reported as failed results. Any other
error propagates so the router can roll the whole batch back.
"""

import uuid
from typing import Any

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit_log import AuditAction, AuditSeverity, AuditStatus
from app.models.news import NewsArticle
from app.models.user import User
from app.repositories.base import BaseRepository
from app.repositories.district_repository import district_repository
from app.repositories.download_repository import download_repository
from app.repositories.media_repository import media_item_repository
from app.repositories.member_repository import member_repository
from app.repositories.news_repository import news_article_repository
from app.repositories.player_repository import player_repository
from app.repositories.tournament_repository import tournament_repository
from app.schemas.admin import (
    BulkEntityType,
    BulkOperationRequest,
    BulkOperationResponse,
    BulkOperationResult,
    BulkOperationType,
)
from app.services.audit_service import audit_service
from app.utils.cache import cache
from app.utils.exceptions import BadRequestError
from app.utils.request import RequestInfo

_REPOSITORIES: dict[BulkEntityType, BaseRepository] = {
    BulkEntityType.MEMBER: member_repository,
    BulkEntityType.PLAYER: player_repository,
    BulkEntityType.TOURNAMENT: tournament_repository,
    BulkEntityType.NEWS_ARTICLE: news_article_repository,
    BulkEntityType.MEDIA_ITEM: media_item_repository,
    BulkEntityType.DISTRICT: district_repository,
    BulkEntityType.DOWNLOAD: download_repository,
}

# Cache namespaces holding copies of each entity type or of rows that
# reference it (registrations cascade, district_id and tournament_id SET NULL)
_CACHES: dict[BulkEntityType, tuple[str, ...]] = {
    BulkEntityType.MEMBER: ("members",),
    BulkEntityType.PLAYER: ("players", "rankings", "districts", "tournaments"),
    BulkEntityType.TOURNAMENT: ("tournaments", "players", "districts"),
    BulkEntityType.NEWS_ARTICLE: ("news",),
    BulkEntityType.DISTRICT: ("districts", "players", "tournaments"),
}

_AUDIT_ACTIONS: dict[BulkOperationType, AuditAction] = {
    BulkOperationType.DELETE: AuditAction.BULK_DELETE,
    BulkOperationType.UPDATE: AuditAction.BULK_UPDATE,
    BulkOperationType.PUBLISH: AuditAction.UPDATE,
    BulkOperationType.UNPUBLISH: AuditAction.UPDATE,
}

UPDATABLE_ARTICLE_FIELDS: tuple[str, ...] = ("title", "content")


class BulkOperationService:
    """Service executing bulk operations."""

    async def execute(
        self,
        db: AsyncSession,
        request: BulkOperationRequest,
        user: User,
        info: RequestInfo | None = None,
    ) -> BulkOperationResponse:
        """Run the operation for every id and collect per-entity results.

        Raises:
            BadRequestError: CREATE requested
        """
        if request.operation is BulkOperationType.CREATE:
            raise BadRequestError("Bulk create is not supported")

        operation_id = uuid.uuid4()
        repository = _REPOSITORIES[request.entity_type]
        logger.info(
            "Bulk {} on {} ({} ids) started by {} [{}]",
            request.operation.value,
            request.entity_type.value,
            len(request.entity_ids),
            user.username,
            operation_id,
        )

        results: list[BulkOperationResult] = []
        for entity_id in request.entity_ids:
            entity = await repository.get_by_id(db, entity_id)
            if entity is None:
                results.append(BulkOperationResult(entity_id=entity_id, success=False, message="Entity not found"))
                continue
            results.append(await self._apply(db, request, repository, entity, entity_id))

        success_count = sum(1 for r in results if r.success)
        failure_count = len(results) - success_count

        for namespace in _CACHES.get(request.entity_type, ()):
            await cache.clear(namespace)

        await audit_service.audit(
            db,
            _AUDIT_ACTIONS[request.operation],
            user=user,
            entity_type=request.entity_type.value,
            description=(
                f"Bulk {request.operation.value} on {request.entity_type.value}: "
                f"{success_count} succeeded, {failure_count} failed"
            ),
            metadata={
                "operation_id": str(operation_id),
                "entity_ids": [str(i) for i in request.entity_ids],
            },
            status=AuditStatus.SUCCESS if failure_count == 0 else AuditStatus.PARTIAL_SUCCESS,
            severity=AuditSeverity.INFO if failure_count == 0 else AuditSeverity.WARNING,
            info=info,
        )

        return BulkOperationResponse(
            operation_id=operation_id,
            operation=request.operation,
            entity_type=request.entity_type,
            total_count=len(results),
            success_count=success_count,
            failure_count=failure_count,
            results=results,
        )

    async def _apply(
        self,
        db: AsyncSession,
        request: BulkOperationRequest,
        repository: BaseRepository,
        entity: Any,
        entity_id: uuid.UUID,
    ) -> BulkOperationResult:
        operation = request.operation

        if operation is BulkOperationType.DELETE:
            await repository.delete(db, entity)
            return BulkOperationResult(entity_id=entity_id, success=True, message="Entity deleted successfully")

        if not isinstance(entity, NewsArticle):
            message = (
                "Update not supported for entity type"
                if operation is BulkOperationType.UPDATE
                else "Publish operations are only supported for news articles"
            )
            return BulkOperationResult(entity_id=entity_id, success=False, message=message)

        if operation is BulkOperationType.UPDATE:
            fields = {k: v for k, v in (request.update_fields or {}).items() if k in UPDATABLE_ARTICLE_FIELDS}
            if not fields:
                return BulkOperationResult(
                    entity_id=entity_id,
                    success=False,
                    message="No updatable fields provided",
                    error_details=f"Supported fields: {', '.join(UPDATABLE_ARTICLE_FIELDS)}",
                )
            await repository.update(db, entity, fields)
            return BulkOperationResult(entity_id=entity_id, success=True, message="Entity updated successfully")

        if operation is BulkOperationType.PUBLISH:
            entity.publish()
            entity.scheduled_publication_date = None
            message = "Entity published successfully"
        else:
            entity.unpublish()
            message = "Entity unpublished successfully"
        await db.flush()
        return BulkOperationResult(entity_id=entity_id, success=True, message=message)


# Singleton instance
bulk_operation_service: BulkOperationService = BulkOperationService()
