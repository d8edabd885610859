"""Storage Router — presigned upload URLs and the local upload endpoint.

In local mode the presigned URL points at PUT /upload/{key}, which stores
the raw request body under the uploads directory.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from app.api.deps import require_permission
from app.middleware.audit import AuditRoute, audit_as
from app.models.audit_log import AuditAction
from app.models.user import User
from app.schemas.storage import PresignedUrlRequest, PresignedUrlResponse, UploadResponse
from app.services.storage_service import storage_service
from app.utils.exceptions import BadRequestError
from app.utils.rbac import Permission

router: APIRouter = APIRouter(route_class=AuditRoute)

Uploader = Annotated[User, Depends(require_permission(Permission.FILE_UPLOAD))]


@router.post("/presigned-url", response_model=PresignedUrlResponse)
async def create_presigned_url(data: PresignedUrlRequest, current_user: Uploader) -> PresignedUrlResponse:
    """Generate a presigned upload URL (S3 or local)."""
    result = storage_service.generate_presigned_upload_url(
        filename=data.filename,
        content_type=data.content_type,
        folder=data.folder,
    )
    return PresignedUrlResponse(**result)


@router.put("/upload/{key:path}", response_model=UploadResponse)
@audit_as(AuditAction.FILE_UPLOAD)
async def upload_local(key: str, request: Request, current_user: Uploader) -> UploadResponse:
    """Local mode only — store the request body under ``key``."""
    if not storage_service.is_local:
        raise BadRequestError("Direct uploads are only available in local storage mode")
    body = await request.body()
    storage_service.save_local(key, body)
    return UploadResponse(key=key, file_url=storage_service.file_url_for(key), size=len(body))
