"""Storage service — S3 presigned uploads or a local uploads directory.

Local mode is selected automatically when the AWS key or bucket is empty.
Every upload lands under temp/ first and is moved to its permanent key by
finalize_upload() once a media item or download references it.
"""

import shutil
import uuid
from datetime import datetime, timezone
from pathlib import Path

from loguru import logger

from app.config import settings
from app.utils.exceptions import BadRequestError

# Local uploads directory — LOCAL_UPLOADS_DIR or <project>/uploads
_PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent.parent
UPLOADS_DIR: Path = Path(settings.LOCAL_UPLOADS_DIR) if settings.LOCAL_UPLOADS_DIR else _PROJECT_ROOT / "uploads"

TEMP_PREFIX: str = "temp/"


class StorageService:
    """File upload service with automatic S3 / local mode selection."""

    def __init__(self, uploads_dir: Path | None = None) -> None:
        self._client = None
        self.uploads_dir: Path = uploads_dir or UPLOADS_DIR

    @property
    def is_local(self) -> bool:
        return not settings.AWS_ACCESS_KEY_ID or not settings.AWS_S3_BUCKET

    @property
    def client(self):
        if self.is_local:
            return None
        if self._client is None:
            import boto3
            from botocore.config import Config as BotoConfig

            self._client = boto3.client(
                "s3",
                region_name=settings.AWS_S3_REGION,
                aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
                aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
                config=BotoConfig(signature_version="s3v4"),
            )
        return self._client

    # --- URLs ---------------------------------------------------------------

    @property
    def _local_files_base(self) -> str:
        return f"{settings.PUBLIC_BASE_URL.rstrip('/')}/uploads/"

    @property
    def _s3_files_base(self) -> str:
        return f"https://{settings.AWS_S3_BUCKET}.s3.{settings.AWS_S3_REGION}.amazonaws.com/"

    def file_url_for(self, key: str) -> str:
        base = self._local_files_base if self.is_local else self._s3_files_base
        return f"{base}{key}"

    def _generate_key(self, filename: str, folder: str) -> str:
        ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else "bin"
        date_prefix = datetime.now(timezone.utc).strftime("%Y/%m/%d")
        return f"{TEMP_PREFIX}{folder}/{date_prefix}/{uuid.uuid4().hex}.{ext}"

    def generate_presigned_upload_url(
        self,
        filename: str,
        content_type: str,
        folder: str = "media",
        expires: int = 3600,
    ) -> dict[str, str]:
        """Return an upload URL, the temp file URL and the storage key.

        Local mode points the upload URL at PUT /api/v1/storage/upload/{key}.
        """
        key = self._generate_key(filename, folder)

        if self.is_local:
            upload_url = f"{settings.PUBLIC_BASE_URL.rstrip('/')}/api/v1/storage/upload/{key}"
            return {"upload_url": upload_url, "file_url": self.file_url_for(key), "key": key}

        upload_url = self.client.generate_presigned_url(
            "put_object",
            Params={
                "Bucket": settings.AWS_S3_BUCKET,
                "Key": key,
                "ContentType": content_type,
            },
            ExpiresIn=expires,
        )
        return {"upload_url": upload_url, "file_url": self.file_url_for(key), "key": key}

    # --- Local files --------------------------------------------------------

    def _local_path(self, key: str) -> Path:
        """Resolve a key inside the uploads directory, rejecting traversal."""
        root = self.uploads_dir.resolve()
        path = (root / key).resolve()
        if not key or path == root or root not in path.parents:
            raise BadRequestError("Invalid storage key")
        return path

    def save_local(self, key: str, data: bytes) -> Path:
        """Write an uploaded body under the uploads directory."""
        path = self._local_path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.debug("Stored upload {} ({} bytes)", key, len(data))
        return path

    def _extract_key(self, file_url: str) -> str | None:
        base = self._local_files_base if self.is_local else self._s3_files_base
        if file_url.startswith(base):
            return file_url[len(base):]
        return None

    def finalize_upload(self, file_url: str) -> str:
        """Move a temp upload to its permanent key and return the final URL.

        URLs that do not point at a temp/ upload are returned unchanged,
        as are local temp files that were never actually uploaded.
        """
        key = self._extract_key(file_url)
        if not key or not key.startswith(TEMP_PREFIX):
            return file_url

        final_key = key[len(TEMP_PREFIX):]

        if self.is_local:
            src = self._local_path(key)
            if not src.exists():
                logger.warning("Temp upload {} not found, keeping original URL", key)
                return file_url
            dst = self._local_path(final_key)
            dst.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(src), str(dst))
            return self.file_url_for(final_key)

        self.client.copy_object(
            Bucket=settings.AWS_S3_BUCKET,
            Key=final_key,
            CopySource={"Bucket": settings.AWS_S3_BUCKET, "Key": key},
        )
        self.client.delete_object(Bucket=settings.AWS_S3_BUCKET, Key=key)
        return self.file_url_for(final_key)


# Singleton instance
storage_service: StorageService = StorageService()
