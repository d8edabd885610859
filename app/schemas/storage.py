"""File upload Pydantic schema definitions."""

from typing import Annotated

from pydantic import BaseModel, StringConstraints

Folder = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50, pattern=r"^[a-z0-9_-]+$")]


class PresignedUrlRequest(BaseModel):
    filename: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]
    content_type: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
    folder: Folder = "media"


class PresignedUrlResponse(BaseModel):
    upload_url: str
    file_url: str
    key: str


class UploadResponse(BaseModel):
    key: str
    file_url: str
    size: int
