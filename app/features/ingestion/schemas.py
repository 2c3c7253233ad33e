from typing import Optional

from pydantic import BaseModel


class UploadFileOut(BaseModel):
    filename: str
    mime_type: str
    size: int


class UploadErrorOut(BaseModel):
    kind: str
    message: str


class UploadSessionOut(BaseModel):
    shop: str
    stage: str
    status: Optional[str] = None
    active: bool
    progress_percent: int
    poll_attempt: int
    asset_id: Optional[str] = None
    file: Optional[UploadFileOut] = None
    video_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    record_id: Optional[int] = None
    error: Optional[UploadErrorOut] = None
    seq: int


class CancelOut(BaseModel):
    cancelled: bool
