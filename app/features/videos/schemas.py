from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, HttpUrl


class SourceType(str, Enum):
    TIKTOK = "TikTok"
    INSTAGRAM = "Instagram"
    YOUTUBE = "YouTube"
    ORIGINAL = "Original"


class VideoFields(BaseModel):
    """Métadonnées saisies par le marchand (communes à l'upload et à la création par URL)."""
    title: str = Field(..., min_length=1, max_length=255, examples=["Unboxing été"])
    description: Optional[str] = None
    duration: Optional[int] = Field(None, ge=0, description="Durée en secondes")
    source_author: Optional[str] = Field(None, examples=["@creator"])
    source_type: Optional[SourceType] = SourceType.TIKTOK
    product_id: Optional[str] = Field(None, examples=["gid://shopify/Product/123"])


class VideoCreateIn(VideoFields):
    video_url: HttpUrl
    thumbnail_url: Optional[HttpUrl] = None
    autoplay: bool = True


class VideoOut(BaseModel):
    id: int
    shop: str
    title: str
    description: Optional[str]
    video_url: str
    thumbnail_url: Optional[str]
    duration: Optional[int]
    source_author: Optional[str]
    source_type: Optional[str]
    product_id: Optional[str]
    sort_order: int
    is_active: bool
    autoplay: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class VideoListOut(BaseModel):
    items: List[VideoOut]
    total: int


class VideoStatsOut(BaseModel):
    total: int
    active: int


class StorefrontVideoOut(BaseModel):
    id: int
    title: str
    description: Optional[str]
    video_url: str
    thumbnail_url: Optional[str]
    duration: Optional[int]
    source_author: Optional[str]
    source_type: Optional[str]
    product_id: Optional[str]
    autoplay: bool

    model_config = {"from_attributes": True}


class StorefrontFeedOut(BaseModel):
    videos: List[StorefrontVideoOut]
