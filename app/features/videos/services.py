from typing import Any, Dict, Optional

from fastapi import HTTPException, status

from app.db.models.videos import UgcVideo
from app.db.repositories.videos import VideoRepository
from app.features.videos.schemas import (
    VideoCreateIn,
    VideoListOut,
    VideoOut,
    VideoStatsOut,
    StorefrontFeedOut,
    StorefrontVideoOut,
)

# Colonnes que l'appelant peut renseigner à la création
CREATABLE_FIELDS = (
    "title",
    "description",
    "video_url",
    "thumbnail_url",
    "duration",
    "source_author",
    "source_type",
    "product_id",
    "is_active",
    "autoplay",
)


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class VideoService:
    """
    Service Vidéos UGC : orchestre le repository, toujours dans le périmètre d'une boutique.
    Aucune logique SQL directe ici, erreurs en HTTPException propres.
    """

    def __init__(self, repo: VideoRepository):
        self.repo = repo

    # ---------- Queries ----------
    def list(self, shop: str) -> VideoListOut:
        items = [VideoOut.model_validate(v) for v in self.repo.list_for_shop(shop)]
        return VideoListOut(items=items, total=len(items))

    def stats(self, shop: str) -> VideoStatsOut:
        return VideoStatsOut(
            total=self.repo.count_for_shop(shop),
            active=self.repo.count_for_shop(shop, active_only=True),
        )

    def storefront_feed(self, shop: str) -> StorefrontFeedOut:
        videos = self.repo.list_for_shop(shop, active_only=True)
        return StorefrontFeedOut(videos=[StorefrontVideoOut.model_validate(v) for v in videos])

    def get(self, shop: str, video_id: int) -> UgcVideo:
        video = self.repo.get_for_shop(video_id, shop)
        if not video:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Video not found")
        return video

    # ---------- Commands ----------
    def next_sort_order(self, shop: str) -> int:
        current: Optional[int] = self.repo.max_sort_order(shop)
        return (current or 0) + 1

    def create(self, shop: str, fields: Dict[str, Any]) -> VideoOut:
        """
        Crée un enregistrement en fin de liste : sort_order = max(boutique) + 1, ou 1.
        Les chaînes vides deviennent NULL.
        """
        data = {k: _blank_to_none(fields[k]) for k in CREATABLE_FIELDS if k in fields}
        if not data.get("title") or not data.get("video_url"):
            raise ValueError("title and video_url are required")
        video = self.repo.create(
            shop=shop,
            sort_order=self.next_sort_order(shop),
            **data,
        )
        return VideoOut.model_validate(video)

    def create_from_url(self, shop: str, payload: VideoCreateIn) -> VideoOut:
        fields = payload.model_dump(mode="json")
        return self.create(shop, fields)

    def toggle(self, shop: str, video_id: int) -> VideoOut:
        video = self.get(shop, video_id)
        video = self.repo.update(video, is_active=not video.is_active)
        return VideoOut.model_validate(video)

    def delete(self, shop: str, video_id: int) -> None:
        # Les sort_order des autres vidéos ne sont pas renumérotés
        video = self.get(shop, video_id)
        self.repo.delete(video)
