from typing import Optional, Sequence
from sqlmodel import select, func

from app.db.repositories.base import BaseRepository
from app.db.models.videos import UgcVideo


class VideoRepository(BaseRepository[UgcVideo]):
    """CRUD Vidéos UGC, toujours filtré par boutique."""
    model = UgcVideo

    def list_for_shop(self, shop: str, *, active_only: bool = False) -> Sequence[UgcVideo]:
        stmt = select(UgcVideo).where(UgcVideo.shop == shop)
        if active_only:
            stmt = stmt.where(UgcVideo.is_active == True)  # noqa: E712
        stmt = stmt.order_by(UgcVideo.sort_order.asc(), UgcVideo.id.asc())
        return self.session.exec(stmt).all()

    def get_for_shop(self, video_id: int, shop: str) -> Optional[UgcVideo]:
        video = self.get(video_id)
        if video is None or video.shop != shop:
            return None
        return video

    def max_sort_order(self, shop: str) -> Optional[int]:
        stmt = select(func.max(UgcVideo.sort_order)).where(UgcVideo.shop == shop)
        return self.session.exec(stmt).one()

    def count_for_shop(self, shop: str, *, active_only: bool = False) -> int:
        stmt = select(func.count(UgcVideo.id)).where(UgcVideo.shop == shop)
        if active_only:
            stmt = stmt.where(UgcVideo.is_active == True)  # noqa: E712
        return int(self.session.exec(stmt).one())
