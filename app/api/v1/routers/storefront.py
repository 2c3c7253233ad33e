from fastapi import APIRouter, Depends, Response

from app.api.v1.dependencies import get_storefront_shop, get_video_service
from app.core.config import settings
from app.features.videos.schemas import StorefrontFeedOut
from app.features.videos.services import VideoService

router = APIRouter(
    prefix="/storefront",
    tags=["storefront"],
)


@router.get(
    "/videos",
    summary="Flux public des vidéos actives d'une boutique (lecture seule)",
    response_model=StorefrontFeedOut,
)
def storefront_videos(
    response: Response,
    shop: str = Depends(get_storefront_shop),
    svc: VideoService = Depends(get_video_service),
):
    response.headers["Cache-Control"] = f"public, max-age={settings.STOREFRONT_CACHE_SECONDS}"
    return svc.storefront_feed(shop)
