from fastapi import APIRouter, Depends, Path, status

from app.api.v1.dependencies import get_current_shop, get_video_service
from app.features.videos.schemas import VideoCreateIn, VideoListOut, VideoOut, VideoStatsOut
from app.features.videos.services import VideoService

router = APIRouter(
    prefix="/videos",
    tags=["videos"],
    responses={404: {"description": "Not Found"}},
)


@router.get(
    "",
    summary="Lister les vidéos de la boutique (par sort_order)",
    response_model=VideoListOut,
)
def list_videos(
    shop: str = Depends(get_current_shop),
    svc: VideoService = Depends(get_video_service),
):
    return svc.list(shop)


@router.get(
    "/stats",
    summary="Compteurs du tableau de bord (total / actives)",
    response_model=VideoStatsOut,
)
def video_stats(
    shop: str = Depends(get_current_shop),
    svc: VideoService = Depends(get_video_service),
):
    return svc.stats(shop)


@router.post(
    "",
    summary="Ajouter une vidéo à partir d'une URL existante",
    response_model=VideoOut,
    status_code=status.HTTP_201_CREATED,
)
def create_video(
    payload: VideoCreateIn,
    shop: str = Depends(get_current_shop),
    svc: VideoService = Depends(get_video_service),
):
    return svc.create_from_url(shop, payload)


@router.patch(
    "/{video_id}/toggle",
    summary="Activer / désactiver une vidéo sur la storefront",
    response_model=VideoOut,
)
def toggle_video(
    video_id: int = Path(..., ge=1),
    shop: str = Depends(get_current_shop),
    svc: VideoService = Depends(get_video_service),
):
    return svc.toggle(shop, video_id)


@router.delete(
    "/{video_id}",
    summary="Supprimer une vidéo (la plateforme média n'est pas touchée)",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        204: {"description": "Supprimée"},
        401: {"description": "Non authentifié"},
        404: {"description": "Introuvable"},
    },
)
def delete_video(
    video_id: int = Path(..., ge=1),
    shop: str = Depends(get_current_shop),
    svc: VideoService = Depends(get_video_service),
):
    svc.delete(shop, video_id)
    return None
