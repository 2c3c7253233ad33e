from typing import Optional
from sqlmodel import Field

from .base import BaseModelDB


class UgcVideo(BaseModelDB, table=True):
    """Vidéos UGC rattachées à une boutique, affichées sur la storefront."""

    __tablename__ = "ugc_video"

    shop: str = Field(index=True, description="Domaine de la boutique propriétaire (immuable)")
    title: str = Field(description="Titre affiché")
    description: Optional[str] = Field(default=None)
    video_url: str = Field(description="URL CDN lisible de la vidéo")
    thumbnail_url: Optional[str] = Field(default=None)
    duration: Optional[int] = Field(default=None, description="Durée en secondes")
    source_author: Optional[str] = Field(default=None, description="Créateur d'origine (@handle)")
    source_type: Optional[str] = Field(default=None, description="TikTok, Instagram, YouTube, Original")
    product_id: Optional[str] = Field(default=None, description="Produit associé (GID)")
    sort_order: int = Field(default=1, index=True, description="Position dans le flux (jamais renumérotée)")
    is_active: bool = Field(default=True, description="Visible sur la storefront")
    autoplay: bool = Field(default=True)
