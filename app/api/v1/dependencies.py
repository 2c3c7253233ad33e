"""
➡️ But : Centraliser les dépendances réutilisables des routes.

Exemples :

get_video_service() : crée un VideoService à partir d’une session DB.

get_current_shop() : résout la boutique depuis le session token Shopify (Bearer).

get_upload_session() : la session d'upload de la boutique courante.

🔹 Avantages :

Routes plus propres (pas de code dupliqué).

Facile à surcharger dans les tests (app.dependency_overrides).
"""

from typing import Optional

from fastapi import Depends, HTTPException, Query, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session

from app.core.config import settings, session_token_settings
from app.db.session import get_session
from app.db.repositories.videos import VideoRepository
from app.features.videos.services import VideoService
from app.features.ingestion.factory import UploadSessionRegistry, upload_registry
from app.features.ingestion.session import UploadSession
from app.security.tokens import InvalidSessionToken, decode_session_token, shop_from_claims


# -----------------------------
# Repositories / services
# -----------------------------
def get_video_repository(session: Session = Depends(get_session)) -> VideoRepository:
    return VideoRepository(session)

def get_video_service(
    video_repo: VideoRepository = Depends(get_video_repository),
) -> VideoService:
    return VideoService(video_repo)


# -----------------------------
# Authentication data
# -----------------------------
bearer_scheme = HTTPBearer(auto_error=True)

def get_access_token_from_bearer(
    credentials: HTTPAuthorizationCredentials = Security(bearer_scheme),
) -> str:
    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid auth scheme")
    return credentials.credentials

def get_current_shop(access_token: str = Depends(get_access_token_from_bearer)) -> str:
    try:
        claims = decode_session_token(access_token, session_token_settings)
        return shop_from_claims(claims)
    except InvalidSessionToken:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid session token")

def get_storefront_shop(
    shop: Optional[str] = Query(None, description="Domaine de la boutique", examples=["demo.myshopify.com"]),
) -> str:
    resolved = shop or settings.STOREFRONT_DEFAULT_SHOP
    if not resolved:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing shop")
    return resolved


# -----------------------------
# Upload sessions
# -----------------------------
def get_upload_registry() -> UploadSessionRegistry:
    return upload_registry

def get_upload_session(
    shop: str = Depends(get_current_shop),
    registry: UploadSessionRegistry = Depends(get_upload_registry),
) -> UploadSession:
    return registry.get(shop)
