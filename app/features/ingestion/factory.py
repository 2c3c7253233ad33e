"""
➡️ But : Assembler une UploadSession à partir de la configuration, et garder une session par boutique.

La persistance passe par VideoService dans une session DB dédiée (hors requête HTTP),
exécutée dans un thread pour ne pas bloquer la boucle asyncio.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, Optional

from app.core.config import Settings, settings as default_settings
from app.db.repositories.videos import VideoRepository
from app.db.session import session_scope
from app.features.ingestion.finalizer import RecordFinalizer
from app.features.ingestion.polling import ReadinessPoller
from app.features.ingestion.ports import AssetService
from app.features.ingestion.registration import AssetRegistrar
from app.features.ingestion.session import UploadSession
from app.features.ingestion.shopify import ShopifyAssetService
from app.features.ingestion.staging import StagingRequester
from app.features.ingestion.transfer import Transferer
from app.features.videos.schemas import VideoOut
from app.features.videos.services import VideoService

logger = logging.getLogger(__name__)


def _create_record_sync(shop: str, fields: Dict[str, Any]) -> VideoOut:
    with session_scope() as session:
        return VideoService(VideoRepository(session)).create(shop, fields)


async def create_persisted_record(shop: str, fields: Dict[str, Any]) -> VideoOut:
    return await asyncio.to_thread(_create_record_sync, shop, fields)


def build_upload_session(
    shop: str,
    *,
    settings: Settings = default_settings,
    service: Optional[AssetService] = None,
) -> UploadSession:
    service = service or ShopifyAssetService(
        shop=shop,
        access_token=settings.SHOPIFY_ADMIN_ACCESS_TOKEN,
        api_version=settings.SHOPIFY_API_VERSION,
        timeout=settings.REMOTE_TIMEOUT_SECONDS,
    )
    return UploadSession(
        shop=shop,
        staging=StagingRequester(service),
        transferer=Transferer(timeout=settings.REMOTE_TIMEOUT_SECONDS),
        registrar=AssetRegistrar(service),
        poller=ReadinessPoller(
            service,
            interval=settings.POLL_INTERVAL_SECONDS,
            max_attempts=settings.POLL_MAX_ATTEMPTS,
        ),
        finalizer=RecordFinalizer(create_persisted_record),
        max_bytes=settings.UPLOAD_MAX_BYTES,
    )


class UploadSessionRegistry:
    """Une UploadSession par boutique, créée à la demande et conservée en mémoire."""

    def __init__(self, factory: Callable[[str], UploadSession] = build_upload_session):
        self._factory = factory
        self._sessions: Dict[str, UploadSession] = {}

    def get(self, shop: str) -> UploadSession:
        session = self._sessions.get(shop)
        if session is None:
            logger.debug("Creating upload session for %s", shop)
            session = self._factory(shop)
            self._sessions[shop] = session
        return session

    def find(self, shop: str) -> Optional[UploadSession]:
        return self._sessions.get(shop)

    def cancel_all(self) -> int:
        return sum(1 for s in self._sessions.values() if s.cancel("Server shutting down."))


upload_registry = UploadSessionRegistry()
