from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict

from app.features.ingestion.models import AssetStatus, Registration, StagedTarget
from app.features.videos.schemas import VideoOut


class AssetService(ABC):
    """
    Service d'assets distant (plateforme média).
    Les implémentations lèvent RemoteServiceError pour toute erreur métier ou transport.
    """

    @abstractmethod
    async def request_staged_upload(self, filename: str, mime_type: str, size: int) -> StagedTarget:
        ...

    @abstractmethod
    async def register_asset(self, resource_url: str) -> Registration:
        ...

    @abstractmethod
    async def get_asset_status(self, asset_id: str) -> AssetStatus:
        ...


# createPersistedRecord(shop, fields) -> VideoOut
RecordCreator = Callable[[str, Dict[str, Any]], Awaitable[VideoOut]]
