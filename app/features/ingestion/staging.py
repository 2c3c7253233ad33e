import logging

from app.features.ingestion.errors import RemoteServiceError
from app.features.ingestion.models import FileRef, StagedTarget
from app.features.ingestion.ports import AssetService

logger = logging.getLogger(__name__)


class StagingRequester:
    """Obtient une cible d'upload temporaire. Pas de retry à ce niveau."""

    def __init__(self, service: AssetService):
        self.service = service

    async def request(self, file_ref: FileRef) -> StagedTarget:
        logger.info("Requesting staged upload for %s (%s, %d bytes)", file_ref.filename, file_ref.mime_type, file_ref.size)
        target = await self.service.request_staged_upload(file_ref.filename, file_ref.mime_type, file_ref.size)
        if not target.url or not target.resource_url:
            raise RemoteServiceError("Failed to create staged upload")
        logger.debug("Staged target %s with %d form fields", target.url, len(target.parameters))
        return target
