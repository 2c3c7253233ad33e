import logging

from app.features.ingestion.errors import FinalizationError
from app.features.ingestion.models import ResolvedMedia, VideoMetadata
from app.features.ingestion.ports import RecordCreator
from app.features.videos.schemas import VideoOut

logger = logging.getLogger(__name__)


class RecordFinalizer:
    """
    Crée l'enregistrement durable une fois l'URL lisible connue.
    Un échec ici est terminal ; l'asset déjà uploadé/enregistré côté plateforme n'est pas supprimé.
    """

    def __init__(self, create_record: RecordCreator):
        self._create_record = create_record

    async def finalize(self, shop: str, media: ResolvedMedia, metadata: VideoMetadata) -> VideoOut:
        fields = metadata.as_fields()
        fields["video_url"] = media.video_url
        fields["thumbnail_url"] = media.thumbnail_url
        try:
            record = await self._create_record(shop, fields)
        except Exception as e:
            logger.exception("Failed to persist video for %s", shop)
            raise FinalizationError() from e
        logger.info("Video %s created for %s (sort_order=%s)", record.id, shop, record.sort_order)
        return record
