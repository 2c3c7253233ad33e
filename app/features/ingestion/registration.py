import logging

from app.features.ingestion.models import Registration
from app.features.ingestion.ports import AssetService

logger = logging.getLogger(__name__)


class AssetRegistrar:
    """
    Déclare l'objet uploadé comme vidéo gérée.
    Deux issues valides : sources déjà prêtes (media renseigné) ou traitement en cours (asset_id seul).
    """

    def __init__(self, service: AssetService):
        self.service = service

    async def register(self, resource_url: str) -> Registration:
        registration = await self.service.register_asset(resource_url)
        if registration.media is not None:
            logger.info("Asset %s registered with sources already available", registration.asset_id)
        else:
            logger.info("Asset %s registered, processing pending", registration.asset_id)
        return registration
