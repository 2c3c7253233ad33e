import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from app.features.ingestion.control import CancellationToken
from app.features.ingestion.errors import ProcessingTimeoutError
from app.features.ingestion.models import AssetStatus, ResolvedMedia, resolve_media
from app.features.ingestion.ports import AssetService

logger = logging.getLogger(__name__)

T = TypeVar("T")
Dispatch = Callable[[Callable[[], Awaitable[T]]], Awaitable[T]]

DEFAULT_INTERVAL_SECONDS = 3.0
DEFAULT_MAX_ATTEMPTS = 60


async def _direct(call: Callable[[], Awaitable[T]]) -> T:
    return await call()


class ReadinessPoller:
    """
    Attend la fin du transcodage : délai initial, puis une requête par intervalle fixe.

    - chaque tour incrémente le compteur avant la requête ;
    - au plafond (60 tours ≈ 180 s) sans source : ProcessingTimeoutError ;
    - une erreur transport remonte immédiatement (pas de retry ici) ;
    - l'annulation est vérifiée avant de planifier un tour, après le délai
      (aucune requête ne part une fois annulé) et avant d'exploiter une réponse.
    """

    def __init__(
        self,
        service: AssetService,
        *,
        interval: float = DEFAULT_INTERVAL_SECONDS,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.service = service
        self.interval = interval
        self.max_attempts = max_attempts
        self._sleep = sleep

    async def wait(
        self,
        asset_id: str,
        token: CancellationToken,
        *,
        on_attempt: Optional[Callable[[int], None]] = None,
        dispatch: Optional[Dispatch] = None,
    ) -> ResolvedMedia:
        dispatch = dispatch or _direct
        attempt = 0
        while attempt < self.max_attempts:
            token.raise_if_cancelled()
            await self._sleep(self.interval)
            token.raise_if_cancelled()

            attempt += 1
            if on_attempt:
                on_attempt(attempt)

            status: AssetStatus = await dispatch(lambda: self.service.get_asset_status(asset_id))
            token.raise_if_cancelled()

            media = resolve_media(status.sources, status.thumbnail_url)
            if media is not None:
                logger.info("Asset %s ready after %d poll(s)", asset_id, attempt)
                return media
            logger.debug("Asset %s still %s (attempt %d/%d)", asset_id, status.raw_status, attempt, self.max_attempts)

        logger.warning("Asset %s not ready after %d polls, giving up", asset_id, self.max_attempts)
        raise ProcessingTimeoutError()
