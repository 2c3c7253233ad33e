"""
➡️ But : Configurer les logs de l'application une seule fois au démarrage.

Chaque module récupère son logger via logging.getLogger(__name__).
"""

import logging

from app.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(level=(level or settings.LOG_LEVEL).upper(), format=LOG_FORMAT)
    # aiohttp est bavard en DEBUG
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)
