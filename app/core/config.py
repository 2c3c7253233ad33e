"""
➡️ But : Centraliser tous les paramètres configurables (nom d’app, chemin DB, secrets Shopify, pipeline d'upload...)

Utilise pydantic-settings pour charger automatiquement les variables d’environnement (.env, variables système…).

Fournit un objet settings unique, que tu importes ailleurs :

from app.core.config import settings
print(settings.APP_NAME)
"""

from typing import Optional

from pydantic_settings import BaseSettings
from app.security.tokens import SessionTokenSettings


class Settings(BaseSettings):
    # -----------------------------
    # App
    # -----------------------------
    APP_NAME: str = "UGC-Video-Back"
    ENV: str = "dev"  # dev | prod | test
    LOG_LEVEL: str = "INFO"

    # -----------------------------
    # DB
    # -----------------------------
    SQLITE_PATH: str = "app.db"  # fichier SQLite
    # Si tu veux forcer une URL différente (ex: Postgres), définis DATABASE_URL dans l'env.
    DATABASE_URL: Optional[str] = None

    # -----------------------------
    # Shopify (session tokens + Admin API)
    # -----------------------------
    SHOPIFY_API_KEY: str = "CHANGE_ME"
    SHOPIFY_API_SECRET: str = "CHANGE_ME"     # ⚠️ change en prod
    SHOPIFY_ADMIN_ACCESS_TOKEN: str = ""
    SHOPIFY_API_VERSION: str = "2025-01"
    SESSION_TOKEN_LEEWAY_SECONDS: int = 10

    # -----------------------------
    # Upload pipeline
    # -----------------------------
    UPLOAD_MAX_BYTES: int = 250 * 1024 * 1024
    POLL_INTERVAL_SECONDS: float = 3.0
    POLL_MAX_ATTEMPTS: int = 60
    # None = pas de timeout réseau (staging / transfert / enregistrement)
    REMOTE_TIMEOUT_SECONDS: Optional[float] = None
    UPLOAD_TMP_DIR: Optional[str] = None

    # -----------------------------
    # Storefront feed
    # -----------------------------
    STOREFRONT_CACHE_SECONDS: int = 60
    STOREFRONT_DEFAULT_SHOP: Optional[str] = None

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
    }

    # -----------------------------
    # Post-process values
    # -----------------------------
    def model_post_init(self, __context): # appelée automatiquement
        # DATABASE_URL par défaut depuis SQLITE_PATH si non fourni
        if not self.DATABASE_URL:
            object.__setattr__(self, "DATABASE_URL", f"sqlite:///{self.SQLITE_PATH}")


# Instance globale importable partout
settings = Settings()

# Paramètres de validation des session tokens prêts à l'emploi
session_token_settings = SessionTokenSettings(
    api_key=settings.SHOPIFY_API_KEY,
    api_secret=settings.SHOPIFY_API_SECRET,
    leeway=settings.SESSION_TOKEN_LEEWAY_SECONDS,
)
