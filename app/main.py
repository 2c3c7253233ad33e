"""
➡️ But : assembler toutes les pièces du puzzle.

Crée l’instance FastAPI (app).

Configure :

CORS (l'admin embarqué et la storefront appellent l'API)

titre, version, tags

schéma OpenAPI personnalisé

Inclut les routers (ex : /api/v1/videos).

Initialise la base au démarrage, annule les uploads en cours à l'arrêt.

Point unique d’exécution : uvicorn app.main:app --reload.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.core.config import settings
from app.core.logging import configure_logging
from app.core.openapi import custom_openapi
from app.db.session import init_db
from app.features.ingestion.factory import upload_registry

from app.api.v1.routers import videos, uploads, storefront

import uvicorn

logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    openapi_tags=[
        {"name": "videos", "description": "Gestion des vidéos UGC de la boutique"},
        {"name": "uploads", "description": "Pipeline d'ingestion (staging, upload, transcodage)"},
        {"name": "storefront", "description": "Flux public lu par le thème"},
    ],
)

# CORS (ajustez selon vos besoins)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"], allow_credentials=True,
    allow_methods=["*"], allow_headers=["*"],
)

# Routers
app.include_router(uploads.router, prefix="/api/v1")
app.include_router(videos.router, prefix="/api/v1")
app.include_router(storefront.router, prefix="/api/v1")

app.openapi = lambda: custom_openapi(app)

# Démarrage
@app.on_event("startup")
def on_startup():
    configure_logging()
    init_db()
    logger.info("%s started (env=%s)", settings.APP_NAME, settings.ENV)

# Arrêt : les uploads en cours s'arrêtent au prochain point de suspension
@app.on_event("shutdown")
def on_shutdown():
    cancelled = upload_registry.cancel_all()
    if cancelled:
        logger.warning("%d upload(s) cancelled on shutdown", cancelled)

if __name__ == "__main__":
    uvicorn.run("app.main:app", host="127.0.0.1", port=8080, reload=(settings.ENV == "dev")) # http://localhost:8080
