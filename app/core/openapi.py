"""
➡️ But : Personnaliser la documentation Swagger/OpenAPI.

custom_openapi(app) complète le schéma généré par FastAPI avec les conventions de l'API
(authentification par session token, cycle de vie d'un upload).
"""

from fastapi.openapi.utils import get_openapi

DESCRIPTION = (
    "API des vidéos UGC d'une boutique Shopify.\n\n"
    "### Conventions\n"
    "- Toutes les heures sont en UTC.\n"
    "- Routes admin : `Authorization: Bearer <session token App Bridge>`.\n"
    "- Un seul upload actif par boutique ; statuts : "
    "`staging` → `uploading` → `creating` → `polling` → `done` | `failed`.\n"
)

def custom_openapi(app):
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=DESCRIPTION,
        routes=app.routes,
        tags=app.openapi_tags,
    )
    app.openapi_schema = openapi_schema
    return app.openapi_schema
