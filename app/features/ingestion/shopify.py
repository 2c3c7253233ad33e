"""
➡️ But : Adapter du service d'assets pour l'Admin API GraphQL de Shopify.

stagedUploadsCreate → cible d'upload temporaire
fileCreate          → enregistrement de l'objet uploadé comme vidéo gérée
node(id)            → statut de transcodage

Les fonctions parse_* sont pures : elles transforment la réponse JSON en types du pipeline
et lèvent RemoteServiceError sur les userErrors.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

import aiohttp

from app.features.ingestion.errors import RemoteServiceError
from app.features.ingestion.models import (
    AssetStatus,
    FormField,
    MediaSource,
    Registration,
    StagedTarget,
    resolve_media,
)
from app.features.ingestion.ports import AssetService

logger = logging.getLogger(__name__)


STAGED_UPLOADS_CREATE = """
mutation stagedUploadsCreate($input: [StagedUploadInput!]!) {
  stagedUploadsCreate(input: $input) {
    stagedTargets {
      url
      resourceUrl
      parameters { name value }
    }
    userErrors { field message }
  }
}
"""

FILE_CREATE = """
mutation fileCreate($files: [FileCreateInput!]!) {
  fileCreate(files: $files) {
    files {
      id
      alt
      ... on Video {
        fileStatus
        sources { url mimeType format height width }
        preview { image { url } }
      }
    }
    userErrors { field message }
  }
}
"""

GET_FILE = """
query getFile($id: ID!) {
  node(id: $id) {
    ... on Video {
      id
      fileStatus
      sources { url mimeType format }
      preview { image { url } }
    }
  }
}
"""


# -----------------------------
# Parsing
# -----------------------------
def _raise_user_errors(node: Dict[str, Any], fallback: str) -> None:
    user_errors = node.get("userErrors") or []
    if user_errors:
        logger.error("Asset service user errors: %s", user_errors)
        raise RemoteServiceError(user_errors[0].get("message") or fallback)


def _sources(raw: Optional[List[Dict[str, Any]]]) -> tuple:
    return tuple(
        MediaSource(url=s.get("url") or "", mime_type=s.get("mimeType"))
        for s in (raw or [])
    )


def _preview_url(node: Dict[str, Any]) -> Optional[str]:
    return ((node.get("preview") or {}).get("image") or {}).get("url")


def parse_staged_upload(data: Dict[str, Any]) -> StagedTarget:
    node = data.get("stagedUploadsCreate") or {}
    _raise_user_errors(node, "Failed to create staged upload")
    targets = node.get("stagedTargets") or []
    if not targets or not targets[0].get("url"):
        raise RemoteServiceError("Failed to create staged upload")
    target = targets[0]
    return StagedTarget(
        url=target["url"],
        resource_url=target.get("resourceUrl") or "",
        parameters=tuple(
            FormField(name=p["name"], value=p.get("value") or "")
            for p in target.get("parameters") or []
        ),
    )


def parse_file_create(data: Dict[str, Any]) -> Registration:
    node = data.get("fileCreate") or {}
    _raise_user_errors(node, "Failed to create file")
    files = node.get("files") or []
    if not files or not files[0].get("id"):
        raise RemoteServiceError("Failed to create file")
    file = files[0]
    media = resolve_media(_sources(file.get("sources")), _preview_url(file))
    return Registration(asset_id=file["id"], media=media)


def parse_asset_status(data: Dict[str, Any]) -> AssetStatus:
    node = data.get("node") or {}
    return AssetStatus(
        sources=_sources(node.get("sources")),
        thumbnail_url=_preview_url(node),
        raw_status=node.get("fileStatus") or "PROCESSING",
    )


# -----------------------------
# Client
# -----------------------------
class ShopifyAssetService(AssetService):
    """
    Client GraphQL minimal (une ClientSession aiohttp par appel).
    `timeout=None` : aucun timeout réseau, un appel bloqué bloque l'étape.
    """

    def __init__(
        self,
        *,
        shop: str,
        access_token: str,
        api_version: str,
        timeout: Optional[float] = None,
        session_factory: Callable[..., aiohttp.ClientSession] = aiohttp.ClientSession,
    ):
        self.shop = shop
        self.access_token = access_token
        self.api_version = api_version
        self.timeout = timeout
        self._session_factory = session_factory

    @property
    def endpoint(self) -> str:
        return f"https://{self.shop}/admin/api/{self.api_version}/graphql.json"

    async def _graphql(self, query: str, variables: Dict[str, Any], *, failure: str) -> Dict[str, Any]:
        headers = {
            "X-Shopify-Access-Token": self.access_token,
            "Content-Type": "application/json",
        }
        try:
            async with self._session_factory(timeout=aiohttp.ClientTimeout(total=self.timeout)) as http:
                async with http.post(
                    self.endpoint,
                    json={"query": query, "variables": variables},
                    headers=headers,
                ) as resp:
                    if not 200 <= resp.status < 300:
                        logger.error("Asset service HTTP %s on %s", resp.status, self.endpoint)
                        raise RemoteServiceError(failure)
                    payload = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("Asset service transport error: %r", e)
            raise RemoteServiceError(failure) from e
        except ValueError as e:
            # corps 2xx non JSON (page proxy, maintenance...)
            logger.error("Asset service returned a non-JSON body: %s", e)
            raise RemoteServiceError(failure) from e

        if not isinstance(payload, dict):
            logger.error("Asset service returned an unexpected payload: %r", payload)
            raise RemoteServiceError(failure)

        errors = payload.get("errors")
        if errors:
            logger.error("Asset service GraphQL errors: %s", errors)
            first = errors[0] if isinstance(errors, list) else {}
            message = first.get("message") if isinstance(first, dict) else None
            raise RemoteServiceError(message or failure)
        return payload.get("data") or {}

    async def request_staged_upload(self, filename: str, mime_type: str, size: int) -> StagedTarget:
        data = await self._graphql(
            STAGED_UPLOADS_CREATE,
            {
                "input": [
                    {
                        "filename": filename,
                        "mimeType": mime_type,
                        "httpMethod": "POST",
                        "resource": "VIDEO",
                        "fileSize": str(size),
                    }
                ]
            },
            failure="Failed to create staged upload",
        )
        return parse_staged_upload(data)

    async def register_asset(self, resource_url: str) -> Registration:
        data = await self._graphql(
            FILE_CREATE,
            {"files": [{"originalSource": resource_url, "contentType": "VIDEO"}]},
            failure="Failed to create file",
        )
        return parse_file_create(data)

    async def get_asset_status(self, asset_id: str) -> AssetStatus:
        data = await self._graphql(GET_FILE, {"id": asset_id}, failure="Failed to check file status")
        return parse_asset_status(data)
