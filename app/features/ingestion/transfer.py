"""
➡️ But : Envoyer le fichier vers la cible de staging (un seul POST multipart) en remontant la progression.

Les champs de formulaire du staging partent d'abord, dans l'ordre reçu ; le fichier est le dernier champ.
"""

import asyncio
import io
import logging
from typing import Callable, Optional

import aiohttp

from app.features.ingestion.errors import TransferError
from app.features.ingestion.models import FileRef, StagedTarget

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]

FILE_FIELD = "file"


class _CountingReader(io.BufferedReader):
    """
    BufferedReader qui signale chaque octet lu.
    aiohttp lit le payload dans un thread de l'executor : `on_read` doit être thread-safe.
    """

    def __init__(self, raw: io.RawIOBase, on_read: Callable[[int], None]):
        super().__init__(raw)
        self._on_read = on_read
        self._read_total = 0

    def _count(self, chunk: bytes) -> bytes:
        if chunk:
            self._read_total += len(chunk)
            self._on_read(self._read_total)
        return chunk

    def read(self, size: Optional[int] = -1) -> bytes:
        return self._count(super().read(size))

    def read1(self, size: int = -1) -> bytes:
        return self._count(super().read1(size))


class ProgressTracker:
    """Convertit des octets envoyés en pourcentage 0-100, jamais décroissant."""

    def __init__(self, total: int, on_progress: Optional[ProgressCallback]):
        self.total = total
        self.percent = 0
        self._on_progress = on_progress

    def update(self, sent: int) -> None:
        if self.total <= 0:
            percent = 100
        else:
            percent = min(100, (sent * 100) // self.total)
        if percent > self.percent:
            self.percent = percent
            if self._on_progress:
                self._on_progress(percent)

    def complete(self) -> None:
        self.update(self.total)


class Transferer:
    """Seule étape autorisée à remonter une progression en pourcentage."""

    def __init__(
        self,
        *,
        timeout: Optional[float] = None,
        session_factory: Callable[..., aiohttp.ClientSession] = aiohttp.ClientSession,
    ):
        self.timeout = timeout
        self._session_factory = session_factory

    def build_form(self, target: StagedTarget, file_ref: FileRef, reader: io.BufferedReader) -> aiohttp.FormData:
        form = aiohttp.FormData()
        for param in target.parameters:
            form.add_field(param.name, param.value)
        form.add_field(FILE_FIELD, reader, filename=file_ref.filename, content_type=file_ref.mime_type)
        return form

    async def transfer(
        self,
        target: StagedTarget,
        file_ref: FileRef,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        loop = asyncio.get_running_loop()
        tracker = ProgressTracker(file_ref.size, on_progress)

        def on_read(sent: int) -> None:
            loop.call_soon_threadsafe(tracker.update, sent)

        logger.info("Uploading %s (%d bytes) to %s", file_ref.filename, file_ref.size, target.url)
        try:
            with _CountingReader(io.FileIO(file_ref.path, "rb"), on_read) as reader:
                form = self.build_form(target, file_ref, reader)
                async with self._session_factory(timeout=aiohttp.ClientTimeout(total=self.timeout)) as http:
                    async with http.post(target.url, data=form) as resp:
                        status = resp.status
                        if not 200 <= status < 300:
                            body = await resp.text()
                            logger.error("Upload rejected with HTTP %s: %s", status, body[:500])
                            raise TransferError(status=status)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("Upload network failure: %r", e)
            raise TransferError(status=None) from e
        except OSError as e:
            logger.error("Upload of %s failed: %s", file_ref.path, e)
            raise TransferError(status=None) from e

        tracker.complete()
        logger.info("Upload of %s finished with HTTP %s", file_ref.filename, status)
