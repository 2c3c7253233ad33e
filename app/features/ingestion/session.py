"""
➡️ But : Machine à états d'une session d'upload (une par boutique).

Staging → Transfert → Enregistrement → [Polling]* → Finalisation, strictement dans l'ordre,
pilotés par une seule tâche asyncio. Le polling est sauté si l'enregistrement renvoie déjà une source.

Règles :
- une seule session active à la fois : un second start() est refusé avant tout appel réseau ;
- validation locale (type video/*, taille max) avant toute étape ;
- toute erreur est terminale (→ failed), remontée une fois à l'appelant et aux abonnés ;
- l'enregistrement durable n'est créé que par finalizing → done, une seule fois ;
- done / failed ne repartent que vers idle, via reset().
"""

import asyncio
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, TypeVar

from app.features.ingestion.control import CancellationToken, ResponseSequencer
from app.features.ingestion.errors import (
    InvalidTransition,
    PipelineCancelledError,
    PipelineError,
    SessionBusyError,
    UploadValidationError,
)
from app.features.ingestion.finalizer import RecordFinalizer
from app.features.ingestion.models import (
    ACTIVE_STAGES,
    STAGE_STATUS,
    FileRef,
    ResolvedMedia,
    SessionEvent,
    Stage,
    StatusToken,
    VideoMetadata,
)
from app.features.ingestion.polling import ReadinessPoller
from app.features.ingestion.registration import AssetRegistrar
from app.features.ingestion.staging import StagingRequester
from app.features.ingestion.transfer import Transferer
from app.features.videos.schemas import VideoOut

logger = logging.getLogger(__name__)

T = TypeVar("T")
Listener = Callable[[SessionEvent], None]

DEFAULT_MAX_BYTES = 250 * 1024 * 1024

_TRANSITIONS = {
    Stage.IDLE: {Stage.STAGING},
    Stage.STAGING: {Stage.TRANSFERRING, Stage.FAILED},
    Stage.TRANSFERRING: {Stage.REGISTERING, Stage.FAILED},
    Stage.REGISTERING: {Stage.POLLING, Stage.FINALIZING, Stage.FAILED},
    Stage.POLLING: {Stage.FINALIZING, Stage.FAILED},
    Stage.FINALIZING: {Stage.DONE, Stage.FAILED},
    Stage.DONE: {Stage.IDLE},
    Stage.FAILED: {Stage.IDLE},
}


class UploadSession:
    def __init__(
        self,
        *,
        shop: str,
        staging: StagingRequester,
        transferer: Transferer,
        registrar: AssetRegistrar,
        poller: ReadinessPoller,
        finalizer: RecordFinalizer,
        max_bytes: int = DEFAULT_MAX_BYTES,
    ):
        self.shop = shop
        self.staging = staging
        self.transferer = transferer
        self.registrar = registrar
        self.poller = poller
        self.finalizer = finalizer
        self.max_bytes = max_bytes

        self.stage = Stage.IDLE
        self.file_ref: Optional[FileRef] = None
        self.metadata: Optional[VideoMetadata] = None
        self.asset_id: Optional[str] = None
        self.poll_attempt = 0
        self.progress_percent = 0
        self.media: Optional[ResolvedMedia] = None
        self.record: Optional[VideoOut] = None
        self.error: Optional[PipelineError] = None

        self._token = CancellationToken()
        self._sequencer = ResponseSequencer()
        self._committed = False
        self._listeners: List[Listener] = []
        self._event_seq = 0
        self._last_event: Optional[SessionEvent] = None
        self._task: Optional[asyncio.Task] = None

    # ---------- State ----------
    @property
    def active(self) -> bool:
        return self.stage in ACTIVE_STAGES

    @property
    def last_event(self) -> Optional[SessionEvent]:
        return self._last_event

    def snapshot(self) -> Dict[str, Any]:
        file_info = None
        if self.file_ref is not None:
            file_info = {
                "filename": self.file_ref.filename,
                "mime_type": self.file_ref.mime_type,
                "size": self.file_ref.size,
            }
        return {
            "shop": self.shop,
            "stage": self.stage.value,
            "status": self._last_event.status.value if self._last_event else None,
            "active": self.active,
            "progress_percent": self.progress_percent,
            "poll_attempt": self.poll_attempt,
            "asset_id": self.asset_id,
            "file": file_info,
            "video_url": self.media.video_url if self.media else None,
            "thumbnail_url": self.media.thumbnail_url if self.media else None,
            "record_id": self.record.id if self.record else None,
            "error": {"kind": self.error.kind, "message": self.error.message} if self.error else None,
            "seq": self._event_seq,
        }

    # ---------- Notifications ----------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def events(self) -> AsyncIterator[SessionEvent]:
        """
        Flux des événements : le dernier connu, puis les suivants jusqu'à done / failed.
        Les événements déjà vus (numéro <= dernier émis) sont ignorés.
        """
        queue: "asyncio.Queue[SessionEvent]" = asyncio.Queue()
        unsubscribe = self.subscribe(queue.put_nowait)
        last_seq = 0
        try:
            current = self._last_event
            if current is not None:
                last_seq = current.seq
                yield current
                if current.terminal:
                    return
            elif not self.active:
                return
            while True:
                event = await queue.get()
                if event.seq <= last_seq:
                    continue
                last_seq = event.seq
                yield event
                if event.terminal:
                    return
        finally:
            unsubscribe()

    def _emit(self, *, status: Optional[StatusToken] = None, message: Optional[str] = None,
              error_kind: Optional[str] = None) -> None:
        self._event_seq += 1
        event = SessionEvent(
            seq=self._event_seq,
            status=status or STAGE_STATUS[self.stage],
            stage=self.stage,
            progress_percent=self.progress_percent,
            poll_attempt=self.poll_attempt,
            message=message,
            error_kind=error_kind,
            record_id=self.record.id if self.record else None,
        )
        self._last_event = event
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Upload listener failed on event %s", event.seq)

    def _transition(self, new_stage: Stage, **event_fields: Any) -> None:
        if new_stage not in _TRANSITIONS[self.stage]:
            raise InvalidTransition(f"{self.stage.value} -> {new_stage.value}")
        logger.info("Upload %s: %s -> %s", self.shop, self.stage.value, new_stage.value)
        self.stage = new_stage
        if new_stage is Stage.POLLING:
            self.poll_attempt = 0
        if new_stage in STAGE_STATUS:
            self._emit(**event_fields)

    # ---------- Commands ----------
    def validate(self, file_ref: FileRef) -> None:
        """Validation locale, idempotente, sans appel réseau."""
        if not (file_ref.mime_type or "").startswith("video/"):
            raise UploadValidationError("Please select a video file")
        if file_ref.size <= 0:
            raise UploadValidationError("File is empty")
        if file_ref.size > self.max_bytes:
            limit_mb = self.max_bytes // (1024 * 1024)
            raise UploadValidationError(f"File size must be less than {limit_mb}MB")

    def reset(self) -> None:
        if self.active:
            raise SessionBusyError("Cannot reset an upload in progress.")
        if self.stage is not Stage.IDLE:
            self._transition(Stage.IDLE)
        self._sequencer.next_generation()
        self.file_ref = None
        self.metadata = None
        self.asset_id = None
        self.poll_attempt = 0
        self.progress_percent = 0
        self.media = None
        self.record = None
        self.error = None
        self._committed = False
        self._last_event = None
        self._task = None

    def cancel(self, reason: Optional[str] = None) -> bool:
        """Annulation coopérative : prise en compte au prochain point de suspension."""
        if not self.active:
            return False
        logger.info("Upload %s: cancellation requested during %s", self.shop, self.stage.value)
        self._token.cancel(reason)
        return True

    async def start(self, file_ref: FileRef, metadata: VideoMetadata) -> VideoOut:
        # _claim s'exécute avant le premier await : le refus est synchrone
        self._claim(file_ref, metadata)
        return await self._drive()

    def launch(self, file_ref: FileRef, metadata: VideoMetadata) -> "asyncio.Task[VideoOut]":
        """Comme start(), mais exécute les étapes dans une tâche de fond (doit tourner dans la boucle)."""
        self._claim(file_ref, metadata)
        task = asyncio.get_running_loop().create_task(self._drive(), name=f"upload:{self.shop}")
        task.add_done_callback(self._consume_result)
        self._task = task
        return task

    # ---------- Pipeline ----------
    def _claim(self, file_ref: FileRef, metadata: VideoMetadata) -> None:
        if self.active:
            raise SessionBusyError()
        self.validate(file_ref)
        if self.stage is not Stage.IDLE:
            self.reset()
        self._sequencer.next_generation()
        self._token = CancellationToken()
        self.file_ref = file_ref
        self.metadata = metadata
        self._transition(Stage.STAGING)

    async def _drive(self) -> VideoOut:
        try:
            return await self._run()
        except PipelineError as e:
            self._fail(e)
            raise
        except asyncio.CancelledError:
            self._fail(PipelineCancelledError())
            raise
        except Exception as e:
            logger.exception("Unexpected upload failure for %s", self.shop)
            error = PipelineError()
            self._fail(error)
            raise error from e

    async def _run(self) -> VideoOut:
        file_ref, metadata = self.file_ref, self.metadata
        assert file_ref is not None and metadata is not None

        target = await self._dispatch(lambda: self.staging.request(file_ref))

        self._transition(Stage.TRANSFERRING)
        await self._dispatch(lambda: self.transferer.transfer(target, file_ref, self._on_progress))

        self._transition(Stage.REGISTERING)
        registration = await self._dispatch(lambda: self.registrar.register(target.resource_url))
        self.asset_id = registration.asset_id

        media = registration.media
        if media is None:
            self._transition(Stage.POLLING)
            media = await self.poller.wait(
                registration.asset_id,
                self._token,
                on_attempt=self._on_poll_attempt,
                dispatch=self._dispatch,
            )
        self.media = media

        self._transition(Stage.FINALIZING)
        return await self._commit(media, metadata)

    async def _dispatch(self, call: Callable[[], Awaitable[T]]) -> T:
        self._token.raise_if_cancelled()
        ticket = self._sequencer.issue()
        result = await call()
        # Avec une seule tâche par session, un ticket périmé suppose un reset pendant l'appel :
        # garde conservée pour toute continuation qui survivrait à sa session
        if not self._sequencer.accept(ticket):
            raise PipelineCancelledError("Stale response discarded.")
        self._token.raise_if_cancelled()
        return result

    async def _commit(self, media: ResolvedMedia, metadata: VideoMetadata) -> VideoOut:
        if self._committed:
            raise InvalidTransition("Record already committed for this session")
        # Dernier point d'annulation : une fois le commit lancé, il va jusqu'au bout
        self._token.raise_if_cancelled()
        self._committed = True
        record = await self.finalizer.finalize(self.shop, media, metadata)
        self.record = record
        self._transition(Stage.DONE, message="Video added successfully")
        return record

    def _fail(self, error: PipelineError) -> None:
        self.error = error
        logger.warning("Upload %s failed during %s: [%s] %s", self.shop, self.stage.value, error.kind, error.message)
        if self.stage is not Stage.FAILED:
            self._transition(Stage.FAILED, message=error.message, error_kind=error.kind)

    def _on_progress(self, percent: int) -> None:
        if self.stage is Stage.TRANSFERRING and percent > self.progress_percent:
            self.progress_percent = percent
            self._emit()

    def _on_poll_attempt(self, attempt: int) -> None:
        self.poll_attempt = attempt
        self._emit()

    def _consume_result(self, task: "asyncio.Task[VideoOut]") -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.debug("Background upload for %s ended with %r", self.shop, error)
