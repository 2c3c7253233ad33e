import json
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import StreamingResponse

from app.api.v1.dependencies import get_upload_session
from app.core.config import settings
from app.features.ingestion.errors import SessionBusyError, UploadValidationError
from app.features.ingestion.models import FileRef, VideoMetadata
from app.features.ingestion.schemas import CancelOut, UploadSessionOut
from app.features.ingestion.session import UploadSession
from app.features.videos.schemas import SourceType

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/videos/uploads",
    tags=["uploads"],
)


def _spool_to_disk(upload: UploadFile) -> Path:
    suffix = Path(upload.filename or "").suffix
    with tempfile.NamedTemporaryFile(delete=False, suffix=suffix, dir=settings.UPLOAD_TMP_DIR) as tmp:
        shutil.copyfileobj(upload.file, tmp)
        return Path(tmp.name)


def _parse_duration(raw: Optional[str]) -> Optional[int]:
    # champ texte du formulaire : vide ou non numérique -> None
    try:
        value = int((raw or "").strip())
    except ValueError:
        return None
    return value if value > 0 else None


def _remove_quietly(path: Path) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass


@router.post(
    "",
    summary="Démarrer l'ingestion d'une vidéo (staging → upload → enregistrement → polling → création)",
    description=(
        "Reçoit le fichier et les métadonnées, puis pilote le pipeline en tâche de fond. "
        "Suivre l'avancement via `GET /videos/uploads/current` ou le flux SSE `/events`."
    ),
    status_code=status.HTTP_202_ACCEPTED,
    response_model=UploadSessionOut,
    responses={
        400: {"description": "Fichier refusé (type ou taille)"},
        409: {"description": "Un upload est déjà en cours"},
    },
)
async def start_upload(
    file: UploadFile = File(...),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    duration: Optional[str] = Form(None),
    source_author: Optional[str] = Form(None),
    source_type: SourceType = Form(SourceType.TIKTOK),
    product_id: Optional[str] = Form(None),
    session: UploadSession = Depends(get_upload_session),
):
    if session.active:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=SessionBusyError.default_message)

    path = await run_in_threadpool(_spool_to_disk, file)
    try:
        file_ref = FileRef.from_path(path, filename=file.filename or path.name, mime_type=file.content_type)
        metadata = VideoMetadata(
            title=(title or "").strip() or file_ref.stem,
            description=description or None,
            source_author=source_author or None,
            source_type=source_type.value,
            duration=_parse_duration(duration),
            product_id=product_id or None,
        )
        task = session.launch(file_ref, metadata)
    except SessionBusyError as e:
        _remove_quietly(path)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    except UploadValidationError as e:
        _remove_quietly(path)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    task.add_done_callback(lambda _: _remove_quietly(path))
    logger.info("Upload accepted for %s: %s (%d bytes)", session.shop, file_ref.filename, file_ref.size)
    return session.snapshot()


@router.get(
    "/current",
    summary="État de la session d'upload de la boutique",
    response_model=UploadSessionOut,
)
async def current_upload(session: UploadSession = Depends(get_upload_session)):
    return session.snapshot()


@router.get(
    "/current/events",
    summary="Flux SSE des statuts (staging, uploading, creating, polling, done, failed)",
)
async def upload_events(session: UploadSession = Depends(get_upload_session)):
    async def stream():
        async for event in session.events():
            yield f"id: {event.seq}\nevent: {event.status.value}\ndata: {json.dumps(event.as_dict())}\n\n"

    return StreamingResponse(
        stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )


@router.post(
    "/current/cancel",
    summary="Demander l'annulation (prise en compte au prochain point de suspension)",
    response_model=CancelOut,
)
async def cancel_upload(session: UploadSession = Depends(get_upload_session)):
    return CancelOut(cancelled=session.cancel())


@router.post(
    "/current/reset",
    summary="Remettre une session terminée (done / failed) à l'état idle",
    response_model=UploadSessionOut,
    responses={409: {"description": "Upload en cours"}},
)
async def reset_upload(session: UploadSession = Depends(get_upload_session)):
    try:
        session.reset()
    except SessionBusyError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    return session.snapshot()
