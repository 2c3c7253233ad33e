"""
➡️ But : Types de données du pipeline d'ingestion (fichier local, cible de staging, sources, événements).

Tous immuables (dataclasses frozen) : une étape produit une valeur, la suivante la consomme.
"""

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple

import filetype


class Stage(str, Enum):
    IDLE = "idle"
    STAGING = "staging"
    TRANSFERRING = "transferring"
    REGISTERING = "registering"
    POLLING = "polling"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"


ACTIVE_STAGES = frozenset(
    {Stage.STAGING, Stage.TRANSFERRING, Stage.REGISTERING, Stage.POLLING, Stage.FINALIZING}
)


class StatusToken(str, Enum):
    """Statut discret exposé à l'UI."""
    STAGING = "staging"
    UPLOADING = "uploading"
    CREATING = "creating"
    POLLING = "polling"
    DONE = "done"
    FAILED = "failed"


STAGE_STATUS = {
    Stage.STAGING: StatusToken.STAGING,
    Stage.TRANSFERRING: StatusToken.UPLOADING,
    Stage.REGISTERING: StatusToken.CREATING,
    Stage.POLLING: StatusToken.POLLING,
    # la création de l'enregistrement reste "creating" côté UI
    Stage.FINALIZING: StatusToken.CREATING,
    Stage.DONE: StatusToken.DONE,
    Stage.FAILED: StatusToken.FAILED,
}


@dataclass(frozen=True)
class FileRef:
    """Handle opaque vers le fichier local à ingérer."""
    path: Path
    filename: str
    mime_type: str
    size: int

    @classmethod
    def from_path(
        cls,
        path: "os.PathLike[str] | str",
        *,
        filename: Optional[str] = None,
        mime_type: Optional[str] = None,
    ) -> "FileRef":
        """
        Construit un FileRef depuis le disque.
        Si le type MIME n'est pas fourni (ou générique), il est détecté via 'filetype'.
        """
        p = Path(path)
        if not mime_type or mime_type == "application/octet-stream":
            kind = filetype.guess(str(p))
            mime_type = kind.mime if kind else "application/octet-stream"
        return cls(
            path=p,
            filename=filename or p.name,
            mime_type=mime_type,
            size=p.stat().st_size,
        )

    @property
    def stem(self) -> str:
        return Path(self.filename).stem


@dataclass(frozen=True)
class VideoMetadata:
    """Champs saisis par le marchand, recopiés tels quels dans l'enregistrement."""
    title: str
    description: Optional[str] = None
    source_author: Optional[str] = None
    source_type: Optional[str] = "TikTok"
    duration: Optional[int] = None
    product_id: Optional[str] = None

    def as_fields(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "source_author": self.source_author,
            "source_type": self.source_type,
            "duration": self.duration,
            "product_id": self.product_id,
        }


@dataclass(frozen=True)
class FormField:
    name: str
    value: str


@dataclass(frozen=True)
class StagedTarget:
    url: str
    resource_url: str
    parameters: Tuple[FormField, ...] = ()


@dataclass(frozen=True)
class MediaSource:
    url: str
    mime_type: Optional[str] = None


@dataclass(frozen=True)
class ResolvedMedia:
    video_url: str
    thumbnail_url: Optional[str] = None


@dataclass(frozen=True)
class Registration:
    asset_id: str
    media: Optional[ResolvedMedia] = None


@dataclass(frozen=True)
class AssetStatus:
    sources: Tuple[MediaSource, ...] = ()
    thumbnail_url: Optional[str] = None
    raw_status: Optional[str] = None


@dataclass(frozen=True)
class SessionEvent:
    seq: int
    status: StatusToken
    stage: Stage
    progress_percent: int = 0
    poll_attempt: int = 0
    message: Optional[str] = None
    error_kind: Optional[str] = None
    record_id: Optional[int] = None

    @property
    def terminal(self) -> bool:
        return self.status in (StatusToken.DONE, StatusToken.FAILED)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "seq": self.seq,
            "status": self.status.value,
            "stage": self.stage.value,
            "progress_percent": self.progress_percent,
            "poll_attempt": self.poll_attempt,
            "message": self.message,
            "error_kind": self.error_kind,
            "record_id": self.record_id,
        }


def select_source(sources: Sequence[MediaSource]) -> Optional[MediaSource]:
    """Préfère la variante `video/mp4`, sinon la première dans l'ordre renvoyé."""
    usable = [s for s in sources if s.url]
    if not usable:
        return None
    for source in usable:
        if source.mime_type == "video/mp4":
            return source
    return usable[0]


def resolve_media(sources: Sequence[MediaSource], thumbnail_url: Optional[str]) -> Optional[ResolvedMedia]:
    source = select_source(sources)
    if source is None:
        return None
    return ResolvedMedia(video_url=source.url, thumbnail_url=thumbnail_url or None)
