"""
Shared Test Configuration and Fixtures

Provides:
- an in-memory SQLite database (one per test)
- scripted fakes for the remote asset service, the transfer and the record store
- an UploadSession factory wired with those fakes and an instant sleep

To run:
    pip install -e ".[test]"
    pytest
"""

import asyncio
import os
from typing import Any, Dict, List, Optional

# Settings are read at import time: point the global engine at a throwaway DB
os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlmodel import SQLModel, Session, create_engine
from sqlalchemy.pool import StaticPool

from app.db.models.videos import UgcVideo  # noqa: F401
from app.db.repositories.videos import VideoRepository
from app.features.ingestion.errors import RemoteServiceError
from app.features.ingestion.factory import UploadSessionRegistry
from app.features.ingestion.finalizer import RecordFinalizer
from app.features.ingestion.models import (
    AssetStatus,
    FileRef,
    FormField,
    MediaSource,
    Registration,
    ResolvedMedia,
    StagedTarget,
    VideoMetadata,
)
from app.features.ingestion.polling import ReadinessPoller
from app.features.ingestion.ports import AssetService
from app.features.ingestion.registration import AssetRegistrar
from app.features.ingestion.session import UploadSession
from app.features.ingestion.staging import StagingRequester
from app.features.ingestion.transfer import Transferer
from app.features.videos.schemas import VideoOut
from app.features.videos.services import VideoService

MiB = 1024 * 1024
SHOP = "demo.myshopify.com"

PROCESSING = AssetStatus(raw_status="PROCESSING")
READY = AssetStatus(
    sources=(
        MediaSource(url="https://cdn.example.com/v.m3u8", mime_type="application/x-mpegURL"),
        MediaSource(url="https://cdn.example.com/v.mp4", mime_type="video/mp4"),
    ),
    thumbnail_url="https://cdn.example.com/v.jpg",
    raw_status="READY",
)


# =============================================================================
# FAKES
# =============================================================================


class FakeAssetService(AssetService):
    """
    Scripted asset service. Every call is appended to `calls`.

    - `staging_error` / `register_error`: raised instead of answering
    - `immediate_media`: registration already has sources
    - `statuses`: answers for successive polls (last one repeats)
    """

    def __init__(self):
        self.calls: List[tuple] = []
        self.staging_error: Optional[Exception] = None
        self.register_error: Optional[Exception] = None
        self.immediate_media: Optional[ResolvedMedia] = None
        self.statuses: List[Any] = [READY]
        self.on_poll = None

    async def request_staged_upload(self, filename: str, mime_type: str, size: int) -> StagedTarget:
        self.calls.append(("stage", filename, mime_type, size))
        if self.staging_error:
            raise self.staging_error
        return StagedTarget(
            url="https://storage.example.com/upload",
            resource_url="https://storage.example.com/tmp/clip",
            parameters=(FormField("key", "tmp/clip"), FormField("policy", "abc")),
        )

    async def register_asset(self, resource_url: str) -> Registration:
        self.calls.append(("register", resource_url))
        if self.register_error:
            raise self.register_error
        return Registration(asset_id="gid://shopify/Video/1", media=self.immediate_media)

    async def get_asset_status(self, asset_id: str) -> AssetStatus:
        self.calls.append(("poll", asset_id))
        index = min(self.poll_count - 1, len(self.statuses) - 1)
        answer = self.statuses[index]
        if self.on_poll:
            self.on_poll(self.poll_count)
        if isinstance(answer, Exception):
            raise answer
        return answer

    @property
    def poll_count(self) -> int:
        return sum(1 for c in self.calls if c[0] == "poll")

    @property
    def network_calls(self) -> int:
        return len(self.calls)


class FakeTransferer(Transferer):
    """Reports 25/50/100 % and never touches the network."""

    def __init__(self, error: Optional[Exception] = None):
        super().__init__()
        self.error = error
        self.transfers: List[StagedTarget] = []

    async def transfer(self, target, file_ref, on_progress=None):
        self.transfers.append(target)
        if self.error:
            raise self.error
        for percent in (25, 50, 100):
            await asyncio.sleep(0)
            if on_progress:
                on_progress(percent)


class RecordStore:
    """Stands in for the persistence collaborator (createPersistedRecord)."""

    def __init__(self, error: Optional[Exception] = None):
        self.created: List[Dict[str, Any]] = []
        self.error = error

    async def create(self, shop: str, fields: Dict[str, Any]) -> VideoOut:
        if self.error:
            raise self.error
        self.created.append({"shop": shop, **fields})
        return VideoOut(
            id=len(self.created),
            shop=shop,
            title=fields["title"],
            description=fields.get("description"),
            video_url=fields["video_url"],
            thumbnail_url=fields.get("thumbnail_url"),
            duration=fields.get("duration"),
            source_author=fields.get("source_author"),
            source_type=fields.get("source_type"),
            product_id=fields.get("product_id"),
            sort_order=len(self.created),
            is_active=True,
            autoplay=True,
            created_at="2025-01-01T00:00:00Z",
        )


class SleepRecorder:
    """Instant replacement for asyncio.sleep that remembers requested delays."""

    def __init__(self):
        self.delays: List[float] = []
        self.before_return = None

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        if self.before_return:
            self.before_return(len(self.delays))
        await asyncio.sleep(0)


# =============================================================================
# FILE FIXTURES
# =============================================================================


@pytest.fixture
def make_file(tmp_path):
    """
    Create a (sparse) local file of the given size.

    Usage:
        ref = make_file("clip.mp4", 10 * MiB, "video/mp4")
    """

    def _make(name: str, size: int, mime_type: str) -> FileRef:
        path = tmp_path / name
        with open(path, "wb") as f:
            f.truncate(size)
        return FileRef(path=path, filename=name, mime_type=mime_type, size=size)

    return _make


@pytest.fixture
def metadata():
    return VideoMetadata(title="Unboxing", source_author="@creator", source_type="TikTok", duration=30)


# =============================================================================
# PIPELINE FIXTURES
# =============================================================================


@pytest.fixture
def asset_service():
    return FakeAssetService()


@pytest.fixture
def transferer():
    return FakeTransferer()


@pytest.fixture
def record_store():
    return RecordStore()


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()


@pytest.fixture
def make_session(asset_service, transferer, record_store, sleep_recorder):
    """Build an UploadSession wired with fakes (poll interval 3 s, ceiling 60)."""

    def _make(**overrides) -> UploadSession:
        service = overrides.pop("service", asset_service)
        return UploadSession(
            shop=overrides.pop("shop", SHOP),
            staging=StagingRequester(service),
            transferer=overrides.pop("transferer", transferer),
            registrar=AssetRegistrar(service),
            poller=ReadinessPoller(service, interval=3.0, max_attempts=60, sleep=sleep_recorder),
            finalizer=RecordFinalizer(overrides.pop("create_record", record_store.create)),
            **overrides,
        )

    return _make


@pytest.fixture
def upload_session(make_session):
    return make_session()


@pytest.fixture
def remote_error():
    return RemoteServiceError("Staged upload is not allowed for this file")


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    with Session(db_engine) as session:
        yield session


@pytest.fixture
def video_service(db_session):
    return VideoService(VideoRepository(db_session))


@pytest.fixture
def persist_record(db_engine):
    """Record creator writing to the test database (same path as production, without the thread hop)."""

    async def _create(shop: str, fields: Dict[str, Any]) -> VideoOut:
        with Session(db_engine) as session:
            return VideoService(VideoRepository(session)).create(shop, fields)

    return _create


@pytest.fixture
def upload_registry(make_session, persist_record):
    """One fake-backed UploadSession per shop, persisting into the test database."""
    return UploadSessionRegistry(lambda shop: make_session(shop=shop, create_record=persist_record))
