"""
Transfer Tests

Tests for the multipart upload to the staging target showing:
- staging form fields sent first, in order, the file last
- monotonic progress ending at 100
- HTTP and network failures mapped to TransferError

To run:
    pytest tests/ingestion/test_transfer.py -v
"""

import asyncio
import contextlib

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from app.features.ingestion.errors import TransferError
from app.features.ingestion.models import FileRef, FormField, StagedTarget
from app.features.ingestion.transfer import ProgressTracker, Transferer

PARAMETERS = (
    FormField("Content-Type", "video/mp4"),
    FormField("key", "tmp/clip.mp4"),
    FormField("policy", "eyJ9"),
    FormField("x-goog-signature", "abc123"),
)


@pytest.fixture
def video_file(tmp_path):
    path = tmp_path / "clip.mp4"
    content = bytes(range(256)) * 2048  # 512 KiB
    path.write_bytes(content)
    return FileRef(path=path, filename="clip.mp4", mime_type="video/mp4", size=len(content))


@contextlib.asynccontextmanager
async def storage_server(handler):
    app = web.Application(client_max_size=10 * 1024 * 1024)
    app.router.add_post("/upload", handler)
    server = TestServer(app)
    await server.start_server()
    try:
        yield str(server.make_url("/upload"))
    finally:
        await server.close()


# =============================================================================
# PROGRESS
# =============================================================================


@pytest.mark.unit
def test_progress_tracker_is_monotonic():
    seen = []
    tracker = ProgressTracker(200, seen.append)

    for sent in (20, 10, 100, 100, 150):
        tracker.update(sent)
    tracker.complete()

    assert seen == [10, 50, 75, 100]


@pytest.mark.unit
def test_progress_tracker_caps_at_100():
    seen = []
    tracker = ProgressTracker(100, seen.append)

    tracker.update(400)
    tracker.complete()

    assert seen == [100]


# =============================================================================
# UPLOAD
# =============================================================================


@pytest.mark.integration
@pytest.mark.asyncio
async def test_fields_in_order_then_file(video_file):
    parts = []

    async def handler(request):
        reader = await request.multipart()
        async for part in reader:
            if part.filename:
                data = await part.read()
                parts.append((part.name, part.filename, part.headers.get("Content-Type"), len(data)))
            else:
                parts.append((part.name, await part.text()))
        return web.Response(status=204)

    progress = []
    async with storage_server(handler) as url:
        target = StagedTarget(url=url, resource_url="https://storage/tmp/clip.mp4", parameters=PARAMETERS)
        await Transferer().transfer(target, video_file, progress.append)

    assert parts[:4] == [(p.name, p.value) for p in PARAMETERS]
    assert parts[4] == ("file", "clip.mp4", "video/mp4", video_file.size)
    assert len(parts) == 5
    assert progress == sorted(progress)
    assert progress[-1] == 100
    assert len(set(progress)) == len(progress)


@pytest.mark.integration
@pytest.mark.asyncio
async def test_rejected_upload_raises_with_status(video_file):
    async def handler(request):
        await request.read()
        return web.Response(status=403, text="<Error><Code>AccessDenied</Code></Error>")

    async with storage_server(handler) as url:
        target = StagedTarget(url=url, resource_url="https://storage/tmp/clip.mp4", parameters=PARAMETERS)
        with pytest.raises(TransferError) as exc_info:
            await Transferer().transfer(target, video_file)

    assert exc_info.value.status == 403


@pytest.mark.integration
@pytest.mark.asyncio
async def test_network_failure_has_no_status(video_file, unused_tcp_port):
    target = StagedTarget(
        url=f"http://127.0.0.1:{unused_tcp_port}/upload",
        resource_url="https://storage/tmp/clip.mp4",
        parameters=PARAMETERS,
    )

    with pytest.raises(TransferError) as exc_info:
        await Transferer().transfer(target, video_file)

    assert exc_info.value.status is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_missing_local_file(tmp_path):
    ref = FileRef(path=tmp_path / "gone.mp4", filename="gone.mp4", mime_type="video/mp4", size=10)
    target = StagedTarget(url="http://127.0.0.1:1/upload", resource_url="r")

    with pytest.raises(TransferError) as exc_info:
        await Transferer().transfer(target, ref)

    assert exc_info.value.status is None


@pytest.mark.integration
@pytest.mark.asyncio
async def test_timeout_is_network_failure(video_file):
    release = asyncio.Event()

    async def handler(request):
        await request.read()
        await asyncio.wait_for(release.wait(), 5)
        return web.Response(status=204)

    async with storage_server(handler) as url:
        target = StagedTarget(url=url, resource_url="https://storage/tmp/clip.mp4", parameters=PARAMETERS)
        try:
            with pytest.raises(TransferError) as exc_info:
                await Transferer(timeout=0.2).transfer(target, video_file)
        finally:
            release.set()

    assert exc_info.value.status is None
    assert isinstance(exc_info.value.__cause__, asyncio.TimeoutError)
