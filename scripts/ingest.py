"""
Ingestion d'une vidéo locale depuis le terminal, sans passer par l'admin.

    python -m scripts.ingest demo.myshopify.com ./clip.mp4 --title "Unboxing" --source-type TikTok
"""

import argparse
import asyncio
import sys

from app.core.logging import configure_logging
from app.db.session import init_db
from app.features.ingestion.errors import PipelineError
from app.features.ingestion.factory import build_upload_session
from app.features.ingestion.models import FileRef, SessionEvent, StatusToken, VideoMetadata


def print_event(event: SessionEvent) -> None:
    if event.status is StatusToken.UPLOADING:
        print(f"\r⬆️  uploading {event.progress_percent:3d}%", end="", flush=True)
        if event.progress_percent == 100:
            print()
    elif event.status is StatusToken.POLLING:
        print(f"⏳ polling (attempt {event.poll_attempt})")
    elif event.status is StatusToken.FAILED:
        print(f"❌ {event.message}")
    else:
        print(f"• {event.status.value}")


async def ingest(args: argparse.Namespace) -> int:
    session = build_upload_session(args.shop)
    session.subscribe(print_event)
    file_ref = FileRef.from_path(args.path, mime_type=args.mime_type)
    metadata = VideoMetadata(
        title=args.title or file_ref.stem,
        description=args.description,
        source_author=args.source_author,
        source_type=args.source_type,
        duration=args.duration,
        product_id=args.product_id,
    )
    try:
        record = await session.start(file_ref, metadata)
    except PipelineError:
        return 1
    print(f"✅ Video {record.id} created: {record.video_url}")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Upload a local video to a shop")
    parser.add_argument("shop", help="shop domain, e.g. demo.myshopify.com")
    parser.add_argument("path", help="local video file")
    parser.add_argument("--title")
    parser.add_argument("--description")
    parser.add_argument("--source-author")
    parser.add_argument("--source-type", default="TikTok", choices=["TikTok", "Instagram", "YouTube", "Original"])
    parser.add_argument("--duration", type=int)
    parser.add_argument("--product-id")
    parser.add_argument("--mime-type", help="override the detected MIME type")
    args = parser.parse_args(argv)

    configure_logging()
    init_db()
    return asyncio.run(ingest(args))


if __name__ == "__main__":
    sys.exit(main())
