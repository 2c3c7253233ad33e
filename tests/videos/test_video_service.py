"""
Video Service Tests

Tests for VideoService / VideoRepository showing:
- sort_order assignment (max + 1, or 1)
- shop scoping of every query and command
- toggle and delete leaving other rows untouched
- stats and the storefront feed

To run:
    pytest tests/videos/test_video_service.py -v
"""

from pathlib import Path

import pytest
from fastapi import HTTPException

from app.db.seed import load_seed_yaml, seed_all, seed_videos
from app.features.videos.schemas import VideoCreateIn

SHOP = "demo.myshopify.com"
OTHER_SHOP = "other.myshopify.com"


def _fields(title="Clip", **extra):
    return {"title": title, "video_url": f"https://cdn.example.com/{title}.mp4", **extra}


# =============================================================================
# CREATE
# =============================================================================


@pytest.mark.unit
def test_first_video_gets_sort_order_one(video_service):
    video = video_service.create(SHOP, _fields())

    assert video.sort_order == 1
    assert video.is_active is True
    assert video.autoplay is True
    assert video.shop == SHOP


@pytest.mark.unit
def test_sort_order_is_max_plus_one(video_service):
    orders = [video_service.create(SHOP, _fields(f"v{i}")).sort_order for i in range(3)]

    assert orders == [1, 2, 3]


@pytest.mark.unit
def test_sort_order_is_per_shop(video_service):
    video_service.create(SHOP, _fields("a"))
    video_service.create(SHOP, _fields("b"))

    other = video_service.create(OTHER_SHOP, _fields("c"))

    assert other.sort_order == 1


@pytest.mark.unit
def test_delete_does_not_renumber(video_service):
    """Orders [1, 2, 3], delete 2 → [1, 3], next create → 4."""
    first, second, third = (video_service.create(SHOP, _fields(f"v{i}")) for i in range(3))

    video_service.delete(SHOP, second.id)

    assert [v.sort_order for v in video_service.list(SHOP).items] == [1, 3]
    assert video_service.create(SHOP, _fields("v4")).sort_order == 4


@pytest.mark.unit
def test_blank_strings_become_null(video_service):
    video = video_service.create(SHOP, _fields(description="", source_author="   ", product_id=""))

    assert video.description is None
    assert video.source_author is None
    assert video.product_id is None


@pytest.mark.unit
def test_unknown_fields_are_ignored(video_service):
    video = video_service.create(SHOP, _fields(shop="evil.myshopify.com", sort_order=99, id=1234))

    assert video.shop == SHOP
    assert video.sort_order == 1
    assert video.id != 1234


@pytest.mark.unit
@pytest.mark.parametrize("missing", ["title", "video_url"])
def test_required_fields(video_service, missing):
    fields = _fields()
    fields[missing] = ""

    with pytest.raises(ValueError):
        video_service.create(SHOP, fields)


@pytest.mark.unit
def test_create_from_url(video_service):
    payload = VideoCreateIn(
        title="Review",
        video_url="https://cdn.example.com/review.mp4",
        source_type="YouTube",
        duration=61,
    )

    video = video_service.create_from_url(SHOP, payload)

    assert video.video_url == "https://cdn.example.com/review.mp4"
    assert video.source_type == "YouTube"
    assert video.thumbnail_url is None


# =============================================================================
# TOGGLE / DELETE / SCOPING
# =============================================================================


@pytest.mark.unit
def test_toggle_flips_only_target(video_service):
    a = video_service.create(SHOP, _fields("a"))
    b = video_service.create(SHOP, _fields("b"))

    toggled = video_service.toggle(SHOP, a.id)

    assert toggled.is_active is False
    by_id = {v.id: v for v in video_service.list(SHOP).items}
    assert by_id[a.id].is_active is False
    assert by_id[b.id].is_active is True
    assert by_id[a.id].sort_order == 1

    assert video_service.toggle(SHOP, a.id).is_active is True


@pytest.mark.unit
def test_other_shop_cannot_touch_video(video_service):
    video = video_service.create(SHOP, _fields())

    with pytest.raises(HTTPException) as exc_info:
        video_service.toggle(OTHER_SHOP, video.id)
    assert exc_info.value.status_code == 404

    with pytest.raises(HTTPException):
        video_service.delete(OTHER_SHOP, video.id)

    assert video_service.list(SHOP).total == 1
    assert video_service.list(OTHER_SHOP).total == 0


@pytest.mark.unit
def test_delete_unknown_video(video_service):
    with pytest.raises(HTTPException) as exc_info:
        video_service.delete(SHOP, 999)
    assert exc_info.value.detail == "Video not found"


# =============================================================================
# QUERIES
# =============================================================================


@pytest.mark.unit
def test_stats(video_service):
    a = video_service.create(SHOP, _fields("a"))
    video_service.create(SHOP, _fields("b"))
    video_service.create(OTHER_SHOP, _fields("c"))
    video_service.toggle(SHOP, a.id)

    stats = video_service.stats(SHOP)

    assert stats.total == 2
    assert stats.active == 1


@pytest.mark.unit
def test_storefront_feed_only_active_in_order(video_service):
    a = video_service.create(SHOP, _fields("a"))
    b = video_service.create(SHOP, _fields("b", autoplay=False))
    c = video_service.create(SHOP, _fields("c"))
    video_service.toggle(SHOP, a.id)

    feed = video_service.storefront_feed(SHOP)

    assert [v.id for v in feed.videos] == [b.id, c.id]
    assert feed.videos[0].autoplay is False


@pytest.mark.unit
def test_empty_shop(video_service):
    assert video_service.list(SHOP).items == []
    assert video_service.stats(SHOP).total == 0
    assert video_service.storefront_feed(SHOP).videos == []


# =============================================================================
# SEED
# =============================================================================


@pytest.mark.unit
def test_seed_file_loads_and_is_idempotent(db_session, video_service):
    seed_path = Path(__file__).resolve().parents[2] / "app" / "db" / "seed_data.yaml"

    created = seed_all(db_session, seed_path)
    again = seed_all(db_session, seed_path)

    assert created > 0
    assert again == 0
    stats = video_service.stats(SHOP)
    assert stats.total == created
    assert stats.active < stats.total


@pytest.mark.unit
def test_seed_videos_per_shop(db_session, video_service):
    data = {"shops": {OTHER_SHOP: [_fields("x"), _fields("y")]}}

    assert seed_videos(db_session, data) == 2
    assert [v.sort_order for v in video_service.list(OTHER_SHOP).items] == [1, 2]


@pytest.mark.unit
def test_load_seed_yaml_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_seed_yaml(tmp_path / "missing.yaml")

    bad = tmp_path / "bad.yaml"
    bad.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_seed_yaml(bad)
