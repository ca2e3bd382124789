"""Shared fixtures: an Instagram export tree, a gallery content tree and a fake ExifTool."""

import json
import shutil
from pathlib import Path
from typing import Any

import pytest

# 2020-06-28 00:50:17 UTC
TS_JUNE = 1593305417
# 2020-12-01 00:00:00 UTC
TS_DECEMBER = 1606780800
# 2020-11-30 23:59:59 UTC
TS_NOVEMBER = TS_DECEMBER - 1

ORIGINAL_BYTES = b"\xff\xd8original-jpeg"


class FakeExifToolSession:
    """Stands in for ExifToolSession: records writes, mimics the '_original' backup."""

    def __init__(
        self,
        tags_by_name: dict[str, dict[str, Any]] | None = None,
        default_tags: dict[str, Any] | None = None,
    ) -> None:
        self.tags_by_name = tags_by_name or {}
        self.default_tags = default_tags
        self.writes: list[tuple[Path, dict[str, Any]]] = []
        self.reads: list[Path] = []
        self.close_calls = 0

    def set_tags(self, image_path: Path, tags: dict[str, Any]) -> None:
        self.writes.append((image_path, dict(tags)))
        shutil.copyfile(image_path, image_path.with_name(image_path.name + "_original"))
        image_path.write_bytes(image_path.read_bytes() + b"+tagged")

    def get_tags(self, image_path: Path, tags: list[str]) -> dict[str, Any]:
        self.reads.append(image_path)
        found = self.tags_by_name.get(image_path.name, self.default_tags) or {}
        # exiftool always reports SourceFile; "<group>:all" selects a whole group
        selected: dict[str, Any] = {"SourceFile": str(image_path)}
        for tag, value in found.items():
            if tag in tags or f"{tag.split(':')[0]}:all" in tags:
                selected[tag] = value
        return selected

    def close(self) -> None:
        self.close_calls += 1


@pytest.fixture
def fake_session() -> FakeExifToolSession:
    return FakeExifToolSession()


def _post(uri: str, timestamp: int | str, title: str, **extra: Any) -> dict[str, Any]:  # noqa: ANN401
    return {"media": [{"uri": uri, "creation_timestamp": timestamp, "title": title, **extra}]}


@pytest.fixture
def export_dir(tmp_path: Path) -> Path:
    """
    Export with four photos.

    - june.jpg: '#diy' with coordinates
    - december.jpg: '#nanoblock' and '#diy'
    - november.jpg: no hashtag, one second before 2020-12-01
    - a post without media
    """
    root = tmp_path / "instagram"
    posts = [
        _post(
            "media/posts/202006/june.jpg",
            TS_JUNE,
            "Made these shelves myself #diy",
            media_metadata={"photo_metadata": {"latitude": -34.9285, "longitude": 138.6007}},
        ),
        _post("media/posts/202012/december.jpg", TS_DECEMBER, "Tiny bricks #nanoblock #diy"),
        _post("media/posts/202011/november.jpg", TS_NOVEMBER, "Lunch"),
        {"media": []},
    ]
    for post in posts:
        for media in post["media"]:
            photo = root / media["uri"]
            photo.parent.mkdir(parents=True, exist_ok=True)
            photo.write_bytes(ORIGINAL_BYTES)

    content = root / "content"
    content.mkdir(parents=True)
    (content / "posts_1.json").write_text(json.dumps(posts), encoding="utf-8")
    return root


DIY_INDEX = """+++
title = "DIY Projects"
date = 2020-07-01
subtitle = "Things I made"
description = "Shelves and more"
hashtags = ["diy"]
+++
"""

NANOBLOCK_INDEX = """+++
title = "Nanoblock Models"
date = "2020-12-15"
subtitle = "Small builds"
description = "Micro-sized bricks"
hashtags = ["nanoblock"]
layout = "album"
+++

Some album text.
"""

NO_HASHTAGS_INDEX = """+++
title = "Travel"
date = "2019-01-01"
+++
"""


@pytest.fixture
def content_dir(tmp_path: Path) -> Path:
    """Gallery content with two importable albums, one album without hashtags and a plain page."""
    root = tmp_path / "content"
    for key, index in (
        ("diy-projects", DIY_INDEX),
        ("nanoblock-models", NANOBLOCK_INDEX),
        ("travel", NO_HASHTAGS_INDEX),
    ):
        album = root / "albums" / key
        album.mkdir(parents=True)
        (album / "index.md").write_text(index, encoding="utf-8")

    about = root / "about"
    about.mkdir(parents=True)
    (about / "index.md").write_text("Just a page.\n", encoding="utf-8")
    (root / "photos").mkdir()
    return root
