"""Promote album photos into the flat top-level gallery, one page per photo."""

import re
import shutil
from pathlib import Path
from typing import Any

from loguru import logger

from gallery_utils.config import (
    ALBUMS_DIR_NAME,
    GALLERY_PHOTO_GLOB,
    INDEX_FILE_NAME,
    PHOTOS_DIR_NAME,
)
from gallery_utils.errors import MetadataMissingError, ValidationError
from gallery_utils.exiftool_session import ExifToolSession
from gallery_utils.front_matter import build_front_matter
from gallery_utils.models import GalleryPhotoMap
from gallery_utils.paths import require_directory
from gallery_utils.tags import get_tags

PHOTO_NAME_PATTERN = re.compile(r"\d{8}-\d{6}")
EXIF_GROUP = "EXIF:"
EXIF_ALL_TAGS = "EXIF:all"
DESCRIPTION_TAG = "EXIF:ImageDescription"
DATE_TAGS = ("EXIF:CreateDate", "EXIF:DateTimeOriginal")


def get_photo_name(photo_file_name: str | Path) -> str | None:
    """
    Return the ``YYYYMMDD-HHMMSS`` key embedded in a photo file name, or None.

    Examples:
        >>> get_photo_name("20200628-005017+0000-ig.jpg")
        '20200628-005017'
        >>> get_photo_name("2020062a-005017+0000-ig.jpg") is None
        True

    """
    if not photo_file_name or not isinstance(photo_file_name, (str, Path)):
        msg = "photo_file_name parameter is required and must be a string or Path"
        raise ValidationError(msg)

    match = PHOTO_NAME_PATTERN.search(Path(photo_file_name).stem)
    return match.group(0) if match else None


def build_album_map(album_photos: list[Path]) -> GalleryPhotoMap:
    """
    Index album photos by their name key; names without a key are dropped.

    When two photos share a key the later one wins.
    """
    if not isinstance(album_photos, list):
        msg = "album_photos parameter is required and must be a list"
        raise ValidationError(msg)

    album_map: GalleryPhotoMap = {}
    for photo_path in album_photos:
        key = get_photo_name(photo_path)
        if key is not None:
            album_map[key] = Path(photo_path)
    return album_map


def filter_album_photos(album_map: GalleryPhotoMap, gallery_photos: list[str]) -> GalleryPhotoMap:
    """Remove the photos that already have a gallery entry of the same name."""
    if not isinstance(album_map, dict):
        msg = "album_map parameter is required and must be a dict"
        raise ValidationError(msg)
    if not isinstance(gallery_photos, list):
        msg = "gallery_photos parameter is required and must be a list"
        raise ValidationError(msg)

    for name in gallery_photos:
        album_map.pop(name, None)
    return album_map


def build_toml_front_matter(tag_map: dict[str, Any]) -> str:
    """
    Render a gallery page's tag map as front matter.

    Examples:
        >>> print(build_toml_front_matter({"title": "T", "date": "2020-08-29", "albumname": "A"}), end="")
        +++
        title = "T"
        date = "2020-08-29"
        albumname = "A"
        +++

    """
    if not isinstance(tag_map, dict):
        msg = "tag_map parameter is required and must be a dict"
        raise ValidationError(msg)
    return build_front_matter(tag_map)


def _exif_date(value: Any) -> str:  # noqa: ANN401
    """
    Return the calendar day of an EXIF date/time value as ``YYYY-MM-DD``.

    Examples:
        >>> _exif_date("2020:08:30 10:15:00")
        '2020-08-30'

    """
    return str(value)[:10].replace(":", "-")


class GalleryPromoter:
    """Copies album photos missing from ``photos/`` into their own gallery entries."""

    def __init__(self, input_dir: str | Path, session: ExifToolSession) -> None:
        self.input_dir = require_directory(input_dir, "input_dir")
        self.albums_path = require_directory(self.input_dir / ALBUMS_DIR_NAME, "albums")
        self.photos_path = require_directory(self.input_dir / PHOTOS_DIR_NAME, "photos")
        self.session = session

    def get_album_photos(self) -> list[Path]:
        return sorted(self.albums_path.glob(GALLERY_PHOTO_GLOB))

    def get_gallery_photos(self) -> list[str]:
        """Return the names of the existing top-level gallery entries."""
        return sorted(entry.name for entry in self.photos_path.iterdir() if entry.is_dir())

    def get_exif_data(self, photo_file_path: str | Path) -> dict[str, Any]:
        """
        Read the values of a gallery page from a photo's embedded metadata.

        Returns:
            ``title``, ``date`` and ``albumname`` (always present, possibly
            empty) followed by ``tags`` when the description carries hashtags.

        Raises:
            ValidationError: The path argument is missing or of the wrong type.
            MetadataMissingError: The photo carries no EXIF data at all.

        """
        if not photo_file_path or not isinstance(photo_file_path, (str, Path)):
            msg = "photo_file_path parameter is required and must be a string or Path"
            raise ValidationError(msg)
        photo_path = Path(photo_file_path)

        found = {
            tag: value
            for tag, value in self.session.get_tags(photo_path, [EXIF_ALL_TAGS]).items()
            if tag.startswith(EXIF_GROUP)
        }
        if not found:
            msg = f"No Exif data found in: {photo_path}"
            raise MetadataMissingError(msg)

        tag_map: dict[str, Any] = {"title": "", "date": "", "albumname": photo_path.parent.name}

        description = found.get(DESCRIPTION_TAG)
        if description not in (None, ""):
            tag_map["title"] = str(description)

        taken = next((found[tag] for tag in DATE_TAGS if found.get(tag)), None)
        if taken is not None:
            tag_map["date"] = _exif_date(taken)

        if hashtags := get_tags(tag_map["title"]):
            tag_map["tags"] = hashtags

        return tag_map

    def copy_album_photos(self, album_map: GalleryPhotoMap) -> list[Path]:
        """
        Create a gallery entry (directory, photo copy, index page) per map entry.

        Returns:
            The created gallery entry directories.

        """
        if not isinstance(album_map, dict) or not all(
            isinstance(key, str) and isinstance(photo_path, Path)
            for key, photo_path in album_map.items()
        ):
            msg = "album_map parameter is required and must map name keys to Paths"
            raise ValidationError(msg)

        created: list[Path] = []
        for key, photo_path in album_map.items():
            with logger.contextualize(photo=key):
                front_matter = build_toml_front_matter(self.get_exif_data(photo_path))

                entry_dir = self.photos_path / key
                entry_dir.mkdir()
                shutil.copyfile(photo_path, entry_dir / photo_path.name)
                (entry_dir / INDEX_FILE_NAME).write_text(front_matter, encoding="utf-8")
                logger.debug("gallery_entry_created", album=photo_path.parent.name)
                created.append(entry_dir)
        return created

    def run(self) -> int:
        """Promote every album photo missing from the gallery; return how many were copied."""
        try:
            album_photos = self.get_album_photos()
            logger.info("photos_found_in_albums", count=len(album_photos))

            album_map = build_album_map(album_photos)
            gallery_photos = self.get_gallery_photos()
            logger.info("photos_found_in_gallery", count=len(gallery_photos))

            new_photos = filter_album_photos(album_map, gallery_photos)
            logger.info("photos_to_copy", count=len(new_photos))

            created = self.copy_album_photos(new_photos)
        finally:
            self.session.close()

        logger.success("photos_copied_into_gallery", count=len(created))
        return len(created)
