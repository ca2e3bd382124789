"""Configuration defaults and fixed conventions shared by the gallery commands."""

import os
from datetime import tzinfo
from enum import StrEnum
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from gallery_utils.errors import ValidationError


class CaptionEncoding(StrEnum):
    """How an export caption is fixed up before it becomes an image description."""

    # Latin-1 code points re-read as UTF-8 bytes (Facebook/Instagram JSON exports)
    FACEBOOK = "facebook"
    # Unicode kept in XMP, ASCII transliteration for EXIF:ImageDescription
    ASCII = "ascii"
    NONE = "none"


# Configuration defaults
DEFAULT_CAPTION_ENCODING = CaptionEncoding(
    os.getenv("GALLERY_UTILS_CAPTION_ENCODING", CaptionEncoding.FACEBOOK.value),
)
DEFAULT_TIMEZONE = os.getenv("GALLERY_UTILS_TIMEZONE", "")
DEFAULT_LOG_FOLDER = Path(os.getenv("GALLERY_UTILS_LOG_FOLDER", "logs"))

# Export layout
EXPORT_POSTS_PATH = Path("content") / "posts_1.json"

# Gallery layout
INDEX_FILE_NAME = "index.md"
ALBUMS_DIR_NAME = "albums"
PHOTOS_DIR_NAME = "photos"
GALLERY_PHOTO_GLOB = "**/*.jpg"

# Front matter and backups
FRONT_MATTER_DELIMITER = "+++"
INDEX_BACKUP_SUFFIX = ".old"
EXIFTOOL_BACKUP_SUFFIX = "_original"

# Canonical naming and keywords
CANONICAL_NAME_FORMAT = "%Y%m%d-%H%M%S%z"
CANONICAL_NAME_SUFFIX = "-ig"
SUBJECT_DATE_FORMAT = "%Y%m%d"
MARKER_KEYWORDS = ("Instagram", "igphotos")


def resolve_timezone(name: str | None) -> tzinfo | None:
    """
    Turn a zone name into a tzinfo; an empty name means the machine's local zone.

    Examples:
        >>> resolve_timezone("") is None
        True
        >>> resolve_timezone("UTC")
        zoneinfo.ZoneInfo(key='UTC')

    """
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        msg = f"unknown timezone: {name}"
        raise ValidationError(msg) from exc
