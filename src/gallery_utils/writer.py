"""
Retag an exported photo and give it its canonical, timestamp-based name.

ExifTool writes the new tags in place and keeps the untouched file at
``<path>_original``. The writer then commits in two renames:

1. the tagged file moves to its canonical name,
2. ``<path>_original`` moves back to ``<path>``.

A crash between the two steps leaves the pair half-finished; ``recover_rename``
detects that state and completes or rolls it back.
"""

import unicodedata
from datetime import datetime, tzinfo
from enum import StrEnum
from pathlib import Path
from typing import Any

from loguru import logger

from gallery_utils.config import (
    CANONICAL_NAME_FORMAT,
    CANONICAL_NAME_SUFFIX,
    DEFAULT_CAPTION_ENCODING,
    EXIFTOOL_BACKUP_SUFFIX,
    MARKER_KEYWORDS,
    SUBJECT_DATE_FORMAT,
    CaptionEncoding,
)
from gallery_utils.errors import ValidationError
from gallery_utils.exiftool_session import ExifToolSession
from gallery_utils.models import PhotoRecord
from gallery_utils.paths import require_directory, require_file
from gallery_utils.tags import get_tags


class RecoveryAction(StrEnum):
    NOTHING = "nothing"
    COMPLETED = "completed"
    ROLLED_BACK = "rolled_back"


def decode_facebook_string(text: str) -> str:
    """
    Undo the Latin-1 mis-encoding of UTF-8 text found in Facebook/Instagram exports.

    Text that does not survive the round trip is returned unchanged.

    Examples:
        >>> decode_facebook_string("Caf\\u00c3\\u00a9 time")
        'Café time'
        >>> decode_facebook_string("plain")
        'plain'

    """
    if not isinstance(text, str):
        msg = "text parameter is required and must be a string"
        raise ValidationError(msg)
    try:
        return text.encode("latin-1").decode("utf-8")
    except (UnicodeEncodeError, UnicodeDecodeError):
        logger.debug("caption_not_latin1_encoded")
        return text


def transliterate_ascii(text: str) -> str:
    """
    Reduce ``text`` to plain ASCII, dropping what has no ASCII counterpart.

    Examples:
        >>> transliterate_ascii("Crème brûlée 🍮")
        'Creme brulee '

    """
    if not isinstance(text, str):
        msg = "text parameter is required and must be a string"
        raise ValidationError(msg)
    decomposed = unicodedata.normalize("NFKD", text)
    return decomposed.encode("ascii", "ignore").decode("ascii")


def caption_descriptions(caption: str, encoding: CaptionEncoding) -> tuple[str, str]:
    """Return ``(xmp_description, image_description)`` for a caption under a fix-up profile."""
    if encoding is CaptionEncoding.FACEBOOK:
        decoded = decode_facebook_string(caption)
        return decoded, decoded
    if encoding is CaptionEncoding.ASCII:
        return caption, transliterate_ascii(caption)
    return caption, caption


def canonical_name(photo: PhotoRecord, tz: tzinfo | None = None) -> str:
    """
    Return the canonical file name of a photo: capture time, UTC offset, ``-ig`` and extension.

    Examples:
        >>> from datetime import UTC
        >>> photo = PhotoRecord(uri="media/posts/202006/1234.jpg", taken_at=1593305417)
        >>> canonical_name(photo, UTC)
        '20200628-005017+0000-ig.jpg'

    """
    taken_at = photo.taken_at.astimezone(tz)
    extension = Path(photo.uri).suffix
    return f"{taken_at.strftime(CANONICAL_NAME_FORMAT)}{CANONICAL_NAME_SUFFIX}{extension}"


def _exiftool_datetime(value: datetime) -> str:
    """
    Format an aware datetime the way ExifTool expects date/time values.

    Examples:
        >>> from datetime import timedelta, timezone
        >>> _exiftool_datetime(datetime(2020, 11, 28, 14, 7, 35, tzinfo=timezone(timedelta(hours=10, minutes=30))))
        '2020:11:28 14:07:35+10:30'

    """
    offset = value.strftime("%z")
    return f"{value.strftime('%Y:%m:%d %H:%M:%S')}{offset[:3]}:{offset[3:]}"


def backup_path(source_path: Path) -> Path:
    return source_path.with_name(source_path.name + EXIFTOOL_BACKUP_SUFFIX)


def recover_rename(source_path: str | Path) -> RecoveryAction:
    """
    Finish or undo a rename pair interrupted after ExifTool wrote its tags.

    - backup and source both present: the tagged file never got its canonical
      name, so the original is restored over it (rolled back);
    - backup present, source missing: the tagged file already moved, so the
      original is moved back into place (completed);
    - no backup: nothing was left half-done.
    """
    if not source_path or not isinstance(source_path, (str, Path)):
        msg = "source_path parameter is required and must be a string or Path"
        raise ValidationError(msg)
    source = Path(source_path)
    backup = backup_path(source)

    if not backup.exists():
        return RecoveryAction.NOTHING

    if source.exists():
        backup.replace(source)
        logger.warning("rename_rolled_back", file=str(source))
        return RecoveryAction.ROLLED_BACK

    backup.rename(source)
    logger.warning("rename_completed", file=str(source))
    return RecoveryAction.COMPLETED


class MetadataWriter:
    """Writes export metadata into photos under an export root and renames them."""

    def __init__(
        self,
        input_dir: str | Path,
        session: ExifToolSession,
        *,
        caption_encoding: CaptionEncoding = DEFAULT_CAPTION_ENCODING,
        tz: tzinfo | None = None,
    ) -> None:
        self.input_dir = require_directory(input_dir, "input_dir")
        self.session = session
        self.caption_encoding = CaptionEncoding(caption_encoding)
        self.tz = tz

    def build_tags(self, photo: PhotoRecord) -> dict[str, Any]:
        """Return the tag mapping written to a photo."""
        taken_at = photo.taken_at.astimezone(self.tz)
        xmp_description, image_description = caption_descriptions(
            photo.caption,
            self.caption_encoding,
        )

        subject = [taken_at.strftime(SUBJECT_DATE_FORMAT), *MARKER_KEYWORDS]
        subject.extend(get_tags(xmp_description))

        tags: dict[str, Any] = {
            "AllDates": _exiftool_datetime(taken_at),
            "XMP-dc:Description": xmp_description,
            "XMP-dc:Subject": subject,
            "EXIF:ImageDescription": image_description,
        }

        if photo.has_gps:
            latitude = float(photo.latitude)  # type: ignore[arg-type]
            longitude = float(photo.longitude)  # type: ignore[arg-type]
            tags["GPSLatitude"] = abs(latitude)
            tags["GPSLatitudeRef"] = "N" if latitude >= 0 else "S"
            tags["GPSLongitude"] = abs(longitude)
            tags["GPSLongitudeRef"] = "E" if longitude >= 0 else "W"

        if photo.location:
            tags["XMP-iptcCore:Location"] = photo.location

        return tags

    def update_exif_tags(self, photo: PhotoRecord) -> PhotoRecord:
        """
        Retag a photo and rename the tagged copy to its canonical name.

        Args:
            photo: Export record; ``uri`` is relative to the export root.

        Returns:
            A copy of the record with ``new_path`` pointing at the renamed file.
            The original file is back at its original path, untouched.

        Raises:
            ValidationError: ``photo`` is not a PhotoRecord.
            NotFoundError: The photo file is missing from the export.

        """
        if not isinstance(photo, PhotoRecord):
            msg = "photo parameter is required and must be a PhotoRecord"
            raise ValidationError(msg)

        source = require_file(self.input_dir / photo.uri, "photo")
        target = source.with_name(canonical_name(photo, self.tz))

        with logger.contextualize(file=photo.uri):
            self.session.set_tags(source, self.build_tags(photo))

            if target.exists():
                logger.warning("canonical_name_taken_overwriting", new_name=target.name)
            # Step 1: the tagged file takes the canonical name
            source.replace(target)
            # Step 2: the untouched original returns to its path
            backup_path(source).rename(source)

            logger.info("photo_retagged", new_name=target.name)

        return photo.model_copy(update={"new_path": target})
