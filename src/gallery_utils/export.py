"""Load photo records from an Instagram data export."""

import json
from datetime import date, datetime, time, tzinfo
from pathlib import Path

import pydantic
from loguru import logger

from gallery_utils.config import EXPORT_POSTS_PATH
from gallery_utils.errors import NotFoundError, ValidationError
from gallery_utils.models import PhotoRecord
from gallery_utils.paths import require_directory, require_file


def get_photo_list(input_dir: str | Path) -> list[PhotoRecord]:
    """
    Read the photo records listed in the export's posts document.

    Every post contributes its first media entry; posts without media are skipped.

    Args:
        input_dir: Root directory of the unpacked export.

    Returns:
        Photo records in document order.

    Raises:
        NotFoundError: The posts document is missing.
        ValidationError: The document is not valid JSON or a record is malformed.

    """
    root = require_directory(input_dir, "input_dir")
    posts_path = root / EXPORT_POSTS_PATH
    try:
        require_file(posts_path)
    except (NotFoundError, ValidationError) as exc:
        msg = f"{EXPORT_POSTS_PATH.as_posix()} file not found in input directory"
        raise NotFoundError(msg) from exc

    try:
        posts = json.loads(posts_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        msg = f"{posts_path} is not valid JSON: {exc}"
        raise ValidationError(msg) from exc

    if not isinstance(posts, list):
        msg = f"{posts_path} must contain a list of posts"
        raise ValidationError(msg)

    photos: list[PhotoRecord] = []
    for index, post in enumerate(posts):
        media = post.get("media") if isinstance(post, dict) else None
        if not media:
            logger.debug("post_without_media_skipped", index=index)
            continue
        try:
            photos.append(PhotoRecord.model_validate(media[0]))
        except pydantic.ValidationError as exc:
            msg = f"post {index} in {posts_path} is not a valid photo record: {exc}"
            raise ValidationError(msg) from exc

    logger.debug("export_photos_loaded", file=str(posts_path), count=len(photos))
    return photos


def parse_filter_date(after_date: str, tz: tzinfo | None = None) -> datetime:
    """
    Return local midnight of a ``YYYY-MM-DD`` date in ``tz`` (the local zone when None).

    Examples:
        >>> from datetime import UTC
        >>> parse_filter_date("2020-12-01", UTC).isoformat()
        '2020-12-01T00:00:00+00:00'

    """
    if not after_date or not isinstance(after_date, str):
        msg = "after_date parameter is required and must be a string"
        raise ValidationError(msg)
    try:
        day = date.fromisoformat(after_date)
    except ValueError as exc:
        msg = "after_date parameter must represent a date in yyyy-mm-dd format"
        raise ValidationError(msg) from exc

    midnight = datetime.combine(day, time.min)
    if tz is None:
        return midnight.astimezone()
    return midnight.replace(tzinfo=tz)


def filter_photo_list(
    photos: list[PhotoRecord],
    after_date: str,
    tz: tzinfo | None = None,
) -> list[PhotoRecord]:
    """Return the photos taken on or after ``after_date``, keeping their order."""
    if not isinstance(photos, list) or not all(isinstance(photo, PhotoRecord) for photo in photos):
        msg = "photos parameter is required and must be a list of PhotoRecord"
        raise ValidationError(msg)

    threshold = parse_filter_date(after_date, tz)
    return [photo for photo in photos if photo.taken_at >= threshold]
