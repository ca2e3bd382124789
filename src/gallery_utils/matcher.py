"""Correlate export photos with gallery albums through album hashtags."""

from datetime import date, tzinfo

from loguru import logger

from gallery_utils.errors import ValidationError
from gallery_utils.models import AlbumMetadata, ImportSet, PhotoRecord


def _require_list_of(value: object, item_type: type, name: str) -> None:
    if not isinstance(value, list) or not all(isinstance(item, item_type) for item in value):
        msg = f"{name} parameter is required and must be a list of {item_type.__name__}"
        raise ValidationError(msg)


def build_import_list(
    photos: list[PhotoRecord],
    albums: list[AlbumMetadata],
) -> ImportSet:
    """
    Map photos to the albums whose hashtags appear in the photo caption.

    A photo lands in an album bucket when any of the album's hashtags is a
    case-sensitive substring of its caption. Buckets are keyed by the photo's
    identity key, so a photo appears at most once per album but may appear in
    several albums.

    Args:
        photos: Candidate photos from the export.
        albums: Albums that can receive photos.

    Returns:
        Album key -> identity key -> photo. Albums without matches are absent.

    Examples:
        >>> from pathlib import Path
        >>> photo = PhotoRecord(uri="a.jpg", taken_at=0, caption="Shelves #diy #diy")
        >>> album = AlbumMetadata(
        ...     hashtags=["diy"], index_path=Path("i"), album_path=Path("."), album_key="diy",
        ... )
        >>> list(build_import_list([photo], [album])["diy"])
        ['a.jpg']

    """
    _require_list_of(photos, PhotoRecord, "photos")
    _require_list_of(albums, AlbumMetadata, "albums")

    import_set: ImportSet = {}
    for album in albums:
        for hashtag in album.hashtags:
            for photo in photos:
                if hashtag in photo.caption:
                    bucket = import_set.setdefault(album.album_key, {})
                    bucket.setdefault(photo.uri, photo)

    logger.debug(
        "import_list_built",
        albums={key: len(bucket) for key, bucket in import_set.items()},
    )
    return import_set


def update_album_details(
    albums: list[AlbumMetadata],
    import_set: ImportSet,
    tz: tzinfo | None = None,
) -> list[AlbumMetadata]:
    """
    Move each receiving album's date forward to its newest imported photo.

    Every album present in ``import_set`` is flagged ``updated`` so its index
    document gets rewritten, whether or not its date changed.

    Args:
        albums: Albums as loaded from their index documents.
        import_set: Result of build_import_list.
        tz: Zone used to take the calendar day of a capture instant (local when None).

    Returns:
        The same album list, updated in place.

    """
    _require_list_of(albums, AlbumMetadata, "albums")
    if not isinstance(import_set, dict) or not all(
        isinstance(bucket, dict) for bucket in import_set.values()
    ):
        msg = "import_set parameter is required and must be a dict of dicts"
        raise ValidationError(msg)

    for album in albums:
        bucket = import_set.get(album.album_key)
        if not bucket:
            continue

        latest = _album_date(album)
        for photo in bucket.values():
            taken_on = photo.taken_at.astimezone(tz).date()
            if latest is None or taken_on > latest:
                latest = taken_on

        if latest is not None:
            album.date = latest.isoformat()
        album.updated = True
        logger.debug("album_date_updated", album=album.album_key, date=album.date)

    return albums


def _album_date(album: AlbumMetadata) -> date | None:
    if not album.date:
        return None
    try:
        return date.fromisoformat(album.date[:10])
    except ValueError as exc:
        msg = f"album {album.album_key} has an invalid date: {album.date}"
        raise ValidationError(msg) from exc
