"""Import retagged export photos into gallery albums and refresh the album index documents."""

import shutil
from dataclasses import dataclass
from datetime import tzinfo
from pathlib import Path

from loguru import logger

from gallery_utils.albums import get_album_details
from gallery_utils.config import ALBUMS_DIR_NAME, INDEX_BACKUP_SUFFIX
from gallery_utils.errors import ValidationError
from gallery_utils.export import filter_photo_list, get_photo_list
from gallery_utils.exiftool_session import ExifToolSession
from gallery_utils.front_matter import build_front_matter
from gallery_utils.matcher import build_import_list, update_album_details
from gallery_utils.models import AlbumMetadata, ImportCache, ImportSet, PhotoRecord
from gallery_utils.paths import require_directory
from gallery_utils.writer import MetadataWriter


@dataclass
class ImportSummary:
    """Counters for a finished import run."""

    photos_found: int = 0
    photos_after_filter: int = 0
    albums_found: int = 0
    albums_updated: int = 0
    photos_imported: int = 0
    photos_retagged: int = 0


class AlbumImporter:
    """
    Copies retagged photos into album directories.

    Each photo is retagged and renamed at most once per importer, even when it
    belongs to several albums; later albums reuse the cached record.
    """

    def __init__(
        self,
        content_dir: str | Path,
        writer: MetadataWriter,
        *,
        tz: tzinfo | None = None,
    ) -> None:
        self.content_dir = require_directory(content_dir, "content_dir")
        self.writer = writer
        self.tz = tz
        self.cache: ImportCache = {}

    @property
    def session(self) -> ExifToolSession:
        return self.writer.session

    def import_photo(self, album_key: str, photo: PhotoRecord) -> Path:
        """
        Copy a retagged photo into ``<content_dir>/albums/<album_key>``.

        Returns:
            Path of the copy inside the album directory.

        Raises:
            ValidationError: Missing album key, or a photo without ``new_path``.
            NotFoundError: The album directory does not exist.

        """
        if not album_key or not isinstance(album_key, str):
            msg = "album_key parameter is required and must be a string"
            raise ValidationError(msg)
        if not isinstance(photo, PhotoRecord) or photo.new_path is None:
            msg = "photo parameter is required and must be a retagged PhotoRecord"
            raise ValidationError(msg)

        album_dir = require_directory(self.content_dir / ALBUMS_DIR_NAME / album_key, "album_key")
        destination = album_dir / photo.new_path.name
        shutil.copyfile(photo.new_path, destination)
        logger.debug("photo_copied_to_album", album=album_key, file=destination.name)
        return destination

    def import_photos(self, import_set: ImportSet) -> int:
        """
        Retag (once) and copy every photo of every album bucket.

        The ExifTool session is closed afterwards, also when a photo fails.

        Returns:
            Number of album copies made.

        """
        if not isinstance(import_set, dict) or not all(
            isinstance(bucket, dict) for bucket in import_set.values()
        ):
            msg = "import_set parameter is required and must be a dict of dicts"
            raise ValidationError(msg)

        imported = 0
        try:
            for album_key, bucket in import_set.items():
                with logger.contextualize(album=album_key):
                    for key, photo in bucket.items():
                        cached = key in self.cache
                        if cached:
                            processed = self.cache[key]
                            logger.debug("photo_reused_from_cache", uri=key)
                        else:
                            processed = self.writer.update_exif_tags(photo)
                        self.import_photo(album_key, processed)
                        if not cached:
                            self.cache[key] = processed
                        imported += 1
        finally:
            self.session.close()

        return imported

    def update_index_files(self, albums: list[AlbumMetadata]) -> list[Path]:
        """
        Rewrite the index document of every album flagged as updated.

        The previous document is kept as ``<index>.old``. Only the title, date,
        subtitle, description and hashtags are written back.

        Returns:
            Paths of the rewritten index documents.

        """
        if not isinstance(albums, list) or not all(
            isinstance(album, AlbumMetadata) for album in albums
        ):
            msg = "albums parameter is required and must be a list of AlbumMetadata"
            raise ValidationError(msg)

        rewritten: list[Path] = []
        for album in albums:
            if not album.updated:
                continue
            front_matter = build_front_matter(album.front_matter_values())
            old_path = album.index_path.with_name(album.index_path.name + INDEX_BACKUP_SUFFIX)
            shutil.copyfile(album.index_path, old_path)
            album.index_path.write_text(front_matter, encoding="utf-8")
            logger.info("album_index_rewritten", album=album.album_key, date=album.date)
            rewritten.append(album.index_path)
        return rewritten

    def run(self, filter_date: str | None = None) -> ImportSummary:
        """Import every matching export photo into its albums and refresh album dates."""
        summary = ImportSummary()
        try:
            photos = get_photo_list(self.writer.input_dir)
            summary.photos_found = len(photos)
            logger.info("photos_found_in_export", count=len(photos))

            if filter_date is not None:
                photos = filter_photo_list(photos, filter_date, self.tz)
                logger.info("photos_taken_after", date=filter_date, count=len(photos))
            summary.photos_after_filter = len(photos)

            if not photos:
                logger.info("no_photos_to_import")
                return summary

            albums = get_album_details(self.content_dir)
            summary.albums_found = len(albums)
            logger.info("albums_found", count=len(albums))

            import_set = build_import_list(photos, albums)
            if not import_set:
                logger.info("no_albums_to_update")
                return summary
            logger.info("albums_to_update", count=len(import_set))

            summary.photos_imported = self.import_photos(import_set)
            summary.photos_retagged = len(self.cache)

            albums = update_album_details(albums, import_set, self.tz)
            summary.albums_updated = len(self.update_index_files(albums))
        finally:
            self.session.close()

        logger.success(
            "photos_imported_into_albums",
            imported=summary.photos_imported,
            retagged=summary.photos_retagged,
            albums=summary.albums_updated,
        )
        return summary
