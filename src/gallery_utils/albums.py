"""Discover gallery albums by parsing the front matter of their index documents."""

from pathlib import Path

import pydantic
from loguru import logger

from gallery_utils.config import INDEX_FILE_NAME
from gallery_utils.errors import ValidationError
from gallery_utils.front_matter import parse_front_matter
from gallery_utils.models import AlbumMetadata
from gallery_utils.paths import require_directory


def find_index_documents(content_dir: Path) -> list[Path]:
    """Return every album index document below ``content_dir`` in sorted order."""
    return sorted(path for path in content_dir.rglob(INDEX_FILE_NAME) if path.is_file())


def get_album_details(content_dir: str | Path) -> list[AlbumMetadata]:
    """
    Load the metadata of every album that can receive imported photos.

    Index documents without front matter, or whose front matter has no
    ``hashtags`` list, are not import targets and are left out.

    Args:
        content_dir: Root of the gallery content tree.

    Returns:
        One AlbumMetadata per importable album, annotated with its index
        document path, its directory and its album key (the directory name).

    Raises:
        ValidationError: A front matter block is not valid TOML or has bad values.

    """
    root = require_directory(content_dir, "content_dir")

    albums: list[AlbumMetadata] = []
    for index_path in find_index_documents(root):
        content = index_path.read_text(encoding="utf-8")
        try:
            values = parse_front_matter(content)
        except ValidationError as exc:
            msg = f"{index_path}: {exc}"
            raise ValidationError(msg) from exc

        if values is None or values.get("hashtags") is None:
            continue

        album_path = index_path.parent
        try:
            album = AlbumMetadata.model_validate(
                {
                    **values,
                    "index_path": index_path,
                    "album_path": album_path,
                    "album_key": album_path.name,
                },
            )
        except pydantic.ValidationError as exc:
            msg = f"{index_path}: album front matter is malformed: {exc}"
            raise ValidationError(msg) from exc

        logger.debug(
            "album_loaded",
            album=album.album_key,
            hashtags=album.hashtags,
            date=album.date,
        )
        albums.append(album)

    return albums
