"""Tests for copying photos into albums, the import cache and index rewrites."""

from datetime import UTC
from pathlib import Path

import pytest
from conftest import DIY_INDEX, NANOBLOCK_INDEX, TS_JUNE

from gallery_utils.albums import get_album_details
from gallery_utils.errors import NotFoundError, ValidationError
from gallery_utils.export import get_photo_list
from gallery_utils.front_matter import parse_front_matter
from gallery_utils.importer import AlbumImporter
from gallery_utils.matcher import build_import_list, update_album_details
from gallery_utils.models import PhotoRecord
from gallery_utils.writer import MetadataWriter

JUNE_NAME = "20200628-005017+0000-ig.jpg"
DECEMBER_NAME = "20201201-000000+0000-ig.jpg"


@pytest.fixture
def importer(export_dir: Path, content_dir: Path, fake_session: object) -> AlbumImporter:
    writer = MetadataWriter(export_dir, fake_session, tz=UTC)  # type: ignore[arg-type]
    return AlbumImporter(content_dir, writer, tz=UTC)


def test_import_photo_copies_into_the_album(importer: AlbumImporter, tmp_path: Path) -> None:
    """The retagged file is copied under its canonical name."""
    retagged = tmp_path / JUNE_NAME
    retagged.write_bytes(b"tagged")
    photo = PhotoRecord(uri="a.jpg", taken_at=TS_JUNE, new_path=retagged)

    destination = importer.import_photo("diy-projects", photo)

    assert destination == importer.content_dir / "albums" / "diy-projects" / JUNE_NAME
    assert destination.read_bytes() == b"tagged"
    assert retagged.exists()


@pytest.mark.parametrize("album_key", [None, "", 3])
def test_import_photo_requires_an_album_key(importer: AlbumImporter, album_key: object) -> None:
    """The album key must be a non-empty string."""
    photo = PhotoRecord(uri="a.jpg", taken_at=TS_JUNE, new_path=Path("x.jpg"))
    with pytest.raises(ValidationError, match="album_key parameter is required"):
        importer.import_photo(album_key, photo)  # type: ignore[arg-type]


@pytest.mark.parametrize(
    "photo",
    [None, "photo.jpg", PhotoRecord(uri="a.jpg", taken_at=TS_JUNE)],
)
def test_import_photo_requires_a_retagged_photo(importer: AlbumImporter, photo: object) -> None:
    """The photo must be a record that already has its new path."""
    with pytest.raises(ValidationError, match="photo parameter is required"):
        importer.import_photo("diy-projects", photo)  # type: ignore[arg-type]


def test_import_photo_missing_album_directory(importer: AlbumImporter) -> None:
    """An album key without a directory is a filesystem error."""
    photo = PhotoRecord(uri="a.jpg", taken_at=TS_JUNE, new_path=Path("x.jpg"))
    with pytest.raises(NotFoundError):
        importer.import_photo("no-such-album", photo)


def test_import_photos_retags_each_photo_once(
    importer: AlbumImporter,
    export_dir: Path,
    content_dir: Path,
    fake_session: object,
) -> None:
    """A photo shared by two albums is retagged once and copied into both."""
    import_set = build_import_list(get_photo_list(export_dir), get_album_details(content_dir))

    imported = importer.import_photos(import_set)

    assert imported == 3
    written = [path.name for path, _ in fake_session.writes]  # type: ignore[attr-defined]
    assert written == ["june.jpg", "december.jpg"]
    assert sorted(importer.cache) == [
        "media/posts/202006/june.jpg",
        "media/posts/202012/december.jpg",
    ]

    albums = content_dir / "albums"
    assert sorted(p.name for p in (albums / "diy-projects").glob("*.jpg")) == [
        JUNE_NAME,
        DECEMBER_NAME,
    ]
    assert [p.name for p in (albums / "nanoblock-models").glob("*.jpg")] == [DECEMBER_NAME]
    assert (export_dir / "media/posts/202012" / DECEMBER_NAME).exists()
    assert fake_session.close_calls == 1  # type: ignore[attr-defined]


def test_import_photos_reuses_the_cached_new_path(
    importer: AlbumImporter,
    export_dir: Path,
    fake_session: object,
) -> None:
    """A photo processed by an earlier call is not retagged again."""
    photo = get_photo_list(export_dir)[0]
    importer.import_photos({"diy-projects": {photo.uri: photo}})
    importer.import_photos({"nanoblock-models": {photo.uri: photo}})

    assert len(fake_session.writes) == 1  # type: ignore[attr-defined]
    cached = importer.cache[photo.uri]
    assert cached.new_path is not None
    copy = importer.content_dir / "albums" / "nanoblock-models" / cached.new_path.name
    assert copy.exists()


def test_import_photos_closes_the_session_on_failure(
    importer: AlbumImporter,
    export_dir: Path,
    fake_session: object,
) -> None:
    """An error aborts the run but still releases ExifTool."""
    photo = get_photo_list(export_dir)[0]

    with pytest.raises(NotFoundError):
        importer.import_photos({"no-such-album": {photo.uri: photo}})
    assert fake_session.close_calls == 1  # type: ignore[attr-defined]


@pytest.mark.parametrize("import_set", [None, [], {"diy-projects": ["a.jpg"]}])
def test_import_photos_validates_the_import_set(
    importer: AlbumImporter,
    import_set: object,
) -> None:
    """The import set must map album keys to photo buckets."""
    with pytest.raises(ValidationError, match="import_set parameter is required"):
        importer.import_photos(import_set)  # type: ignore[arg-type]


def test_update_index_files_rewrites_updated_albums(
    importer: AlbumImporter,
    export_dir: Path,
    content_dir: Path,
) -> None:
    """Updated albums get a fresh front matter block and an .old backup; others are untouched."""
    albums = get_album_details(content_dir)
    import_set = build_import_list(get_photo_list(export_dir)[:1], albums)
    albums = update_album_details(albums, import_set, UTC)

    rewritten = importer.update_index_files(albums)

    diy_index = content_dir / "albums" / "diy-projects" / "index.md"
    nanoblock_index = content_dir / "albums" / "nanoblock-models" / "index.md"
    assert rewritten == [diy_index]
    assert (diy_index.parent / "index.md.old").read_text(encoding="utf-8") == DIY_INDEX
    assert parse_front_matter(diy_index.read_text(encoding="utf-8")) == {
        "title": "DIY Projects",
        "date": "2020-07-01",
        "subtitle": "Things I made",
        "description": "Shelves and more",
        "hashtags": ["diy"],
    }
    assert diy_index.read_text(encoding="utf-8").startswith('+++\ntitle = "DIY Projects"\n')
    assert nanoblock_index.read_text(encoding="utf-8") == NANOBLOCK_INDEX
    assert not (nanoblock_index.parent / "index.md.old").exists()


def test_update_index_files_drops_unlisted_fields(
    importer: AlbumImporter,
    content_dir: Path,
) -> None:
    """Only title, date, subtitle, description and hashtags survive a rewrite."""
    albums = get_album_details(content_dir)
    nanoblock = albums[1]
    nanoblock.updated = True

    importer.update_index_files([nanoblock])

    rewritten = nanoblock.index_path.read_text(encoding="utf-8")
    assert "layout" not in rewritten
    assert "Some album text." not in rewritten
    assert rewritten.endswith("+++\n")


def test_update_index_files_leaves_out_a_missing_title(
    importer: AlbumImporter,
    content_dir: Path,
) -> None:
    """An album without a title is not given an empty one on rewrite."""
    album_dir = content_dir / "albums" / "untitled"
    album_dir.mkdir()
    (album_dir / "index.md").write_text('+++\nhashtags = ["diy"]\n+++\n', encoding="utf-8")
    albums = get_album_details(content_dir)
    untitled = next(album for album in albums if album.album_key == "untitled")
    untitled.updated = True

    importer.update_index_files([untitled])

    assert (album_dir / "index.md").read_text(encoding="utf-8") == '+++\nhashtags = ["diy"]\n+++\n'


@pytest.mark.parametrize("albums", [None, {}, ["album"]])
def test_update_index_files_validates_albums(importer: AlbumImporter, albums: object) -> None:
    """Albums must be a list of AlbumMetadata."""
    with pytest.raises(ValidationError, match="albums parameter is required"):
        importer.update_index_files(albums)  # type: ignore[arg-type]


def test_run_imports_and_updates_albums(
    importer: AlbumImporter,
    content_dir: Path,
    fake_session: object,
) -> None:
    """A full run imports matching photos, moves album dates and reports counts."""
    summary = importer.run()

    assert summary.photos_found == 3
    assert summary.photos_after_filter == 3
    assert summary.albums_found == 2
    assert summary.photos_imported == 3
    assert summary.photos_retagged == 2
    assert summary.albums_updated == 2
    diy = parse_front_matter(
        (content_dir / "albums" / "diy-projects" / "index.md").read_text(encoding="utf-8"),
    )
    assert diy is not None
    assert diy["date"] == "2020-12-01"
    assert fake_session.close_calls >= 1  # type: ignore[attr-defined]


def test_run_with_filter_date(importer: AlbumImporter, fake_session: object) -> None:
    """The filter keeps only photos taken on or after the date."""
    summary = importer.run("2020-12-01")

    assert summary.photos_after_filter == 1
    assert summary.photos_imported == 2
    assert [path.name for path, _ in fake_session.writes] == ["december.jpg"]  # type: ignore[attr-defined]


def test_run_without_matching_photos(importer: AlbumImporter, fake_session: object) -> None:
    """Nothing is written when the filter leaves no photos."""
    summary = importer.run("2030-01-01")

    assert summary.photos_after_filter == 0
    assert summary.photos_imported == 0
    assert fake_session.writes == []  # type: ignore[attr-defined]


def test_run_rejects_invalid_filter_dates(importer: AlbumImporter, fake_session: object) -> None:
    """A bad filter date aborts the run and still closes the session."""
    with pytest.raises(ValidationError):
        importer.run("not-a-date")
    assert fake_session.close_calls == 1  # type: ignore[attr-defined]
