#!/usr/bin/env python3
"""
Gallery Utils: CLI app that helps build a photo gallery website.

Commands:
 - photo-pages: copy album photos missing from the top-level gallery into their own
   gallery entries, each with an index page built from the photo's embedded metadata.
 - import-photos: retag photos from an Instagram data export, give them canonical
   timestamp names and copy them into the albums whose hashtags appear in their captions.
 - recover: finish or undo photo renames interrupted after ExifTool wrote new tags.

Requirements:
 - Exiftool installed and available in PATH.

"""
# ruff: noqa: PLR0913

import sys
import time
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import Annotated, Literal

from cyclopts import App, Parameter, validators
from exiftool.exceptions import ExifToolExecuteError
from loguru import logger

from gallery_utils.config import (
    DEFAULT_CAPTION_ENCODING,
    DEFAULT_LOG_FOLDER,
    DEFAULT_TIMEZONE,
    EXIFTOOL_BACKUP_SUFFIX,
    CaptionEncoding,
    resolve_timezone,
)
from gallery_utils.errors import GalleryError
from gallery_utils.exiftool_session import ExifToolSession
from gallery_utils.gallery import GalleryPromoter
from gallery_utils.importer import AlbumImporter
from gallery_utils.writer import MetadataWriter, RecoveryAction, recover_rename

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL", "OFF"]
IO_ERROR_EXIT_CODE = 5

# Cyclopts app
__version__ = "1.3.1"
app = App(
    name="gallery-utils",
    version=__version__,
    help="Utilities to manage my photo gallery.",
)


def setup_logging(
    file_log_level: LogLevel = "DEBUG",
    console_log_level: LogLevel = "INFO",
    log_folder: Path = DEFAULT_LOG_FOLDER,
) -> None:
    """
    Configure Loguru for both console and file logging.

    Args:
        file_log_level: Log level for file (use 'OFF' to disable)
        console_log_level: Log level for console (use 'OFF' to disable)
        log_folder: Directory where log files are stored

    """
    logger.remove()

    if file_log_level != "OFF":
        log_folder.mkdir(parents=True, exist_ok=True)
        log_file = log_folder / Path(
            datetime.now(tz=UTC).strftime("%Y%m%d%H%M%S-gallery_utils.log"),
        )
        logger.add(
            log_file,
            level=file_log_level,
            format=(
                "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
                "{level: <8} | "
                "{name:<8}:{function:<25}:{line:>4} | "
                "{message:<40} | "
                "{extra}"
            ),
            rotation="500 MB",
            retention="10 days",
            compression="zip",
        )

    if console_log_level != "OFF":
        logger.add(
            sys.stderr,
            level=console_log_level,
            colorize=True,
            format=(
                "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
                "<level>{level: <7}</level> | "
                "<level>{message:<40.50}</level> | "
                "<yellow>{extra}</yellow>"
            ),
        )


def _run_command(name: str, action: Callable[[], None], *, traceback: bool = False) -> None:
    """
    Run a command body, logging failures and mapping them to exit codes.

    Exit status: 0 on success, 2 for invalid arguments or input documents, 3 for a
    missing file or directory, 4 for a photo without metadata, 5 for other I/O or
    ExifTool failures.
    """
    logger.info("gallery_utils_started", version=__version__, command=name)
    started = time.perf_counter()
    exit_code = 0
    try:
        action()
    except GalleryError as exc:
        _log_failure(exc, traceback=traceback)
        exit_code = exc.exit_code
    except (OSError, ExifToolExecuteError) as exc:
        _log_failure(exc, traceback=traceback)
        exit_code = IO_ERROR_EXIT_CODE
    finally:
        logger.info("elapsed_time", seconds=round(time.perf_counter() - started, 3))

    if exit_code:
        raise SystemExit(exit_code)


def _log_failure(exc: Exception, *, traceback: bool) -> None:
    if traceback:
        logger.exception("command_failed", error=str(exc))
    else:
        logger.error("command_failed", error=str(exc))


@app.command(name="photo-pages")
def photo_pages(
    input_dir: Annotated[
        Path,
        Parameter(
            validator=validators.Path(exists=True, file_okay=False),
            help="Gallery content directory containing 'albums' and 'photos'",
        ),
    ],
    *,
    file_log_level: Annotated[
        LogLevel,
        Parameter(name="--file-log-level", help="Log level for file (use 'OFF' to disable)"),
    ] = "DEBUG",
    log_folder: Annotated[
        Path,
        Parameter(name=("--log-folder",), help="Folder where log files are stored"),
    ] = DEFAULT_LOG_FOLDER,
    console_log_level: Annotated[
        LogLevel,
        Parameter(name="--console-log-level", help="Log level for console (use 'OFF' to disable)"),
    ] = "INFO",
) -> None:
    """
    Build the individual photo gallery pages.

    Every album photo whose name key (YYYYMMDD-HHMMSS) has no entry under 'photos'
    is copied to photos/<key>/ next to an index.md built from its EXIF description,
    capture date, album name and hashtags.

    Examples:
        gallery-utils photo-pages ./content

    """
    setup_logging(
        file_log_level=file_log_level,
        console_log_level=console_log_level,
        log_folder=log_folder,
    )

    def action() -> None:
        logger.info("building_photo_gallery_pages", input_dir=str(input_dir))
        GalleryPromoter(input_dir, ExifToolSession()).run()

    _run_command("photo-pages", action)


@app.command(name="import-photos")
def import_photos(
    input_dir: Annotated[
        Path,
        Parameter(
            validator=validators.Path(exists=True, file_okay=False),
            help="Root directory of the unpacked Instagram export",
        ),
    ],
    content_dir: Annotated[
        Path,
        Parameter(
            validator=validators.Path(exists=True, file_okay=False),
            help="Gallery content directory containing the albums",
        ),
    ],
    filter_date: Annotated[
        str | None,
        Parameter(help="Only import photos taken on or after this date (yyyy-mm-dd)"),
    ] = None,
    *,
    caption_encoding: Annotated[
        CaptionEncoding,
        Parameter(
            name=("--caption-encoding",),
            help="Caption fix-up: 'facebook' (Latin-1 mojibake), 'ascii' or 'none'",
        ),
    ] = DEFAULT_CAPTION_ENCODING,
    timezone_name: Annotated[
        str,
        Parameter(
            name=("--timezone",),
            help="Zone for canonical names and dates, e.g. Australia/Adelaide (default: local)",
        ),
    ] = DEFAULT_TIMEZONE,
    file_log_level: Annotated[
        LogLevel,
        Parameter(name="--file-log-level", help="Log level for file (use 'OFF' to disable)"),
    ] = "DEBUG",
    log_folder: Annotated[
        Path,
        Parameter(name=("--log-folder",), help="Folder where log files are stored"),
    ] = DEFAULT_LOG_FOLDER,
    console_log_level: Annotated[
        LogLevel,
        Parameter(name="--console-log-level", help="Log level for console (use 'OFF' to disable)"),
    ] = "INFO",
) -> None:
    """
    Import photos into gallery albums.

    Photos whose caption contains one of an album's hashtags are retagged (dates,
    description, keywords, GPS), renamed to YYYYMMDD-HHMMSS+ZZZZ-ig.<ext> and copied
    into content/albums/<album>/. Album dates move forward to the newest photo and
    the album index.md is rewritten (the previous version is kept as index.md.old).

    Examples:
        gallery-utils import-photos ./instagram-export ./content
        gallery-utils import-photos ./instagram-export ./content 2020-12-01 --timezone UTC

    """
    setup_logging(
        file_log_level=file_log_level,
        console_log_level=console_log_level,
        log_folder=log_folder,
    )

    def action() -> None:
        tz = resolve_timezone(timezone_name)
        logger.info(
            "importing_photos_into_albums",
            input_dir=str(input_dir),
            content_dir=str(content_dir),
            filter_date=filter_date,
            caption_encoding=caption_encoding.value,
            timezone=timezone_name or "local",
        )
        writer = MetadataWriter(
            input_dir,
            ExifToolSession(),
            caption_encoding=caption_encoding,
            tz=tz,
        )
        AlbumImporter(content_dir, writer, tz=tz).run(filter_date)

    _run_command("import-photos", action, traceback=True)


@app.command(name="recover")
def recover(
    input_dir: Annotated[
        Path,
        Parameter(
            validator=validators.Path(exists=True, file_okay=False),
            help="Directory to scan for photos left with an ExifTool '_original' backup",
        ),
    ],
    *,
    file_log_level: Annotated[
        LogLevel,
        Parameter(name="--file-log-level", help="Log level for file (use 'OFF' to disable)"),
    ] = "DEBUG",
    log_folder: Annotated[
        Path,
        Parameter(name=("--log-folder",), help="Folder where log files are stored"),
    ] = DEFAULT_LOG_FOLDER,
    console_log_level: Annotated[
        LogLevel,
        Parameter(name="--console-log-level", help="Log level for console (use 'OFF' to disable)"),
    ] = "INFO",
) -> None:
    """
    Finish or undo photo renames interrupted during import-photos.

    For every '<photo>_original' backup: when '<photo>' still exists the original
    is restored over the tagged file; when it is gone the backup moves back into place.

    Examples:
        gallery-utils recover ./instagram-export

    """
    setup_logging(
        file_log_level=file_log_level,
        console_log_level=console_log_level,
        log_folder=log_folder,
    )

    def action() -> None:
        counts = dict.fromkeys(RecoveryAction, 0)
        for backup in sorted(input_dir.rglob(f"*{EXIFTOOL_BACKUP_SUFFIX}")):
            source = backup.with_name(backup.name.removesuffix(EXIFTOOL_BACKUP_SUFFIX))
            counts[recover_rename(source)] += 1
        logger.info(
            "recovery_summary",
            completed=counts[RecoveryAction.COMPLETED],
            rolled_back=counts[RecoveryAction.ROLLED_BACK],
        )

    _run_command("recover", action)


if __name__ == "__main__":
    app()
