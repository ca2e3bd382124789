"""Owned handle on a long-running ExifTool process."""

from pathlib import Path
from types import TracebackType
from typing import Any, Self

from exiftool import ExifToolHelper  # type: ignore[attr-defined]
from loguru import logger


class ExifToolSession:
    """
    Lazily started ExifTool process shared by one command invocation.

    The process starts on first use, restarts if it was terminated, and is
    closed by ``close()`` or on leaving a ``with`` block. Closing twice is a no-op.
    """

    def __init__(self, executable: str | None = None) -> None:
        self._executable = executable
        self._helper: ExifToolHelper | None = None

    @property
    def running(self) -> bool:
        return self._helper is not None and self._helper.running

    def _ensure_started(self) -> ExifToolHelper:
        if self._helper is None or not self._helper.running:
            kwargs: dict[str, Any] = {}
            if self._executable:
                kwargs["executable"] = self._executable
            self._helper = ExifToolHelper(**kwargs)  # type: ignore[no-untyped-call]
            self._helper.run()
            logger.debug("exiftool_started", version=self._helper.version)
        return self._helper

    def set_tags(self, image_path: Path, tags: dict[str, Any]) -> None:
        """Write ``tags`` to ``image_path``; ExifTool keeps the original at ``<path>_original``."""
        helper = self._ensure_started()
        helper.set_tags(files=[str(image_path)], tags=tags)
        logger.debug("exiftool_tags_written", file=str(image_path), tag_count=len(tags))

    def get_tags(self, image_path: Path, tags: list[str]) -> dict[str, Any]:
        """Read ``tags`` from ``image_path``; tags the image does not carry are absent."""
        helper = self._ensure_started()
        blocks = helper.get_tags(files=[str(image_path)], tags=tags)
        return dict(blocks[0]) if blocks else {}

    def close(self) -> None:
        if self._helper is not None and self._helper.running:
            self._helper.terminate()
            logger.debug("exiftool_terminated")
        self._helper = None

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
