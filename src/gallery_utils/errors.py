"""Error types raised by the gallery commands."""


class GalleryError(Exception):
    """Base class for every error the gallery commands raise on purpose."""

    exit_code = 1


class ValidationError(GalleryError, TypeError):
    """A parameter is missing or has the wrong shape, or an input document is malformed."""

    exit_code = 2


class NotFoundError(GalleryError, FileNotFoundError):
    """An expected file or directory does not exist."""

    exit_code = 3


class MetadataMissingError(GalleryError):
    """An image carries none of the embedded tags a gallery page needs."""

    exit_code = 4
