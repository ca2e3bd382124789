"""Checks that a path exists and is the expected kind of filesystem entry."""

from pathlib import Path

from gallery_utils.errors import NotFoundError, ValidationError


def _as_path(value: object, name: str) -> Path:
    if isinstance(value, Path):
        return value
    if not value or not isinstance(value, str):
        msg = f"{name} parameter is required and must be a string or Path"
        raise ValidationError(msg)
    return Path(value)


def require_directory(dir_path: str | Path, name: str = "dir_path") -> Path:
    """
    Return ``dir_path`` as a Path after checking it is an existing directory.

    Raises:
        ValidationError: The argument is empty, not a path, or not a directory.
        NotFoundError: Nothing exists at the path.

    """
    path = _as_path(dir_path, name)
    if not path.exists():
        msg = f"specified path not found: {path}"
        raise NotFoundError(msg)
    if not path.is_dir():
        msg = f"specified path must be a directory: {path}"
        raise ValidationError(msg)
    return path


def require_file(file_path: str | Path, name: str = "file_path") -> Path:
    """Return ``file_path`` as a Path after checking it is an existing regular file."""
    path = _as_path(file_path, name)
    if not path.exists():
        msg = f"specified path not found: {path}"
        raise NotFoundError(msg)
    if not path.is_file():
        msg = f"specified path must be a file: {path}"
        raise ValidationError(msg)
    return path
