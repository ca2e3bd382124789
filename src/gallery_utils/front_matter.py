"""Read and write the ``+++``-delimited TOML front matter used by gallery pages."""

import re
from collections.abc import Mapping
from typing import Any

import tomlkit
from tomlkit.exceptions import TOMLKitError

from gallery_utils.config import FRONT_MATTER_DELIMITER
from gallery_utils.errors import ValidationError

_DELIMITER = re.escape(FRONT_MATTER_DELIMITER)
FRONT_MATTER_PATTERN = re.compile(
    rf"^{_DELIMITER}[ \t]*\r?\n(.*?)^{_DELIMITER}[ \t]*\r?$",
    re.MULTILINE | re.DOTALL,
)


def extract_front_matter(content: str) -> str | None:
    """
    Return the body of the first front matter block, without its delimiters.

    Examples:
        >>> extract_front_matter('+++\\ntitle = "T"\\n+++\\nBody text\\n')
        'title = "T"\\n'
        >>> extract_front_matter("no block here") is None
        True

    """
    match = FRONT_MATTER_PATTERN.search(content)
    if match is None:
        return None
    return match.group(1)


def parse_front_matter(content: str) -> dict[str, Any] | None:
    """Parse the first front matter block of a document into plain Python values."""
    block = extract_front_matter(content)
    if block is None:
        return None
    try:
        return tomlkit.parse(block).unwrap()
    except TOMLKitError as exc:
        msg = f"front matter is not valid TOML: {exc}"
        raise ValidationError(msg) from exc


def build_front_matter(values: Mapping[str, Any]) -> str:
    """
    Serialize ``values`` as a TOML block wrapped in front matter delimiters.

    Keys keep their insertion order; keys whose value is None are left out.

    Examples:
        >>> print(build_front_matter({"title": "T", "date": "2020-08-29", "albumname": "A"}), end="")
        +++
        title = "T"
        date = "2020-08-29"
        albumname = "A"
        +++

    """
    if not isinstance(values, Mapping):
        msg = "values parameter is required and must be a mapping"
        raise ValidationError(msg)

    document = {key: value for key, value in values.items() if value is not None}
    body = tomlkit.dumps(document)
    return f"{FRONT_MATTER_DELIMITER}\n{body}{FRONT_MATTER_DELIMITER}\n"
