"""Hashtag extraction from free-text captions."""

import re

from gallery_utils.errors import ValidationError

HASHTAG_PATTERN = re.compile(r"#(\w+)")


def get_tags(text: str, *, strip_hash: bool = True) -> list[str]:
    """
    Return the hashtags found in ``text`` in order of appearance.

    Args:
        text: Caption or description to scan.
        strip_hash: Drop the leading '#' from each tag when True.

    Returns:
        The tags, duplicates included, or an empty list when there are none.

    Examples:
        >>> get_tags("Great day #diy #proud")
        ['diy', 'proud']
        >>> get_tags("Great day #diy #proud", strip_hash=False)
        ['#diy', '#proud']
        >>> get_tags("No tags here")
        []

    """
    if not isinstance(text, str):
        msg = "text parameter is required and must be a string"
        raise ValidationError(msg)

    if strip_hash:
        return HASHTAG_PATTERN.findall(text)
    return [match.group(0) for match in HASHTAG_PATTERN.finditer(text)]
