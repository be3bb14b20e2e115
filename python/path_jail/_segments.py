"""Validation for untrusted single path segments."""

from __future__ import annotations

import os
from collections.abc import Iterable

from ._errors import InvalidPathError


def validate_segment(segment: object) -> str:
    """Check that ``segment`` is one atomic path component.

    Args:
        segment: A user-supplied name such as a user id or a filename

    Returns:
        The segment, unchanged

    Raises:
        TypeError: If segment is not a str
        InvalidPathError: If segment contains a separator, a null byte, or is ``..``
    """
    if not isinstance(segment, str):
        raise TypeError(f"segment must be str, not {type(segment).__name__}")
    # Both conventions are rejected on every platform.
    if "/" in segment or "\\" in segment:
        raise InvalidPathError(f"segment '{segment}' contains path separator", segment)
    if segment == "..":
        raise InvalidPathError("segment '..' not allowed", segment)
    if "\x00" in segment:
        raise InvalidPathError("segment contains null byte", segment)
    return segment


def join_segments(segments: Iterable[str]) -> str:
    """Validate each segment and join them into one relative path.

    Empty segments are skipped.
    """
    if isinstance(segments, (str, bytes)):
        raise TypeError("segments must be an iterable of str, not a single string")
    parts = [validate_segment(segment) for segment in segments]
    return os.path.join("", *[part for part in parts if part])
