"""A path value proven to have passed jail validation."""

from __future__ import annotations

import functools
from pathlib import Path
from typing import BinaryIO

from . import _open

_TOKEN = object()


@functools.total_ordering
class JailedPath:
    """A path verified to be inside a :class:`~path_jail.Jail`.

    Instances can only be obtained from :meth:`Jail.join_typed` or
    :meth:`Jail.join_segments_typed`, so a function that accepts a
    ``JailedPath`` cannot be handed an unvalidated string by mistake.
    The wrapper never re-validates; it records that validation happened.

    Example:
        >>> def save(path: JailedPath, data: bytes) -> None:
        ...     with path.create() as f:
        ...         f.write(data)
        >>> save(jail.join_typed("report.pdf"), b"data")  # doctest: +SKIP
    """

    __slots__ = ("_path",)

    def __init__(self, path: str, *, _token: object = None) -> None:
        if _token is not _TOKEN:
            raise TypeError("JailedPath is created by Jail.join_typed() or Jail.join_segments_typed()")
        object.__setattr__(self, "_path", path)

    @classmethod
    def _from_validated(cls, path: str) -> JailedPath:
        return cls(path, _token=_TOKEN)

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __copy__(self) -> JailedPath:
        return self

    def __deepcopy__(self, memo: dict) -> JailedPath:
        return self

    def __reduce__(self) -> tuple:
        return _rebuild, (self._path,)

    @property
    def path(self) -> Path:
        """The wrapped path as a :class:`pathlib.Path`."""
        return Path(self._path)

    def __fspath__(self) -> str:
        return self._path

    def __str__(self) -> str:
        return self._path

    def __repr__(self) -> str:
        return f"JailedPath({self._path!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, JailedPath):
            return self._path == other._path
        return NotImplemented

    def __lt__(self, other: object) -> bool:
        if isinstance(other, JailedPath):
            return self._path < other._path
        return NotImplemented

    def __hash__(self) -> int:
        return hash((JailedPath, self._path))

    # Secure open. Only the final component is protected; see path_jail._open.

    def open(self) -> BinaryIO:
        """Open this path for reading, refusing a symlink in the final component."""
        return _open.open_read(self._path)

    def create(self) -> BinaryIO:
        """Create a new file here; fails if anything, including a symlink, exists."""
        return _open.create_new(self._path)

    def create_or_truncate(self) -> BinaryIO:
        return _open.create_or_truncate(self._path)

    def open_append(self) -> BinaryIO:
        return _open.open_append(self._path)


def _rebuild(path: str) -> JailedPath:
    """Unpickle a :class:`JailedPath` without going through the token check."""
    return JailedPath._from_validated(path)
