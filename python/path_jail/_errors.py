"""Exceptions raised by path_jail.

Every rejection derives from :class:`JailError`. The set of subclasses is
open: new kinds may be added in later releases, so callers should always
keep a ``except JailError`` arm after any specific ones.
"""

from __future__ import annotations

import os


class JailError(Exception):
    """Base class for every path_jail rejection.

    Subclasses rebuild from their own fields when pickled, so rejections
    survive a trip through multiprocessing.
    """


class EscapedRootError(JailError, ValueError):
    """Path would escape the jail root."""

    def __init__(self, attempted: str, root: str) -> None:
        self.attempted = attempted
        self.root = root
        super().__init__(f"path '{attempted}' escapes jail root '{root}'")

    def __reduce__(self) -> tuple:
        return type(self), (self.attempted, self.root)


class BrokenSymlinkError(JailError, ValueError):
    """Path goes through a symlink whose target cannot be verified."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"broken symlink at '{path}' (cannot verify target)")

    def __reduce__(self) -> tuple:
        return type(self), (self.path,)


class InvalidPathError(JailError, ValueError):
    """Path is malformed: null bytes, absolute input, bad segment, etc."""

    def __init__(self, reason: str, path: str | None = None) -> None:
        self.reason = reason
        self.path = path
        super().__init__(f"invalid path: {reason}")

    def __reduce__(self) -> tuple:
        return type(self), (self.reason, self.path)


class InvalidRootError(JailError, ValueError):
    """Jail root is a filesystem root or not a directory."""

    def __init__(self, root: str, reason: str) -> None:
        self.root = root
        self.reason = reason
        super().__init__(f"invalid jail root '{root}' ({reason})")

    def __reduce__(self) -> tuple:
        return type(self), (self.root, self.reason)


class JailIOError(JailError, OSError):
    """Underlying filesystem call failed.

    ``errno``, ``strerror`` and ``filename`` are copied from the wrapped
    error, which is also available as :attr:`error`.
    """

    def __init__(self, error: OSError) -> None:
        self.error = error
        super().__init__(error.errno, error.strerror, error.filename)

    def __str__(self) -> str:
        return f"io error: {self.error}"

    def __reduce__(self) -> tuple:
        return type(self), (self.error,)


def wrap_os_error(error: OSError, path: str | os.PathLike[str] | None = None) -> JailIOError:
    """Wrap ``error`` unless it is already a :class:`JailIOError`."""
    if isinstance(error, JailIOError):
        return error
    if path is not None and error.filename is None:
        error.filename = os.fspath(path)
    return JailIOError(error)
