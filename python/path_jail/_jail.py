"""The Jail type."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path
from typing import BinaryIO

from . import _open
from ._errors import EscapedRootError, JailError
from ._jailed_path import JailedPath
from ._resolve import (
    PathInput,
    canonicalize_root,
    coerce_path,
    resolve,
    resolve_absolute,
    strip_root,
)
from ._segments import join_segments

logger = logging.getLogger(__name__)


def _log_rejection(raw: str, exc: JailError) -> None:
    # %r keeps control characters in hostile names from forging log lines.
    logger.debug("rejected %r: %s", raw, type(exc).__name__)


class Jail:
    """A filesystem sandbox that restricts paths to a root directory.

    All returned paths are canonicalized (symlinks resolved, '..' eliminated).
    A Jail is immutable once built and may be shared freely between threads.

    Note:
        Validation and use are separate steps. Between them, another actor
        with write access to the tree can swap entries. The secure-open
        methods close that gap for the final component only.
    """

    __slots__ = ("_root",)

    def __init__(self, root: PathInput) -> None:
        """Create a jail rooted at the given directory.

        Args:
            root: Path to the jail root directory (must exist)

        Raises:
            JailIOError: If root does not exist or cannot be resolved
            InvalidRootError: If root is a filesystem root or not a directory
            TypeError: If root is not str or os.PathLike[str]
        """
        try:
            canonical = canonicalize_root(root)
        except JailError as exc:
            logger.debug("rejected jail root %r: %s", root, type(exc).__name__)
            raise
        object.__setattr__(self, "_root", canonical)
        logger.debug("jail created at %r", str(canonical))

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError("Jail is immutable")

    def __copy__(self) -> Jail:
        return self

    def __deepcopy__(self, memo: dict) -> Jail:
        return self

    def __reduce__(self) -> tuple:
        # Unpickling canonicalizes the root again in the receiving process.
        return Jail, (str(self._root),)

    @property
    def root(self) -> str:
        """Returns the canonicalized root path."""
        return str(self._root)

    def join(self, path: PathInput) -> str:
        """Safely join a relative path to the jail root.

        Works for paths whose final component does not exist yet. Every
        other component must exist and stay inside the jail, symlinks
        included.

        Args:
            path: Relative path to join

        Returns:
            Absolute path strictly inside the jail

        Raises:
            EscapedRootError: If path would escape the jail or names the root itself
            BrokenSymlinkError: If path goes through a dangling symlink
            InvalidPathError: If path is absolute, empty, contains a null byte,
                or traverses a component that does not exist
            JailIOError: If the filesystem cannot be inspected
            TypeError: If path is not str or os.PathLike[str]
        """
        raw = coerce_path(path)
        return str(self._resolve(raw))

    def join_typed(self, path: PathInput) -> JailedPath:
        """Like :meth:`join`, but returns a :class:`JailedPath`."""
        return JailedPath._from_validated(self.join(path))

    def join_segments(self, segments: Iterable[str]) -> str:
        """Join untrusted segments, each of which must be a single component.

        Safer than ``jail.join(f"{user_id}/{filename}")``: a segment holding a
        separator, ``..`` or a null byte is rejected on its own before the
        joined path is resolved.

        Args:
            segments: Path components, in order. Empty strings are skipped.

        Returns:
            Absolute path strictly inside the jail

        Raises:
            InvalidPathError: If any segment is not a single component
            EscapedRootError: See :meth:`join`
        """
        try:
            joined = join_segments(segments)
        except JailError as exc:
            logger.debug("rejected segments: %s", type(exc).__name__)
            raise
        return self.join(joined)

    def join_segments_typed(self, segments: Iterable[str]) -> JailedPath:
        """Like :meth:`join_segments`, but returns a :class:`JailedPath`."""
        return JailedPath._from_validated(self.join_segments(segments))

    def contains(self, path: PathInput) -> str:
        """Verify an absolute path is inside the jail.

        Args:
            path: Absolute path to verify (must exist)

        Returns:
            Canonicalized path if inside the jail (the root itself included)

        Raises:
            EscapedRootError: If path is outside the jail
            InvalidPathError: If path is not absolute
            BrokenSymlinkError: If path is a dangling symlink
            JailIOError: If path does not exist
        """
        raw = coerce_path(path)
        try:
            return str(resolve_absolute(self._root, raw))
        except JailError as exc:
            _log_rejection(raw, exc)
            raise

    def relative(self, path: PathInput) -> str:
        """Get the path relative to the jail root.

        This is the inverse of :meth:`join`, useful for storing portable
        paths. Relative input is normalized through :meth:`join`. Absolute
        input that exists is checked with :meth:`contains`; absolute input
        that does not exist yet (a fresh :meth:`join` result) is re-validated
        through :meth:`join`.

        Args:
            path: Absolute path inside the jail, or a relative path

        Returns:
            Relative path from the jail root ("" for the root itself)

        Raises:
            EscapedRootError: If path is outside the jail
        """
        raw = coerce_path(path)
        if not os.path.isabs(raw):
            resolved = self._resolve(raw)
        elif os.path.lexists(raw):
            resolved = Path(self.contains(raw))
        else:
            # Not on disk yet: re-run the part under the root through join().
            suffix = strip_root(self._root, Path(raw))
            resolved = self._resolve(suffix) if suffix else None
        result = strip_root(self._root, resolved) if resolved is not None else None
        if result is None:
            exc = EscapedRootError(raw, str(self._root))
            _log_rejection(raw, exc)
            raise exc
        return result

    def _resolve(self, raw: str) -> Path:
        try:
            return resolve(self._root, raw)
        except JailError as exc:
            _log_rejection(raw, exc)
            raise

    # Secure open. Each call validates through join() first.

    def open(self, path: PathInput) -> BinaryIO:
        """Open a file for reading with ``O_NOFOLLOW`` protection.

        Even if the file is swapped for a symlink between validation and
        open, the open fails instead of following the link.

        Raises:
            JailError: If validation fails
            JailIOError: If the file is missing, is a symlink, or cannot be opened
            NotImplementedError: If the platform lacks ``O_NOFOLLOW``
        """
        return _open.open_read(self.join(path))

    def create(self, path: PathInput) -> BinaryIO:
        """Create a new file with ``O_CREAT | O_EXCL | O_NOFOLLOW``.

        The file must not exist. A symlink planted at the target name makes
        the call fail rather than write through the link.
        """
        return _open.create_new(self.join(path))

    def create_or_truncate(self, path: PathInput) -> BinaryIO:
        """Open a file for writing, truncating it if it exists."""
        return _open.create_or_truncate(self.join(path))

    def open_append(self, path: PathInput) -> BinaryIO:
        """Open a file for appending, creating it if needed."""
        return _open.open_append(self.join(path))

    def __fspath__(self) -> str:
        return str(self._root)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Jail):
            return self._root == other._root
        return NotImplemented

    def __hash__(self) -> int:
        return hash((Jail, self._root))

    def __repr__(self) -> str:
        return f"Jail({str(self._root)!r})"

    def __str__(self) -> str:
        return str(self._root)


def join(root: PathInput, path: PathInput) -> str:
    """One-shot path validation.

    This is a convenience function for validating a single path.
    For multiple paths, create a Jail and reuse it.

    Args:
        root: Path to the jail root directory (must exist)
        path: Relative path to validate and join

    Returns:
        Absolute path inside the jail

    Raises:
        JailError: If the root is invalid or the path is rejected
    """
    return Jail(root).join(path)
