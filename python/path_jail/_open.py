"""File opens that refuse to follow a symlink in the final path component.

A path validated by :meth:`Jail.join` can be replaced by a symlink before
it is opened. Opening with ``O_NOFOLLOW`` makes that open fail instead of
following the link. Creation additionally uses ``O_CREAT | O_EXCL`` so a
link planted at the target name is never written through.

Limitation: only the last component is protected. An attacker who can
swap an intermediate directory between validation and open is not
stopped here; that needs a directory-fd-relative open chain.
"""

from __future__ import annotations

import logging
import os
from typing import BinaryIO

from ._errors import wrap_os_error

logger = logging.getLogger(__name__)

#: True when the platform supports ``O_NOFOLLOW`` (POSIX systems).
SECURE_OPEN_SUPPORTED: bool = hasattr(os, "O_NOFOLLOW")

_O_NOFOLLOW = getattr(os, "O_NOFOLLOW", 0)
_O_CLOEXEC = getattr(os, "O_CLOEXEC", 0)
_CREATE_MODE = 0o666

READ_FLAGS = os.O_RDONLY | _O_NOFOLLOW | _O_CLOEXEC
CREATE_FLAGS = os.O_WRONLY | os.O_CREAT | os.O_EXCL | _O_NOFOLLOW | _O_CLOEXEC
TRUNCATE_FLAGS = os.O_WRONLY | os.O_CREAT | os.O_TRUNC | _O_NOFOLLOW | _O_CLOEXEC
APPEND_FLAGS = os.O_WRONLY | os.O_CREAT | os.O_APPEND | _O_NOFOLLOW | _O_CLOEXEC


def _require_support() -> None:
    if not SECURE_OPEN_SUPPORTED:
        raise NotImplementedError("secure open requires O_NOFOLLOW, unavailable on this platform")


def open_nofollow(path: str, flags: int, mode: str) -> BinaryIO:
    """Open ``path`` with ``flags`` and wrap the descriptor in a file object."""
    _require_support()
    try:
        fd = os.open(path, flags, _CREATE_MODE)
    except OSError as exc:
        logger.debug("secure open of %r refused: %s", path, exc)
        raise wrap_os_error(exc, path) from exc
    try:
        return os.fdopen(fd, mode)
    except OSError as exc:
        # A directory opens with O_RDONLY and only fails here (EISDIR); the
        # error names the descriptor, so report the path instead.
        os.close(fd)
        logger.debug("secure open of %r refused: %s", path, exc)
        raise wrap_os_error(type(exc)(exc.errno, exc.strerror, path)) from exc
    except BaseException:
        os.close(fd)
        raise


def open_read(path: str) -> BinaryIO:
    return open_nofollow(path, READ_FLAGS, "rb")


def create_new(path: str) -> BinaryIO:
    return open_nofollow(path, CREATE_FLAGS, "wb")


def create_or_truncate(path: str) -> BinaryIO:
    return open_nofollow(path, TRUNCATE_FLAGS, "wb")


def open_append(path: str) -> BinaryIO:
    return open_nofollow(path, APPEND_FLAGS, "ab")
