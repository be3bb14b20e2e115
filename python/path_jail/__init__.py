"""A filesystem sandbox that restricts paths to a root directory.

Blocks path traversal (``../../etc/passwd``), symlink escapes and absolute
path injection, while still validating files that do not exist yet.

For one-off validation use :func:`join`::

    safe = path_jail.join("/var/uploads", user_input)

For several paths against the same root, build a :class:`Jail` once::

    jail = path_jail.Jail("/var/uploads")
    report = jail.join("report.pdf")
    avatar = jail.join_segments([user_id, "avatar.png"])

Not defended: races on intermediate directories between validation and
use, hard links, and mounts placed inside the root.
"""

import logging

from ._errors import (
    BrokenSymlinkError,
    EscapedRootError,
    InvalidPathError,
    InvalidRootError,
    JailError,
    JailIOError,
)
from ._jail import Jail, join
from ._jailed_path import JailedPath
from ._open import SECURE_OPEN_SUPPORTED
from ._segments import validate_segment

__version__ = "0.3.0"

__all__ = [
    "BrokenSymlinkError",
    "EscapedRootError",
    "InvalidPathError",
    "InvalidRootError",
    "Jail",
    "JailError",
    "JailIOError",
    "JailedPath",
    "SECURE_OPEN_SUPPORTED",
    "join",
    "validate_segment",
    "__version__",
]

logging.getLogger(__name__).addHandler(logging.NullHandler())
