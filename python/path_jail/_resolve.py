"""Path resolution and containment checks.

The resolver walks the candidate one component at a time from the
canonical root. Every component that exists is canonicalized (symlinks
followed) and checked against the root before the next one is appended,
so a symlink can never carry the walk outside the jail. Only the final
component may be missing, which is what lets ``join`` validate a file
that is about to be created.
"""

from __future__ import annotations

import errno
import os
from pathlib import Path, PurePath

from ._errors import (
    BrokenSymlinkError,
    EscapedRootError,
    InvalidPathError,
    InvalidRootError,
    wrap_os_error,
)

PathInput = str | os.PathLike[str]

_SEPARATORS = tuple(sep for sep in (os.sep, os.altsep, "/") if sep)


def coerce_path(value: object, name: str = "path") -> str:
    """Return ``value`` as ``str``, accepting only ``str`` and ``os.PathLike[str]``."""
    if isinstance(value, str):
        return value
    if isinstance(value, os.PathLike):
        result = os.fspath(value)
        if isinstance(result, str):
            return result
    raise TypeError(
        f"{name} must be str or os.PathLike[str], not {type(value).__name__}"
    )


def _key(path: PurePath) -> tuple[str, ...]:
    # normcase is the identity on POSIX and folds case on Windows.
    return tuple(os.path.normcase(part) for part in path.parts)


def is_within(path: PurePath, root: PurePath, *, strict: bool) -> bool:
    """Component-wise containment test.

    ``strict`` excludes ``path == root``. Comparison is never done on raw
    strings, so ``/srv/foo`` does not contain ``/srv/foobar``.
    """
    path_key = _key(path)
    root_key = _key(root)
    if len(path_key) < len(root_key):
        return False
    if strict and len(path_key) == len(root_key):
        return False
    return path_key[: len(root_key)] == root_key


def _resolve_existing(path: Path) -> Path:
    """Canonicalize a path whose final entry is known to exist (as a link or not).

    A link chain that ends at a missing target, or loops, is a broken
    symlink: its eventual target cannot be checked against the root.
    """
    try:
        return path.resolve(strict=True)
    except (FileNotFoundError, NotADirectoryError):
        raise BrokenSymlinkError(str(path)) from None
    except RuntimeError:
        # Symlink loop on interpreters older than 3.13.
        raise BrokenSymlinkError(str(path)) from None
    except OSError as exc:
        if exc.errno == errno.ELOOP:
            raise BrokenSymlinkError(str(path)) from None
        raise wrap_os_error(exc, path) from exc


def _os_error(code: int, filename: str) -> OSError:
    return OSError(code, os.strerror(code), filename)


def canonicalize_root(root: PathInput) -> Path:
    """Resolve and validate a jail root."""
    raw = coerce_path(root, "root")
    if "\x00" in raw:
        raise InvalidPathError("null bytes not allowed", raw)
    if not raw:
        # Path("") would silently mean the working directory.
        raise wrap_os_error(_os_error(errno.ENOENT, raw))
    try:
        canonical = Path(raw).resolve(strict=True)
        is_dir = canonical.is_dir()
    except OSError as exc:
        raise wrap_os_error(exc, raw) from exc
    except RuntimeError as exc:
        raise wrap_os_error(_os_error(errno.ELOOP, raw)) from exc
    if canonical.parent == canonical:
        raise InvalidRootError(str(canonical), "cannot use filesystem root")
    if not is_dir:
        raise InvalidRootError(str(canonical), "not a directory")
    return canonical


def _check_candidate(raw: str) -> PurePath:
    """Reject inputs that must never reach the filesystem."""
    if "\x00" in raw:
        raise InvalidPathError("null bytes not allowed", raw)
    if not raw:
        raise InvalidPathError("empty path", raw)
    pure = PurePath(raw)
    # On Windows "C:file" and "\\file" are not is_absolute() but still
    # anchor outside the jail.
    if pure.is_absolute() or pure.drive or pure.root:
        raise InvalidPathError("absolute paths not allowed", raw)
    return pure


def resolve(root: Path, candidate: str) -> Path:
    """Resolve ``candidate`` against the canonical ``root``.

    Returns the canonical absolute path, which is always a strict
    descendant of ``root``.
    """
    pure = _check_candidate(candidate)
    # PurePath drops a trailing separator, which asks for a directory.
    wants_dir = candidate.endswith(_SEPARATORS)

    current = root
    missing: str | None = None
    for name in pure.parts:
        if name == "..":
            if missing is not None:
                # Undo the lexical step onto the missing entry.
                current = current.parent
                missing = None
                continue
            if not os.path.isdir(current):
                raise InvalidPathError(f"'{current.name}' is not a directory", candidate)
            parent = current.parent
            if not is_within(parent, root, strict=False):
                raise EscapedRootError(candidate, str(root))
            current = parent
            continue

        if missing is not None:
            raise InvalidPathError(
                f"parent directory '{missing}' does not exist", candidate
            )

        current = current / name
        try:
            os.lstat(current)
        except FileNotFoundError:
            missing = name
            continue
        except NotADirectoryError:
            raise InvalidPathError(
                f"'{current.parent.name}' is not a directory", candidate
            ) from None
        except OSError as exc:
            raise wrap_os_error(exc, current) from exc

        resolved = _resolve_existing(current)
        if not is_within(resolved, root, strict=False):
            raise EscapedRootError(candidate, str(root))
        current = resolved

    if wants_dir and missing is None and not os.path.isdir(current):
        raise InvalidPathError(f"'{current.name}' is not a directory", candidate)
    if not is_within(current, root, strict=True):
        raise EscapedRootError(candidate, str(root))
    return current


def resolve_absolute(root: Path, path: str) -> Path:
    """Canonicalize an existing absolute path and check it is inside ``root``.

    Unlike :func:`resolve`, the root itself is accepted.
    """
    if "\x00" in path:
        raise InvalidPathError("null bytes not allowed", path)
    if not os.path.isabs(path):
        raise InvalidPathError("path must be absolute", path)
    target = Path(path)
    try:
        os.lstat(target)
    except OSError as exc:
        raise wrap_os_error(exc, target) from exc
    canonical = _resolve_existing(target)
    if not is_within(canonical, root, strict=False):
        raise EscapedRootError(path, str(root))
    return canonical


def strip_root(root: Path, path: PurePath) -> str | None:
    """Return ``path`` relative to ``root``, or ``None`` if it is not under it."""
    if not is_within(path, root, strict=False):
        return None
    suffix = path.parts[len(root.parts):]
    if not suffix:
        return ""
    return str(PurePath(*suffix))
