from __future__ import annotations

import errno
import os
import stat
from typing import Callable, Iterable, Iterator, List, Optional, Tuple

from .entry import Archive, Entry, FileKind
from .errors import InvalidEncoding, UnsupportedOperation


EntryCallback = Optional[Callable[[Entry], None]]

_UNSUPPORTED_SYMLINK_ERRNOS = {errno.EPERM, errno.EOPNOTSUPP}
if hasattr(errno, "ENOTSUP"):
    _UNSUPPORTED_SYMLINK_ERRNOS.add(errno.ENOTSUP)
_UNSUPPORTED_WIN_ERRORS = {1314}


# -------- Listing / lookup --------

def _digits(n: int) -> int:
    return len(str(max(1, n)))


def format_listing(archive: Archive) -> List[str]:
    """Render one ``<code> <length> <path>`` line per entry.

    Lengths are right-aligned to the widest length in the archive.
    """
    width = max((_digits(e.size) for e in archive), default=1)
    return [f"{e.kind.code} {e.size:>{width}} {e.path}" for e in archive]


def find_entry(archive: Archive, path: str) -> Optional[Entry]:
    return archive.find(path)


def remove_paths(archive: Archive, paths: Iterable[str]) -> int:
    """Remove entries by exact path. Unknown paths are ignored.

    Returns:
        Number of entries removed.
    """
    return archive.remove_paths(paths)


# -------- Adding from the filesystem --------

def iter_nodes(root: str) -> Iterator[Tuple[str, os.stat_result]]:
    """Yield ``(path, lstat)`` for every non-directory node under ``root``.

    Symlinks are reported, never followed. Directories are expanded in
    sorted name order and are not yielded themselves. Any ``OSError`` is
    raised at the node that caused it and ends the walk.
    """
    stack = [os.fspath(root)]
    while stack:
        path = stack.pop()
        st = os.lstat(path)
        if stat.S_ISDIR(st.st_mode):
            names = sorted(os.listdir(path))
            stack.extend(os.path.join(path, n) for n in reversed(names))
            continue
        yield path, st


def _check_entry_path(path: str) -> None:
    # Undecodable filesystem names come back from os.listdir with surrogates.
    try:
        path.encode("utf-8")
    except UnicodeEncodeError:
        shown = path.encode("utf-8", "surrogateescape").decode("utf-8", "backslashreplace")
        raise InvalidEncoding(f"Path is not valid UTF-8: {shown}") from None


def entry_from_node(path: str, st: os.stat_result, *, detect_executable: bool = False) -> Entry:
    _check_entry_path(path)
    if stat.S_ISLNK(st.st_mode):
        target = os.readlink(path)
        return Entry(path=path, kind=FileKind.SOFT_SYMLINK, contents=target.encode("utf-8", "surrogateescape"))
    with open(path, "rb") as fh:
        contents = fh.read()
    kind = FileKind.REGULAR_FILE
    if detect_executable and st.st_mode & 0o111:
        kind = FileKind.EXECUTABLE_FILE
    return Entry(path=path, kind=kind, contents=contents)


def add_path(archive: Archive, fs_path: str, *, detect_executable: bool = False, on_entry: EntryCallback = None) -> int:
    """Append ``fs_path`` (recursively, for directories) to ``archive``.

    Entry paths are the filesystem paths as given, joined with child names;
    nothing is resolved or made relative. The first filesystem error aborts
    the walk and entries already appended stay in ``archive``.

    Args:
        archive: Archive to append to.
        fs_path: File, symlink or directory to add.
        detect_executable: Tag files with any execute bit as executable.
            When False every file is stored as a regular file.
        on_entry: Called with each entry after it is appended.

    Returns:
        Number of entries appended.
    """
    added = 0
    for path, st in iter_nodes(fs_path):
        entry = entry_from_node(path, st, detect_executable=detect_executable)
        archive.append(entry)
        added += 1
        if on_entry is not None:
            on_entry(entry)
    return added


def add_paths(archive: Archive, fs_paths: Iterable[str], *, detect_executable: bool = False, on_entry: EntryCallback = None) -> int:
    total = 0
    for p in fs_paths:
        total += add_path(archive, p, detect_executable=detect_executable, on_entry=on_entry)
    return total


# -------- Extraction --------

def _make_executable(path: str) -> None:
    # Grant execute wherever read is granted, like ``chmod +x`` under a 022 umask.
    mode = os.stat(path).st_mode & 0o7777
    os.chmod(path, mode | ((mode & 0o444) >> 2))


def _create_symlink(target: str, dst: str) -> None:
    symlink_fn = getattr(os, "symlink", None)
    if symlink_fn is None:
        raise UnsupportedOperation(f"symlinks not supported on this platform: {dst}")
    try:
        symlink_fn(target, dst)
    except (NotImplementedError, AttributeError) as exc:
        raise UnsupportedOperation(f"symlinks not supported on this platform: {dst}") from exc
    except OSError as exc:
        if exc.errno in _UNSUPPORTED_SYMLINK_ERRNOS or getattr(exc, "winerror", None) in _UNSUPPORTED_WIN_ERRORS:
            raise UnsupportedOperation(f"symlinks not supported here: {dst}: {exc}") from exc
        raise


def extract_entry(entry: Entry, target_dir: str) -> str:
    """Materialize one entry under ``target_dir``; return the destination path."""
    dst = os.path.join(os.fspath(target_dir), entry.path)
    parent = os.path.dirname(dst)
    if parent:
        os.makedirs(parent, exist_ok=True)
    if entry.kind == FileKind.SOFT_SYMLINK:
        _create_symlink(os.fsdecode(entry.contents), dst)
        return dst
    with open(dst, "wb") as fh:
        fh.write(entry.contents)
    if entry.kind == FileKind.EXECUTABLE_FILE:
        _make_executable(dst)
    return dst


def extract_all(archive: Archive, target_dir: str, *, on_entry: EntryCallback = None) -> int:
    """Extract every entry in order. The first failure stops extraction."""
    count = 0
    for entry in archive:
        extract_entry(entry, target_dir)
        count += 1
        if on_entry is not None:
            on_entry(entry)
    return count
