from __future__ import annotations

import io
import os
import tempfile
from typing import BinaryIO

from .constants import (
    PATH_TERMINATOR,
    END_SENTINEL,
    LENGTH_STRUCT,
    MAX_CONTENTS_LEN,
    DEFAULT_SUFFIX,
    TEMP_PREFIX,
)
from .entry import Archive, Entry, FileKind
from .errors import InvalidEncoding, TruncatedStream


# Entry framing:
#   path (utf-8) | 0x00 | kind u8 | len u32 LE | contents[len]
# The archive ends with a single 0x00 where the next path would start.


def _encode_path(path: str) -> bytes:
    try:
        raw = path.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise InvalidEncoding(f"Path is not representable as UTF-8: {path!r}") from exc
    if not raw:
        raise InvalidEncoding("Entry path may not be empty")
    if PATH_TERMINATOR in raw:
        raise InvalidEncoding(f"Entry path may not contain NUL: {path!r}")
    return raw


def write_entry(fh: BinaryIO, entry: Entry) -> None:
    path_bytes = _encode_path(entry.path)
    if len(entry.contents) > MAX_CONTENTS_LEN:
        raise InvalidEncoding(f"Contents too large for {entry.path!r}: {len(entry.contents)} bytes")
    fh.write(path_bytes)
    fh.write(PATH_TERMINATOR)
    fh.write(bytes([int(entry.kind)]))
    fh.write(LENGTH_STRUCT.pack(len(entry.contents)))
    fh.write(entry.contents)


def write_archive(fh: BinaryIO, archive: Archive) -> None:
    for entry in archive:
        write_entry(fh, entry)
    fh.write(END_SENTINEL)


def encode(archive: Archive) -> bytes:
    buf = io.BytesIO()
    write_archive(buf, archive)
    return buf.getvalue()


def read_exact(fh: BinaryIO, n: int, what: str) -> bytes:
    b = fh.read(n)
    if len(b) != n:
        raise TruncatedStream(f"Unexpected end of stream reading {what}: wanted {n} bytes, got {len(b)}")
    return b


def _read_path(fh: BinaryIO) -> bytes:
    """Read up to and including the next NUL; return the bytes before it.

    End of stream before any byte is read counts as end-of-archive, so an
    empty file decodes to an empty archive.
    """
    out = bytearray()
    while True:
        b = fh.read(1)
        if not b:
            if out:
                raise TruncatedStream("Unexpected end of stream inside entry path")
            return b""
        if b == PATH_TERMINATOR:
            return bytes(out)
        out += b


def read_entry(fh: BinaryIO):
    """Decode one entry, or return None at the end-of-archive sentinel."""
    raw_path = _read_path(fh)
    if not raw_path:
        return None
    try:
        path = raw_path.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidEncoding(f"Entry path is not valid UTF-8: {raw_path!r}") from exc
    tag = read_exact(fh, 1, f"kind of {path!r}")[0]
    try:
        kind = FileKind(tag)
    except ValueError:
        raise InvalidEncoding(f"Unknown file type {tag} for {path!r}") from None
    (size,) = LENGTH_STRUCT.unpack(read_exact(fh, LENGTH_STRUCT.size, f"length of {path!r}"))
    contents = read_exact(fh, size, f"contents of {path!r}")
    return Entry(path=path, kind=kind, contents=contents)


def read_stream(fh: BinaryIO) -> Archive:
    archive = Archive()
    while True:
        entry = read_entry(fh)
        if entry is None:
            break
        archive.append(entry)
    return archive


def decode(data: bytes) -> Archive:
    return read_stream(io.BytesIO(data))


def read_archive(path: str) -> Archive:
    """Decode the archive stored at ``path``.

    Raises:
        FileNotFoundError: If no archive exists at ``path``.
        InvalidEncoding: On a malformed path or kind tag.
        TruncatedStream: If the file ends inside an entry.
    """
    with open(path, "rb") as fh:
        return read_stream(fh)


def read_archive_or_empty(path: str) -> Archive:
    try:
        return read_archive(path)
    except FileNotFoundError:
        return Archive()


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


def save_archive(archive: Archive, path: str) -> None:
    """Persist ``archive`` to ``path`` atomically.

    The archive is written to a temporary file beside ``path`` (after
    resolving symlinks) and swapped in with ``os.replace``; the target is
    untouched if anything fails.
    """
    # Write through a symlinked archive path to the file it points at.
    path = os.path.realpath(os.fspath(path))
    archive_dir = os.path.dirname(os.path.abspath(path))
    try:
        mode = os.stat(path).st_mode & 0o7777
    except FileNotFoundError:
        mode = 0o666 & ~_current_umask()

    fd, temp_path = tempfile.mkstemp(prefix=TEMP_PREFIX, suffix=DEFAULT_SUFFIX, dir=archive_dir)
    try:
        with os.fdopen(fd, "wb") as fh:
            write_archive(fh, archive)
            fh.flush()
            os.fsync(fh.fileno())
        os.chmod(temp_path, mode)
        os.replace(temp_path, path)
    except BaseException:
        try:
            os.unlink(temp_path)
        except FileNotFoundError:
            pass
        raise
