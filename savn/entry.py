from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterable, Iterator, List, Optional

from .constants import TAG_REGULAR_FILE, TAG_EXECUTABLE_FILE, TAG_SOFT_SYMLINK


class FileKind(IntEnum):
    REGULAR_FILE = TAG_REGULAR_FILE
    EXECUTABLE_FILE = TAG_EXECUTABLE_FILE
    SOFT_SYMLINK = TAG_SOFT_SYMLINK

    @property
    def code(self) -> str:
        """One-letter code used in listings."""
        return _KIND_CODES[self]


_KIND_CODES = {
    FileKind.REGULAR_FILE: "f",
    FileKind.EXECUTABLE_FILE: "x",
    FileKind.SOFT_SYMLINK: "l",
}


@dataclass
class Entry:
    path: str
    kind: FileKind = FileKind.REGULAR_FILE
    contents: bytes = b""

    @property
    def size(self) -> int:
        return len(self.contents)

    @property
    def symlink_target(self) -> Optional[str]:
        if self.kind != FileKind.SOFT_SYMLINK:
            return None
        return self.contents.decode("utf-8", errors="surrogateescape")


@dataclass
class Archive:
    """Ordered sequence of entries.

    Insertion order is kept and only matters for listing. Paths are not
    required to be unique; lookups return the first match from the start.
    """

    entries: List[Entry] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[Entry]:
        return iter(self.entries)

    def __getitem__(self, i: int) -> Entry:
        return self.entries[i]

    def append(self, entry: Entry) -> None:
        self.entries.append(entry)

    def find(self, path: str) -> Optional[Entry]:
        for e in self.entries:
            if e.path == path:
                return e
        return None

    def remove_paths(self, paths: Iterable[str]) -> int:
        """Drop every entry whose path is in ``paths``; return how many were dropped."""
        wanted = set(paths)
        before = len(self.entries)
        self.entries = [e for e in self.entries if e.path not in wanted]
        return before - len(self.entries)

    def paths(self) -> List[str]:
        return [e.path for e in self.entries]
