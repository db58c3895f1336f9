"""
savn — a minimal flat file archive.

An archive is a plain sequence of entries, each a path, a one-byte kind tag
(regular file, executable, symlink), a u32 length and the raw contents,
closed by a single zero byte. There is no index, compression or checksum;
the whole archive is decoded in one forward pass and rewritten in full on
every change.

- ``savn.codec``: encode/decode archives to bytes, streams and files
  (atomic temp-file + rename on save).
- ``savn.ops``: list, find, add from the filesystem, remove, extract.
- ``savn.cli``: the ``savn <archive> list|add|remove|extract`` command.
"""

__version__ = "0.1"

__all__ = [
    "constants",
    "errors",
    "entry",
    "codec",
    "ops",
    "cli",
]
