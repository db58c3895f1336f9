from __future__ import annotations

import argparse
import sys
import time
from typing import List

from savn.codec import read_archive_or_empty, save_archive
from savn.entry import Entry
from savn.errors import SavnError, TruncatedStream
from savn.ops import add_paths, extract_all, format_listing, remove_paths


def cmd_list(archive: str) -> bool:
    """List archive entries.

    Args:
        archive: Path to a .savn file. A missing file lists as empty.
    """
    for line in format_listing(read_archive_or_empty(archive)):
        print(line)
    return True


def cmd_add(archive: str, inputs: List[str], *, detect_executable: bool = False, quiet: bool = False) -> bool:
    """Add files, symlinks and directories to an archive, creating it if needed.

    The archive is rewritten only after every input was read successfully.

    Args:
        archive: Path to the .savn file to update.
        inputs: Filesystem paths to add; directories are walked recursively.
        detect_executable: Store files with an execute bit as executables.
        quiet: Suppress per-entry progress lines.
    """
    t0 = time.time()
    savn = read_archive_or_empty(archive)
    before = len(savn)

    def _progress(e: Entry) -> None:
        if not quiet:
            print(f"   adding: {e.path}")

    added = add_paths(savn, inputs, detect_executable=detect_executable, on_entry=_progress)
    save_archive(savn, archive)
    dt = max(0.000001, time.time() - t0)
    print(f"Done: added {added} entries ({before} -> {len(savn)}) in {dt:.1f}s")
    return True


def cmd_remove(archive: str, paths: List[str]) -> bool:
    """Remove entries by exact archive path; unknown paths are ignored.

    Args:
        archive: Path to the .savn file to update.
        paths: Archive paths to drop.
    """
    savn = read_archive_or_empty(archive)
    removed = remove_paths(savn, paths)
    save_archive(savn, archive)
    print(f"Done: removed {removed} entries; {len(savn)} remaining")
    return True


def cmd_extract(archive: str, outdir: str, *, quiet: bool = False) -> bool:
    """Extract every entry under ``outdir``, creating parent directories.

    Args:
        archive: Path to a .savn file.
        outdir: Destination directory.
        quiet: Suppress per-entry progress lines.
    """
    t0 = time.time()
    savn = read_archive_or_empty(archive)
    total = len(savn)
    done = 0

    def _progress(e: Entry) -> None:
        nonlocal done
        done += 1
        if not quiet:
            if e.symlink_target is not None:
                target = e.contents.decode("utf-8", "backslashreplace")
                print(f" symlinking: {done:>4}/{total:<4} {e.path} -> {target}")
            else:
                print(f" extracting: {done:>4}/{total:<4} {e.path}")

    extract_all(savn, outdir, on_entry=_progress)
    nbytes = sum(e.size for e in savn)
    dt = max(0.000001, time.time() - t0)
    mib = nbytes / (1024.0 * 1024.0)
    print(f"Done: extracted {done}/{total} entries ({mib:.2f} MiB) in {dt:.1f}s")
    return True


def main(argv: List[str] | None = None):
    ap = argparse.ArgumentParser(
        prog="savn",
        description="savn flat file archive tool",
        epilog="Archives store regular files, executables and symlinks; directories are walked, not stored.",
    )
    ap.add_argument("archive", help="Archive path (created on first add)")
    sub = ap.add_subparsers(dest="cmd", required=True)

    sub.add_parser("list", help="List archive contents")

    ap_add = sub.add_parser("add", help="Add files/directories")
    ap_add.add_argument("inputs", nargs="+", help="Input files/directories")
    ap_add.add_argument(
        "-x",
        "--detect-executable",
        action="store_true",
        help="Store files that have an execute bit as executables (default: store all files as regular)",
    )
    ap_add.add_argument("--quiet", help="limit outputs to summaries only", action="store_true")

    ap_remove = sub.add_parser("remove", help="Remove entries by archive path")
    ap_remove.add_argument("paths", nargs="+", help="Archive paths to remove")

    ap_extract = sub.add_parser("extract", help="Extract all entries")
    ap_extract.add_argument("target", help="Target folder")
    ap_extract.add_argument("--quiet", help="limit outputs to summaries only", action="store_true")

    args = ap.parse_args(argv)
    try:
        if args.cmd == "list":
            cmd_list(args.archive)
        elif args.cmd == "add":
            cmd_add(args.archive, args.inputs, detect_executable=args.detect_executable, quiet=args.quiet)
        elif args.cmd == "remove":
            cmd_remove(args.archive, args.paths)
        elif args.cmd == "extract":
            cmd_extract(args.archive, args.target, quiet=args.quiet)
        else:
            raise RuntimeError("Unknown command")
    except TruncatedStream as e:
        print(f"Error: {args.archive} is truncated or not an archive: {e}", file=sys.stderr)
        sys.exit(2)
    except (SavnError, OSError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
