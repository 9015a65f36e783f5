"""Output helper utilities.

The potential file is append-only text, one value per line.  Its line count
is the progress counter used by restarts, so every appended batch is flushed
and synced before the sweep moves on.  JSON is used for the small manifest
stored next to it.
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import IO, Any, Iterable, Mapping, Optional, Sequence

from ..errors import OutputFileError, RestartError

logger = logging.getLogger(__name__)


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def potential_filename(node: int, chunk_id: Optional[int] = None) -> str:
    """Return ``potential_<node>.dat`` or ``potential_<node>.c<chunk>.dat``."""

    if chunk_id is None:
        return f"potential_{node}.dat"
    return f"potential_{node}.c{chunk_id}.dat"


def count_solved(path: Path) -> int:
    """Count result lines already present in ``path``.

    A final line without its newline means the previous run died mid-write;
    that value cannot be trusted, so the file is rejected.
    """

    count = 0
    last = b""
    with path.open("rb") as fh:
        for raw in fh:
            count += 1
            last = raw
    if last and not last.endswith(b"\n"):
        raise RestartError(
            f"{path} ends with an incomplete line ({last!r}); remove it before restarting"
        )
    return count


class OutputFile:
    """Append-only potential file."""

    def __init__(self, path: Path, handle: IO[str]) -> None:
        self.path = path
        self._fh: Optional[IO[str]] = handle
        self.lines_written = 0

    @classmethod
    def create(cls, path: Path) -> "OutputFile":
        """Create (or truncate) ``path`` for a fresh run."""

        try:
            _ensure_parent(path)
            handle = path.open("w", encoding="ascii")
        except OSError as exc:
            raise OutputFileError(f"Couldn't create {path}: {exc}") from exc
        return cls(path, handle)

    @classmethod
    def reopen(cls, path: Path) -> "OutputFile":
        """Open an existing file for appending; it must already exist."""

        if not path.exists():
            raise OutputFileError(f"Issue with {path}: no such file to restart from")
        try:
            handle = path.open("a", encoding="ascii")
        except OSError as exc:
            raise OutputFileError(f"Issue with {path}: {exc}") from exc
        return cls(path, handle)

    def append(self, lines: Sequence[str]) -> None:
        """Append pre-formatted values, one per line, and sync to disk."""

        if self._fh is None:
            raise OutputFileError(f"{self.path} is closed")
        if not lines:
            return
        payload = "".join(f"{line}\n" for line in lines)
        try:
            self._fh.write(payload)
            self._fh.flush()
            os.fsync(self._fh.fileno())
        except OSError as exc:
            raise OutputFileError(f"couldn't write to output {self.path}: {exc}") from exc
        self.lines_written += len(lines)

    def close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None

    def __enter__(self) -> "OutputFile":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def write_manifest(manifest: Mapping[str, Any], path: Path) -> None:
    """Write the run manifest as indented JSON."""

    _ensure_parent(path)
    with path.open("w", encoding="utf-8") as fh:
        json.dump(manifest, fh, indent=2, sort_keys=True)


def read_manifest(path: Path) -> Optional[dict]:
    """Return the stored manifest, or ``None`` when there is none."""

    if not path.exists():
        return None
    try:
        with path.open("r", encoding="utf-8") as fh:
            manifest = json.load(fh)
    except (OSError, ValueError) as exc:
        raise RestartError(f"run manifest {path} is unreadable: {exc}") from exc
    if not isinstance(manifest, dict):
        raise RestartError(f"run manifest {path} does not hold a JSON object")
    return manifest


def merge_chunk_files(chunk_paths: Iterable[Path], expected: Iterable[int], dest: Path) -> int:
    """Concatenate chunk files in order into ``dest``.

    ``expected`` holds the number of points each chunk owns.  Any chunk that
    is missing, short or over-full aborts the merge before ``dest`` is
    touched.  Returns the number of lines written.
    """

    paths = list(chunk_paths)
    sizes = list(expected)
    if len(paths) != len(sizes):
        raise ValueError("chunk_paths and expected must have the same length")
    for path, size in zip(paths, sizes):
        if not path.exists():
            raise OutputFileError(f"chunk file missing: {path}")
        solved = count_solved(path)
        if solved != size:
            raise RestartError(f"{path} holds {solved} of {size} points; finish it before merging")

    _ensure_parent(dest)
    total = 0
    with dest.open("w", encoding="ascii") as out:
        for path in paths:
            with path.open("r", encoding="ascii") as fh:
                for line in fh:
                    out.write(line)
                    total += 1
    logger.info("Merged %d chunk files into %s (%d lines)", len(paths), dest, total)
    return total


__all__ = [
    "potential_filename",
    "count_solved",
    "OutputFile",
    "write_manifest",
    "read_manifest",
    "merge_chunk_files",
]
