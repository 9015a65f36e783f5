"""Run manifest helpers.

A manifest is written next to each fresh potential file and checked again
when the run is restarted.  Only the line count of the potential file drives
the resume logic; the manifest exists to catch a restart whose grid, node or
chunk settings no longer match the file being extended.  Metadata collectors
are exception-safe and record ``None`` instead of raising.
"""

from __future__ import annotations

import datetime as dt
import hashlib
import logging
import platform
import sys
import warnings
from importlib import metadata
from pathlib import Path
from typing import Any, Mapping, Sequence

from .chunks import ChunkRange
from .errors import RestartError
from .grid import GridDimensions
from .warnings import RestartWarning

logger = logging.getLogger(__name__)

MANIFEST_VERSION = 1

_DEFAULT_PACKAGE_DISTS: tuple[str, ...] = (
    "numpy",
    "pydantic",
    "ruamel.yaml",
)

# Keys that must agree between the original run and a restart
_IDENTITY_KEYS: tuple[str, ...] = ("dims", "node", "chunk_id", "chunk_total", "chunk_start", "chunk_end")


def manifest_path(output_path: Path) -> Path:
    return output_path.with_name(output_path.name + ".json")


def _utc_timestamp_iso() -> str:
    stamp = dt.datetime.now(dt.timezone.utc).replace(microsecond=0).isoformat()
    return stamp.replace("+00:00", "Z")


def _safe_package_version(dist_name: str) -> str | None:
    try:
        return metadata.version(dist_name)
    except metadata.PackageNotFoundError:
        return None


def _safe_sha256(path: Path, *, chunk_bytes: int = 1024 * 1024) -> str | None:
    hasher = hashlib.sha256()
    try:
        with path.open("rb") as fh:
            for chunk in iter(lambda: fh.read(chunk_bytes), b""):
                hasher.update(chunk)
    except OSError:
        return None
    return hasher.hexdigest()


def build_manifest(
    *,
    dims: GridDimensions,
    node: int,
    owned: ChunkRange,
    chunked: bool,
    templates: Sequence[Path] = (),
    package_dists: Sequence[str] | None = None,
) -> dict[str, Any]:
    """Return a JSON-serialisable description of the run."""

    packages = {dist: _safe_package_version(dist) for dist in package_dists or _DEFAULT_PACKAGE_DISTS}
    return {
        "version": MANIFEST_VERSION,
        "timestamp_utc": _utc_timestamp_iso(),
        "dims": list(dims.as_tuple()),
        "node": int(node),
        "chunk_id": owned.chunk_id if chunked else None,
        "chunk_total": owned.chunk_total if chunked else None,
        "chunk_start": owned.start,
        "chunk_end": owned.end,
        "templates": {str(path): _safe_sha256(path) for path in templates},
        "python": platform.python_version(),
        "argv": list(sys.argv),
        "packages": packages,
    }


def check_manifest(previous: Mapping[str, Any] | None, current: Mapping[str, Any]) -> None:
    """Compare the stored manifest with the one the restart would write.

    Identity mismatches are fatal; template drift and a missing manifest only
    warn, since a file from an older run carries no manifest at all.
    """

    if previous is None:
        warnings.warn(
            "no run manifest found; cannot verify grid settings of the restarted file",
            RestartWarning,
            stacklevel=2,
        )
        return
    mismatched = [key for key in _IDENTITY_KEYS if previous.get(key) != current.get(key)]
    if mismatched:
        detail = ", ".join(f"{key}: {previous.get(key)!r} -> {current.get(key)!r}" for key in mismatched)
        raise RestartError(f"restart does not match the original run ({detail})")
    old_templates = previous.get("templates") or {}
    new_templates = current.get("templates") or {}
    for name, digest in new_templates.items():
        if name in old_templates and old_templates[name] != digest:
            warnings.warn(
                f"template {name} changed since the original run",
                RestartWarning,
                stacklevel=2,
            )
    logger.debug("manifest check passed for dims=%s node=%s", current.get("dims"), current.get("node"))


__all__ = ["MANIFEST_VERSION", "manifest_path", "build_manifest", "check_manifest"]
