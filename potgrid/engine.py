"""Request assembly and the subprocess round trip to the external engine.

Each call launches a fresh engine process, writes the whole request to its
stdin and closes it (the engine only starts once it sees end-of-input),
while stdout is read to completion.  Nothing is retried: any failure
surfaces as :class:`~potgrid.errors.EngineError`.
"""
from __future__ import annotations

import logging
import os
import subprocess
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from . import constants
from .errors import EngineError, TemplateError

logger = logging.getLogger(__name__)

Coordinate = Tuple[float, float, float]


def read_template(path: Path) -> str:
    """Read a cluster template verbatim."""

    try:
        with Path(path).open("r", encoding="utf-8") as fh:
            return fh.read()
    except OSError as exc:
        raise TemplateError(f"Cannot get cluster info from {path}. Reason: {exc}.") from exc


def format_point_line(coord: Coordinate) -> str:
    d = constants.COORD_DECIMALS
    x, y, z = coord
    return f"O   {x:.{d}f}   {y:.{d}f}   {z:.{d}f}"


@dataclass(frozen=True)
class RequestTemplates:
    """Static text shared by every request of a run."""

    cluster_nn: str
    cluster_2nn: Optional[str] = None
    header: str = constants.JOB_HEADER
    library: str = constants.LIBRARY

    @classmethod
    def from_files(
        cls,
        cluster_nn: Path,
        cluster_2nn: Optional[Path] = None,
        *,
        header: str = constants.JOB_HEADER,
        library: str = constants.LIBRARY,
    ) -> "RequestTemplates":
        nn = read_template(cluster_nn)
        second = read_template(cluster_2nn) if cluster_2nn is not None else None
        return cls(cluster_nn=nn, cluster_2nn=second, header=header, library=library)

    def point_block(self, coord: Coordinate) -> str:
        parts = ["cart region 1\n", self.cluster_nn]
        if self.cluster_2nn is not None:
            parts.append("cart region 2 rigid\n")
            parts.append(self.cluster_2nn)
        parts.append(format_point_line(coord))
        parts.append(f"\nlibrary {self.library}\n\n")
        return "".join(parts)

    def build_request(self, coords: Iterable[Coordinate]) -> str:
        """Header line followed by one block per point, in the given order."""

        blocks = [f"{self.header}\n"]
        blocks.extend(self.point_block(coord) for coord in coords)
        return "".join(blocks)


def run_engine(
    request: str,
    command: Sequence[str],
    *,
    env: Optional[Mapping[str, str]] = None,
    cwd: Optional[Path] = None,
) -> str:
    """Feed ``request`` to a fresh engine process and return its stdout."""

    if not command:
        raise EngineError("engine command is empty")
    full_env = os.environ.copy()
    if env:
        full_env.update({str(k): str(v) for k, v in env.items()})
    try:
        proc = subprocess.Popen(
            list(command),
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            cwd=None if cwd is None else str(cwd),
            env=full_env,
            encoding="utf-8",
            errors="replace",
        )
    except OSError as exc:
        raise EngineError(f"couldn't spawn {command[0]}: {exc}") from exc

    write_errors: List[OSError] = []

    def _feed(stdin: IO[str]) -> None:
        # the engine only starts once stdin is closed
        try:
            with stdin:
                stdin.write(request)
        except OSError as exc:
            write_errors.append(exc)

    with proc:
        assert proc.stdin is not None and proc.stdout is not None
        # stdout is drained while the request is fed so a chatty engine cannot fill its pipe
        feeder = threading.Thread(target=_feed, args=(proc.stdin,), daemon=True)
        feeder.start()
        try:
            output = proc.stdout.read()
        except OSError as exc:
            proc.kill()
            raise EngineError(f"couldn't read {command[0]} stdout: {exc}") from exc
        finally:
            feeder.join()
        returncode = proc.wait()

    if write_errors:
        raise EngineError(f"couldn't write to {command[0]} stdin: {write_errors[0]}") from write_errors[0]
    if returncode != 0:
        raise EngineError(f"{command[0]} exited with status {returncode}")
    return output


@dataclass
class Engine:
    """Launch settings plus the templates every request embeds."""

    templates: RequestTemplates
    command: List[str] = field(default_factory=lambda: ["./gulp"])
    env: Dict[str, str] = field(default_factory=dict)
    cwd: Optional[Path] = None
    calls: int = 0

    def request_for(self, coords: Sequence[Coordinate]) -> str:
        return self.templates.build_request(coords)

    def run(self, request: str) -> str:
        self.calls += 1
        logger.debug("engine call %d: %d bytes of input", self.calls, len(request))
        return run_engine(request, self.command, env=self.env, cwd=self.cwd)


__all__ = [
    "Coordinate",
    "read_template",
    "format_point_line",
    "RequestTemplates",
    "run_engine",
    "Engine",
]
