"""Lightweight terminal progress reporting."""

from __future__ import annotations

import math
import sys
import time

ETA_EWMA_ALPHA = 0.1
ETA_MIN_SAMPLES = 3


class ProgressReporter:
    """Lightweight terminal progress bar with ETA feedback.

    ``done`` counts points solved so far, including points recovered from a
    restarted file, so the bar continues where the previous run stopped.
    """

    def __init__(
        self,
        total_points: int,
        *,
        initial: int = 0,
        enabled: bool = False,
        label: str | None = None,
    ) -> None:
        self.enabled = bool(enabled and total_points > 0)
        self.total_points = max(int(total_points), 1)
        self.done = max(int(initial), 0)
        self.label = label
        self.start = time.monotonic()
        self._finished = False
        self._isatty = sys.stdout.isatty()
        self._last_percent_int: int = -1
        self._eta_ewma_s: float | None = None
        self._eta_samples: int = 0
        self._last_wall: float | None = None
        self._last_done: int | None = None

    def advance(self, n_points: int, *, force: bool = False) -> None:
        self.update(self.done + n_points, force=force)

    def update(self, done: int, *, force: bool = False) -> None:
        """Render the bar when the percent changes by 0.1% or forced."""

        self.done = done
        if not self.enabled or self._finished:
            return
        now = time.monotonic()
        self._update_eta(done, now)
        is_last = done >= self.total_points
        frac = min(max(done / self.total_points, 0.0), 1.0)
        percent_tenth = int(frac * 1000)
        if not force and not is_last and percent_tenth == self._last_percent_int:
            return
        self._last_percent_int = percent_tenth
        bar_width = 28
        filled = int(bar_width * frac)
        bar = "#" * filled + "-" * (bar_width - filled)
        remaining = max(self.total_points - done, 0)
        eta_seconds = float("nan")
        if (
            self._eta_ewma_s is not None
            and math.isfinite(self._eta_ewma_s)
            and self._eta_samples >= ETA_MIN_SAMPLES
        ):
            eta_seconds = self._eta_ewma_s * remaining

        def _format_eta(seconds: float) -> str:
            if not math.isfinite(seconds) or seconds < 0.0:
                return "ETA ?"
            if seconds >= 3600.0:
                return f"ETA {seconds/3600.0:.1f}h"
            if seconds >= 60.0:
                return f"ETA {seconds/60.0:.1f}m"
            return f"ETA {seconds:.0f}s"

        prefix = f"{self.label} " if self.label else ""
        line = f"{prefix}[{bar}] {frac * 100:5.1f}% point {done}/{self.total_points} {_format_eta(eta_seconds)}"
        if self._isatty:
            sys.stdout.write(f"\r\033[2K{line}")
            if is_last:
                sys.stdout.write("\n")
        else:
            sys.stdout.write(f"{line}\n")
        if is_last:
            self._finished = True
        sys.stdout.flush()

    def finish(self) -> None:
        """Force a final render to end the line cleanly."""

        if not self.enabled or self._finished:
            return
        self.update(self.done, force=True)
        if self._isatty and not self._finished:
            sys.stdout.write("\n")
            sys.stdout.flush()
        self._finished = True

    def _update_eta(self, done: int, now: float) -> None:
        """Update the per-point EWMA from the latest wall-clock delta."""

        if self._last_wall is not None and self._last_done is not None:
            delta = done - self._last_done
            if delta > 0:
                per_point = (now - self._last_wall) / delta
                if math.isfinite(per_point) and per_point > 0.0:
                    if self._eta_ewma_s is None:
                        self._eta_ewma_s = per_point
                    else:
                        self._eta_ewma_s = (
                            ETA_EWMA_ALPHA * per_point + (1.0 - ETA_EWMA_ALPHA) * self._eta_ewma_s
                        )
                    self._eta_samples += 1
        self._last_wall = now
        self._last_done = done
