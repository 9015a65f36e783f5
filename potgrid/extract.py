"""Pull converted energies out of engine output."""
from __future__ import annotations

import re
from typing import List, Pattern, Union

from . import constants
from .errors import ExtractionError

FINAL_ENERGY_RE: Pattern[str] = re.compile(constants.FINAL_ENERGY_PATTERN)


def format_result(value: float) -> str:
    return f"{value:.{constants.RESULT_DECIMALS}f}"


def extract_energies(
    output: str,
    expected: int,
    *,
    factor: float = constants.ENERGY_FACTOR,
    pattern: Union[str, Pattern[str]] = FINAL_ENERGY_RE,
) -> List[str]:
    """Return one formatted, converted value per ``Final energy`` line.

    Parameters
    ----------
    output:
        Complete engine stdout for one request.
    expected:
        Number of points submitted in that request.  Matches are returned in
        submission order; a different number of matches means a point was
        lost or duplicated and is treated as fatal.
    factor:
        Conversion applied to each energy (eV) before formatting.
    """

    regex = re.compile(pattern) if isinstance(pattern, str) else pattern
    values: List[str] = []
    for match in regex.finditer(output):
        captured = match.group(1)
        try:
            energy = float(captured)
        except (TypeError, ValueError) as exc:
            raise ExtractionError(
                f"Issue capturing a final energy from engine output: {captured!r}"
            ) from exc
        values.append(format_result(energy * factor))
    if len(values) != expected:
        raise ExtractionError(
            f"engine output holds {len(values)} final energies for {expected} submitted points"
        )
    return values


__all__ = ["FINAL_ENERGY_RE", "format_result", "extract_energies"]
