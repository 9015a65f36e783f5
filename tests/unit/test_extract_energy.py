from __future__ import annotations

import pytest

from potgrid import constants
from potgrid.errors import ExtractionError
from potgrid.extract import extract_energies, format_result


def test_conversion_and_format():
    out = "  Final energy =   -123.456000 eV\n"
    values = extract_energies(out, 1)
    assert values == [f"{-123.456 * 239.2311:.6f}"]
    assert values == ["-29534.514682"]


def test_values_keep_submission_order():
    out = (
        "  Final energy =      -1.50000000 eV\n  Final Gnorm = 0.1\n"
        "  Final energy =       2.25000000 eV\n"
        "  Final energy =     -10.00000000 eV\n"
    )
    values = extract_energies(out, 3, factor=2.0)
    assert values == ["-3.000000", "4.500000", "-20.000000"]


def test_missing_energy_is_fatal():
    out = "  Final energy =      -1.50000000 eV\n"
    with pytest.raises(ExtractionError, match="1 final energies for 2"):
        extract_energies(out, 2)


def test_surplus_energy_is_fatal():
    out = "  Final energy = -1.5 eV\n  Final energy = -1.5 eV\n"
    with pytest.raises(ExtractionError):
        extract_energies(out, 1)


def test_no_output_at_all():
    with pytest.raises(ExtractionError):
        extract_energies("", 1)


def test_unparsable_capture_is_fatal():
    with pytest.raises(ExtractionError, match="Issue capturing"):
        extract_energies("E = **** eV", 1, pattern=r"E = (\S+) eV")


def test_format_result_decimals():
    assert format_result(1.0) == "1.000000"
    assert constants.ENERGY_FACTOR == 239.2311
