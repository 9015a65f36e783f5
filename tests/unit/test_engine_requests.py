from __future__ import annotations

import sys
from pathlib import Path

import pytest

from potgrid.engine import Engine, RequestTemplates, format_point_line, read_template, run_engine
from potgrid.errors import EngineError, TemplateError
from potgrid.grid import GridIndex, SlabGeometry


def test_point_line_uses_five_decimals():
    assert format_point_line((-0.012251, 0.0, 1.234567)) == "O   -0.01225   0.00000   1.23457"


def test_request_layout(templates):
    nn_text = templates["nn"].read_text(encoding="utf-8")
    second_text = templates["2nn"].read_text(encoding="utf-8")
    tmpl = RequestTemplates.from_files(templates["nn"], templates["2nn"])
    request = tmpl.build_request([(0.1, 0.2, 0.3), (0.4, 0.5, 0.6)])
    block = (
        "cart region 1\n"
        + nn_text
        + "cart region 2 rigid\n"
        + second_text
        + "O   {}\nlibrary streitzmintmire\n\n"
    )
    expected = (
        "conp opti\n"
        + block.format("0.10000   0.20000   0.30000")
        + block.format("0.40000   0.50000   0.60000")
    )
    assert request == expected


def test_request_without_second_shell(templates):
    tmpl = RequestTemplates.from_files(templates["nn"], None)
    request = tmpl.build_request([(0.0, 0.0, 0.0)])
    assert "cart region 2 rigid" not in request
    assert request.startswith("conp opti\ncart region 1\n")
    assert request.count("library streitzmintmire") == 1


def test_request_is_byte_identical_across_calls(templates):
    geom = SlabGeometry()
    tmpl = RequestTemplates.from_files(templates["nn"], templates["2nn"])
    index = GridIndex(120, 33, 7)
    first = tmpl.build_request([geom.coordinate_of(index, 3)])
    second = tmpl.build_request([geom.coordinate_of(GridIndex(120, 33, 7), 3)])
    assert first.encode() == second.encode()


def test_missing_template(tmp_path: Path):
    with pytest.raises(TemplateError):
        read_template(tmp_path / "nope.xyz")


def test_run_engine_round_trip():
    script = "import sys; sys.stdout.write(sys.stdin.read().upper())"
    assert run_engine("conp opti\n", [sys.executable, "-c", script]) == "CONP OPTI\n"


def test_run_engine_passes_environment():
    script = "import os, sys; sys.stdin.read(); print(os.environ['GULP_LIB'])"
    out = run_engine("", [sys.executable, "-c", script], env={"GULP_LIB": "/opt/gulp/Libraries"})
    assert out.strip() == "/opt/gulp/Libraries"


def test_run_engine_large_request_completes():
    script = "import sys; data = sys.stdin.read(); print(len(data))"
    request = "x" * (1 << 20)
    assert run_engine(request, [sys.executable, "-c", script]).strip() == str(1 << 20)


def test_engine_exiting_without_reading_stdin_is_a_write_failure():
    script = "import sys; sys.exit(0)"
    with pytest.raises(EngineError, match="couldn't write"):
        run_engine("x" * (1 << 22), [sys.executable, "-c", script])


def test_engine_output_before_reading_stdin_does_not_block():
    script = (
        "import sys; sys.stdout.write('y' * (1 << 18)); sys.stdout.flush(); "
        "data = sys.stdin.read(); sys.stdout.write('|%d' % len(data))"
    )
    out = run_engine("x" * (1 << 20), [sys.executable, "-c", script])
    assert out.startswith("y" * (1 << 18))
    assert out.endswith(f"|{1 << 20}")


def test_fake_engine_skips_template_atoms(templates, engine_state):
    fake = Path(__file__).resolve().parents[1] / "fixtures" / "fake_engine.py"
    tmpl = RequestTemplates.from_files(templates["nn"], templates["2nn"])
    request = tmpl.build_request([(0.1, 0.2, 0.3), (0.4, 0.5, 0.6)])
    assert "O core" in request
    out = run_engine(request, [sys.executable, str(fake)])
    assert out.count("Final energy") == 2


def test_spawn_failure(tmp_path: Path):
    with pytest.raises(EngineError, match="couldn't spawn"):
        run_engine("", [str(tmp_path / "missing-engine")])


def test_nonzero_exit_is_fatal():
    script = "import sys; sys.stdin.read(); sys.exit(4)"
    with pytest.raises(EngineError, match="status 4"):
        run_engine("", [sys.executable, "-c", script])


def test_empty_command():
    with pytest.raises(EngineError):
        run_engine("", [])


def test_engine_counts_calls(templates):
    tmpl = RequestTemplates.from_files(templates["nn"], templates["2nn"])
    engine = Engine(templates=tmpl, command=[sys.executable, "-c", "import sys; print(sys.stdin.read()[:9])"])
    out = engine.run(engine.request_for([(0.0, 0.0, 0.0)]))
    assert out.strip() == "conp opti"
    assert engine.calls == 1
