from __future__ import annotations

import copy
import sys
from pathlib import Path
from typing import Any, Callable, Dict

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from potgrid.schema import Config

FAKE_ENGINE = ROOT / "tests" / "fixtures" / "fake_engine.py"

CLUSTER_NN_TEXT = "Ti core 0.0 0.0 0.0\nTi core 0.5 0.5 0.5\n"
CLUSTER_2NN_TEXT = "O core 1.0 0.0 0.0\n"


def _deep_update(base: Dict[str, Any], extra: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in extra.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _deep_update(base[key], value)
        else:
            base[key] = value
    return base


@pytest.fixture
def templates(tmp_path: Path) -> Dict[str, Path]:
    nn = tmp_path / "clusternn.xyz"
    nn.write_text(CLUSTER_NN_TEXT, encoding="utf-8")
    second = tmp_path / "cluster2nn_wo_nn.xyz"
    second.write_text(CLUSTER_2NN_TEXT, encoding="utf-8")
    return {"nn": nn, "2nn": second}


@pytest.fixture
def engine_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Route fake-engine call counting into ``tmp_path``."""

    state = tmp_path / "engine_calls.txt"
    monkeypatch.setenv("FAKE_ENGINE_STATE", str(state))
    monkeypatch.delenv("FAKE_ENGINE_FAIL_AFTER", raising=False)
    monkeypatch.delenv("FAKE_ENGINE_DROP_LAST", raising=False)
    monkeypatch.delenv("FAKE_ENGINE_REQUEST_LOG", raising=False)
    return state


@pytest.fixture
def small_payload(tmp_path: Path, templates: Dict[str, Path]) -> Dict[str, Any]:
    """Config payload for a (2, 2, 2) slab driven by the fake engine."""

    return {
        "grid": {"numx": 2, "numy": 2, "numz": 2, "cpus": 1, "padding": 0},
        "engine": {
            "command": [sys.executable, str(FAKE_ENGINE)],
            "env": {},
            "cluster_nn": str(templates["nn"]),
            "cluster_2nn": str(templates["2nn"]),
        },
        "chunking": {"total": 3},
        "io": {"outdir": str(tmp_path / "out")},
    }


@pytest.fixture
def make_config(small_payload: Dict[str, Any]) -> Callable[..., Config]:
    def _make(**sections: Dict[str, Any]) -> Config:
        payload = _deep_update(copy.deepcopy(small_payload), sections)
        return Config(**payload)

    return _make
