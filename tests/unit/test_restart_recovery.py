from __future__ import annotations

import pytest

from potgrid.chunks import all_chunks, full_range
from potgrid.errors import RestartError
from potgrid.grid import GridDimensions, GridIndex, from_linear, iter_indices
from potgrid.restart import (
    ResumeGuard,
    ResumeState,
    fresh_plan,
    plan_restart,
    resume_position,
    scan_resume_position,
)
from potgrid.sweep import iter_row_batches


def _flatten(batches):
    return [index for _x, _y, batch in batches for index in batch]


@pytest.mark.parametrize("shape", [(2, 2, 2), (3, 4, 5), (1, 3, 7)])
def test_closed_form_matches_scan_and_from_linear(shape):
    dims = GridDimensions(*shape)
    for solved in range(dims.total):
        closed = resume_position(solved, dims)
        assert closed == scan_resume_position(solved, dims)
        assert closed == from_linear(solved, dims)


def test_resume_position_examples():
    dims = GridDimensions(306, 306, 16)
    assert resume_position(0, dims) == GridIndex(0, 0, 0)
    assert resume_position(16, dims) == GridIndex(0, 1, 0)
    assert resume_position(306 * 16, dims) == GridIndex(1, 0, 0)
    assert resume_position(306 * 16 + 17, dims) == GridIndex(1, 1, 1)


def test_fully_solved_and_overfull_counts():
    dims = GridDimensions(2, 2, 2)
    assert resume_position(8, dims) is None
    assert scan_resume_position(8, dims) is None
    with pytest.raises(RestartError):
        resume_position(9, dims)
    with pytest.raises(RestartError):
        resume_position(-1, dims)


def test_guard_is_one_shot():
    guard = ResumeGuard.pending(GridIndex(1, 2, 3))
    assert guard.state is ResumeState.PENDING
    assert guard.skips_row(0, 5)
    assert guard.skips_row(1, 1)
    assert not guard.skips_row(1, 2)
    assert not guard.admits(GridIndex(1, 2, 2))
    assert guard.admits(GridIndex(1, 2, 3))
    released = guard.released()
    assert released.state is ResumeState.NORMAL
    assert not released.skips_row(0, 0)
    assert released.admits(GridIndex(0, 0, 0))


@pytest.mark.parametrize("shape", [(2, 2, 2), (3, 2, 4)])
def test_unchunked_restart_never_skips_or_repeats(shape):
    dims = GridDimensions(*shape)
    canonical = list(iter_indices(dims))
    owned = full_range(dims.total)
    assert _flatten(iter_row_batches(dims, owned, fresh_plan(owned).guard)) == canonical
    for solved in range(dims.total + 1):
        plan = plan_restart(solved, dims, owned, chunked=False)
        assert _flatten(iter_row_batches(dims, plan.owned, plan.guard)) == canonical[solved:]
        assert plan.complete == (solved == dims.total)


def test_unchunked_restart_uses_pending_guard():
    dims = GridDimensions(2, 2, 2)
    plan = plan_restart(3, dims, full_range(dims.total), chunked=False)
    assert plan.guard.is_pending
    assert plan.guard.position == GridIndex(0, 1, 1)
    batches = list(iter_row_batches(dims, plan.owned, plan.guard))
    assert [(x, y) for x, y, _ in batches] == [(0, 1), (1, 0), (1, 1)]
    assert batches[0][2] == [GridIndex(0, 1, 1)]
    assert len(batches[1][2]) == 2


def test_chunked_restart_advances_start():
    dims = GridDimensions(3, 2, 4)
    canonical = list(iter_indices(dims))
    for owned in all_chunks(dims.total, 5):
        for solved in range(owned.size + 1):
            plan = plan_restart(solved, dims, owned, chunked=True)
            assert not plan.guard.is_pending
            assert plan.owned.start == owned.start + solved
            got = _flatten(iter_row_batches(dims, plan.owned, plan.guard))
            assert got == canonical[owned.start + solved : owned.end + 1]


def test_chunked_restart_rejects_overfull_file():
    dims = GridDimensions(2, 2, 2)
    owned = all_chunks(dims.total, 3)[0]
    with pytest.raises(RestartError):
        plan_restart(owned.size + 1, dims, owned, chunked=True)


def test_rows_are_cut_at_chunk_boundaries():
    dims = GridDimensions(2, 2, 3)
    owned = all_chunks(dims.total, 3)[1]
    assert (owned.start, owned.end) == (4, 7)
    batches = list(iter_row_batches(dims, owned, ResumeGuard.normal()))
    assert [(x, y, [i.z for i in b]) for x, y, b in batches] == [(0, 1, [1, 2]), (1, 0, [0, 1])]
