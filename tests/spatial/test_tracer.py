from __future__ import annotations

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from trace_mem.spatial.tracer import PathTracer, trace_path
from trace_mem.spatial.types import Displacement, Position, pack_loc_key, unpack_loc_key


def _positions(path):
    return [s.position for s in path]


def test_reference_path_first_column() -> None:
    path = trace_path(Position(15, 14), [42, 17, 89])
    assert _positions(path) == [Position(15, 14), Position(14, 15), Position(14, 16)]
    assert path[0].displacement is None
    assert path[1].displacement == Displacement(-1, 1)
    assert path[2].displacement == Displacement(0, 1)
    assert [s.token for s in path] == [42, 17, 89]


def test_reference_path_seeded_column() -> None:
    path = trace_path(Position(18, 16), [42, 17], seed=100)
    assert _positions(path) == [Position(18, 16), Position(19, 18)]


@pytest.mark.parametrize(
    "start,tokens,expected",
    [
        (Position(0, 0), [42, 17], Position(63, 1)),
        (Position(63, 63), [17, 89], Position(63, 0)),
    ],
)
def test_wraps_at_grid_edges(start, tokens, expected) -> None:
    assert trace_path(start, tokens)[-1].position == expected


def test_empty_and_single_token_input() -> None:
    assert trace_path(Position(1, 1), []) == ()
    path = trace_path(Position(1, 1), [9])
    assert len(path) == 1 and path[0].position == Position(1, 1)


def test_start_outside_grid_is_wrapped() -> None:
    path = PathTracer(grid_size=8).trace(Position(-1, 9), [5])
    assert path[0].position == Position(7, 1)


def test_invalid_grid_size_rejected() -> None:
    with pytest.raises(ValueError):
        PathTracer(grid_size=0)


def test_invalid_hasher_settings_rejected_at_construction() -> None:
    with pytest.raises(ValueError):
        PathTracer(method="crc")


def test_step_as_dict() -> None:
    path = trace_path(Position(15, 14), [42, 17])
    assert path[0].as_dict() == {"x": 15, "y": 14, "token": 42}
    assert path[1].as_dict() == {"x": 14, "y": 15, "token": 17, "dx": -1, "dy": 1}


def test_loc_key_packs_sixteen_bit_halves() -> None:
    assert pack_loc_key(1, 2) == 0x00010002
    assert pack_loc_key(-1, 0) == 0xFFFF0000
    assert unpack_loc_key(pack_loc_key(63, 5)) == (63, 5)


@settings(max_examples=50, deadline=None)
@given(
    st.integers(min_value=1, max_value=96),
    st.integers(min_value=-200, max_value=200),
    st.integers(min_value=-200, max_value=200),
    st.lists(st.integers(min_value=0, max_value=10_000), max_size=30),
    st.integers(min_value=0, max_value=2**32 - 1),
    st.sampled_from(["linear", "murmur3"]),
)
def test_path_stays_on_grid_and_matches_stepwise_moves(g, x, y, tokens, seed, method) -> None:
    """Vectorised tracing equals applying each displacement with wraparound."""

    tracer = PathTracer(grid_size=g, method=method)
    path = tracer.trace(Position(x, y), tokens, seed)
    assert len(path) == len(tokens)
    for step in path:
        assert 0 <= step.position.x < g and 0 <= step.position.y < g
    for prev, cur in zip(path, path[1:]):
        assert prev.position.moved(cur.displacement, g) == cur.position
    assert tracer.trace(Position(x, y), tokens, seed) == path
