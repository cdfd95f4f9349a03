import random

import pytest

import handle_table
from conftest import fill


def test_scenario(table):
    assert fill(table, 4) == [0, 1, 2, 3]
    assert table.capacity == 4
    assert table.alloc() == 4
    assert table.capacity == 8

    assert table.free(2) == 5
    assert list(table.handles()) == [0, 1, 3, 4]
    assert table.free(4) == 4
    assert list(table.handles()) == [0, 1, 3]

    assert table.alloc() == 2
    assert list(table.handles()) == [0, 1, 2, 3]


def test_free_last_handle_releases_storage(table):
    handle = table.alloc()
    assert table.free(handle) == 0
    assert not table.allocated
    assert table.capacity == 0
    assert table.used == 0
    assert table.slots is None
    assert table.allocator.slots_in_use == 0


def test_mark_skips_interior_holes(table):
    fill(table, 8)
    assert table.free(7) == 7
    assert table.free(6) == 6
    assert table.free(3) == 6
    assert table.free(5) == 5
    assert table.free(4) == 3
    assert table.free(0) == 3
    assert table.free(2) == 2
    assert table.free(1) == 0


def test_mark_after_free_in_full_table(table):
    fill(table, 4)
    assert table.free(1) == 4
    assert table.high_water_mark == 4


@pytest.mark.parametrize("seed", [0, 1, 2, 3])
def test_mark_matches_greatest_live_handle(seed):
    rng = random.Random(seed)
    table = handle_table.create_table(chunk_size=4, debug=True)
    live = set()
    for _ in range(500):
        if live and rng.random() < 0.45:
            handle = rng.choice(sorted(live))
            live.remove(handle)
            mark = table.free(handle)
            assert mark == (max(live) + 1 if live else 0)
        else:
            handle = table.alloc()
            assert handle not in live
            assert handle == min(set(range(len(live) + 1)) - live)
            live.add(handle)
        assert table.used == len(live)
        assert table.capacity % 4 == 0


def test_double_free(table):
    fill(table, 2)
    table.free(0)
    with pytest.raises(handle_table.InvariantError) as excinfo:
        table.free(0)
    assert excinfo.value.code == "INVARIANT_VIOLATED"
    assert table.used == 1


@pytest.mark.parametrize("handle", [-1, 4, 100])
def test_free_out_of_range(table, handle):
    table.alloc()
    with pytest.raises(handle_table.InvariantError):
        table.free(handle)
    assert table.used == 1


@pytest.mark.parametrize("handle", [True, 0.0, "0", None])
def test_free_non_int(table, handle):
    table.alloc()
    with pytest.raises(handle_table.InvariantError):
        table.free(handle)
    assert table.used == 1


def test_free_on_absent_table(table):
    with pytest.raises(handle_table.InvariantError) as excinfo:
        table.free(0)
    assert "no storage" in str(excinfo.value)
