import pytest

import handle_table
from conftest import fill


def test_first_alloc_creates_storage(table):
    assert not table.allocated
    assert table.slots is None
    assert table.alloc() == 0
    assert table.allocated
    assert table.capacity == 4
    assert table.used == 1
    assert table.slots == [handle_table.RESERVED, None, None, None]


def test_default_chunk_size(default_table):
    default_table.alloc()
    assert default_table.capacity == handle_table.DEFAULT_CHUNK_SIZE == 16


def test_handles_are_distinct(default_table):
    handles = fill(default_table, 100)
    assert handles == list(range(100))
    assert len(set(handles)) == 100
    assert default_table.used == 100
    assert default_table.capacity == 112


def test_growth_by_one_chunk(table):
    handles = fill(table, 4)
    assert table.capacity == 4

    slots_before = table.slots
    assert table.alloc() == 4
    assert table.capacity == 8
    assert table.used == 5
    assert handles + [4] == list(table.handles())
    # growth swaps the slot list, views must be fetched again
    assert table.slots is not slots_before
    assert table.slots[5:] == [None, None, None]


def test_reuses_lowest_free_handle(table):
    fill(table, 6)
    table.free(3)
    table.free(1)
    assert table.alloc() == 1
    assert table.alloc() == 3
    assert table.alloc() == 6


def test_reuse_before_growth(table):
    fill(table, 4)
    table.free(2)
    assert table.alloc() == 2
    assert table.capacity == 4


def test_alloc_failure_on_absent_table():
    table = handle_table.create_table(chunk_size=4, max_slots=0)
    with pytest.raises(handle_table.AllocationError) as excinfo:
        table.alloc()
    assert excinfo.value.code == "ALLOCATION_FAILED"
    assert not table.allocated
    assert table.allocator.slots_in_use == 0


def test_alloc_failure_on_growth_leaves_table_intact():
    table = handle_table.create_table(chunk_size=4, max_slots=6, debug=True)
    fill(table, 4)
    slots = table.slots
    with pytest.raises(handle_table.AllocationError):
        table.alloc()
    assert table.slots is slots
    assert table.capacity == 4
    assert table.used == 4
    assert table.allocator.slots_in_use == 4

    table.free(0)
    assert table.alloc() == 0


def test_absent_table_restarts_from_zero(table):
    fill(table, 5)
    for handle in range(5):
        table.free(handle)
    assert not table.allocated
    assert table.alloc() == 0
    assert table.capacity == 4
    assert table.used == 1
