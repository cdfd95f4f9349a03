import pytest

import handle_table


@pytest.fixture
def table():
    with handle_table.create_table(chunk_size=4, debug=True) as t:
        yield t


@pytest.fixture
def default_table():
    with handle_table.create_table(debug=True) as t:
        yield t


@pytest.fixture
def max_seen():
    return handle_table.MaxSeen()


def fill(table, count):
    return [table.alloc() for _ in range(count)]
