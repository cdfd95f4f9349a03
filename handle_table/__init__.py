from .allocator import Allocator, DefaultAllocator
from .config import DEFAULT_CHUNK_SIZE
from .create_table import create_table
from .errors import (
    HandleTableError,
    AllocationError,
    InvariantError,
)
from .locked import LockedHandleTable, create_table_locked
from .table import HandleTable, MaxSeen, RESERVED, TableStats
