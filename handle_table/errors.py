from __future__ import annotations


class HandleTableError(RuntimeError):
    code: str
    explanation: str

    def __init__(self, message: str, code: str):
        super(RuntimeError, self).__init__(f"{code}: {message}")
        self.code = code
        self.explanation = message


# Underlying storage could not be obtained. The table is left in the state it
# had before the failing call, so the caller may retry or give up.
class AllocationError(HandleTableError):
    def __init__(self, message: str, code: str = "ALLOCATION_FAILED"):
        super().__init__(message, code)


# The caller broke a precondition (double free, foreign handle, absent table).
# Continuing would corrupt the used/capacity bookkeeping, so this is never
# recovered from inside the table.
class InvariantError(HandleTableError):
    def __init__(self, message: str, code: str = "INVARIANT_VIOLATED"):
        super().__init__(message, code)
