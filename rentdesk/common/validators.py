from typing import Any


def reject_null(value: Any) -> Any:
    """For partial updates: a field may be left out, but not set to null when its column is NOT NULL."""
    if value is None:
        raise ValueError("must not be null")
    return value
