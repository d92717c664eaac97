"""
SQL helpers shared by services.

COUNT(*) through SQLModel's exec() comes back as a bare int on some
versions and as a 1-tuple/Row on others; scalar_int() accepts both.
"""
from typing import Any


def scalar_int(x: Any) -> int:
    """Coerce a COUNT/aggregate result (int or 1-tuple/Row) to int."""
    if isinstance(x, int):
        return x
    return int(x[0])
