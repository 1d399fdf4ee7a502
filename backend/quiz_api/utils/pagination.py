"""Page/limit coercion for list endpoints."""

from typing import Any, Tuple

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
# keeps (page - 1) * limit inside a signed 64-bit OFFSET
MAX_VALUE = 2 ** 31 - 1


def _positive_int(value: Any, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        n = int(str(value).strip())
    except ValueError:
        return default
    return n if 0 < n <= MAX_VALUE else default


def parse_pagination(page: Any = None, limit: Any = None) -> Tuple[int, int]:
    """Return `(page, limit)`; anything non-numeric, <= 0 or above `MAX_VALUE` falls back to 1/20."""
    return _positive_int(page, DEFAULT_PAGE), _positive_int(limit, DEFAULT_LIMIT)


def offset_for(page: int, limit: int) -> int:
    return (page - 1) * limit
