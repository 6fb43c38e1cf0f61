# fastapi_query_params/utils.py

import math
import re
from datetime import datetime, timezone
from typing import Any, Optional, Union

# field[operator]
OPERATOR_KEY_PATTERN = re.compile(r"^(.+)\[(.+)\]$")

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def first_value(value: Any) -> Any:
    """Return the first value of a repeated query key, or the value itself."""
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def split_csv(value: str) -> list[str]:
    return [part.strip() for part in value.split(",")]


def parse_int(value: Any) -> Optional[int]:
    """
    Read the leading integer of a query value.

    "2" -> 2, "2abc" -> 2, "abc" -> None, None -> None.
    """
    value = first_value(value)
    if value is None:
        return None
    match = _LEADING_INT.match(str(value))
    if not match:
        return None
    return int(match.group(1))


def parse_number(value: Any) -> Optional[Union[int, float]]:
    """
    Strictly parse a whole query value as a finite number.

    Integral literals come back as ``int``, everything else as ``float``.
    Returns None when the text is not a number.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else None
    text = str(value).strip()
    if not text or "_" in text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def parse_date(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 date or datetime, such as ``2024-01-01`` or
    ``2024-01-01T10:00:00Z``. Naive values are taken as UTC.

    Returns None for anything else, including other layouts like
    ``2024/01/01`` or ``01/31/2024``.
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value or "").strip()
        if not text:
            return None
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def split_operator_key(key: str) -> Optional[tuple[str, str]]:
    """Split ``price[gte]`` into ``("price", "gte")``."""
    match = OPERATOR_KEY_PATTERN.match(key)
    if not match:
        return None
    return match.group(1), match.group(2)


def nest_path(path: str, leaf: Any) -> dict:
    """Turn ``user.profile.name`` into ``{"user": {"profile": {"name": leaf}}}``."""
    keys = path.split(".")
    result: dict = {keys[-1]: leaf}
    for key in reversed(keys[:-1]):
        result = {key: result}
    return result
