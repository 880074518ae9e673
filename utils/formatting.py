import math
from typing import Optional


def format_number(value: float) -> str:
    """55.0 → "55", 7.5 → "7.5" """
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"


def percent_of(total: float, max_possible: float) -> Optional[int]:
    """백분율 (0.5 올림). 분모가 0이면 None"""
    if max_possible <= 0:
        return None
    return math.floor(total / max_possible * 100 + 0.5)
