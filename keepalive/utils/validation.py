"""
Input validation utilities for API request models
"""
import re
from datetime import time
from decimal import Decimal, InvalidOperation

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def normalize_decimal_input(value: str) -> str:
    """
    Нормализовать ввод суммы: убрать пробелы, заменить запятую на точку

    Example:
        >>> normalize_decimal_input(" 10,50 ")
        "10.50"
    """
    return value.strip().replace(",", ".")


def validate_and_normalize_amount(value: str, max_decimal_places: int = 2) -> str:
    """
    Валидировать неотрицательную сумму и вернуть её в нормализованном виде

    Raises:
        ValueError: некорректная сумма или слишком много знаков после запятой

    Example:
        >>> validate_and_normalize_amount("10,5")
        "10.5"
        >>> validate_and_normalize_amount("10.505")
        ValueError: Максимум 2 знака после запятой
    """
    normalized = normalize_decimal_input(value)
    try:
        Decimal(normalized)
    except (InvalidOperation, ValueError):
        raise ValueError("Некорректная сумма") from None

    pattern = rf"^\d+(\.\d{{1,{max_decimal_places}}})?$"
    if not re.match(pattern, normalized):
        if normalized.startswith("-"):
            raise ValueError("Сумма не может быть отрицательной")
        raise ValueError(f"Максимум {max_decimal_places} знака после запятой")

    return normalized


def parse_time_of_day(value: str) -> time:
    """
    Разобрать время в формате ЧЧ:ММ

    Example:
        >>> parse_time_of_day("09:30")
        datetime.time(9, 30)
    """
    match = _TIME_RE.match(value.strip())
    if not match:
        raise ValueError("Время должно быть в формате ЧЧ:ММ")
    return time(int(match.group(1)), int(match.group(2)))
