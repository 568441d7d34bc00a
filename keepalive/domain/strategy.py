"""
Strategy (keep-alive policy) domain rules.

A strategy describes how transfers are scheduled:
  interval_min..interval_max  - days between two transfers of the same pair
  time_start..time_end        - time-of-day window
  skip_weekend                - never schedule on Saturday/Sunday
  amount_min..amount_max      - transfer amount range
  daily_limit                 - max tasks per calendar day for the whole user

System strategies (is_system=True) are read-only.
"""
from dataclasses import dataclass, replace
from datetime import time
from decimal import Decimal, InvalidOperation
from typing import Any

from keepalive.domain.errors import ValidationError, ImmutablePolicyError

# Defaults used when a field is omitted on creation
DEFAULT_INTERVAL_MIN = 30
DEFAULT_INTERVAL_MAX = 60
DEFAULT_TIME_START = time(9, 0)
DEFAULT_TIME_END = time(21, 0)
DEFAULT_AMOUNT_MIN = Decimal("10")
DEFAULT_AMOUNT_MAX = Decimal("30")
DEFAULT_DAILY_LIMIT = 3

MAX_NAME_LENGTH = 255
AMOUNT_QUANT = Decimal("0.01")
# Numeric(20, 2) holds at most 18 integer digits
MAX_AMOUNT = Decimal("999999999999999999.99")

EDITABLE_FIELDS = (
    "name", "interval_min", "interval_max", "time_start", "time_end",
    "skip_weekend", "amount_min", "amount_max", "daily_limit",
)

# Seeded once per database (see ensure_system_strategies)
SYSTEM_STRATEGIES: tuple[dict[str, Any], ...] = (
    {
        "name": "Стандартный",
        "interval_min": 30, "interval_max": 60,
        "time_start": time(9, 0), "time_end": time(21, 0),
        "skip_weekend": False,
        "amount_min": Decimal("10"), "amount_max": Decimal("30"),
        "daily_limit": 3,
    },
    {
        "name": "Долгосрочный",
        "interval_min": 90, "interval_max": 120,
        "time_start": time(9, 0), "time_end": time(21, 0),
        "skip_weekend": False,
        "amount_min": Decimal("10"), "amount_max": Decimal("30"),
        "daily_limit": 3,
    },
)


@dataclass(frozen=True)
class StrategySpec:
    name: str
    interval_min: int
    interval_max: int
    time_start: time
    time_end: time
    skip_weekend: bool
    amount_min: Decimal
    amount_max: Decimal
    daily_limit: int
    is_system: bool = False


def strategy_spec_from_db(row) -> StrategySpec:
    """Build StrategySpec from a StrategyModel row."""
    return StrategySpec(
        name=row.name,
        interval_min=row.interval_min,
        interval_max=row.interval_max,
        time_start=row.time_start,
        time_end=row.time_end,
        skip_weekend=bool(row.skip_weekend),
        amount_min=Decimal(row.amount_min),
        amount_max=Decimal(row.amount_max),
        daily_limit=row.daily_limit,
        is_system=bool(row.is_system),
    )


def build_strategy_spec(**fields) -> StrategySpec:
    """Fill omitted fields with defaults and coerce types (no range checks)."""
    def pick(key, default):
        value = fields.get(key)
        return default if value is None else value

    return StrategySpec(
        name=(fields.get("name") or "").strip(),
        interval_min=_as_int("interval_min", pick("interval_min", DEFAULT_INTERVAL_MIN)),
        interval_max=_as_int("interval_max", pick("interval_max", DEFAULT_INTERVAL_MAX)),
        time_start=_as_time("time_start", pick("time_start", DEFAULT_TIME_START)),
        time_end=_as_time("time_end", pick("time_end", DEFAULT_TIME_END)),
        skip_weekend=bool(fields.get("skip_weekend") or False),
        amount_min=_as_decimal("amount_min", pick("amount_min", DEFAULT_AMOUNT_MIN)),
        amount_max=_as_decimal("amount_max", pick("amount_max", DEFAULT_AMOUNT_MAX)),
        daily_limit=_as_int("daily_limit", pick("daily_limit", DEFAULT_DAILY_LIMIT)),
    )


def apply_changes(spec: StrategySpec, **changes) -> StrategySpec:
    """Merge a sparse update into an existing spec. Raises ImmutablePolicyError for system strategies."""
    ensure_mutable(spec)

    updates: dict[str, Any] = {}
    for key in EDITABLE_FIELDS:
        if key not in changes or changes[key] is None:
            continue
        value = changes[key]
        if key == "name":
            value = value.strip()
        elif key in ("interval_min", "interval_max", "daily_limit"):
            value = _as_int(key, value)
        elif key in ("time_start", "time_end"):
            value = _as_time(key, value)
        elif key in ("amount_min", "amount_max"):
            value = _as_decimal(key, value)
        elif key == "skip_weekend":
            value = bool(value)
        updates[key] = value
    return replace(spec, **updates)


def validate_strategy(spec: StrategySpec) -> None:
    """Validate strategy invariants. Raises ValidationError on failure."""
    if not spec.name:
        raise ValidationError("Название стратегии не может быть пустым")
    if len(spec.name) > MAX_NAME_LENGTH:
        raise ValidationError(f"Название стратегии длиннее {MAX_NAME_LENGTH} символов")

    if spec.interval_min < 1:
        raise ValidationError("Минимальный интервал должен быть не меньше 1 дня")
    if spec.interval_min > spec.interval_max:
        raise ValidationError("Минимальный интервал не может быть больше максимального")

    if spec.time_start >= spec.time_end:
        raise ValidationError("Время начала окна должно быть раньше времени конца")

    if spec.amount_min < 0 or spec.amount_max < 0:
        raise ValidationError("Сумма не может быть отрицательной")
    if spec.amount_min > spec.amount_max:
        raise ValidationError("Минимальная сумма не может быть больше максимальной")
    if spec.amount_max > MAX_AMOUNT:
        raise ValidationError(f"Сумма не может быть больше {MAX_AMOUNT}")
    for amount in (spec.amount_min, spec.amount_max):
        try:
            exact = amount == amount.quantize(AMOUNT_QUANT)
        except InvalidOperation:
            raise ValidationError("Некорректная сумма") from None
        if not exact:
            raise ValidationError("Максимум 2 знака после запятой")

    if spec.daily_limit < 1:
        raise ValidationError("Дневной лимит должен быть не меньше 1")


def check_generation_ranges(spec: StrategySpec) -> None:
    """
    Defensive re-check before generation.

    Same rules as validate_strategy except the time window may collapse to a
    single instant (time_start == time_end); name is not required.
    """
    if spec.interval_min < 1 or spec.interval_min > spec.interval_max:
        raise ValidationError("Некорректный диапазон интервалов стратегии")
    if spec.time_start > spec.time_end:
        raise ValidationError("Некорректное окно времени стратегии")
    if spec.amount_min < 0 or spec.amount_min > spec.amount_max:
        raise ValidationError("Некорректный диапазон сумм стратегии")
    if spec.daily_limit < 1:
        raise ValidationError("Дневной лимит должен быть не меньше 1")


def ensure_mutable(spec: StrategySpec, action: str = "изменить") -> None:
    if spec.is_system:
        raise ImmutablePolicyError(f"Системную стратегию нельзя {action}")


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------

def _as_int(field: str, value) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field}: ожидается целое число")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field}: ожидается целое число") from None


def _as_time(field: str, value) -> time:
    if isinstance(value, time):
        return value
    try:
        return time.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"{field}: ожидается время в формате ЧЧ:ММ") from None


def _as_decimal(field: str, value) -> Decimal:
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(str(value).replace(",", "."))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field}: некорректная сумма") from None
    if not amount.is_finite():
        raise ValidationError(f"{field}: некорректная сумма")
    return amount
