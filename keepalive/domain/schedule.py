"""
Deterministic keep-alive schedule builder.

Uses date only (no timezone). Given a strategy, an ordered list of accounts and
the continuation point of a (user, group) chain, produces the transfers of N
cycles. Nothing here touches the database: the caller supplies how many tasks
each day already holds and commits the result.

Rotation: for n accounts every cycle has n directed pairs
    (a[0] -> a[1]), (a[1] -> a[2]), ..., (a[n-1] -> a[0])
so every account sends once and receives once per cycle.

Dates: each pair moves forward from its own previous date (the anchor for the
first cycle) by a random interval. Saturday/Sunday move to Monday when the
strategy skips weekends. A day that already holds daily_limit tasks pushes the
task to the next day with room.
"""
from collections import Counter
from dataclasses import dataclass
from datetime import date, time, timedelta
from decimal import Decimal
from typing import Mapping, Sequence

from keepalive.domain.calendar import skip_weekend
from keepalive.domain.errors import CapacityExhaustedError, InsufficientAccountsError, ValidationError
from keepalive.domain.randomizer import Randomizer
from keepalive.domain.strategy import StrategySpec, check_generation_ranges

DEFAULT_MAX_SEARCH_DAYS = 3650
MIN_ACCOUNTS = 2


@dataclass(frozen=True)
class AccountRef:
    id: str
    name: str
    amount_min: Decimal | None = None  # per-account override
    amount_max: Decimal | None = None


def account_ref_from_db(row) -> AccountRef:
    return AccountRef(
        id=row.id,
        name=row.name,
        amount_min=Decimal(row.amount_min) if row.amount_min is not None else None,
        amount_max=Decimal(row.amount_max) if row.amount_max is not None else None,
    )


@dataclass(frozen=True)
class PlannedTask:
    cycle: int
    exec_date: date
    exec_time: time
    from_account_id: str
    to_account_id: str
    amount: Decimal


def rotation_pairs(accounts: Sequence[AccountRef]) -> list[tuple[AccountRef, AccountRef]]:
    n = len(accounts)
    if n < MIN_ACCOUNTS:
        return []
    return [(accounts[i], accounts[(i + 1) % n]) for i in range(n)]


class DayCapacity:
    """Tasks per exec_date for one user: committed rows plus the batch being built."""

    def __init__(self, daily_limit: int, booked: Mapping[date, int] | None = None):
        self.daily_limit = daily_limit
        self._counts = Counter(booked or {})

    def has_room(self, d: date) -> bool:
        return self._counts[d] < self.daily_limit

    def book(self, d: date) -> None:
        self._counts[d] += 1


class TaskGenerator:
    def __init__(self, randomizer: Randomizer, max_search_days: int = DEFAULT_MAX_SEARCH_DAYS):
        self.randomizer = randomizer
        self.max_search_days = max_search_days

    def generate(
        self,
        strategy: StrategySpec,
        accounts: Sequence[AccountRef],
        cycles: int,
        anchor_date: date,
        prev_max_cycle: int = 0,
        booked: Mapping[date, int] | None = None,
    ) -> list[PlannedTask]:
        """
        Build the whole batch in memory.

        Args:
            strategy: validated policy (re-checked here)
            accounts: eligible accounts in rotation order
            cycles: number of cycles to produce, >= 1
            anchor_date: date the first cycle is measured from (today for a
                new chain, the chain's last exec_date when continuing)
            prev_max_cycle: highest cycle already present in the chain (0 if none)
            booked: {exec_date: task count} already committed for the user

        Returns:
            cycles * len(accounts) tasks; cycle numbers
            prev_max_cycle+1 .. prev_max_cycle+cycles

        Raises:
            ValidationError, InsufficientAccountsError, CapacityExhaustedError
        """
        check_generation_ranges(strategy)
        if cycles < 1:
            raise ValidationError("Количество циклов должно быть не меньше 1")

        accounts = _unique(accounts)
        if len(accounts) < MIN_ACCOUNTS:
            raise InsufficientAccountsError(
                f"Для генерации нужно минимум {MIN_ACCOUNTS} активных счёта"
            )

        capacity = DayCapacity(strategy.daily_limit, booked)
        pairs = rotation_pairs(accounts)
        last_date: dict[tuple[str, str], date] = {}
        planned: list[PlannedTask] = []

        for cycle_index in range(cycles):
            cycle = prev_max_cycle + cycle_index + 1
            for sender, receiver in pairs:
                key = (sender.id, receiver.id)
                exec_date = self._place(last_date.get(key, anchor_date), strategy, capacity)
                last_date[key] = exec_date

                exec_time = self.randomizer.time_of_day(strategy.time_start, strategy.time_end)
                lo, hi = _amount_range(strategy, sender)
                amount = self.randomizer.amount(lo, hi)

                planned.append(PlannedTask(
                    cycle=cycle,
                    exec_date=exec_date,
                    exec_time=exec_time,
                    from_account_id=sender.id,
                    to_account_id=receiver.id,
                    amount=amount,
                ))

        return planned

    def _place(self, base: date, strategy: StrategySpec, capacity: DayCapacity) -> date:
        offset = self.randomizer.interval_days(strategy.interval_min, strategy.interval_max)
        try:
            d = base + timedelta(days=offset)
            if strategy.skip_weekend:
                d = skip_weekend(d)
            attempts = 0
            while not capacity.has_room(d):
                attempts += 1
                if attempts > self.max_search_days:
                    raise CapacityExhaustedError(
                        f"Не найден день со свободным лимитом за {self.max_search_days} дней "
                        f"после {base.isoformat()}"
                    )
                d += timedelta(days=1)
                if strategy.skip_weekend:
                    d = skip_weekend(d)
        except OverflowError:
            raise CapacityExhaustedError("Дата выполнения вышла за допустимый диапазон") from None

        capacity.book(d)
        return d


def _unique(accounts: Sequence[AccountRef]) -> list[AccountRef]:
    seen: set[str] = set()
    out: list[AccountRef] = []
    for acc in accounts:
        if acc.id in seen:
            continue
        seen.add(acc.id)
        out.append(acc)
    return out


def _amount_range(strategy: StrategySpec, sender: AccountRef) -> tuple[Decimal, Decimal]:
    """Strategy range narrowed by the sender's own bounds when they overlap."""
    lo = strategy.amount_min
    hi = strategy.amount_max
    if sender.amount_min is not None:
        lo = max(lo, sender.amount_min)
    if sender.amount_max is not None:
        hi = min(hi, sender.amount_max)
    if lo > hi:
        return strategy.amount_min, strategy.amount_max
    return lo, hi
