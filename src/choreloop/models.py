"""Domain models used by the ChoreLoop package.

Every model is a frozen dataclass. Transitions build new values with
:func:`dataclasses.replace` instead of mutating the ones they were given, so a
:class:`State` handed to a caller never changes underneath it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Iterable, Mapping, Optional, Tuple
from uuid import uuid4

from .dates import Weekday, parse_iso, to_iso
from .exceptions import NotFoundError, ValidationError
from .money import to_decimal, to_rate

SCHEMA_VERSION = 3
DEFAULT_DOLLARS_PER_POINT = Decimal("0.1")
STREAK_MILESTONE = 10
STREAK_BONUS_POINTS = 5
UNLISTED_CHORE_ORDER = 1_000_000
KID_COLORS: Tuple[str, ...] = (
    "#6ea8fe",
    "#f59e0b",
    "#10b981",
    "#ef4444",
    "#8b5cf6",
    "#ec4899",
)


def new_id() -> str:
    return str(uuid4())


class ScheduleType(str, Enum):
    """Supported recurrence kinds for a chore."""

    DAILY = "daily"
    WEEKLY = "weekly"
    CUSTOM = "custom"


class PayoutPeriod(str, Enum):
    """Label attached to a payout record."""

    WEEKLY = "weekly"
    MONTHLY = "monthly"


@dataclass(frozen=True, slots=True)
class Schedule:
    """When a chore is due: every day, on weekdays, or on explicit dates."""

    type: ScheduleType = ScheduleType.DAILY
    days_of_week: frozenset[int] = field(default_factory=frozenset)
    dates: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        try:
            kind = ScheduleType(self.type)
        except ValueError as exc:
            raise ValidationError(f"Unknown schedule type: {self.type!r}") from exc
        days = frozenset(int(day) for day in self.days_of_week)
        if any(not 0 <= day <= 6 for day in days):
            raise ValidationError("Days of week must be between 0 (Sunday) and 6 (Saturday).")
        object.__setattr__(self, "type", kind)
        object.__setattr__(self, "days_of_week", days)
        object.__setattr__(self, "dates", frozenset(to_iso(value) for value in self.dates))

    def is_due(self, date_iso: str) -> bool:
        if self.type is ScheduleType.DAILY:
            return True
        if self.type is ScheduleType.WEEKLY:
            return int(Weekday.from_date(parse_iso(date_iso))) in self.days_of_week
        return date_iso in self.dates

    @classmethod
    def daily(cls) -> "Schedule":
        return cls(ScheduleType.DAILY)

    @classmethod
    def weekly(cls, days: Iterable[int | Weekday]) -> "Schedule":
        return cls(ScheduleType.WEEKLY, days_of_week=frozenset(int(day) for day in days))

    @classmethod
    def on_dates(cls, dates: Iterable[str]) -> "Schedule":
        return cls(ScheduleType.CUSTOM, dates=frozenset(dates))


@dataclass(frozen=True, slots=True)
class Kid:
    """A child with a running, never negative, point balance."""

    id: str
    name: str
    points: int = 0
    color: Optional[str] = None
    avatar: Optional[str] = None

    def __post_init__(self) -> None:
        if self.points < 0:
            raise ValidationError("Kid points cannot be negative.")


@dataclass(frozen=True, slots=True)
class Chore:
    """A recurring chore with per-kid streak counters.

    ``streak_by_kid`` is treated as read-only; transitions always pass a new
    mapping.
    """

    id: str
    title: str
    points: int
    schedule: Schedule
    assigned_kid_ids: Tuple[str, ...] = ()
    streak_by_kid: Mapping[str, int] = field(default_factory=dict)
    order: int = 0

    def streak_for(self, kid_id: str) -> int:
        return self.streak_by_kid.get(kid_id, 0)

    def is_due_for(self, kid_id: str, date_iso: str) -> bool:
        return kid_id in self.assigned_kid_ids and self.schedule.is_due(date_iso)


@dataclass(frozen=True, slots=True)
class Completion:
    """A kid finished a chore on a date. Absence means not completed."""

    id: str
    kid_id: str
    chore_id: str
    date: str

    @property
    def key(self) -> Tuple[str, str, str]:
        return (self.kid_id, self.chore_id, self.date)


@dataclass(frozen=True, slots=True)
class Adjustment:
    """Append-only audit entry for a manual point change."""

    id: str
    kid_id: str
    delta: int
    reason: str
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True, slots=True)
class StreakBonus:
    """Bonus granted when a kid's run of full days hits a milestone."""

    id: str
    kid_id: str
    date_iso: str
    streak_length: int
    points: int = STREAK_BONUS_POINTS


@dataclass(frozen=True, slots=True)
class Payout:
    """Historical record that a kid's net points for a window were cashed out."""

    id: str
    kid_id: str
    period: PayoutPeriod
    start_iso: str
    end_iso: str
    points: int
    dollars: Decimal
    timestamp: datetime = field(default_factory=datetime.now)
    note: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "period", PayoutPeriod(self.period))
        object.__setattr__(self, "dollars", to_decimal(self.dollars))


@dataclass(frozen=True, slots=True)
class Reward:
    """Catalog entry a kid could redeem."""

    id: str
    title: str
    cost: int


@dataclass(frozen=True, slots=True)
class Settings:
    dollars_per_point: Decimal = DEFAULT_DOLLARS_PER_POINT
    hide_completed_on_board: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "dollars_per_point", to_rate(self.dollars_per_point))


@dataclass(frozen=True, slots=True)
class State:
    """Aggregate root holding every entity of the application."""

    kids: Tuple[Kid, ...] = ()
    chores: Tuple[Chore, ...] = ()
    rewards: Tuple[Reward, ...] = ()
    completions: Tuple[Completion, ...] = ()
    payouts: Tuple[Payout, ...] = ()
    adjustments: Tuple[Adjustment, ...] = ()
    streak_bonuses: Tuple[StreakBonus, ...] = ()
    settings: Settings = field(default_factory=Settings)
    version: int = SCHEMA_VERSION

    def find_kid(self, kid_id: str) -> Optional[Kid]:
        return next((kid for kid in self.kids if kid.id == kid_id), None)

    def find_chore(self, chore_id: str) -> Optional[Chore]:
        return next((chore for chore in self.chores if chore.id == chore_id), None)

    def get_kid(self, kid_id: str) -> Kid:
        kid = self.find_kid(kid_id)
        if kid is None:
            raise NotFoundError(f"Kid '{kid_id}' does not exist.")
        return kid

    def get_chore(self, chore_id: str) -> Chore:
        chore = self.find_chore(chore_id)
        if chore is None:
            raise NotFoundError(f"Chore '{chore_id}' does not exist.")
        return chore

    def sorted_chores(self) -> Tuple[Chore, ...]:
        return tuple(sorted(self.chores, key=lambda chore: chore.order))

    def completion_keys(self) -> frozenset[Tuple[str, str, str]]:
        return frozenset(completion.key for completion in self.completions)


def default_state() -> State:
    """Empty state used on first run, after a reset, or when stored data is unreadable."""

    return State()


__all__ = [
    "Adjustment",
    "Chore",
    "Completion",
    "DEFAULT_DOLLARS_PER_POINT",
    "KID_COLORS",
    "Kid",
    "Payout",
    "PayoutPeriod",
    "Reward",
    "SCHEMA_VERSION",
    "STREAK_BONUS_POINTS",
    "STREAK_MILESTONE",
    "Schedule",
    "ScheduleType",
    "Settings",
    "State",
    "StreakBonus",
    "UNLISTED_CHORE_ORDER",
    "default_state",
    "new_id",
]
