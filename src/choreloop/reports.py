"""Windowed point summaries used to decide payouts.

A report window is independent of the kids' running balances: it adds up chore
points, manual adjustments and streak bonuses that fall inside an inclusive
date range.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, Optional, Tuple

from .dates import DateRange, to_iso
from .exceptions import ValidationError
from .models import Adjustment, State, StreakBonus
from .money import points_to_dollars

DEFAULT_WINDOW_DAYS = 30


@dataclass(frozen=True, slots=True)
class ReportRow:
    kid_id: str
    kid_name: str
    chore_points: int
    adjustment_points: int
    bonus_points: int

    @property
    def net(self) -> int:
        return self.chore_points + self.adjustment_points + self.bonus_points

    def dollars(self, rate: Decimal) -> Decimal:
        return points_to_dollars(self.net, rate)


def default_window(today: Optional[date] = None) -> DateRange:
    """The last thirty days up to and including ``today``."""

    end = today or date.today()
    return DateRange(to_iso(end - timedelta(days=DEFAULT_WINDOW_DAYS)), to_iso(end))


def _window(start_iso: str, end_iso: str) -> DateRange:
    window = DateRange(to_iso(start_iso), to_iso(end_iso))
    if window.start_iso > window.end_iso:
        raise ValidationError("Report window starts after it ends.")
    return window


def adjustments_in_window(
    state: State,
    start_iso: str,
    end_iso: str,
    *,
    kid_id: Optional[str] = None,
) -> Tuple[Adjustment, ...]:
    """Adjustments made on a day inside the window, newest first."""

    window = _window(start_iso, end_iso)
    selected = [
        entry
        for entry in state.adjustments
        if (kid_id is None or entry.kid_id == kid_id) and window.contains(entry.timestamp)
    ]
    return tuple(sorted(selected, key=lambda entry: entry.timestamp, reverse=True))


def bonuses_in_window(
    state: State,
    start_iso: str,
    end_iso: str,
    *,
    kid_id: Optional[str] = None,
) -> Tuple[StreakBonus, ...]:
    """Streak bonuses dated inside the window, newest first."""

    window = _window(start_iso, end_iso)
    selected = [
        bonus
        for bonus in state.streak_bonuses
        if (kid_id is None or bonus.kid_id == kid_id) and window.contains(bonus.date_iso)
    ]
    return tuple(sorted(selected, key=lambda bonus: bonus.date_iso, reverse=True))


def summarize(
    state: State,
    kid_id: Optional[str],
    start_iso: str,
    end_iso: str,
) -> Tuple[ReportRow, ...]:
    """Per-kid totals for the window, highest net first.

    ``kid_id=None`` reports on every kid. Completions of chores that no longer
    exist count for nothing.
    """

    window = _window(start_iso, end_iso)
    chore_points = {chore.id: chore.points for chore in state.chores}

    earned: Dict[str, int] = defaultdict(int)
    for completion in state.completions:
        if kid_id is not None and completion.kid_id != kid_id:
            continue
        if window.contains(completion.date):
            earned[completion.kid_id] += chore_points.get(completion.chore_id, 0)

    adjusted: Dict[str, int] = defaultdict(int)
    for entry in adjustments_in_window(state, window.start_iso, window.end_iso, kid_id=kid_id):
        adjusted[entry.kid_id] += entry.delta

    bonus: Dict[str, int] = defaultdict(int)
    for entry in bonuses_in_window(state, window.start_iso, window.end_iso, kid_id=kid_id):
        bonus[entry.kid_id] += entry.points

    rows = [
        ReportRow(
            kid_id=kid.id,
            kid_name=kid.name,
            chore_points=earned[kid.id],
            adjustment_points=adjusted[kid.id],
            bonus_points=bonus[kid.id],
        )
        for kid in state.kids
        if kid_id is None or kid.id == kid_id
    ]
    return tuple(sorted(rows, key=lambda row: row.net, reverse=True))


__all__ = [
    "DEFAULT_WINDOW_DAYS",
    "ReportRow",
    "adjustments_in_window",
    "bonuses_in_window",
    "default_window",
    "summarize",
]
