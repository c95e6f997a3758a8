"""Pure state transitions.

Each transition takes the current :class:`~choreloop.models.State` and returns
a new one; nothing here touches storage or logging. Deleting or adjusting an
unknown id is a quiet no-op, while transitions that need an entity to compute
points raise :class:`~choreloop.exceptions.NotFoundError`.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Union

from .dates import to_iso
from .exceptions import ValidationError
from .models import (
    KID_COLORS,
    UNLISTED_CHORE_ORDER,
    Adjustment,
    Chore,
    Kid,
    Payout,
    PayoutPeriod,
    Reward,
    Schedule,
    ScheduleType,
    State,
    default_state,
    new_id,
)
from .money import AmountLike, points_to_dollars, to_rate
from .serialization import state_from_dict
from .streaks import toggle_completion

DEFAULT_ADJUSTMENT_REASON = "Manual adjustment"


def _clean_text(value: str, what: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{what} cannot be empty.")
    return text


def _positive_int(value: Any, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{what} must be a positive whole number.")
    return value


# ----------------------------------------------------------------------
# Kids
# ----------------------------------------------------------------------
def add_kid(
    state: State,
    name: str,
    *,
    color: Optional[str] = None,
    avatar: Optional[str] = None,
    kid_id: Optional[str] = None,
) -> State:
    kid = Kid(
        id=kid_id or new_id(),
        name=_clean_text(name, "Kid name"),
        points=0,
        color=color or KID_COLORS[len(state.kids) % len(KID_COLORS)],
        avatar=avatar or None,
    )
    return replace(state, kids=state.kids + (kid,))


def update_kid(
    state: State,
    kid_id: str,
    *,
    name: Optional[str] = None,
    color: Optional[str] = None,
    avatar: Optional[str] = None,
) -> State:
    """Change the provided fields of a kid; the balance is never touched here."""

    kid = state.find_kid(kid_id)
    if kid is None:
        return state
    changes: Dict[str, Any] = {}
    if name is not None:
        changes["name"] = _clean_text(name, "Kid name")
    if color is not None:
        changes["color"] = color or None
    if avatar is not None:
        changes["avatar"] = avatar or None
    if not changes:
        return state
    updated = replace(kid, **changes)
    return replace(state, kids=tuple(updated if entry.id == kid_id else entry for entry in state.kids))


def delete_kid(state: State, kid_id: str) -> State:
    """Remove a kid along with their completions, adjustments and streak bonuses."""

    if state.find_kid(kid_id) is None:
        return state
    chores = tuple(
        replace(
            chore,
            assigned_kid_ids=tuple(entry for entry in chore.assigned_kid_ids if entry != kid_id),
            streak_by_kid={key: value for key, value in chore.streak_by_kid.items() if key != kid_id},
        )
        for chore in state.chores
    )
    return replace(
        state,
        kids=tuple(kid for kid in state.kids if kid.id != kid_id),
        chores=chores,
        completions=tuple(entry for entry in state.completions if entry.kid_id != kid_id),
        adjustments=tuple(entry for entry in state.adjustments if entry.kid_id != kid_id),
        streak_bonuses=tuple(entry for entry in state.streak_bonuses if entry.kid_id != kid_id),
    )


def adjust_points(
    state: State,
    kid_id: str,
    delta: int,
    reason: str = "",
    *,
    now: Optional[datetime] = None,
) -> State:
    """Apply a manual point change and log it; the balance is clamped at zero."""

    if isinstance(delta, bool) or not isinstance(delta, int):
        raise ValidationError("Point adjustments must be whole numbers.")
    kid = state.find_kid(kid_id)
    if kid is None:
        return state
    entry = Adjustment(
        id=new_id(),
        kid_id=kid_id,
        delta=delta,
        reason=(reason or "").strip() or DEFAULT_ADJUSTMENT_REASON,
        timestamp=now or datetime.now(),
    )
    updated = replace(kid, points=max(0, kid.points + delta))
    return replace(
        state,
        kids=tuple(updated if item.id == kid_id else item for item in state.kids),
        adjustments=state.adjustments + (entry,),
    )


# ----------------------------------------------------------------------
# Settings
# ----------------------------------------------------------------------
def update_settings(
    state: State,
    *,
    dollars_per_point: Optional[AmountLike] = None,
    hide_completed_on_board: Optional[bool] = None,
) -> State:
    changes: Dict[str, Any] = {}
    if dollars_per_point is not None:
        try:
            changes["dollars_per_point"] = to_rate(dollars_per_point)
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Invalid dollars per point: {dollars_per_point!r}") from exc
    if hide_completed_on_board is not None:
        changes["hide_completed_on_board"] = bool(hide_completed_on_board)
    if not changes:
        return state
    return replace(state, settings=replace(state.settings, **changes))


# ----------------------------------------------------------------------
# Chores
# ----------------------------------------------------------------------
def add_chore(
    state: State,
    title: str,
    points: int,
    schedule: Schedule,
    assigned_kid_ids: Sequence[str],
    *,
    chore_id: Optional[str] = None,
) -> State:
    """Add a chore at the end of the board order."""

    clean_title = _clean_text(title, "Chore title")
    value = _positive_int(points, "Chore points")
    assigned = tuple(dict.fromkeys(assigned_kid_ids))
    if not assigned:
        raise ValidationError("A chore needs at least one assigned kid.")
    unknown = [kid_id for kid_id in assigned if state.find_kid(kid_id) is None]
    if unknown:
        raise ValidationError(f"Unknown kid ids: {', '.join(unknown)}.")
    if schedule.type is ScheduleType.WEEKLY and not schedule.days_of_week:
        raise ValidationError("A weekly chore needs at least one day of the week.")
    if schedule.type is ScheduleType.CUSTOM and not schedule.dates:
        raise ValidationError("A custom chore needs at least one date.")
    top = max((chore.order for chore in state.chores), default=0)
    chore = Chore(
        id=chore_id or new_id(),
        title=clean_title,
        points=value,
        schedule=schedule,
        assigned_kid_ids=assigned,
        streak_by_kid={},
        order=top + 1,
    )
    return replace(state, chores=state.chores + (chore,))


def delete_chore(state: State, chore_id: str) -> State:
    if state.find_chore(chore_id) is None:
        return state
    return replace(
        state,
        chores=tuple(chore for chore in state.chores if chore.id != chore_id),
        completions=tuple(entry for entry in state.completions if entry.chore_id != chore_id),
    )


def reorder_chores(state: State, chore_ids: Sequence[str]) -> State:
    """Number the listed chores 1..N in the given sequence; others sort last."""

    positions: Dict[str, int] = {}
    for chore_id in chore_ids:
        if chore_id not in positions and state.find_chore(chore_id) is not None:
            positions[chore_id] = len(positions) + 1
    chores = tuple(
        replace(chore, order=positions.get(chore.id, UNLISTED_CHORE_ORDER)) for chore in state.chores
    )
    return replace(state, chores=chores)


# ----------------------------------------------------------------------
# Rewards
# ----------------------------------------------------------------------
def add_reward(state: State, title: str, cost: int, *, reward_id: Optional[str] = None) -> State:
    reward = Reward(
        id=reward_id or new_id(),
        title=_clean_text(title, "Reward title"),
        cost=_positive_int(cost, "Reward cost"),
    )
    return replace(state, rewards=state.rewards + (reward,))


def delete_reward(state: State, reward_id: str) -> State:
    if not any(reward.id == reward_id for reward in state.rewards):
        return state
    return replace(state, rewards=tuple(reward for reward in state.rewards if reward.id != reward_id))


def redeem_reward(state: State, kid_id: str, reward_id: str) -> State:
    """Not supported yet: redemption rules are pending a product decision."""

    return state


# ----------------------------------------------------------------------
# Payouts
# ----------------------------------------------------------------------
def record_payout(
    state: State,
    kid_id: str,
    period: Union[PayoutPeriod, str],
    start_iso: Union[str, date],
    end_iso: Union[str, date],
    points: int,
    *,
    note: str = "",
    now: Optional[datetime] = None,
) -> State:
    """Prepend a payout record. The kid's balance is a separate ledger and stays put."""

    state.get_kid(kid_id)
    if isinstance(points, bool) or not isinstance(points, int):
        raise ValidationError("Payout points must be a whole number.")
    try:
        label = PayoutPeriod(period or PayoutPeriod.WEEKLY)
    except ValueError as exc:
        raise ValidationError(f"Unknown payout period: {period!r}") from exc
    start, end = to_iso(start_iso), to_iso(end_iso)
    if start > end:
        raise ValidationError("Payout window starts after it ends.")
    payout = Payout(
        id=new_id(),
        kid_id=kid_id,
        period=label,
        start_iso=start,
        end_iso=end,
        points=points,
        dollars=points_to_dollars(points, state.settings.dollars_per_point),
        timestamp=now or datetime.now(),
        note=(note or "").strip(),
    )
    return replace(state, payouts=(payout,) + state.payouts)


# ----------------------------------------------------------------------
# Whole-state replacement
# ----------------------------------------------------------------------
def reset_all(state: State) -> State:
    return default_state()


def replace_all(state: State, incoming: Union[State, Mapping[str, Any]]) -> State:
    """Swap in an externally supplied state, e.g. one read from a backup."""

    if isinstance(incoming, State):
        return incoming
    return state_from_dict(incoming)


# ----------------------------------------------------------------------
# Actions
# ----------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class AddKid:
    name: str
    color: Optional[str] = None
    avatar: Optional[str] = None


@dataclass(frozen=True, slots=True)
class UpdateKid:
    kid_id: str
    name: Optional[str] = None
    color: Optional[str] = None
    avatar: Optional[str] = None


@dataclass(frozen=True, slots=True)
class DeleteKid:
    kid_id: str


@dataclass(frozen=True, slots=True)
class AdjustPoints:
    kid_id: str
    delta: int
    reason: str = ""
    now: Optional[datetime] = None


@dataclass(frozen=True, slots=True)
class UpdateSettings:
    dollars_per_point: Optional[Union[Decimal, float, str]] = None
    hide_completed_on_board: Optional[bool] = None


@dataclass(frozen=True, slots=True)
class AddChore:
    title: str
    points: int
    schedule: Schedule = field(default_factory=Schedule.daily)
    assigned_kid_ids: Sequence[str] = ()


@dataclass(frozen=True, slots=True)
class DeleteChore:
    chore_id: str


@dataclass(frozen=True, slots=True)
class ReorderChores:
    chore_ids: Sequence[str]


@dataclass(frozen=True, slots=True)
class ToggleCompletion:
    kid_id: str
    chore_id: str
    date_iso: str


@dataclass(frozen=True, slots=True)
class AddReward:
    title: str
    cost: int


@dataclass(frozen=True, slots=True)
class DeleteReward:
    reward_id: str


@dataclass(frozen=True, slots=True)
class RedeemReward:
    kid_id: str
    reward_id: str


@dataclass(frozen=True, slots=True)
class RecordPayout:
    kid_id: str
    period: Union[PayoutPeriod, str]
    start_iso: str
    end_iso: str
    points: int
    note: str = ""
    now: Optional[datetime] = None


@dataclass(frozen=True, slots=True)
class ResetAll:
    pass


@dataclass(frozen=True, slots=True)
class ReplaceAll:
    state: Union[State, Mapping[str, Any]]


Action = Union[
    AddKid,
    UpdateKid,
    DeleteKid,
    AdjustPoints,
    UpdateSettings,
    AddChore,
    DeleteChore,
    ReorderChores,
    ToggleCompletion,
    AddReward,
    DeleteReward,
    RedeemReward,
    RecordPayout,
    ResetAll,
    ReplaceAll,
]

_HANDLERS: Dict[type, Callable[[State, Any], State]] = {
    AddKid: lambda state, action: add_kid(state, action.name, color=action.color, avatar=action.avatar),
    UpdateKid: lambda state, action: update_kid(
        state, action.kid_id, name=action.name, color=action.color, avatar=action.avatar
    ),
    DeleteKid: lambda state, action: delete_kid(state, action.kid_id),
    AdjustPoints: lambda state, action: adjust_points(
        state, action.kid_id, action.delta, action.reason, now=action.now
    ),
    UpdateSettings: lambda state, action: update_settings(
        state,
        dollars_per_point=action.dollars_per_point,
        hide_completed_on_board=action.hide_completed_on_board,
    ),
    AddChore: lambda state, action: add_chore(
        state, action.title, action.points, action.schedule, action.assigned_kid_ids
    ),
    DeleteChore: lambda state, action: delete_chore(state, action.chore_id),
    ReorderChores: lambda state, action: reorder_chores(state, action.chore_ids),
    ToggleCompletion: lambda state, action: toggle_completion(
        state, action.kid_id, action.chore_id, action.date_iso
    ),
    AddReward: lambda state, action: add_reward(state, action.title, action.cost),
    DeleteReward: lambda state, action: delete_reward(state, action.reward_id),
    RedeemReward: lambda state, action: redeem_reward(state, action.kid_id, action.reward_id),
    RecordPayout: lambda state, action: record_payout(
        state,
        action.kid_id,
        action.period,
        action.start_iso,
        action.end_iso,
        action.points,
        note=action.note,
        now=action.now,
    ),
    ResetAll: lambda state, action: reset_all(state),
    ReplaceAll: lambda state, action: replace_all(state, action.state),
}


def dispatch(state: State, action: Action) -> State:
    """Apply ``action`` to ``state`` and return the resulting state."""

    try:
        handler = _HANDLERS[type(action)]
    except KeyError as exc:
        raise TypeError(f"Unsupported action: {type(action).__name__}") from exc
    return handler(state, action)


__all__ = [
    "Action",
    "AddChore",
    "AddKid",
    "AddReward",
    "AdjustPoints",
    "DEFAULT_ADJUSTMENT_REASON",
    "DeleteChore",
    "DeleteKid",
    "DeleteReward",
    "RecordPayout",
    "RedeemReward",
    "ReorderChores",
    "ReplaceAll",
    "ResetAll",
    "ToggleCompletion",
    "UpdateKid",
    "UpdateSettings",
    "add_chore",
    "add_kid",
    "add_reward",
    "adjust_points",
    "delete_chore",
    "delete_kid",
    "delete_reward",
    "dispatch",
    "record_payout",
    "redeem_reward",
    "reorder_chores",
    "replace_all",
    "reset_all",
    "toggle_completion",
    "update_kid",
    "update_settings",
]
