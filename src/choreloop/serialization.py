"""Conversion between :class:`~choreloop.models.State` and JSON-compatible dicts.

The dict layout uses the camelCase keys of the stored blob and backup files.
Decoding is lenient with older layouts: missing collections default to empty,
legacy ``completed: false`` rows and dangling references are dropped, and the
result always satisfies the state invariants.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Mapping, Optional

from .dates import to_iso
from .exceptions import ValidationError
from .models import (
    DEFAULT_DOLLARS_PER_POINT,
    SCHEMA_VERSION,
    STREAK_BONUS_POINTS,
    Adjustment,
    Chore,
    Completion,
    Kid,
    Payout,
    Reward,
    Schedule,
    ScheduleType,
    Settings,
    State,
    StreakBonus,
    new_id,
)


def _timestamp_to_json(moment: datetime) -> str:
    return moment.isoformat()


def _timestamp_from_json(value: Any) -> datetime:
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    moment = datetime.fromisoformat(text)
    if moment.tzinfo is not None:
        # Stored in local wall-clock time like the timestamps created here.
        moment = moment.astimezone().replace(tzinfo=None)
    return moment


def _whole(value: Any) -> int:
    if isinstance(value, bool):
        raise TypeError("Booleans are not point values.")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"Expected a whole number, got {value!r}")
        return int(value)
    return int(value)


def _positive(value: Any, what: str) -> int:
    number = _whole(value)
    if number <= 0:
        raise ValueError(f"{what} must be positive, got {number}")
    return number


def schedule_to_dict(schedule: Schedule) -> Dict[str, Any]:
    if schedule.type is ScheduleType.WEEKLY:
        return {"type": schedule.type.value, "daysOfWeek": sorted(schedule.days_of_week)}
    if schedule.type is ScheduleType.CUSTOM:
        return {"type": schedule.type.value, "dates": sorted(schedule.dates)}
    return {"type": schedule.type.value}


def schedule_from_dict(payload: Mapping[str, Any]) -> Schedule:
    kind = ScheduleType(payload.get("type", ScheduleType.DAILY.value))
    if kind is ScheduleType.WEEKLY:
        return Schedule.weekly(_whole(day) for day in payload.get("daysOfWeek") or ())
    if kind is ScheduleType.CUSTOM:
        return Schedule.on_dates(str(value) for value in payload.get("dates") or ())
    return Schedule.daily()


def state_to_dict(state: State) -> Dict[str, Any]:
    """Return a JSON-compatible representation of ``state``."""

    return {
        "version": state.version,
        "kids": [
            {
                "id": kid.id,
                "name": kid.name,
                "points": kid.points,
                "color": kid.color,
                "avatar": kid.avatar,
            }
            for kid in state.kids
        ],
        "chores": [
            {
                "id": chore.id,
                "title": chore.title,
                "points": chore.points,
                "schedule": schedule_to_dict(chore.schedule),
                "assignedKidIds": list(chore.assigned_kid_ids),
                "streakByKid": dict(chore.streak_by_kid),
                "order": chore.order,
            }
            for chore in state.chores
        ],
        "rewards": [{"id": reward.id, "title": reward.title, "cost": reward.cost} for reward in state.rewards],
        "completions": [
            {
                "id": completion.id,
                "kidId": completion.kid_id,
                "choreId": completion.chore_id,
                "date": completion.date,
                "completed": True,
            }
            for completion in state.completions
        ],
        "payouts": [
            {
                "id": payout.id,
                "kidId": payout.kid_id,
                "period": payout.period.value,
                "startISO": payout.start_iso,
                "endISO": payout.end_iso,
                "points": payout.points,
                "dollars": float(payout.dollars),
                "timestampISO": _timestamp_to_json(payout.timestamp),
                "note": payout.note,
            }
            for payout in state.payouts
        ],
        "adjustments": [
            {
                "id": entry.id,
                "kidId": entry.kid_id,
                "delta": entry.delta,
                "reason": entry.reason,
                "timestampISO": _timestamp_to_json(entry.timestamp),
            }
            for entry in state.adjustments
        ],
        "streakBonuses": [
            {
                "id": bonus.id,
                "kidId": bonus.kid_id,
                "dateISO": bonus.date_iso,
                "streakLength": bonus.streak_length,
                "points": bonus.points,
            }
            for bonus in state.streak_bonuses
        ],
        "settings": {
            "dollarsPerPoint": float(state.settings.dollars_per_point),
            "hideCompletedOnBoard": state.settings.hide_completed_on_board,
        },
    }


def _kid_from_dict(payload: Mapping[str, Any]) -> Kid:
    avatar: Optional[str] = (
        payload.get("avatar") or payload.get("avatarEmoji") or payload.get("avatarUrl") or payload.get("emoji")
    )
    return Kid(
        id=str(payload["id"]),
        name=str(payload["name"]),
        points=max(0, _whole(payload.get("points", 0))),
        color=payload.get("color") or None,
        avatar=avatar or None,
    )


def _chore_from_dict(payload: Mapping[str, Any], position: int) -> Chore:
    order = payload.get("order")
    return Chore(
        id=str(payload["id"]),
        title=str(payload["title"]),
        points=_positive(payload["points"], "Chore points"),
        schedule=schedule_from_dict(payload.get("schedule") or {}),
        assigned_kid_ids=tuple(dict.fromkeys(str(kid_id) for kid_id in payload.get("assignedKidIds") or ())),
        streak_by_kid={str(key): _whole(value) for key, value in (payload.get("streakByKid") or {}).items()},
        order=position if order is None else _whole(order),
    )


def _settings_from_dict(payload: Mapping[str, Any]) -> Settings:
    rate = payload.get("dollarsPerPoint")
    return Settings(
        dollars_per_point=DEFAULT_DOLLARS_PER_POINT if rate is None else Decimal(str(rate)),
        hide_completed_on_board=bool(payload.get("hideCompletedOnBoard", True)),
    )


def _decode(payload: Mapping[str, Any]) -> State:
    kids = tuple(_kid_from_dict(entry) for entry in payload.get("kids") or ())
    kid_ids = {kid.id for kid in kids}
    chores = tuple(
        _chore_from_dict(entry, position)
        for position, entry in enumerate(payload.get("chores") or (), start=1)
    )
    chore_ids = {chore.id for chore in chores}

    completions: List[Completion] = []
    seen_completions = set()
    for entry in payload.get("completions") or ():
        if not entry.get("completed", True):
            continue
        completion = Completion(
            id=str(entry.get("id") or new_id()),
            kid_id=str(entry["kidId"]),
            chore_id=str(entry["choreId"]),
            date=to_iso(str(entry["date"])),
        )
        if completion.kid_id not in kid_ids or completion.chore_id not in chore_ids:
            continue
        if completion.key in seen_completions:
            continue
        seen_completions.add(completion.key)
        completions.append(completion)

    bonuses: List[StreakBonus] = []
    seen_bonuses = set()
    for entry in payload.get("streakBonuses") or ():
        bonus = StreakBonus(
            id=str(entry.get("id") or new_id()),
            kid_id=str(entry["kidId"]),
            date_iso=to_iso(str(entry["dateISO"])),
            streak_length=_whole(entry["streakLength"]),
            points=_whole(entry.get("points", STREAK_BONUS_POINTS)),
        )
        if bonus.kid_id not in kid_ids or (bonus.kid_id, bonus.date_iso) in seen_bonuses:
            continue
        seen_bonuses.add((bonus.kid_id, bonus.date_iso))
        bonuses.append(bonus)

    adjustments = tuple(
        Adjustment(
            id=str(entry.get("id") or new_id()),
            kid_id=str(entry["kidId"]),
            delta=_whole(entry["delta"]),
            reason=str(entry.get("reason") or ""),
            timestamp=_timestamp_from_json(entry["timestampISO"]),
        )
        for entry in payload.get("adjustments") or ()
        if str(entry["kidId"]) in kid_ids
    )
    payouts = tuple(
        Payout(
            id=str(entry.get("id") or new_id()),
            kid_id=str(entry["kidId"]),
            period=entry.get("period") or "weekly",
            start_iso=to_iso(str(entry["startISO"])),
            end_iso=to_iso(str(entry["endISO"])),
            points=_whole(entry["points"]),
            dollars=Decimal(str(entry["dollars"])),
            timestamp=_timestamp_from_json(entry["timestampISO"]),
            note=str(entry.get("note") or ""),
        )
        for entry in payload.get("payouts") or ()
    )
    rewards = tuple(
        Reward(id=str(entry["id"]), title=str(entry["title"]), cost=_positive(entry["cost"], "Reward cost"))
        for entry in payload.get("rewards") or ()
    )
    return State(
        kids=kids,
        chores=chores,
        rewards=rewards,
        completions=tuple(completions),
        payouts=payouts,
        adjustments=adjustments,
        streak_bonuses=tuple(bonuses),
        settings=_settings_from_dict(payload.get("settings") or {}),
        version=SCHEMA_VERSION,
    )


def state_from_dict(payload: Any) -> State:
    """Build a :class:`State` from a decoded JSON object.

    Raises :class:`~choreloop.exceptions.ValidationError` when the payload does
    not describe a state.
    """

    if not isinstance(payload, Mapping):
        raise ValidationError("State payload must be a JSON object.")
    try:
        return _decode(payload)
    except (AttributeError, InvalidOperation, KeyError, TypeError, ValueError) as exc:
        raise ValidationError(f"Malformed state payload: {exc}") from exc


__all__ = ["schedule_from_dict", "schedule_to_dict", "state_from_dict", "state_to_dict"]
