"""Completion toggling, per-chore streaks and full-day milestone bonuses.

A toggle flips one (kid, chore, date) completion and then brings everything
derived from the completion set back in line:

* the kid's balance moves by the chore's point value (no audit entry),
* the chore's streak counter for the kid is recomputed,
* the streak bonus for that kid and date is awarded or revoked depending on
  whether the day is full and the run of full days ending there is a
  multiple of :data:`~choreloop.models.STREAK_MILESTONE`.

Only the toggled date is evaluated. Later dates keep whatever bonus they
already have.
"""

from __future__ import annotations

from dataclasses import replace
from typing import AbstractSet, Optional, Tuple

from .board import is_full_day
from .dates import previous_day, to_iso
from .models import (
    STREAK_BONUS_POINTS,
    STREAK_MILESTONE,
    Completion,
    State,
    StreakBonus,
    new_id,
)

CompletionKeys = AbstractSet[Tuple[str, str, str]]


def chore_run(completed: CompletionKeys, kid_id: str, chore_id: str, date_iso: str) -> int:
    """Count consecutive days ending at ``date_iso`` on which the kid did the chore."""

    run = 0
    day = date_iso
    while (kid_id, chore_id, day) in completed:
        run += 1
        day = previous_day(day)
    return run


def full_day_run(state: State, kid_id: str, date_iso: str, completed: Optional[CompletionKeys] = None) -> int:
    """Count consecutive full days for the kid ending at (and including) ``date_iso``.

    A day with nothing due is not full, so the walk always stops once it runs
    past the kid's completion history.
    """

    keys = state.completion_keys() if completed is None else completed
    run = 0
    day = date_iso
    while is_full_day(state, kid_id, day, completed=keys):
        run += 1
        day = previous_day(day)
    return run


def is_milestone(run: int) -> bool:
    return run > 0 and run % STREAK_MILESTONE == 0


def streak_bonus_for(state: State, kid_id: str, date_iso: str) -> Optional[StreakBonus]:
    return next(
        (bonus for bonus in state.streak_bonuses if bonus.kid_id == kid_id and bonus.date_iso == date_iso),
        None,
    )


def toggle_completion(state: State, kid_id: str, chore_id: str, date_iso: str) -> State:
    """Flip the completion of ``chore_id`` by ``kid_id`` on ``date_iso``.

    Raises :class:`~choreloop.exceptions.NotFoundError` when the chore or the
    kid is unknown, since the point math needs both.
    """

    chore = state.get_chore(chore_id)
    kid = state.get_kid(kid_id)
    date_iso = to_iso(date_iso)
    key = (kid_id, chore_id, date_iso)

    was_completed = any(completion.key == key for completion in state.completions)
    if was_completed:
        completions = tuple(completion for completion in state.completions if completion.key != key)
        points = max(0, kid.points - chore.points)
    else:
        completions = state.completions + (
            Completion(id=new_id(), kid_id=kid_id, chore_id=chore_id, date=date_iso),
        )
        points = kid.points + chore.points
    completed = frozenset(completion.key for completion in completions)

    streak = 0 if was_completed else chore_run(completed, kid_id, chore_id, date_iso)
    chores = tuple(
        replace(entry, streak_by_kid={**entry.streak_by_kid, kid_id: streak}) if entry.id == chore_id else entry
        for entry in state.chores
    )
    updated = replace(state, chores=chores, completions=completions)

    bonuses = updated.streak_bonuses
    existing = streak_bonus_for(updated, kid_id, date_iso)
    if is_full_day(updated, kid_id, date_iso, completed=completed):
        run = full_day_run(updated, kid_id, date_iso, completed)
        if is_milestone(run) and existing is None:
            bonus = StreakBonus(
                id=new_id(),
                kid_id=kid_id,
                date_iso=date_iso,
                streak_length=run,
                points=STREAK_BONUS_POINTS,
            )
            bonuses = bonuses + (bonus,)
            points += bonus.points
    elif existing is not None:
        bonuses = tuple(bonus for bonus in bonuses if bonus is not existing)
        points = max(0, points - existing.points)

    kids = tuple(replace(entry, points=points) if entry.id == kid_id else entry for entry in updated.kids)
    return replace(updated, kids=kids, streak_bonuses=bonuses)


__all__ = [
    "chore_run",
    "full_day_run",
    "is_milestone",
    "streak_bonus_for",
    "toggle_completion",
]
