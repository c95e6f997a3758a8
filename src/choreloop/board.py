"""Queries answering which chores a kid owes on a given day."""

from __future__ import annotations

from typing import AbstractSet, Optional, Tuple

from .models import Chore, State


def chores_due(
    state: State,
    kid_id: str,
    date_iso: str,
    *,
    hide_completed: Optional[bool] = None,
) -> Tuple[Chore, ...]:
    """Return the chores assigned to ``kid_id`` and due on ``date_iso``, in board order.

    ``hide_completed`` defaults to the ``hide_completed_on_board`` setting.
    """

    if hide_completed is None:
        hide_completed = state.settings.hide_completed_on_board
    due = tuple(chore for chore in state.sorted_chores() if chore.is_due_for(kid_id, date_iso))
    if not hide_completed:
        return due
    done = state.completion_keys()
    return tuple(chore for chore in due if (kid_id, chore.id, date_iso) not in done)


def is_completed(state: State, kid_id: str, chore_id: str, date_iso: str) -> bool:
    return (kid_id, chore_id, date_iso) in state.completion_keys()


def is_full_day(
    state: State,
    kid_id: str,
    date_iso: str,
    *,
    completed: Optional[AbstractSet[Tuple[str, str, str]]] = None,
) -> bool:
    """True when at least one chore is due for the kid and all of them are done.

    Pass ``completed`` to reuse a precomputed set of completion keys.
    """

    keys = state.completion_keys() if completed is None else completed
    due = [chore for chore in state.chores if chore.is_due_for(kid_id, date_iso)]
    if not due:
        return False
    return all((kid_id, chore.id, date_iso) in keys for chore in due)


__all__ = ["chores_due", "is_completed", "is_full_day"]
