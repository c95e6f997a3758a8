"""High level controller owning the single application state."""

from __future__ import annotations

from dataclasses import fields
from datetime import date
from typing import Dict, Optional, Sequence, Tuple, Union

from sqlalchemy.exc import SQLAlchemyError

from . import backup, reducer
from .board import chores_due, is_completed
from .config import LOG_FILE
from .dates import DateRange, to_iso, today_iso
from .exceptions import BackupImportError, ConfirmationRequiredError, ValidationError
from .models import Chore, Kid, Payout, PayoutPeriod, Reward, Schedule, State, default_state
from .money import AmountLike
from .ops import StructuredLogger
from .reducer import (
    Action,
    AddChore,
    AddKid,
    AddReward,
    AdjustPoints,
    DeleteChore,
    DeleteKid,
    DeleteReward,
    RecordPayout,
    RedeemReward,
    ReorderChores,
    ReplaceAll,
    ResetAll,
    ToggleCompletion,
    UpdateKid,
    UpdateSettings,
)
from .reports import ReportRow, default_window, summarize
from .storage import StateStore

_EVENTS: Dict[type, str] = {
    AddKid: "kid_added",
    UpdateKid: "kid_updated",
    DeleteKid: "kid_deleted",
    AdjustPoints: "points_adjusted",
    UpdateSettings: "settings_updated",
    AddChore: "chore_added",
    DeleteChore: "chore_deleted",
    ReorderChores: "chores_reordered",
    ToggleCompletion: "completion_toggled",
    AddReward: "reward_added",
    DeleteReward: "reward_deleted",
    RedeemReward: "reward_redeem_unsupported",
    RecordPayout: "payout_recorded",
    ResetAll: "state_reset",
    ReplaceAll: "state_replaced",
}
_UNLOGGED_FIELDS = frozenset({"state", "now", "schedule"})


class ChoreLoop:
    """Apply actions to the current state, log them and persist the result.

    The state is only replaced once a transition succeeds, so a failing action
    leaves it exactly as it was. Saving is best effort: a storage failure is
    logged and the in-memory state stays authoritative.
    """

    __slots__ = ("_state", "_store", "_logger")

    def __init__(
        self,
        *,
        store: StateStore | None = None,
        logger: StructuredLogger | None = None,
        state: State | None = None,
    ) -> None:
        self._logger = logger or StructuredLogger(path=LOG_FILE)
        self._store = store
        if state is not None:
            self._state = state
        elif store is not None:
            self._state = store.load()
        else:
            self._state = default_state()

    @property
    def state(self) -> State:
        return self._state

    @property
    def logger(self) -> StructuredLogger:
        return self._logger

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------
    def dispatch(self, action: Action) -> State:
        before = self._state
        after = reducer.dispatch(before, action)
        self._state = after
        self._log_transition(action, before, after)
        self._persist()
        return after

    def _log_transition(self, action: Action, before: State, after: State) -> None:
        details = {
            entry.name: getattr(action, entry.name)
            for entry in fields(action)
            if entry.name not in _UNLOGGED_FIELDS
        }
        event = _EVENTS.get(type(action), type(action).__name__)
        if isinstance(action, RedeemReward):
            self._logger.warning(event, **details)
        else:
            self._logger.log(event, **details)

        if not isinstance(action, ToggleCompletion):
            return
        previous = {bonus.id for bonus in before.streak_bonuses}
        current = {bonus.id for bonus in after.streak_bonuses}
        for bonus in after.streak_bonuses:
            if bonus.id not in previous:
                self._logger.log(
                    "streak_bonus_awarded",
                    kid=bonus.kid_id,
                    date=bonus.date_iso,
                    streak=bonus.streak_length,
                    points=bonus.points,
                )
        for bonus in before.streak_bonuses:
            if bonus.id not in current:
                self._logger.log("streak_bonus_revoked", kid=bonus.kid_id, date=bonus.date_iso, points=bonus.points)

    def _persist(self) -> None:
        if self._store is None:
            return
        try:
            self._store.save(self._state)
        except (SQLAlchemyError, OSError) as exc:
            self._logger.error("save_failed", error=str(exc))

    # ------------------------------------------------------------------
    # Kids
    # ------------------------------------------------------------------
    def add_kid(self, name: str, *, color: str | None = None, avatar: str | None = None) -> Kid:
        return self.dispatch(AddKid(name=name, color=color, avatar=avatar)).kids[-1]

    def update_kid(
        self,
        kid_id: str,
        *,
        name: str | None = None,
        color: str | None = None,
        avatar: str | None = None,
    ) -> Optional[Kid]:
        return self.dispatch(UpdateKid(kid_id=kid_id, name=name, color=color, avatar=avatar)).find_kid(kid_id)

    def delete_kid(self, kid_id: str) -> None:
        self.dispatch(DeleteKid(kid_id=kid_id))

    def adjust_points(self, kid_id: str, delta: int, reason: str = "") -> Optional[Kid]:
        return self.dispatch(AdjustPoints(kid_id=kid_id, delta=delta, reason=reason)).find_kid(kid_id)

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------
    def update_settings(
        self,
        *,
        dollars_per_point: AmountLike | None = None,
        hide_completed_on_board: bool | None = None,
    ) -> None:
        self.dispatch(
            UpdateSettings(dollars_per_point=dollars_per_point, hide_completed_on_board=hide_completed_on_board)
        )

    def toggle_hide_completed(self) -> bool:
        hidden = not self._state.settings.hide_completed_on_board
        self.update_settings(hide_completed_on_board=hidden)
        return hidden

    # ------------------------------------------------------------------
    # Chores and the board
    # ------------------------------------------------------------------
    def add_chore(
        self,
        title: str,
        points: int,
        *,
        assigned_kid_ids: Sequence[str],
        schedule: Schedule | None = None,
    ) -> Chore:
        action = AddChore(
            title=title,
            points=points,
            schedule=schedule or Schedule.daily(),
            assigned_kid_ids=tuple(assigned_kid_ids),
        )
        return self.dispatch(action).chores[-1]

    def delete_chore(self, chore_id: str) -> None:
        self.dispatch(DeleteChore(chore_id=chore_id))

    def reorder_chores(self, chore_ids: Sequence[str]) -> Tuple[Chore, ...]:
        return self.dispatch(ReorderChores(chore_ids=tuple(chore_ids))).sorted_chores()

    def toggle_completion(self, kid_id: str, chore_id: str, on: Union[str, date, None] = None) -> bool:
        """Toggle a chore for a kid on ``on`` (today by default); return the new status."""

        date_iso = to_iso(on) if on is not None else today_iso()
        state = self.dispatch(ToggleCompletion(kid_id=kid_id, chore_id=chore_id, date_iso=date_iso))
        return is_completed(state, kid_id, chore_id, date_iso)

    def board(self, kid_id: str, on: Union[str, date, None] = None) -> Tuple[Chore, ...]:
        date_iso = to_iso(on) if on is not None else today_iso()
        return chores_due(self._state, kid_id, date_iso)

    # ------------------------------------------------------------------
    # Rewards
    # ------------------------------------------------------------------
    def add_reward(self, title: str, cost: int) -> Reward:
        return self.dispatch(AddReward(title=title, cost=cost)).rewards[-1]

    def delete_reward(self, reward_id: str) -> None:
        self.dispatch(DeleteReward(reward_id=reward_id))

    def redeem_reward(self, kid_id: str, reward_id: str) -> None:
        """Placeholder: redemption is not supported yet and leaves the state unchanged."""

        self.dispatch(RedeemReward(kid_id=kid_id, reward_id=reward_id))

    # ------------------------------------------------------------------
    # Reports and payouts
    # ------------------------------------------------------------------
    def report(
        self,
        kid_id: str | None = None,
        window: DateRange | None = None,
    ) -> Tuple[ReportRow, ...]:
        window = window or default_window()
        return summarize(self._state, kid_id, window.start_iso, window.end_iso)

    def record_payout(
        self,
        kid_id: str,
        period: PayoutPeriod | str,
        window: DateRange,
        points: int,
        *,
        note: str = "",
    ) -> Payout:
        action = RecordPayout(
            kid_id=kid_id,
            period=period,
            start_iso=window.start_iso,
            end_iso=window.end_iso,
            points=points,
            note=note,
        )
        return self.dispatch(action).payouts[0]

    def mark_paid(
        self,
        kid_id: str,
        window: DateRange,
        period: PayoutPeriod | str = PayoutPeriod.WEEKLY,
    ) -> Payout:
        """Record a payout of the kid's net points for ``window``."""

        self._state.get_kid(kid_id)
        rows = summarize(self._state, kid_id, window.start_iso, window.end_iso)
        net = rows[0].net if rows else 0
        if net <= 0:
            raise ValidationError("No points in this window.")
        return self.record_payout(kid_id, period, window, net)

    # ------------------------------------------------------------------
    # Backups and destructive replacement
    # ------------------------------------------------------------------
    def export_backup(self) -> bytes:
        payload = backup.export_backup(self._state)
        self._logger.log("backup_exported", size_bytes=len(payload))
        return payload

    def restore_backup(self, payload: bytes | str, *, confirmed: bool) -> State:
        """Replace everything with the backup contents.

        A malformed backup raises :class:`~choreloop.exceptions.BackupImportError`
        and leaves the current state untouched.
        """

        try:
            incoming = backup.import_backup(payload, confirmed=confirmed)
        except BackupImportError as exc:
            self._logger.error("backup_import_failed", error=str(exc))
            raise
        return self.dispatch(ReplaceAll(state=incoming))

    def reset(self, *, confirmed: bool) -> State:
        if not confirmed:
            raise ConfirmationRequiredError("Resetting deletes all data; pass confirmed=True.")
        return self.dispatch(ResetAll())


__all__ = ["ChoreLoop"]
