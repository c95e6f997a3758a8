"""ChoreLoop package for tracking chores, streaks and points for kids."""

from .backup import export_backup, import_backup
from .dates import DateRange, Weekday, month_days, month_range, week_range
from .exceptions import (
    BackupImportError,
    ChoreLoopError,
    ConfirmationRequiredError,
    NotFoundError,
    StorageDecodeError,
    ValidationError,
)
from .models import (
    Adjustment,
    Chore,
    Completion,
    Kid,
    Payout,
    PayoutPeriod,
    Reward,
    Schedule,
    ScheduleType,
    Settings,
    State,
    StreakBonus,
    default_state,
)
from .ops import StructuredLogger
from .reducer import dispatch
from .reports import ReportRow, summarize
from .service import ChoreLoop
from .storage import StateStore
from .streaks import toggle_completion

__all__ = [
    "Adjustment",
    "BackupImportError",
    "Chore",
    "ChoreLoop",
    "ChoreLoopError",
    "Completion",
    "ConfirmationRequiredError",
    "DateRange",
    "Kid",
    "NotFoundError",
    "Payout",
    "PayoutPeriod",
    "ReportRow",
    "Reward",
    "Schedule",
    "ScheduleType",
    "Settings",
    "State",
    "StateStore",
    "StorageDecodeError",
    "StreakBonus",
    "StructuredLogger",
    "ValidationError",
    "Weekday",
    "default_state",
    "dispatch",
    "export_backup",
    "import_backup",
    "month_days",
    "month_range",
    "summarize",
    "toggle_completion",
    "week_range",
]
