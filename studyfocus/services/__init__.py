from .ledger_service import NodeKind, StudyLedger
from .stats_service import Granularity, StatsAggregator
from .study_context import StudyContext
from .timer_service import TimerController, TimerState

__all__ = [
    "NodeKind", "StudyLedger", "Granularity", "StatsAggregator",
    "StudyContext", "TimerController", "TimerState",
]
