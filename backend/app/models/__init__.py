"""Database model exports."""

from .analysis import AnalysisResult, ProgressState, ProgressType
from .positions import ClosedPosition
from .transactions import VALUE_EFFECTS, TransactionHistory

__all__ = [
    "TransactionHistory",
    "VALUE_EFFECTS",
    "ClosedPosition",
    "AnalysisResult",
    "ProgressState",
    "ProgressType",
]
