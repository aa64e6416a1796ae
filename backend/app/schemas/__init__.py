"""Pydantic schema exports."""

from .ai import ConsultRequest, ConsultResponse
from .analysis import AnalysisResultSchema, ProgressStateSchema
from .positions import CamelModel, PositionEpisodeSchema
from .transactions import SyncResponse, TransactionHistorySchema

__all__ = [
    "CamelModel",
    "PositionEpisodeSchema",
    "TransactionHistorySchema",
    "SyncResponse",
    "AnalysisResultSchema",
    "ProgressStateSchema",
    "ConsultRequest",
    "ConsultResponse",
]
