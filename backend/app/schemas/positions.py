"""Pydantic schemas for aggregated position episodes."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from premium_desk import PositionEpisode


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class PositionEpisodeSchema(CamelModel):
    symbol: str
    first_transaction_date: datetime
    last_transaction_date: datetime
    total_shares: float
    total_shares_bought: float
    total_shares_sold: float
    total_cost: float
    total_proceeds: float
    avg_cost_basis: float
    total_option_premium: float
    total_option_contracts: float
    total_option_transactions: int
    equity_transactions: int
    total_transactions: int
    is_open: bool
    realized_pl: float = Field(alias="realizedPL")
    total_return: float
    return_percentage: float
    days_held: int

    @classmethod
    def from_episode(cls, episode: PositionEpisode) -> "PositionEpisodeSchema":
        return cls(
            symbol=episode.symbol,
            first_transaction_date=episode.first_transaction_date,
            last_transaction_date=episode.last_transaction_date,
            total_shares=float(episode.total_shares),
            total_shares_bought=float(episode.total_shares_bought),
            total_shares_sold=float(episode.total_shares_sold),
            total_cost=float(episode.total_cost),
            total_proceeds=float(episode.total_proceeds),
            avg_cost_basis=float(episode.avg_cost_basis),
            total_option_premium=float(episode.total_option_premium),
            total_option_contracts=float(episode.total_option_contracts),
            total_option_transactions=episode.total_option_transactions,
            equity_transactions=episode.equity_transactions,
            total_transactions=episode.total_transactions,
            is_open=episode.is_open,
            realized_pl=float(episode.realized_pl),
            total_return=float(episode.total_return),
            return_percentage=float(episode.return_percentage),
            days_held=episode.days_held,
        )
