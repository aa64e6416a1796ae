"""Portfolio consultant prompt assembly and LLM call."""

from __future__ import annotations

import json
import logging
from typing import Any, Sequence

from openai import OpenAI

from app.config import AppSettings
from app.models import AnalysisResult
from premium_desk import PositionEpisode

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an options trading assistant reviewing a covered-call and cash-secured "
    "premium portfolio. Provide educational, non-financial advice. Keep it concise."
)


class ConsultantNotConfiguredError(RuntimeError):
    """Raised when no OpenAI API key is configured."""


class ConsultantError(RuntimeError):
    """Raised when the model call fails or returns nothing."""


def _episode_summary(episode: PositionEpisode) -> dict[str, Any]:
    return {
        "symbol": episode.symbol,
        "status": "open" if episode.is_open else "closed",
        "opened": episode.first_transaction_date.date().isoformat(),
        "last_activity": episode.last_transaction_date.date().isoformat(),
        "shares": float(episode.total_shares),
        "avg_cost_basis": round(float(episode.avg_cost_basis), 2),
        "option_premium": round(float(episode.total_option_premium), 2),
        "open_contracts": float(episode.total_option_contracts),
        "realized_pl": round(float(episode.realized_pl), 2),
        "total_return": round(float(episode.total_return), 2),
        "return_percentage": round(float(episode.return_percentage), 2),
        "days_held": episode.days_held,
    }


def _analysis_summary(row: AnalysisResult) -> dict[str, Any]:
    return {
        "symbol": row.symbol,
        "price": row.current_price,
        "option": row.option_symbol,
        "strike": row.option_strike_price,
        "mid_percent": round(row.option_mid_percent, 2) if row.option_mid_percent is not None else None,
        "expiration": row.option_expiration_date.isoformat() if row.option_expiration_date else None,
    }


def build_prompt(episodes: Sequence[PositionEpisode], analyses: Sequence[AnalysisResult]) -> str:
    """Render positions and READY scan candidates as the consultant's user prompt."""

    open_positions = [_episode_summary(e) for e in episodes if e.is_open]
    closed_positions = [_episode_summary(e) for e in episodes if not e.is_open]
    candidates = [_analysis_summary(row) for row in analyses if row.status == "READY"]
    sections = [
        "Review my options premium portfolio and suggest adjustments.",
        "For each open position say whether to roll, close or hold the short calls.",
        "Then rank the new candidates worth opening, noting assignment risk.",
        "",
        "Open positions:",
        json.dumps(open_positions, indent=2),
        "",
        "Closed positions:",
        json.dumps(closed_positions, indent=2),
        "",
        "Candidates ready to trade:",
        json.dumps(candidates, indent=2),
    ]
    return "\n".join(sections)


def consult(prompt: str, settings: AppSettings, *, client: Any | None = None) -> str:
    """Send ``prompt`` to the configured model and return its text answer."""

    if client is None:
        if not settings.openai_api_key:
            raise ConsultantNotConfiguredError("OPENAI_API_KEY is not configured")
        client = OpenAI(api_key=settings.openai_api_key)

    logger.info("Consulting %s with a %d character prompt", settings.openai_model, len(prompt))
    try:
        response = client.responses.create(
            model=settings.openai_model,
            input=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
        )
    except Exception as exc:
        logger.exception("Consultant call failed")
        raise ConsultantError(f"Consultant call failed: {exc}") from exc
    text = (getattr(response, "output_text", None) or "").strip()
    if not text:
        raise ConsultantError("Consultant returned an empty response")
    return text


__all__ = [
    "ConsultantError",
    "ConsultantNotConfiguredError",
    "SYSTEM_PROMPT",
    "build_prompt",
    "consult",
]
