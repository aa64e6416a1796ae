"""Request-scoped access to the settings and brokerage client held on ``app.state``."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from app.config import AppSettings
from app.providers.tastytrade import TastytradeClient


def get_app_settings(request: Request) -> AppSettings:
    return request.app.state.settings


def get_broker(request: Request) -> TastytradeClient:
    """Return the shared Tastytrade client, creating it on first use."""

    broker: TastytradeClient | None = request.app.state.broker
    if broker is not None:
        return broker
    settings: AppSettings = request.app.state.settings
    if not settings.tastytrade_configured:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Tastytrade credentials are not configured",
        )
    broker = TastytradeClient(settings)
    request.app.state.broker = broker
    return broker


__all__ = ["get_app_settings", "get_broker"]
