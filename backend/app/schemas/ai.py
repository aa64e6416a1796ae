"""Pydantic schemas for the portfolio consultant endpoint."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ConsultRequest(BaseModel):
    preview: bool = Field(default=False, description="Only build the prompt without calling the model")


class ConsultResponse(BaseModel):
    prompt: str
    analysis: str | None = None
