"""SQLAlchemy declarative base shared by all Premium Desk tables."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase


class Base(AsyncAttrs, DeclarativeBase):
    """Declarative base for SQLAlchemy models."""
