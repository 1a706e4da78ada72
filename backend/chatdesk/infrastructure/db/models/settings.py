"""
Runtime settings tables.

Both tables hold a single row edited from the admin dashboard: the global
WhatsiPlus credentials and the generative model token.
"""

from typing import List, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from chatdesk.domain.models import AIProvider
from chatdesk.infrastructure.db.models.base import UUIDMixin, TimestampMixin, enum_type


DEFAULT_AI_NAME = "من هوش مصنوعی هستم"


class WhatsappSettings(UUIDMixin, TimestampMixin, table=True):
    """Global WhatsiPlus settings."""

    __tablename__ = "whatsapp_settings"

    token: Optional[str] = Field(default=None)
    is_enabled: bool = Field(default=True)
    notifications: List[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False, server_default="[]"),
    )
    ai_name: str = Field(default=DEFAULT_AI_NAME, max_length=100)

    @property
    def is_configured(self) -> bool:
        """Token present and sending enabled."""
        return bool(self.token and self.token.strip() and self.is_enabled)


class WhatsappSettingsUpdate(SQLModel):
    token: Optional[str] = None
    is_enabled: Optional[bool] = None
    notifications: Optional[List[str]] = None
    ai_name: Optional[str] = None


class AITokenSettings(UUIDMixin, TimestampMixin, table=True):
    """Generative model token."""

    __tablename__ = "ai_token_settings"

    token: str = Field(...)
    provider: AIProvider = Field(default=AIProvider.GEMINI, sa_type=enum_type(AIProvider))
    is_active: bool = Field(default=True)

    @property
    def is_usable(self) -> bool:
        return bool(self.token and self.token.strip() and self.is_active)


class AITokenSettingsUpdate(SQLModel):
    token: Optional[str] = None
    provider: Optional[AIProvider] = None
    is_active: Optional[bool] = None
