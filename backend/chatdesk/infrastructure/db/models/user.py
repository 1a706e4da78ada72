"""
User SQLModel for ChatDesk

Tenant accounts: admins, level-1 operators and their level-2 sub-accounts.
`whatsapp_number` and `username` are unique so that two overlapping polls
cannot auto-register the same sender twice.
"""

from typing import Optional
from uuid import UUID

from sqlmodel import Field, SQLModel

from chatdesk.domain.models import UserRole
from chatdesk.infrastructure.db.models.base import UUIDMixin, TimestampMixin, enum_type


class UserBase(SQLModel):
    """Base schema for User (shared between create/read)."""

    username: str = Field(..., max_length=100, unique=True, index=True)
    first_name: str = Field(..., max_length=100)
    last_name: str = Field(default="", max_length=100)
    email: Optional[str] = Field(default=None, max_length=255, unique=True)
    phone: str = Field(..., max_length=32, index=True)

    whatsapp_number: Optional[str] = Field(
        default=None,
        max_length=32,
        unique=True,
        index=True,
        description="Messaging identity (WhatsApp sender address)"
    )
    whatsapp_token: Optional[str] = Field(
        default=None,
        description="Personal WhatsiPlus token (level-1 operators)"
    )
    is_whatsapp_registered: bool = Field(default=False)

    role: UserRole = Field(default=UserRole.LEVEL_1, sa_type=enum_type(UserRole))
    parent_user_id: Optional[UUID] = Field(
        default=None,
        foreign_key="users.id",
        ondelete="CASCADE",
        index=True,
        description="Owning level-1 operator for level-2 accounts"
    )

    ai_name: Optional[str] = Field(default=None, max_length=100)
    welcome_message: Optional[str] = Field(default=None)


class User(UUIDMixin, TimestampMixin, UserBase, table=True):
    """User database table model."""

    __tablename__ = "users"


class UserCreate(UserBase):
    """Schema for creating a user."""
    pass


class UserUpdate(SQLModel):
    """Schema for updating a user. All fields optional."""

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    whatsapp_number: Optional[str] = None
    whatsapp_token: Optional[str] = None
    is_whatsapp_registered: Optional[bool] = None
    role: Optional[UserRole] = None
    parent_user_id: Optional[UUID] = None
    ai_name: Optional[str] = None
    welcome_message: Optional[str] = None
