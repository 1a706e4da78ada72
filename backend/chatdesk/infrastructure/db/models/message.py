"""
WhatsApp message log models.

ReceivedMessage is the dedup ledger: (upstream_id, user_id) is unique, so
the same upstream message can be stored once per owning tenant and never
twice for the same one.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import Text, UniqueConstraint
from sqlmodel import Field, SQLModel

from chatdesk.domain.models import MessageStatus, SentMessageStatus
from chatdesk.infrastructure.db.models.base import UUIDMixin, CreatedAtMixin, enum_type


class ReceivedMessageBase(SQLModel):
    user_id: UUID = Field(
        ...,
        foreign_key="users.id",
        ondelete="CASCADE",
        index=True,
        description="Owning tenant"
    )
    upstream_id: str = Field(..., max_length=128, index=True)
    sender: str = Field(..., max_length=64)
    message: str = Field(..., sa_type=Text)
    status: MessageStatus = Field(
        default=MessageStatus.UNREAD,
        sa_type=enum_type(MessageStatus),
    )
    original_date: Optional[str] = Field(
        default=None,
        max_length=64,
        description="Timestamp as reported by WhatsiPlus"
    )


class ReceivedMessage(UUIDMixin, CreatedAtMixin, ReceivedMessageBase, table=True):
    """Inbound message record."""

    __tablename__ = "received_messages"
    __table_args__ = (
        UniqueConstraint("upstream_id", "user_id", name="uq_received_messages_upstream_user"),
    )


class ReceivedMessageCreate(ReceivedMessageBase):
    pass


class SentMessageBase(SQLModel):
    user_id: UUID = Field(
        ...,
        foreign_key="users.id",
        ondelete="CASCADE",
        index=True,
    )
    recipient: str = Field(..., max_length=64)
    message: str = Field(..., sa_type=Text)
    status: SentMessageStatus = Field(
        default=SentMessageStatus.SENT,
        sa_type=enum_type(SentMessageStatus),
    )


class SentMessage(UUIDMixin, CreatedAtMixin, SentMessageBase, table=True):
    """Outbound message record."""

    __tablename__ = "sent_messages"


class SentMessageCreate(SentMessageBase):
    pass
