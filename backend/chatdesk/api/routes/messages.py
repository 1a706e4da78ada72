"""
WhatsApp Message Routes

Ingestion loop status, manual fetch trigger and the inbound/outbound
message logs. Protected by the admin API key.
"""

import logging
import math
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from chatdesk.api.dependencies import ContextDep, verify_admin_api_key
from chatdesk.domain.models import MessageStatus, SentMessageStatus
from chatdesk.infrastructure.exceptions import NotFoundError


logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/admin",
    tags=["WhatsApp"],
    dependencies=[Depends(verify_admin_api_key)],
)


# =============================================================================
# Response Models
# =============================================================================

class IngestionStatusResponse(BaseModel):
    is_running: bool
    is_fetching: bool
    last_fetch_time: Optional[datetime] = None
    gemini_active: bool


class FetchTriggerResponse(BaseModel):
    status: str  # "completed" or "busy"
    last_fetch_time: Optional[datetime] = None


class ReceivedMessageResponse(BaseModel):
    id: UUID
    user_id: UUID
    upstream_id: str
    sender: str
    message: str
    status: MessageStatus
    original_date: Optional[str] = None
    created_at: datetime


class ReceivedMessagePage(BaseModel):
    messages: List[ReceivedMessageResponse]
    total: int
    page: int
    total_pages: int


class SentMessageResponse(BaseModel):
    id: UUID
    user_id: UUID
    recipient: str
    message: str
    status: SentMessageStatus
    created_at: datetime


# =============================================================================
# Ingestion
# =============================================================================

@router.get("/whatsapp/status", response_model=IngestionStatusResponse)
async def get_ingestion_status(context: ContextDep):
    """Polling loop state."""
    return IngestionStatusResponse(**await context.ingestion.get_status())


@router.post("/whatsapp/fetch", response_model=FetchTriggerResponse)
async def trigger_fetch(context: ContextDep):
    """Run one fetch cycle now; reports `busy` if a cycle is already running."""
    ran = await context.ingestion.trigger()
    return FetchTriggerResponse(
        status="completed" if ran else "busy",
        last_fetch_time=context.ingestion.last_fetch_time,
    )


# =============================================================================
# Message Logs
# =============================================================================

@router.get("/messages/received", response_model=ReceivedMessagePage)
async def list_received_messages(
    context: ContextDep,
    user_id: UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(7, ge=1, le=100),
):
    """Inbound messages of a tenant, newest first."""
    total = await context.storage.count_inbound(user_id)
    records = await context.storage.list_inbound(user_id, skip=(page - 1) * limit, limit=limit)
    return ReceivedMessagePage(
        messages=[ReceivedMessageResponse.model_validate(r, from_attributes=True) for r in records],
        total=total,
        page=page,
        total_pages=math.ceil(total / limit) if total else 0,
    )


@router.put("/messages/received/{message_id}/read", response_model=ReceivedMessageResponse)
async def mark_message_read(message_id: UUID, context: ContextDep):
    """Manual unread -> read transition."""
    record = await context.storage.update_inbound_status(message_id, MessageStatus.READ)
    if record is None:
        raise NotFoundError(
            f"Received message {message_id} not found",
            operation="mark_read",
            table="received_messages",
        )
    return ReceivedMessageResponse.model_validate(record, from_attributes=True)


@router.get("/messages/sent", response_model=List[SentMessageResponse])
async def list_sent_messages(
    context: ContextDep,
    user_id: UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
):
    """Outbound messages of a tenant, newest first."""
    records = await context.storage.list_outbound(user_id, skip=(page - 1) * limit, limit=limit)
    return [SentMessageResponse.model_validate(r, from_attributes=True) for r in records]
