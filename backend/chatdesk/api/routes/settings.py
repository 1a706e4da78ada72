"""
Messaging & AI Settings Routes

Global WhatsiPlus credentials, the Gemini token, and per-tenant messaging
profile (personal token, AI display name, welcome message template).
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from chatdesk.api.dependencies import ContextDep, verify_admin_api_key
from chatdesk.domain.models import AIProvider, UserRole
from chatdesk.infrastructure.db.models import (
    AITokenSettingsUpdate,
    UserUpdate,
    WhatsappSettingsUpdate,
)
from chatdesk.infrastructure.db.models.settings import DEFAULT_AI_NAME
from chatdesk.infrastructure.exceptions import NotFoundError, ValidationError


logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/admin",
    tags=["Settings"],
    dependencies=[Depends(verify_admin_api_key)],
)


def mask_token(token: Optional[str]) -> Optional[str]:
    """Show only the last four characters of a secret."""
    if not token:
        return None
    return "*" * max(len(token) - 4, 0) + token[-4:]


# =============================================================================
# Schemas
# =============================================================================

class WhatsappSettingsRequest(BaseModel):
    token: Optional[str] = None
    is_enabled: Optional[bool] = None
    notifications: Optional[List[str]] = None
    ai_name: Optional[str] = Field(None, max_length=100)


class WhatsappSettingsResponse(BaseModel):
    token: Optional[str] = None
    is_enabled: bool
    notifications: List[str]
    ai_name: str


class AITokenRequest(BaseModel):
    token: str = Field(..., min_length=1)
    provider: AIProvider = AIProvider.GEMINI
    is_active: bool = True


class AITokenResponse(BaseModel):
    token: Optional[str] = None
    provider: Optional[AIProvider] = None
    is_active: bool


class MessagingProfileRequest(BaseModel):
    """Per-tenant overrides. Empty strings clear a value."""
    whatsapp_token: Optional[str] = None
    ai_name: Optional[str] = Field(None, max_length=100)
    welcome_message: Optional[str] = None


class MessagingProfileResponse(BaseModel):
    user_id: UUID
    role: UserRole
    whatsapp_token: Optional[str] = None
    ai_name: Optional[str] = None
    welcome_message: Optional[str] = None


# =============================================================================
# Global WhatsApp settings
# =============================================================================

@router.get("/whatsapp-settings", response_model=WhatsappSettingsResponse)
async def get_whatsapp_settings(context: ContextDep):
    row = await context.storage.get_whatsapp_settings()
    if row is None:
        return WhatsappSettingsResponse(
            token=None, is_enabled=False, notifications=[], ai_name=DEFAULT_AI_NAME
        )
    return WhatsappSettingsResponse(
        token=mask_token(row.token),
        is_enabled=row.is_enabled,
        notifications=row.notifications or [],
        ai_name=row.ai_name,
    )


@router.put("/whatsapp-settings", response_model=WhatsappSettingsResponse)
async def update_whatsapp_settings(request: WhatsappSettingsRequest, context: ContextDep):
    values = request.model_dump(exclude_unset=True)
    if "ai_name" in values and not (values["ai_name"] or "").strip():
        values["ai_name"] = DEFAULT_AI_NAME

    row = await context.storage.update_whatsapp_settings(WhatsappSettingsUpdate(**values))
    logger.info("WhatsApp settings updated")
    return WhatsappSettingsResponse(
        token=mask_token(row.token),
        is_enabled=row.is_enabled,
        notifications=row.notifications or [],
        ai_name=row.ai_name,
    )


# =============================================================================
# AI token
# =============================================================================

@router.get("/ai-token", response_model=AITokenResponse)
async def get_ai_token(context: ContextDep):
    row = await context.storage.get_ai_settings()
    if row is None:
        return AITokenResponse(token=None, provider=None, is_active=False)
    return AITokenResponse(token=mask_token(row.token), provider=row.provider, is_active=row.is_active)


@router.put("/ai-token", response_model=AITokenResponse)
async def update_ai_token(request: AITokenRequest, context: ContextDep):
    if not request.token.strip():
        raise ValidationError("AI token cannot be blank")

    row = await context.storage.update_ai_settings(
        AITokenSettingsUpdate(
            token=request.token.strip(),
            provider=request.provider,
            is_active=request.is_active,
        )
    )
    logger.info(f"AI token updated (provider: {row.provider}, active: {row.is_active})")
    return AITokenResponse(token=mask_token(row.token), provider=row.provider, is_active=row.is_active)


# =============================================================================
# Per-tenant messaging profile
# =============================================================================

@router.put("/users/{user_id}/messaging", response_model=MessagingProfileResponse)
async def update_messaging_profile(
    user_id: UUID,
    request: MessagingProfileRequest,
    context: ContextDep,
):
    """Set a tenant's personal token, AI display name or welcome template."""
    user = await context.storage.get_user(user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found", operation="update_messaging", table="users")

    values = {
        field: (value.strip() or None) if isinstance(value, str) else value
        for field, value in request.model_dump(exclude_unset=True).items()
    }
    if values.get("whatsapp_token") and UserRole(user.role) is not UserRole.LEVEL_1:
        raise ValidationError("Only level-1 users can have a personal WhatsApp token")

    updated = await context.storage.update_user(user_id, UserUpdate(**values))
    return MessagingProfileResponse(
        user_id=updated.id,
        role=updated.role,
        whatsapp_token=mask_token(updated.whatsapp_token),
        ai_name=updated.ai_name,
        welcome_message=updated.welcome_message,
    )
