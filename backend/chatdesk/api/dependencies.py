"""
API Dependencies

FastAPI dependency injection for admin authentication and the application
context.
"""

import logging
import secrets
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from chatdesk.config.settings import get_settings
from chatdesk.context import AppContext


logger = logging.getLogger(__name__)


async def verify_admin_api_key(
    x_admin_key: str = Header(..., description="Admin API key for protected operations")
) -> bool:
    """
    Verify admin API key from header.

    The admin key should be set in environment variable ADMIN_API_KEY.
    """
    expected_key = get_settings().admin_api_key

    if not expected_key:
        logger.error("ADMIN_API_KEY environment variable not set")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin authentication not configured"
        )

    # Constant-time comparison
    if not secrets.compare_digest(x_admin_key, expected_key):
        logger.warning("Invalid admin API key attempt")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid admin API key"
        )

    return True


def get_app_context(request: Request) -> AppContext:
    """Application context built during lifespan startup."""
    context = getattr(request.app.state, "context", None)
    if context is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Application services are not initialized"
        )
    return context


ContextDep = Annotated[AppContext, Depends(get_app_context)]
