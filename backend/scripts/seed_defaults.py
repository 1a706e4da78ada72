#!/usr/bin/env python3
"""
Seed Default Data

Creates the trial subscription plan and, optionally, the first admin account
and the global WhatsiPlus / Gemini credentials.

Usage:
    python -m scripts.seed_defaults
    python -m scripts.seed_defaults --admin-username admin --admin-phone 9121234567
    python -m scripts.seed_defaults --whatsapp-token TOKEN --ai-token KEY
"""

import asyncio
import argparse
import logging

# Add parent directory to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from chatdesk.domain.models import UserRole
from chatdesk.infrastructure.db import SqlStorageGateway, close_db, init_db
from chatdesk.infrastructure.db.models import (
    AITokenSettingsUpdate,
    UserCreate,
    WhatsappSettingsUpdate,
)
from chatdesk.infrastructure.services.subscription_service import SubscriptionService

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def seed(args: argparse.Namespace) -> dict:
    stats = {"default_plan": None, "admin": None, "whatsapp_token": False, "ai_token": False}

    await init_db()
    storage = SqlStorageGateway()
    try:
        plan = await SubscriptionService(storage).ensure_default_plan()
        stats["default_plan"] = str(plan.id)

        if args.admin_username:
            admin = await storage.get_user_by_username(args.admin_username)
            if admin is None:
                admin = await storage.create_user(
                    UserCreate(
                        username=args.admin_username,
                        first_name=args.admin_username,
                        phone=args.admin_phone or "",
                        role=UserRole.ADMIN,
                    )
                )
                logger.info(f"Admin {admin.username} created")
            stats["admin"] = admin.username

        if args.whatsapp_token:
            await storage.update_whatsapp_settings(
                WhatsappSettingsUpdate(token=args.whatsapp_token, is_enabled=True)
            )
            stats["whatsapp_token"] = True

        if args.ai_token:
            await storage.update_ai_settings(
                AITokenSettingsUpdate(token=args.ai_token, is_active=True)
            )
            stats["ai_token"] = True
    finally:
        await close_db()

    return stats


async def main():
    parser = argparse.ArgumentParser(description="Seed ChatDesk defaults")
    parser.add_argument("--admin-username", help="Create an admin account with this username")
    parser.add_argument("--admin-phone", help="Phone number stored on the admin account")
    parser.add_argument("--whatsapp-token", help="Global WhatsiPlus token")
    parser.add_argument("--ai-token", help="Gemini API key")
    args = parser.parse_args()

    stats = await seed(args)

    print("\n=== Seed Complete ===")
    print(f"Default plan: {stats['default_plan']}")
    print(f"Admin: {stats['admin'] or '-'}")
    print(f"WhatsApp token set: {stats['whatsapp_token']}")
    print(f"AI token set: {stats['ai_token']}")


if __name__ == "__main__":
    asyncio.run(main())
