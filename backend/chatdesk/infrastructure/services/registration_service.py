"""
Auto-Registration Service

Turns an unknown WhatsApp sender into a level-2 sub-account with a trial.

Decision order (first match wins):
    1. a user already owns this WhatsApp number, in any of its written
       forms (`+98...`, `0098...`, `0...`) -> nothing to do
    2. a user has this phone but no WhatsApp number -> link it in place
    3. otherwise create a level-2 account under the first level-1 operator,
       grant the trial plan and send the welcome message

The username/whatsapp_number unique constraints make concurrent polls safe:
a lost race surfaces as DuplicateError and is resolved by re-reading.
"""

import logging
from enum import Enum
from typing import Optional

from chatdesk.domain.models import UserRole, can_parent_sub_accounts
from chatdesk.domain.phone import (
    phone_suffix,
    phone_variants,
    username_candidate,
    username_for,
)
from chatdesk.infrastructure.db.gateway import StorageGateway
from chatdesk.infrastructure.db.models import User, UserCreate, UserUpdate
from chatdesk.infrastructure.exceptions import (
    ChatDeskError,
    DuplicateError,
    InvalidPhoneNumberError,
)
from chatdesk.infrastructure.services.subscription_service import SubscriptionService
from chatdesk.infrastructure.whatsapp.sender import OutboundSender


logger = logging.getLogger(__name__)


WHATSAPP_FIRST_NAME = "کاربر واتس‌اپ"
PLACEHOLDER_EMAIL_DOMAIN = "whatsapp.temp"
MAX_USERNAME_ATTEMPTS = 20

DEFAULT_WELCOME_TEMPLATE = (
    "سلام {firstName}! 🌟\n\n"
    "به سیستم ما خوش آمدید. شما با موفقیت ثبت نام شدید.\n\n"
    "🎁 اشتراک رایگان 7 روزه به حساب شما اضافه شد.\n\n"
    "برای کمک و راهنمایی، می‌توانید هر زمان پیام بدهید."
)


class RegistrationOutcome(str, Enum):
    ALREADY_REGISTERED = "already_registered"
    BACKFILLED = "backfilled"
    CREATED = "created"
    SKIPPED = "skipped"


def render_welcome(template: Optional[str], first_name: str) -> str:
    """Fill the `{firstName}` placeholder of a welcome template."""
    text = template if template and template.strip() else DEFAULT_WELCOME_TEMPLATE
    return text.replace("{firstName}", first_name)


class AutoRegistrationService:
    """
    Auto-registration policy for inbound WhatsApp senders.

    Args:
        storage: Storage gateway
        sender: Outbound sender used for the welcome message
        subscriptions: Service that creates the trial grant
        country_code: Country calling code stripped during normalization
    """

    def __init__(
        self,
        storage: StorageGateway,
        sender: OutboundSender,
        subscriptions: SubscriptionService,
        country_code: str = "98",
    ):
        self._storage = storage
        self._sender = sender
        self._subscriptions = subscriptions
        self._country_code = country_code

    async def ensure_registered(self, address: str, message: str = "") -> RegistrationOutcome:
        """
        Make sure a user exists for `address`.

        Storage and validation errors are logged and reported as SKIPPED so
        that the inbound message is still stored.
        """
        try:
            return await self._register(address, message)
        except ChatDeskError as e:
            logger.error(f"[REGISTER] Auto-registration for {address} failed: {e.message}")
            return RegistrationOutcome.SKIPPED

    async def _register(self, address: str, message: str) -> RegistrationOutcome:
        if await self._storage.get_user_by_whatsapp_number(address):
            return RegistrationOutcome.ALREADY_REGISTERED

        try:
            variants = phone_variants(address, self._country_code)
        except InvalidPhoneNumberError:
            logger.warning(f"[REGISTER] Ignoring sender with malformed number: {address!r}")
            return RegistrationOutcome.SKIPPED

        if await self._find_whatsapp_owner(variants):
            return RegistrationOutcome.ALREADY_REGISTERED

        backfilled = await self._backfill_phone_match(address, variants)
        if backfilled is not None:
            return backfilled

        parent = await self._find_parent()
        if parent is None:
            logger.error("[REGISTER] No level-1 user exists; cannot auto-register WhatsApp sender")
            return RegistrationOutcome.SKIPPED

        logger.info(
            f"[REGISTER] Registering new WhatsApp user: {address} "
            f"(first message: {message[:30]!r})"
        )
        user = await self._create_user(address, variants, parent)
        if user is None:
            return RegistrationOutcome.ALREADY_REGISTERED

        await self._grant_trial(user)
        await self._send_welcome(user, parent)

        logger.info(f"[REGISTER] New WhatsApp user registered: {user.username} ({address})")
        return RegistrationOutcome.CREATED

    async def _backfill_phone_match(
        self,
        address: str,
        variants: list[str],
    ) -> Optional[RegistrationOutcome]:
        for phone in variants:
            user = await self._storage.get_user_by_phone(phone, unlinked_only=True)
            if user is None:
                continue

            try:
                await self._storage.update_user(
                    user.id,
                    UserUpdate(whatsapp_number=address, is_whatsapp_registered=True),
                )
            except DuplicateError:
                # Another poll linked the address first
                return RegistrationOutcome.ALREADY_REGISTERED

            logger.info(f"[REGISTER] Linked WhatsApp number to existing user {user.username}")
            return RegistrationOutcome.BACKFILLED
        return None

    async def _find_whatsapp_owner(self, variants: list[str]) -> Optional[User]:
        for variant in variants:
            user = await self._storage.get_user_by_whatsapp_number(variant)
            if user is not None:
                return user
        return None

    async def _find_parent(self) -> Optional[User]:
        for user in await self._storage.list_users():
            if can_parent_sub_accounts(user.role):
                return user
        return None

    async def _create_user(
        self,
        address: str,
        variants: list[str],
        parent: User,
    ) -> Optional[User]:
        """
        Create the account, suffixing the username on collision.

        Returns:
            The new user, or None if a concurrent poll registered the address
        """
        base = username_for(address, self._country_code)
        last_name = phone_suffix(address, self._country_code)

        for attempt in range(1, MAX_USERNAME_ATTEMPTS + 1):
            username = username_candidate(base, attempt)
            if await self._storage.get_user_by_username(username):
                continue

            try:
                return await self._storage.create_user(
                    UserCreate(
                        username=username,
                        first_name=WHATSAPP_FIRST_NAME,
                        last_name=last_name,
                        email=f"{username}@{PLACEHOLDER_EMAIL_DOMAIN}",
                        phone=address,
                        whatsapp_number=address,
                        is_whatsapp_registered=True,
                        role=UserRole.LEVEL_2,
                        parent_user_id=parent.id,
                    )
                )
            except DuplicateError:
                if await self._find_whatsapp_owner(variants):
                    return None
                logger.info(f"[REGISTER] Username {username} taken concurrently, retrying")

        raise DuplicateError(
            f"No free username for {address} after {MAX_USERNAME_ATTEMPTS} attempts",
            operation="create_user",
            table="users",
        )

    async def _grant_trial(self, user: User) -> None:
        try:
            grant = await self._subscriptions.create_trial_grant(user.id)
        except ChatDeskError as e:
            logger.error(f"[REGISTER] Trial grant for {user.username} failed: {e.message}")
            return

        if grant is None:
            logger.warning(f"[REGISTER] {user.username} registered without a trial (no default plan)")

    async def _send_welcome(self, user: User, parent: User) -> None:
        text = render_welcome(parent.welcome_message, user.first_name)
        try:
            sent = await self._sender.send(user.whatsapp_number, text, parent.id)
        except ChatDeskError as e:
            logger.error(f"[REGISTER] Welcome message to {user.whatsapp_number} failed: {e.message}")
            return

        if sent:
            logger.info(f"[REGISTER] Welcome message sent to {user.whatsapp_number}")
        else:
            logger.warning(f"[REGISTER] Welcome message to {user.whatsapp_number} was not sent")
