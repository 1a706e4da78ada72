"""
WhatsiPlus API Client

Thin async wrapper over the two WhatsiPlus endpoints the platform uses:

    GET {base}/receivedMessages/{token}?page=1
    GET {base}/sendMsg/{token}?phonenumber=...&message=...

The token is part of the URL path, so URLs are never logged.
"""

import logging
from typing import Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from chatdesk.domain.messaging import ReceivedMessagesPage
from chatdesk.infrastructure.exceptions import UpstreamAPIError


logger = logging.getLogger(__name__)


class WhatsiPlusClient:
    """
    HTTP client for the WhatsiPlus API.

    Args:
        base_url: API root, e.g. https://api.whatsiplus.com
        fetch_timeout: Seconds before an inbox fetch is abandoned
        send_timeout: Seconds before a send is abandoned
        transport: Optional httpx transport (tests use httpx.MockTransport)
    """

    HEADERS = {
        "User-Agent": "WhatsApp-Service/1.0",
        "Accept": "application/json",
        "Cache-Control": "no-cache",
    }

    def __init__(
        self,
        base_url: str = "https://api.whatsiplus.com",
        fetch_timeout: float = 10.0,
        send_timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._fetch_timeout = fetch_timeout
        self._send_timeout = send_timeout
        self._transport = transport

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout,
            headers=self.HEADERS,
            transport=self._transport,
        )

    async def fetch_received_messages(self, token: str, page: int = 1) -> ReceivedMessagesPage:
        """
        Fetch one page of the inbox for `token`.

        Raises:
            UpstreamAPIError: timeout, transport failure, non-2xx status or
                a body that is not a valid messages page
        """
        endpoint = "receivedMessages"
        try:
            async with self._client(self._fetch_timeout) as client:
                response = await client.get(f"/{endpoint}/{token}", params={"page": page})
                response.raise_for_status()
                return ReceivedMessagesPage.model_validate(response.json())

        except httpx.TimeoutException as e:
            raise UpstreamAPIError(
                f"Timed out after {self._fetch_timeout}s fetching messages",
                endpoint=endpoint,
                original_error=e,
            ) from e
        except httpx.HTTPStatusError as e:
            raise UpstreamAPIError(
                f"WhatsiPlus returned {e.response.status_code} {e.response.reason_phrase}",
                endpoint=endpoint,
                status_code=e.response.status_code,
                original_error=e,
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamAPIError(
                f"Network error fetching messages: {type(e).__name__}",
                endpoint=endpoint,
                original_error=e,
            ) from e
        except (ValueError, PydanticValidationError) as e:
            raise UpstreamAPIError(
                "Malformed receivedMessages response",
                endpoint=endpoint,
                original_error=e,
            ) from e

    async def send_message(self, token: str, phone_number: str, message: str) -> bool:
        """
        Send a text message.

        Returns:
            True on a 2xx response, False on any other status

        Raises:
            UpstreamAPIError: timeout or transport failure
        """
        endpoint = "sendMsg"
        try:
            async with self._client(self._send_timeout) as client:
                response = await client.get(
                    f"/{endpoint}/{token}",
                    params={"phonenumber": phone_number, "message": message},
                )
        except httpx.TimeoutException as e:
            raise UpstreamAPIError(
                f"Timed out after {self._send_timeout}s sending message",
                endpoint=endpoint,
                original_error=e,
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamAPIError(
                f"Network error sending message: {type(e).__name__}",
                endpoint=endpoint,
                original_error=e,
            ) from e

        if response.is_success:
            return True

        logger.error(
            f"[SENDER] WhatsiPlus rejected message to {phone_number}: "
            f"{response.status_code} {response.text[:200]}"
        )
        return False
