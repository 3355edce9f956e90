import logging
from typing import Protocol

import httpx

from seatline.notifications.channels.base import DeliveryChannel, DeliveryError

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


class ResendEmailConfig(Protocol):
    resend_api_key: str
    emails_from: str


class ResendDeliveryChannel(DeliveryChannel):
    def __init__(
        self,
        config: ResendEmailConfig,
        http_client_class: type[httpx.AsyncClient] = httpx.AsyncClient,
    ):
        self._config = config
        self._http_client_class = http_client_class

    async def send_content(
        self,
        recipients: list[str],
        subject: str,
        html_body: str,
        text_body: str,
    ) -> str | None:
        try:
            async with self._http_client_class() as client:
                response = await client.post(
                    RESEND_API_URL,
                    headers={
                        "Authorization": f"Bearer {self._config.resend_api_key}",
                        "Content-Type": "application/json",
                    },
                    json={
                        "from": self._config.emails_from,
                        "to": recipients,
                        "subject": subject,
                        "html": html_body,
                        "text": text_body,
                    },
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise DeliveryError(
                f"Resend rejected the message with status {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise DeliveryError(f"Resend request failed: {e}") from e

        resend_email_id = response.json().get("id")
        logger.debug("Resend accepted message %s", resend_email_id)
        return resend_email_id
