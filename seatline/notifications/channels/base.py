from abc import ABC, abstractmethod

from seatline.errors import SeatlineError


class DeliveryError(SeatlineError):
    """A channel could not hand a message to its provider."""


class DeliveryChannel(ABC):
    @abstractmethod
    async def send_content(
        self,
        recipients: list[str],
        subject: str,
        html_body: str,
        text_body: str,
    ) -> str | None:
        """Send one message. Returns the provider message id when there is one."""
        pass
