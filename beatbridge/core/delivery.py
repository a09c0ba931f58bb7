"""Hand a resolved link to the message composer, or to the clipboard when that is not possible."""
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from beatbridge.models.service import MusicService

logger = logging.getLogger(__name__)

NO_PHONE_NOTICE = "No phone number found for this contact. Link copied to clipboard."
NO_TRANSPORT_NOTICE = "Cannot send messages. Link copied to clipboard."


@dataclass(frozen=True)
class DeliveryPayload:
    """What a completed conversion hands to the outside world."""
    phone: Optional[str]
    resolved_link: str
    message_text: str
    target_service: MusicService


class DeliveryOutcome(str, Enum):
    SENT = "sent"
    COPIED = "copied"
    NO_PHONE_NUMBER = "no_phone_number"


@dataclass(frozen=True)
class DeliveryResult:
    outcome: DeliveryOutcome
    notice: Optional[str] = None


class MemoryClipboard:
    """Keeps the last copied text; stands in for the system clipboard on a headless host."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._text: Optional[str] = None

    def __call__(self, text: str) -> None:
        with self._lock:
            self._text = text

    @property
    def text(self) -> Optional[str]:
        with self._lock:
            return self._text


class Delivery:
    def __init__(
        self,
        composer: Optional[Callable[[str, str], None]] = None,
        clipboard: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.composer = composer
        self.clipboard = clipboard if clipboard is not None else MemoryClipboard()

    def deliver(self, payload: DeliveryPayload) -> DeliveryResult:
        if not payload.phone:
            self.clipboard(payload.resolved_link)
            logger.info("Delivery: no phone number, link copied")
            return DeliveryResult(DeliveryOutcome.NO_PHONE_NUMBER, NO_PHONE_NOTICE)
        if self.composer is None:
            self.clipboard(payload.resolved_link)
            logger.info("Delivery: no message transport, link copied")
            return DeliveryResult(DeliveryOutcome.COPIED, NO_TRANSPORT_NOTICE)
        self.composer(payload.phone, payload.message_text)
        logger.info("Delivery: message handed to composer for %s", payload.target_service.value)
        return DeliveryResult(DeliveryOutcome.SENT)
