"""Share intake: capture a shared link into the mailbox and wake the host.

Runs in its own process. The deep link carries no payload; the host reads
the link from the mailbox when it resumes.
"""
import logging
import re
from dataclasses import replace
from enum import Enum
from typing import Callable, Optional
from urllib.parse import urlparse

import requests

from beatbridge.config import API_URL, URL_SCHEME
from beatbridge.core.mailbox import ShareMailbox
from beatbridge.core.shared_file import utc_now
from beatbridge.models.contact import PendingContactSelection
from beatbridge.models.share import PendingShare

logger = logging.getLogger(__name__)

# Music apps often share "Listen to X on Y: https://..." rather than a bare URL
_URL_IN_TEXT = re.compile(r"https?://[^\s<>\"']+", re.IGNORECASE)
_TRAILING_PUNCTUATION = ".,;:!?)]}"


class NoLinkInSharedContent(ValueError):
    """Shared content has no web link in it."""


class UnknownDeepLink(ValueError):
    pass


class DeepLink(str, Enum):
    SHARE = "share"
    SELECT_SERVICE = "selectservice"

    def uri(self, scheme: str = URL_SCHEME) -> str:
        return f"{scheme}://{self.value}"


def parse_deep_link(uri: str, scheme: str = URL_SCHEME) -> DeepLink:
    """beatbridge://share or beatbridge://selectservice; anything else raises UnknownDeepLink."""
    parsed = urlparse((uri or "").strip())
    if parsed.scheme.lower() != scheme.lower():
        raise UnknownDeepLink(f"Unknown URL scheme: {parsed.scheme or None!r}")
    host = (parsed.netloc or "").lower()
    for link in DeepLink:
        if host == link.value:
            return link
    raise UnknownDeepLink(f"Unknown URL host: {host or None!r}")


def extract_link(shared: str) -> str:
    """Return the link in shared content: the content itself if it is a URL, else the first URL in the text."""
    text = (shared or "").strip()
    if not text:
        raise NoLinkInSharedContent("Nothing was shared")
    parsed = urlparse(text)
    if parsed.scheme.lower() in ("http", "https") and parsed.netloc and not any(c.isspace() for c in text):
        return text
    match = _URL_IN_TEXT.search(text)
    if not match:
        raise NoLinkInSharedContent("No music link found in shared content.")
    return match.group(0).rstrip(_TRAILING_PUNCTUATION)


def signal_host(uri: str, api_url: str = API_URL, timeout: float = 5.0) -> bool:
    """Tell the running host to open a deep link. Returns False if the host is unreachable."""
    try:
        resp = requests.post(f"{api_url.rstrip('/')}/api/open", json={"uri": uri}, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as e:
        logger.warning("Could not signal host at %s: %s", api_url, e)
        return False
    return True


class ShareIntake:
    def __init__(
        self,
        mailbox: ShareMailbox,
        signal: Optional[Callable[[str], object]] = signal_host,
        clock: Callable = utc_now,
    ) -> None:
        self.mailbox = mailbox
        self.signal = signal
        self._clock = clock

    def capture(
        self,
        shared: str,
        contact: Optional[PendingContactSelection] = None,
    ) -> PendingShare:
        """Store the shared link (replacing any earlier one) and signal the host.

        With a contact already picked, the contact slot is written for this link
        and the host is sent to service selection instead.
        """
        link = extract_link(shared)
        share = PendingShare(source_link=link, captured_at=self._clock())
        self.mailbox.put_share(share)
        logger.info("Captured shared link %s", link)
        deep_link = DeepLink.SHARE
        if contact is not None:
            self.mailbox.put_contact_selection(replace(contact, source_link=link))
            logger.info("Captured contact %s for %s", contact.contact_name, link)
            deep_link = DeepLink.SELECT_SERVICE
        if self.signal is not None:
            # Both slots stay in the mailbox if the host is not running; they are picked up on next resume
            self.signal(deep_link.uri())
        return share
