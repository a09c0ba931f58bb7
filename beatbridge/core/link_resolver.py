"""Odesli (song.link) client: one source link -> equivalent links on every service."""
import logging
import time
from typing import Any, Callable, Optional
from urllib.parse import urlparse

import requests

from beatbridge.config import (
    ODESLI_API_KEY,
    ODESLI_API_URL,
    ODESLI_USER_COUNTRY,
    RESOLVER_BACKOFF_SEC,
    RESOLVER_MAX_RETRIES,
    RESOLVER_TIMEOUT_SEC,
)
from beatbridge.models.record import Resolution
from beatbridge.models.service import MusicService

logger = logging.getLogger(__name__)

# Status codes worth another attempt; everything else is decoded as-is
_RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class ResolutionError(Exception):
    """Base for resolver failures. `kind` names the failure for notices and the API."""
    kind = "ResolutionError"


class InvalidSource(ResolutionError):
    kind = "InvalidSource"


class RequestFailed(ResolutionError):
    kind = "RequestFailed"


class DecodeFailed(ResolutionError):
    kind = "DecodeFailed"


class NoMatchFound(ResolutionError):
    kind = "NoMatchFound"


def validate_source_link(source_link: str) -> str:
    """Return the stripped link, or raise InvalidSource if it is not an absolute http(s) URL."""
    link = (source_link or "").strip()
    try:
        parsed = urlparse(link)
    except ValueError as e:
        raise InvalidSource(f"Malformed link: {e}") from e
    if parsed.scheme.lower() not in ("http", "https") or not parsed.netloc:
        raise InvalidSource(f"Not a web link: {source_link!r}")
    return link


def parse_response(data: Any) -> Resolution:
    """Map an Odesli response body to a Resolution.

    Only the known platforms are read; others (amazonMusic, soundcloud, ...) are
    ignored. Raises DecodeFailed for any other shape and NoMatchFound when no
    known platform has a link.
    """
    if not isinstance(data, dict):
        raise DecodeFailed("Response is not a JSON object")
    by_platform = data.get("linksByPlatform")
    if not isinstance(by_platform, dict):
        raise DecodeFailed("Response has no linksByPlatform object")

    links: dict[MusicService, str] = {}
    for service in MusicService:
        entry = by_platform.get(service.value)
        if entry is None:
            continue
        if not isinstance(entry, dict) or not isinstance(entry.get("url"), str):
            raise DecodeFailed(f"Bad entry for {service.value}")
        links[service] = entry["url"]

    if not links:
        raise NoMatchFound("No supported service has this item")

    title, artist = _entity_metadata(data)
    page_url = data.get("pageUrl") if isinstance(data.get("pageUrl"), str) else None
    return Resolution(links=links, title=title, artist=artist, page_url=page_url)


def _entity_metadata(data: dict) -> tuple[Optional[str], Optional[str]]:
    """Title and artist of the entity the source link points to, when present."""
    entities = data.get("entitiesByUniqueId")
    if not isinstance(entities, dict):
        return None, None
    unique_id = data.get("entityUniqueId")
    entity = entities.get(unique_id) if isinstance(unique_id, str) else None
    if not isinstance(entity, dict):
        # Fall back to any entity carrying a title
        entity = next(
            (e for e in entities.values() if isinstance(e, dict) and e.get("title")),
            None,
        )
    if entity is None:
        return None, None
    title = entity.get("title") if isinstance(entity.get("title"), str) else None
    artist = entity.get("artistName") if isinstance(entity.get("artistName"), str) else None
    return title or None, artist or None


class LinkResolver:
    """Query the link-resolution service. No caching; bounded retry on transport failures only."""

    def __init__(
        self,
        base_url: str = ODESLI_API_URL,
        *,
        api_key: Optional[str] = ODESLI_API_KEY or None,
        user_country: Optional[str] = ODESLI_USER_COUNTRY or None,
        timeout: float = RESOLVER_TIMEOUT_SEC,
        max_retries: int = RESOLVER_MAX_RETRIES,
        backoff: float = RESOLVER_BACKOFF_SEC,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.base_url = base_url
        self.api_key = api_key
        self.user_country = user_country
        self.timeout = timeout
        self.max_retries = max(0, max_retries)
        self.backoff = backoff
        self.session = session or requests.Session()
        self._sleep = sleep

    def resolve(self, source_link: str) -> Resolution:
        link = validate_source_link(source_link)
        attempt = 0
        while True:
            try:
                data = self._fetch(link)
            except RequestFailed as e:
                if attempt >= self.max_retries:
                    logger.warning("Resolve failed for %s after %d attempt(s): %s", link, attempt + 1, e)
                    raise
                delay = self.backoff * (2 ** attempt)
                logger.warning("Resolve attempt %d failed (%s); retrying in %.2fs", attempt + 1, e, delay)
                self._sleep(delay)
                attempt += 1
                continue
            return parse_response(data)

    def _fetch(self, link: str) -> Any:
        # requests percent-encodes the link as a query value
        params = {"url": link}
        if self.api_key:
            params["key"] = self.api_key
        if self.user_country:
            params["userCountry"] = self.user_country
        logger.debug("GET %s url=%s", self.base_url, link)
        try:
            resp = self.session.get(self.base_url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise RequestFailed(str(e)) from e
        if resp.status_code in _RETRYABLE_STATUS:
            raise RequestFailed(f"HTTP {resp.status_code}")
        try:
            return resp.json()
        except ValueError as e:
            raise DecodeFailed(f"Response is not JSON (HTTP {resp.status_code})") from e
