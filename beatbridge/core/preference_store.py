"""Persist and load contact -> service preferences (JSON in the shared container)."""
import logging
from pathlib import Path
from typing import Callable, List, Optional

from beatbridge.core.shared_file import (
    format_timestamp,
    parse_timestamp,
    read_json,
    utc_now,
    write_json,
)
from beatbridge.models.contact import ContactPreference
from beatbridge.models.service import MusicService

logger = logging.getLogger(__name__)


def _preference_from_dict(item: dict) -> ContactPreference:
    return ContactPreference(
        contact_identifier=item["contact_identifier"],
        contact_name=item.get("contact_name") or "",
        service=MusicService.parse(item["service"]),
        last_used_at=parse_timestamp(item["last_used_at"]),
    )


def _preference_to_dict(p: ContactPreference) -> dict:
    return {
        "contact_identifier": p.contact_identifier,
        "contact_name": p.contact_name,
        "service": p.service.value,
        "last_used_at": format_timestamp(p.last_used_at),
    }


class PreferenceStore:
    """At most one preference per contact; last writer wins.

    Every call re-reads the file so a write made by the other process is
    visible on the next read.
    """

    def __init__(self, path: Path, clock: Callable = utc_now) -> None:
        self._path = path
        self._clock = clock

    def _load(self) -> List[ContactPreference]:
        out = []
        for item in read_json(self._path).get("preferences", []):
            try:
                out.append(_preference_from_dict(item))
            except (KeyError, TypeError, ValueError):
                continue
        return out

    def _save(self, preferences: List[ContactPreference]) -> None:
        write_json(self._path, {"preferences": [_preference_to_dict(p) for p in preferences]})

    def get(self, contact_identifier: str) -> Optional[MusicService]:
        """Return the contact's preferred service or None."""
        preference = self.get_preference(contact_identifier)
        return preference.service if preference else None

    def get_preference(self, contact_identifier: str) -> Optional[ContactPreference]:
        for p in self._load():
            if p.contact_identifier == contact_identifier:
                return p
        return None

    def put(self, contact_identifier: str, contact_name: str, service: MusicService) -> ContactPreference:
        """Insert or overwrite the contact's preference and refresh last_used_at."""
        preferences = self._load()
        preference = ContactPreference(
            contact_identifier=contact_identifier,
            contact_name=contact_name,
            service=service,
            last_used_at=self._clock(),
        )
        kept = [p for p in preferences if p.contact_identifier != contact_identifier]
        kept.append(preference)
        self._save(kept)
        logger.info("Saved preference %s -> %s", contact_name or contact_identifier, service.value)
        return preference

    def delete(self, contact_identifier: str) -> bool:
        """Remove the contact's preference. Returns True if one was removed."""
        preferences = self._load()
        kept = [p for p in preferences if p.contact_identifier != contact_identifier]
        if len(kept) == len(preferences):
            return False
        self._save(kept)
        return True

    def list(self) -> List[ContactPreference]:
        """All preferences, most recently used first."""
        return sorted(self._load(), key=lambda p: p.last_used_at, reverse=True)
