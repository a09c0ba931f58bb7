"""Single-slot handoff between the share intake process and the host.

Holds at most one PendingShare and at most one PendingContactSelection.
Writing a slot replaces whatever was there; both slots survive restarts.
"""
import logging
from pathlib import Path
from typing import Optional

from beatbridge.core.shared_file import format_timestamp, parse_timestamp, read_json, write_json
from beatbridge.models.contact import PendingContactSelection
from beatbridge.models.share import PendingShare

logger = logging.getLogger(__name__)

_SHARE_KEY = "pending_share"
_CONTACT_KEY = "pending_contact"


class ShareMailbox:
    def __init__(self, path: Path) -> None:
        self._path = path

    def _update(self, key: str, value: Optional[dict]) -> None:
        data = read_json(self._path)
        if value is None:
            data.pop(key, None)
        else:
            data[key] = value
        write_json(self._path, data)

    def put_share(self, share: PendingShare) -> None:
        self._update(
            _SHARE_KEY,
            {"source_link": share.source_link, "captured_at": format_timestamp(share.captured_at)},
        )
        logger.debug("Mailbox: stored share %s", share.source_link)

    def peek_share(self) -> Optional[PendingShare]:
        item = read_json(self._path).get(_SHARE_KEY)
        if not isinstance(item, dict):
            return None
        try:
            return PendingShare(
                source_link=item["source_link"],
                captured_at=parse_timestamp(item["captured_at"]),
            )
        except (KeyError, TypeError, ValueError):
            return None

    def take_share(self) -> Optional[PendingShare]:
        """Read and clear the pending share."""
        share = self.peek_share()
        if read_json(self._path).get(_SHARE_KEY) is not None:
            self._update(_SHARE_KEY, None)
        return share

    def put_contact_selection(self, selection: PendingContactSelection) -> None:
        self._update(
            _CONTACT_KEY,
            {
                "contact_identifier": selection.contact_identifier,
                "contact_name": selection.contact_name,
                "phone": selection.phone,
                "source_link": selection.source_link,
            },
        )

    def peek_contact_selection(self) -> Optional[PendingContactSelection]:
        item = read_json(self._path).get(_CONTACT_KEY)
        if not isinstance(item, dict):
            return None
        contact_id = item.get("contact_identifier")
        contact_name = item.get("contact_name")
        # Both must be non-empty strings to count as a selection
        if not contact_id or not contact_name:
            return None
        return PendingContactSelection(
            contact_identifier=str(contact_id),
            contact_name=str(contact_name),
            phone=item.get("phone") or None,
            source_link=item.get("source_link") or None,
        )

    def take_contact_selection(self) -> Optional[PendingContactSelection]:
        selection = self.peek_contact_selection()
        if read_json(self._path).get(_CONTACT_KEY) is not None:
            self._update(_CONTACT_KEY, None)
        return selection
