"""Contact preference and the contact picked for an in-progress share."""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from beatbridge.models.service import MusicService


@dataclass
class ContactPreference:
    """Stored mapping: contact -> preferred streaming service."""
    contact_identifier: str
    contact_name: str  # display only; refreshed on every write
    service: MusicService
    last_used_at: datetime


@dataclass(frozen=True)
class PendingContactSelection:
    """Contact chosen for the pending share whose service is not known yet."""
    contact_identifier: str
    contact_name: str
    phone: Optional[str] = None
    source_link: Optional[str] = None  # link the contact was picked for; None when set by an external picker
