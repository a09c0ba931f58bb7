"""Link captured from the share sheet, waiting for the host to pick it up."""
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class PendingShare:
    source_link: str
    captured_at: datetime
