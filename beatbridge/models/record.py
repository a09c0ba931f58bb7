"""Conversion history record and resolver result."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping, Optional

from beatbridge.models.service import MusicService


@dataclass(frozen=True)
class ConversionRecord:
    """A completed conversion. Written once, never updated."""
    source_link: str
    resolved_link: str
    source_service: Optional[MusicService]  # None when the source host is not a known service
    target_service: MusicService
    created_at: datetime
    title: Optional[str] = None
    artist: Optional[str] = None
    page_url: Optional[str] = None  # song.link page listing every service


@dataclass(frozen=True)
class Resolution:
    """Successful resolver answer: equivalent links per service plus track metadata."""
    links: Mapping[MusicService, str] = field(default_factory=dict)
    title: Optional[str] = None
    artist: Optional[str] = None
    page_url: Optional[str] = None

    def link_for(self, service: MusicService) -> Optional[str]:
        return self.links.get(service)
