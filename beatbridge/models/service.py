"""Streaming services a link can be resolved to."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional
from urllib.parse import urlparse


class MusicService(str, Enum):
    """Closed set of supported services; the value is the storage/wire key."""
    SPOTIFY = "spotify"
    APPLE_MUSIC = "appleMusic"
    YOUTUBE_MUSIC = "youtubeMusic"
    PANDORA = "pandora"
    TIDAL = "tidal"
    DEEZER = "deezer"

    @property
    def info(self) -> "ServiceInfo":
        return SERVICE_INFO[self]

    @property
    def display_name(self) -> str:
        return SERVICE_INFO[self].display_name

    @classmethod
    def parse(cls, value: str) -> "MusicService":
        """Accept a key ("appleMusic") or a display name ("Apple Music")."""
        text = (value or "").strip()
        for service in cls:
            if text == service.value or text.lower() == service.display_name.lower():
                return service
        raise ValueError(f"Unknown music service: {value!r}")

    @classmethod
    def from_url(cls, url: str) -> Optional["MusicService"]:
        """Return the service whose web host serves this link, or None if unknown."""
        host = (urlparse((url or "").strip()).hostname or "").lower()
        if not host:
            return None
        for service, info in SERVICE_INFO.items():
            for known in info.hosts:
                if host == known or host.endswith("." + known):
                    return service
        return None


@dataclass(frozen=True)
class ServiceInfo:
    display_name: str
    icon: str
    hosts: tuple[str, ...]


SERVICE_INFO: dict[MusicService, ServiceInfo] = {
    MusicService.SPOTIFY: ServiceInfo("Spotify", "spotify-icon", ("open.spotify.com", "spotify.link")),
    MusicService.APPLE_MUSIC: ServiceInfo(
        "Apple Music", "apple-music-icon", ("music.apple.com", "geo.music.apple.com")
    ),
    MusicService.YOUTUBE_MUSIC: ServiceInfo("YouTube Music", "youtube-music-icon", ("music.youtube.com",)),
    MusicService.PANDORA: ServiceInfo("Pandora", "pandora-icon", ("pandora.com", "pandora.app.link")),
    MusicService.TIDAL: ServiceInfo("Tidal", "tidal-icon", ("tidal.com", "listen.tidal.com")),
    MusicService.DEEZER: ServiceInfo("Deezer", "deezer-icon", ("deezer.com", "deezer.page.link")),
}
