"""Shared fixtures: stores in tmp_path, a scripted resolver, a workflow wired to both."""
import sys
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Ensure repository root is on sys.path for module resolution
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from beatbridge.core.delivery import Delivery, MemoryClipboard
from beatbridge.core.history_log import HistoryLog
from beatbridge.core.mailbox import ShareMailbox
from beatbridge.core.preference_store import PreferenceStore
from beatbridge.core.workflow import ConversionWorkflow
from beatbridge.models.record import Resolution
from beatbridge.models.service import MusicService
from beatbridge.models.share import PendingShare

SPOTIFY_LINK = "https://open.spotify.com/track/abc"


class TickingClock:
    """Each call returns a time one second after the previous one."""

    def __init__(self, start: datetime = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)) -> None:
        self.now = start

    def __call__(self) -> datetime:
        self.now = self.now + timedelta(seconds=1)
        return self.now


class ScriptedResolver:
    """Returns the configured links (or raises the configured error) and records every call."""

    def __init__(self, links=None, error=None, title=None, artist=None, page_url=None) -> None:
        self.links = links or {}
        self.error = error
        self.title = title
        self.artist = artist
        self.page_url = page_url
        self.calls = []
        self.release = threading.Event()
        self.release.set()

    def resolve(self, source_link: str) -> Resolution:
        self.calls.append(source_link)
        self.release.wait(timeout=5)
        if self.error is not None:
            raise self.error
        return Resolution(
            links=dict(self.links), title=self.title, artist=self.artist, page_url=self.page_url
        )


class Composer:
    def __init__(self) -> None:
        self.sent = []

    def __call__(self, phone: str, text: str) -> None:
        self.sent.append((phone, text))


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def preferences(tmp_path: Path, clock: TickingClock) -> PreferenceStore:
    return PreferenceStore(tmp_path / "preferences.json", clock=clock)


@pytest.fixture
def history(tmp_path: Path) -> HistoryLog:
    return HistoryLog(tmp_path / "history.json")


@pytest.fixture
def mailbox(tmp_path: Path) -> ShareMailbox:
    return ShareMailbox(tmp_path / "mailbox.json")


@pytest.fixture
def resolver() -> ScriptedResolver:
    return ScriptedResolver(links={MusicService.APPLE_MUSIC: "https://music.apple.com/x"})


@pytest.fixture
def composer() -> Composer:
    return Composer()


@pytest.fixture
def clipboard() -> MemoryClipboard:
    return MemoryClipboard()


@pytest.fixture
def workflow(resolver, preferences, history, mailbox, composer, clipboard, clock):
    wf = ConversionWorkflow(
        resolver=resolver,
        preferences=preferences,
        history=history,
        mailbox=mailbox,
        delivery=Delivery(composer=composer, clipboard=clipboard),
        clock=clock,
    )
    yield wf
    wf.shutdown()


@pytest.fixture
def share_link(mailbox: ShareMailbox, clock: TickingClock):
    """Drop a link in the mailbox the way the share intake process does."""

    def _share(link: str = SPOTIFY_LINK) -> PendingShare:
        share = PendingShare(source_link=link, captured_at=clock())
        mailbox.put_share(share)
        return share

    return _share
