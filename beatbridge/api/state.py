"""Shared application state (injected into routes)."""
from pathlib import Path
from typing import Optional

from beatbridge.config import HISTORY_PATH, MAILBOX_PATH, PREFERENCES_PATH
from beatbridge.core.delivery import Delivery, MemoryClipboard
from beatbridge.core.history_log import HistoryLog
from beatbridge.core.link_resolver import LinkResolver
from beatbridge.core.mailbox import ShareMailbox
from beatbridge.core.preference_store import PreferenceStore
from beatbridge.core.share_intake import ShareIntake
from beatbridge.core.workflow import ConversionWorkflow


class AppState:
    def __init__(
        self,
        preferences_path: Path = PREFERENCES_PATH,
        history_path: Path = HISTORY_PATH,
        mailbox_path: Path = MAILBOX_PATH,
        resolver: Optional[LinkResolver] = None,
    ) -> None:
        self.preferences = PreferenceStore(preferences_path)
        self.history = HistoryLog(history_path)
        self.mailbox = ShareMailbox(mailbox_path)
        self.clipboard = MemoryClipboard()
        self._resolver = resolver
        self._workflow: ConversionWorkflow | None = None

    @property
    def workflow(self) -> ConversionWorkflow:
        if self._workflow is None:
            self._workflow = ConversionWorkflow(
                resolver=self._resolver or LinkResolver(),
                preferences=self.preferences,
                history=self.history,
                mailbox=self.mailbox,
                delivery=Delivery(clipboard=self.clipboard),
            )
        return self._workflow

    def share_intake(self) -> ShareIntake:
        # Same process as the workflow: the caller resumes directly instead of signalling
        return ShareIntake(self.mailbox, signal=None)

    def shutdown(self) -> None:
        if self._workflow is not None:
            self._workflow.shutdown()
            self._workflow = None


_state = AppState()


def get_state() -> AppState:
    return _state
