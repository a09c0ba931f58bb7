"""Share -> contact -> service -> resolve -> deliver, one conversion at a time.

State changes happen under one lock. The resolver call is the only work done
on the worker thread; its result is applied back under the lock and dropped
if the workflow moved on (abandoned or restarted) in the meantime.
"""
import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional

from beatbridge.config import MESSAGE_TEMPLATE
from beatbridge.core.delivery import Delivery, DeliveryPayload, DeliveryResult
from beatbridge.core.history_log import HistoryLog
from beatbridge.core.link_resolver import LinkResolver, RequestFailed, ResolutionError
from beatbridge.core.mailbox import ShareMailbox
from beatbridge.core.preference_store import PreferenceStore
from beatbridge.core.shared_file import utc_now
from beatbridge.models.contact import PendingContactSelection
from beatbridge.models.record import ConversionRecord, Resolution
from beatbridge.models.service import MusicService
from beatbridge.models.share import PendingShare

logger = logging.getLogger(__name__)


class WorkflowState(str, Enum):
    IDLE = "idle"
    AWAITING_CONTACT = "awaiting_contact"
    AWAITING_SERVICE_SELECTION = "awaiting_service_selection"
    RESOLVING = "resolving"
    COMPLETED = "completed"
    FAILED = "failed"


class FailureReason(str, Enum):
    NO_LINK_FOR_SERVICE = "NoLinkForService"
    RESOLUTION_ERROR = "ResolutionError"
    RECORD_FAILED = "RecordFailed"


RESOLUTION_NOTICES = {
    "InvalidSource": "That doesn't look like a music link.",
    "RequestFailed": "Failed to convert link. Please try again.",
    "DecodeFailed": "The link service returned an unexpected response. Please try again.",
    "NoMatchFound": "Couldn't find this song on any supported service.",
}
DEFAULT_NOTICE = "Failed to convert link. Please try again."
RECORD_FAILED_NOTICE = "Couldn't save this conversion. Please try again."


def no_link_notice(service: MusicService) -> str:
    return f"This song isn't available on {service.display_name}."


class InvalidTransition(Exception):
    """Operation not allowed in the current state."""

    def __init__(self, operation: str, state: WorkflowState) -> None:
        super().__init__(f"Cannot {operation} while {state.value}")
        self.operation = operation
        self.state = state


@dataclass(frozen=True)
class Failure:
    reason: FailureReason
    notice: str
    error_kind: Optional[str] = None  # resolver error kind for RESOLUTION_ERROR


@dataclass(frozen=True)
class WorkflowSnapshot:
    state: WorkflowState
    share: Optional[PendingShare] = None
    contact: Optional[PendingContactSelection] = None
    target_service: Optional[MusicService] = None
    failure: Optional[Failure] = None
    payload: Optional[DeliveryPayload] = None

    @property
    def notice(self) -> Optional[str]:
        return self.failure.notice if self.failure else None


class ConversionWorkflow:
    def __init__(
        self,
        resolver: LinkResolver,
        preferences: PreferenceStore,
        history: HistoryLog,
        mailbox: ShareMailbox,
        delivery: Optional[Delivery] = None,
        *,
        executor: Optional[Executor] = None,
        clock: Callable = utc_now,
        message_template: str = MESSAGE_TEMPLATE,
    ) -> None:
        self.resolver = resolver
        self.preferences = preferences
        self.history = history
        self.mailbox = mailbox
        self.delivery = delivery or Delivery()
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="resolver")
        self._clock = clock
        self._message_template = message_template

        self._lock = threading.Lock()
        self._state = WorkflowState.IDLE
        self._generation = 0
        self._share: Optional[PendingShare] = None
        self._contact: Optional[PendingContactSelection] = None
        self._target: Optional[MusicService] = None
        self._failure: Optional[Failure] = None
        self._payload: Optional[DeliveryPayload] = None
        self._inflight: Optional[Future] = None

    # -- observation --

    @property
    def state(self) -> WorkflowState:
        with self._lock:
            return self._state

    def snapshot(self) -> WorkflowSnapshot:
        with self._lock:
            return self._snapshot_locked()

    def _snapshot_locked(self) -> WorkflowSnapshot:
        return WorkflowSnapshot(
            state=self._state,
            share=self._share,
            contact=self._contact,
            target_service=self._target,
            failure=self._failure,
            payload=self._payload,
        )

    def wait(self, timeout: Optional[float] = None) -> WorkflowSnapshot:
        """Block until the in-flight resolution (if any) has been applied."""
        with self._lock:
            future = self._inflight
        if future is not None:
            future.result(timeout=timeout)
        return self.snapshot()

    # -- transitions --

    def resume(self) -> WorkflowSnapshot:
        """Pick up a waiting share from the mailbox. Does nothing unless idle."""
        with self._lock:
            if self._state is not WorkflowState.IDLE:
                logger.info("Resume ignored while %s; share stays queued", self._state.value)
            else:
                self._resume_locked()
            return self._snapshot_locked()

    def select_contact(
        self,
        contact_identifier: str,
        contact_name: str,
        phone: Optional[str] = None,
    ) -> WorkflowSnapshot:
        with self._lock:
            self._require(WorkflowState.AWAITING_CONTACT, "select a contact")
            selection = PendingContactSelection(
                contact_identifier=contact_identifier,
                contact_name=contact_name,
                phone=phone or None,
            )
            self._choose_contact_locked(selection)
            return self._snapshot_locked()

    def select_service(self, service: MusicService) -> WorkflowSnapshot:
        """Remember the contact's service, then resolve. The preference is kept even if resolving fails."""
        with self._lock:
            self._require(WorkflowState.AWAITING_SERVICE_SELECTION, "select a service")
            contact = self._contact
            self.preferences.put(contact.contact_identifier, contact.contact_name, service)
            self._target = service
            self._start_resolving_locked()
            return self._snapshot_locked()

    def deliver(self) -> DeliveryResult:
        """Hand the completed conversion to delivery and go back to idle."""
        with self._lock:
            self._require(WorkflowState.COMPLETED, "deliver")
            result = self.delivery.deliver(self._payload)
            self._return_to_idle_locked()
            return result

    def acknowledge(self) -> WorkflowSnapshot:
        """User dismissed the failure notice."""
        with self._lock:
            self._require(WorkflowState.FAILED, "acknowledge")
            self._return_to_idle_locked()
            return self._snapshot_locked()

    def abandon(self) -> WorkflowSnapshot:
        """Drop the current conversion from any state; an in-flight result is ignored on arrival."""
        with self._lock:
            if self._state is not WorkflowState.IDLE:
                logger.info("Workflow abandoned while %s", self._state.value)
            self._return_to_idle_locked()
            return self._snapshot_locked()

    def shutdown(self) -> None:
        with self._lock:
            self._generation += 1
        if self._owns_executor:
            self._executor.shutdown(wait=False)

    # -- internals (caller holds the lock) --

    def _require(self, expected: WorkflowState, operation: str) -> None:
        if self._state is not expected:
            raise InvalidTransition(operation, self._state)

    def _resume_locked(self) -> None:
        share = self.mailbox.take_share()
        if share is None:
            # A contact slot without its share belongs to a conversion that no longer exists
            stale = self.mailbox.take_contact_selection()
            if stale is not None:
                logger.info("Dropped pending contact %s with no share", stale.contact_name)
            return
        logger.info("Picked up shared link %s", share.source_link)
        self._share = share
        self._state = WorkflowState.AWAITING_CONTACT
        selection = self.mailbox.peek_contact_selection()
        if selection is None:
            return
        if selection.source_link not in (None, share.source_link):
            logger.info("Dropped pending contact %s picked for another link", selection.contact_name)
            self.mailbox.take_contact_selection()
            return
        logger.info("Resuming with pending contact %s", selection.contact_name)
        self._choose_contact_locked(selection)

    def _choose_contact_locked(self, selection: PendingContactSelection) -> None:
        self._contact = selection
        service = self.preferences.get(selection.contact_identifier)
        if service is not None:
            logger.info("Using saved service %s for %s", service.value, selection.contact_name)
            self._target = service
            self._start_resolving_locked()
            return
        self._state = WorkflowState.AWAITING_SERVICE_SELECTION
        self._contact = replace(selection, source_link=self._share.source_link)
        # Both slots stay filled until the conversion ends, so a restart resumes here.
        # A share already queued in the slot wins; the contact is then dropped on resume.
        if self.mailbox.peek_share() is None:
            self.mailbox.put_share(self._share)
        self.mailbox.put_contact_selection(self._contact)

    def _start_resolving_locked(self) -> None:
        self._state = WorkflowState.RESOLVING
        generation = self._generation
        link = self._share.source_link
        self._inflight = self._executor.submit(self._run_resolve, generation, link)

    def _run_resolve(self, generation: int, link: str) -> None:
        resolution: Optional[Resolution] = None
        error: Optional[ResolutionError] = None
        try:
            resolution = self.resolver.resolve(link)
        except ResolutionError as e:
            error = e
        except Exception as e:
            logger.exception("Resolver raised unexpectedly for %s", link)
            error = RequestFailed(str(e))
        self._apply_resolution(generation, resolution, error)

    def _apply_resolution(
        self,
        generation: int,
        resolution: Optional[Resolution],
        error: Optional[ResolutionError],
    ) -> None:
        with self._lock:
            if generation != self._generation or self._state is not WorkflowState.RESOLVING:
                logger.debug("Discarding stale resolution for generation %d", generation)
                return
            self._inflight = None
            if error is not None:
                logger.warning("Resolution failed (%s): %s", error.kind, error)
                self._fail_locked(
                    Failure(
                        FailureReason.RESOLUTION_ERROR,
                        RESOLUTION_NOTICES.get(error.kind, DEFAULT_NOTICE),
                        error_kind=error.kind,
                    )
                )
                return

            target = self._target
            resolved_link = resolution.link_for(target)
            if resolved_link is None:
                logger.info("No %s link for %s", target.value, self._share.source_link)
                self._fail_locked(Failure(FailureReason.NO_LINK_FOR_SERVICE, no_link_notice(target)))
                return

            try:
                payload = DeliveryPayload(
                    phone=self._contact.phone,
                    resolved_link=resolved_link,
                    message_text=self._message_template.format(link=resolved_link),
                    target_service=target,
                )
                self.history.append(
                    ConversionRecord(
                        source_link=self._share.source_link,
                        resolved_link=resolved_link,
                        source_service=MusicService.from_url(self._share.source_link),
                        target_service=target,
                        created_at=self._clock(),
                        title=resolution.title,
                        artist=resolution.artist,
                        page_url=resolution.page_url,
                    )
                )
            except Exception:
                logger.exception("Could not record conversion of %s", self._share.source_link)
                self._fail_locked(Failure(FailureReason.RECORD_FAILED, RECORD_FAILED_NOTICE))
                return
            self._payload = payload
            self._state = WorkflowState.COMPLETED
            logger.info("Converted %s -> %s", self._share.source_link, resolved_link)

    def _fail_locked(self, failure: Failure) -> None:
        self._failure = failure
        self._state = WorkflowState.FAILED

    def _return_to_idle_locked(self) -> None:
        share = self._share
        self._generation += 1
        self._state = WorkflowState.IDLE
        self._share = None
        self._contact = None
        self._target = None
        self._failure = None
        self._payload = None
        self._inflight = None
        # Clear this conversion's slots; a different share in the mailbox is a queued one
        self.mailbox.take_contact_selection()
        if share is not None and self.mailbox.peek_share() == share:
            self.mailbox.take_share()
        self._resume_locked()
