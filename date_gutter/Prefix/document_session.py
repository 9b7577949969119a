# document_session.py
# Description: Per-document sessions and the engine that owns them
#
# Imports
from datetime import date
from typing import Callable, Dict, List, Optional, Protocol, Sequence
#
# Third-Party Imports
from loguru import logger
#
# Local Imports
from .annotations import AnnotationSink, RecordingAnnotationSink, refresh_annotations
from .change_classifier import ChangeClassifier, PendingCorrection, plan_resync
from .commands import (
    CommandPlan, copy_without_prefix_text, plan_delete_selected_lines,
    plan_force_insert_prefix, plan_set_date_to_zero,
)
from .edit_applier import ApplyResult, EditApplier
from .eligibility import EligibilityFilter
from .exceptions import SessionClosedError
from .reconciliation_scheduler import ReconciliationScheduler, SchedulerState
from ..Buffer.host_buffer import HostBuffer
from ..Buffer.text_types import ChangeRecord, DocumentIdentity, Range, Selection
from ..config import GutterSettings, SettingsProvider
from ..Utils.clock import Clock
#
########################################################################################################################
#
# Classes:

class Clipboard(Protocol):
    def write_text(self, text: str) -> None:
        ...


class MemoryClipboard:
    """Clipboard that just remembers the last text written."""

    def __init__(self):
        self.text = ""

    def write_text(self, text: str) -> None:
        self.text = text


class DocumentSession:
    """
    Everything the engine tracks for one open document.

    The session listens to its buffer, classifies each change batch, and feeds
    the result to its scheduler. Notifications caused by the session's own
    transactions (prefix commits and commands) are not classified again; hosts
    deliver those synchronously from inside `apply_edits`, which is what the
    suppression counter relies on. They still re-key queued corrections.
    """

    def __init__(self,
                 buffer: HostBuffer,
                 settings_provider: SettingsProvider,
                 eligibility: EligibilityFilter,
                 classifier: ChangeClassifier,
                 annotation_sink: AnnotationSink,
                 clock: Optional[Clock] = None,
                 today_provider: Callable[[], date] = date.today):
        self.buffer = buffer
        self.identity = buffer.identity
        self._settings_provider = settings_provider
        self._eligibility = eligibility
        self._classifier = classifier
        self._sink = annotation_sink
        self._clock = clock
        self._today = today_provider
        self._applier = EditApplier(settings_provider.settings.new_prefix_date)
        self._suppress_depth = 0
        self.last_apply_result: Optional[ApplyResult] = None
        self._closed = False
        self.visible_ranges: Optional[List[Range]] = None

        self.scheduler = self._new_scheduler()
        if not self.eligible:
            self.scheduler.disable()
        self._unsubscribe = buffer.add_change_listener(self._on_buffer_changed)

    # --- State ---

    @property
    def eligible(self) -> bool:
        return self._eligibility.is_eligible(self.identity)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def state(self) -> SchedulerState:
        return self.scheduler.state

    # --- Host events ---

    def _on_buffer_changed(self, buffer: HostBuffer, changes: Sequence[ChangeRecord]) -> None:
        try:
            for change in changes:
                self.scheduler.remap_lines(change)
            if self._suppress_depth or self._closed:
                return
            if self.scheduler.state is SchedulerState.DISABLED:
                return
            corrections = self._classifier.classify(buffer, changes)
            self.scheduler.schedule(corrections.values())
        except Exception as e:
            logger.exception(f"Error handling changes for {self.identity}: {e}")

    def set_visible_ranges(self, ranges: Optional[Sequence[Range]]) -> None:
        self.visible_ranges = list(ranges) if ranges is not None else None

    def apply_settings(self, settings: GutterSettings) -> None:
        """React to a settings change: disable, re-enable fresh, or just retune."""
        if self._closed:
            return
        self._applier.new_prefix_date = settings.new_prefix_date
        if not self.eligible:
            self.scheduler.disable()
            self._sink.clear(self.identity)
            return
        if self.scheduler.state is SchedulerState.DISABLED:
            logger.info(f"{self.identity} became eligible again; starting a fresh scheduler")
            self.scheduler = self._new_scheduler()
            return
        self.scheduler.delay = settings.coalesce_delay
        self.scheduler.max_pending = settings.max_pending_corrections

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.scheduler.disable()
        self._unsubscribe()
        try:
            self._sink.clear(self.identity)
        except Exception as e:
            logger.error(f"Could not clear annotations for closed {self.identity}: {e}")

    # --- Commit path ---

    def _new_scheduler(self) -> ReconciliationScheduler:
        settings = self._settings_provider.settings
        return ReconciliationScheduler(
            name=str(self.identity),
            commit_callback=self._commit,
            after_commit=self.refresh_annotations,
            clock=self._clock,
            delay=settings.coalesce_delay,
            max_pending=settings.max_pending_corrections,
        )

    async def _commit(self, batch: Dict[int, PendingCorrection]) -> bool:
        self._suppress_depth += 1
        try:
            result = await self._applier.apply(self.buffer, batch, self._today())
        finally:
            self._suppress_depth -= 1
        self.last_apply_result = result
        return result.success

    async def refresh_annotations(self) -> bool:
        if self._closed:
            return False
        if not self.eligible:
            self._sink.clear(self.identity)
            return False
        ranges = self.visible_ranges if self.visible_ranges is not None else self.buffer.visible_ranges
        return refresh_annotations(self.buffer, self._sink, ranges)

    async def apply_plan(self, plan: CommandPlan) -> bool:
        """Apply a command's edits as one transaction, outside the classifier's view."""
        if self._closed:
            raise SessionClosedError(self.identity)
        await self.scheduler.flush()
        if not plan.edits:
            return True
        self._suppress_depth += 1
        try:
            ok = await self.buffer.apply_edits(plan.edits)
        except Exception as e:
            logger.error(f"Command transaction raised on {self.identity}: {e}")
            ok = False
        finally:
            self._suppress_depth -= 1
        if ok:
            await self.refresh_annotations()
        else:
            logger.warning(f"Command transaction failed on {self.identity}")
        return ok

    async def resync(self) -> Optional[int]:
        """
        Commit a full-document reconciliation pass right away.

        Returns the number of lines corrected, or None when the host rejected
        the transaction.
        """
        if self._closed:
            raise SessionClosedError(self.identity)
        await self.scheduler.flush()
        corrections = plan_resync(self.buffer)
        if not corrections:
            return 0
        # Bypass the window: resync is explicit, so commit as one batch right away.
        self.last_apply_result = None
        self.scheduler.schedule(corrections.values())
        await self.scheduler.flush()
        result = self.last_apply_result
        if result is None or not result.success:
            logger.warning(f"Resync of {self.identity} was not applied")
            return None
        return result.applied_count


class PrefixSyncEngine:
    """
    Maps document identity to its session and exposes the user commands.

    Commands on documents that are not eligible are silent no-ops and return
    None; otherwise they return the completion message to show the user.
    """

    def __init__(self,
                 settings_provider: Optional[SettingsProvider] = None,
                 annotation_sink: Optional[AnnotationSink] = None,
                 clipboard: Optional[Clipboard] = None,
                 clock: Optional[Clock] = None,
                 today_provider: Callable[[], date] = date.today):
        self.settings_provider = settings_provider or SettingsProvider()
        self.annotation_sink = annotation_sink or RecordingAnnotationSink()
        self.clipboard = clipboard or MemoryClipboard()
        self.clock = clock
        self.today_provider = today_provider
        self.eligibility = EligibilityFilter(self.settings_provider)
        self.classifier = ChangeClassifier(self.eligibility)
        self.sessions: Dict[DocumentIdentity, DocumentSession] = {}
        self.settings_provider.add_listener(self._on_settings_changed)

    # --- Lifecycle ---

    def open_document(self, buffer: HostBuffer) -> DocumentSession:
        session = self.sessions.get(buffer.identity)
        if session is not None and session.buffer is buffer and not session.closed:
            return session
        if session is not None:
            session.close()
        session = DocumentSession(
            buffer,
            self.settings_provider,
            self.eligibility,
            self.classifier,
            self.annotation_sink,
            clock=self.clock,
            today_provider=self.today_provider,
        )
        self.sessions[buffer.identity] = session
        logger.debug(f"Opened {buffer.identity} (eligible={session.eligible})")
        return session

    def close_document(self, identity: DocumentIdentity) -> None:
        session = self.sessions.pop(identity, None)
        if session is not None:
            session.close()
            self.eligibility.forget(identity)
            logger.debug(f"Closed {identity}")

    def session_for(self, identity: DocumentIdentity) -> Optional[DocumentSession]:
        return self.sessions.get(identity)

    def shutdown(self) -> None:
        for identity in list(self.sessions):
            self.close_document(identity)

    def _on_settings_changed(self, settings: GutterSettings) -> None:
        for session in list(self.sessions.values()):
            try:
                session.apply_settings(settings)
            except Exception as e:
                logger.exception(f"Error applying settings to {session.identity}: {e}")

    # --- Commands ---

    def _eligible_session(self, identity: DocumentIdentity) -> Optional[DocumentSession]:
        session = self.sessions.get(identity)
        if session is None or session.closed or not session.eligible:
            return None
        return session

    @staticmethod
    def _selections(session: DocumentSession, selections: Optional[Sequence[Selection]]) -> List[Selection]:
        return list(selections) if selections is not None else session.buffer.selections

    async def copy_without_prefix(self, identity: DocumentIdentity,
                                  selections: Optional[Sequence[Selection]] = None) -> Optional[str]:
        session = self._eligible_session(identity)
        if session is None:
            return None
        text = copy_without_prefix_text(session.buffer, self._selections(session, selections))
        self.clipboard.write_text(text)
        return "Copied text (excluding prefix numbers)"

    async def delete_selected_lines(self, identity: DocumentIdentity,
                                    selections: Optional[Sequence[Selection]] = None) -> Optional[str]:
        return await self._run_plan(identity, selections, plan_delete_selected_lines)

    async def force_insert_prefix(self, identity: DocumentIdentity,
                                  selections: Optional[Sequence[Selection]] = None) -> Optional[str]:
        return await self._run_plan(identity, selections, plan_force_insert_prefix)

    async def set_date_to_zero(self, identity: DocumentIdentity,
                               selections: Optional[Sequence[Selection]] = None) -> Optional[str]:
        return await self._run_plan(identity, selections, plan_set_date_to_zero)

    async def resync(self, identity: DocumentIdentity) -> Optional[str]:
        session = self._eligible_session(identity)
        if session is None:
            return None
        count = await session.resync()
        if count is None:
            return "Could not apply the edit; the document changed underneath it"
        if count == 0:
            return "All lines already carry a valid prefix"
        return f"Resynchronized {count} line{'s' if count > 1 else ''}"

    async def _run_plan(self, identity, selections, planner) -> Optional[str]:
        session = self._eligible_session(identity)
        if session is None:
            return None
        # Commit queued corrections first so the plan sees settled text.
        await session.scheduler.flush()
        plan = planner(session.buffer, self._selections(session, selections))
        if not await session.apply_plan(plan):
            return "Could not apply the edit; the document changed underneath it"
        return plan.message

#
# End of document_session.py
########################################################################################################################
