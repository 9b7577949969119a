# reconciliation_scheduler.py
# Description: Per-document coalescing queue that serializes prefix correction commits
#
# Imports
import asyncio
from enum import Enum
from typing import Awaitable, Callable, Dict, Iterable, Optional
#
# Third-Party Imports
from loguru import logger
#
# Local Imports
from .change_classifier import PendingCorrection, remap_line
from ..Buffer.text_types import ChangeRecord
from ..Utils.clock import AsyncioClock, Clock, TimerHandle
#
########################################################################################################################
#
# Classes:

class SchedulerState(Enum):
    """Lifecycle of one document's correction queue."""
    IDLE = "idle"
    COLLECTING = "collecting"
    COMMITTING = "committing"
    DISABLED = "disabled"


CommitCallback = Callable[[Dict[int, PendingCorrection]], Awaitable[bool]]
AfterCommitCallback = Callable[[], Awaitable[None]]


class ReconciliationScheduler:
    """
    Coalesces correction requests for one document and commits them one batch
    at a time.

    `schedule()` merges corrections into the queue (last write per line wins)
    and restarts the quiet-period timer. When the timer fires, or as soon as
    the queue reaches `max_pending`, the queue is handed to `commit_callback`
    as one batch. Anything scheduled while that batch is in flight waits for
    the next one. `after_commit` runs once per successful batch unless the
    scheduler was disabled in the meantime.
    """

    def __init__(self,
                 name: str,
                 commit_callback: CommitCallback,
                 after_commit: Optional[AfterCommitCallback] = None,
                 clock: Optional[Clock] = None,
                 delay: float = 0.05,
                 max_pending: int = 256):
        self.name = name
        self._commit_callback = commit_callback
        self._after_commit = after_commit
        self._clock = clock or AsyncioClock()
        self.delay = delay
        self.max_pending = max_pending

        self._pending: Dict[int, PendingCorrection] = {}
        self._dirty = False
        self._timer: Optional[TimerHandle] = None
        self._commit_task: Optional[asyncio.Task] = None
        self._in_flight = False
        self._disabled = False
        self.commit_count = 0

    # --- State ---

    @property
    def state(self) -> SchedulerState:
        if self._disabled:
            return SchedulerState.DISABLED
        if self._in_flight:
            return SchedulerState.COMMITTING
        if self._dirty:
            return SchedulerState.COLLECTING
        return SchedulerState.IDLE

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def pending(self) -> Dict[int, PendingCorrection]:
        return dict(self._pending)

    # --- Scheduling ---

    def schedule(self, corrections: Iterable[PendingCorrection] = ()) -> None:
        """
        Queue corrections for the next commit. An empty call still marks the
        document dirty so annotations get refreshed after the window.
        """
        if self._disabled:
            return
        for correction in corrections:
            self._pending[correction.line_index] = correction
        self._dirty = True

        if len(self._pending) >= self.max_pending and not self._in_flight:
            logger.debug(f"[{self.name}] Queue reached {len(self._pending)} corrections; committing now")
            self._cancel_timer()
            self._start_commit()
            return
        self._restart_timer()

    def remap_lines(self, change: ChangeRecord) -> None:
        """Re-key queued corrections after a structural change to the document."""
        if not self._pending or (change.line_delta == 0 and change.end_line == change.start_line):
            return
        remapped: Dict[int, PendingCorrection] = {}
        for index, correction in self._pending.items():
            moved = remap_line(index, change)
            if moved is not None:
                remapped[moved] = correction.moved_to(moved)
        self._pending = remapped

    async def flush(self) -> None:
        """Commit whatever is queued right away and wait for it to settle."""
        self._cancel_timer()
        if self._disabled:
            return
        await self.wait_until_settled()
        if self._dirty:
            self._start_commit()
        await self.wait_until_settled()

    async def wait_until_settled(self) -> None:
        """Wait until no commit is in flight."""
        while self._commit_task is not None:
            task = self._commit_task
            await asyncio.shield(task)
            if self._commit_task is task:
                self._commit_task = None

    def disable(self) -> None:
        """Drop queued work and stop accepting more. An in-flight commit finishes on its own."""
        if self._disabled:
            return
        self._disabled = True
        self._cancel_timer()
        dropped = len(self._pending)
        self._pending = {}
        self._dirty = False
        logger.debug(f"[{self.name}] Scheduler disabled; dropped {dropped} queued correction(s)")

    # --- Internals ---

    def _restart_timer(self) -> None:
        self._cancel_timer()
        self._timer = self._clock.call_later(self.delay, self._on_window_elapsed)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_window_elapsed(self) -> None:
        self._timer = None
        if self._disabled or not self._dirty:
            return
        if self._in_flight:
            # The running commit re-arms the window when it settles.
            return
        self._start_commit()

    def _start_commit(self) -> None:
        batch = self._pending
        self._pending = {}
        self._dirty = False
        # Set before the task is created so nothing can start a second commit.
        self._in_flight = True
        self._commit_task = asyncio.get_running_loop().create_task(self._run_commit(batch))

    async def _run_commit(self, batch: Dict[int, PendingCorrection]) -> None:
        committed = False
        try:
            if batch:
                self.commit_count += 1
                committed = bool(await self._commit_callback(batch))
            else:
                committed = True
        except Exception as e:
            logger.exception(f"[{self.name}] Commit of {len(batch)} correction(s) failed: {e}")
            committed = False
        finally:
            self._in_flight = False

        if committed and not self._disabled and self._after_commit is not None:
            try:
                await self._after_commit()
            except Exception as e:
                logger.exception(f"[{self.name}] Post-commit refresh failed: {e}")
        elif not committed:
            logger.warning(f"[{self.name}] Dropped batch of {len(batch)} correction(s) after failed commit")

        if self._dirty and not self._disabled:
            if len(self._pending) >= self.max_pending:
                self._start_commit()
            elif self._timer is None:
                self._restart_timer()

#
# End of reconciliation_scheduler.py
########################################################################################################################
