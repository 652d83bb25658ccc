from __future__ import annotations

import logging
import threading
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from tierboard.domain.display_settings import DisplaySettings
    from tierboard.domain.placement import Placement
    from tierboard.persistence.protocols import PersistenceService

logger = logging.getLogger(__name__)

DEFAULT_DELAY_MS = 500


class SaveStatus(StrEnum):
    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def __call__(self, delay: float, callback: Callable[[], None]) -> Cancellable: ...


def threading_scheduler(delay: float, callback: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()
    return timer


class AutosaveReconciler:
    """Debounced writer for one ranking's placements and overlay.

    Mutations are recorded as pending and a single write is scheduled
    ``delay_ms`` after the last one, so a burst of edits costs one request per
    document carrying the final state. Writes are serialized: a flush never
    overlaps another flush.

    ``pending_local_echo`` is raised by every recorded mutation. The owner
    checks it with ``accept_remote`` before applying a refresh from the
    server, which lets the first refresh after a local edit be skipped
    instead of clobbering the optimistic state.
    """

    def __init__(
        self,
        service: PersistenceService,
        ranking_id: str,
        *,
        delay_ms: int = DEFAULT_DELAY_MS,
        scheduler: Scheduler = threading_scheduler,
        on_status: Callable[[SaveStatus], None] | None = None,
    ) -> None:
        self._service = service
        self._ranking_id = ranking_id
        self._delay = delay_ms / 1000
        self._scheduler = scheduler
        self._on_status = on_status
        self._lock = threading.Lock()
        self._write_lock = threading.Lock()
        self._timer: Cancellable | None = None
        self._pending_placements: tuple[Placement, ...] | None = None
        self._pending_overlay: DisplaySettings | None = None
        self._overlay_dirty = False
        self._status = SaveStatus.IDLE
        self.pending_local_echo = False

    @property
    def status(self) -> SaveStatus:
        return self._status

    @property
    def has_pending(self) -> bool:
        with self._lock:
            return self._pending_placements is not None or self._overlay_dirty

    def record_placements(self, placements: Sequence[Placement]) -> None:
        with self._lock:
            self._pending_placements = tuple(placements)
            self._mark_dirty()
        self._notify(SaveStatus.SAVING)

    def record_overlay(self, overlay: DisplaySettings | None) -> None:
        with self._lock:
            self._pending_overlay = overlay
            self._overlay_dirty = True
            self._mark_dirty()
        self._notify(SaveStatus.SAVING)

    def accept_remote(self) -> bool:
        """Return False (and clear the echo flag) when a refresh should be ignored."""
        with self._lock:
            if self.pending_local_echo:
                self.pending_local_echo = False
                logger.debug("Suppressing remote refresh for %s", self._ranking_id)
                return False
            return True

    def flush(self) -> SaveStatus:
        """Write pending documents now.

        Documents that were not written stay pending when a write fails, so the
        next flush sends them again. SAVED is only reported once nothing recorded
        during the write is left over.
        """
        with self._write_lock:
            with self._lock:
                if self._timer is not None:
                    self._timer.cancel()
                    self._timer = None
                placements = self._pending_placements
                overlay = self._pending_overlay
                overlay_dirty = self._overlay_dirty
                self._pending_placements = None
                self._pending_overlay = None
                self._overlay_dirty = False

            if placements is None and not overlay_dirty:
                return self._status

            overlay_written = False
            try:
                if overlay_dirty:
                    self._service.replace_overlay(self._ranking_id, overlay)
                    overlay_written = True
                if placements is not None:
                    self._service.replace_placements(self._ranking_id, placements)
            except Exception as e:
                logger.warning("Autosave for ranking %s failed: %s", self._ranking_id, e)
                with self._lock:
                    # newer values recorded during the write win
                    if overlay_dirty and not overlay_written and not self._overlay_dirty:
                        self._pending_overlay = overlay
                        self._overlay_dirty = True
                    if placements is not None and self._pending_placements is None:
                        self._pending_placements = placements
                    self._status = SaveStatus.ERROR
                self._notify(SaveStatus.ERROR)
                return SaveStatus.ERROR

            logger.debug(
                "Saved ranking %s (overlay=%s, placements=%s)",
                self._ranking_id,
                overlay_dirty,
                len(placements) if placements is not None else "-",
            )
            with self._lock:
                if self._pending_placements is not None or self._overlay_dirty:
                    return self._status
                self._status = SaveStatus.SAVED
            self._notify(SaveStatus.SAVED)
            return SaveStatus.SAVED

    def close(self) -> None:
        """Cancel the pending timer and write whatever is still pending."""
        if self.has_pending:
            self.flush()
        else:
            with self._lock:
                if self._timer is not None:
                    self._timer.cancel()
                    self._timer = None

    def _mark_dirty(self) -> None:
        # caller holds self._lock
        self.pending_local_echo = True
        self._status = SaveStatus.SAVING
        if self._timer is not None:
            self._timer.cancel()
        self._timer = self._scheduler(self._delay, self._fire)

    def _fire(self) -> None:
        self.flush()

    def _notify(self, status: SaveStatus) -> None:
        # never called with self._lock held
        if self._on_status is not None:
            self._on_status(status)
