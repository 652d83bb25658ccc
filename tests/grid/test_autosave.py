from collections.abc import Sequence

import pytest

from tierboard.domain.display_settings import DisplaySettings
from tierboard.domain.placement import Placement
from tierboard.grid.autosave import AutosaveReconciler, SaveStatus, threading_scheduler
from tests.fakes.persistence import FakePersistenceService, ManualScheduler
from tests.helpers import place


def _reconciler(
    service: FakePersistenceService, scheduler: ManualScheduler, statuses: list[SaveStatus] | None = None
) -> AutosaveReconciler:
    return AutosaveReconciler(
        service,
        "r1",
        delay_ms=250,
        scheduler=scheduler,
        on_status=statuses.append if statuses is not None else None,
    )


class _MutatingService(FakePersistenceService):
    """Records one more placement mutation while the first placement write is in flight."""

    def __init__(self, *, fail: bool = False) -> None:
        super().__init__()
        self.fail = fail
        self.reconciler: AutosaveReconciler | None = None

    def replace_placements(self, ranking_id: str, placements: Sequence[Placement]) -> None:
        if self.reconciler is not None:
            reconciler, self.reconciler = self.reconciler, None
            reconciler.record_placements([place("c1", order_index=5)])
        if self.fail:
            self.calls.append("placements")
            raise ConnectionError("store unavailable")
        super().replace_placements(ranking_id, placements)


class TestAutosaveReconciler:
    def test_initial_state(self) -> None:
        reconciler = _reconciler(FakePersistenceService(), ManualScheduler())
        assert reconciler.status is SaveStatus.IDLE
        assert not reconciler.has_pending
        assert not reconciler.pending_local_echo

    def test_schedules_with_delay_in_seconds(self) -> None:
        scheduler = ManualScheduler()
        _reconciler(FakePersistenceService(), scheduler).record_placements([place("c1")])
        assert scheduler.handles[0].delay == pytest.approx(0.25)

    def test_burst_collapses_to_one_write_with_final_state(self) -> None:
        service = FakePersistenceService()
        scheduler = ManualScheduler()
        reconciler = _reconciler(service, scheduler)
        reconciler.record_placements([place("c1", order_index=0)])
        reconciler.record_placements([place("c1", order_index=1)])
        reconciler.record_placements([place("c1", order_index=2)])
        assert len(scheduler.pending) == 1
        assert scheduler.run_pending() == 1
        assert service.placement_writes == [("r1", [place("c1", order_index=2)])]
        assert reconciler.status is SaveStatus.SAVED

    def test_overlay_written_before_placements(self) -> None:
        service = FakePersistenceService()
        reconciler = _reconciler(service, ManualScheduler())
        reconciler.record_placements([place("c1")])
        reconciler.record_overlay(DisplaySettings(hidden_tier_ids=("a",)))
        reconciler.flush()
        assert service.calls == ["overlay", "placements"]

    def test_overlay_none_is_still_written(self) -> None:
        service = FakePersistenceService()
        reconciler = _reconciler(service, ManualScheduler())
        reconciler.record_overlay(None)
        reconciler.flush()
        assert service.overlay_writes == [("r1", None)]
        assert service.placement_writes == []

    def test_status_transitions(self) -> None:
        statuses: list[SaveStatus] = []
        reconciler = _reconciler(FakePersistenceService(), ManualScheduler(), statuses)
        reconciler.record_placements([place("c1")])
        reconciler.flush()
        assert statuses == [SaveStatus.SAVING, SaveStatus.SAVED]

    def test_failure_sets_error_and_keeps_running(self) -> None:
        service = FakePersistenceService(fail_writes=True)
        reconciler = _reconciler(service, ManualScheduler())
        reconciler.record_placements([place("c1")])
        assert reconciler.flush() is SaveStatus.ERROR
        service.fail_writes = False
        reconciler.record_placements([place("c2")])
        assert reconciler.flush() is SaveStatus.SAVED

    def test_flush_with_nothing_pending_does_not_write(self) -> None:
        service = FakePersistenceService()
        reconciler = _reconciler(service, ManualScheduler())
        assert reconciler.flush() is SaveStatus.IDLE
        assert service.calls == []

    def test_flush_cancels_timer(self) -> None:
        scheduler = ManualScheduler()
        reconciler = _reconciler(FakePersistenceService(), scheduler)
        reconciler.record_placements([place("c1")])
        reconciler.flush()
        assert scheduler.pending == []

    def test_accept_remote_skips_one_refresh_after_local_edit(self) -> None:
        reconciler = _reconciler(FakePersistenceService(), ManualScheduler())
        assert reconciler.accept_remote()
        reconciler.record_placements([place("c1")])
        assert not reconciler.accept_remote()
        assert reconciler.accept_remote()

    def test_close_flushes_pending(self) -> None:
        service = FakePersistenceService()
        reconciler = _reconciler(service, ManualScheduler())
        reconciler.record_placements([place("c1")])
        reconciler.close()
        assert len(service.placement_writes) == 1
        assert not reconciler.has_pending

    def test_close_without_pending(self) -> None:
        service = FakePersistenceService()
        _reconciler(service, ManualScheduler()).close()
        assert service.calls == []

    def test_failed_overlay_write_is_sent_with_next_flush(self) -> None:
        service = FakePersistenceService(fail_writes=True)
        reconciler = _reconciler(service, ManualScheduler())
        overlay = DisplaySettings(hidden_tier_ids=("a",))
        reconciler.record_overlay(overlay)
        assert reconciler.flush() is SaveStatus.ERROR
        assert reconciler.has_pending

        service.fail_writes = False
        reconciler.record_placements([place("c1")])
        assert reconciler.flush() is SaveStatus.SAVED
        assert service.overlay_writes == [("r1", overlay)]
        assert service.placement_writes == [("r1", [place("c1")])]

    def test_failure_keeps_newer_mutation(self) -> None:
        service = _MutatingService(fail=True)
        reconciler = _reconciler(service, ManualScheduler())
        service.reconciler = reconciler
        reconciler.record_placements([place("c1", order_index=0)])
        assert reconciler.flush() is SaveStatus.ERROR

        service.fail = False
        reconciler.flush()
        assert service.placement_writes[-1] == ("r1", [place("c1", order_index=5)])

    def test_mutation_during_write_keeps_saving_status(self) -> None:
        service = _MutatingService()
        scheduler = ManualScheduler()
        reconciler = _reconciler(service, scheduler)
        service.reconciler = reconciler
        reconciler.record_placements([place("c1", order_index=0)])
        assert reconciler.flush() is SaveStatus.SAVING
        assert reconciler.status is SaveStatus.SAVING
        assert reconciler.has_pending

        assert scheduler.run_pending() == 1
        assert reconciler.status is SaveStatus.SAVED
        assert service.placement_writes[-1] == ("r1", [place("c1", order_index=5)])

    def test_status_callback_can_read_pending(self) -> None:
        seen: list[tuple[SaveStatus, bool]] = []
        reconciler = AutosaveReconciler(
            FakePersistenceService(),
            "r1",
            scheduler=ManualScheduler(),
            on_status=lambda status: seen.append((status, reconciler.has_pending)),
        )
        reconciler.record_overlay(None)
        reconciler.flush()
        assert seen == [(SaveStatus.SAVING, True), (SaveStatus.SAVED, False)]


class TestThreadingScheduler:
    def test_timer_is_daemon_and_cancellable(self) -> None:
        fired: list[bool] = []
        timer = threading_scheduler(60.0, lambda: fired.append(True))
        assert timer.daemon
        timer.cancel()
        timer.join(timeout=1.0)
        assert fired == []
