import pytest

from tierboard.domain.display_settings import DisplaySettings
from tierboard.domain.drag import CardHandle, CellHandle, UnrankedHandle
from tierboard.domain.grid import Origin
from tierboard.domain.placement import UNRANKED
from tierboard.domain.ranking import RankingBase
from tierboard.grid.autosave import SaveStatus
from tierboard.grid.drag import DropKind
from tierboard.grid.errors import ReadOnlyBoardError
from tierboard.grid.ids import SyntheticKind
from tierboard.grid.session import BoardSession
from tierboard.persistence.errors import RankingNotFoundError
from tests.fakes.persistence import FakePersistenceService, ManualScheduler
from tests.helpers import make_base, place


def _ids(kind: SyntheticKind) -> str:
    return f"{kind.value}-1"


def _session(
    *, read_only: bool = False, cells_blocked: bool = False
) -> tuple[BoardSession, FakePersistenceService, ManualScheduler]:
    base = make_base(
        placements=(
            place("c1", "s", "col1", 0),
            place("c2", "s", "col1", 1),
            place("c3", None, None, 0),
        )
    )
    service = FakePersistenceService({"r1": base})
    scheduler = ManualScheduler()
    session = BoardSession.load(
        "r1",
        service,
        scheduler=scheduler,
        read_only=read_only,
        cells_blocked=cells_blocked,
        id_factory=_ids,
    )
    return session, service, scheduler


class TestBoardSessionLoad:
    def test_load(self) -> None:
        session, _, _ = _session()
        assert session.ranking_id == "r1"
        assert [t.id for t in session.grid.tiers] == ["s", "a", "b"]
        assert [c.id for c in session.cell_cards(("s", "col1"))] == ["c1", "c2"]
        assert session.status is SaveStatus.IDLE

    def test_load_unknown(self) -> None:
        with pytest.raises(RankingNotFoundError):
            BoardSession.load("nope", FakePersistenceService())


class TestBoardSessionDrag:
    def test_move_card_schedules_save(self) -> None:
        session, service, scheduler = _session()
        outcome = session.move_card("c3", CellHandle("a", "col2"))
        assert outcome.kind is DropKind.MOVED
        assert session.status is SaveStatus.SAVING
        scheduler.run_pending()
        assert service.placement_writes[0][1] == session.index.to_list()
        assert session.status is SaveStatus.SAVED

    def test_drag_gesture(self) -> None:
        session, _, _ = _session()
        assert session.start_drag("c2")
        session.drag_over(CardHandle("c1"))
        assert [c.id for c in session.cell_cards(("s", "col1"))] == ["c2", "c1"]
        assert session.drop().kind is DropKind.REORDERED

    def test_cancel_drag(self) -> None:
        session, service, _ = _session()
        session.start_drag("c2")
        assert session.cancel_drag().kind is DropKind.CANCELLED
        assert session.autosave.has_pending is False
        assert service.calls == []

    def test_move_unknown_card(self) -> None:
        session, _, _ = _session()
        assert session.move_card("ghost", UnrankedHandle()).kind is DropKind.NO_TARGET

    def test_read_only_rejects_moves(self) -> None:
        session, _, _ = _session(read_only=True)
        with pytest.raises(ReadOnlyBoardError):
            session.move_card("c1", UnrankedHandle())

    def test_blocked_cells(self) -> None:
        session, _, _ = _session(cells_blocked=True)
        assert session.move_card("c3", CellHandle("s", "col1")).kind is DropKind.BLOCKED


class TestBoardSessionQuickEdits:
    def test_add_card_lands_in_pool(self) -> None:
        session, service, _ = _session()
        card_id = session.add_card("Extra")
        assert card_id == "qe-1"
        pool = session.cell_cards(UNRANKED)
        assert [c.id for c in pool] == ["c3", "qe-1"]
        assert pool[-1].origin is Origin.SYNTHETIC
        session.flush()
        assert service.calls == ["overlay", "placements"]

    def test_add_tier_is_droppable(self) -> None:
        session, _, _ = _session()
        tier_id = session.add_tier()
        assert session.grid.tiers[-1].name == "Tier 4"
        assert session.move_card("c3", CellHandle(tier_id, "col1")).kind is DropKind.MOVED

    def test_delete_tier_moves_cards_to_pool(self) -> None:
        session, _, _ = _session()
        session.delete_tier("s")
        assert [t.id for t in session.grid.tiers] == ["a", "b"]
        assert [c.id for c in session.cell_cards(UNRANKED)] == ["c3", "c1", "c2"]

    def test_edit_tier_only_writes_overlay(self) -> None:
        session, service, _ = _session()
        session.edit_tier("s", name="Super")
        assert session.grid.tier("s").name == "Super"
        session.flush()
        assert service.calls == ["overlay"]

    def test_move_tier_and_column(self) -> None:
        session, _, _ = _session()
        session.move_tier(1, "up")
        session.move_column(0, "right")
        assert [t.id for t in session.grid.tiers] == ["a", "s", "b"]
        assert [c.id for c in session.grid.columns] == ["col2", "col1"]

    def test_out_of_range_move_records_nothing(self) -> None:
        session, service, scheduler = _session()
        session.move_tier(0, "up")
        session.move_column(1, "right")
        assert not session.autosave.has_pending
        assert scheduler.pending == []
        assert session.autosave.accept_remote()
        session.flush()
        assert service.calls == []

    def test_column_edits(self) -> None:
        session, _, _ = _session()
        column_id = session.add_column(name="Extra")
        session.edit_column(column_id, name="Renamed")
        assert session.grid.column(column_id).name == "Renamed"
        session.delete_column(column_id)
        assert session.grid.column(column_id) is None

    def test_edit_and_remove_card(self) -> None:
        session, _, _ = _session()
        session.edit_card("c1", title="Renamed")
        assert session.grid.card("c1").title == "Renamed"
        session.remove_card("c1")
        assert session.grid.card("c1") is None
        assert [c.id for c in session.cell_cards(("s", "col1"))] == ["c2"]
        assert session.index.get("c2").order_index == 0

    def test_quick_edit_cancels_active_drag(self) -> None:
        session, _, _ = _session()
        session.start_drag("c1")
        session.add_tier()
        assert session.engine.active_card_id is None

    def test_read_only_rejects_quick_edits(self) -> None:
        session, _, _ = _session(read_only=True)
        with pytest.raises(ReadOnlyBoardError):
            session.add_tier()


class TestBoardSessionRemote:
    def test_remote_ignored_once_after_local_edit(self) -> None:
        session, _, _ = _session()
        session.move_card("c3", CellHandle("a", "col1"))
        remote = make_base(placements=(place("c1", None, None, 0),))
        assert not session.apply_remote(remote)
        assert session.index.cell_of("c3") == ("a", "col1")
        assert session.apply_remote(remote)
        assert session.index.cell_of("c1") == UNRANKED

    def test_remote_ignored_during_drag(self) -> None:
        session, _, _ = _session()
        session.start_drag("c1")
        assert not session.apply_remote(make_base(placements=()))
        assert len(session.index) == 3

    def test_remote_replaces_overlay(self) -> None:
        session, _, _ = _session()
        remote = RankingBase(
            tiers=session.base.tiers,
            columns=session.base.columns,
            cards=session.base.cards,
            placements=(),
            overlay=DisplaySettings(hidden_tier_ids=("b",)),
        )
        assert session.apply_remote(remote)
        assert [t.id for t in session.grid.tiers] == ["s", "a"]

    def test_close_flushes(self) -> None:
        session, service, _ = _session()
        session.move_card("c3", CellHandle("a", "col1"))
        session.close()
        assert len(service.placement_writes) == 1
