from tierboard.domain.placement import UNRANKED, Placement
from tierboard.grid.placement_index import PlacementIndex
from tests.helpers import place


def _index() -> PlacementIndex:
    return PlacementIndex.from_placements(
        [
            place("c1", "s", "col1", 1),
            place("c2", "s", "col1", 0),
            place("c3", None, None, 0),
            place("c4", "a", "col1", 0),
        ]
    )


class TestPlacementIndex:
    def test_len_and_contains(self) -> None:
        index = _index()
        assert len(index) == 4
        assert "c1" in index
        assert "missing" not in index

    def test_cell_order_sorted_by_order_index(self) -> None:
        assert _index().card_ids_for_cell("s", "col1") == ["c2", "c1"]

    def test_stable_sort_on_duplicate_order(self) -> None:
        index = PlacementIndex.from_placements(
            [place("x", "s", "col1", 5), place("y", "s", "col1", 5), place("z", "s", "col1", 2)]
        )
        assert index.card_ids_for_cell("s", "col1") == ["z", "x", "y"]

    def test_cell_of(self) -> None:
        index = _index()
        assert index.cell_of("c4") == ("a", "col1")
        assert index.cell_of("c3") == UNRANKED
        assert index.cell_of("missing") is None

    def test_cells_in_first_seen_order(self) -> None:
        assert _index().cells() == [("s", "col1"), UNRANKED, ("a", "col1")]

    def test_set_placement_without_tier_clears_column(self) -> None:
        index = _index()
        index.set_placement("c1", None, "col1", 3)
        placement = index.get("c1")
        assert placement == Placement(card_id="c1", tier_id=None, column_id=None, order_index=3)
        assert placement.is_unranked

    def test_remove(self) -> None:
        index = _index()
        removed = index.remove("c1")
        assert removed is not None
        assert removed.card_id == "c1"
        assert index.remove("c1") is None
        assert len(index) == 3

    def test_renumber_cell_closes_gaps(self) -> None:
        index = PlacementIndex.from_placements([place("x", "s", "col1", 4), place("y", "s", "col1", 9)])
        index.renumber_cell("s", "col1")
        assert [p.order_index for p in index.placements_for_cell("s", "col1")] == [0, 1]

    def test_assign_cell_order(self) -> None:
        index = _index()
        index.assign_cell_order("b", "col1", ["c3", "c1"])
        assert index.card_ids_for_cell("b", "col1") == ["c3", "c1"]
        assert index.get("c1").order_index == 1

    def test_copy_is_independent(self) -> None:
        index = _index()
        clone = index.copy()
        clone.remove("c1")
        assert "c1" in index
        assert clone != index

    def test_equality_by_placements(self) -> None:
        assert _index() == _index()

    def test_to_list_preserves_insertion_order(self) -> None:
        assert [p.card_id for p in _index().to_list()] == ["c1", "c2", "c3", "c4"]

    def test_later_duplicate_wins(self) -> None:
        index = PlacementIndex([place("c1", "s", "col1", 0), place("c1", "a", "col1", 0)])
        assert len(index) == 1
        assert index.cell_of("c1") == ("a", "col1")
