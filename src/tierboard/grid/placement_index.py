from __future__ import annotations

from typing import TYPE_CHECKING

from tierboard.domain.placement import Placement

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from tierboard.domain.placement import CellKey


class PlacementIndex:
    """In-memory card → (tier, column, order) mapping for one ranking.

    Insertion order of cards is preserved and is the order ``to_list`` emits.
    Ordering within a cell is always re-derived by a stable sort on
    ``order_index``, so gaps or duplicates left by external writers never
    corrupt it.
    """

    def __init__(self, placements: Iterable[Placement] = ()) -> None:
        self._by_card: dict[str, Placement] = {}
        for placement in placements:
            self._by_card[placement.card_id] = placement

    @classmethod
    def from_placements(cls, placements: Iterable[Placement]) -> PlacementIndex:
        return cls(placements)

    def __len__(self) -> int:
        return len(self._by_card)

    def __contains__(self, card_id: object) -> bool:
        return card_id in self._by_card

    def __iter__(self) -> Iterator[Placement]:
        return iter(self._by_card.values())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PlacementIndex):
            return NotImplemented
        return self.to_list() == other.to_list()

    def __repr__(self) -> str:
        return f"PlacementIndex({self.to_list()!r})"

    def get(self, card_id: str) -> Placement | None:
        return self._by_card.get(card_id)

    def cell_of(self, card_id: str) -> CellKey | None:
        placement = self._by_card.get(card_id)
        return placement.cell if placement is not None else None

    def placements_for_cell(self, tier_id: str | None, column_id: str | None) -> list[Placement]:
        members = [p for p in self._by_card.values() if p.tier_id == tier_id and p.column_id == column_id]
        return sorted(members, key=lambda p: p.order_index)

    def card_ids_for_cell(self, tier_id: str | None, column_id: str | None) -> list[str]:
        return [p.card_id for p in self.placements_for_cell(tier_id, column_id)]

    def cells(self) -> list[CellKey]:
        seen: dict[CellKey, None] = {}
        for placement in self._by_card.values():
            seen.setdefault(placement.cell, None)
        return list(seen)

    def set_placement(self, card_id: str, tier_id: str | None, column_id: str | None, order_index: int) -> None:
        if tier_id is None:
            column_id = None
        self._by_card[card_id] = Placement(
            card_id=card_id,
            tier_id=tier_id,
            column_id=column_id,
            order_index=order_index,
        )

    def remove(self, card_id: str) -> Placement | None:
        return self._by_card.pop(card_id, None)

    def renumber_cell(self, tier_id: str | None, column_id: str | None) -> None:
        """Reassign order 0..n-1 to the members of a cell, keeping their relative order."""
        for position, placement in enumerate(self.placements_for_cell(tier_id, column_id)):
            if placement.order_index != position:
                self.set_placement(placement.card_id, tier_id, column_id, position)

    def assign_cell_order(self, tier_id: str | None, column_id: str | None, card_ids: list[str]) -> None:
        """Place ``card_ids`` into a cell in the given order with dense indices."""
        for position, card_id in enumerate(card_ids):
            self.set_placement(card_id, tier_id, column_id, position)

    def copy(self) -> PlacementIndex:
        return PlacementIndex(self._by_card.values())

    def to_list(self) -> list[Placement]:
        return list(self._by_card.values())
