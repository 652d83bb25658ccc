from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from tierboard.domain.drag import CardHandle, CellHandle, DragPhase, UnrankedHandle
from tierboard.domain.placement import UNRANKED
from tierboard.grid.collision import detect_drop_target

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from tierboard.domain.drag import Droppable, DropHandle, Point, Rect
    from tierboard.domain.placement import CellKey, Placement
    from tierboard.grid.overlay import EffectiveGrid
    from tierboard.grid.placement_index import PlacementIndex

logger = logging.getLogger(__name__)


def apply_move(
    index: PlacementIndex,
    card_id: str,
    target: CellKey,
    target_index: int | None,
    *,
    commit: bool,
) -> PlacementIndex:
    """Return a new index with ``card_id`` moved to ``target`` at ``target_index``.

    ``target_index`` is a position in the target cell's current sequence (the
    dragged card's own slot included when it is already there); ``None``
    appends. Within one cell this behaves like an array move. Across cells the
    card leaves its old cell and both cells are renumbered, but only when
    ``commit`` is set: previews never move a card between cells. Every cell
    touched ends with dense 0..n-1 order.
    """
    result = index.copy()
    source = index.cell_of(card_id)
    if source is None:
        return result

    if source == target:
        sequence = result.card_ids_for_cell(*source)
        sequence.remove(card_id)
        position = len(sequence) if target_index is None else max(0, min(target_index, len(sequence)))
        sequence.insert(position, card_id)
        result.assign_cell_order(*source, sequence)
        return result

    if not commit:
        return result

    source_sequence = [cid for cid in result.card_ids_for_cell(*source) if cid != card_id]
    target_sequence = result.card_ids_for_cell(*target)
    position = len(target_sequence) if target_index is None else max(0, min(target_index, len(target_sequence)))
    target_sequence.insert(position, card_id)
    result.assign_cell_order(*source, source_sequence)
    result.assign_cell_order(*target, target_sequence)
    return result


class DropKind(StrEnum):
    NO_TARGET = "no_target"
    BLOCKED = "blocked"
    NO_OP = "no_op"
    REORDERED = "reordered"
    MOVED = "moved"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class DropOutcome:
    kind: DropKind
    card_id: str | None = None
    placements: tuple[Placement, ...] | None = None

    @property
    def committed(self) -> bool:
        return self.placements is not None


class DragEngine:
    """State machine for a single drag gesture over the effective grid.

    ``over`` updates a preview index (same-cell reorders only) that the UI
    renders while dragging. ``drop`` decides the authoritative outcome and, on
    a change, replaces the engine's index and hands the full placement list to
    ``on_commit``.
    """

    def __init__(
        self,
        index: PlacementIndex,
        grid: EffectiveGrid,
        *,
        cells_blocked: bool = False,
        read_only: bool = False,
        on_commit: Callable[[list[Placement]], None] | None = None,
    ) -> None:
        self._index = index
        self._grid = grid
        self._cells_blocked = cells_blocked
        self._read_only = read_only
        self._on_commit = on_commit
        self._phase = DragPhase.IDLE
        self._active: str | None = None
        self._over: DropHandle | None = None
        self._preview: PlacementIndex | None = None

    @property
    def phase(self) -> DragPhase:
        return self._phase

    @property
    def active_card_id(self) -> str | None:
        return self._active

    @property
    def over_handle(self) -> DropHandle | None:
        return self._over

    @property
    def index(self) -> PlacementIndex:
        return self._index

    @property
    def cells_blocked(self) -> bool:
        return self._cells_blocked

    def sync(self, index: PlacementIndex, grid: EffectiveGrid) -> None:
        """Replace the authoritative state. Ignored mid-drag so a refresh cannot yank the gesture."""
        if self._phase is DragPhase.DRAGGING:
            logger.debug("Ignoring sync during active drag of %s", self._active)
            return
        self._index = index
        self._grid = grid

    def visible_cell(self, cell: CellKey) -> list[str]:
        """Card ids to render for a cell: the preview order while dragging, resolvable cards only."""
        source = self._preview if self._preview is not None else self._index
        return [cid for cid in source.card_ids_for_cell(*cell) if self._grid.card(cid) is not None]

    def start(self, card_id: str) -> bool:
        if self._read_only:
            return False
        if self._grid.card(card_id) is None or card_id not in self._index:
            logger.debug("Cannot drag unresolvable card %s", card_id)
            return False
        self._phase = DragPhase.DRAGGING
        self._active = card_id
        self._over = None
        self._preview = self._index.copy()
        logger.debug("Drag started: %s", card_id)
        return True

    def over(self, handle: DropHandle | None) -> None:
        if self._phase is not DragPhase.DRAGGING or self._active is None or self._preview is None:
            return
        if handle == self._over:
            return
        self._over = handle
        if handle is None:
            return
        active_cell = self._preview.cell_of(self._active)
        if active_cell is None:
            return

        if isinstance(handle, CardHandle):
            if handle.card_id == self._active or self._preview.cell_of(handle.card_id) != active_cell:
                return
            sequence = self._preview.card_ids_for_cell(*active_cell)
            target_index: int | None = sequence.index(handle.card_id)
        elif handle.cell == active_cell:
            target_index = None
        else:
            return
        self._preview = apply_move(self._preview, self._active, active_cell, target_index, commit=False)

    def over_point(self, pointer: Point | None, active_rect: Rect, droppables: Sequence[Droppable]) -> DropHandle | None:
        handle = detect_drop_target(pointer, active_rect, droppables)
        self.over(handle)
        return handle

    def cancel(self) -> DropOutcome:
        card_id = self._active
        self._reset()
        logger.debug("Drag cancelled: %s", card_id)
        return DropOutcome(kind=DropKind.CANCELLED, card_id=card_id)

    def drop(self, handle: DropHandle | None = None) -> DropOutcome:
        if self._phase is not DragPhase.DRAGGING or self._active is None:
            return DropOutcome(kind=DropKind.NO_TARGET)
        if handle is not None:
            self.over(handle)
        card_id = self._active
        target_handle = self._over
        preview = self._preview
        self._reset()

        target = self._target_cell(target_handle)
        if target is None or preview is None:
            return DropOutcome(kind=DropKind.NO_TARGET, card_id=card_id)

        if self._cells_blocked and target[0] is not None:
            logger.debug("Drop of %s rejected: cells are blocked", card_id)
            return DropOutcome(kind=DropKind.BLOCKED, card_id=card_id)

        source = self._index.cell_of(card_id)
        if source is None:
            return DropOutcome(kind=DropKind.NO_TARGET, card_id=card_id)

        on_card = isinstance(target_handle, CardHandle)
        if source == target:
            if not on_card:
                return DropOutcome(kind=DropKind.NO_OP, card_id=card_id)
            reordered = self._index.copy()
            reordered.assign_cell_order(*target, preview.card_ids_for_cell(*target))
            return self._commit(reordered, DropKind.REORDERED, card_id)

        target_index: int | None = None
        if isinstance(target_handle, CardHandle):
            sequence = self._index.card_ids_for_cell(*target)
            target_index = sequence.index(target_handle.card_id)
        moved = apply_move(self._index, card_id, target, target_index, commit=True)
        return self._commit(moved, DropKind.MOVED, card_id)

    def _commit(self, new_index: PlacementIndex, kind: DropKind, card_id: str) -> DropOutcome:
        if new_index == self._index:
            return DropOutcome(kind=DropKind.NO_OP, card_id=card_id)
        self._index = new_index
        placements = new_index.to_list()
        logger.debug("Drop %s: %s → %s", kind, card_id, new_index.cell_of(card_id))
        if self._on_commit is not None:
            self._on_commit(placements)
        return DropOutcome(kind=kind, card_id=card_id, placements=tuple(placements))

    def _target_cell(self, handle: DropHandle | None) -> CellKey | None:
        if handle is None:
            return None
        if isinstance(handle, UnrankedHandle):
            return UNRANKED
        if isinstance(handle, CellHandle):
            if not self._grid.has_cell(handle.tier_id, handle.column_id):
                return None
            return handle.cell
        if self._grid.card(handle.card_id) is None:
            return None
        return self._index.cell_of(handle.card_id)

    def _reset(self) -> None:
        self._phase = DragPhase.IDLE
        self._active = None
        self._over = None
        self._preview = None
