from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tierboard.domain.display_settings import EMPTY_SETTINGS
from tierboard.grid import quick_edit
from tierboard.grid.autosave import DEFAULT_DELAY_MS, AutosaveReconciler, threading_scheduler
from tierboard.grid.drag import DragEngine, DropKind, DropOutcome
from tierboard.grid.errors import ReadOnlyBoardError
from tierboard.grid.ids import mint_synthetic_id
from tierboard.grid.overlay import base_from_ranking, resolve_grid
from tierboard.grid.placement_index import PlacementIndex

if TYPE_CHECKING:
    from collections.abc import Callable

    from tierboard.domain.display_settings import DisplaySettings
    from tierboard.domain.drag import DropHandle
    from tierboard.domain.grid import Card
    from tierboard.domain.placement import CellKey
    from tierboard.domain.ranking import RankingBase
    from tierboard.grid.autosave import SaveStatus, Scheduler
    from tierboard.grid.ids import IdFactory
    from tierboard.grid.overlay import EffectiveGrid, GridBase
    from tierboard.grid.quick_edit import ColumnDirection, QuickEditResult, TierDirection
    from tierboard.persistence.protocols import PersistenceService

logger = logging.getLogger(__name__)


class BoardSession:
    """One open ranking: effective grid, placements, drag engine and autosave.

    Local edits are applied immediately and queued for a debounced write.
    Refreshes from the server go through ``apply_remote``, which ignores them
    while a drag is in flight or while a local edit is still echoing back.
    """

    def __init__(
        self,
        ranking_id: str,
        base: RankingBase,
        service: PersistenceService,
        *,
        delay_ms: int = DEFAULT_DELAY_MS,
        scheduler: Scheduler = threading_scheduler,
        cells_blocked: bool = False,
        read_only: bool = False,
        id_factory: IdFactory = mint_synthetic_id,
        on_status: Callable[[SaveStatus], None] | None = None,
    ) -> None:
        self._ranking_id = ranking_id
        self._read_only = read_only
        self._id_factory = id_factory
        self._base: GridBase = base_from_ranking(base)
        self._overlay: DisplaySettings | None = base.overlay
        self._grid: EffectiveGrid = resolve_grid(self._base, self._overlay)
        self._autosave = AutosaveReconciler(
            service,
            ranking_id,
            delay_ms=delay_ms,
            scheduler=scheduler,
            on_status=on_status,
        )
        self._engine = DragEngine(
            PlacementIndex.from_placements(base.placements),
            self._grid,
            cells_blocked=cells_blocked,
            read_only=read_only,
            on_commit=self._autosave.record_placements,
        )

    @classmethod
    def load(cls, ranking_id: str, service: PersistenceService, **kwargs: object) -> BoardSession:
        base = service.get_effective_base(ranking_id)
        logger.debug("Loaded ranking %s with %d placements", ranking_id, len(base.placements))
        return cls(ranking_id, base, service, **kwargs)  # type: ignore[arg-type]

    @property
    def ranking_id(self) -> str:
        return self._ranking_id

    @property
    def grid(self) -> EffectiveGrid:
        return self._grid

    @property
    def base(self) -> GridBase:
        return self._base

    @property
    def index(self) -> PlacementIndex:
        return self._engine.index

    @property
    def overlay(self) -> DisplaySettings | None:
        return self._overlay

    @property
    def engine(self) -> DragEngine:
        return self._engine

    @property
    def autosave(self) -> AutosaveReconciler:
        return self._autosave

    @property
    def status(self) -> SaveStatus:
        return self._autosave.status

    def cell_cards(self, cell: CellKey) -> list[Card]:
        """Resolved cards of a cell in display order; placements to unknown cards are skipped."""
        cards: list[Card] = []
        for card_id in self._engine.visible_cell(cell):
            card = self._grid.card(card_id)
            if card is not None:
                cards.append(card)
        return cards

    # --- drag ---

    def start_drag(self, card_id: str) -> bool:
        return self._engine.start(card_id)

    def drag_over(self, handle: DropHandle | None) -> None:
        self._engine.over(handle)

    def drop(self, handle: DropHandle | None = None) -> DropOutcome:
        return self._engine.drop(handle)

    def cancel_drag(self) -> DropOutcome:
        return self._engine.cancel()

    def move_card(self, card_id: str, handle: DropHandle) -> DropOutcome:
        """Run a whole gesture: pick ``card_id`` up and drop it on ``handle``."""
        if self._read_only:
            raise ReadOnlyBoardError(self._ranking_id)
        if not self._engine.start(card_id):
            return DropOutcome(kind=DropKind.NO_TARGET, card_id=card_id)
        return self._engine.drop(handle)

    # --- quick edits ---

    def add_tier(self, *, name: str | None = None, color: str = quick_edit.DEFAULT_TIER_COLOR) -> str | None:
        return self._apply(
            quick_edit.add_tier(self._base.tiers, self._overlay, name=name, color=color, id_factory=self._id_factory)
        )

    def delete_tier(self, tier_id: str) -> None:
        self._apply(quick_edit.delete_tier(self._overlay, self.index, tier_id))

    def edit_tier(self, tier_id: str, *, name: str | None = None, color: str | None = None) -> None:
        self._apply(quick_edit.edit_tier(self._overlay, tier_id, name=name, color=color))

    def move_tier(self, position: int, direction: TierDirection) -> None:
        self._apply(quick_edit.move_tier(self._grid, self._overlay, position, direction))

    def add_column(self, *, name: str = "") -> str | None:
        return self._apply(
            quick_edit.add_column(self._base.columns, self._overlay, name=name, id_factory=self._id_factory)
        )

    def delete_column(self, column_id: str) -> None:
        self._apply(quick_edit.delete_column(self._overlay, self.index, column_id))

    def edit_column(self, column_id: str, *, name: str | None = None, color: str | None = None) -> None:
        self._apply(quick_edit.edit_column(self._overlay, column_id, name=name, color=color))

    def move_column(self, position: int, direction: ColumnDirection) -> None:
        self._apply(quick_edit.move_column(self._grid, self._overlay, position, direction))

    def add_card(self, title: str, *, image_url: str | None = None, description: str | None = None) -> str | None:
        return self._apply(
            quick_edit.add_card(
                self._overlay,
                self.index,
                title,
                image_url=image_url,
                description=description,
                id_factory=self._id_factory,
            )
        )

    def edit_card(
        self,
        card_id: str,
        *,
        title: str,
        image_url: str | None = None,
        description: str | None = None,
    ) -> None:
        self._apply(quick_edit.edit_card(self._overlay, card_id, title=title, image_url=image_url, description=description))

    def remove_card(self, card_id: str) -> None:
        self._apply(quick_edit.remove_card(self._overlay, self.index, card_id))

    def _apply(self, result: QuickEditResult) -> str | None:
        if self._read_only:
            raise ReadOnlyBoardError(self._ranking_id)
        current = self._overlay if self._overlay is not None else EMPTY_SETTINGS
        if result.index is None and result.overlay == current:
            logger.debug("Quick edit on %s changed nothing", self._ranking_id)
            return result.created_id
        if self._engine.active_card_id is not None:
            self._engine.cancel()
        self._overlay = result.overlay
        self._grid = resolve_grid(self._base, self._overlay)
        index = result.index if result.index is not None else self._engine.index
        self._engine.sync(index, self._grid)
        self._autosave.record_overlay(self._overlay)
        if result.index is not None:
            self._autosave.record_placements(index.to_list())
        return result.created_id

    # --- remote ---

    def apply_remote(self, base: RankingBase) -> bool:
        """Adopt server state unless a drag is active or a local edit is still echoing."""
        if self._engine.active_card_id is not None:
            logger.debug("Ignoring remote refresh of %s during drag", self._ranking_id)
            return False
        if not self._autosave.accept_remote():
            return False
        self._base = base_from_ranking(base)
        self._overlay = base.overlay
        self._grid = resolve_grid(self._base, self._overlay)
        self._engine.sync(PlacementIndex.from_placements(base.placements), self._grid)
        return True

    def flush(self) -> SaveStatus:
        return self._autosave.flush()

    def close(self) -> None:
        if self._engine.active_card_id is not None:
            self._engine.cancel()
        self._autosave.close()
