"""Quick edits: overlay mutations a viewer applies without touching the template.

Each function is pure. It takes the current overlay (``None`` is treated as
empty) and, where placements are affected, a ``PlacementIndex``, and returns a
``QuickEditResult`` holding the new overlay plus a new index when placements
changed. Whether a tier, column or card is synthetic is decided by membership
in the overlay's additional lists.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from tierboard.domain.display_settings import (
    EMPTY_SETTINGS,
    AdditionalCard,
    AdditionalColumn,
    AdditionalTier,
    CardOverride,
    ColumnOverride,
    DisplaySettings,
    TierOverride,
)
from tierboard.domain.placement import UNRANKED
from tierboard.grid.ids import SyntheticKind, mint_synthetic_id

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from tierboard.domain.grid import Column, Tier
    from tierboard.domain.placement import Placement
    from tierboard.grid.ids import IdFactory
    from tierboard.grid.overlay import EffectiveGrid
    from tierboard.grid.placement_index import PlacementIndex

DEFAULT_TIER_COLOR = "#888888"

type TierDirection = Literal["up", "down"]
type ColumnDirection = Literal["left", "right"]


@dataclass(frozen=True)
class QuickEditResult:
    overlay: DisplaySettings
    index: PlacementIndex | None = None
    created_id: str | None = None


def _settings(overlay: DisplaySettings | None) -> DisplaySettings:
    return overlay if overlay is not None else EMPTY_SETTINGS


def _move_to_pool(index: PlacementIndex, predicate: Callable[[Placement], bool]) -> PlacementIndex:
    """Append every matching placement to the end of the unranked pool, then renumber the pool."""
    result = index.copy()
    pool = result.card_ids_for_cell(*UNRANKED)
    evicted = sorted((p for p in index if predicate(p)), key=lambda p: p.order_index)
    result.assign_cell_order(*UNRANKED, pool + [p.card_id for p in evicted])
    return result


def is_synthetic_tier(overlay: DisplaySettings | None, tier_id: str) -> bool:
    return any(t.id == tier_id for t in _settings(overlay).additional_tiers or ())


def is_synthetic_column(overlay: DisplaySettings | None, column_id: str) -> bool:
    return any(c.id == column_id for c in _settings(overlay).additional_columns or ())


def is_synthetic_card(overlay: DisplaySettings | None, card_id: str) -> bool:
    return any(c.id == card_id for c in _settings(overlay).additional_cards or ())


# --- tiers ---


def add_tier(
    base_tiers: Sequence[Tier],
    overlay: DisplaySettings | None,
    *,
    name: str | None = None,
    color: str = DEFAULT_TIER_COLOR,
    id_factory: IdFactory = mint_synthetic_id,
) -> QuickEditResult:
    settings = _settings(overlay)
    additional = settings.additional_tiers or ()
    visible = len(base_tiers) + len(additional) - len(settings.hidden_tier_ids or ())
    tier = AdditionalTier(
        id=id_factory(SyntheticKind.TIER),
        name=name if name is not None else f"Tier {visible + 1}",
        color=color,
        order_index=len(base_tiers) + len(additional),
    )
    return QuickEditResult(overlay=settings.patch(additional_tiers=(*additional, tier)), created_id=tier.id)


def delete_tier(overlay: DisplaySettings | None, index: PlacementIndex, tier_id: str) -> QuickEditResult:
    settings = _settings(overlay)
    if is_synthetic_tier(settings, tier_id):
        settings = settings.patch(
            additional_tiers=tuple(t for t in settings.additional_tiers or () if t.id != tier_id),
        )
    elif tier_id not in (settings.hidden_tier_ids or ()):
        settings = settings.patch(hidden_tier_ids=(*(settings.hidden_tier_ids or ()), tier_id))
    return QuickEditResult(overlay=settings, index=_move_to_pool(index, lambda p: p.tier_id == tier_id))


def edit_tier(
    overlay: DisplaySettings | None,
    tier_id: str,
    *,
    name: str | None = None,
    color: str | None = None,
) -> QuickEditResult:
    settings = _settings(overlay)
    overrides = dict(settings.tier_overrides or {})
    overrides[tier_id] = TierOverride(name=name, color=color)
    return QuickEditResult(overlay=settings.patch(tier_overrides=overrides))


def move_tier(
    grid: EffectiveGrid,
    overlay: DisplaySettings | None,
    position: int,
    direction: TierDirection,
) -> QuickEditResult:
    """Swap the tier at ``position`` with its neighbour and pin both orders."""
    settings = _settings(overlay)
    target = position - 1 if direction == "up" else position + 1
    if not (0 <= position < len(grid.tiers)) or not (0 <= target < len(grid.tiers)):
        return QuickEditResult(overlay=settings)
    order = [t.id for t in grid.tiers]
    order[position], order[target] = order[target], order[position]
    return QuickEditResult(
        overlay=settings.patch(tier_order=tuple(order), column_order=tuple(c.id for c in grid.columns)),
    )


# --- columns ---


def add_column(
    base_columns: Sequence[Column],
    overlay: DisplaySettings | None,
    *,
    name: str = "",
    id_factory: IdFactory = mint_synthetic_id,
) -> QuickEditResult:
    settings = _settings(overlay)
    additional = settings.additional_columns or ()
    column = AdditionalColumn(
        id=id_factory(SyntheticKind.COLUMN),
        name=name,
        order_index=len(base_columns) + len(additional),
    )
    return QuickEditResult(overlay=settings.patch(additional_columns=(*additional, column)), created_id=column.id)


def delete_column(overlay: DisplaySettings | None, index: PlacementIndex, column_id: str) -> QuickEditResult:
    settings = _settings(overlay)
    if is_synthetic_column(settings, column_id):
        settings = settings.patch(
            additional_columns=tuple(c for c in settings.additional_columns or () if c.id != column_id),
        )
    elif column_id not in (settings.hidden_column_ids or ()):
        settings = settings.patch(hidden_column_ids=(*(settings.hidden_column_ids or ()), column_id))
    return QuickEditResult(overlay=settings, index=_move_to_pool(index, lambda p: p.column_id == column_id))


def edit_column(
    overlay: DisplaySettings | None,
    column_id: str,
    *,
    name: str | None = None,
    color: str | None = None,
) -> QuickEditResult:
    settings = _settings(overlay)
    overrides = dict(settings.column_overrides or {})
    overrides[column_id] = ColumnOverride(name=name, color=color)
    return QuickEditResult(overlay=settings.patch(column_overrides=overrides))


def move_column(
    grid: EffectiveGrid,
    overlay: DisplaySettings | None,
    position: int,
    direction: ColumnDirection,
) -> QuickEditResult:
    settings = _settings(overlay)
    target = position - 1 if direction == "left" else position + 1
    if not (0 <= position < len(grid.columns)) or not (0 <= target < len(grid.columns)):
        return QuickEditResult(overlay=settings)
    order = [c.id for c in grid.columns]
    order[position], order[target] = order[target], order[position]
    return QuickEditResult(
        overlay=settings.patch(tier_order=tuple(t.id for t in grid.tiers), column_order=tuple(order)),
    )


# --- cards ---


def add_card(
    overlay: DisplaySettings | None,
    index: PlacementIndex,
    title: str,
    *,
    image_url: str | None = None,
    description: str | None = None,
    id_factory: IdFactory = mint_synthetic_id,
) -> QuickEditResult:
    settings = _settings(overlay)
    card = AdditionalCard(
        id=id_factory(SyntheticKind.CARD),
        title=title,
        image_url=image_url or None,
        description=description or None,
    )
    result = index.copy()
    result.assign_cell_order(*UNRANKED, [*result.card_ids_for_cell(*UNRANKED), card.id])
    return QuickEditResult(
        overlay=settings.patch(additional_cards=(*(settings.additional_cards or ()), card)),
        index=result,
        created_id=card.id,
    )


def edit_card(
    overlay: DisplaySettings | None,
    card_id: str,
    *,
    title: str,
    image_url: str | None = None,
    description: str | None = None,
) -> QuickEditResult:
    """Rewrite a synthetic card in place, or record an override for a persisted one.

    For a persisted card an ``image_url`` or ``description`` of ``""`` clears
    the template value and ``None`` keeps it.
    """
    settings = _settings(overlay)
    if is_synthetic_card(settings, card_id):
        cards = tuple(
            AdditionalCard(id=c.id, title=title, image_url=image_url or None, description=description or None)
            if c.id == card_id
            else c
            for c in settings.additional_cards or ()
        )
        return QuickEditResult(overlay=settings.patch(additional_cards=cards))

    overrides = dict(settings.card_overrides or {})
    overrides[card_id] = CardOverride(title=title, image_url=image_url, description=description)
    return QuickEditResult(overlay=settings.patch(card_overrides=overrides))


def remove_card(overlay: DisplaySettings | None, index: PlacementIndex, card_id: str) -> QuickEditResult:
    settings = _settings(overlay)
    if is_synthetic_card(settings, card_id):
        settings = settings.patch(
            additional_cards=tuple(c for c in settings.additional_cards or () if c.id != card_id),
        )
    elif card_id not in (settings.removed_card_ids or ()):
        settings = settings.patch(removed_card_ids=(*(settings.removed_card_ids or ()), card_id))

    result = index.copy()
    removed = result.remove(card_id)
    if removed is not None:
        result.renumber_cell(*removed.cell)
    return QuickEditResult(overlay=settings, index=result)
