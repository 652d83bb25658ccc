"""Resolve the effective grid from a base template (or snapshot) and a display-settings overlay.

Everything here is pure: the same (base, overlay) pair always yields the same
``EffectiveGrid``, so callers can recompute it on every change instead of
caching it.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Protocol

from tierboard.domain.grid import Card, Column, Origin, Tier

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from tierboard.domain.display_settings import DisplaySettings
    from tierboard.domain.ranking import RankingBase
    from tierboard.domain.template import Template, TemplateSnapshot

UNORDERED_OFFSET = 10000
SYNTHETIC_CARD_ORDER = 99999


class _Ordered(Protocol):
    @property
    def id(self) -> str: ...

    @property
    def order_index(self) -> int: ...


@dataclass(frozen=True)
class GridBase:
    tiers: tuple[Tier, ...]
    columns: tuple[Column, ...]
    cards: tuple[Card, ...]


@dataclass(frozen=True)
class EffectiveGrid:
    tiers: tuple[Tier, ...]
    columns: tuple[Column, ...]
    cards: Mapping[str, Card]

    def tier(self, tier_id: str) -> Tier | None:
        return next((t for t in self.tiers if t.id == tier_id), None)

    def column(self, column_id: str) -> Column | None:
        return next((c for c in self.columns if c.id == column_id), None)

    def card(self, card_id: str) -> Card | None:
        return self.cards.get(card_id)

    def has_cell(self, tier_id: str, column_id: str) -> bool:
        return self.tier(tier_id) is not None and self.column(column_id) is not None


def base_from_template(template: Template) -> GridBase:
    return GridBase(tiers=template.tiers, columns=template.columns, cards=template.cards)


def base_from_snapshot(snapshot: TemplateSnapshot) -> GridBase:
    return GridBase(tiers=snapshot.tiers, columns=snapshot.columns, cards=snapshot.cards)


def base_from_ranking(base: RankingBase) -> GridBase:
    return GridBase(tiers=base.tiers, columns=base.columns, cards=base.cards)


def sort_by_order[T: _Ordered](items: Iterable[T], order: Sequence[str] | None = None) -> list[T]:
    """Sort by an explicit id permutation, else by ``order_index``.

    Ids missing from the permutation sort after every listed id, keeping
    their own ``order_index`` order among themselves.
    """
    if not order:
        return sorted(items, key=lambda item: item.order_index)
    positions = {item_id: idx for idx, item_id in enumerate(order)}
    return sorted(items, key=lambda item: positions.get(item.id, item.order_index + UNORDERED_OFFSET))


def resolve_tiers(base_tiers: Sequence[Tier], overlay: DisplaySettings | None) -> tuple[Tier, ...]:
    tiers = list(base_tiers)
    if overlay is None:
        return tuple(sort_by_order(tiers))

    for position, extra in enumerate(overlay.additional_tiers or ()):
        order_index = extra.order_index if extra.order_index is not None else len(base_tiers) + position
        tiers.append(
            Tier(id=extra.id, name=extra.name, color=extra.color, order_index=order_index, origin=Origin.SYNTHETIC)
        )

    if overlay.hidden_tier_ids:
        hidden = set(overlay.hidden_tier_ids)
        tiers = [t for t in tiers if t.id not in hidden]

    overrides = overlay.tier_overrides or {}
    resolved: list[Tier] = []
    for tier in tiers:
        override = overrides.get(tier.id)
        if override is None:
            resolved.append(tier)
            continue
        resolved.append(
            replace(
                tier,
                name=override.name if override.name is not None else tier.name,
                color=override.color if override.color is not None else tier.color,
            )
        )
    return tuple(sort_by_order(resolved, overlay.tier_order))


def resolve_columns(base_columns: Sequence[Column], overlay: DisplaySettings | None) -> tuple[Column, ...]:
    columns = list(base_columns)
    if overlay is None:
        return tuple(sort_by_order(columns))

    for position, extra in enumerate(overlay.additional_columns or ()):
        order_index = extra.order_index if extra.order_index is not None else len(base_columns) + position
        columns.append(
            Column(
                id=extra.id,
                name=extra.name,
                color=extra.color,
                order_index=order_index,
                origin=Origin.SYNTHETIC,
            )
        )

    if overlay.hidden_column_ids:
        hidden = set(overlay.hidden_column_ids)
        columns = [c for c in columns if c.id not in hidden]

    overrides = overlay.column_overrides or {}
    resolved: list[Column] = []
    for column in columns:
        override = overrides.get(column.id)
        if override is None:
            resolved.append(column)
            continue
        resolved.append(
            replace(
                column,
                name=override.name if override.name is not None else column.name,
                color=column.color if override.color is None else (override.color or None),
            )
        )
    return tuple(sort_by_order(resolved, overlay.column_order))


def resolve_cards(base_cards: Sequence[Card], overlay: DisplaySettings | None) -> dict[str, Card]:
    cards = {card.id: card for card in base_cards}
    if overlay is None:
        return cards

    for extra in overlay.additional_cards or ():
        cards[extra.id] = Card(
            id=extra.id,
            title=extra.title,
            order_index=SYNTHETIC_CARD_ORDER,
            image_url=extra.image_url,
            description=extra.description,
            origin=Origin.SYNTHETIC,
        )

    for card_id, override in (overlay.card_overrides or {}).items():
        existing = cards.get(card_id)
        if existing is None:
            continue
        cards[card_id] = replace(
            existing,
            title=override.title if override.title is not None else existing.title,
            image_url=existing.image_url if override.image_url is None else (override.image_url or None),
            description=existing.description if override.description is None else (override.description or None),
        )

    for card_id in overlay.removed_card_ids or ():
        cards.pop(card_id, None)

    return cards


def resolve_grid(base: GridBase, overlay: DisplaySettings | None) -> EffectiveGrid:
    return EffectiveGrid(
        tiers=resolve_tiers(base.tiers, overlay),
        columns=resolve_columns(base.columns, overlay),
        cards=resolve_cards(base.cards, overlay),
    )
