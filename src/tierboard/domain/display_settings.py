"""Display settings: the sparse overlay a ranking carries on top of its template.

Every field is independently optional. ``None`` means "not set", which is
different from an empty collection only in that it is omitted on the wire;
consumers treat both the same way.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace


@dataclass(frozen=True)
class TierOverride:
    name: str | None = None
    color: str | None = None


@dataclass(frozen=True)
class ColumnOverride:
    name: str | None = None
    color: str | None = None  # "" clears the base color


@dataclass(frozen=True)
class CardOverride:
    title: str | None = None
    image_url: str | None = None  # "" clears the base image
    description: str | None = None  # "" clears the base description


@dataclass(frozen=True)
class AdditionalTier:
    id: str
    name: str
    color: str
    order_index: int | None = None


@dataclass(frozen=True)
class AdditionalColumn:
    id: str
    name: str
    order_index: int | None = None
    color: str | None = None


@dataclass(frozen=True)
class AdditionalCard:
    id: str
    title: str
    image_url: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class DisplaySettings:
    tier_order: tuple[str, ...] | None = None
    column_order: tuple[str, ...] | None = None
    tier_overrides: dict[str, TierOverride] | None = field(default=None, hash=False)
    column_overrides: dict[str, ColumnOverride] | None = field(default=None, hash=False)
    additional_tiers: tuple[AdditionalTier, ...] | None = None
    additional_columns: tuple[AdditionalColumn, ...] | None = None
    additional_cards: tuple[AdditionalCard, ...] | None = None
    hidden_tier_ids: tuple[str, ...] | None = None
    hidden_column_ids: tuple[str, ...] | None = None
    removed_card_ids: tuple[str, ...] | None = None
    card_overrides: dict[str, CardOverride] | None = field(default=None, hash=False)

    def patch(self, **changes: object) -> DisplaySettings:
        return replace(self, **changes)  # type: ignore[arg-type]


EMPTY_SETTINGS = DisplaySettings()


def has_quick_edits(settings: DisplaySettings | None) -> bool:
    """True when the overlay changes anything about the rendered grid."""
    if settings is None:
        return False
    return any(
        bool(value)
        for value in (
            settings.tier_overrides,
            settings.column_overrides,
            settings.additional_cards,
            settings.tier_order,
            settings.column_order,
            settings.additional_tiers,
            settings.hidden_tier_ids,
            settings.additional_columns,
            settings.hidden_column_ids,
            settings.removed_card_ids,
            settings.card_overrides,
        )
    )
