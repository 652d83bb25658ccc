"""camelCase JSON encoding for grid records, shared by the SQLite store and the HTTP API."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from tierboard.domain.display_settings import (
    AdditionalCard,
    AdditionalColumn,
    AdditionalTier,
    CardOverride,
    ColumnOverride,
    DisplaySettings,
    TierOverride,
)
from tierboard.domain.grid import Card, Column, Tier
from tierboard.domain.placement import Placement
from tierboard.domain.ranking import RankingBase
from tierboard.domain.template import TemplateSnapshot
from tierboard.persistence.errors import PlacementValidationError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

MAX_PLACEMENTS = 500


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


# --- entities ---


def tier_to_dict(tier: Tier) -> dict[str, Any]:
    return {"id": tier.id, "name": tier.name, "color": tier.color, "orderIndex": tier.order_index}


def tier_from_dict(data: Mapping[str, Any]) -> Tier:
    return Tier(id=data["id"], name=data["name"], color=data["color"], order_index=int(data["orderIndex"]))


def column_to_dict(column: Column) -> dict[str, Any]:
    return {"id": column.id, "name": column.name, "color": column.color, "orderIndex": column.order_index}


def column_from_dict(data: Mapping[str, Any]) -> Column:
    return Column(
        id=data["id"],
        name=data.get("name"),
        color=data.get("color"),
        order_index=int(data["orderIndex"]),
    )


def card_to_dict(card: Card) -> dict[str, Any]:
    return {
        "id": card.id,
        "title": card.title,
        "imageUrl": card.image_url,
        "description": card.description,
        "orderIndex": card.order_index,
    }


def card_from_dict(data: Mapping[str, Any]) -> Card:
    return Card(
        id=data["id"],
        title=data["title"],
        image_url=data.get("imageUrl"),
        description=data.get("description"),
        order_index=int(data["orderIndex"]),
    )


def placement_to_dict(placement: Placement) -> dict[str, Any]:
    return {
        "cardId": placement.card_id,
        "tierId": placement.tier_id,
        "columnId": placement.column_id,
        "orderIndex": placement.order_index,
    }


def placement_from_dict(data: Mapping[str, Any]) -> Placement:
    tier_id = data.get("tierId")
    return Placement(
        card_id=data["cardId"],
        tier_id=tier_id,
        column_id=data.get("columnId") if tier_id is not None else None,
        order_index=int(data["orderIndex"]),
    )


def validate_placements(payload: Any, *, max_placements: int = MAX_PLACEMENTS) -> list[Placement]:
    """Parse an untrusted placement list, raising ``PlacementValidationError`` on any bad entry."""
    if not isinstance(payload, list):
        raise PlacementValidationError("placements must be an array")
    if len(payload) > max_placements:
        raise PlacementValidationError(f"Too many placements (max {max_placements})")
    placements: list[Placement] = []
    for position, entry in enumerate(payload):
        if not isinstance(entry, dict):
            raise PlacementValidationError(f"placements[{position}] must be an object")
        if not isinstance(entry.get("cardId"), str):
            raise PlacementValidationError(f"placements[{position}].cardId must be a string")
        order_index = entry.get("orderIndex")
        if isinstance(order_index, bool) or not isinstance(order_index, int):
            raise PlacementValidationError(f"placements[{position}].orderIndex must be an integer")
        for key in ("tierId", "columnId"):
            if entry.get(key) is not None and not isinstance(entry[key], str):
                raise PlacementValidationError(f"placements[{position}].{key} must be a string or null")
        placements.append(placement_from_dict(entry))
    return placements


# --- display settings ---


def _overrides_to_dict(overrides: Mapping[str, Any] | None, encode: Any) -> dict[str, Any] | None:
    if overrides is None:
        return None
    return {key: _drop_none(encode(value)) for key, value in overrides.items()}


def display_settings_to_dict(settings: DisplaySettings) -> dict[str, Any]:
    return _drop_none(
        {
            "tierOrder": list(settings.tier_order) if settings.tier_order is not None else None,
            "columnOrder": list(settings.column_order) if settings.column_order is not None else None,
            "tierOverrides": _overrides_to_dict(
                settings.tier_overrides, lambda o: {"name": o.name, "color": o.color}
            ),
            "columnOverrides": _overrides_to_dict(
                settings.column_overrides, lambda o: {"name": o.name, "color": o.color}
            ),
            "additionalTiers": (
                [
                    _drop_none({"id": t.id, "name": t.name, "color": t.color, "orderIndex": t.order_index})
                    for t in settings.additional_tiers
                ]
                if settings.additional_tiers is not None
                else None
            ),
            "additionalColumns": (
                [
                    _drop_none({"id": c.id, "name": c.name, "color": c.color, "orderIndex": c.order_index})
                    for c in settings.additional_columns
                ]
                if settings.additional_columns is not None
                else None
            ),
            "additionalCards": (
                [
                    {"id": c.id, "title": c.title, "imageUrl": c.image_url, "description": c.description}
                    for c in settings.additional_cards
                ]
                if settings.additional_cards is not None
                else None
            ),
            "hiddenTierIds": list(settings.hidden_tier_ids) if settings.hidden_tier_ids is not None else None,
            "hiddenColumnIds": list(settings.hidden_column_ids) if settings.hidden_column_ids is not None else None,
            "removedCardIds": list(settings.removed_card_ids) if settings.removed_card_ids is not None else None,
            "cardOverrides": _overrides_to_dict(
                settings.card_overrides,
                lambda o: {"title": o.title, "imageUrl": o.image_url, "description": o.description},
            ),
        }
    )


def _tuple_or_none(values: Iterable[str] | None) -> tuple[str, ...] | None:
    return tuple(values) if values is not None else None


def display_settings_from_dict(data: Mapping[str, Any]) -> DisplaySettings:
    tier_overrides = data.get("tierOverrides")
    column_overrides = data.get("columnOverrides")
    card_overrides = data.get("cardOverrides")
    additional_tiers = data.get("additionalTiers")
    additional_columns = data.get("additionalColumns")
    additional_cards = data.get("additionalCards")
    return DisplaySettings(
        tier_order=_tuple_or_none(data.get("tierOrder")),
        column_order=_tuple_or_none(data.get("columnOrder")),
        tier_overrides=(
            {k: TierOverride(name=v.get("name"), color=v.get("color")) for k, v in tier_overrides.items()}
            if tier_overrides is not None
            else None
        ),
        column_overrides=(
            {k: ColumnOverride(name=v.get("name"), color=v.get("color")) for k, v in column_overrides.items()}
            if column_overrides is not None
            else None
        ),
        additional_tiers=(
            tuple(
                AdditionalTier(id=t["id"], name=t["name"], color=t["color"], order_index=t.get("orderIndex"))
                for t in additional_tiers
            )
            if additional_tiers is not None
            else None
        ),
        additional_columns=(
            tuple(
                AdditionalColumn(
                    id=c["id"],
                    name=c.get("name") or "",
                    order_index=c.get("orderIndex"),
                    color=c.get("color"),
                )
                for c in additional_columns
            )
            if additional_columns is not None
            else None
        ),
        additional_cards=(
            tuple(
                AdditionalCard(
                    id=c["id"],
                    title=c["title"],
                    image_url=c.get("imageUrl"),
                    description=c.get("description"),
                )
                for c in additional_cards
            )
            if additional_cards is not None
            else None
        ),
        hidden_tier_ids=_tuple_or_none(data.get("hiddenTierIds")),
        hidden_column_ids=_tuple_or_none(data.get("hiddenColumnIds")),
        removed_card_ids=_tuple_or_none(data.get("removedCardIds")),
        card_overrides=(
            {
                k: CardOverride(title=v.get("title"), image_url=v.get("imageUrl"), description=v.get("description"))
                for k, v in card_overrides.items()
            }
            if card_overrides is not None
            else None
        ),
    )


# --- aggregates ---


def snapshot_to_dict(snapshot: TemplateSnapshot) -> dict[str, Any]:
    return {
        "tiers": [tier_to_dict(t) for t in snapshot.tiers],
        "columns": [column_to_dict(c) for c in snapshot.columns],
        "cards": [card_to_dict(c) for c in snapshot.cards],
        "snapshotAt": snapshot.snapshot_at,
    }


def snapshot_from_dict(data: Mapping[str, Any]) -> TemplateSnapshot:
    return TemplateSnapshot(
        tiers=tuple(tier_from_dict(t) for t in data.get("tiers", [])),
        columns=tuple(column_from_dict(c) for c in data.get("columns", [])),
        cards=tuple(card_from_dict(c) for c in data.get("cards", [])),
        snapshot_at=data.get("snapshotAt", ""),
    )


def ranking_base_to_dict(base: RankingBase) -> dict[str, Any]:
    return {
        "tiers": [tier_to_dict(t) for t in base.tiers],
        "columns": [column_to_dict(c) for c in base.columns],
        "cards": [card_to_dict(c) for c in base.cards],
        "placements": [placement_to_dict(p) for p in base.placements],
        "displaySettings": display_settings_to_dict(base.overlay) if base.overlay is not None else None,
    }


def ranking_base_from_dict(data: Mapping[str, Any]) -> RankingBase:
    overlay = data.get("displaySettings")
    return RankingBase(
        tiers=tuple(tier_from_dict(t) for t in data.get("tiers", [])),
        columns=tuple(column_from_dict(c) for c in data.get("columns", [])),
        cards=tuple(card_from_dict(c) for c in data.get("cards", [])),
        placements=tuple(placement_from_dict(p) for p in data.get("placements", [])),
        overlay=display_settings_from_dict(overlay) if overlay is not None else None,
    )
