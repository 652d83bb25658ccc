from __future__ import annotations

from typing import TYPE_CHECKING, Any

from tierboard.domain.limits import CARD_TITLE_MAX, MAX_CARDS, MAX_COLUMNS, MAX_TIERS, TITLE_MAX
from tierboard.domain.template import Template
from tierboard.persistence.wire import card_from_dict, column_from_dict, tier_from_dict
from tierboard.services.errors import TemplateValidationError

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping


def _check_count(data: Mapping[str, Any], key: str, limit: int) -> list[dict[str, Any]]:
    items = data.get(key, [])
    if not isinstance(items, list):
        raise TemplateValidationError(f"{key} must be an array")
    if len(items) > limit:
        raise TemplateValidationError(f"Too many {key} (max {limit})")
    return items


def _with_order(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [{"orderIndex": position, **item} for position, item in enumerate(items)]


def template_from_dict(data: Mapping[str, Any], owner_id: str, *, id_factory: Callable[[], str]) -> Template:
    """Build a template from an import document, enforcing the size limits.

    Missing ids are generated and missing ``orderIndex`` values default to
    the item's position in its list.
    """
    title = data.get("title")
    if not isinstance(title, str) or not title.strip():
        raise TemplateValidationError("Template title is required")
    if len(title) > TITLE_MAX:
        raise TemplateValidationError(f"Title must be at most {TITLE_MAX} characters")

    tiers = _check_count(data, "tiers", MAX_TIERS)
    columns = _check_count(data, "columns", MAX_COLUMNS)
    cards = _check_count(data, "cards", MAX_CARDS)
    for card in cards:
        if len(card.get("title", "")) > CARD_TITLE_MAX:
            raise TemplateValidationError(f"Card title {card.get('title')!r} exceeds {CARD_TITLE_MAX} characters")

    try:
        return Template(
            id=data.get("id") or id_factory(),
            owner_id=owner_id,
            title=title,
            description=data.get("description"),
            is_public=bool(data.get("isPublic", False)),
            tiers=tuple(tier_from_dict({"id": id_factory(), **t}) for t in _with_order(tiers)),
            columns=tuple(column_from_dict({"id": id_factory(), **c}) for c in _with_order(columns)),
            cards=tuple(card_from_dict({"id": id_factory(), **c}) for c in _with_order(cards)),
        )
    except KeyError as e:
        raise TemplateValidationError(f"Missing field {e.args[0]!r}") from e
