from dataclasses import dataclass

from tierboard.domain.grid import Card, Column, Tier


@dataclass(frozen=True)
class Template:
    id: str
    owner_id: str
    title: str
    tiers: tuple[Tier, ...]
    columns: tuple[Column, ...]
    cards: tuple[Card, ...]
    description: str | None = None
    is_public: bool = False


@dataclass(frozen=True)
class TemplateSnapshot:
    """Frozen copy of a template's grid taken when a ranking is created."""

    tiers: tuple[Tier, ...]
    columns: tuple[Column, ...]
    cards: tuple[Card, ...]
    snapshot_at: str
