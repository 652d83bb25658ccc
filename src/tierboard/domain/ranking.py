from dataclasses import dataclass

from tierboard.domain.display_settings import DisplaySettings
from tierboard.domain.grid import Card, Column, Tier
from tierboard.domain.placement import Placement
from tierboard.domain.template import TemplateSnapshot


@dataclass(frozen=True)
class ShareSettings:
    view_token: str
    edit_token: str
    view_enabled: bool = False
    edit_enabled: bool = False


@dataclass(frozen=True)
class Ranking:
    id: str
    owner_id: str
    title: str
    template_id: str | None
    share: ShareSettings
    snapshot: TemplateSnapshot | None = None
    display_settings: DisplaySettings | None = None
    placements: tuple[Placement, ...] = ()
    co_owner_ids: tuple[str, ...] = ()
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class RankingBase:
    """Everything the grid core needs to render and edit one ranking."""

    tiers: tuple[Tier, ...]
    columns: tuple[Column, ...]
    cards: tuple[Card, ...]
    placements: tuple[Placement, ...]
    overlay: DisplaySettings | None = None
