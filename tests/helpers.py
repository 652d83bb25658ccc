import sqlite3

from tierboard.domain.grid import Card, Column, Tier
from tierboard.domain.placement import Placement
from tierboard.domain.ranking import Ranking, RankingBase, ShareSettings
from tierboard.domain.template import Template, TemplateSnapshot
from tierboard.repos.ranking_repo import SqliteRankingRepo
from tierboard.repos.template_repo import SqliteTemplateRepo


def make_tiers(*ids: str) -> tuple[Tier, ...]:
    return tuple(Tier(id=tid, name=tid.upper(), color="#ffffff", order_index=i) for i, tid in enumerate(ids))


def make_columns(*ids: str) -> tuple[Column, ...]:
    return tuple(Column(id=cid, name=cid, order_index=i) for i, cid in enumerate(ids))


def make_cards(*ids: str) -> tuple[Card, ...]:
    return tuple(Card(id=cid, title=f"Card {cid}", order_index=i) for i, cid in enumerate(ids))


def place(card_id: str, tier_id: str | None = None, column_id: str | None = None, order_index: int = 0) -> Placement:
    return Placement(card_id=card_id, tier_id=tier_id, column_id=column_id, order_index=order_index)


def make_template(
    template_id: str = "t1",
    *,
    tiers: tuple[str, ...] = ("s", "a", "b"),
    columns: tuple[str, ...] = ("col1", "col2"),
    cards: tuple[str, ...] = ("c1", "c2", "c3"),
    owner_id: str = "owner",
    title: str = "Games",
) -> Template:
    return Template(
        id=template_id,
        owner_id=owner_id,
        title=title,
        tiers=make_tiers(*tiers),
        columns=make_columns(*columns),
        cards=make_cards(*cards),
    )


def make_base(template: Template | None = None, placements: tuple[Placement, ...] | None = None) -> RankingBase:
    template = template or make_template()
    if placements is None:
        placements = tuple(place(c.id, order_index=c.order_index) for c in template.cards)
    return RankingBase(tiers=template.tiers, columns=template.columns, cards=template.cards, placements=placements)


def seed_ranking(
    conn: sqlite3.Connection,
    *,
    ranking_id: str = "r1",
    template: Template | None = None,
    placements: tuple[Placement, ...] | None = None,
    with_snapshot: bool = True,
) -> Ranking:
    """Seed a template and a ranking over it, committing both."""
    template = template or make_template()
    SqliteTemplateRepo(conn).upsert(template)
    snapshot = (
        TemplateSnapshot(
            tiers=template.tiers, columns=template.columns, cards=template.cards, snapshot_at="2026-01-01T00:00:00"
        )
        if with_snapshot
        else None
    )
    ranking = Ranking(
        id=ranking_id,
        owner_id="owner",
        title="My ranking",
        template_id=template.id,
        share=ShareSettings(view_token=f"view-{ranking_id}", edit_token=f"edit-{ranking_id}"),
        snapshot=snapshot,
        placements=placements
        if placements is not None
        else tuple(place(c.id, order_index=c.order_index) for c in template.cards),
    )
    SqliteRankingRepo(conn).upsert(ranking)
    conn.commit()
    return ranking
