from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tierboard.domain.ranking import RankingBase
from tierboard.grid.overlay import GridBase, base_from_snapshot, base_from_template
from tierboard.persistence.errors import PlacementValidationError, RankingNotFoundError
from tierboard.persistence.wire import MAX_PLACEMENTS

if TYPE_CHECKING:
    import sqlite3
    from collections.abc import Sequence

    from tierboard.domain.display_settings import DisplaySettings
    from tierboard.domain.placement import Placement
    from tierboard.repos.protocols import RankingRepo, TemplateRepo

logger = logging.getLogger(__name__)


class RepoPersistenceService:
    """``PersistenceService`` backed by the SQLite repositories.

    A ranking's frozen snapshot wins over the live template, so later template
    edits never reshuffle a ranking that was already filled in.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        ranking_repo: RankingRepo,
        template_repo: TemplateRepo,
        *,
        max_placements: int = MAX_PLACEMENTS,
    ) -> None:
        self._conn = conn
        self._rankings = ranking_repo
        self._templates = template_repo
        self._max_placements = max_placements

    def get_effective_base(self, ranking_id: str) -> RankingBase:
        ranking = self._rankings.get(ranking_id)
        if ranking is None:
            raise RankingNotFoundError(ranking_id)

        if ranking.snapshot is not None:
            grid = base_from_snapshot(ranking.snapshot)
        else:
            template = self._templates.get(ranking.template_id) if ranking.template_id is not None else None
            if template is None:
                logger.warning("Ranking %s has neither snapshot nor template; serving an empty grid", ranking_id)
                grid = GridBase(tiers=(), columns=(), cards=())
            else:
                grid = base_from_template(template)

        return RankingBase(
            tiers=grid.tiers,
            columns=grid.columns,
            cards=grid.cards,
            placements=ranking.placements,
            overlay=ranking.display_settings,
        )

    def replace_placements(self, ranking_id: str, placements: Sequence[Placement]) -> None:
        if len(placements) > self._max_placements:
            raise PlacementValidationError(f"Too many placements (max {self._max_placements})")
        if not self._rankings.exists(ranking_id):
            raise RankingNotFoundError(ranking_id)
        self._rankings.replace_placements(ranking_id, placements)
        self._conn.commit()
        logger.debug("Replaced %d placements for ranking %s", len(placements), ranking_id)

    def replace_overlay(self, ranking_id: str, overlay: DisplaySettings | None) -> None:
        if not self._rankings.exists(ranking_id):
            raise RankingNotFoundError(ranking_id)
        self._rankings.set_display_settings(ranking_id, overlay)
        self._conn.commit()
        logger.debug("Replaced overlay for ranking %s", ranking_id)
