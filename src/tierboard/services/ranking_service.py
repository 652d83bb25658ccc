from __future__ import annotations

import logging
import secrets
from dataclasses import replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from tierboard.domain.limits import TITLE_MAX
from tierboard.domain.placement import Placement
from tierboard.domain.ranking import Ranking, ShareSettings
from tierboard.domain.template import TemplateSnapshot
from tierboard.persistence.errors import RankingNotFoundError, TemplateNotFoundError
from tierboard.services.errors import EditSharingDisabledError, NotCoOwnerError, TemplateValidationError

if TYPE_CHECKING:
    from collections.abc import Callable

    from tierboard.repos.protocols import RankingRepo, TemplateRepo

logger = logging.getLogger(__name__)


def generate_id() -> str:
    return secrets.token_urlsafe(16)


def generate_token() -> str:
    return secrets.token_urlsafe(36)


def _utc_now() -> str:
    return datetime.now(UTC).isoformat()


class RankingService:
    """Ranking lifecycle: create from a template, copy, share and co-own."""

    def __init__(
        self,
        ranking_repo: RankingRepo,
        template_repo: TemplateRepo,
        *,
        id_factory: Callable[[], str] = generate_id,
        token_factory: Callable[[], str] = generate_token,
        clock: Callable[[], str] = _utc_now,
    ) -> None:
        self._rankings = ranking_repo
        self._templates = template_repo
        self._new_id = id_factory
        self._new_token = token_factory
        self._now = clock

    def _require(self, ranking_id: str) -> Ranking:
        ranking = self._rankings.get(ranking_id)
        if ranking is None:
            raise RankingNotFoundError(ranking_id)
        return ranking

    def create(self, template_id: str, owner_id: str, title: str | None = None) -> Ranking:
        """Snapshot the template and start a ranking with every card in the unranked pool."""
        if title is not None and len(title) > TITLE_MAX:
            raise TemplateValidationError(f"Title must be at most {TITLE_MAX} characters")
        template = self._templates.get(template_id)
        if template is None:
            raise TemplateNotFoundError(template_id)

        snapshot = TemplateSnapshot(
            tiers=template.tiers,
            columns=template.columns,
            cards=template.cards,
            snapshot_at=self._now(),
        )
        ranking = Ranking(
            id=self._new_id(),
            owner_id=owner_id,
            title=title or f"{template.title} - My Tierlist"[:TITLE_MAX],
            template_id=template.id,
            share=ShareSettings(view_token=self._new_token(), edit_token=self._new_token()),
            snapshot=snapshot,
            placements=tuple(
                Placement(card_id=card.id, tier_id=None, column_id=None, order_index=card.order_index)
                for card in template.cards
            ),
        )
        self._rankings.upsert(ranking)
        logger.info("Created ranking %s from template %s (%d cards)", ranking.id, template.id, len(template.cards))
        return ranking

    def copy(self, ranking_id: str, owner_id: str) -> Ranking:
        source = self._require(ranking_id)
        copied = replace(
            source,
            id=self._new_id(),
            owner_id=owner_id,
            title=f"{source.title} (Copy)"[:TITLE_MAX],
            share=ShareSettings(view_token=self._new_token(), edit_token=self._new_token()),
            co_owner_ids=(),
            created_at=None,
            updated_at=None,
        )
        self._rankings.upsert(copied)
        logger.info("Copied ranking %s to %s", source.id, copied.id)
        return copied

    def update_share(
        self,
        ranking_id: str,
        *,
        view_enabled: bool | None = None,
        edit_enabled: bool | None = None,
    ) -> ShareSettings:
        ranking = self._require(ranking_id)
        share = ranking.share
        if view_enabled is not None:
            share = replace(share, view_enabled=view_enabled)
        if edit_enabled is not None:
            share = replace(share, edit_enabled=edit_enabled)
        self._rankings.set_share(ranking_id, share)
        return share

    def regenerate_tokens(self, ranking_id: str, *, view: bool = False, edit: bool = False) -> ShareSettings:
        """Issue new share tokens. A new edit token also revokes every co-owner."""
        ranking = self._require(ranking_id)
        share = ranking.share
        if view:
            share = replace(share, view_token=self._new_token())
        if edit:
            share = replace(share, edit_token=self._new_token())
            self._rankings.clear_co_owners(ranking_id)
            logger.info("Revoked co-owners of ranking %s", ranking_id)
        if share != ranking.share:
            self._rankings.set_share(ranking_id, share)
        return share

    def join(self, edit_token: str, user_id: str) -> Ranking:
        ranking = self._rankings.get_by_edit_token(edit_token)
        if ranking is None or not ranking.share.edit_enabled:
            raise EditSharingDisabledError()
        if user_id != ranking.owner_id and user_id not in ranking.co_owner_ids:
            self._rankings.add_co_owner(ranking.id, user_id)
            ranking = replace(ranking, co_owner_ids=(*ranking.co_owner_ids, user_id))
        return ranking

    def view(self, view_token: str) -> Ranking | None:
        ranking = self._rankings.get_by_view_token(view_token)
        if ranking is None or not ranking.share.view_enabled:
            return None
        return ranking

    def leave(self, ranking_id: str, user_id: str) -> None:
        if not self._rankings.remove_co_owner(ranking_id, user_id):
            raise NotCoOwnerError(ranking_id, user_id)
