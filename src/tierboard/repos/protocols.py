import builtins
from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from tierboard.domain.display_settings import DisplaySettings
from tierboard.domain.placement import Placement
from tierboard.domain.ranking import Ranking, ShareSettings
from tierboard.domain.template import Template


@runtime_checkable
class TemplateRepo(Protocol):
    def upsert(self, template: Template) -> str: ...
    def get(self, template_id: str) -> Template | None: ...
    def list(self, owner_id: str | None = None) -> builtins.list[Template]: ...
    def delete(self, template_id: str) -> bool: ...


@runtime_checkable
class RankingRepo(Protocol):
    def upsert(self, ranking: Ranking) -> str: ...
    def get(self, ranking_id: str) -> Ranking | None: ...
    def get_by_edit_token(self, token: str) -> Ranking | None: ...
    def get_by_view_token(self, token: str) -> Ranking | None: ...
    def list(self, owner_id: str | None = None) -> builtins.list[Ranking]: ...
    def delete(self, ranking_id: str) -> bool: ...
    def exists(self, ranking_id: str) -> bool: ...
    def get_placements(self, ranking_id: str) -> builtins.list[Placement]: ...
    def replace_placements(self, ranking_id: str, placements: Sequence[Placement]) -> None: ...
    def set_display_settings(self, ranking_id: str, overlay: DisplaySettings | None) -> None: ...
    def set_share(self, ranking_id: str, share: ShareSettings) -> None: ...
    def add_co_owner(self, ranking_id: str, user_id: str) -> None: ...
    def remove_co_owner(self, ranking_id: str, user_id: str) -> bool: ...
    def clear_co_owners(self, ranking_id: str) -> None: ...
