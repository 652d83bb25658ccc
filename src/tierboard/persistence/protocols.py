from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from tierboard.domain.display_settings import DisplaySettings
from tierboard.domain.placement import Placement
from tierboard.domain.ranking import RankingBase


@runtime_checkable
class PersistenceService(Protocol):
    """Storage the grid core reads a ranking from and saves it back to.

    Both writes replace the whole document; the last write wins.
    """

    def get_effective_base(self, ranking_id: str) -> RankingBase: ...

    def replace_placements(self, ranking_id: str, placements: Sequence[Placement]) -> None: ...

    def replace_overlay(self, ranking_id: str, overlay: DisplaySettings | None) -> None: ...
