from dataclasses import dataclass

type CellKey = tuple[str | None, str | None]

UNRANKED: CellKey = (None, None)


@dataclass(frozen=True)
class Placement:
    card_id: str
    tier_id: str | None
    column_id: str | None
    order_index: int

    @property
    def cell(self) -> CellKey:
        return (self.tier_id, self.column_id)

    @property
    def is_unranked(self) -> bool:
        return self.tier_id is None
