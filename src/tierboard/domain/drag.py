from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from tierboard.domain.placement import UNRANKED, CellKey

_CARD_PREFIX = "card-"
_CELL_PREFIX = "cell:"
_UNRANKED_KEY = "unassigned"


@dataclass(frozen=True)
class CardHandle:
    card_id: str

    @property
    def key(self) -> str:
        return f"{_CARD_PREFIX}{self.card_id}"


@dataclass(frozen=True)
class CellHandle:
    tier_id: str
    column_id: str

    @property
    def key(self) -> str:
        return f"{_CELL_PREFIX}{self.tier_id}:{self.column_id}"

    @property
    def cell(self) -> CellKey:
        return (self.tier_id, self.column_id)


@dataclass(frozen=True)
class UnrankedHandle:
    @property
    def key(self) -> str:
        return _UNRANKED_KEY

    @property
    def cell(self) -> CellKey:
        return UNRANKED


type DropHandle = CardHandle | CellHandle | UnrankedHandle


def parse_handle(key: str) -> DropHandle | None:
    """Parse a handle key (``card-<id>``, ``cell:<tier>:<col>``, ``unassigned``)."""
    if key == _UNRANKED_KEY:
        return UnrankedHandle()
    if key.startswith(_CARD_PREFIX):
        return CardHandle(key[len(_CARD_PREFIX) :])
    if key.startswith(_CELL_PREFIX):
        parts = key.split(":")
        if len(parts) == 3 and parts[1] and parts[2]:
            return CellHandle(parts[1], parts[2])
    return None


def is_container(handle: DropHandle) -> bool:
    return isinstance(handle, CellHandle | UnrankedHandle)


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Rect:
    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def area(self) -> float:
        return self.width * self.height

    def contains(self, point: Point) -> bool:
        return self.left <= point.x <= self.right and self.top <= point.y <= self.bottom

    def corners(self) -> tuple[Point, Point, Point, Point]:
        return (
            Point(self.left, self.top),
            Point(self.right, self.top),
            Point(self.left, self.bottom),
            Point(self.right, self.bottom),
        )


@dataclass(frozen=True)
class Droppable:
    handle: DropHandle
    rect: Rect


@dataclass(frozen=True)
class Collision:
    handle: DropHandle
    score: float


class DragPhase(StrEnum):
    IDLE = "idle"
    DRAGGING = "dragging"
