from dataclasses import dataclass
from enum import StrEnum


class Origin(StrEnum):
    PERSISTED = "persisted"
    SYNTHETIC = "synthetic"


@dataclass(frozen=True)
class Tier:
    id: str
    name: str
    color: str
    order_index: int
    origin: Origin = Origin.PERSISTED


@dataclass(frozen=True)
class Column:
    id: str
    order_index: int
    name: str | None = None
    color: str | None = None
    origin: Origin = Origin.PERSISTED


@dataclass(frozen=True)
class Card:
    id: str
    title: str
    order_index: int
    image_url: str | None = None
    description: str | None = None
    origin: Origin = Origin.PERSISTED
