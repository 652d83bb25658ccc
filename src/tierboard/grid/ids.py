import random
import string
import time
from collections.abc import Callable
from enum import StrEnum

_BASE36 = string.digits + string.ascii_lowercase


class SyntheticKind(StrEnum):
    CARD = "qe"
    TIER = "qe-tier"
    COLUMN = "qe-col"


type IdFactory = Callable[[SyntheticKind], str]


def _random_suffix(rng: random.Random, length: int = 6) -> str:
    return "".join(rng.choice(_BASE36) for _ in range(length))


def mint_synthetic_id(
    kind: SyntheticKind,
    *,
    clock: Callable[[], float] = time.time,
    rng: random.Random | None = None,
) -> str:
    """Client-side id for a quick-edit addition: ``<prefix>-<epoch ms>-<6 base-36 chars>``.

    The timestamp plus random suffix makes collisions with server-issued ids
    negligible without a round trip. Ownership is tracked by ``Origin``, not
    by this prefix.
    """
    millis = int(clock() * 1000)
    return f"{kind.value}-{millis}-{_random_suffix(rng or random.Random())}"
