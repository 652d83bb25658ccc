"""Drop-target detection for drag gestures.

Two detectors produce candidates: exact pointer containment and bounding
rectangle intersection. ``resolve_collision`` then picks one target,
preferring precise pointer hits over rectangle overlap and, among pointer
hits, cards over containers so that dropping onto a card can set the
insertion point.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from tierboard.domain.drag import CardHandle, Collision, is_container

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tierboard.domain.drag import Droppable, DropHandle, Point, Rect


def _distance(a: Point, b: Point) -> float:
    return math.hypot(a.x - b.x, a.y - b.y)


def pointer_within(pointer: Point | None, droppables: Sequence[Droppable]) -> list[Collision]:
    """Droppables whose rect contains the pointer, nearest (mean corner distance) first."""
    if pointer is None:
        return []
    hits: list[Collision] = []
    for droppable in droppables:
        if not droppable.rect.contains(pointer):
            continue
        corners = droppable.rect.corners()
        score = sum(_distance(pointer, corner) for corner in corners) / len(corners)
        hits.append(Collision(handle=droppable.handle, score=score))
    return sorted(hits, key=lambda c: c.score)


def _intersection_ratio(a: Rect, b: Rect) -> float:
    width = min(a.right, b.right) - max(a.left, b.left)
    height = min(a.bottom, b.bottom) - max(a.top, b.top)
    if width <= 0 or height <= 0:
        return 0.0
    overlap = width * height
    union = a.area + b.area - overlap
    return overlap / union if union > 0 else 0.0


def rect_intersection(active: Rect, droppables: Sequence[Droppable]) -> list[Collision]:
    """Droppables overlapping the dragged rect, largest intersection ratio first."""
    hits: list[Collision] = []
    for droppable in droppables:
        ratio = _intersection_ratio(active, droppable.rect)
        if ratio > 0:
            hits.append(Collision(handle=droppable.handle, score=ratio))
    return sorted(hits, key=lambda c: c.score, reverse=True)


def resolve_collision(pointer_hits: Sequence[Collision], rect_hits: Sequence[Collision]) -> DropHandle | None:
    merged: list[Collision] = list(pointer_hits)
    seen = {c.handle for c in merged}
    for hit in rect_hits:
        if hit.handle not in seen:
            merged.append(hit)
            seen.add(hit.handle)

    if not merged:
        return None

    for hit in pointer_hits:
        if isinstance(hit.handle, CardHandle):
            return hit.handle
    for hit in pointer_hits:
        if is_container(hit.handle):
            return hit.handle
    for hit in merged:
        if is_container(hit.handle):
            return hit.handle
    for hit in merged:
        if isinstance(hit.handle, CardHandle):
            return hit.handle
    return merged[0].handle


def detect_drop_target(
    pointer: Point | None,
    active: Rect,
    droppables: Sequence[Droppable],
) -> DropHandle | None:
    return resolve_collision(pointer_within(pointer, droppables), rect_intersection(active, droppables))
