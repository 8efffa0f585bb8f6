"""
Trip Leg Processing

Helpers that clean up the leg list of a planned trip for display and
walk it together with its transport neighbours.

Legs are any pydantic models exposing ``type``, ``distance`` and
``destination``; ``type == "WALK"`` marks a walking segment.
"""

import logging
from typing import Callable, Iterator, List, NamedTuple, Optional, Sequence, TypeVar

from pydantic import BaseModel

logger = logging.getLogger(__name__)

WALK = "WALK"

# Walks at the start or end of a trip shorter than this are dropped
MIN_WALK_DISTANCE = 40
# Walks between two transport legs shorter than this are dropped
MIN_INTERMEDIATE_WALK_DISTANCE = 150

LegT = TypeVar("LegT", bound=BaseModel)

LegVisitor = Callable[
    [LegT, Optional[LegT], Optional[LegT], Optional[LegT], Optional[LegT], int], None
]


class LegContext(NamedTuple):
    """A leg together with its neighbours. Missing neighbours are None."""

    index: int
    leg: BaseModel
    prev_leg: Optional[BaseModel]
    prev_transport_leg: Optional[BaseModel]
    next_leg: Optional[BaseModel]
    next_transport_leg: Optional[BaseModel]


def is_walk(leg: BaseModel) -> bool:
    return getattr(leg, "type", None) == WALK


def merge_adjacent_walks(legs: Sequence[LegT]) -> List[LegT]:
    """
    Merge runs of consecutive walk legs into a single walk leg.

    The merged leg keeps the origin of the first walk, the destination of
    the last one and the summed distance. Input legs are not modified.
    """
    merged: List[LegT] = []
    for leg in legs:
        if not is_walk(leg):
            merged.append(leg)
            continue

        if merged and is_walk(merged[-1]):
            prev_walk = merged[-1]
            merged[-1] = prev_walk.model_copy(
                update={
                    "distance": prev_walk.distance + leg.distance,
                    "destination": leg.destination,
                }
            )
        else:
            merged.append(leg)

    return merged


def drop_short_walks(
    legs: Sequence[LegT],
    min_walk_distance: int = MIN_WALK_DISTANCE,
    min_intermediate_walk_distance: int = MIN_INTERMEDIATE_WALK_DISTANCE,
) -> List[LegT]:
    """
    Remove short walk legs.

    A walk is intermediate once a transport leg has been seen and it is not
    the last leg of the trip. Intermediate walks must be longer than
    min_intermediate_walk_distance, other walks longer than
    min_walk_distance.
    """
    kept: List[LegT] = []
    seen_transport = False
    last = len(legs) - 1

    for i, leg in enumerate(legs):
        if not is_walk(leg):
            seen_transport = True
            kept.append(leg)
            continue

        intermediate = seen_transport and i != last
        threshold = min_intermediate_walk_distance if intermediate else min_walk_distance
        if leg.distance > threshold:
            kept.append(leg)

    return kept


def combine_walks(
    legs: Sequence[LegT],
    min_walk_distance: int = MIN_WALK_DISTANCE,
    min_intermediate_walk_distance: int = MIN_INTERMEDIATE_WALK_DISTANCE,
) -> List[LegT]:
    """
    Merge adjacent walk legs and drop the short ones.

    Args:
        legs: Legs of a trip in traversal order
        min_walk_distance: Threshold in meters for leading and trailing walks
        min_intermediate_walk_distance: Threshold in meters for walks between
            transport legs

    Returns:
        A new list of legs, order preserved. Surviving legs keep their
        provider idx; they are not renumbered.
    """
    merged = merge_adjacent_walks(legs)
    combined = drop_short_walks(merged, min_walk_distance, min_intermediate_walk_distance)

    logger.debug(
        "Combined walks: %d legs in, %d after merge, %d out", len(legs), len(merged), len(combined)
    )
    return combined


def iter_leg_context(legs: Sequence[LegT]) -> Iterator[LegContext]:
    """
    Yield every leg with its previous/next leg and the nearest previous/next
    transport (non-walk) leg.
    """
    prev_leg: Optional[LegT] = None
    prev_transport_leg: Optional[LegT] = None

    for i, leg in enumerate(legs):
        next_leg = legs[i + 1] if i + 1 < len(legs) else None
        next_transport_leg = next((ahead for ahead in legs[i + 1 :] if not is_walk(ahead)), None)

        yield LegContext(i, leg, prev_leg, prev_transport_leg, next_leg, next_transport_leg)

        prev_leg = leg
        if not is_walk(leg):
            prev_transport_leg = leg


def each_leg_contextual(legs: Sequence[LegT], visit: LegVisitor) -> None:
    """
    Call visit(leg, prev_leg, prev_transport_leg, next_leg, next_transport_leg, i)
    for every leg in order.

    An exception raised by visit stops the iteration and propagates to the
    caller unchanged.
    """
    for ctx in iter_leg_context(legs):
        visit(
            ctx.leg,
            ctx.prev_leg,
            ctx.prev_transport_leg,
            ctx.next_leg,
            ctx.next_transport_leg,
            ctx.index,
        )
