"""
Polyline decoding for HAFAS leg geometries.
"""

from typing import List, Sequence, Tuple

from trafiklab.core.exceptions import MalformedPolyline


def decode_polyline(values: Sequence[float], delta: bool) -> List[Tuple[float, float]]:
    """
    Turn a flat coordinate sequence into (x, y) pairs.

    When delta is set, the first pair is absolute and every following
    value is an offset from the previous point on the same axis.

    Raises:
        MalformedPolyline: If the sequence has an odd length
    """
    if len(values) % 2 != 0:
        raise MalformedPolyline(
            f"expected an even number of coordinates, got {len(values)}"
        )

    path: List[Tuple[float, float]] = []
    for i in range(0, len(values), 2):
        x, y = values[i], values[i + 1]
        if delta and path:
            prev_x, prev_y = path[-1]
            x, y = prev_x + x, prev_y + y
        path.append((x, y))

    return path
