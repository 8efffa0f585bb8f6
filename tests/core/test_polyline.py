"""
Unit tests for polyline decoding.
"""

import pytest

from trafiklab.core.exceptions import MalformedPolyline
from trafiklab.core.polyline import decode_polyline
from trafiklab.schemas.travelplanner import Polyline


def test_decode_absolute():
    """Test that absolute coordinates are only paired up."""
    assert decode_polyline([1, 2, 3, 4], delta=False) == [(1, 2), (3, 4)]


def test_decode_delta():
    """Test that the second pair is the first pair plus the deltas."""
    assert decode_polyline([1, 2, 3, 4], delta=True) == [(1, 2), (4, 6)]


def test_decode_delta_running_sums_per_axis():
    """Test that x and y accumulate independently across the whole sequence."""
    path = decode_polyline([10, 20, 1, 1, 1, -2, -5, 0], delta=True)

    assert path == [(10, 20), (11, 21), (12, 19), (7, 19)]


def test_decode_output_length():
    """Test that the output has half as many points as input values."""
    values = [float(i) for i in range(40)]

    assert len(decode_polyline(values, delta=True)) == 20
    assert len(decode_polyline(values, delta=False)) == 20


def test_decode_empty():
    """Test decoding of an empty sequence."""
    assert decode_polyline([], delta=True) == []


@pytest.mark.parametrize("delta", [True, False])
def test_decode_odd_length(delta):
    """Test that an odd number of values fails."""
    with pytest.raises(MalformedPolyline):
        decode_polyline([1, 2, 3], delta=delta)


def test_polyline_lat_lng():
    """Test decoding through the leg polyline model."""
    polyline = Polyline(delta=True, dim="2", crd=[18.0, 59.0, 0.5, 0.25])

    path = polyline.lat_lng()

    assert path[0] == (18.0, 59.0)
    assert path[1] == pytest.approx((18.5, 59.25))
