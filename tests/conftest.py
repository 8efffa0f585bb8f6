import pytest

from trafiklab.schemas.travelplanner import Leg, Location


@pytest.fixture
def make_leg():
    """Factory for legs with named origin and destination."""

    def _make_leg(leg_type: str, distance: int = 0, origin: str = "", destination: str = "") -> Leg:
        return Leg(
            type=leg_type,
            distance=distance,
            origin=Location(name=origin),
            destination=Location(name=destination),
        )

    return _make_leg
