"""
Unit tests for Journey planner request and response models.
"""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from trafiklab.core.exceptions import InvalidFilterName
from trafiklab.core.timeutils import STOCKHOLM
from trafiklab.schemas.geo import Coordinates
from trafiklab.schemas.journeyplanner import (
    MOT_FLAG_PARAMS,
    StopFinderPosRequest,
    StopFinderResponse,
    StopFinderSearchRequest,
    TripsRequest,
    TripsResponse,
)


def _request(**overrides) -> TripsRequest:
    data = {
        "at": datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc),
        "num_trips": 3,
        "type_origin": "any",
        "name_origin": "9091001000009192",
        "type_destination": "any",
        "name_destination": "9091001000009001",
    }
    data.update(overrides)
    return TripsRequest(**data)


@pytest.mark.parametrize(
    "at, itd_date, itd_time",
    [
        (datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc), "20240115", "1130"),
        (datetime(2024, 7, 1, 13, 45, tzinfo=timezone.utc), "20240701", "1545"),
        (datetime(2024, 1, 15, 9, 15), "20240115", "1015"),
        (datetime(2024, 1, 15, 8, 0, tzinfo=STOCKHOLM), "20240115", "0800"),
    ],
)
def test_trips_request_local_date_and_time(at, itd_date, itd_time):
    """Test that the search time is sent in Stockholm local time."""
    params = dict(_request(at=at).to_params())

    assert params["itd_date"] == itd_date
    assert params["itd_time"] == itd_time


def test_trips_request_base_params():
    """Test the required parameters."""
    params = dict(_request().to_params())

    assert params["name_origin"] == "9091001000009192"
    assert params["type_origin"] == "any"
    assert params["name_destination"] == "9091001000009001"
    assert params["type_destination"] == "any"
    assert params["calc_number_of_trips"] == "3"
    assert "max_changes" not in params
    assert "language" not in params


def test_trips_request_includes_all_modes_by_default():
    """Test that every mode is included when no mot flags are given."""
    request = _request()
    params = dict(request.to_params())

    assert request.include_mot_flags == list(MOT_FLAG_PARAMS)
    for param in MOT_FLAG_PARAMS.values():
        assert params[param] == "true"


def test_trips_request_avoid_modes():
    """Test that avoided modes are disabled and the rest stay enabled."""
    params = dict(_request(avoid_mot_flags=["bus", "ship_ferry"]).to_params())

    assert params["incl_mot_5"] == "false"
    assert params["incl_mot_9"] == "false"
    assert params["incl_mot_2"] == "true"
    assert params["incl_mot_0"] == "true"


def test_trips_request_include_modes():
    """Test that only included modes are enabled."""
    params = dict(_request(include_mot_flags=["metro"]).to_params())

    assert params["incl_mot_2"] == "true"
    assert params["incl_mot_5"] == "false"
    assert params["incl_mot_19"] == "false"


def test_trips_request_coordinates_normalized():
    """Test that lat,lng coordinates are converted to the Trafiklab format."""
    request = _request(type_origin="coord", name_origin="59.335104,18.013809")

    assert request.name_origin == "18.013809:59.335104:WGS84[dd.ddddd]"
    assert dict(request.to_params())["type_origin"] == "coord"


def test_trips_request_trafiklab_coordinates_kept():
    """Test that coordinates already in Trafiklab format are accepted."""
    request = _request(
        type_destination="coord", name_destination="18.013809:59.335104:WGS84[dd.ddddd]"
    )

    assert request.name_destination == "18.013809:59.335104:WGS84[dd.ddddd]"


def test_trips_request_optional_params():
    """Test optional and repeated parameters."""
    request = _request(
        language="sv",
        max_changes=2,
        change_speed=150,
        route_type="leasttime",
        flags=["no_alt"],
        must_excl_lines=["17", "18"],
        use_only_operators=["SL"],
    )

    query = request.to_params()
    params = dict(query)

    assert params["language"] == "sv"
    assert params["max_changes"] == "2"
    assert params["change_speed"] == "150"
    assert params["route_type"] == "leasttime"
    assert params["no_alt"] == "true"
    assert [value for name, value in query if name == "must_excl_line"] == ["17", "18"]
    assert ("use_only_op", "SL") in query


@pytest.mark.parametrize(
    "overrides",
    [
        {"num_trips": 0},
        {"num_trips": 4},
        {"max_changes": 10},
        {"change_speed": 10},
        {"change_speed": 401},
        {"max_time_pedestrian": 121},
        {"language": "de"},
        {"route_type": "fastest"},
        {"flags": ["unknown_flag"]},
        {"include_mot_flags": ["rocket"]},
        {"avoid_mot_flags": ["bus"], "include_mot_flags": ["metro"]},
        {"type_origin": "coord", "name_origin": "not a coordinate"},
        {"type_origin": "stop"},
        {"name_origin": ""},
    ],
)
def test_trips_request_validation(overrides):
    """Test that invalid requests are rejected."""
    with pytest.raises(ValidationError):
        _request(**overrides)


def test_stop_finder_search_params():
    """Test stop finder parameters for a name search."""
    request = StopFinderSearchRequest(name="Slussen", filter=["stop", "poi"])

    assert request.to_params() == {
        "name_sf": "Slussen",
        "type_sf": "any",
        "any_obj_filter_sf": "34",
    }


def test_stop_finder_pos_params():
    """Test stop finder parameters for a position search."""
    request = StopFinderPosRequest(
        position=Coordinates(latitude=59.319, longitude=18.072), filter=["stop"]
    )

    params = request.to_params()

    assert params["name_sf"] == "18.072000:59.319000:WGS84[dd.ddddd]"
    assert params["type_sf"] == "coord"
    assert params["any_obj_filter_sf"] == "2"


@pytest.mark.parametrize("names", [[], ["bus"]])
def test_stop_finder_invalid_filter(names):
    """Test that invalid filters fail before any request is built."""
    request = StopFinderSearchRequest(name="Slussen", filter=names)

    with pytest.raises(InvalidFilterName):
        request.to_params()


def test_trips_response_parsing():
    """Test parsing a journey with camelCase keys."""
    data = {
        "systemMessages": [
            {"type": "warning", "module": "BROKER", "code": -8011, "text": "", "subType": ""}
        ],
        "journeys": [
            {
                "tripId": "abc",
                "tripDuration": 1200,
                "interchanges": 1,
                "legs": [
                    {
                        "distance": 250,
                        "duration": 180,
                        "origin": {
                            "id": "9091001000009192",
                            "name": "Slussen, Stockholm",
                            "coord": [59.3195, 18.0722],
                            "departureTimePlanned": "2024-01-15T10:30:00Z",
                            "parent": {"id": "9091001000009192", "name": "Slussen"},
                        },
                        "transportation": {
                            "number": 17,
                            "product": {"id": 2, "class": 2, "name": "Tunnelbana"},
                            "destination": {"name": "Åkeshov"},
                        },
                        "coords": [[59.3195, 18.0722], [59.3203, 18.0690]],
                    }
                ],
            }
        ],
    }

    response = TripsResponse.model_validate(data)

    assert response.system_messages[0].code == -8011
    journey = response.journeys[0]
    assert journey.id == "abc"
    assert journey.duration == 1200
    leg = journey.legs[0]
    assert leg.transportation.number == "17"
    assert leg.transportation.product.product_class == 2
    assert leg.origin.parent.name == "Slussen"
    assert leg.origin.departure_time_planned == datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
    assert leg.coords[1] == [59.3203, 18.0690]


def test_trips_response_lowercase_system_messages():
    """Test that the lowercase systemmessages key is accepted."""
    response = TripsResponse.model_validate(
        {"systemmessages": [{"type": "error", "code": -4050, "text": "no trips"}]}
    )

    assert response.system_messages[0].type == "error"
    assert response.journeys == []


def test_stop_finder_response_parsing():
    """Test that coordinates arrive as a [lat, lon] array."""
    data = {
        "locations": [
            {
                "id": "9091001000009192",
                "isGlobalId": True,
                "name": "Slussen, Stockholm",
                "disassembledName": "Slussen",
                "coord": [59.3195, 18.0722],
                "type": "stop",
                "matchQuality": 1000,
                "isBest": True,
                "productClasses": [0, 2, 5],
                "parent": {"id": "91000", "name": "Stockholm", "type": "locality"},
            },
            {"id": "streetID:1", "name": "Götgatan", "type": "street"},
        ]
    }

    response = StopFinderResponse.model_validate(data)

    best = response.locations[0]
    assert best.is_best
    assert best.coordinates == Coordinates(latitude=59.3195, longitude=18.0722)
    assert best.parent.name == "Stockholm"
    assert best.product_classes == [0, 2, 5]
    assert response.locations[1].coordinates is None


def test_stop_finder_response_bad_coordinates():
    """Test that coordinate arrays of the wrong size are rejected."""
    with pytest.raises(ValidationError):
        StopFinderResponse.model_validate({"locations": [{"coord": [59.3]}]})
