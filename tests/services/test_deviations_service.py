"""
Unit tests for the deviations service.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from pydantic import ValidationError

from trafiklab.schemas.departures import TransportMode
from trafiklab.schemas.deviations import DeviationsRequest, DeviationsResponse
from trafiklab.services.deviations_service import (
    DeviationsAPIError,
    DeviationsDataError,
    DeviationsNetworkError,
    DeviationsService,
)


@pytest.fixture
def deviations_service():
    """Create a deviations service instance for testing."""
    return DeviationsService(base_url="https://deviations.example.test")


@pytest.fixture
def sample_deviations_response():
    """Sample /v1/messages response."""
    return [
        {
            "version": 3,
            "created": "2024-01-10T08:00:00.000+01:00",
            "modified": "2024-01-12T09:30:00.000+01:00",
            "deviation_case_id": 12345,
            "publish": {"from": "2024-01-10T08:00:00.000+01:00", "upto": "2024-02-01T04:00:00.000+01:00"},
            "priority": {"importance_level": 5, "influence_level": 3, "urgency_level": 1},
            "message_variants": [
                {
                    "header": "Hissen ur funktion",
                    "details": "Hissen vid Slussen är ur funktion.",
                    "scope_alias": "Slussen",
                    "language": "sv",
                },
                {
                    "header": "Lift out of service",
                    "details": "The lift at Slussen is out of service.",
                    "scope_alias": "Slussen",
                    "weblink": "https://sl.se",
                    "language": "en",
                },
            ],
            "scope": {
                "stop_areas": [
                    {
                        "id": 1011,
                        "transport_authority": 1,
                        "name": "Slussen",
                        "type": "METROSTN",
                        "stop_points": [{"id": 1011, "name": "Slussen"}],
                    }
                ],
                "lines": [
                    {
                        "id": 14,
                        "transport_authority": 1,
                        "designation": "14",
                        "transport_mode": "METRO",
                        "name": "Röda linjen",
                        "group_of_lines": "Tunnelbanans röda linje",
                    }
                ],
            },
        }
    ]


@pytest.mark.asyncio
async def test_deviations_success(deviations_service, sample_deviations_response):
    """Test listing deviation messages."""
    with patch.object(deviations_service, "_get_client") as mock_client:
        mock_http = MagicMock()
        mock_http.get = AsyncMock(return_value=httpx.Response(200, json=sample_deviations_response))
        mock_client.return_value = mock_http

        response = await deviations_service.deviations()

        call_args = mock_http.get.call_args

    assert call_args[0][0] == "/v1/messages"
    assert call_args[1]["params"] == []
    assert isinstance(response, DeviationsResponse)
    assert len(response) == 1

    message = next(iter(response))
    assert message.deviation_case_id == 12345
    assert message.publish.from_time == datetime(
        2024, 1, 10, 8, 0, tzinfo=timezone(timedelta(hours=1))
    )
    assert message.priority.importance_level == 5
    assert message.scope.lines[0].transport_mode == "METRO"
    assert message.scope.stop_areas[0].stop_points[0].name == "Slussen"


@pytest.mark.asyncio
async def test_deviations_request_params(deviations_service):
    """Test that filters are sent as repeated parameters."""
    request = DeviationsRequest(
        future=True,
        transport_authority=1,
        line_numbers=[14, 17],
        transport_modes=[TransportMode.METRO, TransportMode.BUS],
        site_ids=[1011],
    )

    with patch.object(deviations_service, "_get_client") as mock_client:
        mock_http = MagicMock()
        mock_http.get = AsyncMock(return_value=httpx.Response(200, json=[]))
        mock_client.return_value = mock_http

        response = await deviations_service.deviations(request)

        params = mock_http.get.call_args[1]["params"]

    assert params == [
        ("transport_mode", "METRO"),
        ("transport_mode", "BUS"),
        ("line", "14"),
        ("line", "17"),
        ("site", "1011"),
        ("future", "true"),
        ("transport_authority", "1"),
    ]
    assert len(response) == 0


def test_deviations_request_rejects_unknown_mode():
    """Test that transport modes are validated."""
    with pytest.raises(ValidationError):
        DeviationsRequest(transport_modes=["ROCKET"])


def test_message_variant_by_language(sample_deviations_response):
    """Test picking a message variant with fallback to the first one."""
    message = next(iter(DeviationsResponse.model_validate(sample_deviations_response)))

    assert message.variant("en").header == "Lift out of service"
    assert message.variant("de").header == "Hissen ur funktion"


@pytest.mark.asyncio
async def test_deviations_http_error_status(deviations_service):
    """Test that non-200 responses raise an API error."""
    with patch.object(deviations_service, "_get_client") as mock_client:
        mock_http = MagicMock()
        mock_http.get = AsyncMock(return_value=httpx.Response(500, text="error"))
        mock_client.return_value = mock_http

        with pytest.raises(DeviationsAPIError, match="500"):
            await deviations_service.deviations()


@pytest.mark.asyncio
async def test_deviations_unexpected_json(deviations_service):
    """Test that an object instead of a list raises a data error."""
    with patch.object(deviations_service, "_get_client") as mock_client:
        mock_http = MagicMock()
        mock_http.get = AsyncMock(return_value=httpx.Response(200, json={"messages": []}))
        mock_client.return_value = mock_http

        with pytest.raises(DeviationsDataError):
            await deviations_service.deviations()


@pytest.mark.asyncio
async def test_deviations_network_error(deviations_service):
    """Test that connection failures raise a network error."""
    with patch.object(deviations_service, "_get_client") as mock_client:
        mock_http = MagicMock()
        mock_http.get = AsyncMock(side_effect=httpx.ConnectError("connection refused"))
        mock_client.return_value = mock_http

        with pytest.raises(DeviationsNetworkError):
            await deviations_service.deviations()


@pytest.mark.asyncio
async def test_close(deviations_service):
    """Test that close releases the HTTP client."""
    deviations_service._get_client()

    await deviations_service.close()

    assert deviations_service._client is None
