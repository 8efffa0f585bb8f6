"""
Unit tests for the traffic status service.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from trafiklab.schemas.traffic_status import EventIcon
from trafiklab.services.traffic_status_service import (
    TrafficStatusAPIError,
    TrafficStatusDataError,
    TrafficStatusNetworkError,
    TrafficStatusService,
)

TRAFFIC_SITUATION_XML = """<?xml version="1.0" encoding="utf-8"?>
<ResponseOfTrafficSituationResponse xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance">
  <StatusCode>0</StatusCode>
  <ExecutionTime>3</ExecutionTime>
  <ResponseData>
    <TrafficTypes>
      <TrafficType Name="Tunnelbana" Type="metro" StatusIcon="EventGood" Expanded="false" HasPlannedEvent="false">
        <Events />
      </TrafficType>
      <TrafficType Name="Pendeltåg" Type="train" StatusIcon="EventMinor" Expanded="true" HasPlannedEvent="true">
        <Events>
          <TrafficEvent>
            <EventId>401</EventId>
            <Message>Förseningar mellan Södertälje och Flemingsberg.</Message>
            <Expanded>true</Expanded>
            <Planned>false</Planned>
            <SortIndex>1</SortIndex>
            <StatusIcon>EventMinor</StatusIcon>
            <TrafficLine>Pendeltåg</TrafficLine>
            <LineNumbers>40, 48</LineNumbers>
            <EventInfoUrl>https://sl.se/trafikläget</EventInfoUrl>
          </TrafficEvent>
          <TrafficEvent>
            <EventId>402</EventId>
            <Message>Inställda tåg i helgen.</Message>
            <Planned>true</Planned>
            <SortIndex>2</SortIndex>
            <StatusIcon>EventPlanned</StatusIcon>
            <EventInfoURL>https://sl.se/planerat</EventInfoURL>
          </TrafficEvent>
        </Events>
      </TrafficType>
    </TrafficTypes>
  </ResponseData>
</ResponseOfTrafficSituationResponse>
""".encode("utf-8")

TRAFFIC_SITUATION_ERROR_XML = b"""<?xml version="1.0" encoding="utf-8"?>
<ResponseOfTrafficSituationResponse>
  <StatusCode>1007</StatusCode>
  <Message>Too many requests per month</Message>
</ResponseOfTrafficSituationResponse>
"""


def _mock_http(response):
    mock_http = MagicMock()
    mock_http.get = AsyncMock(return_value=response)
    return mock_http


@pytest.fixture
def traffic_status_service():
    """Create a traffic status service instance for testing."""
    return TrafficStatusService(api_key="status-key", base_url="https://api.example.test/api2")


@pytest.mark.asyncio
async def test_overview_success(traffic_status_service):
    """Test parsing the traffic situation overview."""
    with patch.object(traffic_status_service, "_get_client") as mock_client:
        mock_http = _mock_http(httpx.Response(200, content=TRAFFIC_SITUATION_XML))
        mock_client.return_value = mock_http

        response = await traffic_status_service.overview()

        call_args = mock_http.get.call_args

    assert call_args[0][0] == "/trafficsituation.xml"
    assert call_args[1]["params"] == {"key": "status-key"}
    assert response.execution_time == 3
    assert [t.type for t in response.traffic_types] == ["metro", "train"]

    metro, train = response.traffic_types
    assert metro.is_good
    assert metro.events == []
    assert not train.is_good
    assert train.status_icon == EventIcon.MINOR
    assert train.expanded
    assert train.has_planned_event

    delay, planned = train.events
    assert delay.event_id == 401
    assert delay.line_numbers == "40, 48"
    assert delay.expanded
    assert not delay.planned
    assert delay.event_info_url == "https://sl.se/trafikläget"
    assert planned.planned
    assert planned.event_info_url == "https://sl.se/planerat"
    assert planned.status_icon == EventIcon.PLANNED


@pytest.mark.asyncio
async def test_overview_without_key():
    """Test that no key parameter is sent when none is configured."""
    service = TrafficStatusService(api_key="", base_url="https://api.example.test/api2")

    with patch.object(service, "_get_client") as mock_client:
        mock_http = _mock_http(httpx.Response(200, content=TRAFFIC_SITUATION_XML))
        mock_client.return_value = mock_http

        await service.overview()

        assert mock_http.get.call_args[1]["params"] == {}


@pytest.mark.asyncio
async def test_overview_status_code_error(traffic_status_service):
    """Test that a non-zero StatusCode raises an API error."""
    with patch.object(traffic_status_service, "_get_client") as mock_client:
        mock_client.return_value = _mock_http(
            httpx.Response(200, content=TRAFFIC_SITUATION_ERROR_XML)
        )

        with pytest.raises(TrafficStatusAPIError, match="1007"):
            await traffic_status_service.overview()


@pytest.mark.asyncio
async def test_overview_http_error_status(traffic_status_service):
    """Test that non-200 responses raise an API error."""
    with patch.object(traffic_status_service, "_get_client") as mock_client:
        mock_client.return_value = _mock_http(httpx.Response(502, text="Bad Gateway"))

        with pytest.raises(TrafficStatusAPIError, match="502"):
            await traffic_status_service.overview()


@pytest.mark.asyncio
async def test_overview_invalid_xml(traffic_status_service):
    """Test that malformed XML raises a data error."""
    with patch.object(traffic_status_service, "_get_client") as mock_client:
        mock_client.return_value = _mock_http(httpx.Response(200, content=b"not xml"))

        with pytest.raises(TrafficStatusDataError):
            await traffic_status_service.overview()


@pytest.mark.asyncio
async def test_overview_network_error(traffic_status_service):
    """Test that connection failures raise a network error."""
    with patch.object(traffic_status_service, "_get_client") as mock_client:
        mock_http = MagicMock()
        mock_http.get = AsyncMock(side_effect=httpx.ConnectError("connection refused"))
        mock_client.return_value = mock_http

        with pytest.raises(TrafficStatusNetworkError):
            await traffic_status_service.overview()
