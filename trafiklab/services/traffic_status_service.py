"""
Traffic Status Service

This service interfaces with SL's traffic situation API, an overview of
the current status per mode of transport with its ongoing and planned
events.

API Endpoint: https://api.sl.se/api2/trafficsituation.xml
"""

import logging
from typing import Optional

import httpx
from lxml import etree
from pydantic import ValidationError

from trafiklab.core import xmlutils
from trafiklab.core.config import settings
from trafiklab.schemas.traffic_status import TrafficStatusResponse

logger = logging.getLogger(__name__)

TRAFFIC_SITUATION_PATH = "/trafficsituation.xml"

RESPONSE_FIELDS = {
    "StatusCode": "status_code",
    "Message": "message",
    "ExecutionTime": "execution_time",
}

TRAFFIC_TYPE_ATTRS = {
    "Name": "name",
    "Type": "type",
    "StatusIcon": "status_icon",
    "Expanded": "expanded",
    "HasPlannedEvent": "has_planned_event",
}

TRAFFIC_EVENT_FIELDS = {
    "EventId": "event_id",
    "Message": "message",
    "LineNumbers": "line_numbers",
    "Expanded": "expanded",
    "Planned": "planned",
    "SortIndex": "sort_index",
    "TrafficLine": "traffic_line",
    "EventInfoUrl": "event_info_url",
    "StatusIcon": "status_icon",
}


class TrafficStatusServiceError(Exception):
    """Base exception for traffic status service errors."""


class TrafficStatusAPIError(TrafficStatusServiceError):
    """Raised when the traffic situation API returns an error."""


class TrafficStatusNetworkError(TrafficStatusServiceError):
    """Raised when network communication fails."""


class TrafficStatusDataError(TrafficStatusServiceError):
    """Raised when response data cannot be parsed."""


class TrafficStatusService:
    """
    Service for the SL traffic situation overview.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self._api_key = settings.TRAFFIC_STATUS_API_KEY if api_key is None else api_key
        self._api_url = (base_url or settings.TRAFFIC_STATUS_API_URL).rstrip("/")
        self._timeout = settings.HTTP_TIMEOUT if timeout is None else timeout
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(base_url=self._api_url, timeout=self._timeout)
        return self._client

    async def overview(self) -> TrafficStatusResponse:
        """
        Fetch the traffic status of every mode of transport.

        Raises:
            TrafficStatusAPIError: If the API returns an error or a non-zero StatusCode
            TrafficStatusNetworkError: If the request fails
            TrafficStatusDataError: If the response cannot be parsed
        """
        params = {"key": self._api_key} if self._api_key else {}
        logger.debug("GET %s%s", self._api_url, TRAFFIC_SITUATION_PATH)

        try:
            client = self._get_client()
            response = await client.get(TRAFFIC_SITUATION_PATH, params=params)
        except httpx.TimeoutException as e:
            logger.error("Request to traffic situation API timed out")
            raise TrafficStatusNetworkError("Request timed out") from e
        except httpx.HTTPError as e:
            logger.error("Network error while contacting traffic situation API: %s", str(e))
            raise TrafficStatusNetworkError(f"Network error: {str(e)}") from e

        if response.status_code != 200:
            logger.error("Traffic situation API returned status %s", response.status_code)
            raise TrafficStatusAPIError(
                f"status code: {response.status_code}, response: {response.text[:300]}"
            )

        try:
            root = xmlutils.parse(response.content)
            result = TrafficStatusResponse.model_validate(
                {
                    **xmlutils.texts(root, RESPONSE_FIELDS),
                    "traffic_types": [
                        {
                            **xmlutils.attrs(traffic_type, TRAFFIC_TYPE_ATTRS),
                            "events": [
                                xmlutils.texts(event, TRAFFIC_EVENT_FIELDS)
                                for event in xmlutils.nested(
                                    traffic_type, "Events", "TrafficEvent"
                                )
                            ],
                        }
                        for traffic_type in xmlutils.nested(
                            root, "ResponseData", "TrafficTypes", "TrafficType"
                        )
                    ],
                }
            )
        except (etree.XMLSyntaxError, ValidationError) as e:
            logger.error("Failed to parse traffic situation response: %s", str(e))
            raise TrafficStatusDataError(f"Invalid response data: {str(e)}") from e

        if result.status_code != 0:
            logger.error(
                "Traffic situation API returned status code %s: %s",
                result.status_code,
                result.message,
            )
            raise TrafficStatusAPIError(
                f"status code: {result.status_code}, message: {result.message}"
            )
        return result

    async def close(self):
        """
        Close the HTTP client and cleanup resources.
        """
        if self._client is not None:
            await self._client.aclose()
            self._client = None


# Singleton instance for dependency injection
traffic_status_service = TrafficStatusService()
