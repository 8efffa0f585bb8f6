"""
Stops Service

This service interfaces with SL's stop typeahead and nearby stops APIs.
Both answer in XML and need their own API key.

Nearby stops are returned with their site as an EFA global id so they can
be used directly with the journey planner v2.
"""

import logging
from typing import Dict, Optional

import httpx
from lxml import etree
from pydantic import ValidationError

from trafiklab.core import xmlutils
from trafiklab.core.config import settings
from trafiklab.core.exceptions import FormatError
from trafiklab.core.identifiers import convert_site_id_to_efa
from trafiklab.schemas.stops import (
    NearbyStopsResponse,
    StopsNearbyRequest,
    StopsQueryRequest,
    TypeaheadResponse,
)

logger = logging.getLogger(__name__)

TYPEAHEAD_PATH = "/typeahead.xml"
NEARBY_STOPS_PATH = "/nearbystopsv2.xml"

RESPONSE_FIELDS = {
    "StatusCode": "status_code",
    "Message": "message",
    "ExecutionTime": "execution_time",
}

SITE_FIELDS = {"Name": "name", "SiteId": "site_id", "Type": "type", "X": "x", "Y": "y"}

NEARBY_STOP_ATTRS = {
    "name": "name",
    "id": "id",
    "extId": "ext_id",
    "mainMastExtId": "main_mast_ext_id",
    "lat": "lat",
    "lon": "lon",
    "dist": "distance",
}


class StopsServiceError(Exception):
    """Base exception for stops service errors."""


class StopsMissingKeyError(StopsServiceError):
    """Raised when the API key for an endpoint is not configured."""


class StopsAPIError(StopsServiceError):
    """Raised when the stops API returns an error."""


class StopsNetworkError(StopsServiceError):
    """Raised when network communication fails."""


class StopsDataError(StopsServiceError):
    """Raised when response data cannot be parsed."""


class StopsService:
    """
    Service for stop search by name and by position.
    """

    def __init__(
        self,
        query_api_key: Optional[str] = None,
        nearby_api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        efa_prefix: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self._query_api_key = (
            settings.STOPS_QUERY_API_KEY if query_api_key is None else query_api_key
        )
        self._nearby_api_key = (
            settings.STOPS_NEARBY_API_KEY if nearby_api_key is None else nearby_api_key
        )
        self._api_url = (base_url or settings.STOPS_API_URL).rstrip("/")
        self._efa_prefix = efa_prefix or settings.EFA_PREFIX
        self._timeout = settings.HTTP_TIMEOUT if timeout is None else timeout
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(base_url=self._api_url, timeout=self._timeout)
        return self._client

    async def query(self, request: StopsQueryRequest) -> TypeaheadResponse:
        """
        Search stops, addresses and points of interest by name.

        Raises:
            StopsMissingKeyError: If no typeahead API key is configured
            StopsAPIError: If the API returns an error or a non-zero StatusCode
            StopsNetworkError: If the request fails
            StopsDataError: If the response cannot be parsed
        """
        if not self._query_api_key:
            raise StopsMissingKeyError("missing api key for stop typeahead")

        root = await self._get_xml(TYPEAHEAD_PATH, request.to_params(self._query_api_key))

        try:
            response = TypeaheadResponse.model_validate(
                {
                    **xmlutils.texts(root, RESPONSE_FIELDS),
                    "stops": [
                        xmlutils.texts(site, SITE_FIELDS)
                        for site in xmlutils.nested(root, "ResponseData", "Site")
                    ],
                }
            )
        except ValidationError as e:
            logger.error("Failed to parse typeahead response: %s", str(e))
            raise StopsDataError(f"Invalid response data: {str(e)}") from e

        if response.status_code != 0:
            logger.error(
                "Typeahead API returned status code %s: %s",
                response.status_code,
                response.message,
            )
            raise StopsAPIError(f"status code: {response.status_code}, message: {response.message}")
        return response

    async def nearby(self, request: StopsNearbyRequest) -> NearbyStopsResponse:
        """
        Find stops around a position.

        The main mast id of every stop is converted to an EFA global id.
        Stops whose id cannot be converted are left out.

        Raises:
            StopsMissingKeyError: If no nearby stops API key is configured
            StopsAPIError: If the API returns an error
            StopsNetworkError: If the request fails
            StopsDataError: If the response cannot be parsed
        """
        if not self._nearby_api_key:
            raise StopsMissingKeyError("missing api key for nearby stops")

        root = await self._get_xml(NEARBY_STOPS_PATH, request.to_params(self._nearby_api_key))

        stops = []
        for element in xmlutils.children(root, "StopLocation"):
            fields = xmlutils.attrs(element, NEARBY_STOP_ATTRS)
            main_mast_id = fields.get("main_mast_ext_id", "")
            try:
                fields["main_mast_ext_id"] = convert_site_id_to_efa(main_mast_id, self._efa_prefix)
            except FormatError as e:
                logger.debug("Skipping nearby stop %s: %s", fields.get("name", ""), str(e))
                continue
            stops.append(fields)

        try:
            return NearbyStopsResponse.model_validate({"stops": stops})
        except ValidationError as e:
            logger.error("Failed to parse nearby stops response: %s", str(e))
            raise StopsDataError(f"Invalid response data: {str(e)}") from e

    async def _get_xml(self, path: str, params: Dict[str, str]) -> etree._Element:
        redacted = {k: v for k, v in params.items() if k != "key"}
        logger.debug("GET %s%s %s", self._api_url, path, redacted)

        try:
            client = self._get_client()
            response = await client.get(path, params=params)
        except httpx.TimeoutException as e:
            logger.error("Request to stops API timed out")
            raise StopsNetworkError("Request timed out") from e
        except httpx.HTTPError as e:
            logger.error("Network error while contacting stops API: %s", str(e))
            raise StopsNetworkError(f"Network error: {str(e)}") from e

        if response.status_code != 200:
            logger.error("Stops API returned status %s for %s", response.status_code, path)
            raise StopsAPIError(
                f"status code: {response.status_code}, request: {path} {redacted}, "
                f"response: {response.text[:300]}"
            )

        try:
            root = xmlutils.parse(response.content)
        except etree.XMLSyntaxError as e:
            logger.error("Failed to parse stops response: %s", str(e))
            raise StopsDataError(f"Invalid XML: {str(e)}") from e

        if root.get("errorCode"):
            detail = f"{root.get('errorCode')}: {root.get('errorText', '')}"
            logger.error("Stops API returned an error: %s", detail)
            raise StopsAPIError(f"Stops API error: {detail}")

        return root

    async def close(self):
        """
        Close the HTTP client and cleanup resources.
        """
        if self._client is not None:
            await self._client.aclose()
            self._client = None


# Singleton instance for dependency injection
stops_service = StopsService()
