"""
Journey Planner Service

This service interfaces with SL's Journey planner v2 API (EFA backend)
to search trips and find stops.

API Endpoint: https://journeyplanner.integration.sl.se/v2
Documentation: https://www.trafiklab.se/api/our-apis/sl/journey-planner-2/
"""

import logging
from typing import Any, Dict, Optional, Sequence, Tuple, Type, TypeVar, Union
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel, ValidationError

from trafiklab.core.config import settings
from trafiklab.core.identifiers import EFA_ID_LENGTH, convert_site_id_to_efa, is_site_id
from trafiklab.schemas.journeyplanner import (
    SEARCH_TYPE_ANY,
    StopFinderPosRequest,
    StopFinderResponse,
    StopFinderSearchRequest,
    TripsRequest,
    TripsResponse,
)

logger = logging.getLogger(__name__)

ResponseT = TypeVar("ResponseT", bound=BaseModel)

QueryParams = Union[Dict[str, str], Sequence[Tuple[str, str]]]


class JourneyPlannerServiceError(Exception):
    """Base exception for journey planner service errors."""


class JourneyPlannerAPIError(JourneyPlannerServiceError):
    """Raised when the journey planner API returns an error."""


class JourneyPlannerNetworkError(JourneyPlannerServiceError):
    """Raised when network communication fails."""


class JourneyPlannerDataError(JourneyPlannerServiceError):
    """Raised when response data cannot be parsed."""


class JourneyPlannerService:
    """
    Service for interacting with the SL Journey planner v2 API.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        client_id: Optional[str] = None,
        efa_prefix: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize the journey planner service. Missing arguments are read from settings.
        """
        self._api_url = (base_url or settings.JOURNEYPLANNER_API_URL).rstrip("/")
        self._client_id = client_id or settings.JOURNEYPLANNER_CLIENT_ID
        self._efa_prefix = efa_prefix or settings.EFA_PREFIX
        self._timeout = settings.HTTP_TIMEOUT if timeout is None else timeout
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        """
        Get or create the HTTP client for the journey planner API.
        """
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._api_url,
                timeout=self._timeout,
                headers={"X-Correlation-ID": self._client_id},
            )
        return self._client

    def _to_efa(self, search_type: str, name: str) -> str:
        """
        Convert legacy and HAFAS site ids to EFA global ids.

        Raises:
            FormatError: If the id looks like a site id but cannot be converted
        """
        if search_type != SEARCH_TYPE_ANY or len(name) == EFA_ID_LENGTH:
            return name
        if not is_site_id(name):
            return name
        efa_id = convert_site_id_to_efa(name, self._efa_prefix)
        logger.debug("Converted site id %s to EFA id %s", name, efa_id)
        return efa_id

    async def trips(self, request: TripsRequest) -> TripsResponse:
        """
        Search journeys between two locations.

        Origin and destination site ids in the old formats are converted to
        EFA global ids before the request is sent.

        Args:
            request: Validated trip search parameters

        Returns:
            TripsResponse with the journeys found

        Raises:
            FormatError: If a site id cannot be converted
            JourneyPlannerAPIError: If the API returns an error
            JourneyPlannerNetworkError: If the request fails
            JourneyPlannerDataError: If the response cannot be parsed
        """
        request = request.model_copy(
            update={
                "name_origin": self._to_efa(request.type_origin, request.name_origin),
                "name_destination": self._to_efa(
                    request.type_destination, request.name_destination
                ),
            }
        )
        return await self._get("/trips", request.to_params(), TripsResponse)

    async def stop_finder(
        self, request: Union[StopFinderSearchRequest, StopFinderPosRequest]
    ) -> StopFinderResponse:
        """
        Find stops, addresses and points of interest by name or position.

        Raises:
            InvalidFilterName: If the request filter is empty or unknown
            JourneyPlannerAPIError: If the API returns an error
            JourneyPlannerNetworkError: If the request fails
            JourneyPlannerDataError: If the response cannot be parsed
        """
        return await self._get("/stop-finder", request.to_params(), StopFinderResponse)

    async def _get(self, path: str, params: QueryParams, model: Type[ResponseT]) -> ResponseT:
        logger.debug("GET %s%s?%s", self._api_url, path, urlencode(params))

        try:
            client = self._get_client()
            response = await client.get(path, params=params)
        except httpx.TimeoutException as e:
            logger.error("Request to journey planner API timed out")
            raise JourneyPlannerNetworkError("Request timed out") from e
        except httpx.HTTPError as e:
            logger.error("Network error while contacting journey planner API: %s", str(e))
            raise JourneyPlannerNetworkError(f"Network error: {str(e)}") from e

        if response.status_code != 200:
            logger.error(
                "Journey planner API returned status %s for %s", response.status_code, path
            )
            raise JourneyPlannerAPIError(
                f"status code: {response.status_code}, request: {urlencode(params)}, "
                f"response: {response.text[:300]}"
            )

        try:
            data: Any = response.json()
            return model.model_validate(data)
        except (ValueError, ValidationError) as e:
            logger.error("Failed to parse journey planner response: %s", str(e))
            raise JourneyPlannerDataError(f"Invalid response data: {str(e)}") from e

    async def close(self):
        """
        Close the HTTP client and cleanup resources.
        """
        if self._client is not None:
            await self._client.aclose()
            self._client = None


# Singleton instance for dependency injection
journey_planner_service = JourneyPlannerService()
