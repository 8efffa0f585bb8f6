"""
Departures Service

This service interfaces with SL's transport API to fetch real-time
departures from a site.

API Endpoint: https://transport.integration.sl.se/v1/sites/{site_id}/departures
Documentation: https://www.trafiklab.se/api/our-apis/sl/transport/
"""

import logging
from typing import Optional
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from trafiklab.core.config import settings
from trafiklab.schemas.departures import DeparturesRequest, DeparturesResponse

logger = logging.getLogger(__name__)


class DeparturesServiceError(Exception):
    """Base exception for departures service errors."""


class DeparturesAPIError(DeparturesServiceError):
    """Raised when the transport API returns an error."""


class DeparturesNetworkError(DeparturesServiceError):
    """Raised when network communication fails."""


class DeparturesDataError(DeparturesServiceError):
    """Raised when response data cannot be parsed."""


class DeparturesService:
    """
    Service for real-time departures.
    """

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        self._api_url = (base_url or settings.TRANSPORT_API_URL).rstrip("/")
        self._timeout = settings.HTTP_TIMEOUT if timeout is None else timeout
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        """
        Get or create the HTTP client for the transport API.
        """
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._api_url,
                timeout=self._timeout,
                headers={"Content-Type": "application/json"},
            )
        return self._client

    async def departures(self, request: DeparturesRequest) -> DeparturesResponse:
        """
        Fetch upcoming departures from a site.

        Departures of modes disabled in the request are removed from the
        result.

        Raises:
            FormatError: If the site id is not a legacy site id
            DeparturesAPIError: If the API returns an error
            DeparturesNetworkError: If the request fails
            DeparturesDataError: If the response cannot be parsed
        """
        path = request.site_path()
        params = request.to_params()
        logger.debug("GET %s%s?%s", self._api_url, path, urlencode(params))

        try:
            client = self._get_client()
            response = await client.get(path, params=params)
        except httpx.TimeoutException as e:
            logger.error("Request to transport API timed out")
            raise DeparturesNetworkError("Request timed out") from e
        except httpx.HTTPError as e:
            logger.error("Network error while contacting transport API: %s", str(e))
            raise DeparturesNetworkError(f"Network error: {str(e)}") from e

        if response.status_code != 200:
            logger.error("Transport API returned status %s for %s", response.status_code, path)
            raise DeparturesAPIError(
                f"status code: {response.status_code}, request: {path}?{urlencode(params)}, "
                f"response: {response.text[:300]}"
            )

        try:
            result = DeparturesResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.error("Failed to parse departures response: %s", str(e))
            raise DeparturesDataError(f"Invalid response data: {str(e)}") from e

        if request.all_modes:
            return result
        return result.filter_transport_modes(request.transport_modes())

    async def close(self):
        """
        Close the HTTP client and cleanup resources.
        """
        if self._client is not None:
            await self._client.aclose()
            self._client = None


# Singleton instance for dependency injection
departures_service = DeparturesService()
