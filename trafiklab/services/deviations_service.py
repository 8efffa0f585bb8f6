"""
Deviations Service

This service interfaces with SL's deviations API to list current and
planned service disruptions.

API Endpoint: https://deviations.integration.sl.se/v1/messages
Documentation: https://www.trafiklab.se/api/our-apis/sl/deviations/
"""

import logging
from typing import Optional
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from trafiklab.core.config import settings
from trafiklab.schemas.deviations import DeviationsRequest, DeviationsResponse

logger = logging.getLogger(__name__)

MESSAGES_PATH = "/v1/messages"


class DeviationsServiceError(Exception):
    """Base exception for deviations service errors."""


class DeviationsAPIError(DeviationsServiceError):
    """Raised when the deviations API returns an error."""


class DeviationsNetworkError(DeviationsServiceError):
    """Raised when network communication fails."""


class DeviationsDataError(DeviationsServiceError):
    """Raised when response data cannot be parsed."""


class DeviationsService:
    """
    Service for SL service deviation messages.
    """

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        self._api_url = (base_url or settings.DEVIATIONS_API_URL).rstrip("/")
        self._timeout = settings.HTTP_TIMEOUT if timeout is None else timeout
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._api_url,
                timeout=self._timeout,
                headers={"Content-Type": "application/json"},
            )
        return self._client

    async def deviations(self, request: Optional[DeviationsRequest] = None) -> DeviationsResponse:
        """
        List deviation messages matching the request filters.

        Args:
            request: Filters; all current deviations when omitted

        Raises:
            DeviationsAPIError: If the API returns an error
            DeviationsNetworkError: If the request fails
            DeviationsDataError: If the response cannot be parsed
        """
        params = (request or DeviationsRequest()).to_params()
        logger.debug("GET %s%s?%s", self._api_url, MESSAGES_PATH, urlencode(params))

        try:
            client = self._get_client()
            response = await client.get(MESSAGES_PATH, params=params)
        except httpx.TimeoutException as e:
            logger.error("Request to deviations API timed out")
            raise DeviationsNetworkError("Request timed out") from e
        except httpx.HTTPError as e:
            logger.error("Network error while contacting deviations API: %s", str(e))
            raise DeviationsNetworkError(f"Network error: {str(e)}") from e

        if response.status_code != 200:
            logger.error(
                "Deviations API returned status %s for %s?%s",
                response.status_code,
                MESSAGES_PATH,
                urlencode(params),
            )
            raise DeviationsAPIError(f"unexpected status code: {response.status_code}")

        try:
            return DeviationsResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.error("Failed to parse deviations response: %s", str(e))
            raise DeviationsDataError(f"Invalid response data: {str(e)}") from e

    async def close(self):
        """
        Close the HTTP client and cleanup resources.
        """
        if self._client is not None:
            await self._client.aclose()
            self._client = None


# Singleton instance for dependency injection
deviations_service = DeviationsService()
