"""
Travelplanner Service

This service interfaces with SL's Travelplanner v3.1 API (HAFAS backend)
to search trips, reconstruct a trip from its context and fetch journey
details. Responses are XML and are decoded into the models of
trafiklab.schemas.travelplanner.

Site ids in requests are converted to HAFAS ids before they are sent.
"""

import logging
from typing import Callable, Dict, Optional, TypeVar
from urllib.parse import urlencode

import httpx
from lxml import etree

from trafiklab.core import xmlutils
from trafiklab.core.config import settings
from trafiklab.schemas.travelplanner import (
    FareItem,
    FareSetItem,
    JourneyDetailRef,
    JourneyDetailRequest,
    Leg,
    Location,
    Message,
    Note,
    Polyline,
    Product,
    ServiceDay,
    Stop,
    Trip,
    TripResponse,
    TripsRequest,
    TripsResponse,
)

logger = logging.getLogger(__name__)

TRAVELPLANNER_PATH = "/v1/TravelplannerV3_1"

T = TypeVar("T")

# XML attribute name -> model field name
TRIP_ATTRS = {
    "idx": "idx",
    "ctxRecon": "ctx_recon",
    "checksum": "checksum",
    "tripId": "trip_id",
    "valid": "valid",
    "duration": "duration",
}

SERVICE_DAY_ATTRS = {
    "sDaysR": "s_days_r",
    "sDaysI": "s_days_i",
    "sDaysB": "s_days_b",
    "planningPeriodBegin": "planning_period_begin",
    "planningPeriodEnd": "planning_period_end",
}

LEG_ATTRS = {
    "dist": "distance",
    "type": "type",
    "idx": "idx",
    "cancelled": "cancelled",
    "name": "name",
    "number": "number",
    "category": "category",
    "reachable": "reachable",
    "direction": "direction",
}

LOCATION_ATTRS = {
    "id": "id",
    "extId": "ext_id",
    "name": "name",
    "type": "type",
    "lon": "lon",
    "lat": "lat",
    "hasMainMast": "has_main_mast",
    "mainMastId": "main_mast_id",
    "mainMastExtId": "main_mast_ext_id",
    "date": "date",
    "rtDate": "rt_date",
    "time": "time",
    "rtTime": "rt_time",
    "track": "track",
    "prognosisType": "prognosis_type",
}

MESSAGE_ATTRS = {
    "id": "id",
    "act": "act",
    "head": "head",
    "text": "text",
    "priority": "priority",
    "category": "category",
    "products": "products",
    "sTime": "start_time",
    "sDate": "start_date",
    "eTime": "end_time",
    "eDate": "end_date",
}

PRODUCT_ATTRS = {
    "catCode": "category_code",
    "catIn": "category_in",
    "catOut": "category_out",
    "catOutL": "category_out_locale",
    "catOutS": "category_out_short",
    "line": "line",
    "name": "name",
    "num": "num",
    "operator": "operator",
    "operatorCode": "operator_code",
    "admin": "admin",
}

POLYLINE_ATTRS = {
    "type": "type",
    "dim": "dim",
    "crdEncS": "crd_enc_s",
    "delta": "delta",
}

STOP_ATTRS = {
    "depDate": "departure_date",
    "rtDepDate": "rt_departure_date",
    "depTime": "departure_time",
    "rtDepTime": "rt_departure_time",
    "arrDate": "arrival_date",
    "rtArrDate": "rt_arrival_date",
    "arrTime": "arrival_time",
    "rtArrTime": "rt_arrival_time",
    "routeIdx": "route_idx",
    "name": "name",
    "id": "id",
    "extId": "ext_id",
    "lon": "lon",
    "lat": "lat",
    "hasMainMast": "has_main_mast",
    "mainMastId": "main_mast_id",
    "mainMastExtId": "main_mast_ext_id",
    "depTrack": "departure_track",
    "arrTrack": "arrival_track",
}

FARE_SET_ATTRS = {"name": "name", "desc": "description"}

FARE_ITEM_ATTRS = {"name": "name", "desc": "description", "cur": "currency", "price": "price"}


class TravelplannerServiceError(Exception):
    """Base exception for travelplanner service errors."""


class MissingAPIKeyError(TravelplannerServiceError):
    """Raised when no API key is configured."""


class TravelplannerAPIError(TravelplannerServiceError):
    """Raised when the travelplanner API returns an error."""


class TravelplannerNetworkError(TravelplannerServiceError):
    """Raised when network communication fails."""


class TravelplannerDataError(TravelplannerServiceError):
    """Raised when response data cannot be parsed."""


def _redact(params: Dict[str, str]) -> str:
    return urlencode({k: v for k, v in params.items() if k != "key"})


class TravelplannerService:
    """
    Service for interacting with the SL Travelplanner v3.1 API.

    One HTTP request is made per call; nothing is cached or retried.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize the travelplanner service. Missing arguments are read from settings.
        """
        self._api_key = settings.TRAVELPLANNER_API_KEY if api_key is None else api_key
        self._api_url = (base_url or settings.TRAVELPLANNER_API_URL).rstrip("/")
        self._timeout = settings.HTTP_TIMEOUT if timeout is None else timeout
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        """
        Get or create the HTTP client for the travelplanner API.
        """
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._api_url + TRAVELPLANNER_PATH, timeout=self._timeout
            )
        return self._client

    def _require_key(self) -> str:
        if not self._api_key:
            raise MissingAPIKeyError("missing api key")
        return self._api_key

    async def trips(self, request: TripsRequest) -> TripsResponse:
        """
        Search trips between two locations.

        Args:
            request: Trip search parameters

        Returns:
            TripsResponse with the decoded trips. Call combine_walks() on it
            to merge and prune walking legs.

        Raises:
            MissingAPIKeyError: If no API key is configured
            FormatError: If a site id in the request is malformed
            TravelplannerAPIError: If the API returns an error
            TravelplannerNetworkError: If the request fails
            TravelplannerDataError: If the response cannot be parsed
        """
        params = request.to_params(self._require_key())
        root = await self._get_xml("/trip.xml", params)
        return self._decode(self._parse_trips_response, root)

    async def reconstruction(self, ctx: str) -> TripResponse:
        """
        Rebuild a trip from the reconstruction context of an earlier search.
        """
        params = {"key": self._require_key(), "ctx": ctx}
        root = await self._get_xml("/Reconstruction.xml", params)
        return self._decode(self._parse_trip_response, root)

    async def journey_detail(self, request: JourneyDetailRequest) -> Leg:
        """
        Fetch stops, messages and (optionally) geometry of a single journey.
        """
        params = request.to_params(self._require_key())
        root = await self._get_xml("/journeydetail.xml", params)
        return self._decode(self._parse_leg, root)

    async def _get_xml(self, path: str, params: Dict[str, str]) -> etree._Element:
        logger.debug("GET %s%s?%s", TRAVELPLANNER_PATH, path, _redact(params))

        try:
            client = self._get_client()
            response = await client.get(path, params=params)
        except httpx.TimeoutException as e:
            logger.error("Request to travelplanner API timed out")
            raise TravelplannerNetworkError("Request timed out") from e
        except httpx.HTTPError as e:
            logger.error("Network error while contacting travelplanner API: %s", str(e))
            raise TravelplannerNetworkError(f"Network error: {str(e)}") from e

        if response.status_code != 200:
            detail = self._error_detail(response.content)
            logger.error(
                "Travelplanner API returned status %s for %s: %s",
                response.status_code,
                path,
                detail,
            )
            raise TravelplannerAPIError(
                f"status code: {response.status_code}, request: {_redact(params)}, "
                f"response: {detail}"
            )

        try:
            root = xmlutils.parse(response.content)
        except etree.XMLSyntaxError as e:
            logger.error("Failed to parse travelplanner response: %s", str(e))
            raise TravelplannerDataError(f"Invalid XML: {str(e)}") from e

        if root.get("errorCode"):
            detail = f"{root.get('errorCode')}: {root.get('errorText', '')}"
            logger.error("Travelplanner API returned an error: %s", detail)
            raise TravelplannerAPIError(f"Travelplanner API error: {detail}")

        return root

    @staticmethod
    def _error_detail(content: bytes) -> str:
        try:
            root = xmlutils.parse(content)
        except etree.XMLSyntaxError:
            return content[:300].decode("utf-8", errors="replace")
        if root.get("errorCode"):
            return f"{root.get('errorCode')}: {root.get('errorText', '')}"
        return etree.tostring(root, encoding="unicode")[:300]

    @staticmethod
    def _decode(parse: Callable[[etree._Element], T], root: etree._Element) -> T:
        try:
            return parse(root)
        except (KeyError, ValueError, TypeError) as e:
            logger.error("Failed to parse travelplanner response: %s", str(e))
            raise TravelplannerDataError(f"Invalid response data: {str(e)}") from e

    def _parse_trips_response(self, root: etree._Element) -> TripsResponse:
        """
        Parse a TripList element into a TripsResponse.
        """
        return TripsResponse(
            scr_b=root.get("scrB", ""),
            scr_f=root.get("scrF", ""),
            trips=[self._parse_trip(trip) for trip in xmlutils.children(root, "Trip")],
        )

    def _parse_trip_response(self, root: etree._Element) -> TripResponse:
        trip = xmlutils.child(root, "Trip")
        return TripResponse(
            scr_b=root.get("scrB", ""),
            scr_f=root.get("scrF", ""),
            trip=self._parse_trip(trip) if trip is not None else None,
        )

    def _parse_trip(self, element: etree._Element) -> Trip:
        """
        Parse a single Trip element.
        """
        return Trip(
            **xmlutils.attrs(element, TRIP_ATTRS),
            service_days=[
                ServiceDay(**xmlutils.attrs(day, SERVICE_DAY_ATTRS))
                for day in xmlutils.children(element, "ServiceDays")
            ],
            legs=[self._parse_leg(leg) for leg in xmlutils.nested(element, "LegList", "Leg")],
            tariff=[
                self._parse_fare_set(item)
                for item in xmlutils.nested(element, "TariffResult", "fareSetItem")
            ],
        )

    def _parse_leg(self, element: etree._Element) -> Leg:
        """
        Parse a Leg element. JourneyDetail roots share the same layout.
        """
        fields = xmlutils.attrs(element, LEG_ATTRS)

        origin = xmlutils.child(element, "Origin")
        if origin is not None:
            fields["origin"] = Location(**xmlutils.attrs(origin, LOCATION_ATTRS))
        destination = xmlutils.child(element, "Destination")
        if destination is not None:
            fields["destination"] = Location(**xmlutils.attrs(destination, LOCATION_ATTRS))

        detail_ref = xmlutils.child(element, "JourneyDetailRef")
        if detail_ref is not None:
            fields["journey_detail"] = JourneyDetailRef(ref=detail_ref.get("ref", ""))

        status = xmlutils.child(element, "JourneyStatus")
        if status is not None and status.text:
            fields["journey_status"] = status.text.strip()

        product = xmlutils.child(element, "Product")
        if product is not None:
            fields["product"] = Product(**xmlutils.attrs(product, PRODUCT_ATTRS))

        polyline = xmlutils.child(element, "Polyline")
        if polyline is not None:
            fields["polyline"] = self._parse_polyline(polyline)

        return Leg(
            **fields,
            messages=[
                Message(**xmlutils.attrs(message, MESSAGE_ATTRS))
                for message in xmlutils.nested(element, "Messages", "Message")
            ],
            notes=[
                Note(
                    **xmlutils.attrs(note, {"priority": "priority"}),
                    text=(note.text or "").strip(),
                )
                for note in xmlutils.nested(element, "Notes", "Note")
            ],
            stops=[
                Stop(**xmlutils.attrs(stop, STOP_ATTRS))
                for stop in xmlutils.nested(element, "Stops", "Stop")
            ],
        )

    def _parse_polyline(self, element: etree._Element) -> Polyline:
        return Polyline(
            **xmlutils.attrs(element, POLYLINE_ATTRS),
            crd=[float(crd.text) for crd in xmlutils.children(element, "crd") if crd.text],
        )

    def _parse_fare_set(self, element: etree._Element) -> FareSetItem:
        return FareSetItem(
            **xmlutils.attrs(element, FARE_SET_ATTRS),
            fares=[
                FareItem(**xmlutils.attrs(fare, FARE_ITEM_ATTRS))
                for fare in xmlutils.children(element, "fareItem")
            ],
        )

    async def close(self):
        """
        Close the HTTP client and cleanup resources.
        """
        if self._client is not None:
            await self._client.aclose()
            self._client = None


# Singleton instance for dependency injection
travelplanner_service = TravelplannerService()
