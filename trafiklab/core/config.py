from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    PROJECT_NAME: str = "trafiklab"
    VERSION: str = "0.1.0"

    # Travelplanner v1 (HAFAS) Settings
    TRAVELPLANNER_API_URL: str = "https://journeyplanner.integration.sl.se"
    TRAVELPLANNER_API_KEY: str = ""

    # Journey planner v2 (EFA) Settings
    JOURNEYPLANNER_API_URL: str = "https://journeyplanner.integration.sl.se/v2"
    JOURNEYPLANNER_CLIENT_ID: str = "trafiklab-python"

    # Real-time departures and service deviations (no API key)
    TRANSPORT_API_URL: str = "https://transport.integration.sl.se"
    DEVIATIONS_API_URL: str = "https://deviations.integration.sl.se"

    # Stop typeahead and nearby stops
    STOPS_API_URL: str = "https://journeyplanner.integration.sl.se/v1"
    STOPS_QUERY_API_KEY: str = ""
    STOPS_NEARBY_API_KEY: str = ""

    # Traffic status overview
    TRAFFIC_STATUS_API_URL: str = "https://api.sl.se/api2"
    TRAFFIC_STATUS_API_KEY: str = ""

    # Pubtrans GID prefix for SL Stockholm sites
    EFA_PREFIX: str = "909100100"

    HTTP_TIMEOUT: float = 30.0

    model_config = SettingsConfigDict(env_file=".env", env_prefix="TRAFIKLAB_", extra="ignore")


settings = Settings()
