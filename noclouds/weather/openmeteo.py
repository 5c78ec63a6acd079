"""
Open-Meteo API client.
Fetches the hourly cloud and wind forecast for the configured location.
"""

import asyncio
import aiohttp
import logging
from datetime import datetime
from typing import Optional, List, Dict, Any

import pytz

from ..errors import FetchError, ParseError
from .analyzer import Sample

logger = logging.getLogger(__name__)

TIME_FORMAT = "%Y-%m-%dT%H:%M"

# Sample field -> Open-Meteo hourly series
HOURLY_SERIES = {
    "cloud_low": "cloud_cover_low",
    "cloud_mid": "cloud_cover_mid",
    "cloud_high": "cloud_cover_high",
    "wind_speed": "wind_speed_10m",
    "wind_gusts": "wind_gusts_10m",
}


class OpenMeteoClient:
    """Client for the Open-Meteo forecast API."""

    def __init__(
        self,
        api_endpoint: str,
        request_params: str,
        latitude: str,
        longitude: str,
        timeout_seconds: float = 30.0,
        forecast_days: int = 7
    ):
        """
        Initialize Open-Meteo client.

        Args:
            api_endpoint: Forecast endpoint URL
            request_params: Comma separated list of hourly variables
            latitude: Location latitude
            longitude: Location longitude
            timeout_seconds: Total timeout for a single request
            forecast_days: Number of forecast days to request
        """
        self.api_endpoint = api_endpoint.rstrip("?")
        self.request_params = request_params
        self.latitude = latitude
        self.longitude = longitude
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self.forecast_days = forecast_days
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def close(self) -> None:
        """Close the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def get_hourly_forecast(self) -> List[Sample]:
        """
        Get the hourly forecast as samples.

        Returns:
            Chronologically ordered samples

        Raises:
            FetchError: On transport errors, timeouts and non-200 responses
            ParseError: When the response body does not match the schema
        """
        logger.info("Making request to Open-Meteo API")
        session = await self._get_session()

        params = {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "hourly": self.request_params,
            "timezone": "auto",
            "forecast_days": self.forecast_days,
        }

        try:
            async with session.get(self.api_endpoint, params=params) as response:
                if response.status != 200:
                    error_text = await response.text()
                    raise FetchError(
                        f"Open-Meteo API error: {response.status} - {error_text}"
                    )
                try:
                    data = await response.json()
                except (aiohttp.ContentTypeError, ValueError) as e:
                    raise ParseError(f"Open-Meteo response is not JSON: {e}") from e
        except aiohttp.ClientError as e:
            raise FetchError(f"Open-Meteo request failed: {e}") from e
        except asyncio.TimeoutError as e:
            raise FetchError("Open-Meteo request timed out") from e

        logger.info("Got Open-Meteo API response")
        return parse_forecast_response(data)


def parse_forecast_response(data: Dict[str, Any]) -> List[Sample]:
    """
    Parse an Open-Meteo forecast response into samples.

    Local timestamps are pinned to the response utc_offset_seconds. Hours
    where any used series is null are dropped.

    Args:
        data: Raw API response

    Returns:
        Samples in response order

    Raises:
        ParseError: On missing keys, mismatched series or bad timestamps
    """
    if not isinstance(data, dict):
        raise ParseError("Open-Meteo response is not an object")

    hourly = data.get("hourly")
    if not isinstance(hourly, dict) or "time" not in hourly:
        raise ParseError("Open-Meteo response has no hourly.time series")

    times = hourly["time"]
    if not isinstance(times, list):
        raise ParseError("hourly.time is not a list")
    series = {}
    for field_name, key in HOURLY_SERIES.items():
        values = hourly.get(key)
        if not isinstance(values, list):
            raise ParseError(f"Open-Meteo response has no hourly.{key} series")
        if len(values) != len(times):
            raise ParseError(
                f"hourly.{key} has {len(values)} values for {len(times)} timestamps"
            )
        series[field_name] = values

    try:
        offset_minutes = int(data.get("utc_offset_seconds", 0)) // 60
    except (TypeError, ValueError) as e:
        raise ParseError(f"Invalid utc_offset_seconds: {e}") from e
    tz = pytz.FixedOffset(offset_minutes)

    samples = []
    for i, time_str in enumerate(times):
        try:
            time = tz.localize(datetime.strptime(time_str, TIME_FORMAT))
        except (TypeError, ValueError) as e:
            raise ParseError(f"Invalid timestamp {time_str!r}: {e}") from e

        row = {name: values[i] for name, values in series.items()}
        if any(value is None for value in row.values()):
            logger.debug(f"Skipping {time_str}: incomplete forecast data")
            continue

        try:
            samples.append(Sample(
                time=time,
                cloud_low=int(row["cloud_low"]),
                cloud_mid=int(row["cloud_mid"]),
                cloud_high=int(row["cloud_high"]),
                wind_speed=float(row["wind_speed"]),
                wind_gusts=float(row["wind_gusts"])
            ))
        except (TypeError, ValueError) as e:
            raise ParseError(f"Invalid value at {time_str}: {e}") from e

    return samples
