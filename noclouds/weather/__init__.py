"""Weather API client and analysis module."""

from .openmeteo import OpenMeteoClient, parse_forecast_response
from .analyzer import (
    Sample,
    WeatherAnalyzer,
    is_good,
    at_night,
    select_candidates,
    find_window_starts,
    within_next_hours,
)
from .moon import moon_illumination, annotate_moon_illumination

__all__ = [
    "OpenMeteoClient",
    "parse_forecast_response",
    "Sample",
    "WeatherAnalyzer",
    "is_good",
    "at_night",
    "select_candidates",
    "find_window_starts",
    "within_next_hours",
    "moon_illumination",
    "annotate_moon_illumination",
]
