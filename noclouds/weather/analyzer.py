"""
Weather analyzer for detecting clear night sky windows.
Filters hourly samples against the configured thresholds and finds the
start of every run of consecutive good night hours.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from ..config import Thresholds
from .moon import annotate_moon_illumination

logger = logging.getLogger(__name__)

ONE_HOUR = timedelta(hours=1)


@dataclass(frozen=True)
class Sample:
    """Single hourly forecast point."""
    time: datetime  # tz-aware, forecast local offset
    cloud_low: int  # percentage
    cloud_mid: int  # percentage
    cloud_high: int  # percentage
    wind_speed: float  # km/h
    wind_gusts: float  # km/h
    moon_illumination: Optional[int] = None  # percentage, set by annotation


def is_good(sample: Sample, max_cloud_cover: int, max_wind: float) -> bool:
    """All cloud layers and both wind values are within the limits (inclusive)."""
    return (
        sample.cloud_low <= max_cloud_cover
        and sample.cloud_mid <= max_cloud_cover
        and sample.cloud_high <= max_cloud_cover
        and sample.wind_speed <= max_wind
        and sample.wind_gusts <= max_wind
    )


def at_night(sample: Sample, night_start: int, night_end: int) -> bool:
    """
    Check whether the sample hour falls in a night window wrapping midnight.

    The check is a plain OR of both bounds, so a non-wrapping configuration
    (night_start <= night_end) matches almost every hour.
    """
    hour = sample.time.hour
    return hour >= night_start or hour <= night_end


def select_candidates(
    samples: Sequence[Sample],
    now: datetime,
    thresholds: Thresholds
) -> List[Sample]:
    """Future samples that are good and at night, in their original order."""
    return [
        sample for sample in samples
        if sample.time > now
        and is_good(sample, thresholds.max_cloud_cover, thresholds.max_wind)
        and at_night(sample, thresholds.night_start_hour, thresholds.night_end_hour)
    ]


def _hours_between(earlier: Sample, later: Sample) -> int:
    return int((later.time - earlier.time).total_seconds() // 3600)


def find_window_starts(candidates: Sequence[Sample], window_size: int) -> List[Sample]:
    """
    Find the first sample of every good weather window.

    A window is window_size consecutive one-hour steps between candidates.
    A start directly preceded (one hour earlier) by another candidate
    belongs to a streak that was already reported and is skipped, so each
    unbroken streak yields at most one start.

    Args:
        candidates: Chronologically sorted candidates, may contain gaps
        window_size: Number of one-hour steps a window must span

    Returns:
        Window start samples in chronological order
    """
    starts: List[Sample] = []
    last = len(candidates) - window_size
    if window_size < 1 or last <= 0:
        return starts

    i = 0
    while i < last:
        window = candidates[i:i + window_size + 1]
        hours = sum(
            _hours_between(prev, cur) for prev, cur in zip(window, window[1:])
        )

        # A repeated or out of order hour can hide a gap in the total
        if hours > window_size or any(
            cur.time - prev.time != ONE_HOUR for prev, cur in zip(window, window[1:])
        ):
            i += 1
            continue

        if i > 0 and candidates[i].time - candidates[i - 1].time == ONE_HOUR:
            i += 1
            continue

        starts.append(candidates[i])
        i += window_size

    return starts


def within_next_hours(
    samples: Sequence[Sample],
    now: datetime,
    hours: int = 24
) -> List[Sample]:
    """Samples starting from now and strictly less than hours ahead."""
    horizon = timedelta(hours=hours)
    return [s for s in samples if timedelta(0) <= s.time - now < horizon]


class WeatherAnalyzer:
    """
    Runs the detection pipeline for a fixed set of thresholds.

    Pipeline: candidate selection -> window detection -> (optional) 24 hour
    horizon -> moon illumination annotation.
    """

    ALERT_HORIZON_HOURS = 24

    def __init__(self, thresholds: Thresholds):
        """
        Initialize the weather analyzer.

        Args:
            thresholds: Good weather limits and window size
        """
        self.thresholds = thresholds

    def window_starts(self, samples: Sequence[Sample], now: datetime) -> List[Sample]:
        """All window starts in the forecast, annotated with moon illumination."""
        candidates = select_candidates(samples, now, self.thresholds)
        starts = find_window_starts(candidates, self.thresholds.window_size)
        logger.debug(
            f"{len(candidates)} candidate hours out of {len(samples)}, "
            f"{len(starts)} window start(s)"
        )
        return annotate_moon_illumination(starts)

    def next_window_starts(self, samples: Sequence[Sample], now: datetime) -> List[Sample]:
        """Window starts within the alert horizon."""
        return within_next_hours(
            self.window_starts(samples, now), now, self.ALERT_HORIZON_HOURS
        )
