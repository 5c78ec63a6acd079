"""
Approximate lunar illumination from the mean synodic month.
Good to within a few percent, which is enough for forecast summaries.
"""

import math
from dataclasses import replace
from datetime import datetime
from typing import List, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from .analyzer import Sample

SYNODIC_MONTH = 29.53059  # days
NEW_MOON_REFERENCE = 2451549.5  # Julian date, new moon of 6 Jan 2000


def date_to_julian_date(date: datetime) -> float:
    """
    Convert a datetime to a Julian date.

    The calendar fields are taken as they read on the datetime's own clock.
    """
    year, month, day = date.year, date.month, date.day

    # January and February count as months 13 and 14 of the previous year
    if month <= 2:
        year -= 1
        month += 12

    a = math.floor(year / 100)
    b = 2 - a + math.floor(a / 4)
    jdn = math.floor(365.25 * year) + math.floor(30.6001 * (month + 1)) + day + 1720994 + b

    frac_day = (date.hour + date.minute / 60 + date.second / 3600) / 24

    return jdn + frac_day


def moon_illumination(date: datetime) -> float:
    """Illuminated fraction of the moon disc in percent (0-100)."""
    days_since_new_moon = date_to_julian_date(date) - NEW_MOON_REFERENCE

    phase = math.fmod(days_since_new_moon / SYNODIC_MONTH, 1.0)
    if phase < 0:
        phase += 1.0

    return (1 - math.cos(2 * math.pi * phase)) / 2 * 100


def annotate_moon_illumination(samples: Sequence["Sample"]) -> List["Sample"]:
    """Copies of samples with moon_illumination set (truncated to int)."""
    return [
        replace(sample, moon_illumination=int(moon_illumination(sample.time)))
        for sample in samples
    ]
