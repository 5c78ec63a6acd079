import datetime

import pytest
import pytz

from noclouds.config import Thresholds
from noclouds.weather import Sample

UTC = pytz.UTC


def make_sample(time, low=0, mid=0, high=0, speed=5.0, gusts=5.0):
    return Sample(
        time=time,
        cloud_low=low,
        cloud_mid=mid,
        cloud_high=high,
        wind_speed=speed,
        wind_gusts=gusts
    )


def hourly_samples(start, count, **kwargs):
    """count consecutive hourly samples beginning at start"""
    return [make_sample(start + datetime.timedelta(hours=i), **kwargs) for i in range(count)]


@pytest.fixture
def now():
    return UTC.localize(datetime.datetime(2024, 1, 1, 12, 0))


@pytest.fixture
def thresholds():
    return Thresholds(
        max_cloud_cover=25,
        max_wind=15.0,
        night_start_hour=22,
        night_end_hour=5,
        window_size=4
    )


@pytest.fixture
def all_day_thresholds():
    """Every hour counts as night"""
    return Thresholds(
        max_cloud_cover=25,
        max_wind=15.0,
        night_start_hour=0,
        night_end_hour=23,
        window_size=4
    )


@pytest.fixture
def open_meteo_response():
    """Open-Meteo style response for one night at UTC+2"""
    times = [f"2024-01-01T{h:02d}:00" for h in range(20, 24)] + \
            [f"2024-01-02T{h:02d}:00" for h in range(0, 4)]
    return {
        'latitude': 50.45,
        'longitude': 30.52,
        'utc_offset_seconds': 7200,
        'timezone': 'Europe/Kyiv',
        'timezone_abbreviation': 'EET',
        'hourly': {
            'time': times,
            'temperature_2m': [-2.0] * 8,
            'cloud_cover_low': [80, 40, 0, 0, 0, 0, 10, 5],
            'cloud_cover_mid': [50, 20, 0, 0, 5, 0, 0, 0],
            'cloud_cover_high': [100, 30, 10, 0, 0, 0, 0, 20],
            'wind_speed_10m': [20.5, 12.0, 8.1, 7.0, 6.5, 6.0, 5.9, 4.0],
            'wind_gusts_10m': [35.0, 22.0, 14.2, 12.0, 11.0, 10.0, 9.5, 8.0],
        }
    }
