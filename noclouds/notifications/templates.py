"""
Message templates for weather notifications.
Messages are sent as MarkdownV2 monospace blocks.
"""

import re
from typing import Sequence

from ..weather.analyzer import Sample


class MessageTemplates:
    """
    Message template formatter for Telegram notifications.

    Every outgoing text is wrapped in a single inline code span, so the only
    markup in a message is the pair of backticks added by mono().
    """

    GOOD_WEATHER_ALERT = "Хороша погода сьогодні! 🥳"
    BAD_WEATHER_ALERT = "Сьогодні хмарно 🥺"
    START_MESSAGE = "Розпочнімо. Тицяй кнопку."
    BAD_REQUEST_MESSAGE = "Не розумію..."
    NO_GOOD_WEATHER_7D = "Хмарно наступні 7 днів 🥺"
    FORECAST_UNAVAILABLE = "Не вдалося отримати прогноз 😕"

    @classmethod
    def escape_markdown(cls, text: str) -> str:
        """
        Escape special characters for MarkdownV2.

        Args:
            text: Raw text to escape

        Returns:
            Escaped text safe for MarkdownV2
        """
        if not text:
            return ""
        return re.sub(r'([\\_*\[\]()~`>#+=|{}.!-])', r'\\\1', str(text))

    @classmethod
    def mono(cls, text: str) -> str:
        """Escaped text wrapped in an inline code span."""
        return "`" + cls.escape_markdown(text) + "`"

    @staticmethod
    def format_sample_line(sample: Sample) -> str:
        """
        One forecast line: moon | gusts | day and hour | cloud layers.

        Example: " 42% | 12.5 | Mon - 02 23h | 0  5 10"
        """
        return (
            f"{sample.moon_illumination or 0:3d}% | "
            f"{sample.wind_gusts:4.1f} | "
            f"{sample.time.strftime('%a - %d %H')}h |"
            f"{sample.cloud_low:2d} {sample.cloud_mid:2d} {sample.cloud_high:2d}"
        )

    @classmethod
    def format_window_starts(cls, starts: Sequence[Sample]) -> str:
        """Plain text table of window starts, one line per start."""
        return "".join(cls.format_sample_line(s) + "\n" for s in starts)

    @classmethod
    def format_good_weather_alert(cls, starts: Sequence[Sample]) -> str:
        """Alert sent when a window appears in the next 24 hours."""
        return cls.mono(cls.GOOD_WEATHER_ALERT + "\n\n" + cls.format_window_starts(starts))

    @classmethod
    def format_bad_weather_alert(cls) -> str:
        """Alert sent when the previously announced window is gone."""
        return cls.mono(cls.BAD_WEATHER_ALERT)

    @classmethod
    def format_forecast(cls, starts: Sequence[Sample]) -> str:
        """Reply to the 7-day forecast request."""
        if not starts:
            return cls.mono(cls.NO_GOOD_WEATHER_7D)
        return cls.mono(cls.format_window_starts(starts))

    @classmethod
    def format_start_message(cls) -> str:
        return cls.mono(cls.START_MESSAGE)

    @classmethod
    def format_bad_request_message(cls) -> str:
        return cls.mono(cls.BAD_REQUEST_MESSAGE)

    @classmethod
    def format_forecast_unavailable(cls) -> str:
        return cls.mono(cls.FORECAST_UNAVAILABLE)
