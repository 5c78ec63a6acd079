"""
Exception hierarchy for the NoClouds bot.
"""


class NoCloudsError(Exception):
    """Base class for all bot errors."""


class FetchError(NoCloudsError):
    """Weather provider could not be reached or answered with a non-200 status."""


class ParseError(NoCloudsError):
    """Weather provider response does not match the expected schema."""


class StateIOError(NoCloudsError):
    """Persisted notification state could not be read or written."""


class ConfigError(NoCloudsError):
    """Mandatory configuration is missing or invalid."""
