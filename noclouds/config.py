"""
Configuration management for the NoClouds bot.
Settings come from the environment (.env supported) and may be overridden
by an optional TOML file. Everything is read once at startup.
"""

import os
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

import pytz
import toml
from apscheduler.triggers.cron import CronTrigger
from dotenv import load_dotenv

from .errors import ConfigError

DEFAULT_API_ENDPOINT = "https://api.open-meteo.com/v1/forecast"
DEFAULT_REQUEST_PARAMS = (
    "temperature_2m,cloud_cover_low,cloud_cover_mid,cloud_cover_high,"
    "wind_speed_10m,wind_gusts_10m"
)
DEFAULT_STATE_FILE_PATH = "state.txt"
DEFAULT_DATABASE_PATH = "database/noclouds.db"
DEFAULT_CRON_EXPRESSION = "0 8,12,16,20 * * *"
DEFAULT_FORECAST_TRIGGER = "Прогноз на 7 днів"

STATE_BACKENDS = ("file", "sqlite")


@dataclass(frozen=True)
class Thresholds:
    """
    Good-weather limits used by the analyzer.

    Attributes:
        max_cloud_cover: Ceiling for each cloud layer, percent
        max_wind: Ceiling for wind speed and gusts, provider units (km/h)
        night_start_hour: First night hour (0-23)
        night_end_hour: Last night hour (0-23), night wraps around midnight
        window_size: Consecutive hourly steps required for a window
    """
    max_cloud_cover: int = 25
    max_wind: float = 15.0
    night_start_hour: int = 22
    night_end_hour: int = 5
    window_size: int = 4


# Environment variable -> (Config field, converter)
ENV_FIELDS: Dict[str, Tuple[str, Callable[[str], Any]]] = {
    "TG_BOT_TOKEN": ("bot_token", str),
    "CHAT_ID": ("chat_id", str),
    "LAT": ("latitude", str),
    "LON": ("longitude", str),
    "API_ENDPOINT": ("api_endpoint", str),
    "REQUEST_PARAMS": ("request_params", str),
    "STATE_BACKEND": ("state_backend", str),
    "STATE_FILE_PATH": ("state_file_path", str),
    "DATABASE_PATH": ("database_path", str),
    "MAX_CLOUD_COVER": ("max_cloud_cover", int),
    "MAX_WIND": ("max_wind", float),
    "NIGHT_STARTS_AT": ("night_starts_at", int),
    "NIGHT_ENDS_AT": ("night_ends_at", int),
    "GOOD_WEATHER_WINDOW": ("good_weather_window", int),
    "CRON_EXPRESSION": ("cron_expression", str),
    "TIMEZONE": ("timezone", str),
    "REQUEST_TIMEOUT_SECONDS": ("request_timeout_seconds", float),
    "FORECAST_TRIGGER": ("forecast_trigger", str),
    "LOG_LEVEL": ("log_level", lambda v: v.upper()),
}

_CONVERTERS = {name: convert for name, convert in ENV_FIELDS.values()}


@dataclass(frozen=True)
class Config:
    """
    Application configuration.
    Built once by Config.load() and passed explicitly to the components
    that need it.
    """

    bot_token: str = ""
    chat_id: str = ""
    latitude: str = ""
    longitude: str = ""
    api_endpoint: str = DEFAULT_API_ENDPOINT
    request_params: str = DEFAULT_REQUEST_PARAMS
    state_backend: str = "file"
    state_file_path: str = DEFAULT_STATE_FILE_PATH
    database_path: str = DEFAULT_DATABASE_PATH
    max_cloud_cover: int = 25
    max_wind: float = 15.0
    night_starts_at: int = 22
    night_ends_at: int = 5
    good_weather_window: int = 4
    cron_expression: str = DEFAULT_CRON_EXPRESSION
    timezone: str = "UTC"
    request_timeout_seconds: float = 30.0
    forecast_trigger: str = DEFAULT_FORECAST_TRIGGER
    log_level: str = "INFO"

    @classmethod
    def load(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        config_path: Optional[str] = None,
        validate: bool = True
    ) -> "Config":
        """
        Build configuration from the environment and an optional TOML file.

        Args:
            environ: Mapping to read from (defaults to os.environ after .env is loaded)
            config_path: TOML override file (defaults to CONFIG_PATH variable)
            validate: Raise ConfigError when mandatory values are missing

        Returns:
            Config instance

        Raises:
            ConfigError: On unparsable or (with validate) invalid values
        """
        if environ is None:
            load_dotenv()
            environ = os.environ

        values: Dict[str, Any] = {}
        errors: List[str] = []

        for env_key, (name, convert) in ENV_FIELDS.items():
            raw = environ.get(env_key)
            if raw is None or raw == "":
                continue
            try:
                values[name] = convert(raw.strip())
            except ValueError:
                errors.append(f"{env_key} has invalid value {raw!r}")

        config_path = config_path or environ.get("CONFIG_PATH")
        if config_path:
            values.update(cls._read_toml(config_path, errors))

        if errors:
            raise ConfigError("Invalid configuration: " + "; ".join(errors))

        config = cls(**values)

        if validate:
            errors = config.validate()
            if errors:
                raise ConfigError("Invalid configuration: " + "; ".join(errors))

        return config

    @staticmethod
    def _read_toml(path: str, errors: List[str]) -> Dict[str, Any]:
        """Read override values from a TOML file, collecting errors."""
        try:
            data = toml.load(path)
        except (OSError, toml.TomlDecodeError) as e:
            errors.append(f"Cannot read config file {path}: {e}")
            return {}

        known = {f.name for f in fields(Config)}
        values = {}
        for key, value in data.items():
            if key not in known:
                logging.warning(f"Unknown config key '{key}' in {path}, ignored")
                continue
            try:
                values[key] = _CONVERTERS[key](str(value))
            except ValueError:
                errors.append(f"{key} has invalid value {value!r} in {path}")
        return values

    def validate(self) -> List[str]:
        """
        Validate configuration and return list of errors.
        Returns empty list if configuration is valid.
        """
        errors = []

        if not self.bot_token:
            errors.append("TG_BOT_TOKEN is required")

        if not self.chat_id:
            errors.append("CHAT_ID is required")
        elif not self.chat_id.lstrip("-").isdigit():
            errors.append("CHAT_ID must be an integer")

        for key, value in (("LAT", self.latitude), ("LON", self.longitude)):
            if not value:
                errors.append(f"{key} is required")
                continue
            try:
                float(value)
            except ValueError:
                errors.append(f"{key} must be a number")

        if not 0 <= self.max_cloud_cover <= 100:
            errors.append("MAX_CLOUD_COVER must be between 0 and 100")

        if self.max_wind < 0:
            errors.append("MAX_WIND cannot be negative")

        for key, hour in (("NIGHT_STARTS_AT", self.night_starts_at),
                          ("NIGHT_ENDS_AT", self.night_ends_at)):
            if not 0 <= hour <= 23:
                errors.append(f"{key} must be between 0 and 23")

        if self.good_weather_window < 1:
            errors.append("GOOD_WEATHER_WINDOW must be at least 1")

        if self.state_backend not in STATE_BACKENDS:
            errors.append(f"STATE_BACKEND must be one of {', '.join(STATE_BACKENDS)}")

        if self.request_timeout_seconds <= 0:
            errors.append("REQUEST_TIMEOUT_SECONDS must be positive")

        try:
            CronTrigger.from_crontab(self.cron_expression)
        except ValueError as e:
            errors.append(f"CRON_EXPRESSION is invalid: {e}")

        return errors

    @property
    def thresholds(self) -> Thresholds:
        """Analyzer limits derived from this configuration."""
        return Thresholds(
            max_cloud_cover=self.max_cloud_cover,
            max_wind=self.max_wind,
            night_start_hour=self.night_starts_at,
            night_end_hour=self.night_ends_at,
            window_size=self.good_weather_window
        )

    @property
    def chat_id_int(self) -> int:
        return int(self.chat_id)

    def get_timezone(self) -> pytz.BaseTzInfo:
        """Get the configured timezone object."""
        try:
            return pytz.timezone(self.timezone)
        except pytz.exceptions.UnknownTimeZoneError:
            logging.warning(f"Unknown timezone '{self.timezone}', using UTC")
            return pytz.UTC

    def setup_logging(self) -> None:
        """Configure logging based on settings."""
        log_level = getattr(logging, self.log_level, logging.INFO)

        logging.basicConfig(
            level=log_level,
            format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            handlers=[logging.StreamHandler()]
        )

        # Reduce noise from external libraries
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)
        logging.getLogger("telegram").setLevel(logging.WARNING)
        logging.getLogger("apscheduler").setLevel(logging.WARNING)
        logging.getLogger("aiohttp").setLevel(logging.WARNING)

    def ensure_data_dir(self) -> None:
        """Ensure the directory holding the state store exists."""
        if self.state_backend == "sqlite":
            path = Path(self.database_path)
        else:
            path = Path(self.state_file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
