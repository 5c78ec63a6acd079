import datetime
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from noclouds.errors import FetchError, ParseError
from noclouds.weather import OpenMeteoClient, parse_forecast_response


def mock_response(status=200, payload=None, text=""):
    response = MagicMock()
    response.status = status
    response.json = AsyncMock(return_value=payload)
    response.text = AsyncMock(return_value=text)
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=response)
    context.__aexit__ = AsyncMock(return_value=False)
    return context


@pytest.fixture
def client():
    client = OpenMeteoClient(
        api_endpoint="https://api.open-meteo.com/v1/forecast?",
        request_params="cloud_cover_low,cloud_cover_mid,cloud_cover_high,wind_speed_10m,wind_gusts_10m",
        latitude="50.45",
        longitude="30.52",
        timeout_seconds=5
    )
    client._session = MagicMock(closed=False)
    return client


class TestParseForecastResponse:

    def test_samples_use_response_offset(self, open_meteo_response):
        samples = parse_forecast_response(open_meteo_response)

        assert len(samples) == 8
        first = samples[0]
        assert first.time.utcoffset() == datetime.timedelta(hours=2)
        assert (first.time.day, first.time.hour) == (1, 20)
        assert samples[4].time.hour == 0
        assert (first.cloud_low, first.cloud_mid, first.cloud_high) == (80, 50, 100)
        assert (first.wind_speed, first.wind_gusts) == (20.5, 35.0)
        assert first.moon_illumination is None

    def test_hourly_spacing(self, open_meteo_response):
        samples = parse_forecast_response(open_meteo_response)
        deltas = {b.time - a.time for a, b in zip(samples, samples[1:])}
        assert deltas == {datetime.timedelta(hours=1)}

    def test_missing_values_are_skipped(self, open_meteo_response):
        open_meteo_response['hourly']['cloud_cover_mid'][2] = None
        samples = parse_forecast_response(open_meteo_response)
        assert len(samples) == 7
        assert all(s.time.hour != 22 for s in samples)

    def test_utc_without_offset(self, open_meteo_response):
        del open_meteo_response['utc_offset_seconds']
        samples = parse_forecast_response(open_meteo_response)
        assert samples[0].time.utcoffset() == datetime.timedelta(0)

    def test_length_mismatch(self, open_meteo_response):
        open_meteo_response['hourly']['wind_gusts_10m'].pop()
        with pytest.raises(ParseError):
            parse_forecast_response(open_meteo_response)

    @pytest.mark.parametrize("key", ["time", "cloud_cover_low", "wind_speed_10m"])
    def test_missing_series(self, open_meteo_response, key):
        del open_meteo_response['hourly'][key]
        with pytest.raises(ParseError):
            parse_forecast_response(open_meteo_response)

    def test_missing_hourly(self):
        with pytest.raises(ParseError):
            parse_forecast_response({'latitude': 1.0})

    def test_not_an_object(self):
        with pytest.raises(ParseError):
            parse_forecast_response(["unexpected"])

    def test_bad_timestamp(self, open_meteo_response):
        open_meteo_response['hourly']['time'][0] = "yesterday"
        with pytest.raises(ParseError):
            parse_forecast_response(open_meteo_response)

    def test_bad_value(self, open_meteo_response):
        open_meteo_response['hourly']['cloud_cover_low'][0] = "lots"
        with pytest.raises(ParseError):
            parse_forecast_response(open_meteo_response)


class TestOpenMeteoClient:

    @pytest.mark.asyncio
    async def test_get_hourly_forecast(self, client, open_meteo_response):
        client._session.get = MagicMock(return_value=mock_response(payload=open_meteo_response))

        samples = await client.get_hourly_forecast()

        assert len(samples) == 8
        url = client._session.get.call_args.args[0]
        params = client._session.get.call_args.kwargs["params"]
        assert url == "https://api.open-meteo.com/v1/forecast"
        assert params["latitude"] == "50.45"
        assert params["longitude"] == "30.52"
        assert params["timezone"] == "auto"
        assert params["forecast_days"] == 7

    @pytest.mark.asyncio
    async def test_non_200_response(self, client):
        client._session.get = MagicMock(return_value=mock_response(status=500, text="oops"))
        with pytest.raises(FetchError, match="500"):
            await client.get_hourly_forecast()

    @pytest.mark.asyncio
    async def test_connection_error(self, client):
        client._session.get = MagicMock(side_effect=aiohttp.ClientConnectionError("down"))
        with pytest.raises(FetchError):
            await client.get_hourly_forecast()

    @pytest.mark.asyncio
    async def test_invalid_json(self, client):
        context = mock_response()
        response = await context.__aenter__()
        response.json.side_effect = ValueError("no json")
        client._session.get = MagicMock(return_value=context)
        with pytest.raises(ParseError):
            await client.get_hourly_forecast()

    @pytest.mark.asyncio
    async def test_close(self, client):
        session = client._session
        session.close = AsyncMock()
        await client.close()
        session.close.assert_awaited_once()
