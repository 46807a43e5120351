import requests

FORECAST_URL = "https://api.openweathermap.org/data/2.5/forecast"
AIR_POLLUTION_URL = "https://api.openweathermap.org/data/2.5/air_pollution"
REVERSE_GEO_URL = "https://api.openweathermap.org/geo/1.0/reverse"

TIMEOUT = 20


class WeatherAPIError(RuntimeError):
    """Raised when the weather provider cannot answer a request."""


# Performs one authenticated GET against the provider and returns the decoded JSON body.
def _get_json(url: str, params: dict, api_key: str | None, what: str):
    if not api_key:
        raise WeatherAPIError("OPENWEATHER_API_KEY is not configured.")
    query = dict(params)
    query["appid"] = api_key
    try:
        response = requests.get(url, params=query, timeout=TIMEOUT)
        response.raise_for_status()
        return response.json()
    except Exception as e:
        raise WeatherAPIError(f"{what} request failed: {e}") from e


# 5-day / 3-hour forecast for a place name.
def fetch_forecast_by_name(city: str, api_key: str | None):
    return _get_json(FORECAST_URL, {"q": city}, api_key, "Forecast")


# 5-day / 3-hour forecast for a coordinate pair.
def fetch_forecast_by_coords(lat: float, lon: float, api_key: str | None):
    return _get_json(FORECAST_URL, {"lat": lat, "lon": lon}, api_key, "Forecast")


def reverse_geocode(lat: float, lon: float, api_key: str | None):
    """
    Return the name of the closest city to (lat, lon), or None when the
    geocoder has no match.
    """
    results = _get_json(REVERSE_GEO_URL, {"lat": lat, "lon": lon, "limit": 1}, api_key, "Reverse geocoding")
    if not results:
        return None
    name = results[0].get("name")
    return name or None


# Current air pollution components (pm2_5, pm10, no2, ...) for a coordinate pair.
def fetch_air_quality(lat: float, lon: float, api_key: str | None):
    return _get_json(AIR_POLLUTION_URL, {"lat": lat, "lon": lon}, api_key, "Air quality")
