"""
Read-side projections over the stored forecast and air-quality payloads.

Payloads are kept exactly as the provider returned them; everything the
result page shows is derived here.
"""
import math
from datetime import datetime, timezone
from urllib.parse import urlencode

MIDDAY_MARKER = "12:00:00"
MAPS_EMBED_URL = "https://www.google.com/maps/embed/v1/place"

# Upper PM2.5 bound (ug/m3) for each label, checked in order.
PM25_BREAKPOINTS = (
    (12.0, "Healthy"),
    (35.4, "Moderate"),
    (55.4, "Unhealthy for Sensitive Groups"),
    (150.4, "Unhealthy"),
)


def kelvin_to_celsius(kelvin):
    """Kelvin to whole degrees Celsius, halves rounded up (300.0 -> 27)."""
    if kelvin is None:
        return None
    return int(math.floor(kelvin - 273.15 + 0.5))


def health_label(pm25):
    for limit, label in PM25_BREAKPOINTS:
        if pm25 <= limit:
            return label
    return "Very Unhealthy"


def _samples(payload):
    return (payload or {}).get("list") or []


def daily_forecast(payload, limit=5):
    """One sample per day: the ones stamped at midday, first `limit` of them."""
    days = [item for item in _samples(payload) if MIDDAY_MARKER in (item.get("dt_txt") or "")]
    return days[:limit]


def _utc(timestamp):
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


def day_samples(payload, dt):
    """All 3-hour samples falling on the same UTC day as `dt`."""
    wanted = _utc(dt).date()
    return [item for item in _samples(payload) if _utc(item["dt"]).date() == wanted]


def temperature_series(samples):
    return {
        "labels": [_utc(item["dt"]).strftime("%H:%M") for item in samples],
        "data": [kelvin_to_celsius(item.get("main", {}).get("temp")) for item in samples],
    }


def toggle_expanded(current, dt):
    return None if current == dt else dt


def _clock(timestamp):
    return _utc(timestamp).strftime("%H:%M") if timestamp else None


def day_details(day, city=None):
    main = day.get("main") or {}
    city = city or {}
    weather = (day.get("weather") or [{}])[0]
    visibility = day.get("visibility")
    pop = day.get("pop")
    return {
        "dt": day.get("dt"),
        "date": _utc(day["dt"]).strftime("%A, %B %d") if day.get("dt") else None,
        "description": weather.get("description"),
        "icon": weather.get("icon"),
        "temperature_c": kelvin_to_celsius(main.get("temp")),
        "feels_like_c": kelvin_to_celsius(main.get("feels_like")),
        "humidity_pct": main.get("humidity"),
        "wind_speed_ms": (day.get("wind") or {}).get("speed"),
        "pressure_hpa": main.get("pressure"),
        "visibility_km": visibility / 1000 if visibility is not None else None,
        "cloud_cover_pct": (day.get("clouds") or {}).get("all"),
        "precipitation_pct": round(pop * 100) if pop is not None else None,
        "sunrise": _clock(city.get("sunrise")),
        "sunset": _clock(city.get("sunset")),
    }


def air_quality_summary(air_quality):
    """AQI index and PM2.5 reading with its label, or None without data."""
    entries = (air_quality or {}).get("list") or []
    if not entries:
        return None
    entry = entries[0]
    pm25 = (entry.get("components") or {}).get("pm2_5")
    return {
        "aqi": (entry.get("main") or {}).get("aqi"),
        "pm2_5": pm25,
        "label": health_label(pm25) if pm25 is not None else None,
        "components": entry.get("components") or {},
    }


def map_query(record):
    coord = ((record.get("weatherData") or {}).get("city") or {}).get("coord")
    if coord and coord.get("lat") is not None and coord.get("lon") is not None:
        return f"{coord['lat']},{coord['lon']}"
    return record.get("location")


def map_embed_url(api_key, query):
    if not api_key or not query:
        return None
    return f"{MAPS_EMBED_URL}?{urlencode({'key': api_key, 'q': query})}"
