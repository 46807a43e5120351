"""
Weather gateway: resolves a location against the weather provider, stores the
result as a WeatherRecord, and serves list/update/delete for stored records.

Functions here run inside a Flask application context; they read the provider
key from ``current_app.config`` and use the request-scoped ``db.session``.
"""
import re
from dataclasses import dataclass

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from models import db, WeatherRecord
import weather_api as weather_api

_NUMBER = r"[-+]?(?:\d+\.?\d*|\.\d+)"
_COORDS_RE = re.compile(rf"^\s*({_NUMBER})\s*,\s*({_NUMBER})\s*$")

PATCHABLE_FIELDS = ("location", "note")


class GatewayError(Exception):
    """Lookup or persistence failed; nothing was stored."""


class InvalidLocation(GatewayError):
    pass


class InvalidPatch(GatewayError):
    pass


class RecordNotFound(GatewayError):
    pass


@dataclass(frozen=True)
class LocationQuery:
    kind: str  # "name" or "coords"
    name: str | None = None
    lat: float | None = None
    lon: float | None = None

    @classmethod
    def for_name(cls, name):
        return cls(kind="name", name=name)

    @classmethod
    def for_coords(cls, lat, lon):
        if not -90 <= lat <= 90 or not -180 <= lon <= 180:
            raise InvalidLocation(f"Coordinates out of range: {lat},{lon}")
        return cls(kind="coords", lat=lat, lon=lon)

    @property
    def text(self):
        if self.kind == "coords":
            return f"{self.lat},{self.lon}"
        return self.name


def parse_location(raw):
    """
    Turn request input into a LocationQuery.

    Callers that know what they collected (e.g. the form used geolocation)
    pass a tagged mapping: ``{"kind": "name", "value": ...}`` or
    ``{"kind": "coords", "lat": ..., "lon": ...}``. Plain strings are
    coordinates only when they are exactly two numbers separated by a comma;
    anything else is a place name, so "Paris, France" stays a name.
    """
    if isinstance(raw, dict):
        kind = raw.get("kind")
        if kind == "coords":
            try:
                return LocationQuery.for_coords(float(raw["lat"]), float(raw["lon"]))
            except (KeyError, TypeError, ValueError):
                raise InvalidLocation("Coordinates must include numeric lat and lon.")
        if kind == "name":
            value = raw.get("value")
            if not isinstance(value, str) or not value.strip():
                raise InvalidLocation("Location is required.")
            return LocationQuery.for_name(value.strip())
        raise InvalidLocation(f"Unknown location kind: {kind!r}")

    if not isinstance(raw, str) or not raw.strip():
        raise InvalidLocation("Location is required.")

    match = _COORDS_RE.match(raw)
    if match:
        return LocationQuery.for_coords(float(match.group(1)), float(match.group(2)))
    return LocationQuery.for_name(raw.strip())


@dataclass(frozen=True)
class RecordPatch:
    location: str | None = None
    note: str | None = None

    @classmethod
    def from_payload(cls, payload):
        if not isinstance(payload, dict):
            raise InvalidPatch("Update body must be a JSON object.")
        unknown = sorted(set(payload) - set(PATCHABLE_FIELDS))
        if unknown:
            raise InvalidPatch(f"Unknown fields: {', '.join(unknown)}")
        for field in PATCHABLE_FIELDS:
            if field in payload and not isinstance(payload[field], str):
                raise InvalidPatch(f"{field} must be a string.")
        location = payload.get("location")
        if location is not None and not location.strip():
            raise InvalidPatch("location cannot be empty.")
        return cls(location=location.strip() if location is not None else None, note=payload.get("note"))

    def apply(self, record):
        if self.location is not None:
            record.location = self.location
        if self.note is not None:
            record.note = self.note


def _checked(forecast):
    if not isinstance(forecast, dict):
        raise weather_api.WeatherAPIError("Forecast response is not a JSON object.")
    return forecast


# Resolves a query to (display name, forecast payload, lat, lon).
def _resolve(query, api_key):
    if query.kind == "coords":
        forecast = _checked(weather_api.fetch_forecast_by_coords(query.lat, query.lon, api_key))
        name = weather_api.reverse_geocode(query.lat, query.lon, api_key)
        return name or query.text, forecast, query.lat, query.lon

    forecast = _checked(weather_api.fetch_forecast_by_name(query.name, api_key))
    city = forecast.get("city") or {}
    coord = city.get("coord") or {}
    lat, lon = coord.get("lat"), coord.get("lon")
    if lat is None or lon is None:
        raise weather_api.WeatherAPIError(f"Forecast for '{query.name}' has no coordinates.")
    return city.get("name") or query.name, forecast, lat, lon


def create_record(location, note=""):
    """Look up `location` upstream and store a new record. Returns the record."""
    query = location if isinstance(location, LocationQuery) else parse_location(location)
    api_key = current_app.config.get("OPENWEATHER_API_KEY")

    try:
        name, forecast, lat, lon = _resolve(query, api_key)
        air_quality = weather_api.fetch_air_quality(lat, lon, api_key)
    except weather_api.WeatherAPIError as e:
        current_app.logger.exception("Weather lookup failed for %r", query.text)
        raise GatewayError(str(e)) from e

    record = WeatherRecord(
        location=name,
        weather_data=forecast,
        air_quality=air_quality,
        note=note or "",
    )
    _commit(lambda: db.session.add(record))
    current_app.logger.info("Stored weather record %s for %s", record.id, record.location)
    return record


def list_records():
    return WeatherRecord.query.order_by(WeatherRecord.id.asc()).all()


def get_record(record_id):
    record = db.session.get(WeatherRecord, record_id)
    if record is None:
        raise RecordNotFound(f"Record {record_id} not found.")
    return record


def update_record(record_id, payload):
    patch = payload if isinstance(payload, RecordPatch) else RecordPatch.from_payload(payload)
    record = get_record(record_id)
    _commit(lambda: patch.apply(record))
    current_app.logger.info("Updated weather record %s", record_id)
    return record


def delete_record(record_id):
    """Delete by id. Deleting an absent record is not an error; returns False."""
    record = db.session.get(WeatherRecord, record_id)
    if record is None:
        return False
    _commit(lambda: db.session.delete(record))
    current_app.logger.info("Deleted weather record %s", record_id)
    return True


def _commit(change):
    try:
        change()
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.exception("Database write failed")
        raise GatewayError(str(e)) from e
