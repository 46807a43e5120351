import pytest
from app import create_app
from models import db

# Creates a Flask app with a temporary SQLite database for tests.
@pytest.fixture()
def app(tmp_path, monkeypatch):
    db_path = tmp_path / "test.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_path}")
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("OPENWEATHER_API_KEY", "test-key")
    monkeypatch.delenv("GOOGLE_MAPS_API_KEY", raising=False)
    monkeypatch.delenv("EXPORT_COLUMNS", raising=False)
    app = create_app()
    app.config.update(TESTING=True)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()

@pytest.fixture()
def client(app):
    return app.test_client()


# Builds a forecast payload with 3-hour samples over `days` days starting 2024-05-01 00:00 UTC.
def make_forecast(name="London", lat=51.51, lon=-0.13, days=5, temp=300.0):
    start = 1714521600
    samples = []
    for i in range(days * 8):
        dt = start + i * 3 * 3600
        hour = (i % 8) * 3
        day = 1 + i // 8
        samples.append({
            "dt": dt,
            "dt_txt": f"2024-05-{day:02d} {hour:02d}:00:00",
            "main": {"temp": temp, "feels_like": temp - 1, "humidity": 60, "pressure": 1012},
            "weather": [{"description": "clear sky", "icon": "01d"}],
            "wind": {"speed": 3.5},
            "clouds": {"all": 10},
            "visibility": 10000,
            "pop": 0.2,
        })
    return {
        "list": samples,
        "city": {"name": name, "coord": {"lat": lat, "lon": lon}, "sunrise": 1714536000, "sunset": 1714590000},
    }


def make_air_quality(pm25=8.0):
    return {"list": [{"main": {"aqi": 1}, "components": {"pm2_5": pm25, "pm10": 12.0}}]}


class FakeProvider:
    """Stands in for the weather_api functions and records which ones were called."""

    def __init__(self, geocoded="Springfield", fail=None):
        self.calls = []
        self.geocoded = geocoded
        self.fail = fail

    def _check(self, name):
        if self.fail == name:
            import weather_api as wa
            raise wa.WeatherAPIError(f"{name} failed")

    def fetch_forecast_by_name(self, city, api_key):
        self.calls.append(("name", city))
        self._check("name")
        return make_forecast(name=city.title())

    def fetch_forecast_by_coords(self, lat, lon, api_key):
        self.calls.append(("coords", lat, lon))
        self._check("coords")
        return make_forecast(name="Somewhere", lat=lat, lon=lon)

    def reverse_geocode(self, lat, lon, api_key):
        self.calls.append(("reverse", lat, lon))
        self._check("reverse")
        return self.geocoded

    def fetch_air_quality(self, lat, lon, api_key):
        self.calls.append(("air", lat, lon))
        self._check("air")
        return make_air_quality()

    def install(self, monkeypatch):
        import weather_api as wa
        for fn in ("fetch_forecast_by_name", "fetch_forecast_by_coords", "reverse_geocode", "fetch_air_quality"):
            monkeypatch.setattr(wa, fn, getattr(self, fn))
        return self


@pytest.fixture()
def provider(monkeypatch):
    return FakeProvider().install(monkeypatch)
