import pytest

import presenter
from conftest import make_air_quality, make_forecast

def test_kelvin_to_celsius_rounds_half_up():
    assert presenter.kelvin_to_celsius(300.0) == 27
    assert presenter.kelvin_to_celsius(273.15) == 0
    assert presenter.kelvin_to_celsius(None) is None

@pytest.mark.parametrize("pm25, label", [
    (0, "Healthy"),
    (12, "Healthy"),
    (12.1, "Moderate"),
    (35.4, "Moderate"),
    (35.5, "Unhealthy for Sensitive Groups"),
    (55.4, "Unhealthy for Sensitive Groups"),
    (100, "Unhealthy"),
    (150.4, "Unhealthy"),
    (150.5, "Very Unhealthy"),
    (500, "Very Unhealthy"),
])
def test_health_label_breakpoints(pm25, label):
    assert presenter.health_label(pm25) == label

def test_daily_forecast_picks_middays():
    days = presenter.daily_forecast(make_forecast(days=5))
    assert len(days) == 5
    assert all("12:00:00" in d["dt_txt"] for d in days)

def test_daily_forecast_is_capped_at_five():
    assert len(presenter.daily_forecast(make_forecast(days=6))) == 5

def test_daily_forecast_without_samples():
    assert presenter.daily_forecast({}) == []
    assert presenter.daily_forecast(None) == []

def test_day_samples_and_series():
    payload = make_forecast(days=3)
    midday = presenter.daily_forecast(payload)[1]
    samples = presenter.day_samples(payload, midday["dt"])
    assert len(samples) == 8
    assert all(s["dt_txt"].startswith("2024-05-02") for s in samples)

    series = presenter.temperature_series(samples)
    assert series["labels"][0] == "00:00"
    assert series["labels"][4] == "12:00"
    assert series["data"] == [27] * 8

def test_toggle_expanded_keeps_one_day_open():
    assert presenter.toggle_expanded(None, 10) == 10
    assert presenter.toggle_expanded(10, 20) == 20
    assert presenter.toggle_expanded(20, 20) is None

def test_day_details():
    payload = make_forecast()
    day = presenter.daily_forecast(payload)[0]
    details = presenter.day_details(day, payload["city"])
    assert details["temperature_c"] == 27
    assert details["feels_like_c"] == 26
    assert details["visibility_km"] == 10
    assert details["precipitation_pct"] == 20
    assert details["sunrise"] == "04:00"
    assert details["sunset"] == "19:00"
    assert details["date"] == "Wednesday, May 01"

def test_air_quality_summary():
    summary = presenter.air_quality_summary(make_air_quality(pm25=40.0))
    assert summary["aqi"] == 1
    assert summary["label"] == "Unhealthy for Sensitive Groups"
    assert presenter.air_quality_summary(None) is None
    assert presenter.air_quality_summary({"list": []}) is None

def test_map_query_prefers_coordinates():
    record = {"location": "London", "weatherData": make_forecast(lat=51.5, lon=-0.1)}
    assert presenter.map_query(record) == "51.5,-0.1"
    assert presenter.map_query({"location": "London", "weatherData": {}}) == "London"

def test_map_embed_url():
    assert presenter.map_embed_url(None, "London") is None
    url = presenter.map_embed_url("key", "51.5,-0.1")
    assert url.startswith(presenter.MAPS_EMBED_URL)
    assert "key=key" in url
    assert "q=51.5%2C-0.1" in url
