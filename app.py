import os

from flask import (
    Flask, Response, abort, flash, jsonify, redirect, render_template, request, url_for,
)
from sqlalchemy.exc import SQLAlchemyError

from models import db
import exporter
import gateway
import presenter

EMPTY_LOCATION = "Please enter a city name"
GEOLOCATION_UNAVAILABLE = "Unable to access your location. Please enter a city name instead."
CITY_NOT_FOUND = "City not found. Please check the spelling and try again."
COORDS_FAILED = "Failed to fetch weather data for your location"


def _columns(value):
    return tuple(c.strip() for c in value.split(",") if c.strip())


# App factory — sets configuration, initializes the database, and registers routes.
def create_app(test_config=None):
    app = Flask(__name__)
    app.config["SECRET_KEY"] = os.environ.get("SECRET_KEY", "dev-secret")
    app.config["SQLALCHEMY_DATABASE_URI"] = os.environ.get("DATABASE_URL", "sqlite:///weather.db")
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.config["OPENWEATHER_API_KEY"] = os.environ.get("OPENWEATHER_API_KEY")
    app.config["GOOGLE_MAPS_API_KEY"] = os.environ.get("GOOGLE_MAPS_API_KEY")
    app.config["EXPORT_COLUMNS"] = _columns(os.environ.get("EXPORT_COLUMNS", ",".join(exporter.DEFAULT_COLUMNS)))
    if test_config:
        app.config.update(test_config)

    app.logger.setLevel(os.environ.get("LOG_LEVEL", "INFO"))

    db.init_app(app)

    with app.app_context():
        db.create_all()

    # ---------- JSON API ----------

    @app.route("/api/weather", methods=["POST"])
    def api_create():
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            body = {}
        note = body.get("note") or ""
        if not isinstance(note, str):
            return jsonify({"error": "note must be a string"}), 400
        try:
            record = gateway.create_record(body.get("location"), note)
        except gateway.InvalidLocation as e:
            app.logger.warning("Rejected location %r: %s", body.get("location"), e)
            return jsonify({"error": str(e)}), 400
        except gateway.GatewayError:
            return jsonify({"error": "Failed to fetch or save data"}), 500
        return jsonify(record.to_dict()), 201

    @app.route("/api/weather", methods=["GET"])
    def api_list():
        try:
            records = gateway.list_records()
        except SQLAlchemyError:
            app.logger.exception("Listing weather records failed")
            return jsonify({"error": "Failed to fetch data"}), 500
        return jsonify([r.to_dict() for r in records])

    @app.route("/api/weather/<int:record_id>", methods=["GET"])
    def api_get(record_id):
        try:
            record = gateway.get_record(record_id)
        except gateway.RecordNotFound:
            return jsonify({"error": "Record not found"}), 404
        return jsonify(record.to_dict())

    @app.route("/api/weather/<int:record_id>", methods=["PUT"])
    def api_update(record_id):
        body = request.get_json(silent=True)
        try:
            record = gateway.update_record(record_id, body)
        except gateway.InvalidPatch as e:
            app.logger.warning("Rejected update for record %s: %s", record_id, e)
            return jsonify({"error": str(e)}), 400
        except gateway.RecordNotFound:
            return jsonify({"error": "Record not found"}), 404
        except gateway.GatewayError:
            return jsonify({"error": "Failed to update data"}), 500
        return jsonify(record.to_dict())

    @app.route("/api/weather/<int:record_id>", methods=["DELETE"])
    def api_delete(record_id):
        try:
            gateway.delete_record(record_id)
        except gateway.GatewayError:
            return jsonify({"error": "Failed to delete data"}), 500
        return jsonify({"message": "Data deleted"})

    # ---------- Lookup form ----------

    @app.route("/", methods=["GET"])
    def index():
        return render_template("index.html", location="", note="")

    # Lookup route — validates the form, resolves the location upstream, and shows the stored result.
    @app.route("/lookup", methods=["POST"])
    def lookup():
        kind = (request.form.get("kind") or "name").strip()
        location = (request.form.get("location") or "").strip()
        note = (request.form.get("note") or "").strip()

        if kind == "coords":
            lat = (request.form.get("lat") or "").strip()
            lon = (request.form.get("lon") or "").strip()
            if not lat or not lon:
                flash(GEOLOCATION_UNAVAILABLE, "error")
                return render_template("index.html", location=location, note=note)
            raw = {"kind": "coords", "lat": lat, "lon": lon}
            failure = COORDS_FAILED
        else:
            if not location:
                flash(EMPTY_LOCATION, "error")
                return render_template("index.html", location=location, note=note)
            raw = {"kind": "name", "value": location}
            failure = CITY_NOT_FOUND

        try:
            record = gateway.create_record(raw, note)
        except gateway.InvalidLocation:
            flash(GEOLOCATION_UNAVAILABLE if kind == "coords" else EMPTY_LOCATION, "error")
            return render_template("index.html", location=location, note=note)
        except gateway.GatewayError:
            flash(failure, "error")
            return render_template("index.html", location=location, note=note)

        return redirect(url_for("results", record_id=record.id))

    # ---------- Result presenter ----------

    @app.route("/results/<int:record_id>", methods=["GET"])
    def results(record_id):
        try:
            record = gateway.get_record(record_id).to_dict()
        except gateway.RecordNotFound:
            abort(404)

        payload = record["weatherData"]
        city = payload.get("city") or {}
        days = [presenter.day_details(day, city) for day in presenter.daily_forecast(payload)]

        expanded = request.args.get("day", type=int)
        if expanded not in {d["dt"] for d in days}:
            expanded = None
        detail = next((d for d in days if d["dt"] == expanded), None)
        chart = presenter.temperature_series(presenter.day_samples(payload, expanded)) if detail else None

        def day_link(dt):
            target = presenter.toggle_expanded(expanded, dt)
            if target is None:
                return url_for("results", record_id=record_id)
            return url_for("results", record_id=record_id, day=target)

        map_url = presenter.map_embed_url(app.config.get("GOOGLE_MAPS_API_KEY"), presenter.map_query(record))

        return render_template(
            "results.html",
            record=record,
            days=days,
            expanded=expanded,
            detail=detail,
            chart=chart,
            air=presenter.air_quality_summary(record["airQuality"]),
            map_url=map_url,
            day_link=day_link,
        )

    # ---------- History manager ----------

    @app.route("/history", methods=["GET"])
    def history():
        records = [r.to_dict() for r in gateway.list_records()]
        editing = request.args.get("edit", type=int)
        draft = next((r for r in records if r["id"] == editing), None)
        return render_template("history.html", records=records, editing=editing if draft else None, draft=draft)

    # Commits an inline edit of location + note.
    @app.route("/history/<int:record_id>/edit", methods=["POST"])
    def edit(record_id):
        patch = {
            "location": (request.form.get("location") or "").strip(),
            "note": (request.form.get("note") or "").strip(),
        }
        try:
            gateway.update_record(record_id, patch)
        except gateway.InvalidPatch as e:
            flash(str(e), "error")
            return redirect(url_for("history", edit=record_id))
        except gateway.RecordNotFound:
            flash("Record not found.", "error")
            return redirect(url_for("history"))
        except gateway.GatewayError:
            flash("Failed to update record.", "error")
            return redirect(url_for("history"))
        flash("Record updated.", "success")
        return redirect(url_for("history"))

    # Deletes the selected record.
    @app.route("/history/<int:record_id>/delete", methods=["POST"])
    def delete(record_id):
        try:
            gateway.delete_record(record_id)
        except gateway.GatewayError:
            flash("Failed to delete record.", "error")
            return redirect(url_for("history"))
        flash("Record deleted.", "success")
        return redirect(url_for("history"))

    @app.route("/history/export", methods=["GET"])
    def export():
        fmt = request.args.get("format", "json")
        records = [r.to_dict() for r in gateway.list_records()]
        try:
            content, filename, mimetype = exporter.export(records, fmt, app.config.get("EXPORT_COLUMNS"))
        except ValueError as e:
            app.logger.warning("Rejected export: %s", e)
            abort(400)
        return Response(
            content,
            mimetype=mimetype,
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    return app

if __name__ == "__main__":
    app = create_app()
    app.run(debug=True)
