from datetime import datetime, timezone
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def _utcnow():
    return datetime.now(timezone.utc)


class WeatherRecord(db.Model):
    __tablename__ = "weather_records"

    id = db.Column(db.Integer, primary_key=True)
    location = db.Column(db.String(255), nullable=False, index=True)

    # Raw provider payloads, stored as returned and projected on read.
    weather_data = db.Column(db.JSON, nullable=False)
    air_quality = db.Column(db.JSON, nullable=True)

    note = db.Column(db.Text, nullable=False, default="")

    created_at = db.Column(db.DateTime, nullable=False, default=_utcnow, index=True)

    def to_dict(self):
        return {
            "id": self.id,
            "location": self.location,
            "weatherData": self.weather_data,
            "airQuality": self.air_quality,
            "note": self.note or "",
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<WeatherRecord {self.id} {self.location}>"
