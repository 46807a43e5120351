import csv
import io
import json

DEFAULT_COLUMNS = ("id", "location", "note", "createdAt")

FORMATS = {
    "json": ("weather_data.json", "application/json"),
    "csv": ("weather_data.csv", "text/csv"),
    "markdown": ("weather_data.md", "text/markdown"),
}

COLUMN_TITLES = {
    "id": "ID",
    "location": "Location",
    "note": "Note",
    "createdAt": "Created",
    "latitude": "Latitude",
    "longitude": "Longitude",
}


# Returns the value for one export column; lat/lon come from the forecast's city block.
def _value(record, column):
    if column in ("latitude", "longitude"):
        coord = ((record.get("weatherData") or {}).get("city") or {}).get("coord") or {}
        return coord.get(column[:3])
    return record.get(column)


def _title(column):
    return COLUMN_TITLES.get(column, column)


def to_json(records):
    return json.dumps(list(records), indent=2)


# One physical line per record: embedded line breaks become spaces.
def _cell(value):
    if value is None:
        return ""
    if isinstance(value, str):
        return " ".join(value.splitlines())
    return value


def to_csv(records, columns=DEFAULT_COLUMNS):
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow([_title(c) for c in columns])
    for record in records:
        writer.writerow([_cell(_value(record, c)) for c in columns])
    return buffer.getvalue()


def to_markdown(records, columns=DEFAULT_COLUMNS):
    blocks = []
    for record in records:
        lines = []
        for i, column in enumerate(columns):
            value = _value(record, column)
            prefix = "- " if i == 0 else "  "
            lines.append(f"{prefix}**{_title(column)}**: {'' if value is None else value}")
        blocks.append("\n".join(lines) + "\n")
    return "# Weather Data\n\n" + "\n".join(blocks)


def export(records, fmt, columns=None):
    """
    Render serialized records in `fmt` ("json", "csv" or "markdown").
    Returns (content, filename, mimetype). Raises ValueError for other formats.
    """
    if fmt not in FORMATS:
        raise ValueError(f"Unsupported export format: {fmt!r}")
    columns = tuple(columns or DEFAULT_COLUMNS)
    filename, mimetype = FORMATS[fmt]
    if fmt == "json":
        content = to_json(records)
    elif fmt == "csv":
        content = to_csv(records, columns)
    else:
        content = to_markdown(records, columns)
    return content, filename, mimetype
