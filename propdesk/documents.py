"""
Documents & Meter Readings
Author: Bryce Fountain | Skoll.dev

Uploaded files are stored inline as base64 data URLs so the portfolio JSON
stays self-contained.
"""
import base64
from datetime import date
from typing import Dict, List

from propdesk.models import MeterReading, MeterType, PropertyDocument, new_id


def document_from_upload(name: str, data: bytes, mime_type: str, category: str = "General") -> PropertyDocument:
    """Wrap uploaded file bytes in a PropertyDocument."""
    mime_type = mime_type or "application/octet-stream"
    encoded = base64.b64encode(data).decode("ascii")
    return PropertyDocument(
        id=new_id("d"),
        name=name,
        category=category,
        upload_date=date.today().isoformat(),
        file_size=f"{len(data) / 1024:.0f} KB",
        file_data=f"data:{mime_type};base64,{encoded}",
        mime_type=mime_type,
    )


def base64_payload(file_data: str) -> str:
    """Strip the 'data:...;base64,' prefix of a data URL, if present."""
    return file_data.split(",", 1)[1] if "," in file_data else file_data


def document_bytes(doc: PropertyDocument) -> bytes:
    """Decode a stored document for download."""
    return base64.b64decode(base64_payload(doc.file_data))


# -----------------------------------------------------------------------------
# Meter readings
# -----------------------------------------------------------------------------
def meter_unit(meter_type: MeterType) -> str:
    return "kWh" if MeterType(meter_type) is MeterType.ELECTRICITY else "m³"


def add_meter_reading(readings: List[MeterReading], meter_type: MeterType,
                      value: float = 0.0, serial_number: str = "",
                      reading_date: str = None) -> MeterReading:
    """Append a new reading to a property's or unit's list and return it."""
    reading = MeterReading(
        id=new_id("m"),
        type=MeterType(meter_type),
        value=value,
        unit=meter_unit(meter_type),
        date=reading_date or date.today().isoformat(),
        serial_number=serial_number,
    )
    readings.append(reading)
    return reading


def meter_consumption(readings: List[MeterReading]) -> Dict[str, float]:
    """
    Consumption per meter: latest minus earliest reading.

    Readings are grouped by serial number (or meter type when no serial
    number is recorded); meters with a single reading report 0.
    """
    groups: Dict[str, List[MeterReading]] = {}
    for reading in readings:
        label = reading.serial_number or reading.type.value
        groups.setdefault(label, []).append(reading)

    consumption = {}
    for label, group in groups.items():
        ordered = sorted(group, key=lambda r: r.date)
        consumption[label] = ordered[-1].value - ordered[0].value
    return consumption
