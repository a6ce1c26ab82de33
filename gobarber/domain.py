from __future__ import annotations

import datetime as dt
import uuid
from dataclasses import dataclass


@dataclass(frozen=True)
class Appointment:
    """A single booked slot with a service provider."""

    id: str
    provider_id: str
    date: dt.datetime


@dataclass(frozen=True)
class CreateAppointmentData:
    provider_id: str
    date: dt.datetime


def new_appointment_id() -> str:
    return str(uuid.uuid4())


def make_appointment(id: str, provider_id: str, date: dt.datetime) -> Appointment:
    return Appointment(id=id, provider_id=provider_id, date=date)


class RepositoryError(RuntimeError):
    """Storage backend failure (file I/O, network, invalid response).

    The in-memory repository never raises it.
    """


class AppointmentAlreadyBookedError(RuntimeError):
    """The requested slot already has an appointment."""

    def __init__(self, date: dt.datetime) -> None:
        super().__init__(f"This appointment is already booked: {date.isoformat()}")
        self.date = date


def appointment_to_dict(appointment: Appointment) -> dict[str, str]:
    return {
        "id": appointment.id,
        "provider_id": appointment.provider_id,
        "date": appointment.date.isoformat(),
    }


def appointment_from_dict(item: dict) -> Appointment:
    return make_appointment(
        str(item["id"]),
        str(item["provider_id"]),
        dt.datetime.fromisoformat(str(item["date"])),
    )
