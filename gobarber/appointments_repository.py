from __future__ import annotations

import datetime as dt
import logging
from abc import ABC, abstractmethod

from gobarber.domain import Appointment, CreateAppointmentData, make_appointment, new_appointment_id

logger = logging.getLogger(__name__)


class AppointmentsRepository(ABC):
    """Storage contract for appointments.

    Implementations must keep these semantics:

    - ``find_by_date`` matches the exact timestamp (no day/range matching) and
      returns ``None`` when the slot is free.
    - ``create`` never checks for an existing appointment at the same date.
      Callers are expected to call ``find_by_date`` first.
    """

    @abstractmethod
    async def find_by_date(self, date: dt.datetime) -> Appointment | None:
        ...

    @abstractmethod
    async def create(self, data: CreateAppointmentData) -> Appointment:
        ...

    async def aclose(self) -> None:
        """Release backend resources (connections, handles). No-op by default."""


class InMemoryAppointmentsRepository(AppointmentsRepository):
    """List-backed repository used as a deterministic double in tests."""

    def __init__(self) -> None:
        self._appointments: list[Appointment] = []

    async def find_by_date(self, date: dt.datetime) -> Appointment | None:
        return next((a for a in self._appointments if a.date == date), None)

    async def create(self, data: CreateAppointmentData) -> Appointment:
        appointment = make_appointment(new_appointment_id(), data.provider_id, data.date)
        self._appointments.append(appointment)
        logger.debug("Appointment stored in memory: id=%s date=%s", appointment.id, appointment.date.isoformat())
        return appointment

    def all(self) -> tuple[Appointment, ...]:
        return tuple(self._appointments)
