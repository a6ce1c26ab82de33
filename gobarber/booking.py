from __future__ import annotations

import datetime as dt
import logging

from gobarber.appointments_repository import AppointmentsRepository
from gobarber.domain import Appointment, AppointmentAlreadyBookedError, CreateAppointmentData

logger = logging.getLogger(__name__)


def normalize_slot(date: dt.datetime, slot_minutes: int = 60) -> dt.datetime:
    """Floor ``date`` to the start of its slot (60 -> start of the hour)."""
    if slot_minutes < 1 or (24 * 60) % slot_minutes:
        raise ValueError(f"slot_minutes must be a positive divisor of 1440, got {slot_minutes}")

    minute_of_day = date.hour * 60 + date.minute
    floored = minute_of_day - minute_of_day % slot_minutes
    return date.replace(hour=floored // 60, minute=floored % 60, second=0, microsecond=0)


async def book_appointment(
    repository: AppointmentsRepository,
    *,
    provider_id: str,
    date: dt.datetime,
    slot_minutes: int = 60,
) -> Appointment:
    """Book the slot containing ``date`` for ``provider_id``.

    The lookup and the write are two separate calls, so two concurrent
    callers can both book the same slot.
    """
    slot = normalize_slot(date, slot_minutes)

    if await repository.find_by_date(slot) is not None:
        logger.info("Slot %s is already booked", slot.isoformat())
        raise AppointmentAlreadyBookedError(slot)

    appointment = await repository.create(CreateAppointmentData(provider_id=provider_id, date=slot))
    logger.info("Booked %s for provider_id=%s (id=%s)", slot.isoformat(), provider_id, appointment.id)
    return appointment
