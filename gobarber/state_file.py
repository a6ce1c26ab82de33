from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
from typing import Iterable

from gobarber.appointments_repository import InMemoryAppointmentsRepository
from gobarber.domain import (
    Appointment,
    CreateAppointmentData,
    RepositoryError,
    appointment_from_dict,
    appointment_to_dict,
    make_appointment,
    new_appointment_id,
)

logger = logging.getLogger(__name__)


def load_appointments(path: str) -> list[Appointment]:
    if not os.path.exists(path):
        return []

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except json.JSONDecodeError as e:
        raise RepositoryError(f"Corrupted state file {path}: {e}") from e
    except OSError as e:
        raise RepositoryError(f"Failed to read state file {path}: {e}") from e

    try:
        return [appointment_from_dict(item) for item in raw.get("appointments", [])]
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise RepositoryError(f"Malformed appointment record in {path}: {e}") from e


def save_appointments(path: str, appointments: Iterable[Appointment]) -> None:
    # Insertion order is kept as is.
    data = {
        "appointments": [appointment_to_dict(a) for a in appointments],
    }

    folder = os.path.dirname(os.path.abspath(path))
    tmp_name: str | None = None
    try:
        if folder and not os.path.exists(folder):
            os.makedirs(folder, exist_ok=True)

        # Atomic write
        with tempfile.NamedTemporaryFile("w", delete=False, encoding="utf-8", dir=folder, suffix=".tmp") as tf:
            tmp_name = tf.name
            json.dump(data, tf, ensure_ascii=False, indent=2)

        os.replace(tmp_name, path)
        tmp_name = None
    except OSError as e:
        raise RepositoryError(f"Failed to write state file {path}: {e}") from e
    finally:
        # Leftover temp file from a failed write
        if tmp_name is not None:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)


class FileAppointmentsRepository(InMemoryAppointmentsRepository):
    """Appointments kept in a JSON file, loaded once per instance."""

    def __init__(self, path: str) -> None:
        super().__init__()
        self.path = path
        self._appointments = load_appointments(path)
        logger.info("Loaded %d appointment(s) from %s", len(self._appointments), path)

    async def create(self, data: CreateAppointmentData) -> Appointment:
        appointment = make_appointment(new_appointment_id(), data.provider_id, data.date)

        # Persist before touching in-memory state.
        save_appointments(self.path, [*self._appointments, appointment])
        self._appointments.append(appointment)

        logger.info("Appointment %s saved to %s", appointment.id, self.path)
        return appointment
