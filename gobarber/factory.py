from __future__ import annotations

from gobarber.appointments_repository import AppointmentsRepository, InMemoryAppointmentsRepository
from gobarber.config import Settings


def build_repository(settings: Settings) -> AppointmentsRepository:
    """Return the repository selected by ``settings.repository_backend``.

    Raises:
        ValueError: unknown backend name.
    """
    backend = settings.repository_backend
    if backend == "memory":
        return InMemoryAppointmentsRepository()
    elif backend == "file":
        from gobarber.state_file import FileAppointmentsRepository
        return FileAppointmentsRepository(settings.state_file)
    elif backend == "http":
        from gobarber.http_repository import HttpAppointmentsRepository
        if not settings.api_base_url:
            raise ValueError("api_base_url is required for the http backend")
        return HttpAppointmentsRepository(
            base_url=settings.api_base_url,
            token=settings.api_token,
            timeout_seconds=settings.http_timeout_seconds,
            retry_attempts=settings.http_retry_attempts,
        )
    else:
        raise ValueError(f"Unsupported repository backend: {backend}")
