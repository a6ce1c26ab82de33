from __future__ import annotations

import datetime as dt
import logging
from typing import Awaitable, Callable

import httpx
from tenacity import RetryCallState, retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from gobarber.appointments_repository import AppointmentsRepository
from gobarber.domain import (
    Appointment,
    CreateAppointmentData,
    RepositoryError,
    appointment_from_dict,
)

logger = logging.getLogger(__name__)


def _short_exc(retry_state: RetryCallState) -> str | None:
    if retry_state.outcome is None or not retry_state.outcome.failed:
        return None
    exc = retry_state.outcome.exception()
    if exc is None:
        return None
    msg = str(exc).strip()
    return f"{type(exc).__name__}: {msg}" if msg else type(exc).__name__


def _log_before_sleep(retry_state: RetryCallState) -> None:
    sleep_seconds = getattr(retry_state.next_action, "sleep", None)
    reason = _short_exc(retry_state)
    logger.warning(
        "Appointments API attempt %s failed (%s), retrying in %.1f s",
        retry_state.attempt_number,
        reason,
        sleep_seconds or 0.0,
    )


class HttpAppointmentsRepository(AppointmentsRepository):
    """Repository backed by a remote appointments API.

    ``GET /appointments?date=<iso>`` answers 404 for a free slot and the
    appointment otherwise. ``POST /appointments`` creates one.
    """

    def __init__(
        self,
        *,
        base_url: str,
        token: str | None = None,
        timeout_seconds: float = 20.0,
        retry_attempts: int = 2,
        retry_wait_seconds: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout_seconds,
            transport=transport,
        )
        self._retry_attempts = retry_attempts
        self._retry_wait_seconds = retry_wait_seconds

    async def __aenter__(self) -> HttpAppointmentsRepository:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _with_retry(
        self,
        func: Callable[..., Awaitable[httpx.Response]],
        retry_on: type[Exception],
    ) -> Callable[..., Awaitable[httpx.Response]]:
        return retry(
            stop=stop_after_attempt(self._retry_attempts),
            wait=wait_exponential(multiplier=self._retry_wait_seconds, max=4),
            retry=retry_if_exception_type(retry_on),
            before_sleep=_log_before_sleep,
            reraise=True,
        )(func)

    async def _get_by_date(self, date: dt.datetime) -> httpx.Response:
        return await self._client.get("/appointments", params={"date": date.isoformat()})

    async def _post(self, data: CreateAppointmentData) -> httpx.Response:
        payload = {
            "provider_id": data.provider_id,
            "date": data.date.isoformat(),
        }
        return await self._client.post("/appointments", json=payload)

    async def find_by_date(self, date: dt.datetime) -> Appointment | None:
        try:
            response = await self._with_retry(self._get_by_date, httpx.TransportError)(date)
        except httpx.HTTPError as e:
            raise RepositoryError(f"Appointment lookup failed ({type(e).__name__}: {e})") from e

        if response.status_code == 404:
            return None

        appointment = _decode_appointment(response, expected=(200,))
        if appointment.date != date:
            raise RepositoryError(
                f"Appointments API returned slot {appointment.date.isoformat()} for lookup {date.isoformat()}"
            )
        return appointment

    async def create(self, data: CreateAppointmentData) -> Appointment:
        # Only retry when the request never reached the server.
        try:
            response = await self._with_retry(self._post, httpx.ConnectError)(data)
        except httpx.HTTPError as e:
            raise RepositoryError(f"Appointment creation failed ({type(e).__name__}: {e})") from e

        appointment = _decode_appointment(response, expected=(200, 201))
        logger.info("Appointment %s created remotely", appointment.id)
        return appointment


def _decode_appointment(response: httpx.Response, *, expected: tuple[int, ...]) -> Appointment:
    if response.status_code not in expected:
        raise RepositoryError(
            f"Appointments API error: {response.request.method} {response.request.url} "
            f"returned {response.status_code}"
        )
    try:
        return appointment_from_dict(response.json())
    except (KeyError, TypeError, ValueError) as e:
        raise RepositoryError(f"Invalid appointment payload: {response.text!r}") from e
