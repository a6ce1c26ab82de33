from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

REPOSITORY_BACKENDS = ("memory", "file", "http")


@dataclass(frozen=True)
class Settings:
    repository_backend: str = "file"

    # Where the file backend keeps appointments
    state_file: str = "appointments.json"

    # HTTP backend
    api_base_url: str | None = None
    api_token: str | None = None
    http_timeout_seconds: float = 20.0
    # How many times a failed request is attempted before giving up.
    http_retry_attempts: int = 2

    # Slot granularity used to normalize booking dates (60 = start of the hour).
    slot_minutes: int = 60


def _optional(name: str) -> str | None:
    value = os.getenv(name, "").strip()
    return value or None


def _parse_int(name: str, default: str) -> int:
    raw = os.getenv(name, default).strip()
    try:
        return int(raw)
    except ValueError as e:
        raise RuntimeError(f"Invalid {name} value: {raw!r}. Expected integer.") from e


def _parse_float(name: str, default: str) -> float:
    raw = os.getenv(name, default).strip()
    try:
        return float(raw)
    except ValueError as e:
        raise RuntimeError(f"Invalid {name} value: {raw!r}. Expected number.") from e


def load_settings(dotenv_path: str | None = None) -> Settings:
    # Prefer .env in repo root; dotenv_path allows overriding in tests.
    load_dotenv(dotenv_path=dotenv_path, override=False)

    repository_backend = os.getenv("REPOSITORY_BACKEND", "file").strip().lower()
    if repository_backend not in REPOSITORY_BACKENDS:
        raise RuntimeError(
            f"Invalid REPOSITORY_BACKEND value: {repository_backend!r}. "
            f"Expected one of: {', '.join(REPOSITORY_BACKENDS)}"
        )

    api_base_url = _optional("API_BASE_URL")
    if repository_backend == "http" and not api_base_url:
        raise RuntimeError("Missing required environment variable: API_BASE_URL (REPOSITORY_BACKEND=http)")

    state_file = os.getenv("STATE_FILE", "appointments.json").strip()
    if repository_backend == "file" and not state_file:
        raise RuntimeError("STATE_FILE is empty (REPOSITORY_BACKEND=file)")

    http_timeout_seconds = _parse_float("HTTP_TIMEOUT_SECONDS", "20")
    if http_timeout_seconds <= 0:
        raise RuntimeError("HTTP_TIMEOUT_SECONDS must be > 0")

    http_retry_attempts = _parse_int("HTTP_RETRY_ATTEMPTS", "2")
    if http_retry_attempts < 1:
        raise RuntimeError("HTTP_RETRY_ATTEMPTS must be >= 1")

    slot_minutes = _parse_int("SLOT_MINUTES", "60")
    if slot_minutes < 1 or (24 * 60) % slot_minutes:
        raise RuntimeError("SLOT_MINUTES must be a positive divisor of 1440")

    return Settings(
        repository_backend=repository_backend,
        state_file=state_file,
        api_base_url=api_base_url,
        api_token=_optional("API_TOKEN"),
        http_timeout_seconds=http_timeout_seconds,
        http_retry_attempts=http_retry_attempts,
        slot_minutes=slot_minutes,
    )
