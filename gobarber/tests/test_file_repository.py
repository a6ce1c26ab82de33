from __future__ import annotations

import asyncio
import datetime as dt
import json

import pytest

from gobarber.domain import CreateAppointmentData, RepositoryError
from gobarber.state_file import FileAppointmentsRepository, load_appointments, save_appointments

T1 = dt.datetime(2025, 5, 20, 9, 0, tzinfo=dt.timezone.utc)
T2 = dt.datetime(2025, 5, 20, 10, 0, tzinfo=dt.timezone.utc)


def test_missing_file_is_empty_repository(tmp_path) -> None:
    repo = FileAppointmentsRepository(str(tmp_path / "appointments.json"))
    assert asyncio.run(repo.find_by_date(T1)) is None


def test_appointments_survive_a_new_instance(tmp_path) -> None:
    path = str(tmp_path / "nested" / "appointments.json")

    async def write():
        repo = FileAppointmentsRepository(path)
        a1 = await repo.create(CreateAppointmentData(provider_id="p1", date=T1))
        a2 = await repo.create(CreateAppointmentData(provider_id="p2", date=T2))
        return a1, a2

    a1, a2 = asyncio.run(write())

    reopened = FileAppointmentsRepository(path)
    assert asyncio.run(reopened.find_by_date(T1)) == a1
    assert asyncio.run(reopened.find_by_date(T2)) == a2
    assert load_appointments(path) == [a1, a2]


def test_state_file_format(tmp_path) -> None:
    path = tmp_path / "appointments.json"
    repo = FileAppointmentsRepository(str(path))
    created = asyncio.run(repo.create(CreateAppointmentData(provider_id="p1", date=T1)))

    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw == {
        "appointments": [
            {"id": created.id, "provider_id": "p1", "date": "2025-05-20T09:00:00+00:00"},
        ]
    }


def test_duplicate_date_is_not_rejected(tmp_path) -> None:
    repo = FileAppointmentsRepository(str(tmp_path / "appointments.json"))

    async def scenario():
        first = await repo.create(CreateAppointmentData(provider_id="p1", date=T1))
        second = await repo.create(CreateAppointmentData(provider_id="p2", date=T1))
        return first, second, await repo.find_by_date(T1)

    first, second, found = asyncio.run(scenario())
    assert first.id != second.id
    assert found == first


def test_corrupted_file_raises_repository_error(tmp_path) -> None:
    path = tmp_path / "appointments.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(RepositoryError, match="Corrupted state file"):
        FileAppointmentsRepository(str(path))


def test_malformed_record_raises_repository_error(tmp_path) -> None:
    path = tmp_path / "appointments.json"
    path.write_text(json.dumps({"appointments": [{"id": "1", "date": "2025-05-20T09:00:00"}]}), encoding="utf-8")

    with pytest.raises(RepositoryError, match="Malformed appointment record"):
        load_appointments(str(path))


def test_failed_write_keeps_memory_unchanged(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    repo = FileAppointmentsRepository(str(tmp_path / "appointments.json"))

    def _fail(*args, **kwargs):
        raise RepositoryError("disk full")

    monkeypatch.setattr("gobarber.state_file.save_appointments", _fail)

    with pytest.raises(RepositoryError):
        asyncio.run(repo.create(CreateAppointmentData(provider_id="p1", date=T1)))
    assert asyncio.run(repo.find_by_date(T1)) is None


def test_save_appointments_wraps_os_errors(tmp_path) -> None:
    # A directory where the file should be makes os.replace fail.
    target = tmp_path / "appointments.json"
    target.mkdir()

    with pytest.raises(RepositoryError, match="Failed to write state file"):
        save_appointments(str(target), [])
    assert list(tmp_path.glob("*.tmp")) == []


def test_failed_create_leaves_no_temp_file_and_no_appointment(tmp_path) -> None:
    target = tmp_path / "appointments.json"
    repo = FileAppointmentsRepository(str(target))
    target.mkdir()

    for _ in range(3):
        with pytest.raises(RepositoryError):
            asyncio.run(repo.create(CreateAppointmentData(provider_id="p1", date=T1)))

    assert list(tmp_path.glob("*.tmp")) == []
    assert asyncio.run(repo.find_by_date(T1)) is None
    assert repo.all() == ()
