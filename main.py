import argparse
import asyncio
import datetime as dt
import json
import logging

from gobarber.booking import book_appointment
from gobarber.config import Settings, load_settings
from gobarber.domain import AppointmentAlreadyBookedError, RepositoryError, appointment_to_dict
from gobarber.factory import build_repository

logger = logging.getLogger(__name__)


def _setup_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )


def _parse_date(raw: str) -> dt.datetime:
    try:
        return dt.datetime.fromisoformat(raw)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid ISO-8601 date: {raw!r}") from e


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="GoBarber: appointment booking")
    sub = parser.add_subparsers(dest="command", required=True)

    book = sub.add_parser("book", help="Book the slot containing --date")
    book.add_argument("--provider-id", required=True, help="Service provider id")
    book.add_argument("--date", required=True, type=_parse_date, help="ISO-8601 date/time")

    find = sub.add_parser("find", help="Show the appointment booked at exactly --date")
    find.add_argument("--date", required=True, type=_parse_date, help="ISO-8601 date/time")

    return parser


async def _run(args: argparse.Namespace, settings: Settings) -> int:
    repository = build_repository(settings)
    try:
        if args.command == "book":
            try:
                appointment = await book_appointment(
                    repository,
                    provider_id=args.provider_id,
                    date=args.date,
                    slot_minutes=settings.slot_minutes,
                )
            except AppointmentAlreadyBookedError as e:
                logger.error("%s", e)
                return 2
        else:
            appointment = await repository.find_by_date(args.date)
            if appointment is None:
                logger.info("No appointment at %s", args.date.isoformat())
                return 1

        print(json.dumps(appointment_to_dict(appointment), ensure_ascii=False))
        return 0
    finally:
        await repository.aclose()


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    _setup_logging()
    settings = load_settings()

    try:
        return asyncio.run(_run(args, settings))
    except RepositoryError as e:
        logger.error("Repository failure (%s: %s)", type(e).__name__, e)
        raise


if __name__ == "__main__":
    raise SystemExit(main())
