"""Attendance engine command line interface.

Provides operational tools for:
- Schema creation
- Pay period generation
- Payroll validation and calculation

Usage:
    python -m attendance_engine init-db
    python -m attendance_engine generate-period --year 2024 --month 1 --period A
    python -m attendance_engine can-generate --date 2024-01-16
    python -m attendance_engine generate-completed
    python -m attendance_engine validate-payroll --period-id X
    python -m attendance_engine calculate-payroll --period-id X [--employee-id Y ...]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import date, datetime
from typing import Any, Awaitable, Callable
from uuid import UUID

from attendance_engine.config import get_settings
from attendance_engine.database import create_schema, get_session, init_db
from attendance_engine.engine import AttendanceEngine
from attendance_engine.errors import AttendanceEngineError
from attendance_engine.models import PayPeriod
from attendance_engine.pay_calendar import can_generate_completed_period

logger = logging.getLogger(__name__)


def parse_date(s: str) -> date:
    """Parse ISO date string."""
    return date.fromisoformat(s)


def parse_uuid(s: str) -> UUID:
    """Parse UUID string."""
    return UUID(s)


def _period_to_dict(period: PayPeriod, label: str) -> dict[str, Any]:
    return {
        "pay_period_id": str(period.pay_period_id),
        "period": label,
        "start_date": period.start_date.isoformat(),
        "end_date": period.end_date.isoformat(),
        "pay_date": period.pay_date.isoformat(),
        "status": period.status,
    }


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str))


class AttendanceCli:
    """Attendance engine command line interface."""

    def __init__(self) -> None:
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="python -m attendance_engine",
            description="Time & attendance operational tools",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        subparsers.add_parser("init-db", help="Create database tables")

        generate = subparsers.add_parser(
            "generate-period",
            help="Create a semi-monthly pay period",
        )
        generate.add_argument("--year", type=int, required=True, help="Calendar year")
        generate.add_argument("--month", type=int, required=True, help="Month (1-12)")
        generate.add_argument(
            "--period",
            choices=["A", "B"],
            required=True,
            help="A = 1st-15th, B = 16th-end of month",
        )

        can_generate = subparsers.add_parser(
            "can-generate",
            help="Check whether a completed period can be generated",
        )
        can_generate.add_argument(
            "--date",
            type=parse_date,
            help="Date to check (default: today in the organization time zone)",
        )

        completed = subparsers.add_parser(
            "generate-completed",
            help="Create the pay period that ended yesterday",
        )
        completed.add_argument("--date", type=parse_date, help="Override today's date")

        validate = subparsers.add_parser(
            "validate-payroll",
            help="Pre-flight checks for a payroll run",
        )
        validate.add_argument("--period-id", type=parse_uuid, required=True)

        calculate = subparsers.add_parser(
            "calculate-payroll",
            help="Calculate payroll for a pay period",
        )
        calculate.add_argument("--period-id", type=parse_uuid, required=True)
        calculate.add_argument(
            "--employee-id",
            type=parse_uuid,
            action="append",
            dest="employee_ids",
            help="Restrict to this employee (repeatable)",
        )
        calculate.add_argument(
            "--commit",
            action="store_true",
            help="Run payroll and move the period to PROCESSING",
        )

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 1

        # Dispatch to command handler
        handlers: dict[str, Callable[[argparse.Namespace], Awaitable[int]]] = {
            "init-db": self._cmd_init_db,
            "generate-period": self._cmd_generate_period,
            "can-generate": self._cmd_can_generate,
            "generate-completed": self._cmd_generate_completed,
            "validate-payroll": self._cmd_validate_payroll,
            "calculate-payroll": self._cmd_calculate_payroll,
        }

        handler = handlers.get(parsed.command)
        if handler is None:
            print(f"Unknown command: {parsed.command}", file=sys.stderr)
            return 1

        try:
            return asyncio.run(handler(parsed))
        except AttendanceEngineError as e:
            logger.error("%s failed: %s", parsed.command, e)
            _print_json({"error": type(e).__name__, "message": str(e)})
            return 2

    async def _cmd_init_db(self, args: argparse.Namespace) -> int:
        """Create all tables."""
        engine, _ = init_db()
        await create_schema(engine)
        _print_json({"status": "ok"})
        return 0

    async def _cmd_generate_period(self, args: argparse.Namespace) -> int:
        """Create one pay period."""
        async with get_session() as session:
            engine = AttendanceEngine(session)
            period = await engine.generate_pay_period(args.year, args.month, args.period)
            _print_json(_period_to_dict(period, engine.periods.label(period)))
        return 0

    async def _cmd_can_generate(self, args: argparse.Namespace) -> int:
        """Report whether a completed period can be generated."""
        today = args.date or datetime.now(get_settings().tz).date()
        check = can_generate_completed_period(today)
        _print_json(
            {
                "allowed": check.allowed,
                "year": check.year,
                "month": check.month,
                "period": check.period.value if check.period else None,
                "reason": check.reason,
            }
        )
        return 0 if check.allowed else 1

    async def _cmd_generate_completed(self, args: argparse.Namespace) -> int:
        """Create the period that ended yesterday."""
        async with get_session() as session:
            engine = AttendanceEngine(session)
            period = await engine.periods.create_completed_period(args.date)
            _print_json(_period_to_dict(period, engine.periods.label(period)))
        return 0

    async def _cmd_validate_payroll(self, args: argparse.Namespace) -> int:
        """Run payroll pre-flight checks."""
        async with get_session() as session:
            validation = await AttendanceEngine(session).validate_payroll_calculation(
                args.period_id
            )
        _print_json(validation.to_dict())
        return 0 if validation.is_valid else 1

    async def _cmd_calculate_payroll(self, args: argparse.Namespace) -> int:
        """Calculate (and optionally run) payroll for a period."""
        async with get_session() as session:
            engine = AttendanceEngine(session)
            if args.commit:
                batch = await engine.run_payroll(args.period_id, args.employee_ids)
            else:
                batch = await engine.calculate_batch_payroll(args.period_id, args.employee_ids)
        _print_json(batch.to_dict())
        return 0 if not batch.failures else 1


def main() -> int:
    """CLI entry point."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    cli = AttendanceCli()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
