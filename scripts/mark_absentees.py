"""
End-of-day batch: record ABSENT for everyone without a check-in.
Meant for cron; safe to re-run for the same date.

    python scripts/mark_absentees.py --date 2024-01-10
"""
import argparse
import logging
from datetime import date

from hrms.core.logging import setup_logging
from hrms.database import session_scope
from hrms.services.attendance_service import AttendanceService

logger = logging.getLogger("hrms.scripts.mark_absentees")


def run(for_date: date) -> int:
    with session_scope() as db:
        created = AttendanceService(db).mark_absentees(for_date)
    logger.info(f"Absence marking complete for {for_date}", extra={"created": created})
    return created


if __name__ == "__main__":
    setup_logging()
    parser = argparse.ArgumentParser(description="Mark absentees for a day")
    parser.add_argument("--date", type=date.fromisoformat, default=date.today())
    args = parser.parse_args()
    print(f"Records created: {run(args.date)}")
