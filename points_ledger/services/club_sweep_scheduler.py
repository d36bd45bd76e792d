from __future__ import annotations

import logging
import os
import time
from datetime import datetime
from zoneinfo import ZoneInfo

from croniter import croniter

from points_ledger import config
from points_ledger.db import SessionLocal
from points_ledger.services.club_automaton import run_club_sweep_all_teams
from points_ledger.services.dates import as_utc_aware, reference_today, to_utc_naive, utcnow


logger = logging.getLogger(__name__)


def compute_next_run_at(*, base_utc: datetime, cron_expr: str, tz_name: str | None = None) -> datetime:
    """Next cron fire strictly after ``base_utc``, evaluated in the reference zone, as naive UTC."""
    if not cron_expr:
        raise ValueError("cron expression is required")
    if not croniter.is_valid(cron_expr):
        raise ValueError(f"invalid cron expression: {cron_expr!r}")

    tz = ZoneInfo(tz_name) if tz_name else config.reference_zone()
    base_local = as_utc_aware(base_utc).astimezone(tz)
    it = croniter(cron_expr, base_local)
    next_local: datetime = it.get_next(datetime)
    return to_utc_naive(next_local)


def run_sweep_once(*, now: datetime | None = None) -> dict:
    if now is None:
        now = utcnow()

    today = reference_today(now)
    db = SessionLocal()
    try:
        return run_club_sweep_all_teams(db, today=today)
    finally:
        db.close()


def run_scheduler_loop(
    *,
    worker_id: str | None = None,
    cron_expr: str | None = None,
    max_sleep_seconds: int | None = None,
    max_runs: int | None = None,
):
    if worker_id is None:
        worker_id = os.getenv("CLUB_SWEEP_WORKER_ID") or os.getenv("HOSTNAME") or "worker"
    cron_expr = cron_expr or config.CLUB_SWEEP_CRON
    max_sleep_seconds = max_sleep_seconds or config.CLUB_SWEEP_MAX_SLEEP_SECONDS

    next_run_at = compute_next_run_at(base_utc=utcnow(), cron_expr=cron_expr)

    logger.info(
        "club sweep scheduler started",
        extra={
            "worker_id": worker_id,
            "cron": cron_expr,
            "timezone": config.REFERENCE_TIMEZONE,
            "next_run_at": next_run_at.isoformat(),
        },
    )

    runs = 0
    while max_runs is None or runs < max_runs:
        now = utcnow()

        if now < next_run_at:
            delta = (next_run_at - now).total_seconds()
            sleep_for = min(max_sleep_seconds, max(1, int(delta)))
            logger.debug(
                "club sweep not due; sleeping",
                extra={"sleep_for_seconds": sleep_for, "next_run_at": next_run_at.isoformat()},
            )
            time.sleep(sleep_for)
            continue

        try:
            stats = run_sweep_once(now=now)
            logger.info("club sweep success", extra={"worker_id": worker_id, **stats})
        except Exception:
            # a failed run waits for the next scheduled slot instead of retrying tightly
            logger.exception("club sweep failed", extra={"worker_id": worker_id})
        finally:
            runs += 1
            next_run_at = compute_next_run_at(base_utc=utcnow(), cron_expr=cron_expr)


def main():
    logging.basicConfig(level=config.LOG_LEVEL)
    run_scheduler_loop()


if __name__ == "__main__":
    main()
