"""
Club subscription automaton.

Status per (account, program) only moves ACTIVE -> PAUSED -> CANCELED. The
per-row computation is a pure function of the row and a reference ``today``;
the sweep writes a row only when its status actually changes, with a
conditional update so concurrent sweeps never overwrite each other.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from sqlalchemy import update
from sqlalchemy.orm import Session

from points_ledger import config
from points_ledger.models.club_subscription import ClubSubscription
from points_ledger.models.enums import ClubStatus, Program
from points_ledger.services.dates import add_days, clamp_day, next_month_on_day


logger = logging.getLogger(__name__)

LIVELO_INACTIVE_AFTER_DAYS = 30
SMILES_BONUS_ELIGIBLE_AFTER_DAYS = 365

# days between becoming inactive and being canceled
CANCEL_GRACE_DAYS: dict[Program, int] = {
    Program.LATAM: 10,
    Program.SMILES: 60,
}

MONTHLY_PROGRAMS = {Program.LATAM, Program.SMILES}


@dataclass(frozen=True)
class ClubDates:
    next_renewal_at: date | None = None
    inactive_at: date | None = None
    cancel_at: date | None = None


@dataclass
class SweepStats:
    team: str | None
    scanned: int
    changed: int


def compute_club_dates(
    *,
    program: Program,
    subscribed_at: date,
    renewal_day: int,
    last_renewed_at: date | None,
) -> ClubDates:
    if program in MONTHLY_PROGRAMS:
        base = last_renewed_at or subscribed_at
        # always the month after the base, never the same month
        due = next_month_on_day(base, renewal_day)
        inactive_at = add_days(due, 1)
        return ClubDates(
            next_renewal_at=due,
            inactive_at=inactive_at,
            cancel_at=add_days(inactive_at, CANCEL_GRACE_DAYS[program]),
        )

    if program is Program.LIVELO:
        inactive_at = add_days(subscribed_at, LIVELO_INACTIVE_AFTER_DAYS)
        return ClubDates(next_renewal_at=inactive_at, inactive_at=inactive_at)

    # ESFERA: manual
    return ClubDates()


def compute_candidate_status(
    *,
    program: Program,
    subscribed_at: date,
    renewal_day: int,
    last_renewed_at: date | None,
    today: date,
) -> ClubStatus:
    """Status the calendar alone implies, ignoring the stored one."""
    if program is Program.ESFERA:
        return ClubStatus.ACTIVE

    dates = compute_club_dates(
        program=program,
        subscribed_at=subscribed_at,
        renewal_day=renewal_day,
        last_renewed_at=last_renewed_at,
    )

    if dates.cancel_at is not None and today >= dates.cancel_at:
        return ClubStatus.CANCELED
    if dates.inactive_at is not None and today >= dates.inactive_at:
        return ClubStatus.PAUSED
    return ClubStatus.ACTIVE


def compute_next_status(
    *,
    program: Program,
    status: ClubStatus,
    subscribed_at: date,
    renewal_day: int,
    last_renewed_at: date | None,
    today: date,
) -> ClubStatus:
    if status.is_terminal or program is Program.ESFERA:
        return status

    candidate = compute_candidate_status(
        program=program,
        subscribed_at=subscribed_at,
        renewal_day=renewal_day,
        last_renewed_at=last_renewed_at,
        today=today,
    )
    return status.downgrade_to(candidate)


def describe_subscription(sub: ClubSubscription) -> dict:
    dates = compute_club_dates(
        program=sub.program,
        subscribed_at=sub.subscribed_at,
        renewal_day=sub.renewal_day,
        last_renewed_at=sub.last_renewed_at,
    )

    bonus_eligible_at = None
    if sub.program is Program.SMILES:
        # one SMILES row per account, so its own subscribed_at is the latest
        bonus_eligible_at = add_days(sub.subscribed_at, SMILES_BONUS_ELIGIBLE_AFTER_DAYS)

    return {
        "id": sub.id,
        "team": sub.team,
        "account_id": sub.account_id,
        "program": sub.program,
        "status": sub.status,
        "subscribed_at": sub.subscribed_at,
        "last_renewed_at": sub.last_renewed_at,
        "renewal_day": sub.renewal_day,
        "price_cents": sub.price_cents,
        "notes": sub.notes,
        "next_renewal_at": dates.next_renewal_at,
        "inactive_at": dates.inactive_at,
        "cancel_at": dates.cancel_at,
        "bonus_eligible_at": bonus_eligible_at,
        "created_at": sub.created_at,
        "updated_at": sub.updated_at,
    }


# ============================================================
# SWEEP
# ============================================================

def _apply_transition(db: Session, sub_id, read_status: ClubStatus, next_status: ClubStatus) -> int:
    """Write ``next_status`` only if the row still holds ``read_status``. Returns rows changed."""
    result = db.execute(
        update(ClubSubscription)
        .where(ClubSubscription.id == sub_id)
        .where(ClubSubscription.status == read_status)
        .values(status=next_status)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


def run_club_sweep(
    db: Session,
    *,
    team: str,
    today: date,
    batch_size: int | None = None,
) -> SweepStats:
    batch_size = max(1, int(batch_size or config.CLUB_SWEEP_BATCH_SIZE))

    rows = (
        db.query(
            ClubSubscription.id,
            ClubSubscription.program,
            ClubSubscription.status,
            ClubSubscription.subscribed_at,
            ClubSubscription.renewal_day,
            ClubSubscription.last_renewed_at,
        )
        .filter(ClubSubscription.team == team)
        .filter(ClubSubscription.status != ClubStatus.CANCELED)
        .all()
    )
    # end the read transaction before writing in batches
    db.commit()

    transitions = []
    for r in rows:
        next_status = compute_next_status(
            program=r.program,
            status=r.status,
            subscribed_at=r.subscribed_at,
            renewal_day=clamp_day(r.renewal_day),
            last_renewed_at=r.last_renewed_at,
            today=today,
        )
        if next_status is not r.status:
            transitions.append((r.id, r.status, next_status))

    changed = 0
    for start in range(0, len(transitions), batch_size):
        chunk = transitions[start:start + batch_size]
        try:
            for sub_id, read_status, next_status in chunk:
                changed += _apply_transition(db, sub_id, read_status, next_status)
            db.commit()
        except Exception:
            db.rollback()
            raise

    logger.info(
        "club sweep finished",
        extra={"team": team, "today": today.isoformat(), "scanned": len(rows), "changed": changed},
    )
    return SweepStats(team=team, scanned=len(rows), changed=changed)


def list_sweep_teams(db: Session) -> list[str]:
    return [
        row[0]
        for row in db.query(ClubSubscription.team).distinct().order_by(ClubSubscription.team.asc()).all()
    ]


def run_club_sweep_all_teams(db: Session, *, today: date, batch_size: int | None = None) -> dict:
    teams = list_sweep_teams(db)

    scanned = 0
    changed = 0
    for team in teams:
        stats = run_club_sweep(db, team=team, today=today, batch_size=batch_size)
        scanned += stats.scanned
        changed += stats.changed

    return {"teams": len(teams), "scanned": scanned, "changed": changed}
