"""
Emission quota engine.

Passenger usage per account and program is summed over a program-specific
window that contains the candidate emission date:

* LATAM: rolling window of the 365 calendar days ending on the candidate
  date (the day exactly 365 days earlier has already aged out).
* SMILES: the candidate date's calendar year; resets hard on January 1.
* others: everything since ``OPEN_WINDOW_START`` against a high ceiling.

Dates are calendar days in the reference time zone, so client timestamps
and daylight-saving shifts cannot move an event across a window boundary.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from points_ledger import config
from points_ledger.errors import NotFound
from points_ledger.models.emission_event import EmissionEvent
from points_ledger.models.enums import EmissionSource, Program
from points_ledger.schemas.emission import EmissionEventUpdate
from points_ledger.services.account_service import get_account
from points_ledger.services.dates import add_days, to_reference_date


logger = logging.getLogger(__name__)

LATAM_WINDOW_DAYS = 365
OPEN_WINDOW_START = date(2000, 1, 1)


def emission_limit(program: Program) -> int:
    if program is Program.LATAM:
        return config.EMISSION_LIMIT_LATAM
    if program is Program.SMILES:
        return config.EMISSION_LIMIT_SMILES
    return config.EMISSION_LIMIT_DEFAULT


@dataclass(frozen=True)
class UsageWindow:
    start: date  # inclusive
    end: date  # exclusive

    def contains(self, d: date) -> bool:
        return self.start <= d < self.end


@dataclass(frozen=True)
class UsageReport:
    account_id: object
    program: Program
    window_start: date
    window_end: date
    limit: int
    used: int
    remaining: int


def window_for(program: Program, candidate: date) -> UsageWindow:
    end = add_days(candidate, 1)

    if program is Program.LATAM:
        return UsageWindow(start=add_days(candidate, -(LATAM_WINDOW_DAYS - 1)), end=end)

    if program is Program.SMILES:
        return UsageWindow(start=date(candidate.year, 1, 1), end=date(candidate.year + 1, 1, 1))

    return UsageWindow(start=OPEN_WINDOW_START, end=end)


def get_emission_usage(
    db: Session,
    *,
    team: str,
    account_id,
    program: Program,
    candidate: date | datetime,
) -> UsageReport:
    get_account(db, team=team, account_id=account_id)

    candidate_date = to_reference_date(candidate)
    window = window_for(program, candidate_date)

    used = (
        db.query(func.coalesce(func.sum(EmissionEvent.passengers_count), 0))
        .filter(
            EmissionEvent.account_id == account_id,
            EmissionEvent.program == program,
            EmissionEvent.issued_at >= window.start,
            EmissionEvent.issued_at < window.end,
        )
        .scalar()
    )
    used = int(used or 0)
    limit = emission_limit(program)

    return UsageReport(
        account_id=account_id,
        program=program,
        window_start=window.start,
        window_end=window.end,
        limit=limit,
        used=used,
        remaining=max(0, limit - used),
    )


def record_emission_event(
    db: Session,
    *,
    team: str,
    account_id,
    program: Program,
    issued_at: date | datetime,
    passengers_count: int,
    source: EmissionSource = EmissionSource.MANUAL,
    note: str | None = None,
) -> EmissionEvent:
    get_account(db, team=team, account_id=account_id)

    note = (note or "").strip() or None
    event = EmissionEvent(
        team=team,
        account_id=account_id,
        program=program,
        issued_at=to_reference_date(issued_at),
        passengers_count=int(passengers_count),
        source=source,
        note=note,
    )
    db.add(event)
    db.commit()
    db.refresh(event)

    logger.info(
        "emission recorded",
        extra={
            "event_id": str(event.id),
            "account_id": str(account_id),
            "program": program.value,
            "issued_at": event.issued_at.isoformat(),
            "passengers": event.passengers_count,
        },
    )
    return event


def get_emission_event(db: Session, *, team: str, event_id) -> EmissionEvent:
    event = (
        db.query(EmissionEvent)
        .filter(EmissionEvent.id == event_id, EmissionEvent.team == team)
        .first()
    )
    if not event:
        raise NotFound("Emission event not found")
    return event


def list_emission_events(db: Session, *, team: str, account_id, program: Program, take: int = 50):
    take = max(1, min(take, 200))
    return (
        db.query(EmissionEvent)
        .filter(EmissionEvent.team == team)
        .filter(EmissionEvent.account_id == account_id)
        .filter(EmissionEvent.program == program)
        .order_by(EmissionEvent.issued_at.desc(), EmissionEvent.created_at.desc())
        .limit(take)
        .all()
    )


def update_emission_event(db: Session, *, team: str, event_id, patch: EmissionEventUpdate) -> EmissionEvent:
    """Only the passenger count and the note are correctable."""
    event = get_emission_event(db, team=team, event_id=event_id)

    data = patch.model_dump(exclude_unset=True)
    if data.get("passengers_count") is not None:
        event.passengers_count = int(data["passengers_count"])
    if "note" in data:
        event.note = (data["note"] or "").strip() or None

    db.commit()
    db.refresh(event)
    return event


def delete_emission_event(db: Session, *, team: str, event_id) -> None:
    """Reversal of a canceled sale's passenger usage."""
    event = get_emission_event(db, team=team, event_id=event_id)
    db.delete(event)
    db.commit()

    logger.info("emission deleted", extra={"event_id": str(event_id)})
