from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from points_ledger.db import get_db
from points_ledger.deps.team import get_active_team
from points_ledger.models.enums import Program
from points_ledger.schemas.emission import (
    EmissionEventCreate,
    EmissionEventOut,
    EmissionEventUpdate,
    EmissionUsageOut,
)
from points_ledger.services import emission_service
from points_ledger.services.dates import reference_today

router = APIRouter(prefix="/emissions", tags=["emissions"])


@router.get("/usage", response_model=EmissionUsageOut)
def get_usage(
    accountId: UUID,
    program: Program,
    issuedDate: date | None = None,
    active_team: str = Depends(get_active_team),
    db: Session = Depends(get_db),
):
    report = emission_service.get_emission_usage(
        db,
        team=active_team,
        account_id=accountId,
        program=program,
        candidate=issuedDate or reference_today(),
    )
    return EmissionUsageOut(
        account_id=report.account_id,
        program=report.program,
        window_start=report.window_start,
        window_end=report.window_end,
        limit=report.limit,
        used=report.used,
        remaining=report.remaining,
    )


@router.get("", response_model=list[EmissionEventOut])
def list_events(
    accountId: UUID,
    program: Program,
    take: int = 50,
    active_team: str = Depends(get_active_team),
    db: Session = Depends(get_db),
):
    return emission_service.list_emission_events(
        db,
        team=active_team,
        account_id=accountId,
        program=program,
        take=take,
    )


@router.post("", response_model=EmissionEventOut, status_code=201)
def record_event(
    payload: EmissionEventCreate,
    active_team: str = Depends(get_active_team),
    db: Session = Depends(get_db),
):
    return emission_service.record_emission_event(
        db,
        team=active_team,
        account_id=payload.account_id,
        program=payload.program,
        issued_at=payload.issued_at,
        passengers_count=payload.passengers_count,
        source=payload.source,
        note=payload.note,
    )


@router.patch("/{event_id}", response_model=EmissionEventOut)
def update_event(
    event_id: UUID,
    patch: EmissionEventUpdate,
    active_team: str = Depends(get_active_team),
    db: Session = Depends(get_db),
):
    return emission_service.update_emission_event(db, team=active_team, event_id=event_id, patch=patch)


@router.delete("/{event_id}", status_code=204)
def delete_event(
    event_id: UUID,
    active_team: str = Depends(get_active_team),
    db: Session = Depends(get_db),
):
    emission_service.delete_emission_event(db, team=active_team, event_id=event_id)
    return Response(status_code=204)
