"""Club subscription automaton: derived dates, transitions and the sweep."""

from datetime import date

import pytest

from points_ledger.errors import InvalidState
from points_ledger.models.enums import ClubStatus, Program
from points_ledger.schemas.club_subscription import ClubSubscriptionCreate, ClubSubscriptionUpdate
from points_ledger.services import club_automaton, club_service
from points_ledger.services.club_automaton import (
    _apply_transition,
    compute_club_dates,
    compute_next_status,
    run_club_sweep,
    run_club_sweep_all_teams,
)

TEAM = "team-a"


def _next(program, subscribed_at, *, status=ClubStatus.ACTIVE, renewal_day=None, last_renewed_at=None, today):
    return compute_next_status(
        program=program,
        status=status,
        subscribed_at=subscribed_at,
        renewal_day=renewal_day or subscribed_at.day,
        last_renewed_at=last_renewed_at,
        today=today,
    )


def _subscribe(db, account, program, subscribed_at, **kw):
    return club_service.create_subscription(
        db,
        team=account.team,
        payload=ClubSubscriptionCreate(account_id=account.id, program=program, subscribed_at=subscribed_at, **kw),
    )


class TestClubDates:

    def test_latam_due_next_month(self):
        dates = compute_club_dates(
            program=Program.LATAM, subscribed_at=date(2026, 1, 15), renewal_day=15, last_renewed_at=None
        )

        assert dates.next_renewal_at == date(2026, 2, 15)
        assert dates.inactive_at == date(2026, 2, 16)
        assert dates.cancel_at == date(2026, 2, 26)

    def test_smiles_has_longer_grace(self):
        dates = compute_club_dates(
            program=Program.SMILES, subscribed_at=date(2026, 1, 15), renewal_day=15, last_renewed_at=None
        )

        assert dates.cancel_at == date(2026, 4, 17)

    def test_renewal_day_clamps_to_short_month(self):
        dates = compute_club_dates(
            program=Program.LATAM, subscribed_at=date(2026, 1, 31), renewal_day=31, last_renewed_at=None
        )

        assert dates.next_renewal_at == date(2026, 2, 28)
        assert dates.inactive_at == date(2026, 3, 1)

    def test_december_rolls_into_next_year(self):
        dates = compute_club_dates(
            program=Program.SMILES, subscribed_at=date(2026, 12, 10), renewal_day=10, last_renewed_at=None
        )

        assert dates.next_renewal_at == date(2027, 1, 10)

    def test_last_renewal_moves_the_cycle(self):
        dates = compute_club_dates(
            program=Program.LATAM,
            subscribed_at=date(2026, 1, 15),
            renewal_day=15,
            last_renewed_at=date(2026, 4, 14),
        )

        assert dates.next_renewal_at == date(2026, 5, 15)

    def test_esfera_has_no_dates(self):
        dates = compute_club_dates(
            program=Program.ESFERA, subscribed_at=date(2026, 1, 15), renewal_day=15, last_renewed_at=None
        )

        assert dates.next_renewal_at is None
        assert dates.inactive_at is None
        assert dates.cancel_at is None


class TestNextStatus:

    def test_livelo_pauses_thirty_days_after_subscribing(self):
        subscribed = date(2026, 3, 1)

        assert _next(Program.LIVELO, subscribed, today=date(2026, 3, 30)) is ClubStatus.ACTIVE
        assert _next(Program.LIVELO, subscribed, today=date(2026, 3, 31)) is ClubStatus.PAUSED

    def test_livelo_never_cancels_automatically(self):
        assert _next(Program.LIVELO, date(2020, 1, 1), today=date(2026, 3, 31)) is ClubStatus.PAUSED

    @pytest.mark.parametrize(
        "today, expected",
        [
            (date(2026, 2, 15), ClubStatus.ACTIVE),
            (date(2026, 2, 16), ClubStatus.PAUSED),
            (date(2026, 2, 25), ClubStatus.PAUSED),
            (date(2026, 2, 26), ClubStatus.CANCELED),
        ],
    )
    def test_latam_boundaries(self, today, expected):
        assert _next(Program.LATAM, date(2026, 1, 15), today=today) is expected

    def test_smiles_cancels_after_sixty_days_inactive(self):
        subscribed = date(2026, 1, 15)

        assert _next(Program.SMILES, subscribed, today=date(2026, 4, 16)) is ClubStatus.PAUSED
        assert _next(Program.SMILES, subscribed, today=date(2026, 4, 17)) is ClubStatus.CANCELED

    def test_paused_never_returns_to_active(self):
        status = _next(
            Program.LATAM,
            date(2026, 1, 15),
            status=ClubStatus.PAUSED,
            last_renewed_at=date(2026, 3, 15),
            today=date(2026, 3, 20),
        )

        assert status is ClubStatus.PAUSED

    def test_canceled_is_terminal(self):
        status = _next(Program.LIVELO, date(2026, 3, 1), status=ClubStatus.CANCELED, today=date(2026, 3, 2))

        assert status is ClubStatus.CANCELED

    def test_esfera_is_left_alone(self):
        for status in ClubStatus:
            assert _next(Program.ESFERA, date(2000, 1, 1), status=status, today=date(2026, 3, 2)) is status


class TestSweep:

    def test_second_run_changes_nothing(self, db, make_account):
        account = make_account()
        _subscribe(db, account, Program.LIVELO, date(2026, 3, 1))
        _subscribe(db, account, Program.LATAM, date(2026, 1, 15))

        first = run_club_sweep(db, team=TEAM, today=date(2026, 3, 31))
        second = run_club_sweep(db, team=TEAM, today=date(2026, 3, 31))

        assert first.scanned == 2
        assert first.changed == 2
        assert second.scanned == 1
        assert second.changed == 0

        statuses = {s["program"]: s["status"] for s in club_service.list_subscriptions(db, team=TEAM)}
        assert statuses == {Program.LIVELO: ClubStatus.PAUSED, Program.LATAM: ClubStatus.CANCELED}

    def test_sweep_never_upgrades_paused(self, db, make_account):
        account = make_account()
        sub = _subscribe(db, account, Program.LATAM, date(2026, 1, 15), last_renewed_at=date(2026, 3, 15))
        club_service.update_subscription(
            db, team=TEAM, subscription_id=sub.id, patch=ClubSubscriptionUpdate(status=ClubStatus.PAUSED)
        )

        stats = run_club_sweep(db, team=TEAM, today=date(2026, 3, 20))

        assert stats.changed == 0
        db.refresh(sub)
        assert sub.status is ClubStatus.PAUSED

    def test_transition_applies_only_over_the_status_read(self, db, make_account):
        sub = _subscribe(db, make_account(), Program.LIVELO, date(2026, 1, 1))
        fresh = _subscribe(db, make_account(identifier="ACC-2"), Program.LIVELO, date(2026, 1, 1))
        club_service.update_subscription(
            db, team=TEAM, subscription_id=sub.id, patch=ClubSubscriptionUpdate(status=ClubStatus.CANCELED)
        )

        assert _apply_transition(db, sub.id, ClubStatus.ACTIVE, ClubStatus.PAUSED) == 0
        assert _apply_transition(db, fresh.id, ClubStatus.ACTIVE, ClubStatus.PAUSED) == 1
        db.commit()

        db.refresh(sub)
        db.refresh(fresh)
        assert sub.status is ClubStatus.CANCELED
        assert fresh.status is ClubStatus.PAUSED

    def test_row_changed_after_read_is_left_alone(self, db, make_account, monkeypatch):
        sub = _subscribe(db, make_account(), Program.LIVELO, date(2026, 1, 1))
        original = club_automaton.compute_next_status

        def next_status_with_concurrent_write(**kw):
            # another writer cancels the row between the sweep's read and its write
            club_service.update_subscription(
                db, team=TEAM, subscription_id=sub.id, patch=ClubSubscriptionUpdate(status=ClubStatus.CANCELED)
            )
            return original(**kw)

        monkeypatch.setattr(club_automaton, "compute_next_status", next_status_with_concurrent_write)

        stats = run_club_sweep(db, team=TEAM, today=date(2026, 3, 1))

        assert stats.scanned == 1
        assert stats.changed == 0
        db.refresh(sub)
        assert sub.status is ClubStatus.CANCELED

    def test_batches_write_every_transition(self, db, make_account):
        for n in range(3):
            account = make_account(identifier=f"ACC-{n}")
            _subscribe(db, account, Program.LIVELO, date(2026, 1, 1))

        stats = run_club_sweep(db, team=TEAM, today=date(2026, 3, 1), batch_size=1)

        assert stats.changed == 3

    def test_sweep_is_scoped_to_team(self, db, make_account):
        mine = make_account()
        theirs = make_account(team="team-b", identifier="ACC-B")
        _subscribe(db, mine, Program.LIVELO, date(2026, 1, 1))
        _subscribe(db, theirs, Program.LIVELO, date(2026, 1, 1))

        stats = run_club_sweep(db, team=TEAM, today=date(2026, 3, 1))

        assert stats.changed == 1
        other = club_service.list_subscriptions(db, team="team-b")
        assert other[0]["status"] is ClubStatus.ACTIVE

    def test_all_teams(self, db, make_account):
        _subscribe(db, make_account(), Program.LIVELO, date(2026, 1, 1))
        _subscribe(db, make_account(team="team-b", identifier="ACC-B"), Program.LIVELO, date(2026, 1, 1))

        result = run_club_sweep_all_teams(db, today=date(2026, 3, 1))

        assert result == {"teams": 2, "scanned": 2, "changed": 2}


class TestSubscriptionService:

    def test_duplicate_program_per_account_is_rejected(self, db, make_account):
        account = make_account()
        _subscribe(db, account, Program.LATAM, date(2026, 1, 15))

        with pytest.raises(InvalidState):
            _subscribe(db, account, Program.LATAM, date(2026, 2, 15))

    def test_renew_reactivates_paused(self, db, make_account):
        account = make_account()
        sub = _subscribe(db, account, Program.LATAM, date(2026, 1, 15))
        run_club_sweep(db, team=TEAM, today=date(2026, 2, 20))
        db.refresh(sub)
        assert sub.status is ClubStatus.PAUSED

        renewed = club_service.renew_subscription(
            db, team=TEAM, subscription_id=sub.id, renewed_at=date(2026, 2, 21)
        )

        assert renewed.status is ClubStatus.ACTIVE
        assert renewed.last_renewed_at == date(2026, 2, 21)
        stats = run_club_sweep(db, team=TEAM, today=date(2026, 3, 1))
        assert stats.changed == 0

    def test_renewing_livelo_restarts_its_clock(self, db, make_account):
        account = make_account()
        sub = _subscribe(db, account, Program.LIVELO, date(2026, 1, 1))

        renewed = club_service.renew_subscription(db, team=TEAM, subscription_id=sub.id, renewed_at=date(2026, 3, 1))

        assert renewed.subscribed_at == date(2026, 3, 1)
        assert run_club_sweep(db, team=TEAM, today=date(2026, 3, 30)).changed == 0

    def test_canceled_cannot_be_renewed_or_reopened(self, db, make_account):
        account = make_account()
        sub = _subscribe(db, account, Program.LATAM, date(2026, 1, 15))
        run_club_sweep(db, team=TEAM, today=date(2026, 6, 1))

        with pytest.raises(InvalidState):
            club_service.renew_subscription(db, team=TEAM, subscription_id=sub.id, renewed_at=date(2026, 6, 2))
        with pytest.raises(InvalidState):
            club_service.update_subscription(
                db, team=TEAM, subscription_id=sub.id, patch=ClubSubscriptionUpdate(status=ClubStatus.ACTIVE)
            )

    def test_smiles_bonus_eligibility_is_a_year_after_subscribing(self, db, make_account):
        account = make_account()
        _subscribe(db, account, Program.SMILES, date(2026, 2, 10))

        described = club_service.list_subscriptions(db, team=TEAM, program=Program.SMILES)[0]

        assert described["bonus_eligible_at"] == date(2027, 2, 10)
        assert described["next_renewal_at"] == date(2026, 3, 10)

    def test_renewal_day_defaults_to_subscription_day(self, db, make_account):
        sub = _subscribe(db, make_account(), Program.LATAM, date(2026, 1, 31))

        assert sub.renewal_day == 31
