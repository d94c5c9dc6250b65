"""
Integration tests for exactly-once driver settlement, recovery and the duplicate audit.
"""
from decimal import Decimal

import pytest
from sqlalchemy import select

from app.models.ledger import CreditError, CreditLog
from app.models.notification import Notification
from app.schemas.schemas import Caller, ReservationSnapshot
from app.services.errors import Unauthenticated
from app.services.settlement import (
    RECOVERY_VERSION, TRIGGER_VERSION, CreditStatus, audit_duplicate_credits,
    on_reservation_updated, recover_missed_credits,
)

ADMIN = Caller(identity="admin-token", is_admin=True)


async def _completed_ride(add_driver, add_reservation, price="2500", balance="5000", **overrides):
    driver = await add_driver(status="available", legacy_balance=balance, available_balance=balance)
    fields = {"status": "completed", "estimated_price": price, "assigned_driver_id": driver.id}
    fields.update(overrides)
    reservation = await add_reservation(**fields)
    return driver, reservation


async def _validate_payment(db, reservation):
    before = ReservationSnapshot.model_validate(reservation)
    reservation.payment_validated = True
    await db.commit()
    return before, ReservationSnapshot.model_validate(reservation)


@pytest.mark.asyncio
class TestPaymentEdge:
    async def test_credits_driver_once(self, db, add_driver, add_reservation):
        driver, reservation = await _completed_ride(add_driver, add_reservation)
        before, after = await _validate_payment(db, reservation)

        result = await on_reservation_updated(db, reservation.id, before, after)

        assert result.status is CreditStatus.CREDITED
        assert result.driver_amount == Decimal("1750")
        assert result.platform_amount == Decimal("750")
        await db.refresh(driver)
        await db.refresh(reservation)
        assert driver.legacy_balance == "6750"
        assert driver.available_balance == "6750"
        assert driver.earnings_total == Decimal("1750")
        assert driver.earnings_day == Decimal("1750")
        assert driver.credited_rides == 1
        assert driver.last_credit_reservation_id == reservation.id
        assert reservation.driver_credited is True
        assert reservation.credited_amount == Decimal("1750")
        assert reservation.platform_amount == Decimal("750")
        assert reservation.credit_version == TRIGGER_VERSION
        assert reservation.credit_operation_id.startswith(f"credit_{reservation.id}_")
        assert reservation.balance_before_credit == Decimal("5000")
        assert reservation.balance_after_credit == Decimal("6750")

        logs = (await db.execute(select(CreditLog))).scalars().all()
        assert len(logs) == 1
        assert logs[0].driver_amount == Decimal("1750")
        notes = (await db.execute(select(Notification.type))).scalars().all()
        assert notes == ["credit_received"]

    async def test_replayed_edge_is_a_no_op(self, db, add_driver, add_reservation):
        driver, reservation = await _completed_ride(add_driver, add_reservation)
        before, after = await _validate_payment(db, reservation)

        first = await on_reservation_updated(db, reservation.id, before, after)
        replay = await on_reservation_updated(db, reservation.id, before, after)

        assert first.status is CreditStatus.CREDITED
        assert replay.status is CreditStatus.SKIPPED
        assert replay.reason == "already credited"
        await db.refresh(driver)
        assert driver.legacy_balance == "6750"
        assert driver.credited_rides == 1
        assert len((await db.execute(select(CreditLog))).scalars().all()) == 1

    async def test_other_updates_are_ignored(self, db, add_driver, add_reservation):
        driver, reservation = await _completed_ride(add_driver, add_reservation, payment_validated=True)
        snapshot = ReservationSnapshot.model_validate(reservation)

        result = await on_reservation_updated(db, reservation.id, snapshot, snapshot)

        assert result.status is CreditStatus.SKIPPED
        await db.refresh(driver)
        assert driver.legacy_balance == "5000"

    async def test_guards(self, db, add_driver, add_reservation):
        _, not_completed = await _completed_ride(add_driver, add_reservation, status="assigned")
        _, no_price = await _completed_ride(add_driver, add_reservation, price="gratuit")
        no_driver = await add_reservation(status="completed", assigned_driver_id=None)

        for reservation, reason in [
            (not_completed, "not completed"),
            (no_price, "invalid price"),
            (no_driver, "no driver assigned"),
        ]:
            before, after = await _validate_payment(db, reservation)
            result = await on_reservation_updated(db, reservation.id, before, after)
            assert result.status is CreditStatus.SKIPPED
            assert result.reason == reason

    async def test_noisy_price_is_parsed(self, db, add_driver, add_reservation):
        driver, reservation = await _completed_ride(add_driver, add_reservation, price="3 000 FCFA")
        before, after = await _validate_payment(db, reservation)

        result = await on_reservation_updated(db, reservation.id, before, after)

        assert result.driver_amount == Decimal("2100")
        await db.refresh(driver)
        assert driver.legacy_balance == "7100"

    async def test_missing_driver_goes_to_error_ledger(self, db, add_reservation):
        reservation = await add_reservation(status="completed", assigned_driver_id="ghost")
        before, after = await _validate_payment(db, reservation)

        result = await on_reservation_updated(db, reservation.id, before, after)

        assert result.status is CreditStatus.FAILED
        errors = (await db.execute(select(CreditError))).scalars().all()
        assert len(errors) == 1
        assert errors[0].reservation_id == reservation.id
        assert errors[0].error_code == "not-found"
        await db.refresh(reservation)
        assert reservation.driver_credited is False


@pytest.mark.asyncio
class TestRecovery:
    async def test_recovers_uncredited_rides(self, db, add_driver, add_reservation):
        _, ride_a = await _completed_ride(add_driver, add_reservation, payment_validated=True)
        _, ride_b = await _completed_ride(
            add_driver, add_reservation, price="1000", payment_validated=True
        )
        await _completed_ride(add_driver, add_reservation)  # unpaid, left alone

        report = await recover_missed_credits(db, ADMIN)

        assert report["success"] is True
        assert report["count"] == 2
        by_id = {d["reservation_id"]: d for d in report["details"]}
        assert by_id[ride_a.id] == {"reservation_id": ride_a.id, "success": True, "amount": Decimal("1750")}
        assert by_id[ride_b.id]["amount"] == Decimal("700")
        await db.refresh(ride_a)
        assert ride_a.credit_version == RECOVERY_VERSION

        again = await recover_missed_credits(db, ADMIN)
        assert again["count"] == 0

    async def test_one_failure_does_not_abort_batch(self, db, add_driver, add_reservation):
        broken = await add_reservation(status="completed", payment_validated=True, assigned_driver_id="ghost")
        _, ok = await _completed_ride(add_driver, add_reservation, payment_validated=True)

        report = await recover_missed_credits(db, ADMIN)

        assert report["count"] == 1
        by_id = {d["reservation_id"]: d for d in report["details"]}
        assert by_id[broken.id]["success"] is False
        assert by_id[ok.id]["success"] is True

    async def test_requires_caller(self, db):
        with pytest.raises(Unauthenticated):
            await recover_missed_credits(db, None)


@pytest.mark.asyncio
class TestDuplicateAudit:
    async def test_reports_reservations_credited_twice(self, db):
        for reservation_id in ("r-dup", "r-dup", "r-single"):
            db.add(CreditLog(
                reservation_id=reservation_id,
                driver_id="d1",
                operation_id=f"credit_{reservation_id}",
                ride_amount=Decimal("2500"),
                driver_amount=Decimal("1750"),
                platform_amount=Decimal("750"),
                version=TRIGGER_VERSION,
            ))
        await db.commit()

        report = await audit_duplicate_credits(db, ADMIN)

        assert report["duplicate_count"] == 1
        duplicate = report["duplicates"][0]
        assert duplicate["reservation_id"] == "r-dup"
        assert duplicate["credit_count"] == 2
        assert duplicate["total_credited"] == Decimal("3500")
        assert len(duplicate["details"]) == 2

    async def test_clean_ledger(self, db):
        report = await audit_duplicate_credits(db, ADMIN)
        assert report == {"success": True, "message": "0 duplicate(s) found", "duplicate_count": 0, "duplicates": []}

    async def test_requires_caller(self, db):
        with pytest.raises(Unauthenticated):
            await audit_duplicate_credits(db, None)
