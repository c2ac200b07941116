"""Request validator tests — rule order, errors vs warnings, overlap detection."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from timeoff import engine as vacation_engine
from timeoff.common.constants import RequestStatus
from timeoff.vacations.models import VacationRequest
from timeoff.vacations.validator import RequestValidator
from tests.conftest import (
    SATURDAY,
    SUNDAY,
    TODAY,
    WEEK_END,
    WEEK_START,
    _seed_balance,
    _seed_employee,
    _seed_policy,
)


# ═════════════════════════════════════════════════════════════════════
# Helpers
# ═════════════════════════════════════════════════════════════════════


async def _seed_employee_with_balance(
    db: AsyncSession,
    *,
    allocated: Decimal = Decimal("22"),
    used: Decimal = Decimal("0"),
):
    emp = await _seed_employee(db)
    policy = await _seed_policy(db, year=2027)
    await _seed_balance(db, emp.id, policy, allocated=allocated, used=used)
    return emp


async def _seed_request(
    db: AsyncSession,
    employee_id: uuid.UUID,
    start: date,
    end: date,
    status: RequestStatus,
) -> VacationRequest:
    req = VacationRequest(
        id=uuid.uuid4(),
        employee_id=employee_id,
        start_date=start,
        end_date=end,
        requested_days=Decimal("1"),
        type="VACATION",
        status=status,
        created_at=datetime.now(timezone.utc),
    )
    db.add(req)
    await db.flush()
    return req


# ═════════════════════════════════════════════════════════════════════
# Tests
# ═════════════════════════════════════════════════════════════════════


class TestValidateRange:

    async def test_valid_week(self, db: AsyncSession):
        emp = await _seed_employee_with_balance(db)

        result = await RequestValidator.validate(db, emp.id, WEEK_START, WEEK_END, today=TODAY)

        assert result.is_valid is True
        assert result.errors == []
        assert result.warnings == []
        assert result.working_days == Decimal("5")
        assert result.available_days == Decimal("22")

    async def test_end_before_start_stops_early(self, db: AsyncSession):
        emp = await _seed_employee_with_balance(db)

        result = await RequestValidator.validate(db, emp.id, WEEK_END, WEEK_START, today=TODAY)

        assert result.is_valid is False
        assert len(result.errors) == 1
        assert "End date" in result.errors[0]
        assert result.working_days == Decimal("0")

    async def test_past_start_rejected(self, db: AsyncSession):
        emp = await _seed_employee_with_balance(db)
        start = TODAY - timedelta(days=5)

        result = await RequestValidator.validate(db, emp.id, start, TODAY, today=TODAY)

        assert result.is_valid is False
        assert result.errors == ["Vacation cannot be requested for past dates."]

    async def test_yesterday_within_grace(self, db: AsyncSession):
        emp = await _seed_employee_with_balance(db)
        yesterday = TODAY - timedelta(days=1)

        result = await RequestValidator.validate(db, emp.id, yesterday, TODAY, today=TODAY)
        assert result.is_valid is True

    async def test_weekend_only_is_warning_not_error(self, db: AsyncSession):
        emp = await _seed_employee_with_balance(db)

        result = await RequestValidator.validate(db, emp.id, SATURDAY, SUNDAY, today=TODAY)

        assert result.is_valid is True
        assert result.working_days == Decimal("0")
        assert len(result.warnings) == 1
        assert "no working days" in result.warnings[0]

    async def test_no_balance_configured(self, db: AsyncSession):
        emp = await _seed_employee(db)

        result = await RequestValidator.validate(db, emp.id, WEEK_START, WEEK_END, today=TODAY)

        assert result.is_valid is False
        assert result.errors == ["No vacation balance is configured for 2027."]


class TestValidateBalance:

    async def test_insufficient_balance(self, db: AsyncSession):
        """3 days left, 5 requested → invalid, available reported as 3."""
        emp = await _seed_employee_with_balance(db, allocated=Decimal("22"), used=Decimal("19"))

        result = await RequestValidator.validate(db, emp.id, WEEK_START, WEEK_END, today=TODAY)

        assert result.is_valid is False
        assert result.available_days == Decimal("3")
        assert result.errors == [
            "Insufficient balance. Available: 3 days, Requested: 5 days"
        ]

    async def test_insufficient_balance_does_not_stop_overlap_check(self, db: AsyncSession):
        emp = await _seed_employee_with_balance(db, allocated=Decimal("2"))
        await _seed_request(db, emp.id, WEEK_START, WEEK_START, RequestStatus.submitted)

        result = await RequestValidator.validate(db, emp.id, WEEK_START, WEEK_END, today=TODAY)

        assert len(result.errors) == 2
        assert result.errors[0].startswith("Insufficient balance")
        assert result.errors[1].startswith("Overlaps with another request")

    async def test_long_request_warns(self, db: AsyncSession):
        emp = await _seed_employee_with_balance(db, allocated=Decimal("30"))
        end = WEEK_START + timedelta(days=25)  # 4 weeks Mon … Fri → 20 working days

        result = await RequestValidator.validate(db, emp.id, WEEK_START, end, today=TODAY)

        assert result.is_valid is True
        assert result.working_days == Decimal("20")
        assert any("More than 15" in w for w in result.warnings)

    async def test_fifteen_days_is_not_long(self, db: AsyncSession):
        emp = await _seed_employee_with_balance(db)
        end = WEEK_START + timedelta(days=18)  # three full weeks → 15 working days

        result = await RequestValidator.validate(db, emp.id, WEEK_START, end, today=TODAY)

        assert result.working_days == Decimal("15")
        assert result.warnings == []


class TestValidateOverlap:

    async def test_overlap_names_range_and_status(self, db: AsyncSession):
        emp = await _seed_employee_with_balance(db)
        await _seed_request(db, emp.id, date(2027, 3, 4), date(2027, 3, 9), RequestStatus.approved)

        result = await RequestValidator.validate(db, emp.id, WEEK_START, WEEK_END, today=TODAY)

        assert result.is_valid is False
        assert result.errors == [
            "Overlaps with another request from 04/03/2027 to 09/03/2027 (Status: APPROVED)"
        ]

    async def test_touching_ranges_overlap(self, db: AsyncSession):
        emp = await _seed_employee_with_balance(db)
        await _seed_request(db, emp.id, WEEK_END, WEEK_END, RequestStatus.draft)

        result = await RequestValidator.validate(db, emp.id, WEEK_START, WEEK_END, today=TODAY)
        assert result.is_valid is False

    async def test_adjacent_ranges_do_not_overlap(self, db: AsyncSession):
        emp = await _seed_employee_with_balance(db)
        await _seed_request(
            db, emp.id, WEEK_END + timedelta(days=1), WEEK_END + timedelta(days=3),
            RequestStatus.submitted,
        )

        result = await RequestValidator.validate(db, emp.id, WEEK_START, WEEK_END, today=TODAY)
        assert result.is_valid is True

    async def test_rejected_and_cancelled_ignored(self, db: AsyncSession):
        emp = await _seed_employee_with_balance(db)
        await _seed_request(db, emp.id, WEEK_START, WEEK_END, RequestStatus.rejected)
        await _seed_request(db, emp.id, WEEK_START, WEEK_END, RequestStatus.cancelled)

        result = await RequestValidator.validate(db, emp.id, WEEK_START, WEEK_END, today=TODAY)
        assert result.is_valid is True

    async def test_excluded_request_ignored(self, db: AsyncSession):
        emp = await _seed_employee_with_balance(db)
        own = await _seed_request(db, emp.id, WEEK_START, WEEK_END, RequestStatus.draft)

        result = await RequestValidator.validate(
            db, emp.id, WEEK_START, WEEK_END, exclude_request_id=own.id, today=TODAY,
        )
        assert result.is_valid is True

    async def test_other_employee_does_not_overlap(self, db: AsyncSession):
        emp = await _seed_employee_with_balance(db)
        other = await _seed_employee(db)
        await _seed_request(db, other.id, WEEK_START, WEEK_END, RequestStatus.approved)

        result = await vacation_engine.validate_dates(db, emp.id, WEEK_START, WEEK_END, today=TODAY)
        assert result.is_valid is True
