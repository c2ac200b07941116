"""Shared test fixtures — async DB session and model factories.

Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import AsyncGenerator, Optional

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from timeoff.database import Base

# Import ALL model modules so SQLAlchemy can resolve cross-module relationships
import timeoff.absences.models  # noqa: F401
import timeoff.calendars.models  # noqa: F401
import timeoff.common.audit  # noqa: F401
import timeoff.core_hr.models  # noqa: F401
import timeoff.vacations.models  # noqa: F401

from timeoff.calendars.models import CalendarDay
from timeoff.core_hr.models import Employee
from timeoff.vacations.models import VacationBalance, VacationPolicy

# ── SQLite compat: compile PG-specific types ────────────────────────

from sqlalchemy.dialects.postgresql import JSONB, UUID as PG_UUID
from sqlalchemy.ext.compiler import compiles


@compiles(JSONB, "sqlite")
def _jsonb_sqlite(element, compiler, **kw):
    return "TEXT"


@compiles(PG_UUID, "sqlite")
def _uuid_sqlite(element, compiler, **kw):
    return "CHAR(36)"


# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# Register PG-compatible functions for SQLite
@event.listens_for(engine.sync_engine, "connect")
def _register_sqlite_functions(dbapi_conn, connection_record):
    """Register NOW() and uuid_generate_v4() as SQLite custom functions."""
    dbapi_conn.create_function(
        "NOW", 0, lambda: datetime.now(timezone.utc).isoformat(),
    )
    dbapi_conn.create_function(
        "uuid_generate_v4", 0, lambda: str(uuid.uuid4()),
    )


TestSessionFactory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def _setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session
        await session.commit()


# ── Dates ───────────────────────────────────────────────────────────

# A Monday; the validator's "today" in lifecycle tests
TODAY = date(2027, 1, 4)
# Mon 1 Mar 2027 … Fri 5 Mar 2027, followed by Sat 6 / Sun 7
WEEK_START = date(2027, 3, 1)
WEEK_END = date(2027, 3, 5)
SATURDAY = date(2027, 3, 6)
SUNDAY = date(2027, 3, 7)


# ── Model factories ─────────────────────────────────────────────────

def _make_employee(
    *,
    full_name: str = "Test Employee",
    department: Optional[str] = "Engineering",
    manager_id: Optional[uuid.UUID] = None,
    is_active: bool = True,
) -> dict:
    code = uuid.uuid4().hex[:6].upper()
    return dict(
        id=uuid.uuid4(),
        employee_code=f"EMP-{code}",
        full_name=full_name,
        email=f"{code.lower()}@example.com",
        department=department,
        manager_id=manager_id,
        is_active=is_active,
        start_date=date(2020, 1, 1),
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )


async def _seed_employee(db: AsyncSession, **kwargs) -> Employee:
    emp = Employee(**_make_employee(**kwargs))
    db.add(emp)
    await db.flush()
    return emp


async def _seed_policy(
    db: AsyncSession,
    *,
    year: int = 2027,
    name: Optional[str] = None,
    total_days: Decimal = Decimal("22"),
    carry_over_max: Decimal = Decimal("5"),
    created_at: Optional[datetime] = None,
) -> VacationPolicy:
    policy = VacationPolicy(
        id=uuid.uuid4(),
        name=name or f"Standard {year}",
        year=year,
        accrual_type="ANNUAL",
        total_days_per_year=total_days,
        carry_over_max_days=carry_over_max,
        created_at=created_at or datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )
    db.add(policy)
    await db.flush()
    return policy


async def _seed_balance(
    db: AsyncSession,
    employee_id: uuid.UUID,
    policy: VacationPolicy,
    *,
    year: Optional[int] = None,
    allocated: Decimal = Decimal("22"),
    used: Decimal = Decimal("0"),
) -> VacationBalance:
    balance = VacationBalance(
        id=uuid.uuid4(),
        employee_id=employee_id,
        policy_id=policy.id,
        year=year if year is not None else policy.year,
        allocated_days=allocated,
        used_days=used,
        remaining_days=allocated - used,
        updated_at=datetime.now(timezone.utc),
    )
    db.add(balance)
    await db.flush()
    return balance


async def _seed_calendar_day(
    db: AsyncSession,
    day: date,
    *,
    is_weekend: bool = False,
    is_holiday: bool = False,
    holiday_name: Optional[str] = None,
) -> CalendarDay:
    row = CalendarDay(
        date=day,
        is_weekend=is_weekend,
        is_holiday=is_holiday,
        holiday_name=holiday_name,
    )
    db.add(row)
    await db.flush()
    return row
