"""001 – Vacation engine schema: employees, calendar, policies, balances, requests, absences, audit.

Revision ID: 001_vacation_engine
Revises:
Create Date: 2026-02-05 15:29:34.000000+01:00
"""

from alembic import op

# Revision identifiers
revision = "001_vacation_engine"
down_revision = None
branch_labels = None
depends_on = None


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # ── Extensions ────────────────────────────────────────────────────────
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # ── 1. employees (maintained by the HR import) ────────────────────────
    op.execute("""
        CREATE TABLE employees (
            id             UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            employee_code  VARCHAR(50)  NOT NULL UNIQUE,
            full_name      VARCHAR(200) NOT NULL,
            email          VARCHAR(255) NOT NULL,
            department     VARCHAR(150),
            manager_id     UUID REFERENCES employees(id),
            is_active      BOOLEAN NOT NULL DEFAULT TRUE,
            start_date     DATE,
            end_date       DATE,
            created_at     TIMESTAMPTZ DEFAULT NOW(),
            updated_at     TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX idx_employees_manager ON employees(manager_id)")

    # ── 2. calendar_days (sparse; missing dates fall back to Sat/Sun) ────
    op.execute("""
        CREATE TABLE calendar_days (
            date          DATE PRIMARY KEY,
            is_weekend    BOOLEAN NOT NULL DEFAULT FALSE,
            is_holiday    BOOLEAN NOT NULL DEFAULT FALSE,
            holiday_name  VARCHAR(200),
            region        VARCHAR(100),
            location      VARCHAR(100)
        )
    """)

    # ── 3. vacation_policies ──────────────────────────────────────────────
    op.execute("""
        CREATE TABLE vacation_policies (
            id                   UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            name                 VARCHAR(150) NOT NULL,
            year                 INTEGER NOT NULL,
            accrual_type         VARCHAR(20) NOT NULL DEFAULT 'ANNUAL',
            total_days_per_year  NUMERIC(6,2) NOT NULL CHECK (total_days_per_year > 0),
            carry_over_max_days  NUMERIC(6,2) NOT NULL DEFAULT 0
                                 CHECK (carry_over_max_days >= 0),
            created_at           TIMESTAMPTZ DEFAULT NOW(),
            updated_at           TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT uq_vacation_policy_name_year UNIQUE (name, year)
        )
    """)
    op.execute("CREATE INDEX ix_vacation_policies_year ON vacation_policies(year)")

    # ── 4. vacation_balances ──────────────────────────────────────────────
    op.execute("""
        CREATE TABLE vacation_balances (
            id              UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            employee_id     UUID NOT NULL REFERENCES employees(id),
            policy_id       UUID NOT NULL REFERENCES vacation_policies(id),
            year            INTEGER NOT NULL,
            allocated_days  NUMERIC(6,2) NOT NULL,
            used_days       NUMERIC(6,2) NOT NULL DEFAULT 0,
            remaining_days  NUMERIC(6,2) NOT NULL,
            updated_at      TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT uq_vacation_balance_emp_year UNIQUE (employee_id, year)
        )
    """)
    op.execute("CREATE INDEX idx_vacation_balances_policy ON vacation_balances(policy_id)")

    # ── 5. vacation_requests ──────────────────────────────────────────────
    op.execute("""
        CREATE TABLE vacation_requests (
            id                    UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            employee_id           UUID NOT NULL REFERENCES employees(id),
            start_date            DATE NOT NULL,
            end_date              DATE NOT NULL,
            requested_days        NUMERIC(6,2) NOT NULL,
            type                  VARCHAR(20) NOT NULL DEFAULT 'VACATION',
            status                VARCHAR(20) NOT NULL DEFAULT 'DRAFT',
            approver_employee_id  UUID REFERENCES employees(id),
            approver_comment      TEXT,
            submitted_at          TIMESTAMPTZ,
            decision_at           TIMESTAMPTZ,
            created_at            TIMESTAMPTZ DEFAULT NOW(),
            updated_at            TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT ck_vacation_request_range CHECK (end_date >= start_date),
            CONSTRAINT vacation_request_status CHECK (
                status IN ('DRAFT', 'SUBMITTED', 'APPROVED', 'REJECTED', 'CANCELLED')
            )
        )
    """)
    op.execute("""
        CREATE INDEX ix_vacation_requests_emp_dates
            ON vacation_requests(employee_id, start_date, end_date)
    """)
    op.execute("CREATE INDEX idx_vacation_requests_status ON vacation_requests(status)")

    # ── 6. vacation_request_days ──────────────────────────────────────────
    op.execute("""
        CREATE TABLE vacation_request_days (
            id                     UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            request_id             UUID NOT NULL
                                   REFERENCES vacation_requests(id) ON DELETE CASCADE,
            date                   DATE NOT NULL,
            day_fraction           NUMERIC(3,2) NOT NULL DEFAULT 1.0,
            is_holiday_or_weekend  BOOLEAN NOT NULL DEFAULT FALSE,
            CONSTRAINT uq_vacation_request_day UNIQUE (request_id, date)
        )
    """)

    # ── 7. absence_entries ────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE absence_entries (
            id                 UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            employee_id        UUID NOT NULL REFERENCES employees(id),
            date               DATE NOT NULL,
            absence_type       VARCHAR(20) NOT NULL DEFAULT 'VACATION',
            source_request_id  UUID REFERENCES vacation_requests(id) ON DELETE CASCADE,
            created_at         TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_absence_entries_emp_date ON absence_entries(employee_id, date)")
    op.execute("CREATE INDEX ix_absence_entries_source   ON absence_entries(source_request_id)")
    op.execute("CREATE INDEX ix_absence_entries_date     ON absence_entries(date)")

    # ── 8. audit_trail ────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE audit_trail (
            id           UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            actor_id     UUID REFERENCES employees(id),
            action       VARCHAR(50) NOT NULL,
            entity_type  VARCHAR(50) NOT NULL,
            entity_id    UUID NOT NULL,
            old_values   JSONB,
            new_values   JSONB,
            created_at   TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_audit_trail_actor_id   ON audit_trail(actor_id)")
    op.execute("CREATE INDEX ix_audit_trail_entity     ON audit_trail(entity_type, entity_id)")
    op.execute("CREATE INDEX ix_audit_trail_created_at ON audit_trail(created_at)")


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    # Drop tables in reverse dependency order
    tables = [
        "audit_trail",
        "absence_entries",
        "vacation_request_days",
        "vacation_requests",
        "vacation_balances",
        "vacation_policies",
        "calendar_days",
        "employees",
    ]
    for t in tables:
        op.execute(f"DROP TABLE IF EXISTS {t} CASCADE")
