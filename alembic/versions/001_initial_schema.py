"""001 – Initial schema: all RMG portal tables and indexes.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-17 10:00:00.000000+05:30
"""

from alembic import op

# Revision identifiers
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


# Enum columns are plain VARCHAR(50) holding the enum *value*; the allowed
# values are pinned with CHECK constraints.
CHECKS: list[tuple[str, str, list[str]]] = [
    ("employees", "role", [
        "employee", "manager", "hr", "rmg", "it_admin", "it_employee",
        "finance_specialist", "facilities_specialist", "super_admin",
    ]),
    ("employees", "status", ["active", "inactive", "on_leave"]),
    ("projects", "status", ["active", "on-hold", "completed", "cancelled"]),
    ("projects", "billing_type", ["T&M", "Fixed Bid", "Fixed Monthly", "License"]),
    ("customer_pos", "payment_terms", ["Net 30", "Net 45", "Net 60", "Net 90", "Immediate", "Custom"]),
    ("customer_pos", "status", ["Active", "Closed", "Expired"]),
    ("financial_lines", "contract_type", ["T&M", "Fixed Bid", "Fixed Monthly", "License"]),
    ("financial_lines", "location_type", ["Onsite", "Offshore", "Hybrid"]),
    ("financial_lines", "rate_uom", ["Hr", "Day", "Month"]),
    ("financial_lines", "effort_uom", ["Hr", "Day", "Month"]),
    ("financial_lines", "status", ["Draft", "Active", "Completed", "Cancelled"]),
    ("fl_resources", "status", ["Active", "On Leave", "Inactive"]),
    ("config_master", "type", [
        "revenue-type", "client-type", "lead-source", "billing-type", "project-currency",
    ]),
    ("config_master", "status", ["Active", "Inactive"]),
    ("notifications", "type", ["info", "action_required", "approval", "reminder", "alert"]),
    ("helpdesk_tickets", "status", ["open", "in_progress", "waiting", "resolved", "closed"]),
    ("helpdesk_tickets", "priority", ["low", "medium", "high", "critical", "urgent"]),
]


def _add_value_check(table: str, column: str, values: list[str]) -> None:
    vals = ", ".join("'" + v.replace("'", "''") + "'" for v in values)
    op.execute(
        f"ALTER TABLE {table} ADD CONSTRAINT ck_{table}_{column}_value "
        f"CHECK ({column} IN ({vals}))"
    )


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # ── 1. employees ──────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE employees (
            id              UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            employee_code   VARCHAR(20)  NOT NULL UNIQUE,
            name            VARCHAR(200) NOT NULL,
            email           VARCHAR(255) NOT NULL UNIQUE,
            phone           VARCHAR(30),
            role            VARCHAR(50)  NOT NULL DEFAULT 'employee',
            department      VARCHAR(150),
            designation     VARCHAR(150),
            location        VARCHAR(100),
            skills          JSONB NOT NULL DEFAULT '[]',
            status          VARCHAR(50)  NOT NULL DEFAULT 'active',
            is_active       BOOLEAN NOT NULL DEFAULT TRUE,
            date_of_joining DATE,
            monthly_salary  NUMERIC(14, 2) NOT NULL DEFAULT 0,
            created_at      TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_employees_salary_non_negative CHECK (monthly_salary >= 0)
        )
    """)
    op.execute("CREATE INDEX ix_employees_department ON employees(department)")
    op.execute("CREATE INDEX ix_employees_status     ON employees(status)")

    # ── 2. projects ───────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE projects (
            id               UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            project_code     VARCHAR(30)  NOT NULL UNIQUE,
            name             VARCHAR(200) NOT NULL,
            client           VARCHAR(200) NOT NULL,
            account_name     VARCHAR(200),
            legal_entity     VARCHAR(200),
            billing_type     VARCHAR(50),
            region           VARCHAR(50),
            practice_unit    VARCHAR(100),
            project_currency VARCHAR(10) NOT NULL DEFAULT 'USD',
            budget           NUMERIC(16, 2),
            estimated_value  NUMERIC(16, 2),
            status           VARCHAR(50) NOT NULL DEFAULT 'active',
            start_date       DATE NOT NULL,
            end_date         DATE,
            description      TEXT,
            project_manager  JSONB,
            delivery_manager JSONB,
            utilization      DOUBLE PRECISION NOT NULL DEFAULT 0,
            required_skills  JSONB NOT NULL DEFAULT '[]',
            team_size        INTEGER NOT NULL DEFAULT 0,
            created_at       TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at       TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_projects_utilization_range
                CHECK (utilization >= 0 AND utilization <= 100),
            CONSTRAINT ck_projects_date_order
                CHECK (end_date IS NULL OR end_date >= start_date)
        )
    """)
    op.execute("CREATE INDEX ix_projects_status ON projects(status)")

    # ── 3. customer_pos ───────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE customer_pos (
            id               UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            po_no            VARCHAR(100) NOT NULL UNIQUE,
            contract_no      VARCHAR(100) NOT NULL,
            title            VARCHAR(200),
            customer_name    VARCHAR(200),
            project_id       UUID NOT NULL REFERENCES projects(id) ON DELETE RESTRICT,
            booking_entity   VARCHAR(200) NOT NULL,
            po_amount        NUMERIC(16, 2) NOT NULL,
            po_currency      VARCHAR(10) NOT NULL DEFAULT 'USD',
            payment_terms    VARCHAR(50) NOT NULL DEFAULT 'Net 30',
            auto_release     BOOLEAN NOT NULL DEFAULT TRUE,
            po_creation_date DATE NOT NULL,
            po_start_date    DATE NOT NULL,
            po_validity_date DATE NOT NULL,
            status           VARCHAR(50) NOT NULL DEFAULT 'Active',
            notes            TEXT,
            created_at       TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at       TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_customer_pos_amount_positive CHECK (po_amount > 0)
        )
    """)
    op.execute("CREATE INDEX ix_customer_pos_project_id ON customer_pos(project_id)")

    # ── 4. financial_lines ────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE financial_lines (
            id                    UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            fl_no                 VARCHAR(30)  NOT NULL UNIQUE,
            fl_name               VARCHAR(150) NOT NULL,
            project_id            UUID NOT NULL REFERENCES projects(id) ON DELETE RESTRICT,
            customer_po_id        UUID REFERENCES customer_pos(id) ON DELETE SET NULL,
            contract_type         VARCHAR(50)  NOT NULL,
            location_type         VARCHAR(50)  NOT NULL,
            execution_entity      VARCHAR(200) NOT NULL,
            timesheet_approver    VARCHAR(200) NOT NULL,
            schedule_start        DATE NOT NULL,
            schedule_finish       DATE NOT NULL,
            currency              VARCHAR(10) NOT NULL DEFAULT 'USD',
            billing_rate          NUMERIC(14, 2) NOT NULL,
            rate_uom              VARCHAR(50) NOT NULL,
            effort                DOUBLE PRECISION NOT NULL DEFAULT 0,
            effort_uom            VARCHAR(50) NOT NULL,
            revenue_amount        NUMERIC(16, 2) NOT NULL DEFAULT 0,
            expected_revenue      NUMERIC(16, 2) NOT NULL DEFAULT 0,
            funding               JSONB NOT NULL DEFAULT '[]',
            total_funding         NUMERIC(16, 2) NOT NULL DEFAULT 0,
            revenue_planning      JSONB NOT NULL DEFAULT '[]',
            total_planned_revenue NUMERIC(16, 2) NOT NULL DEFAULT 0,
            payment_milestones    JSONB NOT NULL DEFAULT '[]',
            status                VARCHAR(50) NOT NULL DEFAULT 'Draft',
            notes                 TEXT,
            created_at            TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at            TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_financial_lines_schedule_order
                CHECK (schedule_start < schedule_finish),
            CONSTRAINT ck_financial_lines_rate_positive CHECK (billing_rate > 0)
        )
    """)
    op.execute("CREATE INDEX ix_financial_lines_project_id ON financial_lines(project_id)")
    op.execute("CREATE INDEX ix_financial_lines_status     ON financial_lines(status)")

    # ── 5. fl_resources ───────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE fl_resources (
            id                     UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            employee_id            UUID REFERENCES employees(id) ON DELETE SET NULL,
            resource_name          VARCHAR(200),
            job_role               VARCHAR(150) NOT NULL,
            department             VARCHAR(150),
            skills                 JSONB NOT NULL DEFAULT '[]',
            utilization_percentage DOUBLE PRECISION NOT NULL DEFAULT 0,
            requested_from_date    DATE NOT NULL,
            requested_to_date      DATE NOT NULL,
            billable               BOOLEAN NOT NULL DEFAULT TRUE,
            percentage_basis       VARCHAR(50),
            monthly_allocations    JSONB NOT NULL DEFAULT '[]',
            total_allocation       VARCHAR(50),
            financial_line_id      UUID NOT NULL REFERENCES financial_lines(id) ON DELETE CASCADE,
            fl_no                  VARCHAR(30)  NOT NULL,
            fl_name                VARCHAR(150) NOT NULL,
            project_id             UUID NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
            status                 VARCHAR(50) NOT NULL DEFAULT 'Active',
            created_at             TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at             TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_fl_resources_utilization_range
                CHECK (utilization_percentage >= 0 AND utilization_percentage <= 100),
            CONSTRAINT ck_fl_resources_date_order
                CHECK (requested_from_date <= requested_to_date)
        )
    """)
    op.execute("CREATE INDEX ix_fl_resources_financial_line_id ON fl_resources(financial_line_id)")
    op.execute("CREATE INDEX ix_fl_resources_project_id        ON fl_resources(project_id)")
    op.execute("CREATE INDEX ix_fl_resources_employee_id       ON fl_resources(employee_id)")
    op.execute("CREATE INDEX ix_fl_resources_status            ON fl_resources(status)")

    # ── 6. config_master ──────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE config_master (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            type        VARCHAR(50)  NOT NULL,
            name        VARCHAR(100) NOT NULL,
            description VARCHAR(500),
            status      VARCHAR(50)  NOT NULL DEFAULT 'Active',
            created_by  VARCHAR(200),
            updated_by  VARCHAR(200),
            created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE UNIQUE INDEX uq_config_master_type_name_ci
            ON config_master(type, lower(name))
    """)
    op.execute("CREATE INDEX ix_config_master_type_status ON config_master(type, status)")

    # ── 7. notifications ──────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE notifications (
            id           UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            recipient_id UUID REFERENCES employees(id) ON DELETE CASCADE,
            role         VARCHAR(50),
            type         VARCHAR(50)  NOT NULL DEFAULT 'info',
            title        VARCHAR(200) NOT NULL,
            message      TEXT NOT NULL,
            action_url   VARCHAR(500),
            entity_type  VARCHAR(50),
            entity_id    UUID,
            meta         JSONB NOT NULL DEFAULT '{}',
            is_read      BOOLEAN NOT NULL DEFAULT FALSE,
            read_at      TIMESTAMPTZ,
            created_at   TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_notifications_has_audience
                CHECK (recipient_id IS NOT NULL OR role IS NOT NULL)
        )
    """)
    op.execute("CREATE INDEX ix_notifications_recipient_id ON notifications(recipient_id)")
    op.execute("CREATE INDEX ix_notifications_role         ON notifications(role)")

    # ── 8. helpdesk ───────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE helpdesk_tickets (
            id               UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            ticket_number    VARCHAR(20)  NOT NULL UNIQUE,
            title            VARCHAR(500) NOT NULL,
            category         VARCHAR(200),
            status           VARCHAR(50)  NOT NULL DEFAULT 'open',
            priority         VARCHAR(50)  NOT NULL DEFAULT 'medium',
            raised_by_id     UUID REFERENCES employees(id),
            raised_by_name   VARCHAR(200),
            assigned_to_id   UUID REFERENCES employees(id),
            assigned_to_name VARCHAR(200),
            resolved_at      TIMESTAMPTZ,
            created_at       TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at       TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_helpdesk_tickets_raised_by_id ON helpdesk_tickets(raised_by_id)")
    op.execute("CREATE INDEX ix_helpdesk_tickets_status       ON helpdesk_tickets(status)")

    op.execute("""
        CREATE TABLE helpdesk_responses (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            ticket_id   UUID NOT NULL REFERENCES helpdesk_tickets(id) ON DELETE CASCADE,
            author_id   UUID REFERENCES employees(id),
            author_name VARCHAR(200),
            body        TEXT NOT NULL,
            is_internal BOOLEAN NOT NULL DEFAULT FALSE,
            created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_helpdesk_responses_ticket_id ON helpdesk_responses(ticket_id)")

    # ── 9. audit_trail ────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE audit_trail (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            actor_id    UUID REFERENCES employees(id) ON DELETE SET NULL,
            action      VARCHAR(50) NOT NULL,
            entity_type VARCHAR(50) NOT NULL,
            entity_id   UUID NOT NULL,
            old_values  JSONB,
            new_values  JSONB,
            created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_audit_trail_actor_id   ON audit_trail(actor_id)")
    op.execute("CREATE INDEX ix_audit_trail_entity     ON audit_trail(entity_type, entity_id)")
    op.execute("CREATE INDEX ix_audit_trail_created_at ON audit_trail(created_at)")

    # ── Enum value checks ─────────────────────────────────────────────────
    for table, column, values in CHECKS:
        _add_value_check(table, column, values)


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    # Drop tables in reverse dependency order
    tables = [
        "audit_trail",
        "helpdesk_responses",
        "helpdesk_tickets",
        "notifications",
        "config_master",
        "fl_resources",
        "financial_lines",
        "customer_pos",
        "projects",
        "employees",
    ]
    for t in tables:
        op.execute(f"DROP TABLE IF EXISTS {t} CASCADE")
