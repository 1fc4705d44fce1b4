"""Shared test fixtures: async DB, client, auth helpers, factories.

Reusable across all test modules (employees, projects, financial lines,
analytics, etc.). Uses SQLite + aiosqlite for fast isolated tests without
PostgreSQL.
"""

from __future__ import annotations

import os

# Set test JWT_SECRET before any other import touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")

import uuid
from datetime import date, datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from rmg_portal.common.constants import UserRole
from rmg_portal.config import settings
from rmg_portal.database import Base, get_db
from rmg_portal.main import create_app

# Import ALL model modules so SQLAlchemy can resolve cross-module relationships
import rmg_portal.common.audit  # noqa: F401
import rmg_portal.employees.models  # noqa: F401
import rmg_portal.projects.models  # noqa: F401
import rmg_portal.customer_pos.models  # noqa: F401
import rmg_portal.financial_lines.models  # noqa: F401
import rmg_portal.fl_resources.models  # noqa: F401
import rmg_portal.config_master.models  # noqa: F401
import rmg_portal.notifications.models  # noqa: F401
import rmg_portal.helpdesk.models  # noqa: F401

from rmg_portal.customer_pos.models import CustomerPO
from rmg_portal.employees.models import Employee
from rmg_portal.financial_lines.models import FinancialLine
from rmg_portal.fl_resources.models import FLResource
from rmg_portal.projects.models import Project

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


@event.listens_for(engine.sync_engine, "connect")
def _enable_foreign_keys(dbapi_conn, connection_record):
    """SQLite ignores ON DELETE rules unless foreign keys are switched on."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


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


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Reset rate limiter storage between tests to prevent cross-test interference."""
    from rmg_portal.common.rate_limit import limiter

    limiter.reset()
    yield


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app():
    """Create a fresh app instance with DB dependency overridden."""
    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session
        await session.commit()


# ── Model factories ─────────────────────────────────────────────────

def _make_employee(
    *,
    name: str = "Test User",
    email: str | None = None,
    role: UserRole = UserRole.employee,
    department: str | None = "Engineering",
    designation: str | None = "Software Engineer",
    skills: list[str] | None = None,
    monthly_salary: float = 0,
    status: str = "active",
    is_active: bool = True,
) -> dict:
    code = f"EMP{uuid.uuid4().hex[:6].upper()}"
    return dict(
        id=uuid.uuid4(),
        employee_code=code,
        name=name,
        email=email or f"{code.lower()}@example.com",
        role=role,
        department=department,
        designation=designation,
        skills=skills or [],
        status=status,
        is_active=is_active,
        date_of_joining=date(2024, 1, 15),
        monthly_salary=monthly_salary,
    )


def _make_project(
    *,
    project_code: str | None = None,
    name: str = "Apollo",
    client: str = "Acme Corp",
    status: str = "active",
    start_date: date = date(2026, 1, 1),
    end_date: date | None = date(2026, 12, 31),
    billing_type: str | None = "T&M",
    budget: float | None = None,
    required_skills: list[str] | None = None,
    team_size: int = 0,
) -> dict:
    return dict(
        id=uuid.uuid4(),
        project_code=project_code or f"P{uuid.uuid4().hex[:5].upper()}",
        name=name,
        client=client,
        status=status,
        start_date=start_date,
        end_date=end_date,
        billing_type=billing_type,
        project_currency="USD",
        budget=budget,
        required_skills=required_skills or [],
        team_size=team_size,
    )


def _make_financial_line(project_id: uuid.UUID, **overrides) -> dict:
    data = dict(
        id=uuid.uuid4(),
        fl_no=f"FL-2026-{uuid.uuid4().int % 10000:04d}",
        fl_name="Core delivery",
        project_id=project_id,
        contract_type="T&M",
        location_type="Offshore",
        execution_entity="Acme India Pvt Ltd",
        timesheet_approver="Jane Manager",
        schedule_start=date(2026, 2, 1),
        schedule_finish=date(2026, 6, 30),
        currency="USD",
        billing_rate=50,
        rate_uom="Hr",
        effort=100,
        effort_uom="Hr",
        revenue_amount=5000,
        expected_revenue=5000,
        total_funding=5000,
        status="Active",
    )
    data.update(overrides)
    return data


async def add_employee(db: AsyncSession, **kwargs) -> Employee:
    employee = Employee(**_make_employee(**kwargs))
    db.add(employee)
    await db.commit()
    return employee


async def add_project(db: AsyncSession, **kwargs) -> Project:
    project = Project(**_make_project(**kwargs))
    db.add(project)
    await db.commit()
    return project


async def add_financial_line(db: AsyncSession, project: Project, **overrides) -> FinancialLine:
    fl = FinancialLine(**_make_financial_line(project.id, **overrides))
    db.add(fl)
    await db.commit()
    return fl


async def add_resource(
    db: AsyncSession,
    fl: FinancialLine,
    employee: Employee | None = None,
    **overrides,
) -> FLResource:
    data = dict(
        id=uuid.uuid4(),
        employee_id=employee.id if employee else None,
        resource_name=employee.name if employee else "Open demand",
        job_role="Developer",
        department=employee.department if employee else None,
        utilization_percentage=50,
        requested_from_date=date(2026, 2, 1),
        requested_to_date=date(2026, 6, 30),
        billable=True,
        financial_line_id=fl.id,
        fl_no=fl.fl_no,
        fl_name=fl.fl_name,
        project_id=fl.project_id,
        status="Active",
    )
    data.update(overrides)
    resource = FLResource(**data)
    db.add(resource)
    await db.commit()
    return resource


async def add_customer_po(db: AsyncSession, project: Project, **overrides) -> CustomerPO:
    data = dict(
        id=uuid.uuid4(),
        po_no=f"PO-{uuid.uuid4().hex[:6].upper()}",
        contract_no="CN-001",
        customer_name=project.client,
        project_id=project.id,
        booking_entity="Acme Inc",
        po_amount=10000,
        po_currency="USD",
        po_creation_date=date(2026, 1, 5),
        po_start_date=date(2026, 1, 10),
        po_validity_date=date(2026, 12, 31),
    )
    data.update(overrides)
    po = CustomerPO(**data)
    db.add(po)
    await db.commit()
    return po


@pytest.fixture
async def test_employee(db) -> Employee:
    """An active employee with the plain employee role."""
    return await add_employee(db, name="Test User")


@pytest.fixture
async def rmg_user(db) -> Employee:
    """An active RMG team member."""
    return await add_employee(db, name="Riya Manager", role=UserRole.rmg, department="RMG")


@pytest.fixture
async def test_project(db) -> Project:
    return await add_project(db)


# ── Auth helpers ────────────────────────────────────────────────────

def create_access_token(
    employee_id: uuid.UUID,
    role: UserRole = UserRole.employee,
    expired: bool = False,
    token_type: str = "access",
) -> str:
    """Generate a JWT access token for testing."""
    if expired:
        exp = datetime.now(timezone.utc) - timedelta(hours=1)
    else:
        exp = datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRY_HOURS)
    payload = {
        "sub": str(employee_id),
        "role": role.value,
        "type": token_type,
        "exp": exp,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def auth_header(employee: Employee, role: UserRole | None = None) -> dict[str, str]:
    token = create_access_token(employee.id, role=role or employee.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(test_employee) -> dict[str, str]:
    """Bearer headers for the plain employee."""
    return auth_header(test_employee)


@pytest.fixture
def rmg_headers(rmg_user) -> dict[str, str]:
    """Bearer headers for the RMG user."""
    return auth_header(rmg_user)
