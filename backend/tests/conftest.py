"""
Pytest configuration and fixtures for the HR admin backend tests.
"""
import os
# Set TESTING mode BEFORE any imports to disable rate limiting
os.environ["TESTING"] = "1"
# Set required environment variables for testing
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["SUPERADMIN_PASSWORD"] = "test-superadmin-password"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["COOKIE_SECURE"] = "false"
os.environ["LOG_JSON"] = "false"

import pytest
import pytest_asyncio
from typing import AsyncGenerator
from datetime import date, datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport

from api.constants import ALL_MODULES, MODULE_RECRUITMENT
from api.database import get_db
from api.models.database import (
    Base, SubscriptionPlan, Organization, OrgModule, OrganizationModule,
    Role, User, Department, Designation, JobPosition,
    Candidate, CandidateStatus, Application, ApplicationStatus,
)
from helpers import ORG_MODULES, auth_headers, make_role, make_user
from main import app


# ============================================================================
# DATABASE FIXTURES
# ============================================================================

@pytest_asyncio.fixture(scope="function")
async def async_engine():
    """Create async SQLite engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    async with engine.begin() as conn:
        # Enable foreign key constraints in SQLite
        await conn.execute(text("PRAGMA foreign_keys=ON"))
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create async database session for testing."""
    async_session = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client with database override."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ============================================================================
# ORGANIZATION FIXTURES
# ============================================================================

@pytest_asyncio.fixture
async def plan(db_session: AsyncSession) -> SubscriptionPlan:
    plan = SubscriptionPlan(name="Standard", code="standard", max_users=25, max_employees=100)
    db_session.add(plan)
    await db_session.commit()
    await db_session.refresh(plan)
    return plan


@pytest_asyncio.fixture
async def modules(db_session: AsyncSession) -> dict:
    """The platform module catalogue, keyed by code."""
    catalogue = {}
    for code, name in ALL_MODULES.items():
        module = OrgModule(code=code, name=name, is_core=code == "dashboard")
        db_session.add(module)
        catalogue[code] = module
    await db_session.commit()
    return catalogue


async def _enable_modules(db_session: AsyncSession, organization: Organization, modules: dict, codes) -> None:
    for code in codes:
        db_session.add(OrganizationModule(
            organization_id=organization.id, module_id=modules[code].id, is_enabled=True
        ))
    await db_session.commit()


@pytest_asyncio.fixture
async def organization(db_session: AsyncSession, plan: SubscriptionPlan, modules: dict) -> Organization:
    """Active organization with recruitment, employees and master data enabled."""
    org = Organization(
        name="Acme Corporation",
        slug="acme",
        code="ACME",
        subscription_plan_id=plan.id,
        created_at=datetime.utcnow()
    )
    db_session.add(org)
    await db_session.commit()
    await db_session.refresh(org)
    await _enable_modules(db_session, org, modules, ORG_MODULES)
    return org


@pytest_asyncio.fixture
async def second_organization(db_session: AsyncSession, plan: SubscriptionPlan, modules: dict) -> Organization:
    """Second organization for cross-tenant tests."""
    org = Organization(
        name="Globex",
        slug="globex",
        code="GLOBEX",
        subscription_plan_id=plan.id,
        created_at=datetime.utcnow()
    )
    db_session.add(org)
    await db_session.commit()
    await db_session.refresh(org)
    await _enable_modules(db_session, org, modules, ORG_MODULES)
    return org


# ============================================================================
# ROLE AND USER FIXTURES
# ============================================================================

@pytest_asyncio.fixture
async def admin_role(db_session: AsyncSession, organization: Organization) -> Role:
    """Every action on every enabled module, approve included."""
    return await make_role(db_session, organization, "hr_admin")


@pytest_asyncio.fixture
async def recruiter_role(db_session: AsyncSession, organization: Organization) -> Role:
    """Read/write/update on recruitment only; no delete, no approve."""
    return await make_role(
        db_session, organization, "recruiter",
        actions=("read", "write", "update"), module_codes=(MODULE_RECRUITMENT,)
    )


@pytest_asyncio.fixture
async def viewer_role(db_session: AsyncSession, organization: Organization) -> Role:
    return await make_role(db_session, organization, "viewer", actions=("read",))


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession, organization: Organization, admin_role: Role) -> User:
    return await make_user(db_session, "admin@acme.com", organization, admin_role)


@pytest_asyncio.fixture
async def recruiter_user(db_session: AsyncSession, organization: Organization, recruiter_role: Role) -> User:
    return await make_user(db_session, "recruiter@acme.com", organization, recruiter_role)


@pytest_asyncio.fixture
async def viewer_user(db_session: AsyncSession, organization: Organization, viewer_role: Role) -> User:
    return await make_user(db_session, "viewer@acme.com", organization, viewer_role)


@pytest_asyncio.fixture
async def superadmin_user(db_session: AsyncSession) -> User:
    return await make_user(db_session, "root@platform.com", is_super_admin=True)


@pytest_asyncio.fixture
async def outsider_user(db_session: AsyncSession, second_organization: Organization) -> User:
    """Admin of another organization."""
    role = await make_role(db_session, second_organization, "globex_admin")
    return await make_user(db_session, "admin@globex.com", second_organization, role)


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    return auth_headers(admin_user)


# ============================================================================
# MASTER DATA FIXTURES
# ============================================================================

@pytest_asyncio.fixture
async def department(db_session: AsyncSession, organization: Organization) -> Department:
    dept = Department(organization_id=organization.id, name="Engineering", code="ENG")
    db_session.add(dept)
    await db_session.commit()
    await db_session.refresh(dept)
    return dept


@pytest_asyncio.fixture
async def second_department(db_session: AsyncSession, organization: Organization) -> Department:
    dept = Department(organization_id=organization.id, name="Sales", code="SAL")
    db_session.add(dept)
    await db_session.commit()
    await db_session.refresh(dept)
    return dept


@pytest_asyncio.fixture
async def designation(db_session: AsyncSession, organization: Organization) -> Designation:
    desig = Designation(organization_id=organization.id, name="Software Engineer", code="SE", level=2)
    db_session.add(desig)
    await db_session.commit()
    await db_session.refresh(desig)
    return desig


@pytest_asyncio.fixture
async def job_position(db_session: AsyncSession, organization: Organization, department: Department) -> JobPosition:
    job = JobPosition(
        organization_id=organization.id,
        department_id=department.id,
        title="Backend Engineer",
        code="JOB-001",
        vacancies=2,
    )
    db_session.add(job)
    await db_session.commit()
    await db_session.refresh(job)
    return job


@pytest_asyncio.fixture
async def second_job_position(db_session: AsyncSession, organization: Organization) -> JobPosition:
    job = JobPosition(organization_id=organization.id, title="Data Engineer", code="JOB-002")
    db_session.add(job)
    await db_session.commit()
    await db_session.refresh(job)
    return job


# ============================================================================
# RECRUITMENT FIXTURES
# ============================================================================

@pytest_asyncio.fixture
async def candidate(db_session: AsyncSession, organization: Organization, admin_user: User) -> Candidate:
    candidate = Candidate(
        organization_id=organization.id,
        first_name="Jane",
        last_name="Doe",
        email="jane.doe@example.com",
        phone="+15550100",
        total_experience=5,
        source="LinkedIn",
        status=CandidateStatus.new,
        created_by=admin_user.id,
    )
    db_session.add(candidate)
    await db_session.commit()
    await db_session.refresh(candidate)
    return candidate


@pytest_asyncio.fixture
async def application(
    db_session: AsyncSession,
    organization: Organization,
    candidate: Candidate,
    job_position: JobPosition,
    admin_user: User,
) -> Application:
    application = Application(
        organization_id=organization.id,
        candidate_id=candidate.id,
        job_position_id=job_position.id,
        applied_date=date.today(),
        status=ApplicationStatus.applied,
        created_by=admin_user.id,
    )
    db_session.add(application)
    await db_session.commit()
    await db_session.refresh(application)
    return application


