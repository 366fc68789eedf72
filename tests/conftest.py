"""Shared test fixtures for ScholarFund."""

import pytest
from httpx import ASGITransport, AsyncClient

from scholarfund.audit.service import AuditService
from scholarfund.common.config import ScholarFundSettings
from scholarfund.common.database import DatabaseManager
from scholarfund.identity.service import UserService, to_principal
from scholarfund.ledger.service import LedgerService
from scholarfund.registry.service import RegistryService
from scholarfund.scholarships.service import ScholarshipService


SECRET_KEY = "test-secret-key-for-unit-tests"
API_KEY = "test-gateway-api-key"


def make_settings(**overrides) -> ScholarFundSettings:
    defaults = {
        "secret_key": SECRET_KEY,
        "api_key": API_KEY,
        "db_url": "sqlite+aiosqlite://",
    }
    defaults.update(overrides)
    return ScholarFundSettings(**defaults)


# ── Service-level fixtures ──


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
async def db(settings):
    manager = DatabaseManager(settings)
    await manager.init()
    await manager.create_all()
    yield manager
    await manager.close()


@pytest.fixture
def audit_svc(settings):
    return AuditService(settings)


@pytest.fixture
def user_svc(settings, audit_svc):
    return UserService(settings, audit_service=audit_svc)


@pytest.fixture
def registry_svc(settings, audit_svc):
    return RegistryService(settings, audit_service=audit_svc)


@pytest.fixture
def ledger_svc(settings, audit_svc):
    return LedgerService(settings, audit_service=audit_svc)


@pytest.fixture
def scholarship_svc(settings, registry_svc, audit_svc):
    return ScholarshipService(settings, registry_svc, audit_service=audit_svc)


@pytest.fixture
async def staff(db, user_svc):
    """Three super admins and one plain admin, as Principals keyed by first name."""
    people = [
        ("Alice Approver", "alice@fund.org", "super_admin"),
        ("Bob Approver", "bob@fund.org", "super_admin"),
        ("Carol Approver", "carol@fund.org", "super_admin"),
        ("Dave Admin", "dave@fund.org", "admin"),
    ]
    principals = {}
    async with db.get_session() as session:
        for full_name, email, role in people:
            user = await user_svc.create_user(session, None, full_name, email, role)
            principals[full_name.split()[0].lower()] = to_principal(user)
    return principals


@pytest.fixture
async def client_record(db, registry_svc, staff):
    async with db.get_session() as session:
        return await registry_svc.create_client(session, staff["dave"], "ABC123")


@pytest.fixture
async def center_record(db, registry_svc, staff):
    async with db.get_session() as session:
        return await registry_svc.create_center(
            session, staff["dave"], "Hope Recovery", "Austin", "TX",
        )


@pytest.fixture
async def scholarship(db, scholarship_svc, staff, client_record, center_record):
    """A pending $500 award for ABC123 on 2024-03-15."""
    async with db.get_session() as session:
        return await scholarship_svc.create_scholarship(
            session, staff["dave"],
            client_id=client_record.id,
            treatment_center_id=center_record.id,
            amount="500.00",
            award_date="2024-03-15",
            insurance_situation="no_insurance",
            purpose="deductible",
        )


# ── HTTP fixtures ──


@pytest.fixture
def api_key():
    return API_KEY


@pytest.fixture
def app(monkeypatch):
    """Create a test app with in-memory DB."""
    monkeypatch.setenv("SCHOLARFUND_DB_URL", "sqlite+aiosqlite://")
    monkeypatch.setenv("SCHOLARFUND_SECRET_KEY", SECRET_KEY)
    monkeypatch.setenv("SCHOLARFUND_API_KEY", API_KEY)

    # Clear caches and singletons so new env vars take effect
    from scholarfund.common.config import get_settings
    get_settings.cache_clear()

    from scholarfund.deps import reset_singletons
    reset_singletons()

    from scholarfund.app import create_app
    yield create_app()

    get_settings.cache_clear()
    reset_singletons()


@pytest.fixture
async def client(app):
    # Manually init DB since ASGITransport doesn't run lifespan
    from scholarfund.deps import get_db
    db = get_db()
    await db.init()
    await db.create_all()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await db.close()


async def _open_session(client, email) -> dict:
    resp = await client.post(
        "/session", json={"email": email}, headers={"X-Scholarfund-Api-Key": API_KEY},
    )
    assert resp.status_code == 201, resp.text
    return {"X-Scholarfund-Session": resp.json()["token"]}


@pytest.fixture
async def staff_headers(client):
    """Session headers for seeded staff, keyed by first name."""
    from scholarfund.deps import get_db, get_user_service

    people = [
        ("Alice Approver", "alice@fund.org", "super_admin"),
        ("Bob Approver", "bob@fund.org", "super_admin"),
        ("Carol Approver", "carol@fund.org", "super_admin"),
        ("Dave Admin", "dave@fund.org", "admin"),
    ]
    async with get_db().get_session() as session:
        for full_name, email, role in people:
            await get_user_service().create_user(session, None, full_name, email, role)

    return {
        full_name.split()[0].lower(): await _open_session(client, email)
        for full_name, email, _ in people
    }
