"""Pytest configuration and fixtures for prospector tests."""

import uuid
from types import SimpleNamespace

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from prospector.models import (
    Company,
    CompanyClassification,
    CompanyList,
    CompanyTag,
    Organization,
    Permission,
    Role,
    RolePermission,
    User,
    UserRole,
)
from prospector.repositories.user_repo import UserRepository
from prospector.schemas.principal import PermissionGrant, Principal, RoleGrant


def build_principal(*keys, user_id=None, organization_id=None):
    """Principal with a single role holding ``keys``."""
    roles = [RoleGrant(name="test", permissions=[PermissionGrant(key=k) for k in keys])] if keys else []
    return Principal(
        id=user_id or uuid.uuid4(),
        organization_id=organization_id or uuid.uuid4(),
        roles=roles,
    )


@pytest.fixture
def make_principal():
    return build_principal


@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite engine with working SAVEPOINT support."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


async def _grant(session, permissions, user, role_name, *keys):
    role = Role(name=role_name, organization_id=user.organization_id)
    session.add(role)
    await session.flush()
    for key in keys:
        if key not in permissions:
            permissions[key] = Permission(key=key)
            session.add(permissions[key])
            await session.flush()
        session.add(RolePermission(role_id=role.id, permission_id=permissions[key].id))
    session.add(UserRole(user_id=user.id, role_id=role.id))
    await session.flush()


@pytest_asyncio.fixture
async def world(db_session):
    """
    Two organizations with users of different roles, a small company
    registry and three lists owned by ``owner``.
    """
    session = db_session

    org = Organization(name="Acme Prospecting")
    other_org = Organization(name="Other Tenant")
    session.add_all([org, other_org])
    await session.flush()

    users = {
        "owner": User(organization_id=org.id, email="owner@acme.test"),
        "colleague": User(organization_id=org.id, email="colleague@acme.test"),
        "org_reader": User(organization_id=org.id, email="reader@acme.test"),
        "editor": User(organization_id=org.id, email="editor@acme.test"),
        "admin": User(organization_id=org.id, email="admin@acme.test"),
        "outsider": User(organization_id=other_org.id, email="outsider@other.test"),
        "inactive": User(organization_id=org.id, email="gone@acme.test", is_active=False),
    }
    session.add_all(users.values())
    await session.flush()

    permissions = {}
    await _grant(session, permissions, users["org_reader"], "staff", "company-lists:read-org", "company-lists:read-public")
    await _grant(session, permissions, users["editor"], "editor", "company-lists:update-any")
    await _grant(session, permissions, users["admin"], "admin", "*")
    await _grant(session, permissions, users["outsider"], "user", "company-lists:read-public", "company-lists:read-org")

    companies = {
        "abc": Company(name_en="ABC Manufacturing", province="Bangkok", company_size="M",
                       verification_status="Active", industry_key="Manufacturing"),
        "siam": Company(name_en="Siam Logistics", province="Chonburi", company_size="L",
                        verification_status="Needs Verification", industry_key="Logistics"),
        "delta": Company(name_en="Delta Foods", name_th="เดลต้า ฟู้ดส์", province="Bangkok",
                         company_size="S", verification_status="Active", industry_key="Food"),
        "echo": Company(name_en="Echo Retail", province="Phuket", company_size="M",
                        verification_status="Invalid", industry_key="Retail"),
        "foreign": Company(organization_id=other_org.id, name_en="Private Elsewhere", province="Bangkok"),
    }
    session.add_all(companies.values())
    await session.flush()

    session.add_all([
        CompanyTag(company_id=companies["abc"].id, tag_key="industry", name="Manufacturing"),
        CompanyTag(company_id=companies["delta"].id, tag_key="export", name="Exporter"),
        CompanyClassification(company_id=companies["abc"].id, tsic="25110", is_primary=True),
        CompanyClassification(company_id=companies["siam"].id, tsic="52101", is_primary=True),
    ])

    lists = {
        "private": CompanyList(organization_id=org.id, owner_user_id=users["owner"].id,
                               name="My targets", visibility="private"),
        "org": CompanyList(organization_id=org.id, owner_user_id=users["owner"].id,
                           name="Team pipeline", visibility="organization", is_shared=True),
        "public": CompanyList(organization_id=org.id, owner_user_id=users["owner"].id,
                              name="Public showcase", description="Open to all", visibility="public",
                              is_shared=True),
    }
    session.add_all(lists.values())
    await session.commit()

    user_repo = UserRepository(session)
    principals = {}
    for key, user in users.items():
        roles = await user_repo.get_role_grants(user.id)
        principals[key] = Principal(id=user.id, organization_id=user.organization_id, roles=roles)

    return SimpleNamespace(
        org=org,
        other_org=other_org,
        users=users,
        principals=principals,
        companies=companies,
        lists=lists,
    )
