import os
import uuid

# must be set before taskboard.db builds its engine
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from taskboard.auth.passwords import hash_password
from taskboard.config import settings
from taskboard.db import get_db
from taskboard.main import create_app
from taskboard.models import Base
from taskboard.models.enums import Role
from taskboard.models.project import Project
from taskboard.models.project_member import ProjectMember
from taskboard.models.user import User
from taskboard.store import MembershipStore

PASSWORD = "correct-horse"

@pytest.fixture(autouse=True)
def _fast_settings(monkeypatch):
    monkeypatch.setattr(settings, "rate_limit_enabled", False)
    monkeypatch.setattr(settings, "bcrypt_rounds", 4)

@pytest.fixture()
def db_session() -> Session:
    database_url = os.environ["DATABASE_URL"]

    kwargs: dict = {"pool_pre_ping": True}
    if database_url.startswith("sqlite"):
        # one shared connection so the app's worker threads see the same in-memory db
        kwargs = {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}

    engine = create_engine(database_url, **kwargs)
    Base.metadata.create_all(engine)

    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    session: Session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()

@pytest.fixture()
def client(db_session: Session) -> TestClient:
    app = create_app()

    def _override_get_db():
        try:
            yield db_session
        finally:
            # a failed request must not leave the shared session mid-transaction
            db_session.rollback()

    app.dependency_overrides[get_db] = _override_get_db
    return TestClient(app)

@pytest.fixture()
def store(db_session: Session) -> MembershipStore:
    return MembershipStore(db_session)

def make_user(db: Session, prefix: str = "user") -> User:
    handle = f"{prefix}_{uuid.uuid4().hex[:8]}"
    u = User(email=f"{handle}@example.com", username=handle, password_hash=hash_password(PASSWORD))
    db.add(u)
    db.commit()
    return u

def make_project(db: Session, owner: User, name: str = "project") -> Project:
    p = Project(name=name, created_by=owner.id)
    db.add(p)
    db.flush()
    db.add(ProjectMember(user_id=owner.id, project_id=p.id, role=Role.owner))
    db.commit()
    return p

def add_member(db: Session, user: User, project: Project, role: Role) -> ProjectMember:
    m = ProjectMember(user_id=user.id, project_id=project.id, role=role)
    db.add(m)
    db.commit()
    return m

def register(client, prefix: str) -> dict:
    handle = f"{prefix}_{uuid.uuid4().hex[:8]}"
    r = client.post(
        "/auth/register",
        json={"email": f"{handle}@example.com", "username": handle, "password": PASSWORD},
    )
    assert r.status_code == 201, r.text
    return r.json()

def login(client, identifier: str, password: str = PASSWORD) -> str:
    r = client.post("/auth/login", json={"identifier": identifier, "password": password})
    assert r.status_code == 200, r.text
    return r.json()["access_token"]

def auth(jwt: str) -> dict[str, str]:
    return {"authorization": f"bearer {jwt}"}

