import os
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT_DIR))

os.environ.setdefault("DATABASE_URL", f"sqlite:///{ROOT_DIR / 'tests' / '.funnel_builder_test.db'}")
os.environ.setdefault("DECK_CHUNK_DELAY_SECONDS", "0")
os.environ.setdefault("LLM_DEFAULT_MODEL", "claude-sonnet-4-5")

import pytest
from fastapi.testclient import TestClient

from funnel_builder.auth.dependencies import AuthContext, get_current_user
from funnel_builder.config import settings
from funnel_builder.db.base import Base, SessionLocal, engine, init_db
from funnel_builder.db.deps import get_session
from funnel_builder.llm import client as llm_client_module
from funnel_builder.main import app
from funnel_builder.services import business_profiles as business_profiles_service
from funnel_builder.services import deck_structure as deck_structure_service
from funnel_builder.services import offers as offers_service

TEST_USER_ID = "user_test_123"


@pytest.fixture(scope="session", autouse=True)
def create_tables():
    Base.metadata.drop_all(bind=engine)
    init_db()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def no_generation_delays(monkeypatch):
    monkeypatch.setattr(settings, "DECK_CHUNK_DELAY_SECONDS", 0)
    monkeypatch.setattr(llm_client_module, "_JSON_RETRY_DELAY_SECONDS", 0)


@pytest.fixture()
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        for table in reversed(Base.metadata.sorted_tables):
            session.execute(table.delete())
        session.commit()
        session.close()


@pytest.fixture()
def auth_context() -> AuthContext:
    return AuthContext(user_id=TEST_USER_ID)


@pytest.fixture()
def override_dependencies(db_session, auth_context):
    def get_session_override():
        try:
            yield db_session
        finally:
            pass

    def get_user_override():
        return auth_context

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_current_user] = get_user_override
    yield
    app.dependency_overrides.clear()


@pytest.fixture()
def api_client(override_dependencies):
    with TestClient(app) as client:
        yield client


class FakeLLM:
    """Stands in for LLMClient. Queued replies are returned in order; exceptions are raised."""

    def __init__(self) -> None:
        self.json_replies: list = []
        self.text_replies: list = []
        self.prompts: list[str] = []

    def _next(self, queue: list):
        if not queue:
            raise AssertionError("FakeLLM has no queued reply")
        reply = queue.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    def generate_json(self, prompt, params=None):
        self.prompts.append(prompt)
        return self._next(self.json_replies)

    def generate_text(self, prompt, params=None):
        self.prompts.append(prompt)
        return self._next(self.text_replies)


@pytest.fixture()
def fake_llm(monkeypatch) -> FakeLLM:
    fake = FakeLLM()
    for module in (offers_service, deck_structure_service, business_profiles_service):
        monkeypatch.setattr(module, "LLMClient", lambda *args, **kwargs: fake)
    return fake


@pytest.fixture()
def project(api_client) -> dict:
    resp = api_client.post("/projects", json={"name": "Growth Masterclass"})
    assert resp.status_code == 201
    return resp.json()


@pytest.fixture()
def transcript(api_client, project) -> dict:
    resp = api_client.post(
        "/intake-sessions",
        json={
            "projectId": project["id"],
            "transcriptText": "I help agency owners replace referrals with a predictable webinar funnel.",
            "intakeMethod": "paste",
            "extractedData": {"pricing": [{"amount": 997, "context": "webinar offer"}]},
        },
    )
    assert resp.status_code == 201
    return resp.json()
