import os

# must be set before aintru.* is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["ENVIRONMENT"] = "test"

import pytest
from fastapi.testclient import TestClient

from aintru.core import llm
from aintru.core.security import hash_password, create_access_token
from aintru.database import Base, SessionLocal, engine
from aintru.main import app
from aintru.models.user import User


class FakeLLM:
    """Stands in for a provider call: replays queued replies and records prompts."""

    def __init__(self, default=""):
        self.replies = []
        self.prompts = []
        self.default = default

    def queue(self, *replies):
        self.replies.extend(replies)
        return self

    def __call__(self, prompt, *args, **kwargs):
        self.prompts.append(prompt)
        reply = self.replies.pop(0) if self.replies else self.default
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture(autouse=True)
def fresh_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def gemini(monkeypatch):
    fake = FakeLLM()
    monkeypatch.setattr(llm, "gemini_generate", fake)
    return fake


@pytest.fixture
def openai(monkeypatch):
    fake = FakeLLM()
    monkeypatch.setattr(llm, "openai_chat", fake)
    return fake


@pytest.fixture
def user(db):
    u = User(
        name="Jane",
        email="jane@mail.com",
        phone="+1 555 0100",
        password_hash=hash_password("supersecret"),
    )
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


@pytest.fixture
def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}
