import os
import tempfile
from pathlib import Path

import numpy as np
import pytest
from fastapi.testclient import TestClient


# Must be set before any `jobmatch.app` import: config is read once at import time.
_TMP_ROOT = Path(tempfile.mkdtemp(prefix="jobmatch-tests-"))
os.environ["DISABLE_DOTENV"] = "1"
os.environ["DATABASE_URL"] = f"sqlite+pysqlite:///{(_TMP_ROOT / 'test.sqlite3').as_posix()}"
os.environ["UPLOAD_DIR"] = str(_TMP_ROOT / "uploads")
# Never call external AI providers even if the developer machine has keys set.
os.environ["GEMINI_API_KEY"] = ""
# Never download the real embedding model; tests inject FakeEmbeddingBackend.
os.environ["EMBEDDINGS_ENABLED"] = "0"
os.environ["APP_ENV"] = "production"
# Gemini requests carry no output cap unless one is configured.
os.environ.pop("AI_MAX_OUTPUT_TOKENS", None)


# Keyword-bag vocabulary for the fake embedding model. The trailing bias
# dimension keeps every vector non-zero.
VOCAB = ("python", "react", "kubernetes", "sql", "design")
DIM = len(VOCAB) + 1


def keyword_vector(text: str) -> list[float]:
    t = (text or "").lower()
    return [float(t.count(word)) for word in VOCAB] + [0.1]


class FakeEmbeddingBackend:
    """Stands in for fastembed.TextEmbedding: `embed` yields one numpy array per document."""

    def __init__(self):
        self.calls: list[str] = []

    def embed(self, documents):
        for doc in documents:
            self.calls.append(doc)
            yield np.asarray(keyword_vector(doc), dtype=np.float32)


class FakeTextGenerator:
    """Returns a canned completion, or raises `error` when set."""

    def __init__(self, response: str = "", *, error: Exception | None = None, model: str = "fake-model"):
        self.response = response
        self.error = error
        self.model = model
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture()
def fake_backend() -> FakeEmbeddingBackend:
    return FakeEmbeddingBackend()


@pytest.fixture()
def embedder(fake_backend: FakeEmbeddingBackend):
    from jobmatch.app.services.embeddings import EmbeddingGenerator

    return EmbeddingGenerator("fake/keyword-bag", loader=lambda name: fake_backend)


@pytest.fixture()
def db_engine():
    from jobmatch.app import database as db
    from jobmatch.app import models  # noqa: F401

    db.Base.metadata.drop_all(bind=db.engine)
    db.Base.metadata.create_all(bind=db.engine)
    yield db.engine


@pytest.fixture()
def db_session(db_engine):
    from jobmatch.app.database import SessionLocal

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def text_generator() -> dict:
    """Mutable holder so a test can swap the generator the app sees (None = no key configured)."""
    return {"generator": None}


@pytest.fixture()
def app(db_engine, embedder, text_generator):
    from jobmatch.app.main import app as fastapi_app
    from jobmatch.app.services.ai_client import get_text_generator
    from jobmatch.app.services.embeddings import get_embedding_generator

    fastapi_app.dependency_overrides[get_embedding_generator] = lambda: embedder
    fastapi_app.dependency_overrides[get_text_generator] = lambda: text_generator["generator"]
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture()
def client(app) -> TestClient:
    return TestClient(app)


def signup(client: TestClient, *, email: str = "user@example.com", password: str = "Testpass123!", name: str = "Test User"):
    return client.post("/auth/signup", json={"email": email, "password": password, "name": name})


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def user_token(client: TestClient) -> str:
    r = signup(client)
    assert r.status_code == 201, r.text
    return r.json()["access_token"]


@pytest.fixture()
def headers(user_token: str) -> dict:
    return auth_headers(user_token)
