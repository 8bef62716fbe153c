"""
Gharpan Admin Portal - Test Configuration and Fixtures
"""
import io

import httpx
import pytest
from fastapi.testclient import TestClient
from PIL import Image
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from main import app
from models import Resident, Document
from records import ResidentSnapshot
from report_engine.assets import StaticLogoResolver
from report_engine.branding_config import DEFAULT_BRANDING
from report_engine.fetcher import BlobFetcher, FetchPolicy, get_blob_fetcher
from report_engine.renderers import ReportRenderer

from helpers import FIXED_NOW


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest.fixture
def db_session():
    """Fresh in-memory SQLite database per test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def make_resident(db_session):
    """Factory: insert a resident row and return it"""
    counter = {"n": 0}

    def _make(documents=None, **fields):
        counter["n"] += 1
        fields.setdefault("registration_no", f"REG-2024-{counter['n']:04d}")
        fields.setdefault("address", {})
        fields.setdefault("care_events", [])
        resident = Resident(**fields)
        db_session.add(resident)
        db_session.flush()
        for doc in documents or []:
            db_session.add(Document(resident_id=resident.id, **doc))
        db_session.commit()
        db_session.refresh(resident)
        return resident

    return _make


# ---------------------------------------------------------------------------
# Blob store
# ---------------------------------------------------------------------------

@pytest.fixture
def png_bytes():
    buffer = io.BytesIO()
    Image.new("RGB", (8, 6), (10, 64, 12)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def blob_store():
    """
    url -> bytes, HTTP status int, or exception to raise.
    Unknown urls behave like an unreachable host.
    """
    return {}


@pytest.fixture
def blob_requests():
    return []


@pytest.fixture
def fetcher(blob_store, blob_requests):
    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        blob_requests.append(url)
        entry = blob_store.get(url)
        if entry is None:
            raise httpx.ConnectError("host unreachable", request=request)
        if isinstance(entry, Exception):
            raise entry
        if isinstance(entry, int):
            return httpx.Response(entry)
        return httpx.Response(200, content=entry)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return BlobFetcher(FetchPolicy(timeout=1, retries=0), client=client)


# ---------------------------------------------------------------------------
# Renderer and API client
# ---------------------------------------------------------------------------

@pytest.fixture
def branding():
    return dict(DEFAULT_BRANDING)


@pytest.fixture
def renderer(branding, fetcher):
    return ReportRenderer(branding, StaticLogoResolver(None), fetcher, clock=lambda: FIXED_NOW)


@pytest.fixture
def snapshot():
    """Build a ResidentSnapshot straight from a dict"""
    def _snap(**fields):
        fields.setdefault("id", "a" * 24)
        return ResidentSnapshot(fields)
    return _snap


@pytest.fixture
def client(db_session, fetcher):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_blob_fetcher] = lambda: fetcher
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()

