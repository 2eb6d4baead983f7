"""Shared fixtures: temporary database, image storage and HTTP client."""
from __future__ import annotations

import os
import tempfile
from pathlib import Path

_TMP = Path(tempfile.mkdtemp(prefix="blogit-tests-"))
os.environ["BLOGIT_DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP / 'test.db'}"
os.environ["BLOGIT_SECRET_KEY"] = "test-secret"
os.environ["BLOGIT_UPLOAD_DIR"] = str(_TMP / "uploads")
os.environ["BLOGIT_PASSWORD_HASH_ROUNDS"] = "4"

import httpx  # noqa: E402
import pytest  # noqa: E402

from blogit.core.dependencies import get_image_storage  # noqa: E402
from blogit.db.base import Base  # noqa: E402
from blogit.db.session import engine  # noqa: E402
from blogit.main import app  # noqa: E402
from blogit.services.images import LocalImageStorage  # noqa: E402


@pytest.fixture
async def db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def storage(tmp_path):
    return LocalImageStorage(tmp_path / "uploads", url_prefix="/uploads", max_bytes=1024)


@pytest.fixture
async def client(db, storage):
    app.dependency_overrides[get_image_storage] = lambda: storage
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
    app.dependency_overrides.clear()


async def signup(client, username: str, email: str, password: str = "secret1") -> dict:
    response = await client.post(
        "/auth/signup", json={"username": username, "email": email, "password": password}
    )
    assert response.status_code == 200, response.text
    return response.json()


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
