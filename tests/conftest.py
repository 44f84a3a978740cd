import asyncio
import shutil
from pathlib import Path
from urllib.parse import urlparse

import jwt
import pytest
from fastapi.testclient import TestClient

from clipvault.core.config import get_settings
from clipvault.core.db import Base, create_engine, create_schema
from clipvault.main import create_app

JWT_SECRET = "test-secret"
JWT_ISSUER = "clipvault-test"
JWT_AUDIENCE = "clipvault"

# Smallest header the sniffer accepts as video/mp4: a 24-byte ftyp box with an mp42 brand.
MP4_HEADER = b"\x00\x00\x00\x18ftypmp42\x00\x00\x00\x00mp42isom"
PNG_HEADER = b"\x89PNG\r\n\x1a\n"
JPEG_HEADER = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00"


def pytest_configure(config):
    config.addinivalue_line(
        "markers",
        "no_default_env: disable the default Clipvault environment bootstrap fixture for tests that manage their own .env",
    )


@pytest.fixture(autouse=True)
def configure_environment(request, monkeypatch, tmp_path):
    if request.node.get_closest_marker("no_default_env"):
        get_settings.cache_clear()
        yield
        get_settings.cache_clear()
        return
    db_path = tmp_path / "clipvault_test.db"

    monkeypatch.setenv("CLIPVAULT_ENV", "test")
    monkeypatch.setenv("CLIPVAULT_LOG_LEVEL", "debug")
    monkeypatch.setenv("CLIPVAULT_DB_URL", f"sqlite+aiosqlite:///{db_path}")
    monkeypatch.setenv("CLIPVAULT_STORAGE_BACKEND", "local")
    monkeypatch.setenv("CLIPVAULT_LOCAL_STORAGE_BASE_PATH", str(tmp_path / "objects"))
    monkeypatch.setenv("CLIPVAULT_STAGING_DIR", str(tmp_path / "staging"))
    monkeypatch.setenv("CLIPVAULT_S3_BUCKET", "clipvault-test")
    monkeypatch.setenv("CLIPVAULT_ASSET_REFERENCE_MODE", "pair")
    monkeypatch.setenv("CLIPVAULT_JWT_SECRET", JWT_SECRET)
    monkeypatch.setenv("CLIPVAULT_JWT_ISSUER", JWT_ISSUER)
    monkeypatch.setenv("CLIPVAULT_JWT_AUDIENCE", JWT_AUDIENCE)

    get_settings.cache_clear()
    settings = get_settings()
    engine = create_engine(settings)

    async def _setup() -> None:
        await create_schema(engine)

    asyncio.run(_setup())

    yield

    async def _teardown() -> None:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await engine.dispose()

    asyncio.run(_teardown())
    get_settings.cache_clear()


@pytest.fixture()
def app(configure_environment):
    return create_app()


@pytest.fixture()
def client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture()
def staging_dir(tmp_path) -> Path:
    return tmp_path / "staging"


def build_token(user_id: str | None, *, scopes: list[str] | None = None, secret: str = JWT_SECRET) -> str:
    payload: dict[str, object] = {"iss": JWT_ISSUER, "aud": JWT_AUDIENCE}
    if user_id:
        payload["sub"] = user_id
    if scopes:
        payload["scopes"] = scopes
    return jwt.encode(payload, secret, algorithm="HS256")


def bearer(user_id: str, *, scopes: list[str] | None = None) -> dict[str, str]:
    return {"Authorization": f"Bearer {build_token(user_id, scopes=scopes)}"}


@pytest.fixture()
def owner_headers() -> dict[str, str]:
    return bearer("user-owner")


@pytest.fixture()
def stranger_headers() -> dict[str, str]:
    return bearer("user-stranger")


@pytest.fixture()
def admin_headers() -> dict[str, str]:
    return bearer("user-admin", scopes=["admin"])


def mp4_bytes(payload_size: int = 2048) -> bytes:
    return MP4_HEADER + b"\x00" * payload_size


def uri_to_path(uri: str) -> Path:
    parsed = urlparse(uri)
    if parsed.scheme != "file":
        raise ValueError("Unsupported URI in tests")
    return Path(parsed.path)


requires_ffmpeg = pytest.mark.skipif(
    shutil.which("ffmpeg") is None or shutil.which("ffprobe") is None,
    reason="ffmpeg/ffprobe not installed",
)


@pytest.fixture(scope="session")
def generated_video_file(tmp_path_factory) -> Path:
    """
    Generates a small 16:9 MP4 video file for testing in a temporary directory.
    """
    import subprocess

    if shutil.which("ffmpeg") is None:
        pytest.skip("ffmpeg not installed")
    video_path = tmp_path_factory.mktemp("data") / "test_video.mp4"

    # One second of black at 128x72 (16:9).
    command = [
        "ffmpeg",
        "-nostdin",
        "-f", "lavfi",
        "-i", "color=c=black:s=128x72:r=30",
        "-t", "1",
        "-pix_fmt", "yuv420p",
        str(video_path)
    ]
    subprocess.run(command, check=True, capture_output=True)
    return video_path
