from __future__ import annotations

import pytest

from clipvault.api.v1 import routes_admin
from tests.conftest import JPEG_HEADER, MP4_HEADER, PNG_HEADER, bearer, build_token


def _create_video(client, headers, title: str = "Launch teaser") -> dict:
    resp = client.post("/v1/videos", json={"title": title, "description": "vertical cut"}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_v1_health_ok(client):
    resp = client.get("/v1/health")
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["status"] == "ok"
    assert payload["environment"] == "test"
    assert resp.headers["X-Request-ID"]


def test_request_id_is_echoed(client):
    resp = client.get("/v1/health", headers={"X-Request-ID": "req-123"})
    assert resp.headers["X-Request-ID"] == "req-123"


def test_ready_checks_database(client):
    resp = client.get("/v1/ready")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ready", "database": True}


def test_create_and_get_video(client, owner_headers):
    created = _create_video(client, owner_headers)
    assert created["user_id"] == "user-owner"
    assert created["video_url"] is None
    assert created["thumbnail_url"] is None

    resp = client.get(f"/v1/videos/{created['id']}", headers=owner_headers)
    assert resp.status_code == 200
    assert resp.json()["title"] == "Launch teaser"
    assert resp.json()["description"] == "vertical cut"


def test_list_returns_only_own_videos(client, owner_headers, stranger_headers):
    _create_video(client, owner_headers, "first")
    _create_video(client, owner_headers, "second")
    _create_video(client, stranger_headers, "not mine")

    resp = client.get("/v1/videos", headers=owner_headers)

    assert resp.status_code == 200
    titles = {item["title"] for item in resp.json()["items"]}
    assert titles == {"first", "second"}


def test_blank_title_rejected(client, owner_headers):
    resp = client.post("/v1/videos", json={"title": ""}, headers=owner_headers)
    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_request"


def test_missing_token_is_unauthorized(client):
    resp = client.get("/v1/videos")
    assert resp.status_code == 401
    assert resp.json() == {"code": "unauthorized", "message": "Couldn't find JWT"}


def test_token_signed_with_wrong_secret(client):
    token = build_token("user-owner", secret="not-the-secret")
    resp = client.get("/v1/videos", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert resp.json()["message"] == "Couldn't validate JWT"


def test_token_without_subject(client):
    token = build_token(None)
    resp = client.get("/v1/videos", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


def test_stranger_cannot_read_video(client, owner_headers, stranger_headers):
    created = _create_video(client, owner_headers)
    resp = client.get(f"/v1/videos/{created['id']}", headers=stranger_headers)
    assert resp.status_code == 403
    assert resp.json()["code"] == "forbidden"


def test_get_unknown_video(client, owner_headers):
    resp = client.get("/v1/videos/6b0c6c2e-4f7a-4c1e-9d55-0c3f4f0b9a11", headers=owner_headers)
    assert resp.status_code == 404


@pytest.mark.parametrize(("header", "media_type"), [(PNG_HEADER, "image/png"), (JPEG_HEADER, "image/jpeg")])
def test_thumbnail_upload_and_fetch(client, owner_headers, header, media_type):
    created = _create_video(client, owner_headers)
    image = header + b"\x00" * 128

    resp = client.post(
        f"/v1/videos/{created['id']}/thumbnail",
        files={"thumbnail": ("thumb.bin", image, "application/octet-stream")},
        headers=owner_headers,
    )

    assert resp.status_code == 200, resp.text
    assert resp.json()["thumbnail_url"] == f"/v1/thumbnails/{created['id']}"

    fetched = client.get(f"/v1/thumbnails/{created['id']}")
    assert fetched.status_code == 200
    assert fetched.content == image
    assert fetched.headers["content-type"] == media_type


def test_thumbnail_rejects_video_bytes(client, owner_headers):
    created = _create_video(client, owner_headers)
    resp = client.post(
        f"/v1/videos/{created['id']}/thumbnail",
        files={"thumbnail": ("thumb.png", MP4_HEADER, "image/png")},
        headers=owner_headers,
    )
    assert resp.status_code == 400
    assert resp.json()["code"] == "unsupported_media_type"


def test_thumbnail_requires_owner(client, owner_headers, stranger_headers):
    created = _create_video(client, owner_headers)
    resp = client.post(
        f"/v1/videos/{created['id']}/thumbnail",
        files={"thumbnail": ("thumb.png", PNG_HEADER, "image/png")},
        headers=stranger_headers,
    )
    assert resp.status_code == 403
    assert client.get(f"/v1/thumbnails/{created['id']}").status_code == 404


def test_unknown_thumbnail(client):
    resp = client.get("/v1/thumbnails/6b0c6c2e-4f7a-4c1e-9d55-0c3f4f0b9a11")
    assert resp.status_code == 404


def test_unknown_route_uses_error_envelope(client):
    resp = client.get("/v1/nothing-here")
    assert resp.status_code == 404
    assert resp.json()["code"] == "http_error"


def test_admin_env_check_requires_scope(client, owner_headers):
    resp = client.get("/v1/admin/env-check", headers=owner_headers)
    assert resp.status_code == 403


def test_admin_env_check_reports_binaries(client, admin_headers, monkeypatch):
    monkeypatch.setattr(routes_admin, "_binary_available", lambda binary: binary == "ffprobe")
    resp = client.get("/v1/admin/env-check", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json() == {"ffmpeg": False, "ffprobe": True}


def test_dev_token_disabled_outside_development(client):
    resp = client.post("/v1/admin/dev-token", json={"user_id": "user-1"})
    assert resp.status_code == 403


def test_scopes_are_read_from_token(client):
    headers = bearer("user-admin", scopes=["admin", "videos:write"])
    resp = client.get("/v1/admin/env-check", headers=headers)
    assert resp.status_code == 200
