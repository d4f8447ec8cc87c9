"""HTTP contract of the /avatar endpoints."""

import logging
import threading

import pytest
from fastapi.testclient import TestClient

from generic_avatar.config import Config, config
from generic_avatar.config.settings import AppConfig
from generic_avatar.core.dependencies import ServiceContainer
from generic_avatar.core.l10n import Translator
from generic_avatar.main import create_app
from generic_avatar.services import normalizer

from conftest import make_image_bytes

GENERIC_ERROR = {"data": {"message": "An error occurred. Please contact your admin."}}


class TestGetAvatar:
    """GET /avatar/{type}/{id}/{size}"""

    def test_returns_image_with_headers(self, client, fake_manager):
        resp = client.get("/avatar/room/abc123/128")
        assert resp.status_code == 200
        assert resp.content == b"image-128"
        assert resp.headers["content-type"] == "image/png"
        assert resp.headers["X-NC-IsCustomAvatar"] == "0"

    def test_custom_flag(self, client, fake_manager):
        fake_manager.custom = True
        resp = client.get("/avatar/room/abc123/64")
        assert resp.headers["X-NC-IsCustomAvatar"] == "1"

    @pytest.mark.parametrize("requested, effective", [(9999, 2048), (0, 64), (-3, 64), (32, 32)])
    def test_size_is_normalized(self, client, fake_manager, requested, effective):
        resp = client.get(f"/avatar/room/abc123/{requested}")
        assert resp.status_code == 200
        assert ("get_file", ("room", "abc123"), effective) in fake_manager.calls

    @pytest.mark.parametrize("segment, effective", [("abc", 64), ("12abc", 12), ("99999px", 2048)])
    def test_non_numeric_size_segment(self, client, fake_manager, segment, effective):
        resp = client.get(f"/avatar/room/abc123/{segment}")
        assert resp.status_code == 200
        assert ("get_file", ("room", "abc123"), effective) in fake_manager.calls

    @pytest.mark.parametrize("size", [1, 64, 9999])
    def test_unknown_avatar_is_404(self, client, size):
        resp = client.get(f"/avatar/room/nobody/{size}")
        assert resp.status_code == 404
        assert resp.json() == {}

    def test_render_error_is_404(self, client, fake_manager):
        fake_manager.fail_render = True
        resp = client.get("/avatar/room/abc123/64")
        assert resp.status_code == 404
        assert resp.json() == {}


class TestSetAvatar:
    """POST /avatar/{type}/{id}"""

    def test_no_file(self, client):
        resp = client.post("/avatar/room/abc123")
        assert resp.status_code == 400
        assert resp.json() == {"data": {"message": "No file provided"}}

    def test_path_instead_of_file(self, client, fake_manager):
        resp = client.post("/avatar/room/abc123", data={"files": "/etc/passwd"})
        assert resp.status_code == 400
        assert resp.json() == {"data": {"message": "Invalid file provided"}}
        assert fake_manager.calls == []

    def test_not_an_image(self, client):
        resp = client.post("/avatar/room/abc123", files={"files": ("a.png", b"hello", "image/png")})
        assert resp.status_code == 400
        assert resp.json() == {"data": {"message": "Invalid file provided"}}

    def test_file_too_big(self, client, fake_manager, square_png, monkeypatch):
        monkeypatch.setattr(config.avatar, "max_upload_bytes", len(square_png) - 1)
        resp = client.post("/avatar/room/abc123", files={"files": ("a.png", square_png, "image/png")})
        assert resp.status_code == 400
        assert resp.json() == {"data": {"message": "File is too big"}}
        assert fake_manager.calls == []

    def test_success(self, client, fake_manager, square_png):
        resp = client.post("/avatar/room/abc123", files={"files": ("a.png", square_png, "image/png")})
        assert resp.status_code == 200
        assert resp.json() == {"status": "success"}
        assert fake_manager.stored[("room", "abc123")] == (32, 32)

    def test_array_field_name(self, client, fake_manager, square_png):
        resp = client.post("/avatar/room/abc123", files={"files[]": ("a.png", square_png, "image/png")})
        assert resp.status_code == 200
        assert resp.json() == {"status": "success"}

    def test_upload_is_decoded_in_worker_thread(self, client, square_png, monkeypatch):
        decoded_in = []
        original = normalizer.load_image

        def recording_load_image(data):
            decoded_in.append(threading.current_thread().name)
            return original(data)

        monkeypatch.setattr(normalizer, "load_image", recording_load_image)
        resp = client.post("/avatar/room/abc123", files={"files": ("a.png", square_png, "image/png")})
        assert resp.status_code == 200
        assert decoded_in and all(name.startswith("avatar") for name in decoded_in)

    def test_extra_files_are_ignored(self, client, fake_manager, square_png):
        files = [
            ("files", ("a.png", square_png, "image/png")),
            ("files", ("b.png", b"second", "image/png")),
            ("other", ("c.txt", b"third", "text/plain")),
        ]
        resp = client.post("/avatar/room/abc123", files=files)
        assert resp.status_code == 200
        assert fake_manager.stored[("room", "abc123")] == (32, 32)

    def test_not_square(self, client):
        content = make_image_bytes(40, 20)
        resp = client.post("/avatar/room/abc123", files={"files": ("a.png", content, "image/png")})
        assert resp.status_code == 400
        assert resp.json() == {"data": {"message": "Crop is not square"}}
        assert resp.json() != GENERIC_ERROR

    def test_storage_failure(self, client, fake_manager, square_png):
        fake_manager.fail_write = True
        resp = client.post("/avatar/room/abc123", files={"files": ("a.png", square_png, "image/png")})
        assert resp.status_code == 400
        assert resp.json() == GENERIC_ERROR

    def test_unknown_avatar(self, client, square_png):
        resp = client.post("/avatar/room/nobody", files={"files": ("a.png", square_png, "image/png")})
        assert resp.status_code == 400
        assert resp.json() == GENERIC_ERROR


class TestDeleteAvatar:
    """DELETE /avatar/{type}/{id}"""

    def test_success(self, client, fake_manager):
        fake_manager.stored[("room", "abc123")] = (10, 10)
        resp = client.delete("/avatar/room/abc123")
        assert resp.status_code == 200
        assert resp.json() == {}
        assert fake_manager.stored == {}

    def test_storage_failure(self, client, fake_manager):
        fake_manager.fail_write = True
        resp = client.delete("/avatar/room/abc123")
        assert resp.status_code == 400
        assert resp.json() == GENERIC_ERROR


def test_messages_are_translated(fake_manager):
    app = create_app(container=ServiceContainer(avatar_manager=fake_manager, translator=Translator("ru")))
    with TestClient(app) as client:
        resp = client.post("/avatar/room/abc123")
    assert resp.status_code == 400
    assert resp.json() == {"data": {"message": "Файл не передан"}}


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_request_id_header(client):
    resp = client.get("/avatar/room/abc123/64")
    assert resp.headers.get("X-Request-ID")


def test_docs_restricted_in_production(fake_manager):
    settings = Config(app=AppConfig(environment="prod", allowed_ips=["10.0.0.1"]))
    app = create_app(settings=settings, container=ServiceContainer(avatar_manager=fake_manager))
    with TestClient(app) as client:
        assert client.get("/openapi.json").status_code == 403
        # сами аватары остаются публичными
        assert client.get("/avatar/room/abc123/64").status_code == 200


def test_request_log_carries_avatar_key(client, caplog):
    caplog.set_level(logging.INFO)
    resp = client.get("/avatar/room/nobody/64", headers={"X-Request-ID": "req-42"})
    assert resp.status_code == 404
    assert resp.headers["X-Request-ID"] == "req-42"

    records = [r for r in caplog.records if getattr(r, "request_id", None) == "req-42"]
    assert len(records) == 1
    assert records[0].app == "avatar"
    assert records[0].avatar == "room/nobody"
    assert records[0].status_code == 404
    assert "GET room/nobody -> 404" in records[0].getMessage()


def test_health_is_not_logged(client, caplog):
    caplog.set_level(logging.INFO)
    client.get("/api/health")
    assert not [r for r in caplog.records if hasattr(r, "request_id")]
