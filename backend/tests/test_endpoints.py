"""Endpoint tests for the handlerkit app."""
import os

from conftest import JPEG_BYTES, PNG_BYTES
from handlerkit import main as main_module


class TestUploadEndpoints:
    """Tests for /files/upload and /files/upload-one."""

    def test_upload_stores_file(self, api_client, upload_dir):
        response = api_client.post(
            "/files/upload", files={"file": ("img.png", PNG_BYTES, "image/png")}
        )

        assert response.status_code == 200
        body = response.json()
        assert body[0]["stored_filename"] == "img.png"
        assert body[0]["size_bytes"] == len(PNG_BYTES)
        assert (upload_dir / "img.png").exists()

    def test_upload_rename_query(self, api_client, upload_dir):
        response = api_client.post(
            "/files/upload?rename=true",
            files={"file": ("img.png", PNG_BYTES, "image/png")},
        )

        stored = response.json()[0]["stored_filename"]
        assert stored != "img.png"
        assert (upload_dir / stored).exists()

    def test_disallowed_type_maps_to_415_with_partial_data(self, api_client, upload_dir):
        response = api_client.post(
            "/files/upload",
            files=[
                ("file", ("a.png", PNG_BYTES, "image/png")),
                ("file", ("b.jpg", JPEG_BYTES, "image/jpeg")),
            ],
        )

        assert response.status_code == 415
        body = response.json()
        assert body["error"] is True
        assert "file type is not allowed" in body["message"]
        assert [f["original_filename"] for f in body["data"]] == ["a.png"]
        assert os.listdir(upload_dir) == ["a.png"]

    def test_too_large_maps_to_413(self, api_client, toolkit_config):
        toolkit_config.uploads.max_total_bytes = 64

        response = api_client.post(
            "/files/upload", files={"file": ("img.png", PNG_BYTES, "image/png")}
        )

        assert response.status_code == 413
        assert response.json()["error"] is True

    def test_upload_one_rejects_two_files(self, api_client, upload_dir):
        response = api_client.post(
            "/files/upload-one",
            files=[
                ("file", ("a.png", PNG_BYTES, "image/png")),
                ("file", ("b.png", PNG_BYTES, "image/png")),
            ],
        )

        assert response.status_code == 400
        assert response.json()["message"] == "exactly one file expected, got 2"
        assert os.listdir(upload_dir) == []

    def test_upload_one(self, api_client):
        response = api_client.post(
            "/files/upload-one", files={"file": ("img.png", PNG_BYTES, "image/png")}
        )

        assert response.status_code == 200
        assert response.json()["original_filename"] == "img.png"


class TestDownloadEndpoint:
    """Tests for /files/download."""

    def test_download_as_attachment(self, api_client, upload_dir):
        (upload_dir / "img.png").write_bytes(PNG_BYTES)

        response = api_client.get("/files/download/img.png?display_name=rgb.png")

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        assert response.headers["content-disposition"] == 'attachment; filename="rgb.png"'
        assert response.headers["content-length"] == str(len(PNG_BYTES))
        assert response.content == PNG_BYTES

    def test_download_missing_file(self, api_client):
        response = api_client.get("/files/download/nope.png")

        assert response.status_code == 404
        assert response.json()["error"] is True


class TestTextEndpoints:
    """Tests for /text endpoints."""

    def test_slug(self, api_client):
        response = api_client.post("/text/slug", json={"text": "Hello, World!"})
        assert response.json() == {"slug": "hello-world"}

    def test_slug_error(self, api_client):
        response = api_client.post("/text/slug", json={"text": "你好世界"})

        assert response.status_code == 400
        assert response.json()["message"] == "after removing characters, slug is zero length"

    def test_slug_rejects_unknown_key_by_default(self, api_client):
        response = api_client.post("/text/slug", json={"text": "Hello", "lang": "en"})

        assert response.status_code == 400
        assert response.json()["message"] == 'body contains unknown key "lang"'

    def test_slug_honours_allow_unknown_fields(self, api_client, toolkit_config):
        toolkit_config.json_io.allow_unknown_fields = True

        response = api_client.post("/text/slug", json={"text": "Hello", "lang": "en"})

        assert response.status_code == 200
        assert response.json() == {"slug": "hello"}

    def test_slug_honours_max_bytes(self, api_client, toolkit_config):
        toolkit_config.json_io.max_bytes = 16

        response = api_client.post("/text/slug", json={"text": "a fairly long title"})

        assert response.status_code == 413

    def test_random_token(self, api_client):
        response = api_client.get("/text/random?length=12")
        assert len(response.json()["token"]) == 12


def test_health(api_client):
    assert api_client.get("/health").json() == {"status": "ok"}


def test_main_serves_on_configured_address(toolkit_config, monkeypatch):
    calls = []
    monkeypatch.setattr(main_module.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
    toolkit_config.server.host = "127.0.0.1"
    toolkit_config.server.port = 9001

    main_module.main()

    assert calls == [(main_module.app, {"host": "127.0.0.1", "port": 9001})]
