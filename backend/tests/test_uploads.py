"""Image uploads (local storage; hosted storage is stubbed) and health checks."""

import io
import os

import pytest

from sundus.services import upload_service


def _image(name="menu.png", mimetype="image/png", size=32):
    return (io.BytesIO(b"\x89PNG" + b"0" * size), name, mimetype)


class TestLocalUploads:

    def test_upload_and_delete(self, client, admin_headers, upload_root):
        resp = client.post("/api/v1/uploads", data={"file": _image()}, content_type="multipart/form-data", headers=admin_headers)
        assert resp.status_code == 200
        data = resp.json["data"]
        assert data["cloudinary"] is False
        assert data["originalName"] == "menu.png"
        assert data["fileUrl"] == f"/uploads/{data['fileName']}"
        assert os.listdir(upload_root) == [data["fileName"]]

        resp = client.delete(f"/api/v1/uploads/{data['fileName']}", headers=admin_headers)
        assert resp.status_code == 200
        assert os.listdir(upload_root) == []

    def test_requires_auth(self, client):
        resp = client.post("/api/v1/uploads", data={"file": _image()}, content_type="multipart/form-data")
        assert resp.status_code == 401

    def test_no_file(self, client, admin_headers):
        resp = client.post("/api/v1/uploads", data={}, content_type="multipart/form-data", headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["message"] == "No files were uploaded"

    def test_rejects_non_images(self, client, admin_headers):
        resp = client.post(
            "/api/v1/uploads",
            data={"file": _image("notes.txt", "text/plain")},
            content_type="multipart/form-data",
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_rejects_oversized(self, app, client, admin_headers, monkeypatch):
        monkeypatch.setitem(app.config, "MAX_FILE_SIZE", 16)
        resp = client.post("/api/v1/uploads", data={"file": _image(size=64)}, content_type="multipart/form-data", headers=admin_headers)
        assert resp.status_code == 400

    def test_delete_missing_file(self, client, admin_headers):
        assert client.delete("/api/v1/uploads/ghost.png", headers=admin_headers).status_code == 404

    def test_delete_hosted_id_without_hosting(self, client, admin_headers):
        assert client.delete("/api/v1/uploads/cafe-sundus/products/abc", headers=admin_headers).status_code == 404


class TestHostedUploads:

    @pytest.fixture
    def hosted(self, app, monkeypatch):
        monkeypatch.setitem(app.config, "CLOUDINARY_CLOUD_NAME", "demo")
        monkeypatch.setitem(app.config, "CLOUDINARY_API_KEY", "key")
        monkeypatch.setitem(app.config, "CLOUDINARY_API_SECRET", "secret")

    def test_hosted_upload(self, client, admin_headers, hosted, upload_root, monkeypatch):
        calls = {}

        def _upload(stream, **options):
            calls.update(options)
            return {"secure_url": "https://res.example.com/menu.png", "public_id": "cafe-sundus/products/menu"}

        monkeypatch.setattr(upload_service.cloudinary.uploader, "upload", _upload)

        resp = client.post("/api/v1/uploads", data={"file": _image()}, content_type="multipart/form-data", headers=admin_headers)
        data = resp.json["data"]
        assert data["cloudinary"] is True
        assert data["fileUrl"] == "https://res.example.com/menu.png"
        assert data["fileName"] == "cafe-sundus/products/menu"
        assert calls["folder"] == "cafe-sundus/products"
        assert os.listdir(upload_root) == []

    def test_hosted_failure_falls_back_to_disk(self, client, admin_headers, hosted, upload_root, monkeypatch):
        def _upload(stream, **options):
            raise RuntimeError("network down")

        monkeypatch.setattr(upload_service.cloudinary.uploader, "upload", _upload)

        resp = client.post("/api/v1/uploads", data={"file": _image()}, content_type="multipart/form-data", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["cloudinary"] is False
        assert len(os.listdir(upload_root)) == 1

    def test_hosted_delete(self, client, admin_headers, hosted, monkeypatch):
        monkeypatch.setattr(upload_service.cloudinary.uploader, "destroy", lambda public_id: {"result": "ok"})
        resp = client.delete("/api/v1/uploads/cafe-sundus/products/menu", headers=admin_headers)
        assert resp.status_code == 200
        assert "Cloudinary" in resp.json["message"]


class TestSystem:

    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json["status"] == "ok"
        assert resp.json["checks"]["database"]["status"] == "healthy"

    def test_version(self, client):
        assert client.get("/api/version").json["api_version"] == "1.0.0"

    def test_unknown_route_is_json(self, client):
        resp = client.get("/api/v1/nothing-here")
        assert resp.status_code == 404
        assert resp.json["success"] is False

    def test_cors_for_known_origin(self, client):
        resp = client.get("/api/version", headers={"Origin": "http://localhost:5173"})
        assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"

        resp = client.get("/api/version", headers={"Origin": "http://evil.example"})
        assert "Access-Control-Allow-Origin" not in resp.headers
