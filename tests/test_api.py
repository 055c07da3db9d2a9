import os, sys, base64
from io import BytesIO

import boto3
import pytest
from fastapi.testclient import TestClient
from moto import mock_aws
from PIL import Image

# Ensure project root on sys.path so `import compressor...` works
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from compressor.core.config import settings
from compressor.main import app
from compressor.aws.clients import s3 as s3_client_factory


def _b64_image(size=(3, 2), color=(0, 128, 255), fmt="PNG") -> str:
    img = Image.new("RGB", size, color=color)
    buf = BytesIO()
    img.save(buf, format=fmt)
    return base64.b64encode(buf.getvalue()).decode()


def _heic_b64(size=(64, 48)) -> str:
    img = Image.new("RGB", size, color=(30, 200, 30))
    buf = BytesIO()
    img.save(buf, format="HEIF")
    return base64.b64encode(buf.getvalue()).decode()


def _stored_objects():
    s3 = s3_client_factory()
    resp = s3.list_objects_v2(Bucket=settings.bucket_name)
    return [o["Key"] for o in resp.get("Contents", [])]


def _stored_image(key: str) -> Image.Image:
    body = s3_client_factory().get_object(Bucket=settings.bucket_name, Key=key)["Body"].read()
    img = Image.open(BytesIO(body))
    img.load()
    return img


@pytest.fixture
def api_mock(monkeypatch):
    with mock_aws():
        # Route boto3 to moto (no endpoint), use test resources
        monkeypatch.setattr(settings, "aws_endpoint_url", None)
        monkeypatch.setattr(settings, "aws_region", "us-east-1")
        monkeypatch.setattr(settings, "bucket_name", "test-bucket")
        monkeypatch.setattr(settings, "public_base_url", None)
        monkeypatch.setattr(settings, "failure_policy", "abort")

        s3 = boto3.client("s3", region_name=settings.aws_region)
        s3.create_bucket(Bucket=settings.bucket_name)
        yield TestClient(app)


def test_compress_batch_defaults_success(api_mock):
    client = api_mock
    files = [
        {"fileBase64": _b64_image(), "fileName": "a.png", "mimeType": "image/png"},
        {"fileBase64": "data:image/jpeg;base64," + _b64_image(fmt="JPEG"), "fileName": "b.jpg", "mimeType": "image/jpeg"},
        {"fileBase64": _b64_image(size=(5, 5)), "fileName": "c.png", "mimeType": "image/png"},
    ]
    r = client.post("/images/compress", json={"username": "u1", "files": files})
    assert r.status_code == 200, r.text
    uploaded = r.json()["uploaded"]
    assert [u["fileName"] for u in uploaded] == ["a.png", "b.jpg", "c.png"]
    assert "failed" not in r.json()
    for u in uploaded:
        assert u["key"].startswith("uploads/u1-")
        assert u["key"] in u["url"]
        assert u["url"].startswith("https://test-bucket.s3.us-east-1.amazonaws.com/")

    assert sorted(_stored_objects()) == sorted(u["key"] for u in uploaded)
    img = _stored_image(uploaded[0]["key"])
    assert img.format == "JPEG"
    assert img.size == (3, 2)


def test_compress_no_files_failure(api_mock):
    client = api_mock
    for body in ({}, {"files": []}, {"files": "x"}, {"username": "u1"}):
        r = client.post("/images/compress", json=body)
        assert r.status_code == 400
        assert r.json() == {"message": "No files provided"}
    r = client.post("/images/compress")
    assert r.status_code == 400
    assert _stored_objects() == []


def test_compress_invalid_entry_failure(api_mock):
    client = api_mock
    r = client.post("/images/compress", json={"files": [{"fileName": "nobytes.png"}]})
    assert r.status_code == 400
    assert r.json()["message"].startswith("Invalid file entry at index 0")
    assert _stored_objects() == []


def test_compress_resize_fits_inside_box_success(api_mock):
    client = api_mock
    files = [
        {
            "fileBase64": _b64_image(size=(400, 100)),
            "fileName": "wide.png",
            "mimeType": "image/png",
            "config": {"format": "png", "resize": {"width": 200, "height": 200}},
        },
        {
            "fileBase64": _b64_image(size=(90, 300)),
            "fileName": "tall.jpg",
            "mimeType": "image/jpeg",
            "config": {"format": "jpg", "quality": 80, "resize": {"width": 200, "height": 200}},
        },
    ]
    r = client.post("/images/compress", json={"files": files})
    assert r.status_code == 200, r.text
    wide, tall = r.json()["uploaded"]

    img = _stored_image(wide["key"])
    assert img.format == "PNG"
    assert img.size == (200, 50)

    img = _stored_image(tall["key"])
    assert img.format == "JPEG"
    assert img.size[1] == 200
    assert abs(img.size[0] - 60) <= 1


def test_compress_resize_disabled_keeps_size_success(api_mock):
    client = api_mock
    files = [{"fileBase64": _b64_image(size=(1500, 20)), "fileName": "big.png", "config": {"resize": None}}]
    r = client.post("/images/compress", json={"files": files})
    assert r.status_code == 200, r.text
    assert _stored_image(r.json()["uploaded"][0]["key"]).size == (1500, 20)


def test_compress_heic_to_jpeg_success(api_mock):
    client = api_mock
    files = [{"fileBase64": _heic_b64(), "fileName": "IMG_0001.HEIC", "mimeType": "image/jpeg"}]
    r = client.post("/images/compress", json={"username": "phone", "files": files})
    assert r.status_code == 200, r.text
    img = _stored_image(r.json()["uploaded"][0]["key"])
    assert img.format == "JPEG"
    assert img.size == (64, 48)


def test_compress_bad_file_aborts_batch_failure(api_mock, monkeypatch):
    client = api_mock
    monkeypatch.setattr(settings, "max_workers", 1)
    files = [
        {"fileBase64": _b64_image(), "fileName": "ok.png"},
        {"fileBase64": base64.b64encode(b"garbage").decode(), "fileName": "bad.png"},
        {"fileBase64": _b64_image(), "fileName": "never.png"},
    ]
    r = client.post("/images/compress", json={"files": files})
    assert r.status_code == 500
    body = r.json()
    assert body["message"] == "Internal Server Error"
    assert "unrecognized_image" in body["error"]
    assert "uploaded" not in body
    # the file before the failure stays in the bucket, unreported
    stored = _stored_objects()
    assert len(stored) == 1
    assert stored[0].endswith("-ok.png")


def test_compress_unknown_format_failure(api_mock):
    client = api_mock
    files = [{"fileBase64": _b64_image(), "fileName": "a.png", "config": {"format": "bmp"}}]
    r = client.post("/images/compress", json={"files": files})
    assert r.status_code == 500
    assert "unsupported_output_format" in r.json()["error"]
    assert _stored_objects() == []


def test_compress_isolate_policy_success(api_mock, monkeypatch):
    client = api_mock
    monkeypatch.setattr(settings, "failure_policy", "isolate")
    files = [
        {"fileBase64": _b64_image(), "fileName": "ok.png"},
        {"fileBase64": base64.b64encode(b"garbage").decode(), "fileName": "bad.png"},
    ]
    r = client.post("/images/compress", json={"files": files})
    assert r.status_code == 200, r.text
    body = r.json()
    assert [u["fileName"] for u in body["uploaded"]] == ["ok.png"]
    assert body["failed"][0]["index"] == 1
    assert body["failed"][0]["fileName"] == "bad.png"
    assert "unrecognized_image" in body["failed"][0]["error"]


def test_compressed_output_probes_as_requested_format_success(api_mock):
    from compressor.imaging.probe import probe

    client = api_mock
    for fmt, expected in (("jpeg", "jpeg"), ("jpg", "jpeg"), ("png", "png")):
        files = [{"fileBase64": _b64_image(fmt="JPEG"), "fileName": f"x.{fmt}", "config": {"format": fmt}}]
        r = client.post("/images/compress", json={"files": files})
        assert r.status_code == 200, r.text
        key = r.json()["uploaded"][0]["key"]
        body = s3_client_factory().get_object(Bucket=settings.bucket_name, Key=key)["Body"].read()
        assert probe(body).format == expected


def test_compress_non_json_body_failure(api_mock):
    client = api_mock
    r = client.post(
        "/images/compress",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert r.status_code == 500
    assert r.json()["message"] == "Internal Server Error"
    assert _stored_objects() == []


def test_compress_unpadded_url_safe_base64_success(api_mock):
    client = api_mock
    raw = base64.b64decode(_b64_image(size=(6, 5)))
    encoded = base64.urlsafe_b64encode(raw).decode().rstrip("=")
    r = client.post("/images/compress", json={"files": [{"fileBase64": encoded, "fileName": "u.png"}]})
    assert r.status_code == 200, r.text
    assert _stored_image(r.json()["uploaded"][0]["key"]).size == (6, 5)
