"""
인증서 Flask 라우트 테스트 (Flask test client)
"""

import io

import pytest

from app import create_app
from zkthumb.certificates import CertificateStore, build_certificate
from zkthumb.config import AppConfig, ThumbnailConfig
from zkthumb.thumbnail.driver import ThumbnailProtocol


@pytest.fixture(scope="module")
def stored(module_source):
    source, directory = module_source(4, 2, name="route-source.png")
    config = ThumbnailConfig(
        ratio=2, position=2, source=source, output=str(directory / "route-thumb.png"), seed=4
    )
    report = ThumbnailProtocol(config).run()
    cert = build_certificate(config, report)
    store_path = str(directory / "store.json")
    with CertificateStore.open(store_path) as store:
        store.save(cert)
    with open(report.thumbnail_path, "rb") as f:
        thumbnail_bytes = f.read()
    return {"cert": cert, "store_path": store_path, "thumbnail": thumbnail_bytes}


def make_client(store_path):
    app = create_app(AppConfig(store_path=store_path))
    app.config["TESTING"] = True
    return app.test_client()


@pytest.fixture
def client(stored):
    return make_client(stored["store_path"])


def upload(data, name="thumb.png"):
    return {"thumbnail": (io.BytesIO(data), name)}


class TestListAndGet:
    def test_index(self, client):
        assert client.get("/").get_json()["certificates"] == "/certificates/"

    def test_list(self, client, stored):
        body = client.get("/certificates/").get_json()
        assert [c["id"] for c in body] == [stored["cert"]["id"]]
        assert body[0]["block_count"] == 2

    def test_get(self, client, stored):
        resp = client.get(f"/certificates/{stored['cert']['id']}")
        assert resp.status_code == 200
        assert resp.get_json()["position"] == 2

    def test_get_unknown(self, client):
        assert client.get("/certificates/0000000000000000").status_code == 404


class TestVerify:
    def test_honest(self, client, stored):
        resp = client.post(
            f"/certificates/{stored['cert']['id']}/verify",
            data=upload(stored["thumbnail"]),
            content_type="multipart/form-data",
        )
        assert resp.status_code == 200
        assert resp.get_json()["verified"] is True

    def test_forged(self, client, stored):
        from PIL import Image

        image = Image.open(io.BytesIO(stored["thumbnail"])).convert("RGBA")
        image.putpixel((1, 0), (0, 0, 0, 0))
        buf = io.BytesIO()
        image.save(buf, format="PNG")
        resp = client.post(
            f"/certificates/{stored['cert']['id']}/verify",
            data=upload(buf.getvalue()),
            content_type="multipart/form-data",
        )
        assert resp.status_code == 200
        assert resp.get_json()["verified"] is False

    def test_missing_upload(self, client, stored):
        resp = client.post(f"/certificates/{stored['cert']['id']}/verify")
        assert resp.status_code == 400

    def test_undecodable(self, client, stored):
        resp = client.post(
            f"/certificates/{stored['cert']['id']}/verify",
            data=upload(b"garbage"),
            content_type="multipart/form-data",
        )
        assert resp.status_code == 400

    def test_decompression_bomb(self, client, stored, monkeypatch):
        from PIL import Image

        buf = io.BytesIO()
        Image.new("RGBA", (4, 4)).save(buf, format="PNG")
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1)
        resp = client.post(
            f"/certificates/{stored['cert']['id']}/verify",
            data=upload(buf.getvalue()),
            content_type="multipart/form-data",
        )
        assert resp.status_code == 400

    def test_wrong_geometry(self, client, stored):
        from PIL import Image

        buf = io.BytesIO()
        Image.new("RGBA", (5, 5)).save(buf, format="PNG")
        resp = client.post(
            f"/certificates/{stored['cert']['id']}/verify",
            data=upload(buf.getvalue()),
            content_type="multipart/form-data",
        )
        assert resp.status_code == 400

    def test_unknown_certificate(self, client, stored):
        resp = client.post(
            "/certificates/ffffffffffffffff/verify",
            data=upload(stored["thumbnail"]),
            content_type="multipart/form-data",
        )
        assert resp.status_code == 404


BROKEN_ID = "0123456789abcdef"


@pytest.fixture
def damaged_client(stored, tmp_path):
    """정상 인증서 하나와 필드가 빠진 문서 하나가 든 저장소."""
    store_path = str(tmp_path / "damaged.json")
    with CertificateStore.open(store_path) as store:
        store.save(stored["cert"])
        store.save({"id": BROKEN_ID, "ratio": 2})
    return make_client(store_path)


@pytest.fixture
def corrupt_client(tmp_path):
    path = tmp_path / "corrupt.json"
    path.write_text("{not json")
    return make_client(str(path))


class TestDamagedStore:
    def test_list_skips_malformed(self, damaged_client, stored):
        resp = damaged_client.get("/certificates/")
        assert resp.status_code == 200
        assert [c["id"] for c in resp.get_json()] == [stored["cert"]["id"]]

    def test_get_malformed(self, damaged_client):
        resp = damaged_client.get(f"/certificates/{BROKEN_ID}")
        assert resp.status_code == 422
        assert "error" in resp.get_json()

    def test_verify_malformed(self, damaged_client, stored):
        resp = damaged_client.post(
            f"/certificates/{BROKEN_ID}/verify",
            data=upload(stored["thumbnail"]),
            content_type="multipart/form-data",
        )
        assert resp.status_code == 422

    def test_verify_bad_proof(self, stored, tmp_path):
        cert = dict(stored["cert"], proof={"h_eval": "1"})
        store_path = str(tmp_path / "bad-proof.json")
        with CertificateStore.open(store_path) as store:
            store.save(cert)
        resp = make_client(store_path).post(
            f"/certificates/{cert['id']}/verify",
            data=upload(stored["thumbnail"]),
            content_type="multipart/form-data",
        )
        assert resp.status_code == 422

    def test_healthy_certificate_still_verifies(self, damaged_client, stored):
        resp = damaged_client.post(
            f"/certificates/{stored['cert']['id']}/verify",
            data=upload(stored["thumbnail"]),
            content_type="multipart/form-data",
        )
        assert resp.status_code == 200
        assert resp.get_json()["verified"] is True


class TestCorruptStore:
    def test_list(self, corrupt_client):
        assert corrupt_client.get("/certificates/").status_code == 422

    def test_get(self, corrupt_client):
        assert corrupt_client.get(f"/certificates/{BROKEN_ID}").status_code == 422

    def test_verify(self, corrupt_client, stored):
        resp = corrupt_client.post(
            f"/certificates/{BROKEN_ID}/verify",
            data=upload(stored["thumbnail"]),
            content_type="multipart/form-data",
        )
        assert resp.status_code == 422
