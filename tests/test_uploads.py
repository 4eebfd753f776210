from pathlib import Path

import pytest

from klutterbox.config import settings
from klutterbox.services import uploads

JPEG = b"\xff\xd8\xff\xe0fake-jpeg-bytes"


def _upload(client, filename="boots.JPG", content=JPEG, content_type="image/jpeg"):
    return client.post("/api/upload", files={"image": (filename, content, content_type)})


def test_upload_stores_file_and_serves_it(client, upload_dir):
    response = _upload(client)

    assert response.status_code == 201
    image_path = response.json()["image_path"]
    assert image_path.startswith("/uploads/")
    assert image_path.endswith(".jpg")

    stored = upload_dir / image_path.rsplit("/", 1)[1]
    assert stored.read_bytes() == JPEG
    assert client.get(image_path).content == JPEG


def test_upload_without_extension_defaults_to_jpg(client):
    image_path = _upload(client, filename="photo").json()["image_path"]
    assert image_path.endswith(".jpg")


def test_upload_requires_an_image(client):
    assert client.post("/api/upload").status_code == 400
    assert _upload(client, content=b"").status_code == 400
    assert _upload(client, filename="notes.txt", content_type="text/plain").status_code == 400


def test_deleting_item_removes_its_upload(client, upload_dir):
    image_path = _upload(client).json()["image_path"]
    item = client.post("/api/items", json={"name": "Boots", "image_path": image_path}).json()
    stored = upload_dir / image_path.rsplit("/", 1)[1]
    assert stored.exists()

    assert client.delete(f"/api/items/{item['id']}").status_code == 200

    assert not stored.exists()


def test_deleting_item_succeeds_when_file_cannot_be_removed(client, upload_dir, monkeypatch):
    image_path = _upload(client).json()["image_path"]
    item = client.post("/api/items", json={"name": "Boots", "image_path": image_path}).json()

    def refuse(self, *args, **kwargs):
        raise PermissionError("read-only filesystem")

    monkeypatch.setattr(Path, "unlink", refuse)

    assert client.delete(f"/api/items/{item['id']}").status_code == 200
    assert client.get(f"/api/items/{item['id']}").status_code == 404


def test_foreign_image_paths_are_left_alone(client, tmp_path):
    outside = tmp_path / "keep.jpg"
    outside.write_bytes(JPEG)
    item = client.post(
        "/api/items", json={"name": "Boots", "image_path": "/uploads/../keep.jpg"}
    ).json()

    assert client.delete(f"/api/items/{item['id']}").status_code == 200

    assert outside.exists()


@pytest.mark.parametrize("public_path", [
    None,
    "",
    "https://example.com/uploads/a.jpg",
    "/static/a.jpg",
    "/uploads/../secret.jpg",
    "/uploads/",
])
def test_resolve_owned_path_rejects_foreign_paths(upload_dir, public_path):
    assert uploads.resolve_owned_path(public_path) is None


def test_resolve_owned_path_accepts_uploads(upload_dir):
    resolved = uploads.resolve_owned_path("/uploads/123.jpg")
    assert resolved == (Path(settings.UPLOAD_DIR) / "123.jpg").resolve()


def test_vision_suggest_without_api_key_uses_filename(client):
    response = client.post(
        "/api/vision-suggest",
        files={"image": ("garden hose.jpg", JPEG, "image/jpeg")},
    )

    assert response.status_code == 200
    assert response.json()["items"] == [{"name": "garden hose", "description": ""}]
    assert response.json()["box_code"] == "box1"


def test_quick_add_without_api_key_names_item_after_file(client):
    response = client.post(
        "/api/quick-add",
        files={"image": ("garden hose.jpg", JPEG, "image/jpeg")},
    )

    assert response.status_code == 201
    item = response.json()["item"]
    assert item["name"] == "garden hose"
    assert item["description"] is None
    assert item["box_code"] == "box1"
