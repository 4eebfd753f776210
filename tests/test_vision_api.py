import json

import httpx
import pytest

from klutterbox.services.vision import VisionClient

JPEG = b"\xff\xd8\xff\xe0fake-jpeg-bytes"

ANSWER = {"items": [
    {"name": "Hex Wrench Set", "description": "Six metric hex keys"},
    {"name": "Tape Measure", "description": "5 m, yellow"},
]}


@pytest.fixture
def vision_client():
    def handler(request):
        content = json.dumps(ANSWER)
        return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})

    return VisionClient(
        api_key="test-key",
        base_url="https://vision.test/v1",
        transport=httpx.MockTransport(handler),
    )


def _post(client, path, box_code=None, filename="toolbox.jpg"):
    data = {"box_code": box_code} if box_code is not None else {}
    return client.post(path, files={"image": (filename, JPEG, "image/jpeg")}, data=data)


def test_vision_suggest_returns_suggestions_without_saving(client):
    client.post("/api/boxes", json={"code": "box2", "label": "Garage"})

    response = _post(client, "/api/vision-suggest", box_code="box2")

    assert response.status_code == 200
    body = response.json()
    assert body["box_code"] == "box2"
    assert body["image_path"].startswith("/uploads/")
    assert body["items"] == ANSWER["items"]
    assert client.get("/api/items").json() == []


def test_vision_suggest_unknown_box_uses_default(client):
    body = _post(client, "/api/vision-suggest", box_code="missing").json()
    assert body["box_code"] == "box1"


def test_vision_suggest_requires_image(client):
    assert client.post("/api/vision-suggest", data={"box_code": "box1"}).status_code == 400


def test_quick_add_persists_first_suggestion(client):
    response = _post(client, "/api/quick-add", box_code="box1")

    assert response.status_code == 201
    item = response.json()["item"]
    assert item["name"] == "Hex Wrench Set"
    assert item["description"] == "Six metric hex keys"
    assert item["image_path"].startswith("/uploads/")

    hits = client.get("/api/search", params={"q": "wrench"}).json()
    assert [hit["id"] for hit in hits] == [item["id"]]


def test_quick_add_unknown_box(client, upload_dir):
    response = _post(client, "/api/quick-add", box_code="missing")

    assert response.status_code == 400
    assert list(upload_dir.iterdir()) == []
