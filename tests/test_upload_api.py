from pathlib import Path

from config import settings


def test_upload_and_serve_image(client):
    resp = client.post("/api/upload", files={"file": ("shot.jpg", b"jpeg-bytes", "image/jpeg")})
    assert resp.status_code == 200
    body = resp.json()
    assert body["fileName"].startswith("products-")
    assert body["fileName"].endswith("-shot.jpg")
    assert body["imageUrl"] == f"/uploads/{body['fileName']}"

    served = client.get(body["imageUrl"])
    assert served.status_code == 200
    assert served.content == b"jpeg-bytes"


def test_upload_rejections(client):
    resp = client.post("/api/upload")
    assert resp.status_code == 400
    assert resp.json()["error"] == "No file provided"

    resp = client.post("/api/upload", files={"file": ("notes.txt", b"text", "text/plain")})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Only image files are allowed"

    too_big = b"0" * (settings.max_upload_bytes + 1)
    resp = client.post("/api/upload", files={"file": ("huge.png", too_big, "image/png")})
    assert resp.status_code == 400
    assert resp.json()["error"] == "File too large (max 5MB)"


def test_client_path_is_stripped(client):
    body = client.post("/api/upload", files={"file": ("../../evil.png", b"x", "image/png")}).json()
    assert "/" not in body["fileName"]
    assert (Path(settings.upload_dir) / body["fileName"]).exists()


def test_delete_image(client):
    file_name = client.post("/api/upload", files={"file": ("a.png", b"x", "image/png")}).json()["fileName"]
    stored = Path(settings.upload_dir) / file_name
    assert stored.exists()

    resp = client.request("DELETE", "/api/upload", json={"fileName": file_name})
    assert resp.status_code == 200
    assert not stored.exists()

    # deleting twice is harmless
    assert client.request("DELETE", "/api/upload", json={"fileName": file_name}).status_code == 200
