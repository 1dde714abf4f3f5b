"""Tests for the shows blueprint."""

from __future__ import annotations

from io import BytesIO

from flask.testing import FlaskClient

from storage.record_store import RecordStore


def _create(client: FlaskClient, **payload):
    body = {"title": "Hamlet", **payload}
    response = client.post("/shows", json=body)
    assert response.status_code == 201
    return response.get_json()


def test_create_and_fetch_show(client: FlaskClient):
    created = _create(
        client,
        description="A tragedy",
        location="Globe Theatre",
        starts_at="2026-11-01T20:00:00Z",
    )

    assert created["id"] == 1
    assert created["starts_at"] == "2026-11-01T20:00:00"
    assert created["image_url"] is None

    response = client.get(f"/shows/{created['id']}")
    assert response.status_code == 200
    assert response.get_json()["title"] == "Hamlet"


def test_list_shows_returns_newest_first(client: FlaskClient):
    _create(client, title="First")
    _create(client, title="Second")

    response = client.get("/shows")

    assert response.status_code == 200
    data = response.get_json()
    assert data["count"] == 2
    assert [show["title"] for show in data["results"]] == ["Second", "First"]


def test_create_requires_title(client: FlaskClient):
    response = client.post("/shows", json={"description": "untitled"})
    assert response.status_code == 400
    assert "title" in response.get_json()["detail"]


def test_create_rejects_bad_date(client: FlaskClient):
    response = client.post("/shows", json={"title": "x", "starts_at": "tomorrow"})
    assert response.status_code == 400


def test_create_rejects_plain_text_body(client: FlaskClient):
    response = client.post("/shows", data="title=x", content_type="text/plain")
    assert response.status_code == 400


def test_update_show_partially(client: FlaskClient):
    created = _create(client)

    response = client.patch(f"/shows/{created['id']}", json={"location": "Elsinore"})

    assert response.status_code == 200
    data = response.get_json()
    assert data["location"] == "Elsinore"
    assert data["title"] == "Hamlet"


def test_update_rejects_empty_title(client: FlaskClient):
    created = _create(client)
    response = client.put(f"/shows/{created['id']}", json={"title": "  "})
    assert response.status_code == 400


def test_delete_show(client: FlaskClient):
    created = _create(client)

    assert client.delete(f"/shows/{created['id']}").status_code == 204
    assert client.get(f"/shows/{created['id']}").status_code == 404


def test_unknown_show_returns_not_found(client: FlaskClient):
    assert client.get("/shows/99").status_code == 404
    assert client.patch("/shows/99", json={"title": "x"}).status_code == 404
    assert client.delete("/shows/99").status_code == 404


def test_multipart_upload_stores_image_and_serves_it(client: FlaskClient, tmp_path):
    response = client.post(
        "/shows",
        data={"title": "Poster show", "image": (BytesIO(b"fake-png"), "poster.PNG")},
        content_type="multipart/form-data",
    )

    assert response.status_code == 201
    data = response.get_json()
    assert data["image"].endswith(".png")
    assert (tmp_path / "uploads" / data["image"]).read_bytes() == b"fake-png"

    served = client.get(data["image_url"])
    assert served.status_code == 200
    assert served.data == b"fake-png"


def test_upload_rejects_disallowed_extension(client: FlaskClient, tmp_path):
    response = client.post(
        "/shows",
        data={"title": "Bad", "image": (BytesIO(b"#!/bin/sh"), "run.sh")},
        content_type="multipart/form-data",
    )

    assert response.status_code == 400
    assert "File type not allowed" in response.get_json()["detail"]
    assert list((tmp_path / "uploads").iterdir()) == []


def test_replacing_and_deleting_image_removes_old_files(client: FlaskClient, tmp_path):
    created = client.post(
        "/shows",
        data={"title": "Poster", "image": (BytesIO(b"one"), "one.jpg")},
        content_type="multipart/form-data",
    ).get_json()
    first_image = tmp_path / "uploads" / created["image"]
    assert first_image.exists()

    updated = client.patch(
        f"/shows/{created['id']}",
        data={"image": (BytesIO(b"two"), "two.jpg")},
        content_type="multipart/form-data",
    )
    assert updated.status_code == 200
    second_image = tmp_path / "uploads" / updated.get_json()["image"]
    assert not first_image.exists()
    assert second_image.read_bytes() == b"two"

    assert client.delete(f"/shows/{created['id']}").status_code == 204
    assert not second_image.exists()


def test_failed_create_does_not_leave_image_behind(client: FlaskClient, tmp_path, monkeypatch):
    def _explode(self, **fields):
        raise RuntimeError("database went away")

    monkeypatch.setattr(RecordStore, "create_show", _explode)

    response = client.post(
        "/shows",
        data={"title": "Doomed", "image": (BytesIO(b"img"), "doomed.png")},
        content_type="multipart/form-data",
    )

    assert response.status_code == 500
    assert list((tmp_path / "uploads").iterdir()) == []


def test_failed_update_keeps_old_image_and_drops_new_one(
    client: FlaskClient, tmp_path, monkeypatch
):
    created = client.post(
        "/shows",
        data={"title": "Poster", "image": (BytesIO(b"one"), "one.jpg")},
        content_type="multipart/form-data",
    ).get_json()

    def _explode(self, show_id, **fields):
        raise RuntimeError("database went away")

    monkeypatch.setattr(RecordStore, "update_show", _explode)

    response = client.patch(
        f"/shows/{created['id']}",
        data={"image": (BytesIO(b"two"), "two.jpg")},
        content_type="multipart/form-data",
    )

    assert response.status_code == 500
    assert [p.name for p in (tmp_path / "uploads").iterdir()] == [created["image"]]
