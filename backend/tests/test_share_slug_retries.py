"""Share slug allocation when the unique index rejects a generated slug"""

from conftest import create_gallery, share_slug_of, upload
from lazygallery.services import gallery_service, media_service

OWNER = {"X-Owner-Id": "u1"}


def _scripted_slugs(monkeypatch, module, slugs):
    remaining = iter(slugs)
    calls = []

    def next_slug():
        calls.append(1)
        return next(remaining)

    monkeypatch.setattr(module, "generate_share_slug", next_slug)
    return calls


def _share(client, gallery_id, encoded):
    return client.patch(
        f"/api/galleries/{gallery_id}/media/{encoded}/sharing",
        headers=OWNER,
        json={"shared": True},
    )


def test_gallery_creation_retries_on_slug_collision(client, monkeypatch):
    taken = share_slug_of(create_gallery(client, shared=True))
    calls = _scripted_slugs(monkeypatch, gallery_service, [taken, "OTHEROTHEROTHER1"])

    view = create_gallery(client, name="Second", shared=True)
    assert share_slug_of(view) == "OTHEROTHEROTHER1"
    assert len(calls) == 2
    assert len(client.get("/api/galleries", headers=OWNER).json()) == 2


def test_gallery_creation_gives_up_after_three_collisions(client, monkeypatch):
    taken = share_slug_of(create_gallery(client, shared=True))
    calls = _scripted_slugs(monkeypatch, gallery_service, [taken] * 3)

    response = client.post(
        "/api/galleries",
        json={"ownerId": "u1", "name": "Second", "password": "pw", "shared": True},
    )
    assert response.status_code == 502
    assert response.json()["error"] == "storage_error"
    assert len(calls) == 3
    assert len(client.get("/api/galleries", headers=OWNER).json()) == 1


def test_asset_sharing_retries_on_slug_collision(client, monkeypatch, png_bytes):
    gallery = create_gallery(client, shared=True)
    first, second = upload(
        client,
        gallery["id"],
        [("a.png", png_bytes, "image/png"), ("b.png", png_bytes, "image/png")],
    )
    taken = _share(client, gallery["id"], first).json()["shareSlug"]
    calls = _scripted_slugs(monkeypatch, media_service, [taken, "FRESHFRESHFRESH1"])

    response = _share(client, gallery["id"], second)
    assert response.status_code == 200
    body = response.json()
    assert body["shared"] is True
    assert body["shareSlug"] == "FRESHFRESHFRESH1"
    assert body["shareLink"].endswith(f"/api/shared/{share_slug_of(gallery)}/files/original/{second}")
    assert len(calls) == 2

    items = client.get(f"/api/galleries/{gallery['id']}/media", headers=OWNER).json()["items"]
    assert all(item["shared"] for item in items)


def test_asset_sharing_gives_up_after_three_collisions(client, monkeypatch, png_bytes):
    gallery = create_gallery(client, shared=True)
    first, second = upload(
        client,
        gallery["id"],
        [("a.png", png_bytes, "image/png"), ("b.png", png_bytes, "image/png")],
    )
    taken = _share(client, gallery["id"], first).json()["shareSlug"]
    calls = _scripted_slugs(monkeypatch, media_service, [taken] * 3)

    response = _share(client, gallery["id"], second)
    assert response.status_code == 502
    assert response.json()["error"] == "storage_error"
    assert len(calls) == 3

    items = {item["id"]: item for item in client.get(f"/api/galleries/{gallery['id']}/media", headers=OWNER).json()["items"]}
    assert items[second]["shared"] is False
    assert items[first]["shared"] is True
