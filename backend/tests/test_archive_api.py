"""Whole-gallery zip downloads and their cache"""

import hashlib
import io
import zipfile

from conftest import create_gallery, make_png, upload

OWNER = {"X-Owner-Id": "u1"}


def _download(client, gallery_id, headers=None):
    return client.get(f"/api/galleries/{gallery_id}/download", headers={**OWNER, **(headers or {})})


def _archive_puts(object_store):
    return [key for bucket, key in object_store.put_calls if bucket == "lazygallery-archives"]


def test_download_then_revalidate_then_change(client, object_store):
    gallery = create_gallery(client)
    upload(client, gallery["id"], [("one.png", make_png(4, 4), "image/png")])

    first = _download(client, gallery["id"])
    assert first.status_code == 200
    etag = first.headers["etag"]
    assert etag.startswith('"') and etag.endswith('"')

    revalidated = _download(client, gallery["id"], {"If-None-Match": etag})
    assert revalidated.status_code == 304
    assert revalidated.headers["etag"] == etag
    assert revalidated.content == b""

    upload(client, gallery["id"], [("two.png", make_png(5, 5), "image/png")])
    changed = _download(client, gallery["id"], {"If-None-Match": etag})
    assert changed.status_code == 200
    assert changed.headers["etag"] != etag


def test_download_headers(client):
    gallery = create_gallery(client, name="Summer Trip")
    upload(client, gallery["id"], [("one.png", make_png(), "image/png")])

    response = _download(client, gallery["id"])
    signature = response.headers["etag"].strip('"')
    assert response.headers["content-type"] == "application/octet-stream"
    assert response.headers["cache-control"] == "public, max-age=0, must-revalidate"
    assert response.headers["content-disposition"] == (
        f'attachment; filename="gallery-Summer_Trip-{signature[:8]}.zip"'
    )
    assert response.headers["content-length"] == str(len(response.content))


def test_archive_holds_originals_newest_first(client):
    gallery = create_gallery(client)
    first_bytes = make_png(3, 3)
    upload(client, gallery["id"], [("first.png", first_bytes, "image/png")])
    upload(client, gallery["id"], [("notes.txt", b"second", "text/plain")])

    response = _download(client, gallery["id"])
    with zipfile.ZipFile(io.BytesIO(response.content)) as archive:
        assert archive.namelist() == ["notes.txt", "first.png"]
        assert archive.read("first.png") == first_bytes
        assert archive.read("notes.txt") == b"second"
        assert archive.getinfo("notes.txt").compress_type == zipfile.ZIP_DEFLATED


def test_unchanged_inventory_reuses_cached_archive(client, object_store):
    gallery = create_gallery(client)
    upload(client, gallery["id"], [("one.png", make_png(), "image/png")])

    first = _download(client, gallery["id"])
    second = _download(client, gallery["id"])

    assert first.content == second.content
    assert first.headers["etag"] == second.headers["etag"]
    assert len(_archive_puts(object_store)) == 1

    signature = first.headers["etag"].strip('"')
    assert object_store.keys("lazygallery-archives") == [f"galleries/{gallery['id']}/archives/media-{signature}.zip"]


def test_new_upload_builds_new_archive(client, object_store):
    gallery = create_gallery(client)
    upload(client, gallery["id"], [("one.png", make_png(), "image/png")])
    _download(client, gallery["id"])
    upload(client, gallery["id"], [("two.txt", b"2", "text/plain")])
    _download(client, gallery["id"])

    assert len(_archive_puts(object_store)) == 2
    assert len(object_store.keys("lazygallery-archives")) == 2


def test_empty_gallery_downloads_empty_zip(client):
    gallery = create_gallery(client)
    response = _download(client, gallery["id"])

    assert response.status_code == 200
    assert response.headers["etag"] == f'"{hashlib.sha1(b"").hexdigest()}"'
    with zipfile.ZipFile(io.BytesIO(response.content)) as archive:
        assert archive.namelist() == []


def test_not_modified_skips_object_store(client, object_store):
    gallery = create_gallery(client)
    upload(client, gallery["id"], [("one.png", make_png(), "image/png")])
    etag = _download(client, gallery["id"]).headers["etag"]
    object_store.objects.clear()

    response = _download(client, gallery["id"], {"If-None-Match": f'"other", {etag}'})
    assert response.status_code == 304


def test_missing_original_fails_the_build(client, object_store):
    gallery = create_gallery(client)
    upload(client, gallery["id"], [("one.txt", b"1", "text/plain")])
    [key] = object_store.keys("lazygallery-media")
    object_store.remove("lazygallery-media", key)

    response = _download(client, gallery["id"])
    assert response.status_code == 502
    assert response.json()["error"] == "storage_error"
    assert object_store.keys("lazygallery-archives") == []


def test_download_requires_owner(client):
    gallery = create_gallery(client)
    response = client.get(f"/api/galleries/{gallery['id']}/download", headers={"X-Owner-Id": "intruder"})
    assert response.status_code == 404
    assert response.json() == {"error": "not_found", "message": "Resource not found"}
