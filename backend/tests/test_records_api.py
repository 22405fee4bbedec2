"""
Scholar Registry: API Endpoint Tests
=====================================

What:  Exercises the HTTP contract end to end.
How:   Real FastAPI app over httpx ASGITransport, a temp SQLite database
       and the in-memory blob store from conftest.

What we test:
    ✅ Create → read → partial update → delete lifecycle
    ✅ Wire names: _id, insertedId, matchedCount, modifiedCount
    ✅ /record/sponsors is not captured by /record/{id}
    ✅ 400 for malformed ids and empty updates, 404 for missing records
    ✅ 413 for oversized images
    ✅ Image replace/remove through multipart PATCH
"""

import io
import uuid

import pytest
import pytest_asyncio
from fastapi import UploadFile
from httpx import ASGITransport, AsyncClient

from scholar_registry.blobs.local import LocalBlobStore
from scholar_registry.exceptions import ImageTooLargeError
from scholar_registry.main import create_app
from scholar_registry.models.sponsor import Sponsor
from scholar_registry.routes import records
from scholar_registry.services.scholar_service import ScholarService

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


async def create_record(client: AsyncClient, files=None, **fields) -> str:
    response = await client.post("/record/", data=fields, files=files)
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["acknowledged"] is True
    return body["insertedId"]


@pytest_asyncio.fixture
async def seeded_sponsors(database):
    names = ["Yayasan Khazanah", "Bank Negara Malaysia"]
    async with database.session() as session:
        for name in names:
            session.add(Sponsor(name=name))
    return names


class TestRecordLifecycle:

    @pytest.mark.asyncio
    async def test_create_read_update_delete(self, test_client, blob_store):
        record_id = await create_record(
            test_client,
            name="A",
            email="a@x.com",
            sponsor="Yayasan TAR",
            major="CS",
            institution="X",
        )

        response = await test_client.get(f"/record/{record_id}")
        assert response.status_code == 200
        record = response.json()
        assert record["_id"] == record_id
        assert record["name"] == "A"
        assert record["major"] == "CS"
        assert record["image"] is None

        response = await test_client.patch(f"/record/{record_id}", data={"major": "EE"})
        assert response.status_code == 200
        assert response.json() == {"acknowledged": True, "matchedCount": 1, "modifiedCount": 1}

        record = (await test_client.get(f"/record/{record_id}")).json()
        assert record["major"] == ["EE"]
        assert record["name"] == "A"
        assert record["email"] == "a@x.com"
        assert record["institution"] == "X"

        response = await test_client.delete(f"/record/{record_id}")
        assert response.status_code == 200
        assert response.json() == {"message": "Record deleted successfully"}

        response = await test_client.get(f"/record/{record_id}")
        assert response.status_code == 404
        assert blob_store.call_count == 0

    @pytest.mark.asyncio
    async def test_list_records(self, test_client):
        assert (await test_client.get("/record/")).json() == []

        first = await create_record(test_client, name="A")
        second = await create_record(test_client, name="B")

        ids = {r["_id"] for r in (await test_client.get("/record/")).json()}
        assert ids == {first, second}

    @pytest.mark.asyncio
    async def test_create_with_no_fields(self, test_client):
        record_id = await create_record(test_client)
        record = (await test_client.get(f"/record/{record_id}")).json()
        assert record["name"] is None
        assert record["image"] is None

    @pytest.mark.asyncio
    async def test_repeated_major_stored_as_list(self, test_client):
        record_id = await create_record(test_client, name="A", major=["CS", "Math"])
        record = (await test_client.get(f"/record/{record_id}")).json()
        assert record["major"] == ["CS", "Math"]

    @pytest.mark.asyncio
    async def test_name_only_update_leaves_other_fields(self, test_client):
        record_id = await create_record(
            test_client, name="A", about="bio", major="CS", institution="X"
        )
        before = (await test_client.get(f"/record/{record_id}")).json()

        response = await test_client.patch(f"/record/{record_id}", data={"name": "B"})
        assert response.status_code == 200

        after = (await test_client.get(f"/record/{record_id}")).json()
        assert after == {**before, "name": "B"}

    @pytest.mark.asyncio
    async def test_rewriting_same_value_matches_without_modifying(self, test_client):
        record_id = await create_record(test_client, name="A")

        response = await test_client.patch(f"/record/{record_id}", data={"name": "A"})

        assert response.status_code == 200
        assert response.json() == {"acknowledged": True, "matchedCount": 1, "modifiedCount": 0}


class TestRecordImages:

    @pytest.mark.asyncio
    async def test_create_with_image(self, test_client, blob_store):
        record_id = await create_record(
            test_client, name="A", files={"image": ("me.png", PNG, "image/png")}
        )

        record = (await test_client.get(f"/record/{record_id}")).json()
        assert len(blob_store.uploads) == 1
        assert record["image"].endswith(blob_store.uploads[0])

    @pytest.mark.asyncio
    async def test_replace_image_deletes_previous(self, test_client, blob_store):
        record_id = await create_record(
            test_client, name="A", files={"image": ("old.png", PNG, "image/png")}
        )
        old_key = blob_store.uploads[0]

        response = await test_client.patch(
            f"/record/{record_id}", files={"image": ("new.png", PNG, "image/png")}
        )
        assert response.status_code == 200

        record = (await test_client.get(f"/record/{record_id}")).json()
        assert len(blob_store.uploads) == 2
        assert blob_store.deletes == [old_key]
        assert record["image"].endswith(blob_store.uploads[1])
        assert record["name"] == "A"

    @pytest.mark.asyncio
    async def test_remove_image(self, test_client, blob_store):
        record_id = await create_record(
            test_client, name="A", files={"image": ("old.png", PNG, "image/png")}
        )

        response = await test_client.patch(
            f"/record/{record_id}", data={"imageAction": "remove"}
        )
        assert response.status_code == 200

        record = (await test_client.get(f"/record/{record_id}")).json()
        assert record["image"] is None
        assert len(blob_store.deletes) == 1

    @pytest.mark.asyncio
    async def test_oversized_image_rejected(self, test_client, blob_store, monkeypatch):
        monkeypatch.setattr(records.settings, "max_image_size", 8)

        response = await test_client.post(
            "/record/",
            data={"name": "A"},
            files={"image": ("big.png", PNG, "image/png")},
        )

        assert response.status_code == 413
        assert response.json()["error"] == "image_too_large"
        assert blob_store.uploads == []
        assert (await test_client.get("/record/")).json() == []


class TestReadImageUpload:

    @pytest.mark.asyncio
    async def test_empty_file_input_is_no_image(self):
        upload = UploadFile(file=io.BytesIO(b""), filename="")
        assert await records.read_image_upload(upload) is None

    @pytest.mark.asyncio
    async def test_payload_size_checked_without_declared_size(self, monkeypatch):
        monkeypatch.setattr(records.settings, "max_image_size", 8)
        upload = UploadFile(file=io.BytesIO(PNG), filename="big.png", size=None)

        with pytest.raises(ImageTooLargeError) as exc_info:
            await records.read_image_upload(upload)
        assert exc_info.value.context["size"] == len(PNG)

    @pytest.mark.asyncio
    async def test_payload_carries_size(self):
        upload = UploadFile(file=io.BytesIO(PNG), filename="me.png", size=None)

        payload = await records.read_image_upload(upload)

        assert payload.size == len(PNG)
        assert payload.filename == "me.png"


class TestRecordErrors:

    @pytest.mark.asyncio
    async def test_malformed_id_is_400(self, test_client):
        for method in ("get", "delete"):
            response = await getattr(test_client, method)("/record/12345")
            assert response.status_code == 400
            assert response.json()["message"] == "Invalid ID format"

        response = await test_client.patch("/record/12345", data={"name": "B"})
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_identifier"

    @pytest.mark.asyncio
    async def test_missing_record_is_404(self, test_client):
        missing = str(uuid.uuid4())
        assert (await test_client.get(f"/record/{missing}")).status_code == 404
        assert (await test_client.delete(f"/record/{missing}")).status_code == 404
        response = await test_client.patch(f"/record/{missing}", data={"name": "B"})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_empty_update_is_400(self, test_client, blob_store):
        record_id = await create_record(test_client, name="A")

        response = await test_client.patch(f"/record/{record_id}", data={"name": ""})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "no_updates"
        assert body["message"] == "No updates provided"
        assert "X-Request-ID" in response.headers
        record = (await test_client.get(f"/record/{record_id}")).json()
        assert record["name"] == "A"

    @pytest.mark.asyncio
    async def test_unknown_image_action_is_not_an_update(self, test_client):
        record_id = await create_record(test_client, name="A")
        response = await test_client.patch(
            f"/record/{record_id}", data={"imageAction": "keep"}
        )
        assert response.status_code == 400


class TestSponsorRoutes:

    @pytest.mark.asyncio
    async def test_list_sponsors_not_captured_by_record_route(self, test_client, seeded_sponsors):
        response = await test_client.get("/record/sponsors")

        assert response.status_code == 200
        assert sorted(s["name"] for s in response.json()) == sorted(seeded_sponsors)
        assert all("_id" in s for s in response.json())

    @pytest.mark.asyncio
    async def test_get_sponsor(self, test_client, seeded_sponsors):
        sponsor = (await test_client.get("/record/sponsors")).json()[0]

        response = await test_client.get(f"/record/sponsors/{sponsor['_id']}")

        assert response.status_code == 200
        assert response.json() == sponsor

    @pytest.mark.asyncio
    async def test_get_sponsor_errors(self, test_client):
        assert (await test_client.get("/record/sponsors/abc")).status_code == 400
        missing = str(uuid.uuid4())
        assert (await test_client.get(f"/record/sponsors/{missing}")).status_code == 404


class TestHealthAndFiles:

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"

    @pytest.mark.asyncio
    async def test_health_degraded_when_blob_store_down(self, test_client, blob_store, monkeypatch):
        async def unavailable():
            return False
        monkeypatch.setattr(blob_store, "health_check", unavailable)

        body = (await test_client.get("/health")).json()
        assert body["status"] == "degraded"
        assert body["blob_store"] == "unavailable"

    @pytest.mark.asyncio
    async def test_files_route_404_without_local_backend(self, test_client):
        assert (await test_client.get("/files/uploads/1_a.png")).status_code == 404

    @pytest.mark.asyncio
    async def test_files_route_serves_local_uploads(self, database, tmp_path):
        store = LocalBlobStore(str(tmp_path / "storage"), "http://test")
        app = create_app()
        app.state.database = database
        app.state.blob_store = store
        app.state.scholar_service = ScholarService(store)

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            record_id = await create_record(
                client, name="A", files={"image": ("me.png", PNG, "image/png")}
            )
            image_url = (await client.get(f"/record/{record_id}")).json()["image"]
            assert image_url.startswith("http://test/files/uploads/")

            response = await client.get(image_url)
            assert response.status_code == 200
            assert response.content == PNG
