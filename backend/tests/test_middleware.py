"""
Scholar Registry: Middleware Tests
===================================

What we test:
    ✅ Plain client request IDs are echoed back
    ✅ Malformed client request IDs are replaced
    ✅ Access log lines use the route template and carry the request size
    ✅ /health is not access-logged
"""

import logging

import pytest

from scholar_registry.middleware.logging import level_for_status
from scholar_registry.middleware.request_id import resolve_request_id

ACCESS_LOGGER = "scholar_registry.access"


class TestRequestID:

    def test_plain_client_id_kept(self):
        assert resolve_request_id("ui-7f3a.2_b") == "ui-7f3a.2_b"

    @pytest.mark.parametrize("value", [None, "", "has space", "x" * 65, "a\r\nb"])
    def test_unusable_client_id_replaced(self, value):
        rid = resolve_request_id(value)
        assert rid != value
        assert len(rid) == 8

    @pytest.mark.asyncio
    async def test_header_round_trip(self, test_client):
        response = await test_client.get("/record/", headers={"X-Request-ID": "ui-42"})
        assert response.headers["X-Request-ID"] == "ui-42"

    @pytest.mark.asyncio
    async def test_malformed_header_replaced(self, test_client):
        response = await test_client.get("/record/", headers={"X-Request-ID": "not valid!"})
        assert response.headers["X-Request-ID"] != "not valid!"


class TestRequestLogging:

    def test_level_for_status(self):
        assert level_for_status(201) == logging.INFO
        assert level_for_status(413) == logging.WARNING
        assert level_for_status(500) == logging.ERROR

    @pytest.mark.asyncio
    async def test_logs_route_template_and_size(self, test_client, caplog):
        caplog.set_level(logging.INFO, logger=ACCESS_LOGGER)
        created = await test_client.post("/record/", data={"name": "A"})
        record_id = created.json()["insertedId"]
        caplog.clear()

        await test_client.patch(f"/record/{record_id}", data={"name": "B"})

        [entry] = [r for r in caplog.records if r.name == ACCESS_LOGGER]
        assert entry.route == "/record/{record_id}"
        assert entry.path == f"/record/{record_id}"
        assert entry.status == 200
        assert entry.request_bytes > 0

    @pytest.mark.asyncio
    async def test_health_not_logged(self, test_client, caplog):
        caplog.set_level(logging.INFO, logger=ACCESS_LOGGER)
        await test_client.get("/health")
        assert not [r for r in caplog.records if r.name == ACCESS_LOGGER]
