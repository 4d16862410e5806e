"""Audit trail written by ActivityLogService.apply"""

import pytest

from conftest import TEST_URI
from core.database import DatabaseConnection, pagination_plugin
from services.activity_logs import ACTIVITY_LOG_COLLECTION, ActivityLogService
from services.activity_logs.service import REDACTED


@pytest.fixture
def audited_connection(client_factory):
    def setup(connection):
        connection.plugin(pagination_plugin)
        connection.plugin(ActivityLogService.apply)

    return DatabaseConnection(TEST_URI, client_factory=client_factory, on_connection_create=setup)


@pytest.mark.asyncio
async def test_every_write_is_recorded(audited_connection, client_factory):
    service = ActivityLogService(audited_connection)
    orders = audited_connection.collection("orders")
    await audited_connection.connect()

    order = await orders.insert_one({"item": "book"}, actor_id="u1")
    await orders.update_one({"_id": order["_id"]}, {"item": "pen"}, actor_id="u1")
    await orders.delete_one({"_id": order["_id"]}, actor_id="u2")

    entries = client_factory.database[ACTIVITY_LOG_COLLECTION].documents
    assert [entry["action"] for entry in entries] == ["insert", "update", "delete"]
    assert {entry["document_id"] for entry in entries} == {str(order["_id"])}
    assert [entry["actor_id"] for entry in entries] == ["u1", "u1", "u2"]
    assert entries[1]["changes"] == {"item": "pen"}

    page = await service.list_logs(page=1, limit=2, collection="orders")
    assert page.total_docs == 3
    assert len(page.items) == 2
    assert page.has_next_page


@pytest.mark.asyncio
async def test_log_collection_is_not_audited(audited_connection, client_factory):
    service = ActivityLogService(audited_connection)
    await audited_connection.connect()

    await service.collection.insert_one({"note": "manual"})

    assert len(client_factory.database[ACTIVITY_LOG_COLLECTION].documents) == 1


@pytest.mark.asyncio
async def test_password_changes_are_redacted(audited_connection, client_factory):
    ActivityLogService(audited_connection)
    users = audited_connection.collection("users")
    await audited_connection.connect()

    user = await users.insert_one({"email": "bob@example.com"})
    await users.update_one({"_id": user["_id"]}, {"password_hash": "$2b$12$..."})

    update_entry = client_factory.database[ACTIVITY_LOG_COLLECTION].documents[-1]
    assert update_entry["changes"] == {"password_hash": REDACTED}


@pytest.mark.asyncio
async def test_failed_log_write_does_not_fail_the_audited_write(audited_connection, client_factory, monkeypatch):
    ActivityLogService(audited_connection)
    orders = audited_connection.collection("orders")
    await audited_connection.connect()

    async def log_store_down(document):
        raise RuntimeError("log store down")

    monkeypatch.setattr(client_factory.database[ACTIVITY_LOG_COLLECTION], "insert_one", log_store_down)

    order = await orders.insert_one({"item": "book"}, actor_id="u1")

    assert client_factory.database["orders"].documents == [order]
