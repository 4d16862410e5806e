"""
Shared fixtures

The MongoDB driver is replaced by a small in-memory double that speaks the
subset of the Motor API the gateway uses. It is handed to the app through
``client_factory``, so no server is needed.
"""

import copy
from typing import Any, Dict, List, Optional

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

from core.config import Settings, database_name_from_uri
from core.database import (
    UNIQUE_MESSAGE,
    DatabaseConnection,
    pagination_plugin,
    unique_validator_plugin,
)
from core.database.collection import get_path

TEST_URI = "mongodb://localhost:27017/dbname?retryWrites=true"


# ===== in-memory Motor double =====


def _matches(document: Dict[str, Any], query: Dict[str, Any]) -> bool:
    return all(get_path(document, key) == value for key, value in query.items())


class FakeCursor:
    def __init__(self, documents: List[Dict[str, Any]]):
        self._documents = documents
        self._skip = 0
        self._limit = 0

    def sort(self, keys):
        for key, direction in reversed(list(keys)):
            self._documents.sort(key=lambda doc: get_path(doc, key), reverse=direction < 0)
        return self

    def skip(self, count: int):
        self._skip = count
        return self

    def limit(self, count: int):
        self._limit = count
        return self

    async def to_list(self, length: Optional[int] = None):
        documents = self._documents[self._skip:]
        if self._limit:
            documents = documents[: self._limit]
        if length:
            documents = documents[:length]
        return [copy.deepcopy(doc) for doc in documents]


class FakeInsertResult:
    def __init__(self, inserted_id):
        self.inserted_id = inserted_id


class FakeCollection:
    def __init__(self, name: str):
        self.name = name
        self.documents: List[Dict[str, Any]] = []
        self.indexes: List[Any] = []
        self.unique_keys: List[str] = []

    async def create_index(self, keys, **options):
        self.indexes.append((keys, options))
        if options.get("unique"):
            key = keys if isinstance(keys, str) else keys[0][0]
            self.unique_keys.append(key)
        return str(keys)

    async def find_one(self, query: Dict[str, Any]):
        for document in self.documents:
            if _matches(document, query):
                return copy.deepcopy(document)
        return None

    def find(self, query: Optional[Dict[str, Any]] = None):
        return FakeCursor([doc for doc in self.documents if _matches(doc, query or {})])

    async def count_documents(self, query: Dict[str, Any]):
        return len([doc for doc in self.documents if _matches(doc, query)])

    async def insert_one(self, document: Dict[str, Any]):
        for key in self.unique_keys:
            if any(get_path(doc, key) == get_path(document, key) for doc in self.documents):
                raise DuplicateKeyError(
                    "E11000 duplicate key error", 11000, {"keyPattern": {key: 1}}
                )
        stored = copy.deepcopy(document)
        stored.setdefault("_id", ObjectId())
        self.documents.append(stored)
        return FakeInsertResult(stored["_id"])

    async def find_one_and_update(self, query, update, return_document=ReturnDocument.BEFORE):
        for document in self.documents:
            if _matches(document, query):
                before = copy.deepcopy(document)
                document.update(update.get("$set", {}))
                return copy.deepcopy(document) if return_document == ReturnDocument.AFTER else before
        return None

    async def find_one_and_delete(self, query):
        for index, document in enumerate(self.documents):
            if _matches(document, query):
                return self.documents.pop(index)
        return None


class FakeDatabase:
    def __init__(self, name: str):
        self.name = name
        self.collections: Dict[str, FakeCollection] = {}

    def __getitem__(self, name: str) -> FakeCollection:
        if name not in self.collections:
            self.collections[name] = FakeCollection(name)
        return self.collections[name]


class FakeAdmin:
    def __init__(self, client: "FakeMotorClient"):
        self.client = client

    async def command(self, name: str):
        if self.client.unreachable:
            raise ServerSelectionTimeoutError("localhost:27017: connection refused")
        return {"ok": 1.0}


class FakeMotorClient:
    def __init__(self, uri: str, unreachable: bool = False, **options: Any):
        self.uri = uri
        self.options = options
        self.unreachable = unreachable
        self.closed = False
        self.admin = FakeAdmin(self)
        self.databases: Dict[str, FakeDatabase] = {}

    def get_default_database(self, default: Optional[str] = None) -> FakeDatabase:
        name = database_name_from_uri(self.uri) or default
        if name not in self.databases:
            self.databases[name] = FakeDatabase(name)
        return self.databases[name]

    def close(self):
        self.closed = True


class FakeClientFactory:
    """client_factory that remembers the clients it built"""

    def __init__(self, unreachable: bool = False):
        self.unreachable = unreachable
        self.clients: List[FakeMotorClient] = []

    def __call__(self, uri: str, **options: Any) -> FakeMotorClient:
        client = FakeMotorClient(uri, unreachable=self.unreachable, **options)
        self.clients.append(client)
        return client

    @property
    def database(self) -> FakeDatabase:
        return self.clients[-1].get_default_database()


# ===== fixtures =====


@pytest.fixture
def settings():
    return Settings(
        mongodb_uri=TEST_URI,
        jwt_secret="test-secret",
        environment="test",
        _env_file=None,
    )


@pytest.fixture
def client_factory():
    return FakeClientFactory()


@pytest.fixture
def connection(client_factory):
    """Connection with the pagination and unique plugins, not yet connected"""

    def setup(conn):
        conn.plugin(pagination_plugin)
        conn.plugin(unique_validator_plugin, message=UNIQUE_MESSAGE)

    return DatabaseConnection(TEST_URI, client_factory=client_factory, on_connection_create=setup)


@pytest.fixture
def app(settings, client_factory):
    from main import create_app

    return create_app(settings, client_factory=client_factory)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def graphql(client, settings):
    """POST a GraphQL document, returning the decoded body"""

    def execute(query: str, variables: Optional[Dict[str, Any]] = None, token: Optional[str] = None, headers=None):
        request_headers = dict(headers or {})
        if token:
            request_headers["Authorization"] = f"Bearer {token}"
        response = client.post(
            settings.graphql_path,
            json={"query": query, "variables": variables or {}},
            headers=request_headers,
        )
        return response.json()

    return execute


REGISTER_MUTATION = """
mutation Register($input: RegisterInput!) {
  register(input: $input) { accessToken user { id email name role } }
}
"""


@pytest.fixture
def register(graphql):
    def do_register(email="bob@example.com", password="secret-password", name="Bob"):
        body = graphql(
            REGISTER_MUTATION,
            {"input": {"email": email, "password": password, "name": name}},
        )
        assert body.get("errors") is None, body
        return body["data"]["register"]

    return do_register


@pytest.fixture
def admin_token(app, client, client_factory):
    """Insert an ADMIN straight into the users collection and sign a token for it"""
    import asyncio
    from datetime import datetime, timezone

    from models.dtos import Role, UserDTO
    from services.auth import hash_password

    app_context = app.state.app_context
    document = {
        "_id": ObjectId(),
        "email": "admin@example.com",
        "password_hash": hash_password("admin-password"),
        "name": "Admin",
        "role": Role.ADMIN.value,
        "bio": None,
        "created_at": datetime.now(timezone.utc),
        "updated_at": None,
    }
    asyncio.run(client_factory.database["users"].insert_one(document))
    return app_context.service("auth").issue_token(UserDTO.from_document(document))
