"""
MongoDB connection management

One DatabaseConnection exists per process. It owns the Motor client, reports
its lifecycle through named events (connecting, connected, open,
disconnecting, disconnected, reconnected, error) and hands out
ModelCollections with every registered plugin applied.
"""

import threading
from collections import defaultdict
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from ..config import database_name_from_uri
from ..exceptions import DatabaseConnectionException, DatabaseOperationException
from ..global_error_handler import ErrorSeverity, handle_exception
from ..logger import get_logger
from .collection import ModelCollection
from .lifecycle import HeartbeatMonitor

logger = get_logger("database")

DEFAULT_DATABASE = "test"
LIFECYCLE_EVENTS = (
    "connecting",
    "connected",
    "open",
    "disconnecting",
    "disconnected",
    "reconnected",
    "error",
)

Plugin = Callable[..., None]


class ConnectionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTING = "disconnecting"


class DatabaseConnection:
    """
    Process-wide MongoDB connection

    Lifecycle:
    1. __init__ runs the on_connection_create hook (plugins, listeners)
    2. connect() opens the client, pings, creates declared indexes
    3. close() releases the client

    Plugins must be registered before the first collection is created; each
    plugin runs exactly once per collection.
    """

    def __init__(
        self,
        uri: Optional[str],
        client_factory: Optional[Callable[..., AsyncIOMotorClient]] = None,
        on_connection_create: Optional[Callable[["DatabaseConnection"], Any]] = None,
        server_selection_timeout_ms: int = 5000,
    ):
        self.uri = uri
        self.database_name = database_name_from_uri(uri)
        self.server_selection_timeout_ms = server_selection_timeout_ms
        self.client: Optional[AsyncIOMotorClient] = None
        self.state = ConnectionState.DISCONNECTED
        self.collections: Dict[str, ModelCollection] = {}
        self._client_factory = client_factory or AsyncIOMotorClient
        self._database: Optional[AsyncIOMotorDatabase] = None
        self._listeners: Dict[str, List[Callable[..., Any]]] = defaultdict(list)
        self._plugins: List[Tuple[Plugin, Dict[str, Any]]] = []
        self._state_lock = threading.Lock()
        self._connection_lost = False

        if on_connection_create is not None:
            on_connection_create(self)

    # ===== events =====

    def on(self, event: str, callback: Callable[..., Any]) -> None:
        if event not in LIFECYCLE_EVENTS:
            raise ValueError(f"Unknown connection event: {event}")
        self._listeners[event].append(callback)

    def emit(self, event: str, *args: Any) -> None:
        for callback in list(self._listeners[event]):
            try:
                callback(*args)
            except Exception as listener_error:
                handle_exception(
                    listener_error, f"MongoDB '{event}' listener", ErrorSeverity.LOW
                )

    # ===== plugins & collections =====

    def plugin(self, plugin: Plugin, **options: Any) -> None:
        if self.collections:
            raise DatabaseOperationException(
                f"Plugin {getattr(plugin, '__name__', plugin)!r} registered after "
                f"collections were created: {sorted(self.collections)}"
            )
        self._plugins.append((plugin, options))

    @property
    def plugins(self) -> List[Tuple[Plugin, Dict[str, Any]]]:
        return list(self._plugins)

    def collection(
        self,
        name: str,
        unique_fields: Sequence[str] = (),
        indexes: Sequence[Tuple[Any, Dict[str, Any]]] = (),
    ) -> ModelCollection:
        """Get or create the ModelCollection ``name``"""
        if name in self.collections:
            return self.collections[name]

        collection = ModelCollection(self, name, unique_fields, indexes)
        self.collections[name] = collection
        for plugin, options in self._plugins:
            plugin(collection, **options)
        return collection

    @property
    def database(self) -> AsyncIOMotorDatabase:
        if self._database is None:
            raise DatabaseOperationException("Database not connected")
        return self._database

    @property
    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    # ===== lifecycle =====

    async def connect(self) -> None:
        if self.client is not None:
            return

        self._set_state(ConnectionState.CONNECTING)
        self.emit("connecting")
        try:
            self.client = self._client_factory(
                self.uri,
                event_listeners=[HeartbeatMonitor(self)],
                serverSelectionTimeoutMS=self.server_selection_timeout_ms,
            )
            self._database = self.client.get_default_database(DEFAULT_DATABASE)
            await self.client.admin.command("ping")
        except Exception as connection_error:
            self.client = None
            self._database = None
            self._set_state(ConnectionState.DISCONNECTED)
            self.emit("error", connection_error)
            raise DatabaseConnectionException(
                f"Cannot connect to MongoDB database: {self.database_name}",
                original_exception=connection_error,
                details={"database": self.database_name},
            ) from connection_error

        self._set_state(ConnectionState.CONNECTED)
        self.emit("connected")
        self.emit("open")

        await self._create_declared_indexes()

    async def close(self) -> None:
        if self.client is None:
            return

        self._set_state(ConnectionState.DISCONNECTING)
        self.emit("disconnecting")
        try:
            self.client.close()
        finally:
            self.client = None
            self._database = None
            self._set_state(ConnectionState.DISCONNECTED)
            self.emit("disconnected")

    async def _create_declared_indexes(self) -> None:
        for collection in list(self.collections.values()):
            try:
                await collection.ensure_indexes()
            except Exception as index_error:
                # Missing indexes slow queries down but do not stop the server
                logger.error(f"❌ Index creation failed for {collection.name}: {index_error}")

    # ===== heartbeat callbacks (driver monitor threads) =====

    def heartbeat_failed(self, reason: Any = None) -> None:
        with self._state_lock:
            if self.state is not ConnectionState.CONNECTED or self._connection_lost:
                return
            self._connection_lost = True
            self.state = ConnectionState.DISCONNECTED
        logger.warning(f"⚠️ MongoDB heartbeat failed: {reason}")
        self.emit("disconnected")

    def heartbeat_succeeded(self) -> None:
        with self._state_lock:
            if not self._connection_lost or self.client is None:
                return
            self._connection_lost = False
            self.state = ConnectionState.CONNECTED
        self.emit("connected")
        self.emit("reconnected")

    def _set_state(self, state: ConnectionState) -> None:
        with self._state_lock:
            self.state = state
            if state is not ConnectionState.CONNECTED:
                self._connection_lost = False
