"""
Database components
MongoDB connection, collection wrapper and connection-level plugins.
"""

from .collection import ModelCollection, WriteEvent, to_object_id
from .connection import ConnectionState, DatabaseConnection
from .lifecycle import HeartbeatMonitor, attach_lifecycle_logging
from .pagination import paginate, pagination_plugin
from .unique_validator import DEFAULT_MESSAGE as UNIQUE_MESSAGE, unique_validator_plugin

__all__ = [
    "ConnectionState",
    "DatabaseConnection",
    "HeartbeatMonitor",
    "ModelCollection",
    "UNIQUE_MESSAGE",
    "WriteEvent",
    "attach_lifecycle_logging",
    "paginate",
    "pagination_plugin",
    "to_object_id",
    "unique_validator_plugin",
]
