"""Connection lifecycle observation: driver heartbeats in, log lines out"""

import logging
from typing import Optional

from pymongo import monitoring

from ..logger import get_logger


class HeartbeatMonitor(monitoring.ServerHeartbeatListener):
    """
    Feeds server heartbeats into the connection so it can notice the server
    going away and coming back. Runs on the driver's monitor threads.
    """

    def __init__(self, connection):
        self.connection = connection

    def started(self, event):
        pass

    def succeeded(self, event):
        self.connection.heartbeat_succeeded()

    def failed(self, event):
        self.connection.heartbeat_failed(event.reply)


def attach_lifecycle_logging(connection, logger: Optional[logging.Logger] = None) -> None:
    """One log line per lifecycle transition, on the 'MongoDB' logger"""
    logger = logger or get_logger("MongoDB")
    database_name = connection.database_name

    connection.on("connected", lambda: logger.info(f"MongoDB connected to {database_name}"))
    connection.on("open", lambda: logger.info("MongoDB open"))
    connection.on("disconnected", lambda: logger.info("MongoDB disconnected"))
    connection.on("reconnected", lambda: logger.info("MongoDB reconnected"))
    connection.on("disconnecting", lambda: logger.info("MongoDB disconnecting"))
    connection.on("error", lambda error: logger.error(f"MongoDB connection error: {error}"))
