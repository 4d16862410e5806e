#!/usr/bin/env python3
"""
GraphQL gateway
Main entry point for the application
"""

import asyncio
import sys

import uvicorn

from core.config import get_settings
from core.exceptions import ConfigurationException
from core.logger import get_logger, initialize_logging_system
from main import create_app

logger = get_logger("run")


async def main():
    settings = get_settings()
    initialize_logging_system(settings.log_level, settings.log_to_file)

    config = uvicorn.Config(
        app=create_app(settings),
        host=settings.host,
        port=settings.port,
        log_config=None,  # use our logger system
    )
    server = uvicorn.Server(config)

    logger.info(f"🌐 Server starting: {settings.host}:{settings.port}{settings.graphql_path}")
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\n🛑 Gateway shutting down...")
        sys.exit(0)
    except ConfigurationException as config_error:
        print(f"❌ Invalid configuration: {config_error.message}")
        sys.exit(1)
    except Exception as e:
        print(f"❌ Gateway failed to start: {e}")
        sys.exit(1)
