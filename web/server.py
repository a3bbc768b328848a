###########EXTERNAL IMPORTS############

import asyncio
import logging
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from uvicorn import Config, Server

#######################################

#############LOCAL IMPORTS#############

from analytics.system import SnapshotProvider
from controller.registry import SessionRegistry
from model.monitoring.config import MonitorConfig
from web.dependencies import services
import web.api.system as system
import web.api.monitoring as monitoring
from util.debug import LoggerManager

#######################################


def create_app(config: MonitorConfig, provider: SnapshotProvider, registry: SessionRegistry) -> FastAPI:
    """
    Builds the FastAPI application with every router registered.

    Args:
        config: Monitoring parameters, also used for the CORS origins.
        provider: Snapshot source for single sample requests.
        registry: Monitoring sessions of the connected clients.

    Returns:
        FastAPI: The application.
    """

    services.set_dependencies(config, provider, registry)  # Set dependencies for routers endpoints
    app = FastAPI()
    app.include_router(system.router)  # System router (single sample and configuration endpoints)
    app.include_router(monitoring.router)  # Monitoring router (live streaming WebSocket)
    app.add_middleware(CORSMiddleware, allow_origins=config.cors_origins, allow_credentials=False, allow_methods=["GET"], allow_headers=["*"])
    return app


class HTTPServer:
    """
    HTTP and WebSocket front of the monitor, served by Uvicorn inside the application event loop.

    Routes:
        - `/system`: single snapshot, configuration and session status queries
        - `/monitoring/ws`: one live monitoring session per connection

    Attributes:
        config (MonitorConfig): Bind address, port, CORS origins and sampling parameters.
        provider (SnapshotProvider): Snapshot source shared with the sessions.
        registry (SessionRegistry): Client sessions, torn down when the server stops.
        server (FastAPI): The application.
    """

    def __init__(self, config: MonitorConfig, provider: SnapshotProvider, registry: SessionRegistry):
        self.host = config.host
        self.port = config.port
        self.config = config
        self.provider = provider
        self.registry = registry
        self.server = create_app(config, provider, registry)
        self.run_task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        """
        Launches Uvicorn as a background task of the running loop. Must be called once.
        """

        logger = LoggerManager.get_logger(__name__)

        try:
            if self.run_task is not None:
                raise RuntimeError("HTTP Server is already running")

            self.run_task = asyncio.get_running_loop().create_task(self.run_server())
            logger.info(f"HTTP Server listening on http://{self.host}:{self.port}")
        except Exception as e:
            logger.exception(f"Failed to start HTTP Server: {str(e)}")

    async def stop(self) -> None:
        """
        Disposes every monitoring session, then cancels the Uvicorn task.
        """

        logger = LoggerManager.get_logger(__name__)

        try:
            await self.registry.close()
            if self.run_task is not None:
                self.run_task.cancel()
                await self.run_task
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.exception(f"Failed to stop HTTP Server: {str(e)}")
        finally:
            self.run_task = None

    async def run_server(self) -> None:
        # Uvicorn's own logging is silenced, requests are logged by the endpoints
        config = Config(app=self.server, host=self.host, port=self.port, reload=False, log_level=logging.CRITICAL + 1)
        await Server(config).serve()
