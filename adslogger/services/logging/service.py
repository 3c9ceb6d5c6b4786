"""
Logging Service - change capture runtime

Responsible for:
- Building the decode -> filter -> persist pipeline from configuration
- Subscribing configured variables on the ADS target
- Serializing each variable's notifications through its own worker
- Health/stats HTTP endpoints
- Graceful shutdown without dropping queued entries

Architecture:
    pyads callback thread -> NotificationDispatcher (queue per variable)
           |
    EventPipeline: decode -> change filter -> RotatingLogSink
"""

import asyncio
import signal
from datetime import datetime, timezone
from typing import Any, Callable

from aiohttp import web

from adslogger.common.config import AppConfig
from adslogger.common.exceptions import ConfigError
from adslogger.common.logging_setup import get_service_logger
from adslogger.services.device.ads_client import AdsNotificationClient
from adslogger.services.filtering.change_filter import ChangeFilter
from adslogger.services.filtering.registry import VariableRegistry

from .dispatcher import NotificationDispatcher
from .pipeline import EventPipeline
from .rotating_sink import RotatingLogSink

logger = get_service_logger("logging")


class LoggingService:
    """
    Change capture service.

    The ADS client is created through client_factory so tests can run the
    service against a fake target.
    """

    def __init__(
        self,
        config: AppConfig,
        client_factory: Callable[..., Any] | None = None,
    ):
        self.config = config
        self._client_factory = client_factory or AdsNotificationClient

        self.registry = VariableRegistry(config.variables)
        self.sink: RotatingLogSink | None = None
        self.pipeline: EventPipeline | None = None
        self.dispatcher: NotificationDispatcher | None = None
        self.client: Any = None

        self._start_time = datetime.now(timezone.utc)
        self._running = False
        self._shutdown_event = asyncio.Event()

        # Health server
        self._health_runner: web.AppRunner | None = None

    def _ensure_log_directory(self) -> None:
        path = self.config.logging.path
        if path.is_dir():
            return
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigError(f"Failed to create the logging folder {path}: {e}")
        logger.info(f"Logs will be saved in this folder: {path}")

    async def start(self) -> None:
        """Build the pipeline, connect and subscribe"""
        logger.info("Starting Logging Service")

        self._ensure_log_directory()

        self.sink = RotatingLogSink(
            self.config.logging.path,
            self.config.logging.max_lines_per_file,
            fsync=self.config.logging.fsync,
        )
        self.pipeline = EventPipeline(self.registry, self.sink, ChangeFilter())
        self.dispatcher = NotificationDispatcher(self.pipeline.process)
        self.dispatcher.start()

        self.client = self._client_factory(self.config.plc, self.dispatcher.submit)
        await self._run_blocking(self.client.connect)
        await self._run_blocking(self.client.register_variables, self.registry)

        if self.config.health.enabled:
            await self._start_health_server()

        self._running = True
        logger.info(
            f"Logging Service started ({len(self.registry.registered())} variables, "
            f"max {self.config.logging.max_lines_per_file} lines per file)"
        )

    async def run(self) -> None:
        """Start, wait for a shutdown signal, stop"""
        try:
            await self.start()
            self._setup_signal_handlers()
            await self._shutdown_event.wait()
        finally:
            await self.stop()

    async def stop(self) -> None:
        """Stop inflow, drain queued entries, close everything"""
        logger.info("Stopping Logging Service")
        self._running = False

        # No new notifications once the client is closed
        if self.client is not None:
            await self._run_blocking(self.client.close)

        if self.dispatcher is not None:
            await self.dispatcher.stop()

        await self._stop_health_server()
        logger.info("Logging Service stopped")

    def request_shutdown(self) -> None:
        """Handle shutdown signal"""
        logger.info("Exiting...")
        self._shutdown_event.set()

    def _setup_signal_handlers(self) -> None:
        """Setup graceful shutdown signal handlers"""
        loop = asyncio.get_running_loop()

        for sig in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.add_signal_handler(sig, self.request_shutdown)
            except NotImplementedError:
                signal.signal(sig, lambda s, f: loop.call_soon_threadsafe(self.request_shutdown))

    async def _run_blocking(self, func, *args):
        """Run a blocking client call in a thread to avoid blocking the event loop"""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func, *args)

    async def _start_health_server(self) -> None:
        """Start the health check HTTP server"""
        app = web.Application()
        app.router.add_get("/health", self._health_handler)
        app.router.add_get("/stats", self._stats_handler)

        self._health_runner = web.AppRunner(app)
        await self._health_runner.setup()

        site = web.TCPSite(self._health_runner, self.config.health.host, self.config.health.port)
        await site.start()

        logger.info(f"Health server started on port {self.config.health.port}")

    async def _stop_health_server(self) -> None:
        if self._health_runner:
            await self._health_runner.cleanup()
            self._health_runner = None

    async def _health_handler(self, request: web.Request) -> web.Response:
        uptime = (datetime.now(timezone.utc) - self._start_time).total_seconds()

        return web.json_response({
            "status": "healthy" if self._running else "unhealthy",
            "service": "logging",
            "uptime": int(uptime),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })

    async def _stats_handler(self, request: web.Request) -> web.Response:
        return web.json_response(self.get_stats())

    def get_stats(self) -> dict:
        return {
            "variables": {
                "configured": len(self.registry),
                "registered": len(self.registry.registered()),
                "skipped": sorted(self.registry.skipped),
            },
            "events": self.pipeline.get_stats() if self.pipeline else {},
            "queue": {
                "pending": self.dispatcher.pending if self.dispatcher else 0,
                "dropped": self.dispatcher.dropped if self.dispatcher else 0,
            },
            "sink": self.sink.get_stats() if self.sink else {},
        }
