"""CompeteHub Notifier — Main Orchestrator.

Ties all components together: config, seen store, workflow pipeline,
inbound HTTP surface and scheduling.

Runs with APScheduler:
  - Workflow run (every N seconds, plus once at startup)
  - Expired seen-marker purge (3 AM daily)

HTTP surface (aiohttp):
  GET /__health  → "ok"
  anything else  → run the workflow now, answer with the result JSON

Usage:
    python -m src.main
    python scripts/run.py
"""

from __future__ import annotations

import asyncio
import signal
import traceback
from typing import Awaitable, Callable, Optional

from aiohttp import web
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from src.config import AppConfig, load_config
from src.database.db import Database
from src.database import queries
from src.database.models import SEEN_KEY_PREFIX, WorkflowResult
from src.database.store import SqliteKeyValueStore
from src.scraper.pipeline import CompetitionWorkflow
from src.utils.logger import configure_logging, get_logger

logger = get_logger(__name__)

HEALTH_PATH = "/__health"


# ═══════════════════════════════════════════════════════════
# HTTP Surface
# ═══════════════════════════════════════════════════════════


def create_web_app(run_workflow: Callable[[], Awaitable[WorkflowResult]]) -> web.Application:
    """Build the aiohttp application.

    Args:
        run_workflow: Coroutine function executing one workflow run.

    Returns:
        An application answering health checks and on-demand triggers.
    """

    async def health(request: web.Request) -> web.Response:
        return web.Response(text="ok")

    async def trigger(request: web.Request) -> web.Response:
        try:
            result = await run_workflow()
        except Exception as e:
            logger.error("Workflow failed: %s", e)
            logger.debug(traceback.format_exc())
            return web.Response(status=500, text="internal error")
        return web.Response(text=result.to_json(), content_type="application/json")

    app = web.Application()
    app.router.add_route("*", HEALTH_PATH, health)
    app.router.add_route("*", "/{tail:.*}", trigger)
    return app


# ═══════════════════════════════════════════════════════════
# Application
# ═══════════════════════════════════════════════════════════


class CompeteHubNotifier:
    """Main application orchestrator.

    Owns the seen store, the workflow, the scheduler and the HTTP
    runner for the lifetime of the process.
    """

    def __init__(self, config: Optional[AppConfig] = None) -> None:
        self.config = config
        self.db: Optional[Database] = None
        self.store: Optional[SqliteKeyValueStore] = None
        self.workflow: Optional[CompetitionWorkflow] = None
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._runner: Optional[web.AppRunner] = None
        self._running = False
        self._run_count = 0

    async def start(self) -> None:
        """Full application startup sequence.

        1. Load config
        2. Open the seen store (unless disabled)
        3. Build the workflow and connect the Telegram bot
        4. Start the HTTP server and scheduler
        5. Run the workflow once immediately
        6. Enter keep-alive loop
        """
        self._running = True

        try:
            # ── 1. Config ────────────────────────────────
            logger.info("═══ Loading configuration ═══")
            if self.config is None:
                self.config = load_config()
            configure_logging(self.config.log_level)

            # ── 2. Seen store ────────────────────────────
            if self.config.store.enabled:
                logger.info("═══ Initializing seen store ═══")
                self.db = Database(self.config.store.path)
                await self.db.initialize()
                self.store = SqliteKeyValueStore(self.db)
                markers = await queries.count_entries(self.db, SEEN_KEY_PREFIX)
                logger.info("Seen store ready: %s (%d live markers)", self.config.store.path, markers)
            else:
                logger.warning("Seen store disabled; every run treats all competitions as new")

            # ── 3. Workflow ──────────────────────────────
            self.workflow = CompetitionWorkflow(self.config, self.store)
            await self._connect_telegram()

            # ── 4. HTTP server + scheduler ───────────────
            await self._start_http()
            self._start_scheduler()

            # ── 5. First run immediately ─────────────────
            logger.info("═══ Running first workflow ═══")
            await self.run_scheduled()

            # ── 6. Keep alive ────────────────────────────
            logger.info("═══ Entering main loop ═══")
            while self._running:
                await asyncio.sleep(1)

        except Exception as e:
            logger.error("Fatal error: %s", e)
            logger.error(traceback.format_exc())
        finally:
            await self.shutdown()

    async def _connect_telegram(self) -> None:
        telegram = self.workflow.dispatcher.telegram
        if telegram is None:
            return
        connected = await telegram.initialize()
        if not connected:
            logger.error("Telegram bot connection failed! Continuing anyway...")

    async def _start_http(self) -> None:
        server = self.config.server
        self._runner = web.AppRunner(create_web_app(self.run_on_demand))
        await self._runner.setup()
        site = web.TCPSite(self._runner, server.host, server.port)
        await site.start()
        logger.info("HTTP server listening on %s:%d", server.host, server.port)

    def _start_scheduler(self) -> None:
        logger.info("═══ Setting up scheduler ═══")
        self._scheduler = AsyncIOScheduler()

        interval = self.config.scraper.scan_interval_seconds
        self._scheduler.add_job(
            self.run_scheduled,
            IntervalTrigger(seconds=interval),
            id="workflow",
            max_instances=1,
            misfire_grace_time=60,
            name=f"Workflow (every {interval}s)",
        )

        if self.store is not None:
            self._scheduler.add_job(
                self._run_maintenance,
                CronTrigger(hour=3, minute=0),
                id="maintenance",
                max_instances=1,
                name="Seen store purge (3:00)",
            )

        self._scheduler.start()
        logger.info("Scheduler started with %d job(s)", len(self._scheduler.get_jobs()))

    async def run_on_demand(self) -> WorkflowResult:
        """Run the workflow for an HTTP trigger; errors propagate."""
        self._run_count += 1
        logger.info("On-demand run #%d", self._run_count)
        return await self.workflow.run()

    async def run_scheduled(self) -> None:
        """Run the workflow for the scheduler; the result is only logged."""
        self._run_count += 1
        try:
            result = await self.workflow.run()
            logger.info("Workflow completed: %s", result.to_dict())
        except Exception as e:
            logger.error("Workflow failed: %s", e)
            logger.error(traceback.format_exc())

    async def _run_maintenance(self) -> None:
        """Daily purge of expired seen markers."""
        logger.info("═══ Running seen store maintenance ═══")
        try:
            deleted = await self.store.purge_expired()
            logger.info("Maintenance complete: %d expired entries removed", deleted)
        except Exception as e:
            logger.error("Maintenance error: %s", e)

    async def shutdown(self) -> None:
        """Graceful shutdown: scheduler, HTTP server, clients, database."""
        logger.info("═══ Shutting down ═══")
        self._running = False

        if self._scheduler and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")

        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None

        if self.workflow is not None:
            await self.workflow.close()

        if self.db is not None:
            await self.db.close()

        logger.info("Shutdown complete")

    def stop(self) -> None:
        """Ask the keep-alive loop to exit."""
        self._running = False


def main() -> None:
    """Application entry point."""
    from dotenv import load_dotenv
    load_dotenv()

    app = CompeteHubNotifier()

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    def _signal_handler(sig, frame):
        logger.info("Signal %s received, shutting down...", sig)
        app.stop()

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    try:
        loop.run_until_complete(app.start())
    except KeyboardInterrupt:
        pass
    finally:
        loop.close()


if __name__ == "__main__":
    main()
