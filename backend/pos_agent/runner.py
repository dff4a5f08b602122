"""
Print agent orchestration.

``AgentRunner`` starts one ``TenantWorker`` per configured entry. A worker:

1. logs in (forever, with a delay between failures);
2. resolves its theater: explicit ``theaterId`` in the config, else the
   theater of the login, else the first theater visible to the account;
3. loads the printer configuration once (defaults if it cannot);
4. reads the POS stream and hands ``pos_order`` frames to a handler task
   through a queue, so receipts of one theater print in arrival order
   while the reader keeps draining the socket.

Stream failures reconnect with exponential backoff; 401/403 on the stream
go back to step 1. Workers never return on their own.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import httpx

from pos_agent.client import BackendClient
from pos_agent.config import AgentConfig, AgentSettings, TenantEntry, get_agent_settings
from pos_agent.dedup import RecentPrints
from pos_agent.dispatcher import PrintDispatcher
from pos_agent.errors import AgentConfigError, AuthenticationError, StreamError
from pos_agent.printers import create_printer
from pos_agent.printers.base import ReceiptPrinter
from pos_agent.retry import ReconnectBackoff, RetryConfig
from pos_agent.stream import is_keepalive
from shared.config.constants import StreamFrameType
from shared.config.logging import get_logger, mask_username
from shared.utils.schemas import PrinterConfig

logger = get_logger(__name__)

ClientFactory = Callable[[TenantEntry], BackendClient]
PrinterFactory = Callable[[PrinterConfig, AgentSettings], ReceiptPrinter]
Sleep = Callable[[float], Awaitable[None]]


class WorkerState:
    STARTING = "starting"
    LOGGING_IN = "logging_in"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"
    IDLE = "idle"


class TenantWorker:
    """Keeps one theater's printer fed with receipts."""

    def __init__(
        self,
        entry: TenantEntry,
        client: BackendClient,
        settings: AgentSettings | None = None,
        printer_factory: PrinterFactory = create_printer,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.entry = entry
        self.client = client
        self._settings = settings or get_agent_settings()
        self._printer_factory = printer_factory
        self._sleep = sleep

        self.state = WorkerState.STARTING
        self.theater_id: int | None = None
        self.printer_config: PrinterConfig | None = None
        self.dispatcher: PrintDispatcher | None = None
        self.connected_at: float | None = None
        self.last_frame_at: float | None = None
        self.reconnects = 0

        self._recent = RecentPrints(self._settings.dedup_window)
        self._queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        self._backoff = ReconnectBackoff(
            RetryConfig(
                initial_delay=self._settings.backoff_initial,
                max_delay=self._settings.backoff_max,
            )
        )

    @property
    def label(self) -> str:
        return self.entry.display_name

    def status(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "state": self.state,
            "theater_id": self.theater_id,
            "printer": self.dispatcher.printer.describe() if self.dispatcher else None,
            "printed": self.dispatcher.printed if self.dispatcher else 0,
            "failed": self.dispatcher.failed if self.dispatcher else 0,
            "reconnects": self.reconnects,
            "queued": self._queue.qsize(),
        }

    # =========================================================================
    # Main loop
    # =========================================================================

    async def run(self) -> None:
        handler = asyncio.create_task(self._handle_events(), name=f"print:{self.label}")
        try:
            while True:
                await self.login()
                theater_id = await self.resolve_theater()
                if theater_id is None:
                    self.state = WorkerState.IDLE
                    await self._sleep(self._settings.login_retry_delay)
                    continue
                await self.prepare(theater_id)
                await self.stream_until_auth_lost(theater_id)
        finally:
            handler.cancel()
            await asyncio.gather(handler, return_exceptions=True)

    async def login(self) -> None:
        """Log in, retrying forever."""
        self.state = WorkerState.LOGGING_IN
        while True:
            try:
                await self.client.login()
                return
            except (AuthenticationError, httpx.HTTPError) as e:
                logger.error(
                    "Agent login failed, retrying",
                    agent=self.label,
                    username=mask_username(self.entry.username),
                    error=str(e),
                    retry_in=self._settings.login_retry_delay,
                )
                await self._sleep(self._settings.login_retry_delay)

    async def resolve_theater(self) -> int | None:
        if self.entry.theater_id is not None:
            return self.entry.theater_id
        if self.client.login_theater_id is not None:
            return self.client.login_theater_id

        try:
            theaters = await self.client.list_theaters()
        except (AuthenticationError, httpx.HTTPError) as e:
            logger.error("Failed to fetch theaters", agent=self.label, error=str(e))
            return None

        if not theaters:
            logger.error("No theaters found in system", agent=self.label)
            return None

        first = theaters[0]
        theater_id = first.get("id", first.get("_id"))
        if theater_id is None:
            logger.error("Theater list entry without id", agent=self.label)
            return None
        logger.warning(
            "Account is not scoped to a theater, using the first visible one. "
            "Set theaterId for this agent in config.json.",
            agent=self.label,
            theater_id=theater_id,
        )
        return int(theater_id)

    async def prepare(self, theater_id: int) -> None:
        """Load the printer configuration once per theater and build the dispatcher."""
        if self.dispatcher is not None and self.theater_id == theater_id:
            return

        self.theater_id = theater_id
        try:
            self.printer_config = await self.client.get_printer_config(theater_id)
        except (AuthenticationError, httpx.HTTPError, ValueError) as e:
            logger.error(
                "Failed to load POS printer config, using defaults",
                agent=self.label,
                theater_id=theater_id,
                error=str(e),
            )
            self.printer_config = PrinterConfig()

        printer = self._printer_factory(self.printer_config, self._settings)
        self.dispatcher = PrintDispatcher(
            self.client,
            theater_id,
            printer,
            recent=self._recent,
            label=self.label,
        )
        logger.info(
            "Agent ready",
            agent=self.label,
            theater_id=theater_id,
            printer=printer.describe(),
        )

    async def stream_until_auth_lost(self, theater_id: int) -> None:
        """Read the stream with reconnects. Returns when a re-login is needed."""
        while True:
            self.state = WorkerState.CONNECTING
            try:
                await self.read_stream(theater_id)
                error = "Stream ended"
            except StreamError as e:
                if e.requires_login:
                    logger.warning(
                        "Stream rejected the token, logging in again",
                        agent=self.label,
                        status_code=e.status_code,
                    )
                    return
                error = str(e)
            except AuthenticationError as e:
                logger.warning("Not authenticated for stream", agent=self.label, error=str(e))
                return
            except Exception as e:
                logger.exception("Unexpected stream failure", agent=self.label)
                error = f"{type(e).__name__}: {e}"

            self.state = WorkerState.RECONNECTING
            self.reconnects += 1
            delay = self._backoff.next_delay()
            logger.warning(
                "Stream error, reconnecting",
                agent=self.label,
                theater_id=theater_id,
                error=error,
                retry_in=round(delay, 2),
                attempt=self._backoff.attempt,
            )
            await self._sleep(delay)

    async def read_stream(self, theater_id: int) -> None:
        async for frame in self.client.events(theater_id):
            self.last_frame_at = time.monotonic()
            frame_type = frame.get("type")
            if frame_type == StreamFrameType.CONNECTED:
                self.state = WorkerState.CONNECTED
                self.connected_at = time.monotonic()
                self._backoff.reset()
                logger.info("Connected to POS stream", agent=self.label, theater_id=theater_id)
            elif is_keepalive(frame):
                continue
            else:
                self._queue.put_nowait(frame)

    async def _handle_events(self) -> None:
        while True:
            frame = await self._queue.get()
            try:
                if self.dispatcher is not None:
                    await self.dispatcher.handle(frame)
            except Exception:
                logger.exception("Event handler failed", agent=self.label)
            finally:
                self._queue.task_done()

    async def drain(self) -> None:
        """Wait until every queued frame has been handled."""
        await self._queue.join()


@dataclass(frozen=True, slots=True)
class CheckResult:
    """Outcome of ``pos-agent check`` for one entry."""

    label: str
    ok: bool
    theater_id: int | None = None
    printer: str | None = None
    error: str | None = None


class AgentRunner:
    """Runs every configured tenant worker until the process is stopped."""

    def __init__(
        self,
        config: AgentConfig,
        settings: AgentSettings | None = None,
        client_factory: ClientFactory | None = None,
        printer_factory: PrinterFactory = create_printer,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._config = config
        self._settings = settings or get_agent_settings()
        self._client_factory = client_factory or self._default_client
        self._printer_factory = printer_factory
        self._sleep = sleep
        self.workers: list[TenantWorker] = []

    def _default_client(self, entry: TenantEntry) -> BackendClient:
        return BackendClient(
            self._config.backend_url,
            entry.username or "",
            entry.password or "",
            timeout=self._settings.request_timeout,
            keepalive_timeout=self._settings.keepalive_timeout,
        )

    def build_workers(self) -> list[TenantWorker]:
        """One worker per entry with credentials. Entries without are skipped."""
        workers = []
        for index, entry in enumerate(self._config.agents, start=1):
            if not entry.label:
                entry = entry.model_copy(update={"label": f"Agent-{index}"})
            if not entry.has_credentials:
                logger.warning("Skipping agent entry: missing username or password", agent=entry.display_name)
                continue
            workers.append(
                TenantWorker(
                    entry,
                    self._client_factory(entry),
                    settings=self._settings,
                    printer_factory=self._printer_factory,
                    sleep=self._sleep,
                )
            )
        return workers

    @staticmethod
    def handle_loop_exception(loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
        """Last-resort handler: log and keep the loop running."""
        exc = context.get("exception")
        logger.error(
            "Uncaught exception in agent event loop",
            message=context.get("message"),
            error=repr(exc) if exc else None,
            exc_info=exc,
        )

    async def _supervise(self, worker: TenantWorker) -> None:
        while True:
            try:
                await worker.run()
            except Exception:
                logger.exception("Agent worker crashed, restarting", agent=worker.label)
                await self._sleep(self._settings.login_retry_delay)

    async def _status_loop(self) -> None:
        """Periodic status line. Keeps the process busy while all I/O is idle."""
        while True:
            await self._sleep(self._settings.status_interval)
            for worker in self.workers:
                logger.info("Agent status", **worker.status())

    async def run(self) -> None:
        """
        Run until cancelled.

        Raises:
            AgentConfigError: No entry has credentials.
        """
        asyncio.get_running_loop().set_exception_handler(self.handle_loop_exception)

        self.workers = self.build_workers()
        if not self.workers:
            raise AgentConfigError("No agent entry has both username and password")

        logger.info(
            "POS agent starting",
            backend_url=self._config.backend_url,
            agents=[w.label for w in self.workers],
        )

        tasks = [
            asyncio.create_task(self._supervise(worker), name=f"agent:{worker.label}")
            for worker in self.workers
        ]
        tasks.append(asyncio.create_task(self._status_loop(), name="agent:status"))
        try:
            await asyncio.gather(*tasks)
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            for worker in self.workers:
                await worker.client.aclose()

    async def check(self) -> list[CheckResult]:
        """Connectivity test of every entry: login, theater, printer config."""
        results = []
        for index, entry in enumerate(self._config.agents, start=1):
            label = entry.label or f"Agent-{index}"
            if not entry.has_credentials:
                results.append(CheckResult(label, ok=False, error="missing username or password"))
                continue

            client = self._client_factory(entry)
            try:
                await client.login()
                worker = TenantWorker(entry, client, settings=self._settings, printer_factory=self._printer_factory)
                theater_id = await worker.resolve_theater()
                if theater_id is None:
                    results.append(CheckResult(label, ok=False, error="no theater available"))
                    continue
                config = await client.get_printer_config(theater_id)
                printer = self._printer_factory(config, self._settings)
                results.append(CheckResult(label, ok=True, theater_id=theater_id, printer=printer.describe()))
            except (AuthenticationError, httpx.HTTPError, ValueError) as e:
                results.append(CheckResult(label, ok=False, error=str(e)))
            finally:
                await client.aclose()
        return results
