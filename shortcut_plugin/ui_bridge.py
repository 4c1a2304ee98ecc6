"""WebSocket channel between the plugin UI process and the message router."""
from __future__ import annotations

import asyncio
import json
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional

import websockets

_LOGGER = logging.getLogger("ShortcutActions.Bridge")

MessageHandler = Callable[[Dict[str, Any]], Awaitable[Any]]
LogFunc = Callable[[str], None]


@dataclass
class UiBridge:
    """Background asyncio server relaying UI messages to ``handle_message``.

    Inbound frames are JSON objects handled strictly one at a time, in arrival
    order. :meth:`publish` may be called from any thread and sends a reply to
    every connected UI client.
    """

    handle_message: MessageHandler
    host: str = "127.0.0.1"
    port: int = 0  # 0 => auto assign
    log: LogFunc = lambda _msg: None  # noqa: E731 - simple default noop logger
    _loop: Optional[asyncio.AbstractEventLoop] = field(default=None, init=False)
    _thread: Optional[threading.Thread] = field(default=None, init=False)
    _ready: threading.Event = field(default_factory=threading.Event, init=False)
    _stopped: Optional[asyncio.Event] = field(default=None, init=False)
    _handling: Optional[asyncio.Lock] = field(default=None, init=False)
    _clients: set = field(default_factory=set, init=False)
    _tasks: set = field(default_factory=set, init=False)
    _error: Optional[BaseException] = field(default=None, init=False)

    @property
    def running(self) -> bool:
        return bool(self._thread and self._thread.is_alive() and self._ready.is_set())

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._ready.clear()
        self._error = None
        self._thread = threading.Thread(target=self._run, name="ShortcutActions-UiBridge", daemon=True)
        self._thread.start()
        self._ready.wait(timeout=5.0)
        if self._error is not None:
            raise RuntimeError(f"UI bridge failed to start: {self._error}") from self._error
        if not self._ready.is_set():
            raise RuntimeError("UI bridge failed to start in time")

    def stop(self) -> None:
        loop = self._loop
        if loop is not None and loop.is_running() and self._stopped is not None:
            loop.call_soon_threadsafe(self._stopped.set)
        if self._thread:
            self._thread.join(timeout=5.0)
            if self._thread.is_alive():
                _LOGGER.warning("UI bridge thread did not exit cleanly within %.1fs", 5.0)
        self._loop = None
        self._thread = None
        self._clients.clear()

    def publish(self, payload: Dict[str, Any]) -> None:
        try:
            message = json.dumps(payload, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            self.log(f"Failed to serialise UI message: {exc}")
            return
        loop = self._loop
        if loop is None or not loop.is_running():
            _LOGGER.debug("UI bridge not running; dropping %s", payload.get("type"))
            return
        if self._thread is threading.current_thread():
            task = loop.create_task(self._broadcast(message))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        else:
            asyncio.run_coroutine_threadsafe(self._broadcast(message), loop)

    def call(self, func: Callable[[], Awaitable[Any]], timeout: float = 30.0) -> Any:
        """Run ``func()`` on the bridge loop, serialised with UI messages, and wait for it."""
        loop = self._loop
        if loop is None or not loop.is_running():
            raise RuntimeError("UI bridge is not running")
        if self._thread is threading.current_thread():
            raise RuntimeError("UiBridge.call cannot be used from the bridge thread")
        future = asyncio.run_coroutine_threadsafe(self._run_serialised(func), loop)
        return future.result(timeout)

    # Internal helpers -----------------------------------------------------

    def _run(self) -> None:
        loop = asyncio.new_event_loop()
        self._loop = loop
        asyncio.set_event_loop(loop)
        try:
            loop.run_until_complete(self._server_main())
        except Exception as exc:
            self._error = exc
            _LOGGER.error("UI bridge stopped with an error: %s", exc, exc_info=exc)
            self._ready.set()
        finally:
            pending = asyncio.all_tasks(loop)
            for task in pending:
                task.cancel()
            if pending:
                loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
            loop.run_until_complete(loop.shutdown_asyncgens())
            loop.close()

    async def _server_main(self) -> None:
        self._stopped = asyncio.Event()
        self._handling = asyncio.Lock()
        async with websockets.serve(self._handle_client, self.host, self.port) as server:
            sockets: Iterable[Any] = server.sockets or []
            for sock in sockets:
                self.port = sock.getsockname()[1]
                break
            self._ready.set()
            self.log(f"UI bridge listening on {self.host}:{self.port}")
            await self._stopped.wait()

    async def _handle_client(self, ws) -> None:
        self._clients.add(ws)
        self.log(f"UI connected ({len(self._clients)} active)")
        try:
            async for raw in ws:
                await self._handle_frame(raw)
        except websockets.ConnectionClosed:
            pass
        finally:
            self._clients.discard(ws)
            self.log(f"UI disconnected ({len(self._clients)} active)")

    async def _handle_frame(self, raw: Any) -> None:
        try:
            message = json.loads(raw)
        except (TypeError, ValueError) as exc:
            _LOGGER.warning("Dropping malformed UI frame: %s", exc)
            return
        if not isinstance(message, dict):
            _LOGGER.warning("Dropping UI frame that is not a JSON object")
            return
        try:
            await self._run_serialised(lambda: self.handle_message(message))
        except Exception as exc:
            _LOGGER.error("UI message %r failed: %s", message.get("type"), exc, exc_info=exc)

    async def _run_serialised(self, func: Callable[[], Awaitable[Any]]) -> Any:
        assert self._handling is not None
        async with self._handling:
            return await func()

    async def _broadcast(self, message: str) -> None:
        if not self._clients:
            return
        dead = []
        for ws in self._clients.copy():
            try:
                await ws.send(message)
            except Exception:
                dead.append(ws)
        for ws in dead:
            self._clients.discard(ws)
