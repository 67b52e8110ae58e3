"""
Provides the LocalTestServer class for serving an ASGI app in-process during tests
"""

import contextlib
import logging
import threading
import time
from typing import Callable

import uvicorn

logger = logging.getLogger(__name__)


class LocalTestServer(uvicorn.Server):
    """
    A subclass of Uvicorn's Server class that runs the server in a separate thread
    so that an app can be tested in-process. The server binds to an ephemeral port.
    """

    _thread: threading.Thread | None

    def __init__(self, app: Callable, host: str = "127.0.0.1", log_level: str = "warning"):
        uvconfig = uvicorn.Config(app, host=host, port=0, loop="asyncio", log_level=log_level)

        super().__init__(uvconfig)
        self.started = False
        self.should_exit = False
        self._thread = None

    @property
    def port(self) -> int:
        if not self.started or not self.servers:
            raise RuntimeError("Server not started")
        return self.servers[0].sockets[0].getsockname()[1]

    @property
    def url(self) -> str:
        host = self.config.host
        if ":" in host:
            host = f"[{host}]"
        return f"http://{host}:{self.port}"

    def run(self, sockets=None):
        # uvicorn calls sys.exit when startup fails (e.g. the host cannot be bound),
        # the thread then ends and start() reports the failure
        try:
            super().run(sockets=sockets)
        except SystemExit as e:
            logger.error("🛑 In-process server exited during startup (exit code %s)", e.code)

    def start(self, timeout: float = 10.0):
        """
        Start the server on a background thread and wait until it accepts connections
        """
        if self._thread is not None:
            raise RuntimeError("Server already started")

        self._thread = threading.Thread(target=self.run, name="local-test-server", daemon=True)
        self._thread.start()
        deadline = time.monotonic() + timeout
        while not self.started:
            if not self._thread.is_alive():
                self._thread = None
                raise RuntimeError("Server exited during startup")
            if time.monotonic() > deadline:
                self.stop()
                raise TimeoutError(f"Server did not start within {timeout}s")
            time.sleep(1e-3)
        logger.info("🚀 In-process server listening on %s", self.url)

    def stop(self):
        if self._thread is None:
            return
        self.should_exit = True
        self._thread.join()
        self._thread = None
        logger.info("🛑 In-process server stopped")

    @contextlib.contextmanager
    def run_in_thread(self, timeout: float = 10.0):
        """
        Run the server in a separate thread for the duration of the with block
        (based on https://github.com/encode/uvicorn/discussions/1103#discussioncomment-941726)
        """
        self.start(timeout=timeout)
        try:
            yield self
        finally:
            self.stop()
