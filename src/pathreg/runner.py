from __future__ import annotations

import contextlib
import logging
import socket
import threading
import time
from dataclasses import dataclass, field

import uvicorn

from .client import PathRegistryClient
from .config import Settings
from .core.mirror import FileConfigMirror, MirrorWatcher
from .core.service import RegistryService
from .server import build_service, create_app

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PathRegistryServer:
    host: str
    port: int
    url: str
    service: RegistryService
    _server: uvicorn.Server = field(repr=False, compare=False)
    _thread: threading.Thread = field(repr=False, compare=False)
    _watcher: MirrorWatcher | None = field(default=None, repr=False, compare=False)

    def client(self) -> PathRegistryClient:
        return PathRegistryClient(self.url.rstrip("/"))

    def close(self, *, timeout_s: float = 5.0) -> None:
        if self._watcher is not None:
            self._watcher.stop(timeout_s=timeout_s)
        self._server.should_exit = True
        self._thread.join(timeout=timeout_s)


def _find_free_port(host: str) -> int:
    with contextlib.closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind((host, 0))
        return int(s.getsockname()[1])


def run(
    settings: Settings | None = None,
    *,
    start_watcher: bool = True,
    access_log: bool = False,
    startup_timeout_s: float = 5.0,
) -> PathRegistryServer:
    """Start the registry HTTP server in a background thread.

    - `settings.port == 0` picks a free port.
    - When `start_watcher` is set, the mirror is reloaded from disk every
      `settings.reload_interval_s` seconds once the file changes. Without it the
      mirror only reflects the file as it was at startup.
    """

    settings = settings if settings is not None else Settings.from_env()
    host = settings.host
    port = settings.port or _find_free_port(host)

    service = build_service(settings)
    app = create_app(service=service)

    watcher: MirrorWatcher | None = None
    if start_watcher and isinstance(service.mirror, FileConfigMirror):
        watcher = MirrorWatcher(service.mirror, interval_s=settings.reload_interval_s)
        watcher.start()

    config = uvicorn.Config(app, host=host, port=port, log_level=settings.log_level, access_log=access_log)
    server = uvicorn.Server(config)

    thread = threading.Thread(target=server.run, name="pathreg-http", daemon=True)
    thread.start()

    deadline = time.monotonic() + startup_timeout_s
    while not server.started and thread.is_alive() and time.monotonic() < deadline:
        time.sleep(0.01)
    if not server.started:
        if watcher is not None:
            watcher.stop()
        raise RuntimeError(f"pathreg server did not start on {host}:{port}")

    url = f"http://{host}:{port}/"
    logger.info("Path registry listening on %s (config: %s)", url, settings.config_path)
    return PathRegistryServer(host=host, port=port, url=url, service=service, _server=server, _thread=thread, _watcher=watcher)
