from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Any, Protocol

import yaml

from .errors import ConfigLoadError

logger = logging.getLogger(__name__)


class ConfigMirror(Protocol):
    """Read-only view of the paths the relay configuration currently declares.

    Implementations may lag behind the file on disk; a name written a moment ago
    can still be reported as missing until the next reload.
    """

    def exists(self, name: str) -> bool: ...

    def list(self) -> list[tuple[str, str]]: ...


def _parse_rtsp_port(data: dict[str, Any]) -> int | None:
    address = data.get("rtspAddress")
    if isinstance(address, str) and ":" in address:
        tail = address.rsplit(":", 1)[1]
        if tail.isdigit():
            return int(tail)
    port = data.get("rtspPort")
    if isinstance(port, int) and not isinstance(port, bool):
        return port
    if isinstance(port, str) and port.isdigit():
        return int(port)
    return None


def _parse_paths(data: dict[str, Any]) -> dict[str, str]:
    paths = data.get("paths")
    if not isinstance(paths, dict):
        return {}
    out: dict[str, str] = {}
    for name, conf in paths.items():
        source = ""
        if isinstance(conf, dict) and conf.get("source") is not None:
            source = str(conf["source"])
        out[str(name)] = source
    return out


class FileConfigMirror:
    """`ConfigMirror` backed by the relay's YAML file.

    The snapshot only changes on `reload()` / `refresh_if_stale()`. Queries never
    touch the disk.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.RLock()
        self._paths: dict[str, str] = {}
        self._rtsp_port: int | None = None
        self._signature: tuple[int, int] | None = None

    def _stat_signature(self) -> tuple[int, int] | None:
        try:
            st = os.stat(self.path)
        except FileNotFoundError:
            return None
        return (st.st_mtime_ns, st.st_size)

    def reload(self) -> None:
        signature = self._stat_signature()
        if signature is None:
            data: Any = None
        else:
            try:
                with open(self.path, "r", encoding="utf-8") as f:
                    data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                # Remember the broken version so the watcher does not retry it every tick.
                with self._lock:
                    self._signature = signature
                raise ConfigLoadError(f"Invalid YAML in {self.path}: {e}") from e
            except OSError as e:
                raise ConfigLoadError(f"Cannot read {self.path}: {e}") from e

        if not isinstance(data, dict):
            data = {}

        paths = _parse_paths(data)
        rtsp_port = _parse_rtsp_port(data)
        with self._lock:
            self._paths = paths
            self._rtsp_port = rtsp_port
            self._signature = signature
        logger.debug("Loaded %d paths from %s", len(paths), self.path)

    def refresh_if_stale(self) -> bool:
        """Reload when the file changed since the last load. Returns True if reloaded."""

        signature = self._stat_signature()
        with self._lock:
            if signature == self._signature:
                return False
        self.reload()
        return True

    def exists(self, name: str) -> bool:
        with self._lock:
            return name in self._paths

    def list(self) -> list[tuple[str, str]]:
        with self._lock:
            return list(self._paths.items())

    def rtsp_port(self) -> int | None:
        with self._lock:
            return self._rtsp_port


class MirrorWatcher:
    """Polls a `FileConfigMirror` in a daemon thread and reloads it on change."""

    def __init__(self, mirror: FileConfigMirror, *, interval_s: float = 2.0) -> None:
        if interval_s <= 0:
            raise ValueError("interval_s must be > 0")
        self.mirror = mirror
        self.interval_s = float(interval_s)
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name="pathreg-mirror-watcher", daemon=True)
        self._thread.start()

    def stop(self, timeout_s: float = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout_s)
            self._thread = None

    def _run(self) -> None:
        while not self._stop.wait(self.interval_s):
            try:
                if self.mirror.refresh_if_stale():
                    logger.info("Reloaded paths from %s", self.mirror.path)
            except ConfigLoadError as e:
                # Keep serving the previous snapshot until the file is valid again.
                logger.warning("Mirror reload failed: %s", e)
