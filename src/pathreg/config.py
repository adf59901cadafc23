from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping

from .core.entries import DEFAULT_SCHEME
from .core.patcher import DEFAULT_ANCHOR

ENV_PREFIX = "PATHREG_"


@dataclass(frozen=True)
class Settings:
    """Runtime settings for one registry server.

    `rtsp_port=None` means "use the port declared in the relay config" (falling
    back to 8554 when it declares none).
    """

    config_path: Path = Path("rtsp-simple-server.yml")
    host: str = "127.0.0.1"
    port: int = 9999
    rtsp_port: int | None = None
    scheme: str = DEFAULT_SCHEME
    anchor_pattern: str = DEFAULT_ANCHOR
    reload_interval_s: float = 2.0
    log_level: str = "info"

    def __post_init__(self) -> None:
        if not 0 <= int(self.port) <= 65535:
            raise ValueError(f"port must be in 0..65535, got {self.port}")
        if self.rtsp_port is not None and not 0 < int(self.rtsp_port) <= 65535:
            raise ValueError(f"rtsp_port must be in 1..65535, got {self.rtsp_port}")
        if self.reload_interval_s <= 0:
            raise ValueError("reload_interval_s must be > 0")
        if not self.scheme:
            raise ValueError("scheme cannot be empty")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ
        kwargs: dict[str, Any] = {}

        def get(key: str) -> str | None:
            value = env.get(ENV_PREFIX + key)
            if value is None or not value.strip():
                return None
            return value.strip()

        config_path = get("CONFIG")
        if config_path is not None:
            kwargs["config_path"] = Path(config_path)
        host = get("HOST")
        if host is not None:
            kwargs["host"] = host
        port = get("PORT")
        if port is not None:
            kwargs["port"] = _parse_int("PORT", port)
        rtsp_port = get("RTSP_PORT")
        if rtsp_port is not None:
            kwargs["rtsp_port"] = _parse_int("RTSP_PORT", rtsp_port)
        scheme = get("SCHEME")
        if scheme is not None:
            kwargs["scheme"] = scheme
        interval = get("RELOAD_INTERVAL")
        if interval is not None:
            try:
                kwargs["reload_interval_s"] = float(interval)
            except ValueError:
                raise ValueError(f"{ENV_PREFIX}RELOAD_INTERVAL must be a number, got {interval!r}")
        log_level = get("LOG_LEVEL")
        if log_level is not None:
            kwargs["log_level"] = log_level.lower()

        return cls(**kwargs)

    def with_overrides(self, **overrides: Any) -> "Settings":
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def _parse_int(key: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{key} must be an integer, got {value!r}")
