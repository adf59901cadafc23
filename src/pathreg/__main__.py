from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path

from .config import Settings
from .runner import run


def main() -> None:
    p = argparse.ArgumentParser(prog="pathreg", description="pathreg: register RTSP relay paths over HTTP")
    p.add_argument("--config", type=Path, default=None, help="relay YAML config to edit (env: PATHREG_CONFIG)")
    p.add_argument("--host", default=None)
    p.add_argument("--port", type=int, default=None)
    p.add_argument("--rtsp-port", type=int, default=None, help="port used in locators; default: read from config")
    p.add_argument("--scheme", default=None)
    p.add_argument("--reload-interval", type=float, default=None)
    p.add_argument("--log-level", default=None)
    args = p.parse_args()

    settings = Settings.from_env().with_overrides(
        config_path=args.config,
        host=args.host,
        port=args.port,
        rtsp_port=args.rtsp_port,
        scheme=args.scheme,
        reload_interval_s=args.reload_interval,
        log_level=args.log_level,
    )
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    srv = run(settings)
    print(srv.url)

    # Block forever (so it behaves like a normal CLI server)
    while True:
        time.sleep(3600)


if __name__ == "__main__":
    main()
