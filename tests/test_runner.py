from __future__ import annotations

from pathlib import Path


def test_run_serves_registry_over_http(tmp_path: Path) -> None:
    """End to end: real uvicorn server, real HTTP, watcher-driven mirror reload."""

    import time

    from pathreg import Settings, run

    path = tmp_path / "relay.yml"
    path.write_text("rtspAddress: :8554\npaths:\n", encoding="utf-8")

    srv = run(Settings(config_path=path, port=0, reload_interval_s=0.05))
    try:
        client = srv.client()
        assert client.add_path("cam1", "rtsp://1.2.3.4/live") == f"rtsp://{srv.host}:8554/cam1"

        deadline = time.monotonic() + 5.0
        listed: list[dict[str, str]] = []
        while time.monotonic() < deadline:
            listed = client.list_paths()
            if listed:
                break
            time.sleep(0.05)

        assert listed == [
            {"name": "cam1", "sourceurl": "rtsp://1.2.3.4/live", "targeturl": f"rtsp://{srv.host}:8554/cam1"}
        ]

        client.delete_path("cam1")
        assert path.read_text() == "rtspAddress: :8554\npaths:\n"
    finally:
        srv.close()
