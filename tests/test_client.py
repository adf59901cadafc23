from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from pathreg.client import PathRegistryClient, PathRegistryClientError
from pathreg.config import Settings
from pathreg.core.errors import DUPLICATE_NAME, INVALID_REQUEST
from pathreg.server import build_service, create_app


def _registry_client(tmp_path: Path) -> tuple[PathRegistryClient, Path]:
    path = tmp_path / "relay.yml"
    path.write_text("rtspAddress: :8554\npaths:\n", encoding="utf-8")
    service = build_service(Settings(config_path=path))
    http = TestClient(create_app(service=service), base_url="http://cams.local:9999")
    return PathRegistryClient("http://cams.local:9999", http=http), path


def test_client_add_list_delete(tmp_path: Path) -> None:
    client, path = _registry_client(tmp_path)

    assert client.add_path("cam1", "rtsp://1.2.3.4/live") == "rtsp://cams.local:8554/cam1"
    assert "  cam1:\n" in path.read_text()

    client.delete_path("cam1")
    client.delete_path("cam1")
    assert "cam1" not in path.read_text()
    assert client.list_paths() == []


def test_client_raises_with_code_on_failure(tmp_path: Path) -> None:
    client, _ = _registry_client(tmp_path)
    client.add_path("cam1", "rtsp://a")

    with pytest.raises(PathRegistryClientError) as exc:
        client.add_path("cam1", "rtsp://b")
    assert exc.value.code == DUPLICATE_NAME
    assert exc.value.data == {"cam1": "rtsp://cams.local:8554/cam1"}

    with pytest.raises(PathRegistryClientError) as exc:
        client.add_path("bad name", "rtsp://b")
    assert exc.value.code == INVALID_REQUEST
