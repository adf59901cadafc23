from __future__ import annotations

from fastapi import FastAPI

from .api import create_api_app
from .config import Settings
from .core.mirror import FileConfigMirror
from .core.patcher import BlockPatcher
from .core.service import RegistryService


def build_service(settings: Settings) -> RegistryService:
    """Wire mirror + patcher for `settings.config_path` and load the first snapshot."""

    mirror = FileConfigMirror(settings.config_path)
    mirror.reload()
    patcher = BlockPatcher(settings.config_path, anchor_pattern=settings.anchor_pattern)
    return RegistryService(mirror, patcher, rtsp_port=settings.rtsp_port, scheme=settings.scheme)


def create_app(settings: Settings | None = None, *, service: RegistryService | None = None) -> FastAPI:
    if service is None:
        service = build_service(settings if settings is not None else Settings.from_env())
    return create_api_app(service)
