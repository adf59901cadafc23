from __future__ import annotations

from .client import PathRegistryClient, PathRegistryClientError
from .config import Settings
from .core import (
    AnchorNotFound,
    BlockPatcher,
    ConfigMirror,
    DuplicateName,
    Entry,
    FileConfigMirror,
    InvalidEntry,
    MirrorWatcher,
    PersistError,
    RegistryError,
    RegistryService,
)
from .runner import PathRegistryServer, run

__all__ = [
    "run",
    "PathRegistryServer",
    "PathRegistryClient",
    "PathRegistryClientError",
    "Settings",
    "Entry",
    "ConfigMirror",
    "FileConfigMirror",
    "MirrorWatcher",
    "BlockPatcher",
    "RegistryService",
    "RegistryError",
    "DuplicateName",
    "InvalidEntry",
    "AnchorNotFound",
    "PersistError",
]
