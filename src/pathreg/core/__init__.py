from __future__ import annotations

from .entries import Entry, PathBlock, make_locator, validate_name, validate_source
from .errors import (
    AnchorNotFound,
    ConfigLoadError,
    DuplicateName,
    InvalidEntry,
    PersistError,
    RegistryError,
)
from .mirror import ConfigMirror, FileConfigMirror, MirrorWatcher
from .patcher import DEFAULT_ANCHOR, BlockPatcher
from .service import RegistryService

__all__ = [
    "Entry",
    "PathBlock",
    "make_locator",
    "validate_name",
    "validate_source",
    "RegistryError",
    "DuplicateName",
    "InvalidEntry",
    "AnchorNotFound",
    "PersistError",
    "ConfigLoadError",
    "ConfigMirror",
    "FileConfigMirror",
    "MirrorWatcher",
    "DEFAULT_ANCHOR",
    "BlockPatcher",
    "RegistryService",
]
