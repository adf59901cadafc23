"""Error taxonomy for the path registry.

Every error carries a stable response `code` so the HTTP layer can map it to the
`{code, msg, data}` envelope without knowing the concrete type.
"""

from __future__ import annotations

SUCCESS = 100000
PERSIST_FAILED = 100001
DUPLICATE_NAME = 100002
INVALID_REQUEST = 100003


class RegistryError(Exception):
    code: int = PERSIST_FAILED


class DuplicateName(RegistryError):
    code = DUPLICATE_NAME

    def __init__(self, name: str) -> None:
        super().__init__(f"Path '{name}' is already registered")
        self.name = name


class InvalidEntry(RegistryError, ValueError):
    code = INVALID_REQUEST


class AnchorNotFound(RegistryError):
    """The configuration has no line matching the insertion anchor."""

    code = PERSIST_FAILED

    def __init__(self, pattern: str) -> None:
        super().__init__(f"No line matching anchor {pattern!r} in configuration")
        self.pattern = pattern


class PersistError(RegistryError):
    """The configuration file could not be read or rewritten."""

    code = PERSIST_FAILED


class ConfigLoadError(RegistryError):
    code = PERSIST_FAILED
