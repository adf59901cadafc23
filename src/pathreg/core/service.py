from __future__ import annotations

import logging
import threading

from .entries import DEFAULT_RTSP_PORT, DEFAULT_SCHEME, Entry, PathBlock, make_locator, validate_name, validate_source
from .errors import AnchorNotFound, DuplicateName, PersistError
from .mirror import ConfigMirror
from .patcher import BlockPatcher

logger = logging.getLogger(__name__)


class RegistryService:
    """Register, list and remove relay paths.

    Add and delete run inside one lock so that the existence check and the file
    rewrite are a single step; two writers can never interleave their line edits.
    List reads only the mirror and does not take the lock.

    The mirror is refreshed out of band and may not yet show a path this service
    just wrote. For that reason `add` also asks the patcher whether the file
    already contains the name before inserting.
    """

    def __init__(
        self,
        mirror: ConfigMirror,
        patcher: BlockPatcher,
        *,
        rtsp_port: int | None = None,
        scheme: str = DEFAULT_SCHEME,
    ) -> None:
        self.mirror = mirror
        self.patcher = patcher
        self.scheme = scheme
        self._rtsp_port = rtsp_port
        self._lock = threading.Lock()

    def rtsp_port(self) -> int:
        if self._rtsp_port is not None:
            return int(self._rtsp_port)
        derived = getattr(self.mirror, "rtsp_port", None)
        if callable(derived):
            port = derived()
            if port is not None:
                return int(port)
        return DEFAULT_RTSP_PORT

    def locator(self, host: str, name: str) -> str:
        return make_locator(host, self.rtsp_port(), name, scheme=self.scheme)

    def add(self, name: str, source: str, host: str) -> Entry:
        name = validate_name(name)
        source = validate_source(source)
        entry = Entry(name=name, source=source, locator=self.locator(host, name))

        with self._lock:
            if self.mirror.exists(name) or self.patcher.has_named_block(name):
                logger.warning("Refusing to add %r: name already registered", name)
                raise DuplicateName(name)
            try:
                self.patcher.insert_after_anchor(PathBlock(name=name, source=source))
            except AnchorNotFound as e:
                logger.warning("Cannot add %r: %s", name, e)
                raise
            except PersistError:
                logger.exception("Failed to persist path %r", name)
                raise

        logger.info("Added path %r -> %s", name, source)
        return entry

    def list(self, host: str) -> list[Entry]:
        return [Entry(name=name, source=source, locator=self.locator(host, name)) for name, source in self.mirror.list()]

    def delete(self, name: str) -> bool:
        with self._lock:
            try:
                removed = self.patcher.delete_named_block(name)
            except PersistError:
                logger.exception("Failed to delete path %r", name)
                raise

        if removed:
            logger.info("Deleted path %r", name)
        else:
            logger.debug("Delete of unknown path %r ignored", name)
        return removed
