from __future__ import annotations

import logging
import os
import re
import shutil
import tempfile
from pathlib import Path

from .entries import PathBlock
from .errors import AnchorNotFound, PersistError

logger = logging.getLogger(__name__)

DEFAULT_ANCHOR = r"^paths:\s*(#.*)?$"


def _strip_newline(line: str) -> str:
    return line.rstrip("\r\n")


def _newline_of(line: str) -> str:
    if line.endswith("\r\n"):
        return "\r\n"
    return "\n"


class BlockPatcher:
    """Insert and remove fixed-shape path blocks in a line-structured config file.

    The file is never parsed as a whole. New blocks go directly after the first
    line matching the anchor pattern; a block is removed by finding its name line
    below the anchor and dropping that line and the `PathBlock.LINE_COUNT - 1`
    lines after it.

    Each write goes to a temporary file in the same directory which then replaces
    the config file with `os.replace`, so readers (the relay, the mirror) observe
    either the old content or the new content, never a partial file.

    The patcher does no locking of its own. Callers that interleave writes must
    serialize them (see `RegistryService`).
    """

    def __init__(self, path: str | Path, *, anchor_pattern: str = DEFAULT_ANCHOR) -> None:
        self.path = Path(path)
        self.anchor_pattern = anchor_pattern
        self._anchor = re.compile(anchor_pattern)

    def read_text(self) -> str:
        try:
            with open(self.path, "r", encoding="utf-8", newline="") as f:
                return f.read()
        except OSError as e:
            raise PersistError(f"Cannot read {self.path}: {e}") from e

    def _read_lines(self) -> list[str]:
        # Split on "\n" only; str.splitlines would also break at \x0c, \x85 or \u2028
        # inside a value and throw off the block line count.
        parts = self.read_text().split("\n")
        lines = [part + "\n" for part in parts[:-1]]
        if parts[-1]:
            lines.append(parts[-1])
        return lines

    def _find_anchor(self, lines: list[str]) -> int | None:
        for i, line in enumerate(lines):
            if self._anchor.match(_strip_newline(line)):
                return i
        return None

    def _find_name_line(self, lines: list[str], name: str) -> int | None:
        anchor = self._find_anchor(lines)
        if anchor is None:
            return None
        target = PathBlock.name_line(name)
        for i in range(anchor + 1, len(lines)):
            # First match wins; duplicates further down are left alone.
            if lines[i].rstrip() == target:
                return i
        return None

    def _write_atomic(self, text: str) -> None:
        # Replace the file a symlink points at, not the link itself.
        target = self.path.resolve()
        try:
            fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=str(target.parent))
        except OSError as e:
            raise PersistError(f"Cannot create a temporary file next to {target}: {e}") from e
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            shutil.copymode(target, tmp_name)
            os.replace(tmp_name, target)
        except BaseException as e:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            if isinstance(e, OSError):
                raise PersistError(f"Cannot rewrite {self.path}: {e}") from e
            raise

    def has_named_block(self, name: str) -> bool:
        return self._find_name_line(self._read_lines(), name) is not None

    def insert_after_anchor(self, block: PathBlock) -> None:
        lines = self._read_lines()
        anchor = self._find_anchor(lines)
        if anchor is None:
            raise AnchorNotFound(self.anchor_pattern)

        newline = _newline_of(lines[anchor])
        if not lines[anchor].endswith(("\n", "\r")):
            # Anchor is the last line and has no terminator.
            lines[anchor] += newline

        lines[anchor + 1 : anchor + 1] = block.lines(newline)
        self._write_atomic("".join(lines))
        logger.debug("Inserted block %r after line %d of %s", block.name, anchor + 1, self.path)

    def delete_named_block(self, name: str) -> bool:
        """Remove the block for `name`.

        Returns True when a block was removed and False when there was nothing to
        remove. A missing block is not an error.
        """

        lines = self._read_lines()
        start = self._find_name_line(lines, name)
        if start is None:
            return False

        end = min(start + PathBlock.LINE_COUNT, len(lines))
        del lines[start:end]
        self._write_atomic("".join(lines))
        logger.debug("Removed lines %d-%d (%r) from %s", start + 1, end, name, self.path)
        return True
