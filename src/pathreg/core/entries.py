from __future__ import annotations

import re
from dataclasses import dataclass

import yaml

from .errors import InvalidEntry

NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._~/-]*$")
DEFAULT_SCHEME = "rtsp"
DEFAULT_RTSP_PORT = 8554

# Indentation the relay expects for a path key under `paths:` and for its fields.
KEY_INDENT = "  "
FIELD_INDENT = "    "
ON_DEMAND_LINE = f"{FIELD_INDENT}sourceOnDemand: yes"


@dataclass(frozen=True)
class Entry:
    name: str
    source: str
    locator: str

    def to_dict(self) -> dict[str, str]:
        # Field names match what existing callers of the relay manager already parse.
        return {"name": self.name, "sourceurl": self.source, "targeturl": self.locator}


def _reads_back(line: str, key: str, value: str | None = None) -> bool:
    """True when `line` loads as a one-key YAML mapping holding exactly `key` (and `value`)."""

    try:
        data = yaml.safe_load(line)
    except yaml.YAMLError:
        return False
    if not isinstance(data, dict) or list(data) != [key]:
        return False
    return value is None or data[key] == value


def validate_name(name: object) -> str:
    if not isinstance(name, str) or not name:
        raise InvalidEntry("Missing path name")
    if not NAME_RE.fullmatch(name):
        raise InvalidEntry(f"Invalid path name {name!r}: use letters, digits and . _ ~ / -")
    # Keys such as `on`, `null` or `010` load as bool, None or int, not as the name.
    if not _reads_back(f"{name}: x", name):
        raise InvalidEntry(f"Invalid path name {name!r}: YAML would not read it back as a string")
    return name


def validate_source(source: object) -> str:
    if not isinstance(source, str) or not source.strip():
        raise InvalidEntry("Missing source url")
    source = source.strip()
    # splitlines also breaks on \u2028, \x85, \x0c and friends.
    if len(source.splitlines()) != 1 or "\n" in source or "\r" in source:
        raise InvalidEntry("Source url must be a single line")
    if not _reads_back(f"source: {source}", "source", source):
        raise InvalidEntry(f"Invalid source url {source!r}: YAML would not read it back unchanged")
    return source


@dataclass(frozen=True)
class PathBlock:
    """The serialized form of one registered path.

    Always exactly three physical lines:

        <KEY_INDENT><name>:
        <FIELD_INDENT>source: <source>
        <FIELD_INDENT>sourceOnDemand: yes
    """

    name: str
    source: str

    LINE_COUNT = 3

    @staticmethod
    def name_line(name: str) -> str:
        return f"{KEY_INDENT}{name}:"

    def lines(self, newline: str = "\n") -> list[str]:
        return [
            self.name_line(self.name) + newline,
            f"{FIELD_INDENT}source: {self.source}{newline}",
            ON_DEMAND_LINE + newline,
        ]

    def render(self, newline: str = "\n") -> str:
        return "".join(self.lines(newline))


def format_host(host: str) -> str:
    """Strip any port from a request host; keep IPv6 literals bracketed."""

    host = host.strip()
    if host.startswith("["):
        end = host.find("]")
        return host[: end + 1] if end != -1 else host
    if host.count(":") > 1:
        # Bare IPv6 literal.
        return f"[{host}]"
    return host.split(":", 1)[0]


def make_locator(host: str, port: int, name: str, *, scheme: str = DEFAULT_SCHEME) -> str:
    return f"{scheme}://{format_host(host)}:{int(port)}/{name}"
