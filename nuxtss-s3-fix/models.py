"""
Nuxt S3 Fix - Models
Layouts, statuses, key triples and planned actions shared by every module.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class Layout(str, Enum):
    """Publishing layout, either desired (target) or observed for a route."""
    SINGLE = "single"
    DOUBLE = "double"
    FLAT = "flat"
    INDEX = "index"
    MIXED = "mixed"
    UNKNOWN = "unknown"


class CommandType(str, Enum):
    COPY = "copy"
    REMOVE = "remove"


class CommandStatus(str, Enum):
    """Reason code attached to every planned action."""
    GENERATED = "generated"
    TARGET_EXISTS = "target-exists"
    LAYOUT_OPTIMIZED = "layout-optimized"
    NO_SOURCE = "no-source"
    NO_TARGET = "no-target"
    DUPLICATE_SOURCES = "duplicate-sources"
    DUPLICATE_TARGETS = "duplicate-targets"
    ERROR_KEYS_UNDEFINED = "error-keys-undefined"
    ERROR = "error"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class KeyTriple:
    """
    The three candidate object keys for one sitemap route.

    same:  route without the leading slash ("about/team")
    flat:  same + ".html"
    index: same + "/index.html"
    """
    route: Optional[str]
    same: Optional[str]
    flat: Optional[str]
    index: Optional[str]

    @classmethod
    def from_route(cls, route: str) -> "KeyTriple":
        """Derive the triple for a route ("/about/team" -> "about/team", ...)."""
        same = route[1:] if route.startswith('/') else route
        return cls(route=route, same=same, flat=f"{same}.html", index=f"{same}/index.html")

    def keys(self) -> Tuple[Optional[str], Optional[str], Optional[str]]:
        """Keys in fixed order: same, flat, index."""
        return (self.same, self.flat, self.index)

    def is_complete(self) -> bool:
        return all(self.keys())


@dataclass(frozen=True)
class Action:
    """
    A single planned COPY or REMOVE.

    Only actions with status GENERATED are executable; every other status
    is informational and lands in the report's skipped lists.

    target_layout is the layout the run converges on. source_layout is the
    layout family of the key read from (COPY) or deleted (REMOVE).
    """
    command_type: CommandType
    status: CommandStatus
    route: Optional[str] = None
    target_key: Optional[str] = None
    source_key: Optional[str] = None
    target_layout: Layout = Layout.UNKNOWN
    source_layout: Layout = Layout.UNKNOWN
    command: Optional[str] = None  # Rendered only for GENERATED

    @property
    def is_generated(self) -> bool:
        return self.status == CommandStatus.GENERATED

    @property
    def is_source(self) -> bool:
        return bool(self.source_key)

    @property
    def is_target(self) -> bool:
        return bool(self.target_key)

    def describe(self) -> str:
        """One-line human description used in logs."""
        op = self.command_type.value.upper()
        if self.command_type == CommandType.COPY and self.source_key:
            return f"{op} {self.source_key} -> {self.target_key} [{self.status.value}]"
        return f"{op} {self.target_key or self.route} [{self.status.value}]"
