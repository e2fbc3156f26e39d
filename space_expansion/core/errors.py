from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Optional


@dataclass(frozen=True)
class ExpansionError(Exception):
    """Base error envelope. Carries a stable code plus the config location it refers to."""

    source: ClassVar[str] = "engine"

    code: str
    message: str
    file: Optional[str] = None
    path: Optional[str] = None

    def __str__(self) -> str:
        loc = ":".join(p for p in (self.file, self.path) if p) or "<config>"
        return f"{loc}: {self.code}: {self.message}"

    def sort_key(self) -> tuple[str, str, str]:
        return (self.file or "", self.path or "", self.code)

    def to_item(self) -> dict[str, Any]:
        """JSON-ready record used by the CLI's --format json output."""
        return {
            "code": self.code,
            "message": self.message,
            "file": self.file,
            "path": self.path,
            "severity": "error",
            "source": self.source,
        }


class ConfigLoadError(ExpansionError):
    """The config file could not be read or parsed."""

    source: ClassVar[str] = "load"


class ConfigurationError(ExpansionError):
    """A config value, engine parameter or mode is invalid."""

    source: ClassVar[str] = "validate"
