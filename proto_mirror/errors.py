"""
Errors — Failure taxonomy for a mirror refresh.

Every step of a refresh raises one of these instead of returning a status
code. Nothing is caught inside the refresher: the first error aborts the
run and reaches the caller (the CLI turns it into exit status 1).

    MirrorError
    ├── FetchError        network / HTTP status / truncated download
    ├── ExtractionError   archive is not a valid ZIP or is unsafe
    ├── LayoutError       extracted tree is not shaped as expected
    └── FilesystemError   delete / create / move / filter failed

ConfigurationError is separate: it is raised before any step runs.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional


class MirrorError(Exception):
    """Base class for refresh failures."""

    kind = "mirror"

    def __init__(
        self,
        message: str,
        path: Optional[Path] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.path = path
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.path is not None:
            return f"{self.message}: {self.path}"
        return self.message


class FetchError(MirrorError):
    """Download failed: unreachable host, non-success status or short body."""

    kind = "network"


class ExtractionError(MirrorError):
    """Downloaded file could not be unpacked."""

    kind = "format"


class LayoutError(MirrorError):
    """Extracted archive does not contain the expected subtree."""

    kind = "layout"


class FilesystemError(MirrorError):
    """A local delete/create/move/filter operation failed."""

    kind = "filesystem"


class ConfigurationError(Exception):
    """Raised when mirror settings are missing or invalid."""
    pass
