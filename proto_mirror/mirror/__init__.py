"""
Mirror — Refresh the local proto/ tree from an upstream snapshot archive.

The refresh is a straight pipeline (reset → fetch → extract → select →
filter → cleanup). Each stage lives in its own module so it can be tested
against a temporary root without touching the network.
"""

from .config import MirrorSettings
from .refresher import MirrorRefresher, RefreshResult, refresh
from .status import MirrorStatus, inspect_mirror

__all__ = [
    "MirrorSettings",
    "MirrorRefresher",
    "RefreshResult",
    "MirrorStatus",
    "inspect_mirror",
    "refresh",
]
