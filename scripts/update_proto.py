#!/usr/bin/env python3
"""
Refresh proto/ from the upstream googleapis snapshot.

The repository root is the parent of this script's directory, wherever
the script is invoked from. A ``.env`` in that root is loaded first, the
same as for ``python -m proto_mirror.main``.

Usage:
    python scripts/update_proto.py
"""

from __future__ import annotations

import sys
from pathlib import Path

from dotenv import load_dotenv

REPO_ROOT = Path(__file__).resolve().parent.parent

# Allow running from a plain checkout without installing the package
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from proto_mirror.errors import ConfigurationError, MirrorError  # noqa: E402
from proto_mirror.logging_config import setup_logging  # noqa: E402
from proto_mirror.mirror.config import MirrorSettings  # noqa: E402
from proto_mirror.mirror.refresher import MirrorRefresher  # noqa: E402


def main() -> int:
    env_file = REPO_ROOT / ".env"
    if env_file.exists():
        load_dotenv(env_file)

    setup_logging()
    try:
        settings = MirrorSettings.from_env()
        MirrorRefresher(REPO_ROOT, settings).refresh()
    except ConfigurationError as e:
        print(f"update_proto: invalid configuration: {e}", file=sys.stderr)
        return 1
    except MirrorError as e:
        print(f"update_proto: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
