"""
Proto Mirror — CLI Entry Point

Usage:
    python -m proto_mirror.main refresh
    python -m proto_mirror.main status
"""

from __future__ import annotations

# Load .env file FIRST, before any other imports that might read env vars
from pathlib import Path
from dotenv import load_dotenv

# Find .env in project root
_project_root = Path(__file__).parent.parent
_env_file = _project_root / ".env"
if _env_file.exists():
    load_dotenv(_env_file)

from typing import Optional

import click

from .logging_config import setup_logging
from .cli.mirror import refresh_cmd, status_cmd

# Initialize logging
setup_logging()


def get_project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


@click.group()
@click.option(
    "--root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Repository root holding proto/ (default: this checkout)",
)
@click.pass_context
def cli(ctx: click.Context, root: Optional[Path]) -> None:
    """Proto Mirror — keep proto/ in sync with upstream definitions."""
    ctx.ensure_object(dict)
    ctx.obj["root"] = (root or get_project_root()).resolve()


cli.add_command(refresh_cmd)
cli.add_command(status_cmd)


if __name__ == "__main__":
    cli()
