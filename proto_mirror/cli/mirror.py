"""
CLI mirror commands — refresh the proto/ mirror and report on it.

Usage:
    python -m proto_mirror.main refresh [--url URL] [--subdir NAME] [--extension EXT]
                                        [--keep-subdir-name] [--json]
    python -m proto_mirror.main status [--json]
"""

from __future__ import annotations

import json

import click

from ..errors import ConfigurationError, MirrorError


def _load_settings(**overrides):
    from ..mirror.config import MirrorSettings

    try:
        return MirrorSettings.from_env().with_overrides(**overrides)
    except ConfigurationError as e:
        click.secho(f"❌ Invalid configuration: {e}", fg="red", err=True)
        raise SystemExit(1)


@click.command("refresh")
@click.option("--url", default=None, help="Snapshot archive URL (default: googleapis master.zip)")
@click.option("--subdir", default=None, help="Archive subdirectory to mirror (default: google)")
@click.option("--extension", default=None, help="Keep only files ending in this (default: .proto)")
@click.option(
    "--keep-subdir-name",
    is_flag=True,
    help="Place the subtree at proto/<subdir>/ instead of directly in proto/",
)
@click.option("--json", "as_json", is_flag=True, help="Output the result as JSON")
@click.pass_context
def refresh_cmd(
    ctx: click.Context,
    url: str | None,
    subdir: str | None,
    extension: str | None,
    keep_subdir_name: bool,
    as_json: bool,
) -> None:
    """Wipe proto/ and repopulate it from the upstream snapshot archive."""
    from ..mirror.refresher import MirrorRefresher

    root = ctx.obj["root"]
    settings = _load_settings(
        archive_url=url,
        subdir=subdir,
        extension=extension,
        keep_subdir_name=keep_subdir_name or None,
    )

    if not as_json:
        click.echo(f"\n🔄 Refreshing {settings.output_dir}/ from {settings.archive_url}")

    try:
        result = MirrorRefresher(root, settings).refresh()
    except MirrorError as e:
        if as_json:
            click.echo(json.dumps({"ok": False, "kind": e.kind, "error": str(e)}, indent=2))
        click.secho(f"❌ Refresh failed ({e.kind}): {e}", fg="red", err=True)
        raise SystemExit(1)

    if as_json:
        click.echo(json.dumps({"ok": True, **result.to_dict()}, indent=2))
        return

    click.secho(
        f"✅ {len(result.kept)} '*{settings.extension}' file(s) in {settings.output_dir}/",
        fg="green",
    )
    click.echo(f"   Removed:  {result.removed} other file(s)")
    click.echo(f"   Archive:  {result.archive_bytes} bytes")
    click.echo(f"   Took:     {result.duration_seconds}s")


@click.command("status")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def status_cmd(ctx: click.Context, as_json: bool) -> None:
    """Show what the local mirror currently contains."""
    from ..mirror.status import inspect_mirror

    root = ctx.obj["root"]
    settings = _load_settings()
    status = inspect_mirror(root, settings)

    if as_json:
        click.echo(json.dumps(status.to_dict(), indent=2))
        return

    click.echo("\n📦 Proto Mirror Status\n")
    if not status.exists:
        click.echo(f"  {status.output_dir} does not exist.")
        click.echo("  Run: python -m proto_mirror.main refresh")
        click.echo()
        return

    click.echo(f"  Directory:  {status.output_dir}")
    click.echo(f"  Files:      {status.file_count} '*{settings.extension}'")
    if status.packages:
        click.echo(f"  Packages:   {', '.join(status.packages)}")

    if status.stray_files:
        click.secho(f"  ⚠️  {len(status.stray_files)} file(s) not matching '*{settings.extension}'", fg="yellow")
        for name in status.stray_files[:10]:
            click.echo(f"     - {name}")
    if status.work_dir_present:
        click.secho(
            f"  ⚠️  {settings.work_dir}/ still present — last refresh did not finish",
            fg="yellow",
        )
    if status.healthy:
        click.secho("  ✅ Mirror looks complete", fg="green")
    click.echo()
