"""Root CLI group for cmsctl with global flags and command registration."""

from __future__ import annotations

import click

from cmsctl import __version__
from cmsctl.commands import register_commands
from cmsctl.commands._context import AppContext
from cmsctl.config.settings import CmsSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="cmsctl")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging and timing spans.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option("--actor", default=None, help="Acting actor id (default: seeded administrator).")
@click.option("--role", "roles", multiple=True, help="Act as this assigned role only (repeatable).")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    actor: str | None,
    roles: tuple[str, ...],
) -> None:
    """cmsctl — content type schemas, rules and permissions."""
    settings = CmsSettings.from_cli(
        config_path=config_path,
        json_output=json_output or None,
        quiet=quiet or None,
        verbose=verbose or None,
        log_json=log_json or None,
        actor=actor,
        roles=roles or None,
    )
    app = AppContext(settings)
    ctx.obj = app
    ctx.call_on_close(app.close)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
