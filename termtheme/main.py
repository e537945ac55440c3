"""
termtheme v1.0.0: switch terminal emulator color themes.

Command: termtheme [apply NAME | pick | list | current | config]
"""

import logging
import sys

import click
from rich.console import Console
from rich.markup import escape

from . import __version__
from .applier import current_theme
from .config import CONFIG_FIELDS, Config
from .errors import ThemeSwitchError
from .locator import list_themes
from .logger import setup_logger
from .switcher import switch_theme
from .ui import THEME_DIM, THEME_MATCH, build_banner, render_config_panel, render_error

console = Console()
err_console = Console(stderr=True)
logger = logging.getLogger(__name__)


def _fail(exc: ThemeSwitchError):
    render_error(err_console, exc.kind, str(exc))
    sys.exit(exc.exit_code)


@click.group(invoke_without_command=True)
@click.option("--config-root", default=None, help="Emulator config directory")
@click.option("--config-file", default=None, help="Emulator config file")
@click.option("--themes-dir", default=None, help="Directory holding theme files")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.version_option(__version__, prog_name="termtheme")
@click.pass_context
def cli(ctx, config_root, config_file, themes_dir, verbose):
    """termtheme: switch terminal emulator color themes."""
    config = Config.load()
    if config_root:
        config.config_root = config_root
    if config_file:
        config.config_file = config_file
    if themes_dir:
        config.themes_dir = themes_dir
    if verbose:
        config.verbose = True

    setup_logger("termtheme", verbose=config.verbose, log_file=config.log_file or None)
    ctx.obj = config

    if ctx.invoked_subcommand is None:
        ctx.invoke(pick)


@cli.command()
@click.argument("name")
@click.option("--backup/--no-backup", default=None,
              help="Keep a copy of the original config before the first switch")
@click.pass_obj
def apply(config, name, backup):
    """Switch to the theme NAME."""
    try:
        result = switch_theme(
            name,
            config.resolved_themes_dir(),
            config.resolved_config_file(),
            backup=config.backup if backup is None else backup,
        )
    except ThemeSwitchError as e:
        _fail(e)
    _report(result)


def _report(result):
    if result.changed:
        console.print(
            f"[{THEME_MATCH}]✓[/{THEME_MATCH}] Switched to [bold]{escape(result.theme_name)}[/bold] "
            f"[{THEME_DIM}]({escape(str(result.theme_path))})[/{THEME_DIM}]",
            highlight=False,
            soft_wrap=True,
        )
    else:
        console.print(f"Already using [bold]{escape(result.theme_name)}[/bold]",
                      highlight=False, soft_wrap=True)
    if result.backup_path:
        backup = escape(str(result.backup_path))
        console.print(f"[{THEME_DIM}]Original config saved to {backup}[/{THEME_DIM}]",
                      highlight=False, soft_wrap=True)


def _current_or_none(config):
    try:
        return current_theme(config.resolved_config_file(), config.resolved_themes_dir())
    except ThemeSwitchError as e:
        logger.info("Current theme unknown: %s", e)
        return None


@cli.command()
@click.option("--picker", default=None, help="'builtin' or a command such as fzf")
@click.option("--backup/--no-backup", default=None,
              help="Keep a copy of the original config before the first switch")
@click.pass_obj
def pick(config, picker, backup):
    """Choose a theme interactively, then apply it."""
    from .picker import pick_theme

    try:
        entries = list_themes(config.resolved_themes_dir())
        active = _current_or_none(config)
        choice = pick_theme(
            entries,
            picker=picker or config.picker,
            current=active.stem if active else None,
        )
        if choice is None:
            err_console.print("No theme selected.")
            sys.exit(1)
        result = switch_theme(
            choice,
            config.resolved_themes_dir(),
            config.resolved_config_file(),
            backup=config.backup if backup is None else backup,
        )
    except ThemeSwitchError as e:
        _fail(e)
    _report(result)


@cli.command("list")
@click.pass_obj
def list_cmd(config):
    """List available themes."""
    from .ui import render_theme_list

    try:
        entries = list_themes(config.resolved_themes_dir())
    except ThemeSwitchError as e:
        _fail(e)
    render_theme_list(console, entries, _current_or_none(config))


@cli.command()
@click.pass_obj
def current(config):
    """Print the name of the theme in use."""
    try:
        active = current_theme(config.resolved_config_file(), config.resolved_themes_dir())
    except ThemeSwitchError as e:
        _fail(e)
    if active is None:
        err_console.print("No theme applied.")
        sys.exit(1)
    click.echo(active.stem)


@cli.group("config", invoke_without_command=True)
@click.pass_context
def config_cmd(ctx):
    """Show or change termtheme settings."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(config_show)


@config_cmd.command("show")
@click.pass_obj
def config_show(config):
    """Show configuration."""
    console.print(build_banner(__version__))
    render_config_panel(console, config.summary())


@config_cmd.command("set")
@click.argument("key", type=click.Choice(sorted(CONFIG_FIELDS)))
@click.argument("value")
def config_set(key, value):
    """Set KEY to VALUE in the settings file."""
    # Fresh load so that command-line overrides are not persisted.
    cfg = Config.load()
    try:
        ok, error = cfg.set_config_value(key, value)
    except ThemeSwitchError as e:
        _fail(e)
    if not ok:
        err_console.print(f"[red]{key}: {error}[/red]", highlight=False)
        sys.exit(2)
    console.print(f"{key} = {cfg.get_config_value(key)}", highlight=False)


@config_cmd.command("reset")
@click.argument("key", type=click.Choice(sorted(CONFIG_FIELDS)))
def config_reset(key):
    """Reset KEY to its default."""
    cfg = Config.load()
    try:
        cfg.reset_config_value(key)
    except ThemeSwitchError as e:
        _fail(e)
    console.print(f"{key} = {cfg.get_config_value(key)}", highlight=False)


if __name__ == "__main__":
    cli()
