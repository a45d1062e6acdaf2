import os
import re
import runpy
import sys
from pathlib import Path
from typing import Any, Optional

import click
from rich.console import Console
from rich.table import Table

from cnysa.config.logging_config import get_logger
from cnysa.config.options import canonicalize_options, load_default_options
from cnysa.core import Cnysa
from cnysa.errors import CnysaError
from cnysa.hosts import get_default_host

# Create console instance
console = Console()

log = get_logger(__name__)

_ID_LIST = re.compile(r"^\s*\d+(\s*,\s*\d+)*\s*$")


def parse_roots(value: Optional[str]) -> Any:
    """Comma-separated ids become an id set; anything else is a type pattern."""
    if value is None:
        return None
    if _ID_LIST.match(value):
        return [int(part) for part in value.split(",")]
    return value


@click.group()
@click.version_option(package_name="cnysa", prog_name="cnysa")
def cli():
    """cnysa - timelines of asyncio tasks, callbacks and futures."""
    pass


@cli.command("run", context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False})
@click.option("-m", "module", default=None, help="Run a library module as a script.")
@click.option("--width", type=click.IntRange(min=1), default=None, help="Print width of the timeline.")
@click.option("--ignore-types", default=None, help="Regex of resource types never recorded.")
@click.option("--include-types", default=None, help="Regex a resource type must match to be recorded.")
@click.option("--highlight-types", default=None, help="Regex of resource types drawn in highlight colors.")
@click.option("--roots", default=None, help="Comma-separated resource ids, or a type regex, to root the view at.")
@click.option("--padding", type=click.IntRange(min=0), default=None, help="Idle columns after every event.")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["default", "svg"]),
    default=None,
    help="Output format.",
)
@click.option("--no-color", is_flag=True, help="Render plain text without terminal styles.")
@click.option("--live", is_flag=True, help="Also print every lifecycle event as it happens.")
@click.option("--capture-stacks", is_flag=True, help="Capture creation call stacks for ancestry traces.")
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the timeline to a file instead of stdout.",
)
@click.argument("script", required=False)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
def run(
    module: Optional[str],
    width: Optional[int],
    ignore_types: Optional[str],
    include_types: Optional[str],
    highlight_types: Optional[str],
    roots: Optional[str],
    padding: Optional[int],
    output_format: Optional[str],
    no_color: bool,
    live: bool,
    capture_stacks: bool,
    output: Optional[Path],
    script: Optional[str],
    args: tuple[str, ...],
):
    """Run a Python script (or -m module) and print its asyncio timeline on exit."""
    if module is None and script is None:
        raise click.UsageError("Provide a SCRIPT path or -m MODULE.")
    if module is not None and script is not None:
        # With -m, the first positional belongs to the module's argv.
        args = (script, *args)

    try:
        options = canonicalize_options(
            load_default_options(),
            width=width,
            ignore_types=ignore_types,
            include_types=include_types,
            highlight_types=highlight_types,
            roots=parse_roots(roots),
            padding=padding,
            format=output_format,
            color=False if no_color else None,
            live=True if live else None,
            capture_stacks=True if capture_stacks else None,
        )
    except CnysaError as e:
        raise click.BadParameter(str(e)) from e

    host = get_default_host()
    instance = Cnysa(options, host=host)
    target = module if module is not None else script
    saved_argv = sys.argv
    saved_path = list(sys.path)
    sys.argv = [str(target), *args]
    # Same sys.path[0] the interpreter would use for `python SCRIPT` / `python -m MODULE`
    sys.path.insert(0, os.getcwd() if module is not None else os.path.dirname(os.path.abspath(str(script))))
    exit_code: Any = 0
    program_error: Optional[BaseException] = None

    instance.enable()
    host.install_policy()
    try:
        if module is not None:
            runpy.run_module(module, run_name="__main__", alter_sys=True)
        else:
            runpy.run_path(str(script), run_name="__main__")
    except SystemExit as e:
        exit_code = e.code
    except BaseException as e:
        program_error = e
    finally:
        host.uninstall_policy()
        host.detach_all()
        instance.disable()
        sys.argv = saved_argv
        sys.path[:] = saved_path

    log.debug("Program %s finished, rendering %d events", target, len(instance.recorder.events))
    try:
        _emit(instance.create_snapshot(), output)
    except CnysaError as e:
        if program_error is None:
            raise click.ClickException(str(e)) from e
        program_error.add_note(f"cnysa: timeline not rendered: {e}")

    if program_error is not None:
        raise program_error
    if exit_code not in (0, None):
        sys.exit(exit_code)


def _emit(text: str, output: Optional[Path]) -> None:
    if output is None:
        click.echo(text)
        return
    output.write_text(text + "\n", encoding="utf-8")
    click.echo(f"Timeline written to {output}", err=True)


@cli.command("settings")
def show_settings():
    """Show environment settings and the options they resolve to."""
    from cnysa.config.configuration import get_settings_registry

    defaults = load_default_options()

    table = Table(title="Settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Option", style="magenta")
    table.add_column("Value", style="green")
    table.add_column("Description", style="yellow")

    for setting in get_settings_registry():
        value = defaults.get(setting.option, "")
        table.add_row(setting.env_var, setting.option, str(value), setting.description)

    console.print(table)


if __name__ == "__main__":
    cli()
