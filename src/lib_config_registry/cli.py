"""CLI adapter for ``lib_config_registry`` built on ``lib_cli_exit_tools``.

Purpose
-------
Let operators inspect and manage instance configurations without writing
Python: list instances, show their effective settings, and create, copy or
delete instance files through the same safe operations the library exposes.

Contents
--------
* :func:`cli` – root command; resolves the root file (``--root`` or
  ``LIB_CONFIG_REGISTRY_ROOT``) and wires traceback handling.
* ``info`` / ``init`` / ``list`` / ``show`` / ``create`` / ``new`` / ``set`` /
  ``delete`` / ``copy`` – one command per registry operation.
* :func:`main` – entry point used by ``console_scripts`` registration.

System Role
-----------
Commands build a :data:`~lib_config_registry.domain.results.CommandResult` and
hand it to :func:`_echo`. Registry errors (:class:`ConfigError` and its
localized subclasses) become :class:`click.ClickException` (exit code 1,
message on stderr); everything else is left to ``lib_cli_exit_tools``.
"""

from __future__ import annotations

import sys
import uuid
from importlib import metadata
from pathlib import Path
from typing import Any, Callable, Final, Optional, Sequence, TypeVar

try:  # Python >= 3.11
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for <3.11
    import tomli as tomllib  # type: ignore[no-redef]

import lib_cli_exit_tools
import rich_click as click

from .domain.errors import ConfigError
from .domain.results import CommandResult, EmptyResult, JsonResult, TextResult, render
from .observability import bind_trace_id
from .registry import RootConfig

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_TRACEBACK_SUMMARY_LIMIT: Final[int] = 500
_TRACEBACK_VERBOSE_LIMIT: Final[int] = 10_000
_DIST_NAME: Final[str] = "lib_config_registry"
ROOT_ENV_VAR: Final[str] = "LIB_CONFIG_REGISTRY_ROOT"

T = TypeVar("T")


def _resolve_version() -> str:
    """Return the installed package version, ``"0.0.0"`` for source checkouts."""

    try:
        return metadata.version(_DIST_NAME)
    except metadata.PackageNotFoundError:
        return "0.0.0"


@click.group(
    help="File-backed registry of instance configurations",
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=False,
)
@click.version_option(
    version=_resolve_version(),
    prog_name=_DIST_NAME,
    message="lib_config_registry version %(version)s",
)
@click.option(
    "--root",
    "root_file",
    type=click.Path(path_type=Path, dir_okay=False),
    envvar=ROOT_ENV_VAR,
    default=Path("config.toml"),
    show_default=True,
    help=f"Root configuration file (also read from ${ROOT_ENV_VAR})",
)
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python traceback on errors",
)
@click.pass_context
def cli(ctx: click.Context, root_file: Path, traceback: bool) -> None:
    """Store the root path and traceback preference for subcommands."""

    ctx.ensure_object(dict)
    ctx.obj["root_file"] = root_file
    ctx.obj["traceback"] = traceback
    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback
    bind_trace_id(uuid.uuid4().hex)


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print basic distribution metadata so users can confirm installation."""

    try:
        meta = metadata.metadata(_DIST_NAME)
    except metadata.PackageNotFoundError:
        _echo(TextResult(f"{_DIST_NAME} (metadata unavailable)"))
        return
    lines = [
        f"Info for {meta.get('Name', _DIST_NAME)}:",
        f"  Version         : {meta.get('Version', _resolve_version())}",
        f"  Requires-Python : {meta.get('Requires-Python', '>=3.10')}",
    ]
    summary = meta.get("Summary")
    if summary:
        lines.append(f"  Summary         : {summary}")
    _echo(TextResult("\n".join(lines)))


@cli.command("init", context_settings=CLICK_CONTEXT_SETTINGS)
@click.pass_context
def cli_init(ctx: click.Context) -> None:
    """Open the root file, creating it (and the instance directory) when missing."""

    root = _open_root(ctx)
    _echo(TextResult(f"root: {root.file_path}\ninstances: {root.instance_directory}"))


@cli.command("list", context_settings=CLICK_CONTEXT_SETTINGS)
@click.option("--json", "as_json", is_flag=True, default=False, help="Print names as a JSON array")
@click.option(
    "--skip-invalid/--fail-fast",
    default=False,
    show_default=True,
    help="Skip files whose name is not valid instead of failing",
)
@click.pass_context
def cli_list(ctx: click.Context, as_json: bool, skip_invalid: bool) -> None:
    """List the names of all instance configurations."""

    root = _open_root(ctx)
    names = _guard(lambda: root.get_all_instance_names(skip_invalid=skip_invalid))
    if as_json:
        _echo(JsonResult(names))
    elif names:
        _echo(TextResult("\n".join(names)))
    else:
        _echo(EmptyResult())


@cli.command("show", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("name")
@click.option("--indent", type=int, default=None, help="Pretty-print JSON with the given indent size")
@click.option(
    "--provenance/--no-provenance",
    default=False,
    help="Include where each effective value comes from (template or instance file)",
)
@click.pass_context
def cli_show(ctx: click.Context, name: str, indent: Optional[int], provenance: bool) -> None:
    """Print the effective settings of instance NAME as JSON."""

    root = _open_root(ctx)
    view = _guard(lambda: root.get_instance(name).effective())
    if provenance:
        _echo(JsonResult({"config": view.as_dict(), "provenance": view.provenance()}, indent=indent))
        return
    _echo(JsonResult(view.as_dict(), indent=indent))


@cli.command("create", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("name")
@click.pass_context
def cli_create(ctx: click.Context, name: str) -> None:
    """Create an empty configuration file for instance NAME."""

    root = _open_root(ctx)
    _guard(lambda: root.create_instance_file(name))
    _echo(TextResult(str(root.name_to_path(name))))


@cli.command("new", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("name")
@click.option("--set", "assignments", multiple=True, metavar="KEY=VALUE", help="Value to store (repeatable)")
@click.pass_context
def cli_new(ctx: click.Context, name: str, assignments: Sequence[str]) -> None:
    """Create instance NAME from the root template and save it."""

    root = _open_root(ctx)
    instance = root.create_instance()
    for key, value in _parse_assignments(assignments):
        instance.set(key, value)
    _guard(lambda: instance.save_new(name))
    _echo(TextResult(str(root.name_to_path(name))))


@cli.command("set", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("name")
@click.argument("assignments", nargs=-1, required=True, metavar="KEY=VALUE...")
@click.pass_context
def cli_set(ctx: click.Context, name: str, assignments: Sequence[str]) -> None:
    """Update values of the existing instance NAME."""

    root = _open_root(ctx)
    instance = _guard(lambda: root.get_instance(name))
    for key, value in _parse_assignments(assignments):
        instance.set(key, value)
    if _guard(instance.save_when_exists):
        _echo(TextResult(f"updated {name}"))
    else:
        _echo(TextResult(f"{name} no longer exists; nothing written"))


@cli.command("delete", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("name")
@click.pass_context
def cli_delete(ctx: click.Context, name: str) -> None:
    """Delete instance NAME (succeeds when it does not exist)."""

    root = _open_root(ctx)
    deleted = _guard(lambda: root.delete_instance(name))
    _echo(TextResult(f"deleted {name}" if deleted else f"nothing to delete for {name}"))


@cli.command("copy", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("source")
@click.argument("target")
@click.pass_context
def cli_copy(ctx: click.Context, source: str, target: str) -> None:
    """Copy the file of instance SOURCE to a new instance TARGET."""

    root = _open_root(ctx)
    _guard(lambda: root.copy_instance(source, target))
    _echo(TextResult(f"copied {source} -> {target}"))


def _open_root(ctx: click.Context) -> RootConfig:
    return _guard(lambda: RootConfig.open_or_create(ctx.obj["root_file"]))


def _guard(action: Callable[[], T]) -> T:
    """Run *action*, turning registry errors into Click errors (exit code 1)."""

    try:
        return action()
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc


def _echo(result: CommandResult) -> None:
    text = render(result)
    if text:
        click.echo(text)


def _parse_assignments(values: Sequence[str]) -> list[tuple[str, Any]]:
    """Split ``KEY=VALUE`` pairs; values are read as TOML literals when possible.

    >>> _parse_assignments(["audio.volume=30", "name=radio one", "enabled=true"])
    [('audio.volume', 30), ('name', 'radio one'), ('enabled', True)]
    """

    parsed: list[tuple[str, Any]] = []
    for raw in values:
        key, sep, value = raw.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"Expected KEY=VALUE, got {raw!r}", param_hint="KEY=VALUE")
        parsed.append((key.strip(), _parse_value(value.strip())))
    return parsed


def _parse_value(value: str) -> Any:
    try:
        return tomllib.loads(f"value = {value}")["value"]
    except tomllib.TOMLDecodeError:
        return value


def main(argv: Optional[Sequence[str]] = None, *, restore_traceback: bool = True) -> int:
    """Execute the CLI with shared exit handling and return the exit code."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        try:
            return lib_cli_exit_tools.run_cli(
                cli,
                argv=list(argv) if argv is not None else None,
                prog_name=_DIST_NAME,
            )
        except BaseException as exc:  # noqa: BLE001 - funnel through shared printers
            lib_cli_exit_tools.print_exception_message(
                trace_back=lib_cli_exit_tools.config.traceback,
                length_limit=(
                    _TRACEBACK_VERBOSE_LIMIT if lib_cli_exit_tools.config.traceback else _TRACEBACK_SUMMARY_LIMIT
                ),
            )
            return lib_cli_exit_tools.get_system_exit_code(exc)
    finally:
        if restore_traceback:
            lib_cli_exit_tools.config.traceback = previous_traceback
            lib_cli_exit_tools.config.traceback_force_color = previous_force_color


if __name__ == "__main__":  # pragma: no cover - exercised via console entry point
    raise SystemExit(main(sys.argv[1:]))
