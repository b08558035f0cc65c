"""
Command-line interface for kbcli-builder.

Drives the interactive kbcli command builder from a terminal: render single
builder passes, walk the menus interactively, inspect the cluster resource
catalogue and manage configuration.
"""

import json
import shlex
import sys
from pathlib import Path
from typing import Any, NoReturn

import click
import yaml

from . import __version__
from .builder import KbcliBuilder, new_builder
from .config import LOG_LEVELS, Config
from .console import console_manager
from .errors import BuilderError
from .k8s_utils import filter_output, split_filter_flag
from .logutil import init_logging, logger
from .messages import FILTER_BLOCK_ID, InteractiveMessage, Message, PlaintextMessage
from .state import ActionValue
from .types import Error, FieldTag, widget_id


def _fail(message: str) -> NoReturn:
    console_manager.print_error(message)
    sys.exit(1)


def _load_builder(discover: bool = False) -> KbcliBuilder:
    try:
        builder = new_builder(Config())
        if discover:
            builder.renderer.catalogue = builder.guard.build_resource_catalogue()
    except (BuilderError, ValueError) as e:
        _fail(str(e))
    return builder


def _load_action_state(path: str | None) -> dict[str, dict[str, ActionValue]]:
    """Read a `block id -> widget id -> value` mapping from a YAML file."""
    if path is None:
        return {}
    try:
        raw = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    except (yaml.YAMLError, OSError) as e:
        raise click.BadParameter(f"cannot read state file: {e}") from e
    if not isinstance(raw, dict) or not all(
        isinstance(widgets, dict) for widgets in raw.values()
    ):
        raise click.BadParameter("state file must map block ids to widget values")

    state: dict[str, dict[str, ActionValue]] = {}
    for block_id, widgets in raw.items():
        state[str(block_id)] = {}
        for raw_id, value in widgets.items():
            text = "" if value is None else str(value)
            if FieldTag.FILTER.value in str(raw_id):
                state[str(block_id)][str(raw_id)] = ActionValue(text=text)
            else:
                state[str(block_id)][str(raw_id)] = ActionValue(selected=text)
    return state


def _print_message(message: Message, output: str) -> None:
    if output == "yaml":
        console_manager.print_raw(
            yaml.safe_dump(message.to_dict(), sort_keys=False, allow_unicode=True)
        )
    elif output == "json":
        console_manager.print_raw(json.dumps(message.to_dict(), indent=2) + "\n")
    else:
        console_manager.print_message(message)


@click.group()
@click.version_option(version=__version__, prog_name="kbcli-builder")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Override the configured log level",
)
def cli(log_level: str | None) -> None:
    """kbcli-builder - build kbcli commands from cascading menus"""
    init_logging(log_level)


@cli.command()
@click.argument("event", required=False, default="")
@click.option(
    "--state",
    "state_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="YAML file with the current widget values",
)
@click.option(
    "--output",
    "-o",
    type=click.Choice(["rich", "yaml", "json"]),
    default="rich",
    show_default=True,
)
@click.option(
    "--no-interactive", is_flag=True, help="Act as a non-interactive platform"
)
@click.option(
    "--discover",
    is_flag=True,
    help="Resolve namespacing from the live resource catalogue",
)
def render(
    event: str,
    state_file: str | None,
    output: str,
    no_interactive: bool,
    discover: bool,
) -> None:
    """Render one builder pass for EVENT, e.g. "@builder --verbs"."""
    action_state = _load_action_state(state_file)
    builder = _load_builder(discover)
    try:
        message = builder.handle(event, not no_interactive, action_state)
    except BuilderError as e:
        logger.debug(f"Cannot render the kbcli command builder: {e}")
        _fail(f"Cannot render the kbcli command builder: {e}")
    _print_message(message, output)


def _selected_widgets(message: InteractiveMessage) -> dict[str, ActionValue]:
    """Widget values as the builder left them; cleared selections are dropped."""
    return {
        widget_id(menu.tag): ActionValue(selected=menu.initial.value)
        for menu in message.menus
        if menu.initial is not None
    }


def _prompt_choice(message: InteractiveMessage) -> str:
    names = {m.tag: m.tag.name.lower().replace("_", "-") for m in message.menus}
    choices = [*names.values(), "filter"]
    if message.preview is not None:
        choices.append("run")
    choices.append("quit")
    return click.prompt(
        "Change", type=click.Choice(choices), default=choices[0], show_choices=True
    )


@cli.command()
@click.option(
    "--discover",
    is_flag=True,
    help="Resolve namespacing from the live resource catalogue",
)
def interactive(discover: bool) -> None:
    """Walk the builder menus in the terminal and optionally run the result."""
    builder = _load_builder(discover)
    filter_text = ""

    try:
        message = builder.handle("", True, None)
        while isinstance(message, InteractiveMessage):
            widgets = _selected_widgets(message)
            console_manager.print_message(message)
            choice = _prompt_choice(message)
            if choice == "quit":
                return

            if choice == "run":
                assert message.preview is not None
                _run_preview(builder, message.preview.command_line)
                continue

            if choice == "filter":
                filter_text = click.prompt("Filter", default="", show_default=False)
                tag = FieldTag.FILTER
            else:
                menu = next(
                    m
                    for m in message.menus
                    if m.tag.name.lower().replace("_", "-") == choice
                )
                if not menu.values:
                    console_manager.print_note("Nothing to select in this menu")
                    continue
                value = click.prompt(
                    menu.placeholder,
                    type=click.Choice(menu.values),
                    show_choices=True,
                )
                widgets[widget_id(menu.tag)] = ActionValue(selected=value)
                tag = menu.tag

            action_state = {
                message.block_id: widgets,
                FILTER_BLOCK_ID: {
                    widget_id(FieldTag.FILTER): ActionValue(text=filter_text)
                },
            }
            message = builder.handle(widget_id(tag), True, action_state)
    except BuilderError as e:
        _fail(f"Cannot render the kbcli command builder: {e}")
    except click.Abort:
        return

    if isinstance(message, PlaintextMessage):
        console_manager.print_message(message)


def _run_preview(builder: KbcliBuilder, command_line: str) -> None:
    renderer = builder.renderer
    cmd, filter_text = split_filter_flag(command_line)
    result = renderer.runner.run_kbcli_command(
        renderer.kubeconfig, renderer.default_namespace, cmd
    )
    if isinstance(result, Error):
        console_manager.print_error(result.error)
        return
    console_manager.print_raw(filter_output(result.data or "", filter_text) + "\n")


@cli.command(context_settings={"ignore_unknown_options": True})
@click.argument("args", nargs=-1, type=click.UNPROCESSED, required=True)
def run(args: tuple[str, ...]) -> None:
    """Run a kbcli command, e.g. `kbcli-builder run cluster list`."""
    builder = _load_builder()
    renderer = builder.renderer
    cmd, filter_text = split_filter_flag(shlex.join(args))
    result = renderer.runner.run_kbcli_command(
        renderer.kubeconfig, renderer.default_namespace, cmd
    )
    if isinstance(result, Error):
        _fail(result.error)
    console_manager.print_raw(filter_output(result.data or "", filter_text) + "\n")


@cli.command()
@click.argument("name", required=False)
def resources(name: str | None) -> None:
    """List the cluster resource catalogue, or resolve one resource NAME."""
    guard = _load_builder().guard
    try:
        catalogue = guard.build_resource_catalogue()
        if name:
            descriptor = guard.resolve_resource_descriptor(name, catalogue)
            scope = "namespaced" if descriptor.namespaced else "cluster-scoped"
            console_manager.print(f"{descriptor.name}: {scope}", markup=False)
            return
    except BuilderError as e:
        _fail(str(e))

    console_manager.print_config_table(
        {
            res.name: "namespaced" if res.namespaced else "cluster-scoped"
            for res in catalogue.values()
        },
        title="Cluster resources",
    )


@cli.group()
def config() -> None:
    """Manage kbcli-builder configuration."""
    pass


@config.command(name="show")
def config_show() -> None:
    """Show the current configuration."""
    try:
        cfg = Config()
    except ValueError as e:
        _fail(str(e))
    flat: dict[str, Any] = {}

    def _flatten(prefix: str, value: Any) -> None:
        if isinstance(value, dict):
            for key, sub in value.items():
                _flatten(f"{prefix}.{key}" if prefix else key, sub)
        else:
            flat[prefix] = value

    _flatten("", cfg.get_all())
    console_manager.print_config_table(flat)


@config.command(name="set")
@click.argument("key")
@click.argument("value")
def config_set(key: str, value: str) -> None:
    """Set a configuration value, e.g. `builder.allowed.namespaces a,b`."""
    try:
        Config().set(key, value)
    except ValueError as e:
        _fail(str(e))
    console_manager.print_success(f"Configuration {key} set to {value}")


@config.command(name="unset")
@click.argument("key")
def config_unset(key: str) -> None:
    """Reset a configuration value to its default."""
    try:
        Config().unset(key)
    except ValueError as e:
        _fail(str(e))
    console_manager.print_success(f"Configuration {key} reset to default")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
