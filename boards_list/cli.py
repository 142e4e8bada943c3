"""CLI entry point for boards-list."""

import json as jsonmod
import logging
from pathlib import Path

import click

from boards_list.api import (
    BoardIdentifier,
    BoardsConfig,
    PortIdentifier,
    create_port_key,
    parse_port_key,
)
from boards_list.builder import BoardsList, create_boards_list
from boards_list.config import list_config, load_project_config
from boards_list.settings import DEFAULT_SETTINGS
from boards_list.snapshot import InvalidSnapshotError, history_from_dict, load_detected_ports, load_json


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr.")
def main(verbose):
    """Turn a board discovery snapshot into a board+port selection list."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="[%(asctime)s] %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


def _resolve_boards_config(board_name, fqbn, port, protocol):
    """Resolve the selected board and port from CLI flags or config.

    Resolution order: CLI flag > boards-list.toml > nothing selected.
    """
    try:
        config = load_project_config(Path.cwd())
    except FileNotFoundError:
        config = None

    settings = config.to_settings() if config else DEFAULT_SETTINGS
    configured = config.selection.to_boards_config() if config else BoardsConfig()

    board = configured.selected_board
    if board_name or fqbn:
        board = BoardIdentifier(name=board_name or fqbn, fqbn=fqbn)

    selected_port = configured.selected_port
    if port:
        selected_port = parse_port_key(port)
        if selected_port is None:
            # Not a port key, take it as an address
            selected_port = PortIdentifier(protocol=protocol, address=port)

    return BoardsConfig(selected_board=board, selected_port=selected_port), settings


def _build(snapshot, history_file, board_name=None, fqbn=None, port=None, protocol="serial") -> BoardsList:
    try:
        detected_ports = load_detected_ports(load_json(snapshot))
        history = history_from_dict(load_json(history_file)) if history_file else {}
        boards_config, settings = _resolve_boards_config(board_name, fqbn, port, protocol)
    except (InvalidSnapshotError, ValueError) as e:
        click.echo(f"Error: {e}")
        raise SystemExit(1)
    return create_boards_list(detected_ports, boards_config, history, settings)


def _selection_options(f):
    f = click.option("--protocol", type=str, default="serial", show_default=True,
                     help="Protocol of --port when it is a bare address.")(f)
    f = click.option("--port", type=str, help="Selected port: a port key (port+serial:///dev/ttyACM0) or an address.")(f)
    f = click.option("--fqbn", type=str, help="Selected board FQBN (e.g. arduino:avr:uno).")(f)
    f = click.option("--board", "board_name", type=str, help="Selected board name.")(f)
    return f


@main.command()
@click.argument("snapshot", type=click.File("r"))
@click.option("--history", "history_file", type=click.File("r"), help="JSON mapping of port keys to boards.")
@_selection_options
@click.option("--json", "use_json", is_flag=True, help="Dump the complete board list state as JSON.")
def show(snapshot, history_file, board_name, fqbn, port, protocol, use_json):
    """Show the board list for a discovery SNAPSHOT ('-' for stdin)."""
    boards_list = _build(snapshot, history_file, board_name, fqbn, port, protocol)
    if use_json:
        click.echo(boards_list.to_string())
        return

    labels = boards_list.labels
    summary = labels.tooltip.replace("\n", " on ")
    click.echo(f"{summary} (selected)" if labels.selected else summary)
    if not boards_list.items:
        click.echo("No ports detected.")
        return
    click.echo()
    for i, item in enumerate(boards_list.items):
        marker = "*" if i == boards_list.selected_index else " "
        action = item.default_action
        if action.type == "select-boards-config":
            action_label = "select"
        else:
            action_label = f"edit (query: {action.params.query!r})"
        click.echo(
            f"  {marker} {item.labels.board_label_with_fqbn:<45} "
            f"{item.labels.port_label:<30} {item.labels.port_protocol:<8} {action_label}"
        )


@main.command()
@click.argument("snapshot", type=click.File("r"))
@click.option("--history", "history_file", type=click.File("r"), help="JSON mapping of port keys to boards.")
@click.option("--json", "use_json", is_flag=True, help="Output JSON.")
def boards(snapshot, history_file, use_json):
    """List every board+port pair of a discovery SNAPSHOT."""
    boards_list = _build(snapshot, history_file)
    if use_json:
        click.echo(jsonmod.dumps([b.to_dict() for b in boards_list.boards], indent=2))
        return
    if not boards_list.boards:
        click.echo("No boards detected.")
        return
    for pair in boards_list.boards:
        fqbn = pair.board.fqbn or "-"
        click.echo(f"  {pair.board.name:<30} {fqbn:<35} {pair.port.address}")


@main.command()
@click.argument("snapshot", type=click.File("r"))
@_selection_options
@click.option("--only", "only_protocol", type=str, help="Only list ports of this protocol.")
@click.option("--group", is_flag=True, help="Group the ports by protocol.")
@click.option("--json", "use_json", is_flag=True, help="Output JSON.")
def ports(snapshot, board_name, fqbn, port, protocol, only_protocol, group, use_json):
    """List the detected ports of a discovery SNAPSHOT."""
    boards_list = _build(snapshot, None, board_name, fqbn, port, protocol)
    if group:
        groups = boards_list.ports_grouped_by_protocol()
    else:
        predicate = (lambda p: p.port.protocol == only_protocol) if only_protocol else None
        port_list = boards_list.ports(predicate)
        groups = {only_protocol or "all": port_list}

    if use_json:
        data = {
            name: {"ports": [p.to_dict() for p in port_list], "matching_index": port_list.matching_index}
            for name, port_list in groups.items()
        }
        click.echo(jsonmod.dumps(data, indent=2))
        return

    for name, port_list in groups.items():
        click.echo(f"  {name}:")
        for i, detected_port in enumerate(port_list):
            marker = "*" if i == port_list.matching_index else " "
            board_names = ", ".join(b.name for b in detected_port.boards)
            click.echo(f"    {marker} {detected_port.port.address:<30} {board_names}")


@main.command("key")
@click.argument("protocol")
@click.argument("address")
def key_cmd(protocol, address):
    """Print the port key of PROTOCOL and ADDRESS."""
    click.echo(create_port_key(PortIdentifier(protocol=protocol, address=address)))


@main.command("parse-key")
@click.argument("port_key")
def parse_key_cmd(port_key):
    """Print the protocol and address encoded in PORT_KEY."""
    port = parse_port_key(port_key)
    if port is None:
        click.echo(f"Error: Invalid port key: {port_key}")
        raise SystemExit(2)
    click.echo(jsonmod.dumps(port.to_dict()))


@main.command("config")
def config_cmd():
    """Show the values of boards-list.toml in the current directory."""
    values = list_config(Path.cwd())
    if not values:
        click.echo("No boards-list.toml found.")
        return
    for key, value in values.items():
        click.echo(f"{key} = {value!r}")
