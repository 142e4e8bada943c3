"""Conversion of discovery, selection and history data into boards-list types.

This is the only place untyped input enters the package. Malformed entries
raise InvalidSnapshotError here, so the list algorithms never see them.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import IO, Any, Mapping

from boards_list.api import (
    BoardIdentifier,
    BoardsConfig,
    BoardsListHistory,
    DetectedPort,
    DetectedPorts,
    Port,
    PortIdentifier,
    create_port_key,
    is_board_identifier,
    is_port,
    is_port_identifier,
    parse_port_key,
)

_LOGGER = logging.getLogger(__name__)


class InvalidSnapshotError(ValueError):
    """Structured input error with exit code."""

    def __init__(self, message: str, exit_code: int = 1):
        super().__init__(message)
        self.message = message
        self.exit_code = exit_code

    def to_dict(self) -> dict:
        return {"error": self.message, "exit_code": self.exit_code}


def board_from_dict(data: Any) -> BoardIdentifier:
    if not is_board_identifier(data):
        raise InvalidSnapshotError(f"Invalid board: {data!r}. Expected {{'name': str, 'fqbn': str}}")
    try:
        return BoardIdentifier(name=data["name"], fqbn=data.get("fqbn"))
    except ValueError as e:
        raise InvalidSnapshotError(str(e)) from e


def port_identifier_from_dict(data: Any) -> PortIdentifier:
    if not is_port_identifier(data):
        raise InvalidSnapshotError(f"Invalid port: {data!r}. Expected {{'protocol': str, 'address': str}}")
    return PortIdentifier(protocol=data["protocol"], address=data["address"])


def port_from_dict(data: Any) -> Port:
    """Build a Port from the discovery CLI's port object.

    Both the CLI's names (`label`, `protocol_label`, `hardware_id`) and the
    `to_dict()` names (`address_label`) are accepted.
    """
    if not is_port(data):
        raise InvalidSnapshotError(f"Invalid port: {data!r}. Expected at least 'protocol' and 'address' strings")
    if not data["protocol"] or not data["address"]:
        raise InvalidSnapshotError(f"Port protocol and address must not be empty: {data!r}")
    address_label = data.get("label") or data.get("address_label") or data["address"]
    return Port(
        protocol=data["protocol"],
        address=data["address"],
        address_label=address_label,
        protocol_label=data.get("protocol_label") or "",
        hardware_id=data.get("hardware_id") or None,
        properties=dict(data.get("properties") or {}),
    )


def detected_port_from_dict(data: Any, boards_key: str = "boards") -> DetectedPort:
    if not isinstance(data, Mapping) or "port" not in data:
        raise InvalidSnapshotError(f"Invalid detected port: {data!r}. Expected a 'port' object")
    boards = data.get(boards_key) or []
    if not isinstance(boards, list):
        raise InvalidSnapshotError(f"Invalid '{boards_key}' for {data['port']!r}: expected a list")
    return DetectedPort(
        port=port_from_dict(data["port"]),
        boards=tuple(board_from_dict(b) for b in boards),
    )


def detected_ports_from_cli(data: Any) -> dict[str, DetectedPort]:
    """Convert `board list --format json` output of the discovery CLI.

    Accepts both ``{"detected_ports": [...]}`` and a bare list of entries.
    Each entry has a `port` and optional `matching_boards`.
    """
    if isinstance(data, Mapping):
        entries = data.get("detected_ports") or []
    else:
        entries = data
    if not isinstance(entries, list):
        raise InvalidSnapshotError("Expected a list of detected ports")

    detected: dict[str, DetectedPort] = {}
    for entry in entries:
        detected_port = detected_port_from_dict(entry, boards_key="matching_boards")
        key = create_port_key(detected_port)
        if key in detected:
            _LOGGER.warning("Port %s reported more than once, keeping the last entry", key)
        detected[key] = detected_port
    _LOGGER.debug("Loaded %d detected ports", len(detected))
    return detected


def detected_ports_from_dict(data: Any) -> dict[str, DetectedPort]:
    """Convert a snapshot already keyed by port key (as dumped by `to_dict()`)."""
    if not isinstance(data, Mapping):
        raise InvalidSnapshotError("Expected a mapping of port keys to detected ports")
    detected: dict[str, DetectedPort] = {}
    for key, entry in data.items():
        detected_port = detected_port_from_dict(entry)
        actual_key = create_port_key(detected_port)
        if key != actual_key:
            if actual_key in data:
                _LOGGER.warning("Snapshot key %r duplicates port %s, skipping it", key, actual_key)
                continue
            _LOGGER.warning("Snapshot key %r does not match its port, using %r", key, actual_key)
        if actual_key in detected:
            _LOGGER.warning("Port %s reported more than once, keeping the last entry", actual_key)
        detected[actual_key] = detected_port
    return detected


def load_detected_ports(data: Any) -> DetectedPorts:
    """Accept either the discovery CLI output or a keyed snapshot."""
    if isinstance(data, list) or (isinstance(data, Mapping) and "detected_ports" in data):
        return detected_ports_from_cli(data)
    return detected_ports_from_dict(data)


def history_from_dict(data: Any) -> BoardsListHistory:
    """Port key -> board. Malformed port keys are skipped."""
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise InvalidSnapshotError("Expected a mapping of port keys to boards")
    history: dict[str, BoardIdentifier] = {}
    for key, board in data.items():
        if not isinstance(key, str) or parse_port_key(key) is None:
            _LOGGER.warning("Skipping history entry with malformed port key %r", key)
            continue
        history[key] = board_from_dict(board)
    return history


def boards_config_from_dict(data: Any) -> BoardsConfig:
    if data is None:
        return BoardsConfig()
    if not isinstance(data, Mapping):
        raise InvalidSnapshotError("Expected a boards config mapping")
    board = data.get("selected_board")
    port = data.get("selected_port")
    return BoardsConfig(
        selected_board=board_from_dict(board) if board is not None else None,
        selected_port=port_identifier_from_dict(port) if port is not None else None,
    )


def load_json(source: Path | str | IO[str]) -> Any:
    """Read JSON from a path or an open text file."""
    try:
        if isinstance(source, (str, Path)):
            with open(source) as f:
                return json.load(f)
        return json.load(source)
    except json.JSONDecodeError as e:
        raise InvalidSnapshotError(f"Invalid JSON: {e}") from e
