"""Board and port identity for boards-list.

Boards and ports reported by the discovery CLI are noisy: the same board can
come with or without config options in its FQBN, and a port carries display
fields that must not take part in identification. The helpers here define
when two boards or two ports are the same, and in which order they are
shown.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Mapping, Sequence, Union

from boards_list.fqbn import FQBN, fqbn_vendor
from boards_list.settings import FIRST_PARTY_VENDOR, PORT_PROTOCOL_PRIORITIES

# Port keys look like 'port+serial:///dev/ttyACM0'.
PORT_KEY_PREFIX = "port+"
PORT_KEY_SEPARATOR = "://"

_DIGITS_RE = re.compile(r"(\d+)")


@dataclass(frozen=True)
class BoardIdentifier:
    """Lightweight information to identify a board.

    `name` is a fallback for the UI and must never take part in identifying
    a board that has an FQBN. The FQBN may carry board config options when it
    comes from a detected port.
    """
    name: str
    fqbn: str | None = None

    def __post_init__(self):
        if not isinstance(self.name, str):
            raise ValueError(f"Board name must be a string, got: {self.name!r}")
        if self.fqbn == "":
            object.__setattr__(self, "fqbn", None)
        elif self.fqbn is not None:
            FQBN.parse(self.fqbn)

    def to_dict(self) -> dict:
        data = {"name": self.name}
        if self.fqbn:
            data["fqbn"] = self.fqbn
        return data


@dataclass(frozen=True)
class PortIdentifier:
    """Bare minimum information to identify a port."""
    protocol: str
    address: str

    def to_dict(self) -> dict:
        return {"protocol": self.protocol, "address": self.address}


@dataclass(frozen=True)
class Port(PortIdentifier):
    """A port with its display fields. `properties` never affect identity."""
    address_label: str = ""
    protocol_label: str = ""
    hardware_id: str | None = None
    properties: Mapping[str, str] = field(default_factory=dict, compare=False)

    def to_dict(self) -> dict:
        data = {
            "protocol": self.protocol,
            "address": self.address,
            "address_label": self.address_label,
            "protocol_label": self.protocol_label,
        }
        if self.hardware_id is not None:
            data["hardware_id"] = self.hardware_id
        if self.properties:
            data["properties"] = dict(self.properties)
        return data


@dataclass(frozen=True)
class DetectedPort:
    """One discovery snapshot entry: a port and the boards matching it."""
    port: Port
    boards: tuple[BoardIdentifier, ...] = ()

    def __post_init__(self):
        if not isinstance(self.boards, tuple):
            object.__setattr__(self, "boards", tuple(self.boards or ()))

    def to_dict(self) -> dict:
        data = {"port": self.port.to_dict()}
        if self.boards:
            data["boards"] = [b.to_dict() for b in self.boards]
        return data


@dataclass(frozen=True)
class BoardsConfig:
    """The board+port pair the client has currently selected."""
    selected_board: BoardIdentifier | None = None
    selected_port: PortIdentifier | None = None

    @property
    def is_defined(self) -> bool:
        return self.selected_board is not None and self.selected_port is not None

    def to_dict(self) -> dict:
        data = {}
        if self.selected_board is not None:
            data["selected_board"] = self.selected_board.to_dict()
        if self.selected_port is not None:
            data["selected_port"] = self.selected_port.to_dict()
        return data


# Port key -> detected port. Keys are created with `create_port_key`.
DetectedPorts = Mapping[str, DetectedPort]

# Port key -> the board the user last picked manually for that port.
BoardsListHistory = Mapping[str, BoardIdentifier]


def empty_boards_config() -> BoardsConfig:
    """Return a boards config with neither board nor port selected."""
    return BoardsConfig()


def is_defined_boards_config(boards_config: BoardsConfig | None) -> bool:
    if boards_config is None:
        return False
    return boards_config.is_defined


# --- Port keys ---

def create_port_key(port: Union[PortIdentifier, DetectedPort]) -> str:
    """Return the unique key of a port (or of the port of a detected port)."""
    if isinstance(port, DetectedPort):
        port = port.port
    return f"{PORT_KEY_PREFIX}{port.protocol}{PORT_KEY_SEPARATOR}{port.address}"


def parse_port_key(port_key: str) -> PortIdentifier | None:
    """Rehydrate a port identifier from its key. Returns None for malformed keys."""
    if not port_key.startswith(PORT_KEY_PREFIX):
        return None
    without_prefix = port_key[len(PORT_KEY_PREFIX):]
    protocol, sep, address = without_prefix.partition(PORT_KEY_SEPARATOR)
    if not sep or not protocol or not address:
        return None
    return PortIdentifier(protocol=protocol, address=address)


def find_matching_port_index(
    to_find: PortIdentifier | None,
    ports: Sequence[Union[PortIdentifier, DetectedPort]],
) -> int:
    """Return the index of the port with the same key as `to_find`, or -1."""
    if to_find is None:
        return -1
    key = create_port_key(to_find)
    for i, port in enumerate(ports):
        if create_port_key(port) == key:
            return i
    return -1


# --- Structural checks for untyped input ---

def is_port_identifier(arg: object) -> bool:
    return (
        isinstance(arg, Mapping)
        and isinstance(arg.get("protocol"), str)
        and isinstance(arg.get("address"), str)
    )


def is_port(arg: object) -> bool:
    if not is_port_identifier(arg):
        return False
    for key in ("label", "protocol_label", "hardware_id"):
        if arg.get(key) is not None and not isinstance(arg[key], str):
            return False
    properties = arg.get("properties")
    return properties is None or isinstance(properties, Mapping)


def is_board_identifier(arg: object) -> bool:
    return (
        isinstance(arg, Mapping)
        and isinstance(arg.get("name"), str)
        and (arg.get("fqbn") is None or isinstance(arg["fqbn"], str))
    )


# --- Equality ---

def port_identifier_equals(left: PortIdentifier | None, right: PortIdentifier | None) -> bool:
    if left is None or right is None:
        return left is None and right is None
    return left.protocol == right.protocol and left.address == right.address


def board_identifier_equals(
    left: BoardIdentifier | None,
    right: BoardIdentifier | None,
    loose_fqbn: bool = True,
) -> bool:
    """Return True if both identify the same board.

    With `loose_fqbn` (the default) FQBN config options are ignored, so
    ``a:b:c:o1=v1`` equals ``a:b:c``. The name is compared only when neither
    side has an FQBN.
    """
    if left is None or right is None:
        return left is None and right is None
    if bool(left.fqbn) != bool(right.fqbn):
        # Board search reports no FQBN when the platform is not installed,
        # board list reports one anyway. No name fallback here.
        # TODO: match by name when the other side comes from board search.
        return False
    if left.fqbn and right.fqbn:
        if loose_fqbn:
            return FQBN.parse(left.fqbn).sanitize() == FQBN.parse(right.fqbn).sanitize()
        return left.fqbn == right.fqbn
    return left.name == right.name


# --- Ordering ---

def natural_compare(left: str, right: str) -> int:
    """Compare strings with digit runs compared by value ('COM2' < 'COM10').

    Strings that differ only in leading zeros ('COM01', 'COM1') fall back
    to plain text order, so only equal strings compare equal.
    """
    left_key = (_natural_key(left), left)
    right_key = (_natural_key(right), right)
    return (left_key > right_key) - (left_key < right_key)


def _natural_key(text: str) -> tuple:
    # re.split with a group alternates text (even) and digit (odd) chunks
    return tuple(int(chunk) if i % 2 else chunk for i, chunk in enumerate(_DIGITS_RE.split(text)))


def board_identifier_comparator(
    left: BoardIdentifier | None,
    right: BoardIdentifier | None,
    first_party_vendor: str = FIRST_PARTY_VENDOR,
) -> int:
    """Boards of the first party vendor first, then natural order of the name.

    A missing board sorts after any board.
    """
    if left is None:
        return 0 if right is None else 1
    if right is None:
        return -1
    left_first = fqbn_vendor(left.fqbn) == first_party_vendor
    right_first = fqbn_vendor(right.fqbn) == first_party_vendor
    if left_first and not right_first:
        return -1
    if right_first and not left_first:
        return 1
    return natural_compare(left.name, right.name)


def port_protocol_comparator(
    left: PortIdentifier,
    right: PortIdentifier,
    priorities: Mapping[str, int] = PORT_PROTOCOL_PRIORITIES,
) -> int:
    """'serial' first, then 'network', then every other protocol."""
    unknown = max(priorities.values(), default=-1) + 1
    left_priority = priorities.get(left.protocol, unknown)
    right_priority = priorities.get(right.protocol, unknown)
    return (left_priority > right_priority) - (left_priority < right_priority)


def board_identifier_label(board: BoardIdentifier, show_fqbn: bool = True) -> str:
    label = board.name
    if board.fqbn and show_fqbn:
        label += f" ({board.fqbn})"
    return label
