"""Port projections of a board list."""

from __future__ import annotations

from typing import Callable, Iterable, Sequence

from boards_list.api import DetectedPort, DetectedPorts, PortIdentifier, create_port_key, find_matching_port_index
from boards_list.items import BoardsListItem

PortPredicate = Callable[[DetectedPort], bool]


class PortList(tuple):
    """Detected ports plus the index of the one matching the selected port.

    `matching_index` refers to this sequence's own indexing, -1 if no port
    matches.
    """

    matching_index: int

    def __new__(cls, ports: Iterable[DetectedPort] = (), matching_index: int = -1):
        self = super().__new__(cls, ports)
        self.matching_index = matching_index
        return self

    def __repr__(self) -> str:
        return f"PortList({list(self)!r}, matching_index={self.matching_index})"


def collect_ports(items: Sequence[BoardsListItem], detected_ports: DetectedPorts) -> list[DetectedPort]:
    """Return the detected ports in item order, each port once.

    Ports that are not in the snapshot are skipped, never made up.
    """
    all_ports: list[DetectedPort] = []
    visited: set[str] = set()
    for item in items:
        key = create_port_key(item.port)
        if key in visited:
            continue
        visited.add(key)
        detected_port = detected_ports.get(key)
        if detected_port is not None:
            all_ports.append(detected_port)
    return all_ports


def filter_ports(
    all_ports: Sequence[DetectedPort],
    selected_port: PortIdentifier | None,
    predicate: PortPredicate | None = None,
) -> PortList:
    """Filter the ports (keep all without a predicate) and locate `selected_port`."""
    ports = [p for p in all_ports if predicate is None or predicate(p)]
    return PortList(ports, find_matching_port_index(selected_port, ports))


def group_ports_by_protocol(
    all_ports: Sequence[DetectedPort],
    selected_port: PortIdentifier | None,
) -> dict[str, PortList]:
    """Group the ports by protocol. Each group has its own matching index."""
    grouped: dict[str, list[DetectedPort]] = {}
    for detected_port in all_ports:
        grouped.setdefault(detected_port.port.protocol, []).append(detected_port)
    return {
        protocol: PortList(ports, find_matching_port_index(selected_port, ports))
        for protocol, ports in grouped.items()
    }
