"""Ordering and label constants for boards-list."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

# The smaller the number, the higher the priority.
PORT_PROTOCOL_PRIORITIES: Mapping[str, int] = MappingProxyType({
    "serial": 0,
    "network": 1,
})

# Boards from this vendor (first FQBN segment) sort before all others.
FIRST_PARTY_VENDOR = "arduino"


@dataclass(frozen=True)
class Placeholders:
    """Fixed texts shown when there is no board information to display."""
    unconfirmed_board: str = "Unconfirmed board"
    select_board: str = "Select Board"
    not_connected: str = "[not connected]"
    unknown: str = "Unknown"


@dataclass(frozen=True)
class ListSettings:
    protocol_priorities: Mapping[str, int] = field(default_factory=lambda: PORT_PROTOCOL_PRIORITIES)
    first_party_vendor: str = FIRST_PARTY_VENDOR
    placeholders: Placeholders = field(default_factory=Placeholders)

    @classmethod
    def from_protocols(cls, protocols: list[str], **kwargs) -> ListSettings:
        """Build settings where `protocols` lists the protocols in priority order."""
        priorities = MappingProxyType({name: i for i, name in enumerate(protocols)})
        return cls(protocol_priorities=priorities, **kwargs)


DEFAULT_SETTINGS = ListSettings()
