"""Board list assembly for boards-list.

The discovery CLI maps each detected port to zero or more matching boards.
`create_boards_list` turns one such snapshot, together with the client's
current board+port selection and the history of manual picks, into the
sorted and labeled list a board selector shows.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Sequence

from boards_list.actions import (
    BoardsListItemAction,
    OtherActions,
    create_default_action,
    create_other_actions,
)
from boards_list.api import (
    BoardIdentifier,
    BoardsConfig,
    BoardsListHistory,
    DetectedPort,
    DetectedPorts,
    board_identifier_equals,
    board_identifier_label,
    create_port_key,
    empty_boards_config,
    find_matching_port_index,
)
from boards_list.compare import sort_items
from boards_list.items import BoardsListItem, BoardsListItemWithBoard, classify_detected_port, sort_boards
from boards_list.ports import PortList, PortPredicate, collect_ports, filter_ports, group_ports_by_protocol
from boards_list.settings import DEFAULT_SETTINGS, ListSettings, Placeholders

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoardsListItemLabels:
    board_label: str
    board_label_with_fqbn: str
    port_label: str
    port_protocol: str
    tooltip: str

    def to_dict(self) -> dict:
        return {
            "board_label": self.board_label,
            "board_label_with_fqbn": self.board_label_with_fqbn,
            "port_label": self.port_label,
            "port_protocol": self.port_protocol,
            "tooltip": self.tooltip,
        }


@dataclass(frozen=True)
class BoardsListLabels:
    """What the UI shows for the whole list."""
    board_label: str
    port_protocol: str | None
    tooltip: str
    # The selected board+port matches one of the items.
    selected: bool

    def to_dict(self) -> dict:
        return {
            "board_label": self.board_label,
            "port_protocol": self.port_protocol,
            "tooltip": self.tooltip,
            "selected": self.selected,
        }


@dataclass(frozen=True, kw_only=True)
class BoardsListItemUI(BoardsListItem):
    labels: BoardsListItemLabels
    default_action: BoardsListItemAction
    other_actions: OtherActions

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["labels"] = self.labels.to_dict()
        data["default_action"] = self.default_action.to_dict()
        data["other_actions"] = self.other_actions.to_dict()
        return data


@dataclass(frozen=True)
class BoardsList:
    """A snapshot of detected ports as a sorted, labeled board list."""
    labels: BoardsListLabels
    # Every detected port, sorted, with its labels and actions.
    items: tuple[BoardsListItemUI, ...]
    # The selection this list was created with.
    boards_config: BoardsConfig
    # Index of the item matching `boards_config`, -1 if none.
    selected_index: int
    # One entry per board on a port: the discovered or inferred board, and
    # every other candidate of an ambiguous port.
    boards: tuple[BoardsListItemWithBoard, ...]
    detected_ports: Mapping[str, DetectedPort] = field(default_factory=dict, repr=False)
    history: BoardsListHistory = field(default_factory=dict, repr=False)
    all_ports: tuple[DetectedPort, ...] = field(default=(), repr=False)

    @property
    def selected_item(self) -> BoardsListItemUI | None:
        if self.selected_index < 0:
            return None
        return self.items[self.selected_index]

    def ports(self, predicate: PortPredicate | None = None) -> PortList:
        """The detected ports in item order. No filtering without `predicate`."""
        return filter_ports(self.all_ports, self.boards_config.selected_port, predicate)

    def ports_grouped_by_protocol(self) -> dict[str, PortList]:
        return group_ports_by_protocol(self.all_ports, self.boards_config.selected_port)

    def to_dict(self) -> dict:
        return {
            "labels": self.labels.to_dict(),
            "detected_ports": {key: dp.to_dict() for key, dp in self.detected_ports.items()},
            "boards_config": self.boards_config.to_dict(),
            "items": [item.to_dict() for item in self.items],
            "selected_index": self.selected_index,
            "history": {key: board.to_dict() for key, board in self.history.items()},
        }

    def to_string(self) -> str:
        """Dump the whole state for debugging."""
        return json.dumps(self.to_dict(), indent=2)

    def __str__(self) -> str:
        return self.to_string()


def create_boards_list(
    detected_ports: DetectedPorts,
    boards_config: BoardsConfig | None = None,
    history: BoardsListHistory | None = None,
    settings: ListSettings = DEFAULT_SETTINGS,
) -> BoardsList:
    """Build the board list for a snapshot of detected ports."""
    if boards_config is None:
        boards_config = empty_boards_config()
    history = MappingProxyType(dict(history or {}))
    snapshot = MappingProxyType({
        key: _with_sorted_boards(detected_port, settings) for key, detected_port in detected_ports.items()
    })

    items = sort_items(
        (create_boards_list_item_ui(dp, history, settings) for dp in snapshot.values()),
        settings,
    )
    selected_index = find_selected_index(boards_config, items)
    all_ports = collect_ports(items, snapshot)
    labels = create_boards_list_labels(
        boards_config, all_ports, items[selected_index] if selected_index >= 0 else None, settings.placeholders,
    )
    _LOGGER.debug("Created board list with %d items, selected index %d", len(items), selected_index)
    return BoardsList(
        labels=labels,
        items=tuple(items),
        boards_config=boards_config,
        selected_index=selected_index,
        boards=collect_boards(items, settings),
        detected_ports=snapshot,
        history=history,
        all_ports=tuple(all_ports),
    )


def create_boards_list_item_ui(
    detected_port: DetectedPort,
    history: BoardsListHistory,
    settings: ListSettings = DEFAULT_SETTINGS,
) -> BoardsListItemUI:
    item = classify_detected_port(detected_port, history, settings.first_party_vendor)
    return BoardsListItemUI(
        port=item.port,
        kind=item.kind,
        board=item.board,
        boards=item.boards,
        inferred_board=item.inferred_board,
        labels=create_boards_list_item_labels(item, settings.placeholders),
        default_action=create_default_action(item),
        other_actions=create_other_actions(item),
    )


def find_selected_index(boards_config: BoardsConfig, items: Sequence[BoardsListItem]) -> int:
    """Find the item matching the selected board+port.

    An exact match of the discovered board wins over a match of the inferred
    board.
    """
    if not boards_config.is_defined:
        return -1
    port_key = create_port_key(boards_config.selected_port)
    selected_board = boards_config.selected_board
    for i, item in enumerate(items):
        if item.board is None:
            continue
        if create_port_key(item.port) == port_key and board_identifier_equals(item.board, selected_board):
            return i
    for i, item in enumerate(items):
        if item.inferred_board is None:
            continue
        if create_port_key(item.port) == port_key and board_identifier_equals(item.inferred_board, selected_board):
            return i
    return -1


def collect_boards(
    items: Sequence[BoardsListItem],
    settings: ListSettings = DEFAULT_SETTINGS,
) -> tuple[BoardsListItemWithBoard, ...]:
    result: list[BoardsListItemWithBoard] = []
    for item in items:
        boards: list[BoardsListItemWithBoard] = []
        board = item.resolved_board
        if board is not None:
            boards.append(BoardsListItemWithBoard(port=item.port, board=board))
        for other in item.boards:
            if not board_identifier_equals(board, other):
                boards.append(BoardsListItemWithBoard(port=item.port, board=other))
        result.extend(sort_items(boards, settings))
    return tuple(result)


def create_boards_list_item_labels(
    item: BoardsListItem,
    placeholders: Placeholders = Placeholders(),
) -> BoardsListItemLabels:
    board = item.resolved_board
    if board is None and item.is_multi:
        # Ambiguous: show the common name of the candidates, if any
        board = BoardIdentifier(name=item.unique_board_name or placeholders.unconfirmed_board)
    board_label = board.name if board is not None else placeholders.unknown
    board_label_with_fqbn = board_label
    if board is not None and board.fqbn:
        board_label_with_fqbn += f" ({board.fqbn})"
    port_label = item.port.address
    return BoardsListItemLabels(
        board_label=board_label,
        board_label_with_fqbn=board_label_with_fqbn,
        port_label=port_label,
        port_protocol=item.port.protocol,
        tooltip=f"{board_label_with_fqbn}\n{port_label}",
    )


def create_boards_list_labels(
    boards_config: BoardsConfig,
    all_ports: Sequence[DetectedPort],
    selected_item: BoardsListItem | None,
    placeholders: Placeholders = Placeholders(),
) -> BoardsListLabels:
    selected_board = boards_config.selected_board
    selected_port = boards_config.selected_port
    board_label = selected_board.name if selected_board is not None and selected_board.name else placeholders.select_board
    if selected_board is None and selected_port is None:
        tooltip = placeholders.select_board
    else:
        parts = []
        if selected_board is not None:
            parts.append(board_identifier_label(selected_board))
        if selected_port is not None:
            address = selected_port.address
            if find_matching_port_index(selected_port, all_ports) < 0:
                address += f" {placeholders.not_connected}"
            parts.append(address)
        tooltip = "\n".join(parts)
    return BoardsListLabels(
        board_label=board_label,
        port_protocol=selected_port.protocol if selected_board is not None and selected_port is not None else None,
        tooltip=tooltip,
        selected=selected_item is not None,
    )


def _with_sorted_boards(detected_port: DetectedPort, settings: ListSettings) -> DetectedPort:
    if len(detected_port.boards) < 2:
        return detected_port
    return DetectedPort(port=detected_port.port, boards=sort_boards(detected_port.boards, settings.first_party_vendor))
