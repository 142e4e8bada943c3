"""Classification of detected ports into board list items."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from functools import cmp_to_key

from boards_list.api import (
    BoardIdentifier,
    BoardsListHistory,
    DetectedPort,
    Port,
    board_identifier_comparator,
    board_identifier_equals,
    create_port_key,
)
from boards_list.settings import FIRST_PARTY_VENDOR

_LOGGER = logging.getLogger(__name__)


class InferenceType(str, Enum):
    # No boards were discovered (or several were), the user picked one.
    MANUALLY_SELECTED = "manually-selected"
    # One board was discovered, but the user picked another one.
    BOARD_OVERRIDDEN = "board-overridden"


class ItemKind(str, Enum):
    UNKNOWN = "unknown"
    DETECTED = "detected"
    AMBIGUOUS = "ambiguous"
    MANUALLY_SELECTED = InferenceType.MANUALLY_SELECTED.value
    BOARD_OVERRIDDEN = InferenceType.BOARD_OVERRIDDEN.value


@dataclass(frozen=True)
class BoardsListItem:
    """A detected port as shown in the board list.

    `kind` tells which of the optional fields are set:

    - unknown: no board at all.
    - detected: exactly one discovered `board`.
    - ambiguous: two or more discovered `boards`, none of them picked.
    - manually-selected: `inferred_board` comes from the history; `boards`
      keeps the ambiguous candidates, if any.
    - board-overridden: the discovered `board` was replaced by `inferred_board`.
    """
    port: Port
    kind: ItemKind = ItemKind.UNKNOWN
    board: BoardIdentifier | None = None
    boards: tuple[BoardIdentifier, ...] = ()
    inferred_board: BoardIdentifier | None = None

    def __post_init__(self):
        has_board = self.board is not None
        has_inferred = self.inferred_board is not None
        count = len(self.boards)
        if self.kind is ItemKind.UNKNOWN:
            valid = not has_board and not count and not has_inferred
        elif self.kind is ItemKind.DETECTED:
            valid = has_board and not count and not has_inferred
        elif self.kind is ItemKind.AMBIGUOUS:
            valid = not has_board and count >= 2 and not has_inferred
        elif self.kind is ItemKind.MANUALLY_SELECTED:
            valid = not has_board and count != 1 and has_inferred
        elif self.kind is ItemKind.BOARD_OVERRIDDEN:
            valid = has_board and not count and has_inferred
        else:
            valid = False
        if not valid:
            raise ValueError(
                f"Invalid {self.kind} item for {self.port.address}: "
                f"board={self.board!r} boards={len(self.boards)} inferred_board={self.inferred_board!r}"
            )

    @property
    def is_multi(self) -> bool:
        """True if discovery reported several candidate boards for the port."""
        return len(self.boards) >= 2

    @property
    def is_inferred(self) -> bool:
        return self.inferred_board is not None

    @property
    def inference_type(self) -> InferenceType | None:
        if self.kind is ItemKind.MANUALLY_SELECTED:
            return InferenceType.MANUALLY_SELECTED
        if self.kind is ItemKind.BOARD_OVERRIDDEN:
            return InferenceType.BOARD_OVERRIDDEN
        return None

    @property
    def resolved_board(self) -> BoardIdentifier | None:
        """The inferred board if any, otherwise the discovered one."""
        if self.inferred_board is not None:
            return self.inferred_board
        return self.board

    @property
    def unique_board_name(self) -> str | None:
        """The name shared by all candidate boards, if they share one."""
        names = {b.name for b in self.boards}
        if len(names) == 1:
            name = names.pop()
            if name:
                return name
        return None

    def to_dict(self) -> dict:
        data = {"kind": self.kind.value, "port": self.port.to_dict()}
        if self.board is not None:
            data["board"] = self.board.to_dict()
        if self.boards:
            data["boards"] = [b.to_dict() for b in self.boards]
        if self.inferred_board is not None:
            data["inferred_board"] = self.inferred_board.to_dict()
            data["type"] = self.inference_type.value
        return data


@dataclass(frozen=True)
class BoardsListItemWithBoard:
    """One board+port pair of the flattened boards list."""
    port: Port
    board: BoardIdentifier

    @property
    def boards(self) -> tuple[BoardIdentifier, ...]:
        return ()

    @property
    def resolved_board(self) -> BoardIdentifier:
        return self.board

    @property
    def is_multi(self) -> bool:
        return False

    @property
    def unique_board_name(self) -> None:
        return None

    def to_dict(self) -> dict:
        return {"port": self.port.to_dict(), "board": self.board.to_dict()}


def sort_boards(
    boards: tuple[BoardIdentifier, ...] | list[BoardIdentifier],
    first_party_vendor: str = FIRST_PARTY_VENDOR,
) -> tuple[BoardIdentifier, ...]:
    """Return the boards with the first party vendor first, then by name."""
    return tuple(sorted(
        boards,
        key=cmp_to_key(lambda a, b: board_identifier_comparator(a, b, first_party_vendor)),
    ))


def classify_detected_port(
    detected_port: DetectedPort,
    history: BoardsListHistory | None = None,
    first_party_vendor: str = FIRST_PARTY_VENDOR,
) -> BoardsListItem:
    """Turn a detected port into a board list item, applying the history."""
    port = detected_port.port
    boards = sort_boards(detected_port.boards, first_party_vendor)
    inferred_board = (history or {}).get(create_port_key(port))

    if not boards:
        if inferred_board is not None:
            item = BoardsListItem(port=port, kind=ItemKind.MANUALLY_SELECTED, inferred_board=inferred_board)
        else:
            item = BoardsListItem(port=port, kind=ItemKind.UNKNOWN)
    elif len(boards) == 1:
        board = boards[0]
        # A historical pick equal to the discovered board is not an override
        if inferred_board is not None and not board_identifier_equals(board, inferred_board):
            item = BoardsListItem(
                port=port, kind=ItemKind.BOARD_OVERRIDDEN, board=board, inferred_board=inferred_board,
            )
        else:
            item = BoardsListItem(port=port, kind=ItemKind.DETECTED, board=board)
    else:
        # The history wins even if its board is not one of the candidates
        if inferred_board is not None:
            item = BoardsListItem(
                port=port, kind=ItemKind.MANUALLY_SELECTED, boards=boards, inferred_board=inferred_board,
            )
        else:
            item = BoardsListItem(port=port, kind=ItemKind.AMBIGUOUS, boards=boards)

    _LOGGER.debug("Classified %s as %s", create_port_key(port), item.kind.value)
    return item
