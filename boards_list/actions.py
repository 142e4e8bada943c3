"""UI actions offered for each board list item."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Union

from boards_list.api import BoardIdentifier, BoardsConfig, PortIdentifier
from boards_list.items import BoardsListItem, ItemKind


@dataclass(frozen=True)
class SelectBoardsConfigAction:
    """Select the board+port pair right away."""
    params: BoardsConfig
    type: ClassVar[str] = "select-boards-config"

    def __post_init__(self):
        if not self.params.is_defined:
            raise ValueError("A select action needs both a board and a port")

    def to_dict(self) -> dict:
        return {"type": self.type, "params": self.params.to_dict()}


@dataclass(frozen=True)
class EditBoardsConfigParams:
    port_to_select: PortIdentifier | None = None
    board_to_select: BoardIdentifier | None = None
    query: str | None = None
    search_set: tuple[BoardIdentifier, ...] | None = None

    def to_dict(self) -> dict:
        data = {}
        if self.port_to_select is not None:
            data["port_to_select"] = self.port_to_select.to_dict()
        if self.board_to_select is not None:
            data["board_to_select"] = self.board_to_select.to_dict()
        if self.query is not None:
            data["query"] = self.query
        if self.search_set is not None:
            data["search_set"] = [b.to_dict() for b in self.search_set]
        return data


@dataclass(frozen=True)
class EditBoardsConfigAction:
    """Open the board picker, prefilled with what is known about the port."""
    params: EditBoardsConfigParams
    type: ClassVar[str] = "edit-boards-config"

    def to_dict(self) -> dict:
        return {"type": self.type, "params": self.params.to_dict()}


BoardsListItemAction = Union[SelectBoardsConfigAction, EditBoardsConfigAction]


@dataclass(frozen=True)
class OtherActions:
    edit: EditBoardsConfigAction | None = None
    revert: SelectBoardsConfigAction | None = None

    def __bool__(self) -> bool:
        return self.edit is not None or self.revert is not None

    def to_dict(self) -> dict:
        data = {}
        if self.edit is not None:
            data["edit"] = self.edit.to_dict()
        if self.revert is not None:
            data["revert"] = self.revert.to_dict()
        return data


def create_select_action(board: BoardIdentifier, port: PortIdentifier) -> SelectBoardsConfigAction:
    return SelectBoardsConfigAction(BoardsConfig(selected_board=board, selected_port=port))


def create_edit_action(item: BoardsListItem) -> EditBoardsConfigAction:
    """Prefill the board picker with the port and a search query.

    Ambiguous candidates win over the inferred board, so the picker offers
    them again even after the user has chosen one.
    """
    if item.is_multi:
        params = EditBoardsConfigParams(
            port_to_select=item.port,
            query=item.unique_board_name or "",
            search_set=item.boards,
        )
    elif item.inferred_board is not None:
        params = EditBoardsConfigParams(port_to_select=item.port, query=item.inferred_board.name)
    elif item.board is not None:
        params = EditBoardsConfigParams(port_to_select=item.port, query=item.board.name)
    else:
        params = EditBoardsConfigParams(port_to_select=item.port, query="")
    return EditBoardsConfigAction(params)


def create_default_action(item: BoardsListItem) -> BoardsListItemAction:
    if item.inferred_board is not None:
        return create_select_action(item.inferred_board, item.port)
    if item.board is not None:
        return create_select_action(item.board, item.port)
    return create_edit_action(item)


def create_other_actions(item: BoardsListItem) -> OtherActions:
    """Only inferred items get extra actions: edit, and revert for overrides."""
    if not item.is_inferred:
        return OtherActions()
    edit = create_edit_action(item)
    if item.kind is ItemKind.BOARD_OVERRIDDEN:
        # go back to the discovered board
        return OtherActions(edit=edit, revert=create_select_action(item.board, item.port))
    return OtherActions(edit=edit)
