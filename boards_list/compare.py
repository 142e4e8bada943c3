"""Total ordering of board list items."""

from __future__ import annotations

from functools import cmp_to_key
from typing import Callable, Iterable, TypeVar, Union

from boards_list.api import (
    board_identifier_comparator,
    natural_compare,
    port_protocol_comparator,
)
from boards_list.items import BoardsListItem, BoardsListItemWithBoard
from boards_list.settings import DEFAULT_SETTINGS, ListSettings

Item = TypeVar("Item", bound=Union[BoardsListItem, BoardsListItemWithBoard])


def boards_list_item_comparator(
    left: BoardsListItem | BoardsListItemWithBoard,
    right: BoardsListItem | BoardsListItemWithBoard,
    settings: ListSettings = DEFAULT_SETTINGS,
) -> int:
    """Compare precedence:

    1. Port protocol: 'serial', 'network', then the rest.
    2. The inferred or discovered board: first party vendor first, then by
       name. Items with a board come before items without one.
    3. Items with several candidate boards come before other board-less items.
    4. Among those, items whose candidates share a name come first, ordered
       by that name.
    5. Natural order of the port address.
    """
    result = port_protocol_comparator(left.port, right.port, settings.protocol_priorities)
    if result:
        return result

    result = board_identifier_comparator(
        left.resolved_board, right.resolved_board, settings.first_party_vendor,
    )
    if result:
        return result

    if left.is_multi and not right.is_multi:
        return -1
    if not left.is_multi and right.is_multi:
        return 1
    if left.is_multi and right.is_multi:
        left_name = left.unique_board_name
        right_name = right.unique_board_name
        if left_name and not right_name:
            return -1
        if not left_name and right_name:
            return 1
        if left_name and right_name:
            result = natural_compare(left_name, right_name)
            if result:
                return result

    return natural_compare(left.port.address, right.port.address)


def item_comparator(settings: ListSettings = DEFAULT_SETTINGS) -> Callable[[Item, Item], int]:
    """Bind `settings` to the item comparator."""
    def compare(left: Item, right: Item) -> int:
        return boards_list_item_comparator(left, right, settings)
    return compare


def sort_items(items: Iterable[Item], settings: ListSettings = DEFAULT_SETTINGS) -> list[Item]:
    """Sort items with the item comparator. Equal items keep their order."""
    return sorted(items, key=cmp_to_key(item_comparator(settings)))
