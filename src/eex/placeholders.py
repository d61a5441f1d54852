"""Placeholders reserve the position of a buffer inside block source.

A block like ``if cond do ... else ... end`` can only be parsed once its
closing tag is reached, but the buffer of each section is not source code.
Each section is written into the block source as ``__EEX__(key);`` and,
after parsing, every such call is replaced by the buffer stored under
``key``.
"""

from __future__ import annotations

from typing import Any

from eex.tree import Call, Pair

PLACEHOLDER = "__EEX__"


def placeholder(key: int) -> str:
    """Source text of the placeholder call for ``key``."""
    return f" {PLACEHOLDER}({key});"


def is_placeholder(node: Any) -> bool:
    return (
        isinstance(node, Call)
        and node.target == PLACEHOLDER
        and isinstance(node.args, list)
        and len(node.args) == 1
        and isinstance(node.args[0], int)
        and not isinstance(node.args[0], bool)
    )


class PlaceholderTable:
    """Buffers waiting to be spliced into one block's parsed tree.

    Keys are handed out sequentially, so a table lives exactly as long as
    the block it was created for.
    """

    def __init__(self, values: tuple[Any, ...] = ()):
        self._values = dict(enumerate(values))

    def __len__(self) -> int:
        return len(self._values)

    def substitute(self, node: Any) -> Any:
        """Replace every placeholder call in ``node`` by its buffer.

        Raises:
            KeyError: If the tree references a key that was never recorded.
        """
        if is_placeholder(node):
            return self._values[node.args[0]]
        if isinstance(node, Call):
            target = node.target if isinstance(node.target, str) else self.substitute(node.target)
            args = None if node.args is None else [self.substitute(arg) for arg in node.args]
            return Call(target, node.meta, args)
        if isinstance(node, Pair):
            return Pair(self.substitute(node.left), self.substitute(node.right))
        if isinstance(node, list):
            return [self.substitute(item) for item in node]
        return node
