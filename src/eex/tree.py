"""Expression tree nodes.

A tree is built from four shapes:
- ``Call(target, meta, args)``: operators, calls, variables (``args is None``) and blocks,
- ``Pair(left, right)``: keyword entries and two-element tuples,
- ``list``: ordered sequences (call arguments, lists, keyword lists),
- anything else is an opaque literal (``int``, ``float``, ``str``, ``bool``, ``None``, ``Atom``).

Buffers built by engines are trees too, so values spliced into a parsed block
are just more nodes.
"""

from __future__ import annotations

from typing import Any, Callable

import msgspec


class Atom(msgspec.Struct, frozen=True):
    """A symbolic constant such as ``:ok`` or a keyword key."""

    name: str


class Call(msgspec.Struct, frozen=True):
    """A three-part node: target, metadata and argument list.

    ``target`` is a name or another node (remote calls). ``args`` is ``None``
    for a variable reference.
    """

    target: Any
    meta: dict = msgspec.field(default_factory=dict)
    args: list | None = msgspec.field(default_factory=list)


class Pair(msgspec.Struct, frozen=True):
    """A two-part node."""

    left: Any
    right: Any


def var(name: str, meta: dict | None = None) -> Call:
    """Build a variable reference."""
    return Call(name, meta or {}, None)


def alias(*parts: str, meta: dict | None = None) -> Call:
    """Build a module alias such as ``String.Chars``."""
    return Call("__aliases__", meta or {}, [Atom(part) for part in parts])


def remote(module: Call, name: str, args: list, meta: dict | None = None) -> Call:
    """Build a remote call ``module.name(args)``."""
    meta = meta or {}
    return Call(Call(".", meta, [module, Atom(name)]), meta, args)


def line_of(node: Any) -> int | None:
    """Line recorded on a node, if any."""
    if isinstance(node, Call):
        return node.meta.get("line")
    return None


def prewalk(node: Any, fun: Callable[[Any], Any]) -> Any:
    """Apply ``fun`` to every node top-down, rebuilding the tree.

    ``fun`` runs on a node before its children, and the walk continues into
    whatever ``fun`` returned.
    """
    node = fun(node)
    if isinstance(node, Call):
        target = node.target if isinstance(node.target, str) else prewalk(node.target, fun)
        args = None if node.args is None else [prewalk(arg, fun) for arg in node.args]
        return Call(target, node.meta, args)
    if isinstance(node, Pair):
        return Pair(prewalk(node.left, fun), prewalk(node.right, fun))
    if isinstance(node, list):
        return [prewalk(item, fun) for item in node]
    return node
