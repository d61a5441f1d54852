"""Renderer - converts expression trees back to source text."""

from __future__ import annotations

import json
from typing import Any

from eex.tree import Atom, Call, Pair

BINARY_OPERATORS = {
    "<-": 1,
    "=": 2,
    "|>": 3,
    "or": 4,
    "||": 4,
    "and": 5,
    "&&": 5,
    "==": 6,
    "!=": 6,
    "===": 6,
    "!==": 6,
    "<": 7,
    ">": 7,
    "<=": 7,
    ">=": 7,
    "in": 8,
    "<>": 9,
    "++": 9,
    "--": 9,
    "+": 10,
    "-": 10,
    "*": 11,
    "/": 11,
}
RIGHT_ASSOCIATIVE = frozenset({"=", "<>", "++", "--"})
UNARY_OPERATORS = frozenset({"not", "!", "-", "+"})
UNARY_PRECEDENCE = 12
POSTFIX_PRECEDENCE = 13


class Renderer:
    """Renders expression trees as expression-language source."""

    def render(self, node: Any) -> str:
        """Render a tree to source text.

        Blocks are rendered on several lines with two-space indentation, and
        a top-level ``__block__`` becomes one statement per line.

        Args:
            node: The tree to render.

        Returns:
            Source text that parses back to an equivalent tree.
        """
        return self._body(node)

    def _body(self, node: Any) -> str:
        if isinstance(node, Call) and node.target == "__block__" and node.args:
            return "\n".join(self._expr(stmt) for stmt in node.args)
        if _is_clauses(node):
            return "\n".join(self._clause(clause) for clause in node)
        return self._expr(node)

    def _expr(self, node: Any, min_prec: int = 0) -> str:
        if node is None:
            return "nil"
        if node is True:
            return "true"
        if node is False:
            return "false"
        if isinstance(node, (int, float)):
            return repr(node)
        if isinstance(node, str):
            return json.dumps(node, ensure_ascii=False)
        if isinstance(node, Atom):
            return f":{node.name}"
        if isinstance(node, Pair):
            return f"{{{self._expr(node.left)}, {self._expr(node.right)}}}"
        if isinstance(node, list):
            return f"[{self._items(node)}]"
        if isinstance(node, Call):
            return self._call(node, min_prec)
        raise TypeError(f"Cannot render {node!r}")

    def _call(self, node: Call, min_prec: int) -> str:
        target, args = node.target, node.args

        if isinstance(target, Call):
            return self._remote(node)
        if args is None:
            return target

        if target == "__block__":
            return f"({'; '.join(self._expr(arg) for arg in args)})"
        if target == "__aliases__":
            return ".".join(part.name for part in args)
        if target == "@" and len(args) == 1:
            return f"@{self._expr(args[0], POSTFIX_PRECEDENCE)}"
        if target == "{}":
            return f"{{{self._items(args)}}}"
        if target == "->":
            return self._clause(node)

        if target in BINARY_OPERATORS and len(args) == 2:
            prec = BINARY_OPERATORS[target]
            right_assoc = target in RIGHT_ASSOCIATIVE
            left = self._expr(args[0], prec + 1 if right_assoc else prec)
            right = self._expr(args[1], prec if right_assoc else prec + 1)
            return _wrap(f"{left} {target} {right}", prec, min_prec)

        if target in UNARY_OPERATORS and len(args) == 1:
            space = " " if target == "not" else ""
            operand = self._expr(args[0], UNARY_PRECEDENCE)
            return _wrap(f"{target}{space}{operand}", UNARY_PRECEDENCE, min_prec)

        if args and _is_do_blocks(args[-1]):
            return self._block_call(target, args[:-1], args[-1])

        return f"{target}({self._args(args)})"

    def _remote(self, node: Call) -> str:
        dot, args = node.target, node.args or []
        if dot.target != "." or not dot.args or len(dot.args) != 2:
            return f"{self._expr(dot, POSTFIX_PRECEDENCE)}({self._args(args)})"

        module, name = dot.args
        if _is_access_get(module, name) and len(args) == 2:
            return f"{self._expr(args[0], POSTFIX_PRECEDENCE)}[{self._expr(args[1])}]"

        receiver = self._expr(module, POSTFIX_PRECEDENCE)
        if node.meta.get("no_parens"):
            return f"{receiver}.{name.name}"
        return f"{receiver}.{name.name}({self._args(args)})"

    def _block_call(self, name: str, args: list, blocks: list) -> str:
        head = f"{name} {self._args(args)}" if args else name
        lines = []
        for block in blocks:
            label = block.left.name
            lines.append(f"{head} do" if label == "do" else label)
            if block.right is not None:
                for line in self._body(block.right).split("\n"):
                    lines.append(f"  {line}")
        lines.append("end")
        return "\n".join(lines)

    def _clause(self, clause: Call) -> str:
        patterns, body = clause.args
        head = f"{', '.join(self._expr(p) for p in patterns)} ->"
        if body is None:
            return head
        return "\n".join([head] + [f"  {line}" for line in self._body(body).split("\n")])

    def _args(self, args: list) -> str:
        if args and _is_keywords(args[-1]):
            return ", ".join([self._expr(arg) for arg in args[:-1]] + [self._keywords(args[-1])])
        return ", ".join(self._expr(arg) for arg in args)

    def _items(self, items: list) -> str:
        if _is_keywords(items):
            return self._keywords(items)
        return ", ".join(self._expr(item) for item in items)

    def _keywords(self, pairs: list) -> str:
        return ", ".join(f"{pair.left.name}: {self._expr(pair.right)}" for pair in pairs)


def _wrap(text: str, prec: int, min_prec: int) -> str:
    return f"({text})" if prec < min_prec else text


def _is_keywords(node: Any) -> bool:
    return (
        isinstance(node, list)
        and bool(node)
        and all(isinstance(item, Pair) and isinstance(item.left, Atom) for item in node)
    )


def _is_do_blocks(node: Any) -> bool:
    return _is_keywords(node) and node[0].left == Atom("do")


def _is_clauses(node: Any) -> bool:
    return (
        isinstance(node, list)
        and bool(node)
        and all(isinstance(item, Call) and item.target == "->" for item in node)
    )


def _is_access_get(module: Any, name: Any) -> bool:
    return (
        isinstance(module, Call)
        and module.target == "__aliases__"
        and module.args == [Atom("Access")]
        and name == Atom("get")
    )


def to_source(node: Any) -> str:
    """Render ``node`` to source text. See ``Renderer.render``."""
    return Renderer().render(node)
