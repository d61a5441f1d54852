"""Token types produced by the tokenizer and consumed by the compiler."""

from __future__ import annotations

from typing import Union

import msgspec


class Text(msgspec.Struct, frozen=True):
    """Literal template text."""

    line: int
    content: str


class ExprToken(msgspec.Struct, frozen=True):
    """Common shape of every tag token: ``<%marker code %>``."""

    line: int
    marker: str
    code: str


class Expr(ExprToken, frozen=True):
    """A standalone expression, e.g. ``<%= name %>``."""


class StartExpr(ExprToken, frozen=True):
    """Opens a block, e.g. ``<%= if cond do %>``."""


class MiddleExpr(ExprToken, frozen=True):
    """Continues a block, e.g. ``<% else %>``. Must carry no marker."""


class EndExpr(ExprToken, frozen=True):
    """Closes a block, e.g. ``<% end %>``. Must carry no marker."""


Token = Union[Text, Expr, StartExpr, MiddleExpr, EndExpr]

TOKEN_KINDS: dict[str, type[ExprToken]] = {
    "expr": Expr,
    "start": StartExpr,
    "middle": MiddleExpr,
    "end": EndExpr,
}
