"""Engines decide how template text and expressions accumulate.

The compiler never looks inside a buffer. It only threads the value returned
by one engine call into the next.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from eex.exceptions import EExSyntaxError
from eex.tree import Atom, Call, alias, line_of, prewalk, remote, var

if TYPE_CHECKING:
    from eex.options import CompileOptions


class Engine(ABC):
    """Abstract base class for template engines."""

    @abstractmethod
    def init(self, options: CompileOptions) -> Any:
        """Return the initial buffer.

        Called once per compilation. The same value is reused whenever a new
        block section starts.

        Args:
            options: The options the template is compiled with.

        Returns:
            The empty buffer.
        """
        pass

    @abstractmethod
    def handle_text(self, buffer: Any, text: str) -> Any:
        """Fold literal template text into the buffer."""
        pass

    @abstractmethod
    def handle_expr(self, buffer: Any, marker: str, expr: Any) -> Any:
        """Fold an expression into the buffer.

        Args:
            buffer: Current buffer.
            marker: Tag marker, e.g. ``"="`` for ``<%= %>`` or ``""`` for ``<% %>``.
            expr: Expression tree, with any block sections already spliced in.

        Returns:
            The new buffer.

        Raises:
            EExSyntaxError: If the engine does not support ``marker``.
        """
        pass

    @abstractmethod
    def handle_body(self, buffer: Any) -> Any:
        """Turn the final buffer into the compiled artifact."""
        pass


class DefaultEngine(Engine):
    """Builds a string concatenation expression.

    Output tags append ``String.Chars.to_string(expr)`` to the buffer, plain
    tags evaluate the expression and keep the buffer unchanged.
    """

    def init(self, options: CompileOptions) -> Any:
        return ""

    def handle_text(self, buffer: Any, text: str) -> Any:
        return Call("<>", {}, [buffer, text])

    def handle_expr(self, buffer: Any, marker: str, expr: Any) -> Any:
        if marker == "=":
            return Call("<>", {}, [buffer, remote(alias("String", "Chars"), "to_string", [expr])])
        if marker == "":
            return Call("__block__", {}, [Call("=", {}, [var("tmp"), buffer]), expr, var("tmp")])
        raise EExSyntaxError(
            f"unsupported EEx syntax <%{marker} %> "
            "(the syntax is valid but not supported by the current EEx engine)",
            line=line_of(expr),
        )

    def handle_body(self, buffer: Any) -> Any:
        return buffer


class SmartEngine(DefaultEngine):
    """Default engine with support for ``@name`` assigns.

    Every ``@name`` becomes ``EEx.Engine.fetch_assign!(assigns, :name)``.
    """

    def handle_expr(self, buffer: Any, marker: str, expr: Any) -> Any:
        return super().handle_expr(buffer, marker, prewalk(expr, _handle_assign))


def _handle_assign(node: Any) -> Any:
    if (
        isinstance(node, Call)
        and node.target == "@"
        and node.args
        and len(node.args) == 1
        and isinstance(node.args[0], Call)
        and isinstance(node.args[0].target, str)
        and node.args[0].args is None
    ):
        meta = node.meta
        return remote(
            alias("EEx", "Engine", meta=dict(meta)),
            "fetch_assign!",
            [var("assigns", dict(meta)), Atom(node.args[0].target)],
            dict(meta),
        )
    return node
