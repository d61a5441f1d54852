"""Compiler - glues the tokenizer, the expression parser and an engine together.

Text and expression tokens are folded into the engine buffer as they come.
A start token opens a block: the block's source is rebuilt tag by tag, with
each section's buffer written as a placeholder call, and parsed as a whole
once the end token arrives. The placeholders in the resulting tree are then
replaced by the real buffers.
"""

from __future__ import annotations

import logging
from typing import Any

import msgspec

from eex.exceptions import EExSyntaxError, TokenizerError
from eex.options import CompileOptions
from eex.placeholders import PLACEHOLDER, PlaceholderTable, placeholder
from eex.tokenizer import tokenize
from eex.tokens import EndExpr, Expr, ExprToken, MiddleExpr, StartExpr, Text, Token

log = logging.getLogger(__name__)

SPACES = frozenset(" \t\r\n")


class CompilerState(msgspec.Struct, frozen=True):
    """Immutable state threaded through the compilation of one template.

    ``quoted`` holds the buffers recorded for the innermost open block, in
    placeholder key order. Each block starts with an empty one.
    """

    engine: Any
    parser: Any
    init: Any
    file: str
    line: int
    start_line: int | None = None
    quoted: tuple = ()


class Compiler:
    """Compiles template source into the artifact built by the configured engine."""

    def __init__(self, options: CompileOptions | None = None):
        """Initialize the compiler.

        Args:
            options: Compile options. Defaults to ``CompileOptions()``.
        """
        self.options = options or CompileOptions()

    def compile(self, source: str) -> Any:
        """Compile a template.

        Args:
            source: Template text.

        Returns:
            Whatever the engine's ``handle_body`` returns.

        Raises:
            EExSyntaxError: If the template is structurally invalid or a tag
                is never closed.
            ExpressionSyntaxError: If code inside a tag does not parse.
        """
        options = self.options
        try:
            tokens = tokenize(source, options.line, trim=options.trim, parser=options.parser)
        except TokenizerError as exc:
            raise EExSyntaxError(exc.message, file=options.file, line=exc.line) from exc

        log.debug(f"Compiling {options.file}: {len(tokens)} tokens")

        init = options.engine.init(options)
        state = CompilerState(
            engine=options.engine,
            parser=options.parser,
            init=init,
            file=options.file,
            line=options.line,
        )
        result, _ = self._generate_buffer(tokens, 0, init, (), state)
        return result

    def _generate_buffer(
        self,
        tokens: list[Token],
        pos: int,
        buffer: Any,
        scope: tuple[str, ...],
        state: CompilerState,
    ) -> tuple[Any, int]:
        """Consume tokens from ``pos`` until the current scope closes.

        ``scope`` holds the source rebuilt so far for every open block,
        innermost last.

        Returns:
            ``(tree, next_pos)`` when an end token closes the innermost
            block, or ``(artifact, len(tokens))`` at the end of the template.
        """
        engine = state.engine

        while pos < len(tokens):
            token = tokens[pos]

            if isinstance(token, ExprToken) and PLACEHOLDER in state.parser.names(token.code):
                raise EExSyntaxError(
                    f"reserved name {PLACEHOLDER!r} in <%{token.marker}{token.code}%>",
                    file=state.file,
                    line=token.line,
                )

            if isinstance(token, Text):
                buffer = engine.handle_text(buffer, token.content)
                pos += 1

            elif isinstance(token, Expr):
                expr = state.parser.parse(token.code, line=token.line, file=state.file)
                buffer = self._handle_expr(buffer, token, expr, state)
                pos += 1

            elif isinstance(token, StartExpr):
                contents, line, pos = self._look_ahead_text(tokens, pos + 1, token.line, token.code)
                log.debug(f"Opening block at line {token.line}: {token.code.strip()!r}")
                inner = msgspec.structs.replace(state, quoted=(), line=line, start_line=token.line)
                expr, pos = self._generate_buffer(tokens, pos, state.init, scope + (contents,), inner)
                buffer = self._handle_expr(buffer, token, expr, state)

            elif isinstance(token, MiddleExpr):
                if token.marker:
                    raise self._modifier_error(token, state)
                if not scope:
                    raise EExSyntaxError(f"unexpected token {token.code!r}", file=state.file, line=token.line)
                wrapped, state = self._wrap_expr(scope[-1], token, buffer, state)
                scope = scope[:-1] + (wrapped,)
                state = msgspec.structs.replace(state, line=token.line)
                buffer = state.init
                pos += 1

            elif isinstance(token, EndExpr):
                if not scope:
                    raise EExSyntaxError(f"unexpected token {token.code!r}", file=state.file, line=token.line)
                if token.marker:
                    raise self._modifier_error(token, state)
                wrapped, state = self._wrap_expr(scope[-1], token, buffer, state)
                tree = state.parser.parse(wrapped, line=state.start_line, file=state.file)
                table = PlaceholderTable(state.quoted)
                log.debug(f"Closing block from line {state.start_line} with {len(table)} placeholders")
                return table.substitute(tree), pos + 1

            else:
                raise TypeError(f"Unknown token: {token!r}")

        if scope:
            raise EExSyntaxError(
                "unexpected end of string, expected a closing 'end' tag",
                file=state.file,
                line=state.line,
            )
        return engine.handle_body(buffer), pos

    def _handle_expr(self, buffer: Any, token: ExprToken, expr: Any, state: CompilerState) -> Any:
        """Fold ``expr`` through the engine, reporting engine errors against the template file."""
        try:
            return state.engine.handle_expr(buffer, token.marker, expr)
        except EExSyntaxError as exc:
            if exc.file is not None:
                raise
            line = token.line if exc.line is None else exc.line
            raise type(exc)(exc.message, file=state.file, line=line) from exc

    def _wrap_expr(
        self, current: str, token: ExprToken, buffer: Any, state: CompilerState
    ) -> tuple[str, CompilerState]:
        """Close the current section of a block with a placeholder for ``buffer``.

        Line breaks are padded so that the token's code stays on its
        original line in the rebuilt source.
        """
        new_lines = "\n" * (token.line - state.line)
        key = len(state.quoted)
        wrapped = current + placeholder(key) + new_lines + token.code
        return wrapped, msgspec.structs.replace(state, quoted=state.quoted + (buffer,))

    def _look_ahead_text(
        self, tokens: list[Token], pos: int, start_line: int, contents: str
    ) -> tuple[str, int, int]:
        """Fold a middle tag that directly follows a start tag into the block source.

        Blank text between the two is folded too, instead of reaching the
        engine. Returns the block source, the line it now ends on and the
        position of the next unconsumed token.
        """
        following = tokens[pos : pos + 2]

        if (
            len(following) == 2
            and isinstance(following[0], Text)
            and _is_middle(following[1])
            and set(following[0].content) <= SPACES
        ):
            text, middle = following
            log.debug(f"Folding blank text and {middle.code.strip()!r} into block at line {start_line}")
            return contents + text.content + middle.code, middle.line, pos + 2

        if following and _is_middle(following[0]):
            middle = following[0]
            log.debug(f"Folding {middle.code.strip()!r} into block at line {start_line}")
            return contents + middle.code, middle.line, pos + 1

        return contents, start_line, pos

    @staticmethod
    def _modifier_error(token: ExprToken, state: CompilerState) -> EExSyntaxError:
        return EExSyntaxError(
            f"unexpected token {token.marker!r} on <%{token.marker}{token.code}%>",
            file=state.file,
            line=token.line,
        )


def _is_middle(token: Token) -> bool:
    return isinstance(token, MiddleExpr) and not token.marker


def compile(source: str, options: CompileOptions | None = None) -> Any:
    """Compile ``source`` with ``options``. See ``Compiler.compile``."""
    return Compiler(options).compile(source)
