"""Expression parser for the code inside template tags.

The grammar lives in ``grammar.lark``. Parsing goes through two steps: Lark
builds a parse tree, then ``_TreeBuilder`` turns it into the nodes from
``eex.tree`` with absolute line numbers.
"""

from __future__ import annotations

import ast
import functools
import logging
from typing import Any, NamedTuple

from lark import Lark, Token, Transformer, v_args
from lark.exceptions import (
    UnexpectedCharacters,
    UnexpectedEOF,
    UnexpectedInput,
    UnexpectedToken,
    VisitError,
)

from eex.exceptions import ExpressionSyntaxError
from eex.tree import Atom, Call, Pair, alias, remote

log = logging.getLogger(__name__)

MIDDLE_KEYWORDS = frozenset({"else", "catch", "rescue", "after"})


@functools.lru_cache(maxsize=None)
def _load_grammar() -> Lark:
    log.debug("Loading expression grammar")
    return Lark.open(
        "grammar.lark",
        rel_to=__file__,
        parser="earley",
        lexer="basic",
        propagate_positions=True,
        maybe_placeholders=False,
    )


class _KeywordArg(NamedTuple):
    key: Atom
    value: Any


@v_args(meta=True)
class _TreeBuilder(Transformer):
    """Builds expression tree nodes from a Lark parse tree."""

    def __init__(self, offset: int):
        super().__init__()
        self._offset = offset

    def _meta(self, meta) -> dict:
        if getattr(meta, "empty", True):
            return {"line": self._offset + 1}
        return {"line": meta.line + self._offset}

    # Statements

    def body(self, meta, children):
        return children[0] if children else None

    def stmts(self, meta, children):
        if len(children) == 1:
            return children[0]
        return Call("__block__", self._meta(meta), list(children))

    # Operators

    def binop(self, meta, children):
        left, op, right = children
        return Call(str(op), self._meta(meta), [left, right])

    def unop(self, meta, children):
        op, operand = children
        return Call(str(op), self._meta(meta), [operand])

    # Calls and references

    def var(self, meta, children):
        return Call(str(children[0]), self._meta(meta), None)

    def local_call(self, meta, children):
        name, *rest = children
        return Call(str(name), self._meta(meta), rest[0] if rest else [])

    def remote_call(self, meta, children):
        target, name, *rest = children
        m = self._meta(meta)
        return Call(Call(".", dict(m), [target, Atom(str(name))]), m, rest[0] if rest else [])

    def dot_access(self, meta, children):
        target, name = children
        m = self._meta(meta)
        return Call(Call(".", dict(m), [target, Atom(str(name))]), {**m, "no_parens": True}, [])

    def access(self, meta, children):
        target, key = children
        m = self._meta(meta)
        return remote(alias("Access", meta=dict(m)), "get", [target, key], m)

    def alias(self, meta, children):
        return Call("__aliases__", self._meta(meta), [Atom(part) for part in str(children[0]).split(".")])

    def assign(self, meta, children):
        _, name = children
        m = self._meta(meta)
        return Call("@", m, [Call(str(name), dict(m), None)])

    def args(self, meta, children):
        positional = [child for child in children if not isinstance(child, _KeywordArg)]
        keywords = [Pair(child.key, child.value) for child in children if isinstance(child, _KeywordArg)]
        if keywords:
            positional.append(keywords)
        return positional

    def items(self, meta, children):
        return [Pair(child.key, child.value) if isinstance(child, _KeywordArg) else child for child in children]

    def kw_pair(self, meta, children):
        key, value = children
        return _KeywordArg(Atom(str(key)[:-1]), value)

    # Containers

    def list_literal(self, meta, children):
        return children[0] if children else []

    def tuple_literal(self, meta, children):
        items = children[0] if children else []
        if len(items) == 2:
            return Pair(items[0], items[1])
        return Call("{}", self._meta(meta), items)

    # Blocks

    def block_call(self, meta, children):
        name, *args, blocks = children
        return Call(str(name), self._meta(meta), (args[0] if args else []) + [blocks])

    def do_block(self, meta, children):
        # Labels arrive as lark Tokens, section bodies as built nodes.
        blocks = []
        label, body = "do", None
        for child in children:
            if isinstance(child, Token):
                blocks.append(Pair(Atom(label), body))
                label, body = str(child), None
            else:
                body = child
        blocks.append(Pair(Atom(label), body))
        return blocks

    def clauses(self, meta, children):
        return list(children)

    def clause(self, meta, children):
        patterns, *body = children
        return Call("->", self._meta(meta), [patterns, body[0] if body else None])

    def patterns(self, meta, children):
        return list(children)

    # Literals

    def integer(self, meta, children):
        return int(str(children[0]).replace("_", ""))

    def decimal(self, meta, children):
        return float(str(children[0]).replace("_", ""))

    def string(self, meta, children):
        return ast.literal_eval(str(children[0]).replace("\n", "\\n"))

    def atom(self, meta, children):
        return Atom(str(children[0])[1:])

    def true(self, meta, children):
        return True

    def false(self, meta, children):
        return False

    def nil(self, meta, children):
        return None


class ExpressionParser:
    """Parses and classifies code fragments written in the expression language."""

    def __init__(self):
        self._lark = _load_grammar()

    def parse(self, text: str, line: int = 1, file: str = "nofile") -> Any:
        """Parse ``text`` into an expression tree.

        Args:
            text: Source code of one expression or a reconstructed block.
            line: Line number of the first line of ``text``.
            file: File name reported in errors.

        Returns:
            The expression tree. Empty code parses to ``None``.

        Raises:
            ExpressionSyntaxError: If ``text`` is not valid code.
        """
        try:
            parse_tree = self._lark.parse(text)
        except UnexpectedInput as exc:
            raise self._syntax_error(exc, text, line, file) from exc

        try:
            return _TreeBuilder(line - 1).transform(parse_tree)
        except VisitError as exc:
            raise ExpressionSyntaxError(str(exc.orig_exc), file=file, line=line) from exc

    def classify(self, code: str) -> str:
        """Classify tag code as ``"expr"``, ``"start"``, ``"middle"`` or ``"end"``.

        Code the lexer rejects is classified as ``"expr"`` so that the parser
        reports the error with proper context later on.
        """
        try:
            words = [token.value for token in self._lark.lex(code)]
        except UnexpectedInput:
            return "expr"

        if not words:
            return "expr"
        first, last = words[0], words[-1]
        if first == "end":
            return "middle" if last in ("do", "->") else "end"
        if first in MIDDLE_KEYWORDS or last == "->":
            return "middle"
        if last == "do":
            return "start"
        return "expr"

    def names(self, code: str) -> set[str]:
        """Identifiers used in ``code``. Code the lexer rejects has none."""
        try:
            return {token.value for token in self._lark.lex(code) if token.type == "NAME"}
        except UnexpectedInput:
            return set()

    def ends_in_comment(self, code: str) -> bool:
        """Whether the last thing in ``code`` is a ``#`` comment."""
        try:
            tokens = [token for token in self._lark.lex(code, dont_ignore=True) if token.type != "WS"]
        except UnexpectedInput:
            return False
        return bool(tokens) and tokens[-1].type == "COMMENT"

    @staticmethod
    def _syntax_error(exc: UnexpectedInput, text: str, line: int, file: str) -> ExpressionSyntaxError:
        last_line = line + text.count("\n")

        if isinstance(exc, UnexpectedCharacters):
            return ExpressionSyntaxError(f"unexpected character {exc.char!r}", file=file, line=line + exc.line - 1)

        if isinstance(exc, UnexpectedToken) and exc.token.type != "$END":
            token_line = getattr(exc.token, "line", None)
            return ExpressionSyntaxError(
                f"syntax error before: {exc.token.value!r}",
                file=file,
                line=last_line if token_line is None else line + token_line - 1,
            )

        if isinstance(exc, (UnexpectedEOF, UnexpectedToken)):
            return ExpressionSyntaxError("unexpected end of expression", file=file, line=last_line)

        return ExpressionSyntaxError(str(exc), file=file, line=line)
