"""Tests for the built-in engines."""

import pytest

from eex.engine import DefaultEngine, Engine, SmartEngine
from eex.exceptions import EExSyntaxError
from eex.options import CompileOptions
from eex.parser import ExpressionParser
from eex.tree import Atom, Call


def to_string(expr, meta=None):
    meta = meta or {}
    chars = Call("__aliases__", meta, [Atom("String"), Atom("Chars")])
    return Call(Call(".", meta, [chars, Atom("to_string")]), meta, [expr])


def test_engine_is_abstract():
    with pytest.raises(TypeError):
        Engine()


def test_default_engine_init():
    assert DefaultEngine().init(CompileOptions()) == ""


def test_default_engine_text():
    assert DefaultEngine().handle_text("", "a") == Call("<>", {}, ["", "a"])


def test_default_engine_output_expression():
    x = Call("x", {"line": 1}, None)

    assert DefaultEngine().handle_expr("", "=", x) == Call("<>", {}, ["", to_string(x)])


def test_default_engine_silent_expression():
    """Plain tags evaluate the expression but keep the buffer."""
    x = Call("x", {"line": 1}, None)
    tmp = Call("tmp", {}, None)

    assert DefaultEngine().handle_expr("buf", "", x) == Call(
        "__block__", {}, [Call("=", {}, [tmp, "buf"]), x, tmp]
    )


def test_default_engine_rejects_other_markers():
    with pytest.raises(EExSyntaxError) as exc_info:
        DefaultEngine().handle_expr("", "/", Call("x", {"line": 7}, None))

    assert exc_info.value.line == 7
    assert exc_info.value.message == (
        "unsupported EEx syntax <%/ %> "
        "(the syntax is valid but not supported by the current EEx engine)"
    )


def test_default_engine_body():
    assert DefaultEngine().handle_body("buf") == "buf"


def test_smart_engine_rewrites_assigns():
    expr = ExpressionParser().parse("@title")
    meta = {"line": 1}
    engine = Call("__aliases__", meta, [Atom("EEx"), Atom("Engine")])
    fetch = Call(
        Call(".", meta, [engine, Atom("fetch_assign!")]),
        meta,
        [Call("assigns", meta, None), Atom("title")],
    )

    assert SmartEngine().handle_expr("", "=", expr) == Call("<>", {}, ["", to_string(fetch)])


def test_smart_engine_rewrites_nested_assigns():
    expr = ExpressionParser().parse("@a + f(@b)")

    result = SmartEngine().handle_expr("", "", expr)

    plus = result.args[1]
    assert plus.target == "+"
    assert plus.args[0].args[1] == Atom("a")
    assert plus.args[1].args[0].args[1] == Atom("b")


def test_smart_engine_leaves_other_code_alone():
    expr = ExpressionParser().parse("a + 1")

    assert SmartEngine().handle_expr("", "=", expr) == DefaultEngine().handle_expr("", "=", expr)
