"""Tests for expression tree helpers."""

from eex.tree import Atom, Call, Pair, alias, line_of, prewalk, remote, var


def test_helpers_build_calls():
    assert var("x") == Call("x", {}, None)
    assert alias("String", "Chars") == Call("__aliases__", {}, [Atom("String"), Atom("Chars")])
    assert remote(alias("M"), "f", [1]) == Call(
        Call(".", {}, [Call("__aliases__", {}, [Atom("M")]), Atom("f")]), {}, [1]
    )


def test_line_of():
    assert line_of(Call("x", {"line": 3}, None)) == 3
    assert line_of(Call("x", {}, None)) is None
    assert line_of(42) is None


def test_prewalk_visits_parents_first():
    tree = Call("+", {}, [var("a"), Pair(var("b"), [var("c")])])
    seen = []

    def visit(node):
        if isinstance(node, Call) and node.args is None:
            seen.append(node.target)
        return node

    assert prewalk(tree, visit) == tree
    assert seen == ["a", "b", "c"]


def test_prewalk_walks_into_replacements():
    def rename(node):
        if node == var("a"):
            return Call("wrap", {}, [var("b")])
        if node == var("b"):
            return var("c")
        return node

    assert prewalk(var("a"), rename) == Call("wrap", {}, [var("c")])
