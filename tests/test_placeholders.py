"""Tests for placeholder substitution."""

import pytest

from eex.parser import ExpressionParser
from eex.placeholders import PLACEHOLDER, PlaceholderTable, is_placeholder, placeholder
from eex.tree import Atom, Call, Pair


def test_placeholder_source():
    assert placeholder(0) == " __EEX__(0);"
    assert placeholder(12) == " __EEX__(12);"


def test_is_placeholder():
    assert is_placeholder(Call(PLACEHOLDER, {}, [0]))
    assert not is_placeholder(Call(PLACEHOLDER, {}, [True]))
    assert not is_placeholder(Call(PLACEHOLDER, {}, None))
    assert not is_placeholder(Call(PLACEHOLDER, {}, [0, 1]))
    assert not is_placeholder(Call("other", {}, [0]))


def test_substitute_parsed_block():
    """Placeholders written into block source are replaced after parsing."""
    source = f"if x do{placeholder(0)} else{placeholder(1)} end"
    tree = ExpressionParser().parse(source)

    result = PlaceholderTable(("first", "second")).substitute(tree)

    assert result == Call(
        "if",
        {"line": 1},
        [Call("x", {"line": 1}, None), [Pair(Atom("do"), "first"), Pair(Atom("else"), "second")]],
    )


def test_substitute_inside_pairs_and_lists():
    tree = [Pair(Atom("k"), Call(PLACEHOLDER, {}, [0])), 1]

    assert PlaceholderTable(("v",)).substitute(tree) == [Pair(Atom("k"), "v"), 1]


def test_substitute_inside_remote_target():
    tree = Call(Call(".", {}, [Call(PLACEHOLDER, {}, [0]), Atom("f")]), {}, [])

    assert PlaceholderTable(("m",)).substitute(tree) == Call(Call(".", {}, ["m", Atom("f")]), {}, [])


def test_substituted_values_are_not_walked():
    """A recorded buffer is inserted as is, even if it looks like a placeholder."""
    inner = Call(PLACEHOLDER, {}, [0])

    assert PlaceholderTable((inner,)).substitute(Call(PLACEHOLDER, {}, [0])) is inner


def test_literals_pass_through():
    table = PlaceholderTable(("unused",))

    assert table.substitute(42) == 42
    assert table.substitute("text") == "text"
    assert table.substitute(None) is None
    assert table.substitute(Call("x", {}, None)) == Call("x", {}, None)


def test_missing_key_raises():
    with pytest.raises(KeyError):
        PlaceholderTable(("only",)).substitute(Call(PLACEHOLDER, {}, [1]))


def test_table_size():
    assert len(PlaceholderTable()) == 0
    assert len(PlaceholderTable(("a", "b"))) == 2
