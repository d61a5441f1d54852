"""Tests for the exception hierarchy."""

from eex.exceptions import EExError, EExSyntaxError, ExpressionSyntaxError, TokenizerError


def test_syntax_error_message():
    exc = EExSyntaxError("boom", file="page.eex", line=4)

    assert str(exc) == "page.eex:4: boom"
    assert (exc.file, exc.line, exc.message) == ("page.eex", 4, "boom")


def test_syntax_error_defaults():
    assert str(EExSyntaxError("boom")) == "nofile: boom"
    assert str(EExSyntaxError("boom", line=2)) == "nofile:2: boom"


def test_tokenizer_error():
    exc = TokenizerError(3, "missing token '%>'")

    assert str(exc) == "3: missing token '%>'"
    assert isinstance(exc, EExError)


def test_hierarchy():
    assert issubclass(ExpressionSyntaxError, EExSyntaxError)
    assert issubclass(EExSyntaxError, EExError)
    assert issubclass(TokenizerError, EExError)
