"""EEx - embedded expression templates compiled to expression trees."""

from typing import Any

from eex._version import __version__

# Re-export from compiler
from eex.compiler import Compiler, CompilerState, compile
from eex.engine import DefaultEngine, Engine, SmartEngine
from eex.exceptions import EExError, EExSyntaxError, ExpressionSyntaxError, TokenizerError
from eex.options import CompileOptions
from eex.parser import ExpressionParser
from eex.renderer import Renderer, to_source
from eex.tokenizer import tokenize
from eex.tokens import EndExpr, Expr, MiddleExpr, StartExpr, Text, Token
from eex.tree import Atom, Call, Pair


def compile_string(source: str, **options: Any) -> Any:
    """Compile ``source`` with options given as keyword arguments.

    Raises:
        pydantic.ValidationError: If an option value is invalid.
    """
    return compile(source, CompileOptions(**options))


__all__ = [
    "__version__",
    # compiler
    "Compiler",
    "CompilerState",
    "compile",
    "compile_string",
    "CompileOptions",
    # engines
    "Engine",
    "DefaultEngine",
    "SmartEngine",
    # errors
    "EExError",
    "EExSyntaxError",
    "ExpressionSyntaxError",
    "TokenizerError",
    # parsing
    "ExpressionParser",
    "tokenize",
    "Text",
    "Expr",
    "StartExpr",
    "MiddleExpr",
    "EndExpr",
    "Token",
    # trees
    "Atom",
    "Call",
    "Pair",
    "Renderer",
    "to_source",
]
