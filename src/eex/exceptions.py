"""EEx Exceptions

Errors raised while tokenizing and compiling templates.
"""

from __future__ import annotations


class EExError(Exception):
    """Base exception for all eex errors."""

    pass


class TokenizerError(EExError):
    """Raised by the tokenizer when the template text cannot be split into tags.

    The compiler wraps it into an EExSyntaxError carrying the file name.
    """

    def __init__(self, line: int, message: str):
        self.line = line
        self.message = message
        super().__init__(f"{line}: {message}")


class EExSyntaxError(EExError):
    """Raised when a template is structurally invalid.

    Examples:
    - a modifier on a middle or end tag (``<%= else %>``),
    - an ``end`` tag with no open block,
    - input ending while a block is still open.
    """

    def __init__(self, message: str, file: str | None = None, line: int | None = None):
        self.message = message
        self.file = file
        self.line = line
        super().__init__(self._format())

    def _format(self) -> str:
        file = self.file or "nofile"
        if self.line is None:
            return f"{file}: {self.message}"
        return f"{file}:{self.line}: {self.message}"


class ExpressionSyntaxError(EExSyntaxError):
    """Raised by the expression parser when code inside a tag is invalid.

    For block constructs the line refers to the reconstructed block source,
    which keeps the line numbers of the original template.
    """

    pass
