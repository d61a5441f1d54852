"""Splits template source into text and tag tokens."""

from __future__ import annotations

from eex.exceptions import TokenizerError
from eex.parser import ExpressionParser
from eex.tokens import TOKEN_KINDS, Text, Token

OPEN = "<%"
CLOSE = "%>"
MARKERS = ("=", "/", "|", "#")
TRIMMABLE = " \t\r"


def tokenize(
    source: str,
    line: int = 1,
    trim: bool = False,
    parser: ExpressionParser | None = None,
) -> list[Token]:
    """Tokenize template source.

    Args:
        source: Template text.
        line: Line number of the first line of ``source``.
        trim: Drop the indentation and line break around tags that sit
            alone on their line.
        parser: Expression parser used to classify tag code.

    Returns:
        Text and tag tokens in source order, each carrying its starting line.

    Raises:
        TokenizerError: If a tag is never closed, or a block tag ends in a
            comment.
    """
    parser = parser or ExpressionParser()
    tokens: list[Token] = []
    text = ""
    text_line = line
    pos = 0

    def add_text(chunk: str, at_line: int) -> None:
        nonlocal text, text_line
        if not text:
            text_line = at_line
        text += chunk

    def flush_text() -> None:
        nonlocal text
        if text:
            tokens.append(Text(text_line, text))
            text = ""

    while True:
        start = source.find(OPEN, pos)
        if start == -1:
            add_text(source[pos:], line)
            break

        chunk = source[pos:start]
        add_text(chunk, line)
        line += chunk.count("\n")
        tag_line = line
        pos = start + len(OPEN)

        if source.startswith("%", pos):
            end = source.find(CLOSE, pos)
            if end == -1:
                raise TokenizerError(tag_line, f"missing token {CLOSE!r}")
            quoted = source[pos + 1 : end]
            add_text(OPEN + quoted + CLOSE, tag_line)
            line += quoted.count("\n")
            pos = end + len(CLOSE)
            continue

        marker = source[pos] if source[pos : pos + 1] in MARKERS else ""
        pos += len(marker)
        code, end = _read_code(source, pos, tag_line)
        line += source[pos:end].count("\n")
        pos = end

        if trim:
            line_start = source.rfind("\n", 0, start) + 1
            indent = source[line_start:start]
            line_end = source.find("\n", pos)
            tail = source[pos:] if line_end == -1 else source[pos:line_end]
            if not indent.strip(" \t") and not tail.strip(TRIMMABLE):
                text = text[: len(text) - len(indent)]
                if line_end == -1:
                    pos = len(source)
                else:
                    pos = line_end + 1
                    line += 1

        if marker == "#":
            continue

        kind = parser.classify(code)
        # Block source is rebuilt by appending to this code.
        if kind in ("start", "middle") and parser.ends_in_comment(code):
            raise TokenizerError(tag_line, f"unexpected comment at the end of <%{marker}{code}%>")

        flush_text()
        tokens.append(TOKEN_KINDS[kind](tag_line, marker, code))

    flush_text()
    return tokens


def _read_code(source: str, pos: int, line: int) -> tuple[str, int]:
    # "%%>" inside a tag stands for a literal "%>".
    code = ""
    while True:
        end = source.find(CLOSE, pos)
        if end == -1:
            raise TokenizerError(line, f"missing token {CLOSE!r}")
        if end > pos and source[end - 1] == "%":
            code += source[pos : end - 1] + CLOSE
            pos = end + len(CLOSE)
            continue
        return code + source[pos:end], end + len(CLOSE)
