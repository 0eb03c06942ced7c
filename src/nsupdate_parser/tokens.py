"""Lexical elements shared by the grammar layers, built on pyparsing.

Every element is created with ``leave_whitespace()``: line breaks are
significant and separating blanks are spelled out with :func:`gap`, so no
element skips input on its own.
"""

from __future__ import annotations

import re
import string
from typing import Callable, Sequence, Type

import pyparsing as pp

from .models import (
    Domain,
    DomainError,
    LexicalError,
    ParseError,
    StructuralError,
    UnexpectedEndOfInput,
)

LINE_END = "\r\n"
BOUNDARY_CHARS = " \t\r\n;"
# A token ends at whitespace, a comment, a line break or the end of input.
BOUNDARY = r"(?![^ \t\r\n;])"

WORD_PATTERN = re.compile(r"[^ \t\r\n;]+")
LABEL_CHARS = frozenset(string.ascii_letters + string.digits + "_-")
QUOTED_ESCAPES = frozenset('"\\/bfnrt')

U32_MAX = 2**32 - 1


class GrammarFault(pp.ParseFatalException):
    """Fatal mismatch tagged with the ``ParseError`` subclass it becomes."""

    def __init__(
        self,
        pstr: str,
        loc: int = 0,
        msg: str | None = None,
        error_cls: Type[ParseError] = StructuralError,
        rule: str = "",
        expected: Sequence[str] = (),
    ):
        super().__init__(pstr, loc, msg)
        self.error_cls = error_cls
        self.rule = rule
        self.expected = tuple(expected)


def at_line_end(text: str, loc: int) -> bool:
    """Return True at a newline, a comment, or end of input."""
    return loc >= len(text) or text[loc] in LINE_END or text[loc] == ";"


def bare_carriage_return(text: str, loc: int) -> bool:
    """Return True at a ``\\r`` that is not part of a ``\\r\\n`` line break."""
    return text[loc : loc + 1] == "\r" and not text.startswith("\r\n", loc)


def at_boundary(text: str, loc: int) -> bool:
    return loc >= len(text) or text[loc] in BOUNDARY_CHARS


def word_at(text: str, loc: int) -> str:
    """Return the whitespace-delimited token starting at ``loc``."""
    found = WORD_PATTERN.match(text, loc)
    return shorten(found.group() if found else text[loc : loc + 1])


def shorten(token: str, width: int = 40) -> str:
    return token if len(token) <= width else f"{token[:width - 3]}..."


def missing(
    text: str,
    loc: int,
    rule: str,
    expected: Sequence[str] = (),
    error_cls: Type[ParseError] = StructuralError,
) -> GrammarFault:
    """Fault for a required token that is absent at ``loc``.

    Hitting the end of the line yields ``UnexpectedEndOfInput``, anything
    else ``error_cls``.
    """
    if at_line_end(text, loc):
        return GrammarFault(
            text, loc, f"unexpected end of line, expected {rule}", UnexpectedEndOfInput, rule, expected
        )
    return GrammarFault(text, loc, f"expected {rule}, found {word_at(text, loc)!r}", error_cls, rule, expected)


def on_fail(
    element: pp.ParserElement,
    explain: Callable[[str, int], GrammarFault | None],
) -> pp.ParserElement:
    """Raise the fault built by ``explain`` when ``element`` does not match.

    Faults raised further down pass through untouched. ``explain`` returns
    None to let an ordinary mismatch propagate, e.g. for optional parts.
    """

    def fail(text: str, loc: int, expr: pp.ParserElement, exc: Exception) -> None:
        if not isinstance(exc, pp.ParseException):
            return
        if bare_carriage_return(text, loc):
            raise GrammarFault(text, loc, "bare carriage return", StructuralError, "end of line", ("newline",))
        fault = explain(text, loc)
        if fault is not None:
            raise fault

    return element.set_fail_action(fail)


def gap(rule: str) -> pp.ParserElement:
    """Mandatory spaces or tabs in front of ``rule``."""

    def explain(text: str, loc: int) -> GrammarFault:
        if at_line_end(text, loc):
            return missing(text, loc, rule)
        return GrammarFault(
            text, loc, f"expected whitespace before {rule}, found {word_at(text, loc)!r}", StructuralError, rule
        )

    return on_fail(pp.Suppress(pp.Regex(r"[ \t]+").leave_whitespace()), explain)


BLANKS = pp.Suppress(pp.Regex(r"[ \t]+").leave_whitespace())
COMMENT = pp.Suppress(pp.Regex(r";[^\r\n]*").leave_whitespace()).set_name("comment")


def _explain_line_end(text: str, loc: int) -> GrammarFault | None:
    if loc >= len(text):
        return None
    return GrammarFault(
        text,
        loc,
        f"unexpected trailing input {word_at(text, loc)!r}",
        StructuralError,
        "end of line",
        ("newline", "comment"),
    )


NEWLINE = on_fail(pp.Suppress(pp.Regex(r"\r?\n").leave_whitespace()), _explain_line_end)
END_OF_TEXT = on_fail(pp.StringEnd().leave_whitespace(), _explain_line_end)


def number(rule: str, limit: int = U32_MAX) -> pp.ParserElement:
    """Unsigned decimal no larger than ``limit``."""

    def convert(text: str, loc: int, toks: pp.ParseResults) -> int:
        digits = toks[0]
        end = loc + len(digits)
        if not at_boundary(text, end):
            raise GrammarFault(text, end, f"malformed {rule} {shorten(text[loc:end + 1])!r}", LexicalError, rule)
        significant = digits.lstrip("0") or "0"
        # Reject by length first; int() refuses very long digit runs.
        if len(significant) > len(str(limit)) or int(significant) > limit:
            raise GrammarFault(text, loc, f"{rule} {shorten(digits)} exceeds {limit}", LexicalError, rule)
        return int(significant)

    element = pp.Regex(r"[0-9]+").leave_whitespace().set_parse_action(convert).set_name(rule)
    return on_fail(element, lambda text, loc: missing(text, loc, rule, error_cls=LexicalError))


def digit(rule: str) -> pp.ParserElement:
    """Exactly one decimal digit."""

    def convert(text: str, loc: int, toks: pp.ParseResults) -> int:
        if not at_boundary(text, loc + 1):
            raise GrammarFault(text, loc, f"{rule} must be a single digit", LexicalError, rule)
        return int(toks[0])

    element = pp.Regex(r"[0-9]").leave_whitespace().set_parse_action(convert).set_name(rule)
    return on_fail(element, lambda text, loc: missing(text, loc, rule, error_cls=LexicalError))


def hex_digits(rule: str) -> pp.ParserElement:
    """A run of hex digits, kept as written."""

    def convert(text: str, loc: int, toks: pp.ParseResults) -> str:
        end = loc + len(toks[0])
        if not at_boundary(text, end):
            raise GrammarFault(text, end, f"invalid hex digit {text[end]!r} in {rule}", LexicalError, rule)
        return str(toks[0])

    element = pp.Regex(r"[0-9A-Fa-f]+").leave_whitespace().set_parse_action(convert).set_name(rule)
    return on_fail(element, lambda text, loc: missing(text, loc, rule, error_cls=LexicalError))


def ttl() -> pp.ParserElement:
    return number("ttl", U32_MAX)


def _domain_problem(token: str) -> tuple[int, str]:
    """Locate the first defect in a token that failed the domain rule."""
    for index, char in enumerate(token):
        if char == ".":
            if index == 0 or token[index - 1] == ".":
                return index, "empty label in domain"
        elif char not in LABEL_CHARS:
            return index, f"invalid character {char!r} in domain"
    return len(token), f"domain {shorten(token)!r} must end with '.'"


def domain(rule: str = "domain") -> pp.ParserElement:
    """A fully qualified name where every label is followed by ``.``."""

    def explain(text: str, loc: int) -> GrammarFault:
        if at_line_end(text, loc):
            return missing(text, loc, rule)
        found = WORD_PATTERN.match(text, loc)
        index, message = _domain_problem(found.group() if found else "")
        return GrammarFault(text, loc + index, message, DomainError, rule)

    element = pp.Regex(rf"(?:[A-Za-z0-9_-]+\.)+{BOUNDARY}").leave_whitespace().set_name(rule)
    element.set_parse_action(lambda toks: Domain(tuple(toks[0][:-1].split("."))))
    return on_fail(element, explain)


def quoted_string(rule: str = "quoted string") -> pp.ParserElement:
    """``"..."`` returning the inner text with escapes left untouched."""

    def explain(text: str, loc: int) -> GrammarFault:
        if text[loc : loc + 1] != '"':
            return missing(text, loc, rule, error_cls=LexicalError)
        pos = loc + 1
        while pos < len(text) and text[pos] not in LINE_END:
            if text[pos] == "\\":
                if text[pos + 1 : pos + 2] not in QUOTED_ESCAPES:
                    escaped = text[pos + 1 : pos + 2]
                    return GrammarFault(text, pos, f"invalid escape sequence '\\{escaped}'", LexicalError, rule)
                pos += 2
                continue
            pos += 1
        return GrammarFault(text, loc, "unterminated quoted string", LexicalError, rule)

    element = pp.Regex(r'"(?:[^"\\\r\n]|\\["\\/bfnrt])*"').leave_whitespace().set_name(rule)
    element.set_parse_action(lambda toks: toks[0][1:-1])
    return on_fail(element, explain)


def translate(exc: pp.ParseBaseException, first_line: int = 1) -> ParseError:
    """Turn a pyparsing failure into the matching ``ParseError``."""
    text, loc = exc.pstr, exc.loc
    position = {
        "offset": loc,
        "line": pp.lineno(loc, text) + first_line - 1,
        "column": pp.col(loc, text),
    }
    if isinstance(exc, GrammarFault):
        return exc.error_cls(exc.msg, rule=exc.rule, expected=exc.expected, **position)
    return StructuralError(str(exc.msg), **position)


def parse_with(
    element: pp.ParserElement,
    text: str,
    *,
    parse_all: bool = False,
    first_line: int = 1,
) -> pp.ParseResults:
    """Run ``element`` over ``text``, raising ``ParseError`` on failure.

    Tabs are kept so that offsets and columns match the caller's text.
    """
    try:
        return element.parse_with_tabs().parse_string(text, parse_all=parse_all)
    except pp.ParseBaseException as exc:
        raise translate(exc, first_line) from exc
