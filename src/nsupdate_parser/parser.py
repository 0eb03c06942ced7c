"""Directive and document grammar for nsupdate scripts."""

from __future__ import annotations

import logging
from dataclasses import replace

import pyparsing as pp

from .models import (
    Directive,
    Document,
    RecordClass,
    Send,
    StructuralError,
    UpdateAdd,
    UpdateDelete,
)
from .records import RECORD, RECORD_KIND
from .tokens import (
    BLANKS,
    COMMENT,
    END_OF_TEXT,
    NEWLINE,
    GrammarFault,
    at_line_end,
    domain,
    gap,
    missing,
    on_fail,
    parse_with,
    ttl,
    word_at,
)

LOG = logging.getLogger("nsupdate_parser")

DIRECTIVE_KEYWORDS = ("send", "update")
ACTION_KEYWORDS = ("add", "delete")
CLASS_KEYWORDS = tuple(rdclass.value for rdclass in RecordClass)


def _keyword(word: str) -> pp.ParserElement:
    return pp.Keyword(word).leave_whitespace()


RECORD_CLASS = on_fail(
    pp.MatchFirst([_keyword(word) for word in CLASS_KEYWORDS]),
    lambda text, loc: missing(text, loc, "class", CLASS_KEYWORDS),
)
RECORD_CLASS.set_parse_action(lambda toks: RecordClass(toks[0])).set_name("class")


def _update_add(text: str, loc: int, toks: pp.ParseResults) -> UpdateAdd:
    return UpdateAdd(
        domain=toks["domain"],
        ttl=toks["ttl"],
        rdclass=toks["rdclass"],
        record=toks["record"],
        line=pp.lineno(loc, text),
    )


def _update_delete(text: str, loc: int, toks: pp.ParseResults) -> UpdateDelete:
    return UpdateDelete(domain=toks["domain"], record_kind=toks["record_kind"], line=pp.lineno(loc, text))


ADD = (
    _keyword("add").suppress()
    + gap("domain")
    + domain()("domain")
    + gap("ttl")
    + ttl()("ttl")
    + gap("class")
    + RECORD_CLASS("rdclass")
    + gap("record type")
    + RECORD("record")
).set_parse_action(_update_add)

DELETE = (
    _keyword("delete").suppress()
    + gap("domain")
    + domain()("domain")
    + gap("record type")
    + RECORD_KIND("record_kind")
).set_parse_action(_update_delete)

UPDATE = (
    _keyword("update").suppress()
    + gap("update action")
    + on_fail(ADD | DELETE, lambda text, loc: missing(text, loc, "update action", ACTION_KEYWORDS))
)
SEND = _keyword("send").set_parse_action(lambda text, loc, toks: Send(line=pp.lineno(loc, text)))


def _explain_directive(text: str, loc: int) -> GrammarFault | None:
    """Blank and comment-only lines carry no directive."""
    if at_line_end(text, loc):
        return None
    return GrammarFault(
        text,
        loc,
        f"unknown directive {word_at(text, loc)!r}",
        StructuralError,
        "directive",
        DIRECTIVE_KEYWORDS,
    )


DIRECTIVE = on_fail(SEND | UPDATE, _explain_directive).set_name("directive")
LINE = pp.Opt(BLANKS) + pp.Opt(DIRECTIVE) + pp.Opt(BLANKS) + pp.Opt(COMMENT)
DOCUMENT = LINE + pp.ZeroOrMore(NEWLINE + LINE)
SINGLE_LINE = LINE + pp.Opt(NEWLINE) + END_OF_TEXT


def parse_document(text: str) -> Document:
    """Parse a whole script.

    The first error aborts the parse; no partial document is returned.
    """
    directives = tuple(parse_with(DOCUMENT, text, parse_all=True))
    LOG.debug("Parsed %s directives from %s lines", len(directives), text.count("\n") + 1)
    return Document(directives)


def parse_line(text: str, line: int = 1) -> Directive | None:
    """Parse a single line, numbering errors from ``line``.

    Returns None for blank and comment-only lines. A trailing newline is
    accepted; more content after it is a ``StructuralError``.
    """
    results = parse_with(SINGLE_LINE, text, parse_all=True, first_line=line)
    if not results:
        return None
    directive = results[0]
    return replace(directive, line=directive.line + line - 1)
