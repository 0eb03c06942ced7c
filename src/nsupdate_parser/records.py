"""Record content grammars and the keyword dispatcher."""

from __future__ import annotations

from typing import Dict

import pyparsing as pp

from .addresses import IPV4, IPV6
from .models import (
    AAAARecord,
    ARecord,
    CNAMERecord,
    MXRecord,
    NSRecord,
    RecordKind,
    RecordTypeError,
    SRVRecord,
    SSHFPRecord,
    TXTRecord,
    URIRecord,
)
from .tokens import (
    GrammarFault,
    at_line_end,
    digit,
    domain,
    gap,
    hex_digits,
    missing,
    number,
    on_fail,
    quoted_string,
    word_at,
)

RECORD_KEYWORDS = tuple(kind.value for kind in RecordKind)


def _explain_kind(text: str, loc: int) -> GrammarFault:
    if at_line_end(text, loc):
        return missing(text, loc, "record type", RECORD_KEYWORDS)
    return GrammarFault(
        text,
        loc,
        f"unknown record type {word_at(text, loc)!r}",
        RecordTypeError,
        "record type",
        RECORD_KEYWORDS,
    )


def _keyword(kind: RecordKind) -> pp.ParserElement:
    return pp.Keyword(kind.value).leave_whitespace()


RECORD_KIND = on_fail(pp.MatchFirst([_keyword(kind) for kind in RecordKind]), _explain_kind)
RECORD_KIND.set_parse_action(lambda toks: RecordKind(toks[0])).set_name("record type")

# Three numbers before the target: the SRV line carries a leading priority.
SRV_FOUR_FIELDS = pp.FollowedBy(pp.Regex(r"[0-9]+[ \t]+[0-9]+[ \t]+[0-9]+[ \t]+[^ \t\r\n;]").leave_whitespace())
# Two numbers before the quoted target: the URI line carries a leading priority.
URI_THREE_FIELDS = pp.FollowedBy(pp.Regex(r"[0-9]+[ \t]+[0-9]").leave_whitespace())


def _srv() -> pp.ParserElement:
    """``[priority] weight port target``."""
    element = (
        pp.Opt(SRV_FOUR_FIELDS + number("priority")("priority") + gap("weight"))
        + number("weight")("weight")
        + gap("port")
        + number("port")("port")
        + gap("target")
        + domain("SRV target")("target")
    )
    return element.set_parse_action(
        lambda toks: SRVRecord(
            weight=toks["weight"],
            port=toks["port"],
            target=toks["target"],
            priority=toks.get("priority"),
        )
    )


def _sshfp() -> pp.ParserElement:
    element = (
        digit("algorithm")("algorithm")
        + gap("fingerprint type")
        + digit("fingerprint type")("fp_type")
        + gap("fingerprint")
        + hex_digits("fingerprint")("fingerprint")
    )
    return element.set_parse_action(
        lambda toks: SSHFPRecord(
            algorithm=toks["algorithm"],
            fp_type=toks["fp_type"],
            fingerprint=toks["fingerprint"],
        )
    )


def _uri() -> pp.ParserElement:
    """``[priority] weight "target"``."""
    element = (
        pp.Opt(URI_THREE_FIELDS + number("priority")("priority") + gap("weight"))
        + number("weight")("weight")
        + gap("target")
        + quoted_string("URI target")("target")
    )
    return element.set_parse_action(
        lambda toks: URIRecord(weight=toks["weight"], target=toks["target"], priority=toks.get("priority"))
    )


RECORD_GRAMMARS: Dict[RecordKind, pp.ParserElement] = {
    RecordKind.A: IPV4.copy().add_parse_action(lambda toks: ARecord(toks[0])),
    RecordKind.AAAA: IPV6.copy().add_parse_action(lambda toks: AAAARecord(toks[0])),
    RecordKind.CNAME: domain("CNAME target").add_parse_action(lambda toks: CNAMERecord(toks[0])),
    RecordKind.TXT: quoted_string("TXT text").add_parse_action(lambda toks: TXTRecord(toks[0])),
    RecordKind.SRV: _srv(),
    RecordKind.MX: domain("mail host").add_parse_action(lambda toks: MXRecord(toks[0])),
    RecordKind.NS: domain("name server").add_parse_action(lambda toks: NSRecord(toks[0])),
    RecordKind.SSHFP: _sshfp(),
    RecordKind.URI: _uri(),
}

# ``<TYPE> <content>``: the type keyword selects the content grammar.
RECORD = on_fail(
    pp.MatchFirst(
        [_keyword(kind).suppress() + gap(f"{kind} content") + content for kind, content in RECORD_GRAMMARS.items()]
    ),
    _explain_kind,
)
RECORD.set_name("record")
