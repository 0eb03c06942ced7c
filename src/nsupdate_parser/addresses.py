"""IPv4 and IPv6 literal grammars."""

from __future__ import annotations

import re

import pyparsing as pp

from .models import AddressError, IPv4Address, IPv6Address, IPv6Shape
from .tokens import BOUNDARY, GrammarFault, at_line_end, missing, on_fail, shorten, word_at

IPV4_RULE = "IPv4 address"
IPV6_RULE = "IPv6 address"

# Longest alternative first so "255" is never cut short at "25".
OCTET = r"25[0-5]|2[0-4][0-9]|1[0-9][0-9]|[1-9][0-9]|[0-9]"
OCTET_PATTERN = re.compile(OCTET)
DIGITS_PATTERN = re.compile(r"[0-9]+")

HEX_GROUP = r"[0-9A-Fa-f]{1,4}"
DOTTED_QUAD = rf"(?P<ipv4>(?:{OCTET})\.(?:{OCTET})\.(?:{OCTET})\.(?:{OCTET}))"


def _octet(position: int) -> pp.ParserElement:
    """One octet of a dotted quad; the last one must end the token."""
    final = position == 3

    def explain(text: str, loc: int) -> GrammarFault:
        digits = DIGITS_PATTERN.match(text, loc)
        if digits is None:
            if position == 0:
                return missing(text, loc, IPV4_RULE, error_cls=AddressError)
            return GrammarFault(text, loc, f"expected an octet, found {word_at(text, loc)!r}", AddressError, IPV4_RULE)
        end = digits.end()
        if final and OCTET_PATTERN.fullmatch(digits.group()):
            return GrammarFault(text, end, f"unexpected {text[end]!r} after IPv4 address", AddressError, IPV4_RULE)
        return GrammarFault(
            text,
            loc,
            f"octet {shorten(digits.group())!r} is out of range or malformed",
            AddressError,
            IPV4_RULE,
        )

    follow = BOUNDARY if final else r"(?![0-9])"
    element = pp.Regex(rf"(?:{OCTET}){follow}").leave_whitespace().set_name(f"octet {position + 1}")
    element.set_parse_action(lambda toks: int(toks[0]))
    return on_fail(element, explain)


DOT = on_fail(
    pp.Suppress(pp.Literal(".").leave_whitespace()),
    lambda text, loc: GrammarFault(
        text, loc, f"expected '.' between octets, found {word_at(text, loc)!r}", AddressError, IPV4_RULE
    ),
)

IPV4 = (_octet(0) + DOT + _octet(1) + DOT + _octet(2) + DOT + _octet(3)).set_name(IPV4_RULE)
IPV4.set_parse_action(lambda toks: IPv4Address((toks[0], toks[1], toks[2], toks[3])))


def _groups(count: str) -> str:
    return rf"{HEX_GROUP}(?::{HEX_GROUP}){{{count}}}"


def _compressed(head_groups: int) -> str:
    """Pattern for ``::`` placed after ``head_groups`` groups, at most 7 groups in total."""
    if head_groups == 0:
        return rf"::(?P<tail>{_groups('0,6')})?"
    head = rf"(?P<head>{_groups(str(head_groups - 1))})::"
    if head_groups == 7:
        return head
    return rf"{head}(?P<tail>{_groups(f'0,{6 - head_groups}')})?"


IPV6_SHAPES: tuple[tuple[IPv6Shape, str], ...] = (
    (IPv6Shape.FULL, rf"(?P<head>{_groups('7')})"),
    (IPv6Shape.LINK_LOCAL, rf"(?P<head>[fF][eE]80)::(?P<tail>{_groups('0,2')})?(?:%(?P<zone>[0-9A-Za-z]+))?"),
    (IPv6Shape.IPV4_MAPPED, rf"::(?:(?P<tail>[fF]{{4}}(?::0{{1,4}})?):)?{DOTTED_QUAD}"),
    (IPv6Shape.IPV4_EMBEDDED, rf"(?P<head>{_groups('0,3')})::{DOTTED_QUAD}"),
) + tuple((IPv6Shape.compressed(position), _compressed(position)) for position in range(8))


def _split(groups: str | None) -> tuple[str, ...]:
    return tuple(groups.split(":")) if groups else ()


def _dotted_quad(text: str) -> IPv4Address:
    first, second, third, fourth = (int(part) for part in text.split("."))
    return IPv4Address((first, second, third, fourth))


def _shape(shape: IPv6Shape, pattern: str) -> pp.ParserElement:
    """One IPv6 layout; it only matches when it covers the whole token."""

    def build(toks: pp.ParseResults) -> IPv6Address:
        found = toks[0]
        parts = found.groupdict()
        return IPv6Address(
            text=found.group(),
            shape=shape,
            head=_split(parts.get("head")),
            tail=_split(parts.get("tail")),
            ipv4=_dotted_quad(parts["ipv4"]) if parts.get("ipv4") else None,
            zone_id=parts.get("zone"),
        )

    element = pp.Regex(pattern + BOUNDARY, as_match=True).leave_whitespace().set_name(shape.value)
    return element.set_parse_action(build)


def _explain_ipv6(text: str, loc: int) -> GrammarFault:
    if at_line_end(text, loc):
        return missing(text, loc, IPV6_RULE, error_cls=AddressError)
    return GrammarFault(
        text,
        loc,
        f"{word_at(text, loc)!r} is not a valid IPv6 address",
        AddressError,
        IPV6_RULE,
        tuple(shape.value for shape, _ in IPV6_SHAPES),
    )


# First match wins, in the order of IPV6_SHAPES.
IPV6 = on_fail(pp.MatchFirst([_shape(shape, pattern) for shape, pattern in IPV6_SHAPES]), _explain_ipv6)
IPV6.set_name(IPV6_RULE)
