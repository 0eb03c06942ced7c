"""Core data models used by nsupdate-parser."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Iterator, Sequence, Union


class RecordKind(str, Enum):
    """Record types understood by the update grammar."""

    A = "A"
    AAAA = "AAAA"
    CNAME = "CNAME"
    TXT = "TXT"
    SRV = "SRV"
    MX = "MX"
    NS = "NS"
    SSHFP = "SSHFP"
    URI = "URI"

    def __str__(self) -> str:
        return self.value


class RecordClass(str, Enum):
    """DNS classes accepted in ``update add`` directives."""

    IN = "IN"

    def __str__(self) -> str:
        return self.value


class IPv6Shape(str, Enum):
    """Textual layouts recognised for IPv6 literals."""

    FULL = "full"
    LINK_LOCAL = "link-local"
    IPV4_MAPPED = "ipv4-mapped"
    IPV4_EMBEDDED = "ipv4-embedded"
    COMPRESSED_0 = "compressed-0"
    COMPRESSED_1 = "compressed-1"
    COMPRESSED_2 = "compressed-2"
    COMPRESSED_3 = "compressed-3"
    COMPRESSED_4 = "compressed-4"
    COMPRESSED_5 = "compressed-5"
    COMPRESSED_6 = "compressed-6"
    COMPRESSED_7 = "compressed-7"

    @classmethod
    def compressed(cls, head_groups: int) -> IPv6Shape:
        """Return the compressed shape with ``head_groups`` groups before ``::``."""
        return cls(f"compressed-{head_groups}")


@dataclass(frozen=True)
class Domain:
    """Fully qualified, dot-terminated DNS name."""

    labels: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.labels:
            raise ValueError("A domain needs at least one label.")

    def __str__(self) -> str:
        return "".join(f"{label}." for label in self.labels)

    @property
    def text(self) -> str:
        return str(self)


@dataclass(frozen=True)
class IPv4Address:
    """Dotted-quad IPv4 address."""

    octets: tuple[int, int, int, int]

    def __str__(self) -> str:
        return ".".join(str(octet) for octet in self.octets)


@dataclass(frozen=True)
class IPv6Address:
    """IPv6 literal together with the shape it was written in.

    ``head`` holds the hex groups before the ``::`` (all eight for the full
    form) and ``tail`` the groups after it. ``ipv4`` is set for the mapped and
    embedded shapes, ``zone_id`` for a link-local address with a ``%`` suffix.
    """

    text: str
    shape: IPv6Shape
    head: tuple[str, ...] = ()
    tail: tuple[str, ...] = ()
    ipv4: IPv4Address | None = None
    zone_id: str | None = None

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class ARecord:
    address: IPv4Address
    kind: ClassVar[RecordKind] = RecordKind.A


@dataclass(frozen=True)
class AAAARecord:
    address: IPv6Address
    kind: ClassVar[RecordKind] = RecordKind.AAAA


@dataclass(frozen=True)
class CNAMERecord:
    target: Domain
    kind: ClassVar[RecordKind] = RecordKind.CNAME


@dataclass(frozen=True)
class TXTRecord:
    """TXT payload; ``text`` keeps backslash escapes exactly as written."""

    text: str
    kind: ClassVar[RecordKind] = RecordKind.TXT


@dataclass(frozen=True)
class SRVRecord:
    weight: int
    port: int
    target: Domain
    priority: int | None = None
    kind: ClassVar[RecordKind] = RecordKind.SRV


@dataclass(frozen=True)
class MXRecord:
    exchange: Domain
    kind: ClassVar[RecordKind] = RecordKind.MX


@dataclass(frozen=True)
class NSRecord:
    target: Domain
    kind: ClassVar[RecordKind] = RecordKind.NS


@dataclass(frozen=True)
class SSHFPRecord:
    algorithm: int
    fp_type: int
    fingerprint: str
    kind: ClassVar[RecordKind] = RecordKind.SSHFP


@dataclass(frozen=True)
class URIRecord:
    """URI payload; ``target`` is the quoted text without its quotes."""

    weight: int
    target: str
    priority: int | None = None
    kind: ClassVar[RecordKind] = RecordKind.URI


Record = Union[
    ARecord,
    AAAARecord,
    CNAMERecord,
    TXTRecord,
    SRVRecord,
    MXRecord,
    NSRecord,
    SSHFPRecord,
    URIRecord,
]


@dataclass(frozen=True)
class Send:
    """Flush the pending updates."""

    line: int = field(default=0, compare=False)


@dataclass(frozen=True)
class UpdateAdd:
    """``update add <domain> <ttl> <class> <record>``."""

    domain: Domain
    ttl: int
    rdclass: RecordClass
    record: Record
    line: int = field(default=0, compare=False)


@dataclass(frozen=True)
class UpdateDelete:
    """``update delete <domain> <type>``; deletes the whole RRset."""

    domain: Domain
    record_kind: RecordKind
    line: int = field(default=0, compare=False)


Directive = Union[Send, UpdateAdd, UpdateDelete]
Update = Union[UpdateAdd, UpdateDelete]


@dataclass(frozen=True)
class UpdateBatch:
    """Update directives flushed together by one ``send``."""

    updates: tuple[Update, ...]
    sent: bool

    def __len__(self) -> int:
        return len(self.updates)


@dataclass(frozen=True)
class Document:
    """Parsed script: directives in source order."""

    directives: tuple[Directive, ...] = ()

    def __iter__(self) -> Iterator[Directive]:
        return iter(self.directives)

    def __len__(self) -> int:
        return len(self.directives)

    def has_send(self) -> bool:
        """Return True when the script contains at least one ``send``."""
        return any(isinstance(directive, Send) for directive in self.directives)

    def batches(self) -> list[UpdateBatch]:
        """Group updates into batches terminated by ``send``.

        Updates after the last ``send`` form a final batch with ``sent`` set to
        False. A ``send`` with nothing pending still yields an empty batch.
        """
        batches: list[UpdateBatch] = []
        pending: list[Update] = []
        for directive in self.directives:
            if isinstance(directive, Send):
                batches.append(UpdateBatch(updates=tuple(pending), sent=True))
                pending = []
            else:
                pending.append(directive)
        if pending:
            batches.append(UpdateBatch(updates=tuple(pending), sent=False))
        return batches


class NsupdateError(Exception):
    """Base exception for nsupdate-parser."""


class ParseError(NsupdateError):
    """Raised when a script does not match the update grammar.

    ``offset`` is the 0-based character offset into the parsed text, ``line``
    and ``column`` are 1-based. ``rule`` names the grammar rule being
    attempted and ``expected`` lists the alternatives tried at that point.
    """

    def __init__(
        self,
        message: str,
        *,
        offset: int = 0,
        line: int = 1,
        column: int = 1,
        rule: str = "",
        expected: Sequence[str] = (),
    ):
        super().__init__(message)
        self.message = message
        self.offset = offset
        self.line = line
        self.column = column
        self.rule = rule
        self.expected = tuple(expected)

    def __str__(self) -> str:
        text = f"line {self.line}, column {self.column}: {self.message}"
        if self.expected:
            text += f" (expected one of: {', '.join(self.expected)})"
        return text


class LexicalError(ParseError):
    """Raised when a primitive token is malformed."""


class AddressError(ParseError):
    """Raised for out-of-range IPv4 octets or unrecognised IPv6 literals."""


class DomainError(ParseError):
    """Raised for empty, malformed, or relative domain names."""


class RecordTypeError(ParseError):
    """Raised when the record keyword is not a supported type."""


class StructuralError(ParseError):
    """Raised when a directive is malformed as a whole."""


class UnexpectedEndOfInput(ParseError):
    """Raised when a line or the input ends mid-directive."""


class ValidationError(NsupdateError):
    """Raised when a parsed script fails semantic checks."""

    def __init__(self, message: str, issues: Sequence[str] = ()):
        super().__init__(message)
        self.issues = tuple(issues)


class ScriptLoadError(NsupdateError):
    """Raised when a script cannot be read or rendered."""


class UpdateTransportError(NsupdateError):
    """Raised when building or sending a dynamic update fails."""


class ConfigError(NsupdateError):
    """Raised when environment configuration is invalid."""
