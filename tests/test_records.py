import pytest

from nsupdate_parser.models import (
    AAAARecord,
    ARecord,
    CNAMERecord,
    Domain,
    IPv4Address,
    IPv6Shape,
    LexicalError,
    MXRecord,
    NSRecord,
    RecordClass,
    RecordKind,
    RecordTypeError,
    SRVRecord,
    SSHFPRecord,
    TXTRecord,
    UnexpectedEndOfInput,
    UpdateAdd,
    URIRecord,
)
from nsupdate_parser.parser import parse_line
from nsupdate_parser.records import RECORD, RECORD_GRAMMARS, RECORD_KEYWORDS, RECORD_KIND
from nsupdate_parser.tokens import parse_with


def _record(line: str):
    directive = parse_line(f"update add example.com. 3600 IN {line}")
    assert isinstance(directive, UpdateAdd)
    return directive.record


def test_a_record_directive():
    directive = parse_line("update add example.com. 3600 IN A 192.0.2.1")
    assert directive == UpdateAdd(
        domain=Domain(("example", "com")),
        ttl=3600,
        rdclass=RecordClass.IN,
        record=ARecord(IPv4Address((192, 0, 2, 1))),
    )


def test_aaaa_record():
    parsed = _record("AAAA 2001:db8::1")
    assert isinstance(parsed, AAAARecord)
    assert parsed.address.shape is IPv6Shape.COMPRESSED_2


def test_domain_payloads():
    assert _record("CNAME www.example.com.") == CNAMERecord(Domain(("www", "example", "com")))
    assert _record("MX mail.example.com.") == MXRecord(Domain(("mail", "example", "com")))
    assert _record("NS ns1.example.com.") == NSRecord(Domain(("ns1", "example", "com")))


def test_txt_record_keeps_escapes():
    assert _record(r'TXT "v=spf1 \"quoted\" \\ -all\n"') == TXTRecord(r'v=spf1 \"quoted\" \\ -all\n')


def test_srv_record_without_priority():
    assert _record("SRV 10 5060 sip.example.com.") == SRVRecord(
        weight=10,
        port=5060,
        target=Domain(("sip", "example", "com")),
    )


def test_srv_record_with_priority():
    parsed = _record("SRV 0 10 5060 sip.example.com.")
    assert parsed == SRVRecord(weight=10, port=5060, target=Domain(("sip", "example", "com")), priority=0)


def test_srv_target_may_start_with_digits():
    parsed = _record("SRV 10 5060 123.example.com.")
    assert parsed.priority is None
    assert parsed.target.labels == ("123", "example", "com")


def test_sshfp_record():
    assert _record("SSHFP 4 2 0123456789abcdefABCDEF") == SSHFPRecord(
        algorithm=4,
        fp_type=2,
        fingerprint="0123456789abcdefABCDEF",
    )


def test_sshfp_algorithm_is_one_digit():
    with pytest.raises(LexicalError):
        _record("SSHFP 12 2 abcdef")


def test_uri_record_with_and_without_priority():
    assert _record('URI 10 "https://example.com/"') == URIRecord(weight=10, target="https://example.com/")
    assert _record('URI 1 10 "ftp://example.com/"') == URIRecord(
        weight=10,
        target="ftp://example.com/",
        priority=1,
    )


def test_unknown_record_type_points_at_token():
    with pytest.raises(RecordTypeError) as excinfo:
        parse_line("update add example.com. 3600 IN PTR host.example.com.")
    error = excinfo.value
    assert error.column == 33
    assert "PTR" in error.message
    assert set(error.expected) == set(RECORD_KEYWORDS)


def test_record_keywords_are_case_sensitive():
    with pytest.raises(RecordTypeError):
        parse_with(RECORD, "a 192.0.2.1")
    assert parse_with(RECORD_KIND, "AAAA")[0] is RecordKind.AAAA


def test_record_content_missing():
    with pytest.raises(UnexpectedEndOfInput):
        parse_line("update add example.com. 3600 IN A")
    with pytest.raises(UnexpectedEndOfInput):
        parse_line("update add example.com. 3600 IN SRV 10 5060")


def test_dispatcher_covers_every_kind():
    assert RECORD_KEYWORDS == tuple(kind.value for kind in RecordKind)
    assert len(RECORD_KEYWORDS) == 9
    assert set(RECORD_GRAMMARS) == set(RecordKind)


def test_record_parses_without_directive():
    assert parse_with(RECORD, "NS ns1.example.com.")[0] == NSRecord(Domain(("ns1", "example", "com")))


@pytest.mark.parametrize(
    "content",
    [
        "SRV " + "9" * 5000 + " 5060 sip.example.com.",
        "SRV 0 10 " + "9" * 5000 + " sip.example.com.",
        "URI " + "9" * 5000 + ' "https://example.com/"',
        "URI 1 " + "9" * 5000 + ' "https://example.com/"',
    ],
)
def test_oversized_numeric_fields_are_lexical_errors(content):
    with pytest.raises(LexicalError, match="exceeds"):
        _record(content)


def test_numeric_fields_are_capped_at_32_bits():
    assert _record("SRV 4294967295 5060 sip.example.com.").weight == 4294967295
    with pytest.raises(LexicalError):
        _record("SRV 4294967296 5060 sip.example.com.")
