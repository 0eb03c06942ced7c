from dataclasses import replace

import dns.name
import dns.rcode
import dns.rdataclass
import dns.rdatatype
import pytest

from nsupdate_parser.config import TsigKey
from nsupdate_parser.models import UpdateTransportError
from nsupdate_parser.parser import parse_document, parse_line
from nsupdate_parser.transport import build_update, record_to_rdata_text, send_update

BATCH_SCRIPT = (
    "update add www.example.com. 300 IN A 192.0.2.1\n"
    "update add example.com. 300 IN MX mail.example.com.\n"
    "update delete old.example.com. AAAA\n"
    "send\n"
)


class _Response:
    def __init__(self, rcode):
        self._rcode = rcode

    def rcode(self):
        return self._rcode


def _record(content: str):
    return parse_line(f"update add example.com. 60 IN {content}").record


@pytest.mark.parametrize(
    "content, expected",
    [
        ("A 192.0.2.1", "192.0.2.1"),
        ("AAAA fe80::1%eth0", "fe80::1"),
        ("CNAME www.example.com.", "www.example.com."),
        ("MX mail.example.com.", "20 mail.example.com."),
        ('TXT "hello world"', '"hello world"'),
        ("SRV 10 5060 sip.example.com.", "0 10 5060 sip.example.com."),
        ("SRV 1 10 5060 sip.example.com.", "1 10 5060 sip.example.com."),
        ("SSHFP 1 1 abcd", "1 1 abcd"),
        ('URI 10 "https://example.com/"', '0 10 "https://example.com/"'),
    ],
)
def test_record_to_rdata_text(content, expected):
    assert record_to_rdata_text(_record(content), mx_preference=20) == expected


def test_build_update_collects_batch(config):
    batch = parse_document(BATCH_SCRIPT).batches()[0]
    update = build_update(batch, "example.com.", config)
    rrsets = update.update
    assert [dns.rdatatype.to_text(rrset.rdtype) for rrset in rrsets] == ["A", "MX", "AAAA"]
    assert rrsets[0].ttl == 300
    assert rrsets[2].deleting == dns.rdataclass.ANY
    assert rrsets[1][0].exchange.derelativize(update.origin) == dns.name.from_text("mail.example.com.")
    assert update.keyring is None


def test_build_update_signs_with_tsig(config):
    signed = replace(config, tsig=TsigKey(name="update-key", algorithm="hmac-sha256", secret="c2VjcmV0"))
    update = build_update(parse_document(BATCH_SCRIPT).batches()[0], "example.com.", signed)
    assert update.keyring is not None


def test_build_update_reports_bad_rdata(config):
    # An odd number of hex digits is syntactically fine but not valid rdata.
    batch = parse_document("update add example.com. 60 IN SSHFP 1 1 abc\nsend\n").batches()[0]
    with pytest.raises(UpdateTransportError):
        build_update(batch, "example.com.", config)


def test_send_update_checks_rcode(monkeypatch, config):
    calls = []

    def fake_tcp(update, where, port, timeout):
        calls.append((where, port, timeout))
        return _Response(dns.rcode.NOERROR)

    monkeypatch.setattr("dns.query.tcp", fake_tcp)
    update = build_update(parse_document(BATCH_SCRIPT).batches()[0], "example.com.", config)
    send_update(update, config)
    assert calls == [("127.0.0.1", 53, 1.0)]

    monkeypatch.setattr("dns.query.tcp", lambda *args, **kwargs: _Response(dns.rcode.REFUSED))
    with pytest.raises(UpdateTransportError, match="REFUSED"):
        send_update(update, config)


def test_send_update_wraps_socket_errors(monkeypatch, config):
    def refuse(*args, **kwargs):
        raise ConnectionRefusedError("connection refused")

    monkeypatch.setattr("dns.query.tcp", refuse)
    update = build_update(parse_document(BATCH_SCRIPT).batches()[0], "example.com.", config)
    with pytest.raises(UpdateTransportError):
        send_update(update, config)
