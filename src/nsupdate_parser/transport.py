"""Turn parsed batches into dynamic updates and send them with dnspython."""

from __future__ import annotations

import logging

import dns.exception
import dns.query
import dns.rcode
import dns.tsigkeyring
import dns.update

from .config import AppConfig
from .models import (
    AAAARecord,
    ARecord,
    CNAMERecord,
    MXRecord,
    NSRecord,
    Record,
    SRVRecord,
    SSHFPRecord,
    TXTRecord,
    UpdateAdd,
    UpdateBatch,
    UpdateTransportError,
    URIRecord,
)

LOG = logging.getLogger("nsupdate_parser")


def record_to_rdata_text(record: Record, mx_preference: int = 10) -> str:
    """Return master-file rdata text for a record.

    SRV and URI records without a priority are sent with priority 0. MX
    records carry no preference in the script, so ``mx_preference`` is used.
    """
    if isinstance(record, ARecord):
        return str(record.address)
    if isinstance(record, AAAARecord):
        return record.address.text.split("%", 1)[0]
    if isinstance(record, (CNAMERecord, NSRecord)):
        return str(record.target)
    if isinstance(record, MXRecord):
        return f"{mx_preference} {record.exchange}"
    if isinstance(record, TXTRecord):
        return f'"{record.text}"'
    if isinstance(record, SRVRecord):
        return f"{record.priority or 0} {record.weight} {record.port} {record.target}"
    if isinstance(record, SSHFPRecord):
        return f"{record.algorithm} {record.fp_type} {record.fingerprint}"
    if isinstance(record, URIRecord):
        return f'{record.priority or 0} {record.weight} "{record.target}"'
    raise UpdateTransportError(f"Unsupported record {record!r}")


def build_update(batch: UpdateBatch, zone: str, config: AppConfig) -> dns.update.Update:
    """Build one update message holding every directive of the batch."""
    kwargs = {}
    if config.tsig:
        kwargs = {
            "keyring": dns.tsigkeyring.from_text({config.tsig.name: config.tsig.secret}),
            "keyname": config.tsig.name,
            "keyalgorithm": config.tsig.algorithm,
        }
    try:
        update = dns.update.Update(zone, **kwargs)
        for directive in batch.updates:
            if isinstance(directive, UpdateAdd):
                update.add(
                    str(directive.domain),
                    directive.ttl,
                    directive.record.kind.value,
                    record_to_rdata_text(directive.record, config.default_mx_preference),
                )
            else:
                update.delete(str(directive.domain), directive.record_kind.value)
    except (dns.exception.DNSException, ValueError) as exc:
        raise UpdateTransportError(f"Failed to build update for zone {zone}: {exc}") from exc
    return update


def send_update(update: dns.update.Update, config: AppConfig) -> None:
    """Send an update over TCP and check the response code."""
    LOG.debug("Sending update to %s:%s", config.server, config.port)
    try:
        response = dns.query.tcp(update, config.server, port=config.port, timeout=config.timeout)
    except (dns.exception.DNSException, OSError) as exc:
        raise UpdateTransportError(f"Failed to send update to {config.server}: {exc}") from exc
    rcode = response.rcode()
    if rcode != dns.rcode.NOERROR:
        raise UpdateTransportError(f"Dynamic update failed with rcode {dns.rcode.to_text(rcode)}")
