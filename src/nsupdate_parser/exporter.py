"""Utilities to serialise parsed scripts into structured formats."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from .models import (
    AAAARecord,
    ARecord,
    CNAMERecord,
    Directive,
    Document,
    MXRecord,
    NSRecord,
    Record,
    Send,
    SRVRecord,
    SSHFPRecord,
    TXTRecord,
    UpdateAdd,
    URIRecord,
)


def _record_to_dict(record: Record) -> dict[str, Any]:
    """Convert a record payload into a serialisable dictionary."""
    entry: dict[str, Any] = {"type": record.kind.value}
    if isinstance(record, ARecord):
        entry["address"] = str(record.address)
    elif isinstance(record, AAAARecord):
        entry["address"] = str(record.address)
        entry["shape"] = record.address.shape.value
        if record.address.zone_id:
            entry["zone_id"] = record.address.zone_id
    elif isinstance(record, (CNAMERecord, NSRecord)):
        entry["target"] = str(record.target)
    elif isinstance(record, MXRecord):
        entry["exchange"] = str(record.exchange)
    elif isinstance(record, TXTRecord):
        entry["text"] = record.text
    elif isinstance(record, SRVRecord):
        if record.priority is not None:
            entry["priority"] = record.priority
        entry.update(weight=record.weight, port=record.port, target=str(record.target))
    elif isinstance(record, SSHFPRecord):
        entry.update(algorithm=record.algorithm, fp_type=record.fp_type, fingerprint=record.fingerprint)
    elif isinstance(record, URIRecord):
        if record.priority is not None:
            entry["priority"] = record.priority
        entry.update(weight=record.weight, target=record.target)
    return entry


def directive_to_dict(directive: Directive) -> dict[str, Any]:
    """Convert a directive into a serialisable dictionary."""
    if isinstance(directive, Send):
        return {"line": directive.line, "directive": "send"}
    if isinstance(directive, UpdateAdd):
        return {
            "line": directive.line,
            "directive": "add",
            "domain": str(directive.domain),
            "ttl": directive.ttl,
            "class": directive.rdclass.value,
            "record": _record_to_dict(directive.record),
        }
    return {
        "line": directive.line,
        "directive": "delete",
        "domain": str(directive.domain),
        "type": directive.record_kind.value,
    }


def document_to_dict(document: Document) -> dict[str, Any]:
    """Create a dictionary describing the script, grouped into batches."""
    batches = document.batches()
    return {
        "directives": [directive_to_dict(directive) for directive in document],
        "batches": [
            {"sent": batch.sent, "updates": len(batch)}
            for batch in batches
        ],
    }


def document_to_yaml(document: Document) -> str:
    """Return YAML representation of a parsed script."""
    return yaml.safe_dump(document_to_dict(document), sort_keys=False)


def document_to_json(document: Document) -> str:
    """Return JSON representation of a parsed script."""
    return json.dumps(document_to_dict(document), indent=2)


def write_export(path: Path, content: str) -> None:
    """Write content to the given path, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
