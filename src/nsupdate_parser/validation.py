"""Semantic checks layered on top of a parsed script."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from .models import (
    CNAMERecord,
    Directive,
    Document,
    MXRecord,
    NSRecord,
    Record,
    RecordKind,
    SRVRecord,
    SSHFPRecord,
    UpdateAdd,
    UpdateDelete,
    URIRecord,
    ValidationError,
)

MAX_TTL = 2**31 - 1
MAX_LABEL_LENGTH = 63
MAX_NAME_LENGTH = 255
SSHFP_ALGORITHMS = {1, 2, 3, 4, 6}
SSHFP_FINGERPRINT_LENGTHS = {1: 40, 2: 64}


def _check_name(value: str | None) -> str | None:
    """Enforce RFC 1035 label and name length limits on a dotted name."""
    if value is None:
        return value
    labels = value.rstrip(".").split(".")
    for label in labels:
        if len(label) > MAX_LABEL_LENGTH:
            raise ValueError(f"label '{label[:16]}...' is longer than {MAX_LABEL_LENGTH} characters")
    wire_length = sum(len(label) + 1 for label in labels) + 1
    if wire_length > MAX_NAME_LENGTH:
        raise ValueError(f"name is {wire_length} octets long, limit is {MAX_NAME_LENGTH}")
    return value


class UpdateDeleteSpec(BaseModel):
    """Schema for an ``update delete`` directive."""

    model_config = ConfigDict(frozen=True)

    name: str
    kind: RecordKind

    @field_validator("name")
    @classmethod
    def name_length(cls, value: str) -> str:
        return _check_name(value)


class UpdateAddSpec(BaseModel):
    """Schema for an ``update add`` directive."""

    model_config = ConfigDict(frozen=True)

    name: str
    ttl: int = Field(ge=0, le=MAX_TTL)
    kind: RecordKind
    target: str | None = None
    priority: int | None = Field(default=None, ge=0, le=65535)
    weight: int | None = Field(default=None, ge=0, le=65535)
    port: int | None = Field(default=None, ge=0, le=65535)
    algorithm: int | None = None
    fp_type: int | None = None
    fingerprint: str | None = None

    @field_validator("name", "target")
    @classmethod
    def name_length(cls, value: str | None) -> str | None:
        return _check_name(value)

    @field_validator("algorithm")
    @classmethod
    def known_algorithm(cls, value: int | None) -> int | None:
        """Only accept SSHFP algorithms registered with IANA."""
        if value is not None and value not in SSHFP_ALGORITHMS:
            raise ValueError(f"unknown SSHFP algorithm {value}")
        return value

    @model_validator(mode="after")
    def fingerprint_matches_type(self) -> UpdateAddSpec:
        """Check the fingerprint length against its digest type."""
        if self.fp_type is None:
            return self
        expected = SSHFP_FINGERPRINT_LENGTHS.get(self.fp_type)
        if expected is None:
            raise ValueError(f"unknown SSHFP fingerprint type {self.fp_type}")
        if len(self.fingerprint or "") != expected:
            raise ValueError(f"fingerprint type {self.fp_type} needs {expected} hex digits")
        return self


def _record_fields(record: Record) -> dict[str, Any]:
    """Pull the range-checked fields out of a record."""
    if isinstance(record, SRVRecord):
        return {
            "priority": record.priority,
            "weight": record.weight,
            "port": record.port,
            "target": str(record.target),
        }
    if isinstance(record, URIRecord):
        return {"priority": record.priority, "weight": record.weight}
    if isinstance(record, SSHFPRecord):
        return {
            "algorithm": record.algorithm,
            "fp_type": record.fp_type,
            "fingerprint": record.fingerprint,
        }
    if isinstance(record, (CNAMERecord, NSRecord)):
        return {"target": str(record.target)}
    if isinstance(record, MXRecord):
        return {"target": str(record.exchange)}
    return {}


def directive_spec(directive: Directive) -> BaseModel | None:
    """Validate one directive, returning its schema object (None for ``send``)."""
    if isinstance(directive, UpdateAdd):
        return UpdateAddSpec(
            name=str(directive.domain),
            ttl=directive.ttl,
            kind=directive.record.kind,
            **_record_fields(directive.record),
        )
    if isinstance(directive, UpdateDelete):
        return UpdateDeleteSpec(name=str(directive.domain), kind=directive.record_kind)
    return None


def collect_issues(document: Document) -> list[str]:
    """Return every semantic problem found, prefixed with its source line."""
    issues: list[str] = []
    for directive in document:
        try:
            directive_spec(directive)
        except PydanticValidationError as exc:
            for error in exc.errors():
                location = ".".join(str(part) for part in error["loc"]) or "record"
                issues.append(f"line {directive.line}: {location}: {error['msg']}")
    return issues


def validate_document(document: Document) -> None:
    """Raise ``ValidationError`` when any directive fails semantic checks."""
    issues = collect_issues(document)
    if issues:
        raise ValidationError(f"{len(issues)} validation issue(s) found", issues)
