"""High-level orchestration for nsupdate-parser."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .config import AppConfig, normalise_zone
from .loader import load_document
from .models import Document, NsupdateError, UpdateBatch, UpdateTransportError
from .transport import build_update, send_update
from .validation import collect_issues, validate_document

LOG = logging.getLogger("nsupdate_parser")


@dataclass
class CheckResult:
    """Outcome of parsing and validating a script."""

    document: Document
    batches: list[UpdateBatch]
    issues: list[str] = field(default_factory=list)

    def is_valid(self) -> bool:
        return not self.issues


@dataclass
class ApplyReport:
    """Counters collected while applying a script."""

    batches: int = 0
    sent: int = 0
    failed: int = 0
    skipped: int = 0
    aborted: bool = False


class UpdateController:
    """Coordinates check/apply operations."""

    def __init__(self, config: AppConfig):
        """Store configuration for subsequent runs."""
        self.config = config

    def parse(self, path: Path, template_vars: dict[str, Any] | None = None) -> Document:
        """Load and parse the script at ``path``."""
        LOG.info("Reading nsupdate script %s", path)
        document = load_document(path, template_vars)
        LOG.info("Parsed %s directives", len(document))
        return document

    def check(self, path: Path, template_vars: dict[str, Any] | None = None) -> CheckResult:
        """Parse a script and collect semantic issues without sending anything."""
        document = self.parse(path, template_vars)
        issues = collect_issues(document)
        for issue in issues:
            LOG.warning("%s", issue)
        return CheckResult(document=document, batches=document.batches(), issues=issues)

    def apply(
        self,
        path: Path,
        zone: str | None = None,
        template_vars: dict[str, Any] | None = None,
        dry_run: bool = False,
        assume_yes: bool = False,
    ) -> ApplyReport:
        """Send every batch terminated by ``send`` to the configured server."""
        target_zone = normalise_zone(zone) or self.config.zone
        if not target_zone:
            raise NsupdateError("Zone name is required via --zone or NSUPDATE_ZONE.")
        document = self.parse(path, template_vars)
        validate_document(document)

        report = ApplyReport()
        if not document.has_send():
            LOG.info('No "send" command found, nothing to do...')
            return report
        if not dry_run and not assume_yes and not _confirm(target_zone):
            LOG.info("Apply aborted by user.")
            report.aborted = True
            return report

        for number, batch in enumerate(document.batches(), start=1):
            report.batches += 1
            LOG.info("%s commands in batch %s", len(batch), number)
            if not batch.sent:
                LOG.info('No "send" command after batch %s, nothing to do...', number)
                report.skipped += 1
                continue
            if not batch.updates:
                LOG.info("Batch %s is empty, skipping", number)
                report.skipped += 1
                continue
            update = build_update(batch, target_zone, self.config)
            if dry_run:
                LOG.info("Dry run, batch %s not sent:\n%s", number, update.to_text())
                continue
            try:
                send_update(update, self.config)
            except UpdateTransportError as exc:
                report.failed += 1
                LOG.error("Batch %s result: FAILED (%s)", number, exc)
                continue
            report.sent += 1
            LOG.info("Batch %s result: SUCCESS", number)

        LOG.info(
            "Processed %s batches for %s: %s sent, %s failed, %s skipped",
            report.batches,
            target_zone,
            report.sent,
            report.failed,
            report.skipped,
        )
        return report


def configure_logging(level: str) -> None:
    """Configure logging output."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def _confirm(zone: str) -> bool:
    """Prompt the operator to confirm apply."""
    prompt = f"Send updates to {zone}? [y/N]: "
    response = input(prompt).strip().lower()  # noqa: S322
    return response in {"y", "yes"}
