"""Command-line entry point for nsupdate-parser."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import load_config
from .controller import ApplyReport, CheckResult, UpdateController, configure_logging
from .exporter import document_to_json, document_to_yaml, write_export
from .models import NsupdateError, ParseError, ValidationError


def _build_parser() -> argparse.ArgumentParser:
    """Create the CLI parser."""
    parser = argparse.ArgumentParser(description="Parse and apply nsupdate scripts.")
    parser.add_argument("--log-level", help="Override log level (default from config).")

    subparsers = parser.add_subparsers(dest="command", required=True)
    check_parser = subparsers.add_parser("check", help="Parse and validate a script.")
    _register_common_arguments(check_parser)

    export_parser = subparsers.add_parser("export", help="Dump the parsed script as YAML or JSON.")
    _register_common_arguments(export_parser)
    export_parser.add_argument("--output", help="Path to write the export (default stdout).")
    export_parser.add_argument(
        "--format",
        choices=["yaml", "json"],
        default="yaml",
        help="Serialization format for the export.",
    )

    apply_parser = subparsers.add_parser("apply", help="Send the script's batches to the server.")
    _register_common_arguments(apply_parser)
    apply_parser.add_argument("--zone", help="Zone to update (overrides NSUPDATE_ZONE).")
    apply_parser.add_argument("--dry-run", action="store_true", help="Build updates without sending them.")
    apply_parser.add_argument("--yes", action="store_true", help="Skip confirmation prompt.")

    return parser


def _register_common_arguments(subparser: argparse.ArgumentParser) -> None:
    """Register arguments shared by every subcommand."""
    subparser.add_argument("script", help="Path to the nsupdate script (*.j2 is rendered first).")
    subparser.add_argument(
        "-e",
        "--var",
        action="append",
        help="Template variable in KEY=VALUE form. Can be repeated.",
    )


def _parse_template_vars(values: list[str] | None) -> dict[str, str]:
    """Convert KEY=VALUE pairs into a dict."""
    result: dict[str, str] = {}
    if not values:
        return result
    for value in values:
        if "=" not in value:
            raise NsupdateError(f"Invalid template var '{value}', expected KEY=VALUE.")
        key, val = value.split("=", 1)
        result[key] = val
    return result


def _emit_check(result: CheckResult) -> None:
    """Print a human-friendly summary of a checked script."""
    print(f"Directives: {len(result.document)}")
    for number, batch in enumerate(result.batches, start=1):
        state = "send" if batch.sent else "no send"
        print(f" batch {number}: {len(batch)} updates ({state})")
    for issue in result.issues:
        print(f" ! {issue}")
    if result.is_valid():
        print("Script is valid.")


def _run_check(controller: UpdateController, args: argparse.Namespace) -> CheckResult:
    """Execute the check command."""
    result = controller.check(Path(args.script), template_vars=_parse_template_vars(args.var))
    _emit_check(result)
    if not result.is_valid():
        raise ValidationError(f"{len(result.issues)} validation issue(s) found", result.issues)
    return result


def _run_export(controller: UpdateController, args: argparse.Namespace) -> None:
    """Execute the export command."""
    document = controller.parse(Path(args.script), template_vars=_parse_template_vars(args.var))
    if args.format == "json":
        content = document_to_json(document)
    else:
        content = document_to_yaml(document)
    if args.output:
        write_export(Path(args.output), content)
        print(f"Wrote export to {args.output}")
    else:
        print(content)


def _run_apply(controller: UpdateController, args: argparse.Namespace) -> ApplyReport:
    """Execute the apply command."""
    report = controller.apply(
        Path(args.script),
        zone=args.zone,
        template_vars=_parse_template_vars(args.var),
        dry_run=args.dry_run,
        assume_yes=args.yes,
    )
    print(f"Batches: {report.batches}, sent: {report.sent}, failed: {report.failed}, skipped: {report.skipped}")
    if report.failed:
        raise NsupdateError(f"{report.failed} batch(es) failed.")
    return report


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        config = load_config()
        configure_logging(args.log_level or config.log_level)
        controller = UpdateController(config)
        if args.command == "check":
            _run_check(controller, args)
        elif args.command == "export":
            _run_export(controller, args)
        elif args.command == "apply":
            _run_apply(controller, args)
        else:  # pragma: no cover - argparse ensures we never reach here
            parser.error(f"Unsupported command {args.command}")
    except ParseError as exc:
        print(f"Parse error: {exc}", file=sys.stderr)
        sys.exit(2)
    except NsupdateError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)
    except Exception as exc:  # noqa: BLE001
        print(f"Unexpected error: {exc}", file=sys.stderr)
        sys.exit(3)


if __name__ == "__main__":
    main()
