"""Command-line entry point for the solscan analyzer."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import List

from .config import DEFAULT_CONFIG_PATH, load_config, write_default_config
from .engine import AnalysisEngine
from .errors import SolscanError
from .registry import DetectorRegistry, builtin_registry
from .result import ScanResult, format_summary_table
from .severity import Severity
from .source import load_sources
from .utils import write_text_file

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="solscan",
        description="Static analyzer for Solidity security and gas findings",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Scan Solidity sources.")
    run.add_argument("--config", "-c", default=None, help=f"Config file (defaults to {DEFAULT_CONFIG_PATH}).")
    run.add_argument(
        "--scope",
        "-s",
        action="append",
        default=None,
        help="File or directory to scan (repeatable).",
    )
    run.add_argument("--exclude", "-e", action="append", default=None, help="Path to skip (repeatable).")
    run.add_argument("--min-severity", default=None, help="Lowest detector severity to run.")
    run.add_argument(
        "--detector",
        "-d",
        dest="detectors",
        action="append",
        default=None,
        help="Run only this detector id (repeatable).",
    )
    run.add_argument(
        "--exclude-detector",
        dest="exclude_detectors",
        action="append",
        default=None,
        help="Never run this detector id (repeatable).",
    )
    run.add_argument("--workers", "-w", type=int, default=None, help="Files scanned concurrently.")
    run.add_argument(
        "--out",
        "--output",
        dest="output_path",
        default=None,
        help="Path to write the JSON report (e.g., artifacts/solscan.json).",
    )

    detectors = subparsers.add_parser("detectors", help="List available detectors.")
    detectors.add_argument("--severity", default=None, help="Only list detectors of this severity.")
    detectors.add_argument("--details", metavar="ID", default=None, help="Show the full description of one detector.")

    init = subparsers.add_parser("init", help="Write a default configuration file.")
    init.add_argument("--path", default=DEFAULT_CONFIG_PATH, help="Where to write the config file.")
    init.add_argument("--force", action="store_true", help="Overwrite an existing file.")
    return parser


def run_scan(args: argparse.Namespace, registry: DetectorRegistry) -> ScanResult:
    config = load_config(
        args.config,
        scope=args.scope,
        exclude=args.exclude,
        min_severity=args.min_severity,
        detectors=args.detectors,
        exclude_detectors=args.exclude_detectors,
        workers=args.workers,
    )
    engine = AnalysisEngine(registry=registry, workers=config.workers)
    # Validate the detector filter before touching any file.
    registry.select(ids=config.detectors or None, exclude=config.exclude_detectors)
    sources = load_sources(config.scope, exclude=config.exclude)
    log.debug("loaded %d source file(s) from %s", len(sources), ", ".join(config.scope))
    return engine.run(
        sources,
        detector_ids=config.detectors or None,
        exclude=config.exclude_detectors,
        min_severity=config.min_severity,
    )


def write_output(result: ScanResult, output_path: str | None) -> None:
    print(format_summary_table(result))

    payload = json.dumps(result.to_dict(), indent=2)
    if output_path:
        write_text_file(Path(output_path), payload)
        print(f"\nReport written to {output_path}")
    else:
        print("\nJSON Report")
        print(payload)


def list_detectors(args: argparse.Namespace, registry: DetectorRegistry) -> int:
    if args.details:
        detector = registry.get(args.details)
        if detector is None:
            raise SystemExit(f"Error: Detector with ID '{args.details}' not found.")
        print(detector.describe())
        return 0

    if args.severity:
        try:
            severity = Severity.parse(args.severity)
        except ValueError as exc:
            raise SystemExit(f"Error: {exc}") from None
        detectors = registry.by_severity(severity)
        print(f"Available detectors with severity {severity.value}:")
    else:
        detectors = sorted(registry.all(), key=lambda item: (-item.severity().rank, item.id()))
        print(f"Available detectors (Total: {len(registry)}):")

    if not detectors:
        print("No detectors found")
    for detector in detectors:
        print(f"({detector.severity().value}) - {detector.id()}: {detector.name()}")
    return 0


def main(argv: List[str] | None = None, registry: DetectorRegistry | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    registry = registry if registry is not None else builtin_registry()

    try:
        if args.command == "detectors":
            return list_detectors(args, registry)
        if args.command == "init":
            target = write_default_config(args.path, force=args.force)
            print(f"Wrote {target}")
            return 0
        result = run_scan(args, registry)
    except SolscanError as exc:
        raise SystemExit(f"Error: {exc}") from None

    write_output(result, args.output_path)
    return result.exit_code()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
