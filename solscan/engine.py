"""Analysis engine: drives one visitor pass per file and aggregates findings."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from .detectors import Detector, LocationAccumulator
from .errors import DetectorError, EngineError, RunCancelled, TraversalWarning
from .registry import DetectorRegistry, builtin_registry
from .result import Finding, ScanResult
from .severity import Severity
from .source import SourceFile
from .visitor import ASTVisitor

log = logging.getLogger(__name__)


@dataclass
class FileOutcome:
    """Non-finding records produced while scanning one file."""

    path: str
    nodes: int = 0
    errors: List[DetectorError] = field(default_factory=list)
    warnings: List[TraversalWarning] = field(default_factory=list)


class AnalysisEngine:
    """Own the active detector set for a run and turn matches into findings.

    Every run builds fresh detector instances and accumulators, so repeated
    runs over the same files produce identical results. Findings are
    aggregated per run: one Finding per detector whose locations span every
    scanned file.
    """

    def __init__(self, registry: Optional[DetectorRegistry] = None, workers: int = 1) -> None:
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self.registry = registry if registry is not None else builtin_registry()
        self.workers = workers

    def run(
        self,
        files: Sequence[SourceFile],
        detector_ids: Optional[Iterable[str]] = None,
        severities: Optional[Iterable[Severity]] = None,
        exclude: Optional[Iterable[str]] = None,
        min_severity: Optional[Severity] = None,
        cancel: Optional[threading.Event] = None,
    ) -> ScanResult:
        selected = self.registry.select(
            ids=detector_ids,
            severities=severities,
            exclude=exclude,
            min_severity=min_severity,
        )
        detectors = self._instantiate(selected)
        log.debug("running %d detector(s) over %d file(s)", len(detectors), len(files))

        outcomes = self._scan_files(list(files), detectors, cancel)

        result = ScanResult(files_scanned=len(outcomes))
        for finding in self._drain(detectors):
            result.add_finding(finding)
        for outcome in outcomes:
            result.errors.extend(outcome.errors)
            result.warnings.extend(outcome.warnings)
        result.errors.sort(key=lambda error: (error.file, error.line, error.detector_id, error.message))
        result.warnings.sort(key=lambda warning: (warning.file, warning.line, warning.column))
        return result

    def scan_file(self, source_file: SourceFile, detectors: Sequence[Detector]) -> FileOutcome:
        """Register every detector on a fresh visitor for ``source_file`` and walk it."""

        visitor = ASTVisitor(source_file)
        outcome = FileOutcome(path=source_file.path)
        for detector in detectors:
            try:
                detector.register_callbacks(visitor)
            except EngineError:
                raise
            except Exception as exc:
                log.warning("Detector %s failed to register on %s: %s", detector.id(), source_file.path, exc)
                outcome.errors.append(
                    DetectorError(
                        detector_id=detector.id(),
                        file=source_file.path,
                        line=0,
                        message=f"{type(exc).__name__}: {exc}",
                    )
                )
        outcome.nodes = visitor.walk()
        outcome.errors.extend(visitor.errors)
        outcome.warnings.extend(visitor.warnings)
        log.debug("scanned %s (%d nodes)", source_file.path, outcome.nodes)
        return outcome

    # ------------------------------------------------------------------
    # Run phases
    # ------------------------------------------------------------------
    def _instantiate(self, selected: List[str]) -> List[Detector]:
        detectors = []
        for detector_id in selected:
            detector = self.registry.create(detector_id)
            detector.attach(LocationAccumulator())
            detectors.append(detector)
        return detectors

    def _scan_files(
        self,
        files: List[SourceFile],
        detectors: List[Detector],
        cancel: Optional[threading.Event],
    ) -> List[FileOutcome]:
        def task(source_file: SourceFile) -> Optional[FileOutcome]:
            if cancel is not None and cancel.is_set():
                return None
            return self.scan_file(source_file, detectors)

        if self.workers == 1 or len(files) < 2:
            outcomes = []
            for source_file in files:
                outcome = task(source_file)
                if outcome is None:
                    raise RunCancelled(f"Run cancelled before {source_file.path}")
                outcomes.append(outcome)
            return outcomes

        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            futures = [executor.submit(task, source_file) for source_file in files]
            done, pending = wait(futures, return_when=FIRST_EXCEPTION)
            for future in pending:
                future.cancel()
            for future in done:
                error = future.exception()
                if error is not None:
                    raise error
            results = [future.result() for future in futures]
        if any(outcome is None for outcome in results):
            raise RunCancelled("Run cancelled between files")
        return [outcome for outcome in results if outcome is not None]

    def _drain(self, detectors: List[Detector]) -> List[Finding]:
        findings = []
        for detector in detectors:
            locations = detector.accumulator().drain()
            log.debug("detector %s: %d location(s)", detector.id(), len(locations))
            if not locations:
                continue
            findings.append(
                Finding(
                    detector_id=detector.id(),
                    name=detector.name(),
                    severity=detector.severity(),
                    description=detector.description(),
                    locations=tuple(sorted(locations, key=lambda location: location.sort_key)),
                    gas_savings=detector.gas_savings(),
                    example=detector.example(),
                )
            )
        findings.sort(key=lambda finding: finding.sort_key)
        return findings

