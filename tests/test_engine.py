import threading
import time

import pytest

from solscan.detectors import Detector
from solscan.engine import AnalysisEngine
from solscan.errors import AccumulatorError, RunCancelled, UnknownDetectorError
from solscan.registry import DetectorRegistry
from solscan.severity import Severity
from solscan.visitor import NodeCategory

from conftest import ExplodingDetector, GetStEthDetector, StEthPerTokenDetector, parse

SCENARIO_A = """pragma solidity 0.8.20;

contract Oracle {
    function rate(IWstETH x) external view returns (uint256) {
        uint256 a = x.stEthPerToken();
        uint256 b = x.getStETHByWstETH(1e18);
        return a + b;
    }
}
"""


def contract_with_calls(count: int) -> str:
    calls = "\n".join("        total += x.stEthPerToken();" for _ in range(count))
    return (
        "contract Many {\n"
        "    function f(IWstETH x) external view returns (uint256 total) {\n"
        f"{calls}\n"
        "    }\n"
        "}\n"
    )


def test_member_call_yields_single_finding_with_exact_location(registry):
    source = parse(SCENARIO_A, path="src/Oracle.sol")

    result = AnalysisEngine(registry).run([source], detector_ids=["steth-per-token"])

    assert result.detector_ids() == ["steth-per-token"]
    finding = result.findings[0]
    assert finding.severity is Severity.HIGH
    assert len(finding.locations) == 1
    location = finding.locations[0]
    assert location.file == "src/Oracle.sol"
    assert location.line == 5
    assert location.column == 21
    assert location.snippet == "x.stEthPerToken()"


def test_empty_file_yields_no_findings_and_no_errors(registry):
    result = AnalysisEngine(registry).run([parse("", path="Empty.sol")])

    assert result.findings == []
    assert result.errors == []
    assert result.warnings == []
    assert result.files_scanned == 1
    assert result.passed


def test_unknown_detector_fails_before_any_file_is_scanned(registry):
    class Spy(Detector):
        ID = "spy"
        NAME = "Spy"
        SEVERITY = Severity.LOW
        DESCRIPTION = ""
        registered = []

        def register_callbacks(self, visitor):
            Spy.registered.append(visitor.source_file.path)

    registry.register(Spy)

    with pytest.raises(UnknownDetectorError):
        AnalysisEngine(registry).run([parse(SCENARIO_A)], detector_ids=["nonexistent-rule"])

    assert Spy.registered == []


def test_location_count_and_coordinates_match_occurrences(registry):
    source = parse(contract_with_calls(3), path="Many.sol")

    result = AnalysisEngine(registry).run([source])

    finding = result.finding("steth-per-token")
    assert [(loc.line, loc.column) for loc in finding.locations] == [(3, 18), (4, 18), (5, 18)]
    assert {loc.snippet for loc in finding.locations} == {"x.stEthPerToken()"}
    assert result.finding("get-steth") is None


def test_repeated_runs_are_identical(registry):
    files = [parse(SCENARIO_A, path="A.sol"), parse(contract_with_calls(2), path="B.sol")]
    engine = AnalysisEngine(registry)

    assert engine.run(files).to_dict() == engine.run(files).to_dict()


def test_detectors_are_independent_of_each_other(registry):
    source = parse(SCENARIO_A)
    engine = AnalysisEngine(registry)

    together = engine.run([source])
    alone_steth = engine.run([source], detector_ids=["steth-per-token"])
    alone_get = engine.run([source], detector_ids=["get-steth"])

    assert together.finding("steth-per-token") == alone_steth.finding("steth-per-token")
    assert together.finding("get-steth") == alone_get.finding("get-steth")
    assert together.finding("get-steth").locations[0].snippet == "x.getStETHByWstETH(1e18)"


def test_excluded_detector_never_appears(registry):
    result = AnalysisEngine(registry).run([parse(SCENARIO_A)], exclude=["steth-per-token"])

    assert result.detector_ids() == ["get-steth"]


def test_findings_ordered_by_severity_then_id_and_locations_by_position():
    class Critical(Detector):
        ID = "zz-critical"
        NAME = "Critical"
        SEVERITY = Severity.CRITICAL
        DESCRIPTION = ""

        def register_callbacks(self, visitor):
            self.observe(visitor, NodeCategory.SOURCE_UNIT, self.report)

    high_b = type("HighB", (StEthPerTokenDetector,), {"ID": "b-high"})
    registry = DetectorRegistry([StEthPerTokenDetector, GetStEthDetector, Critical, high_b])
    files = [parse(SCENARIO_A, path="b.sol"), parse(SCENARIO_A, path="a.sol")]

    result = AnalysisEngine(registry).run(files)

    assert result.detector_ids() == ["zz-critical", "b-high", "steth-per-token", "get-steth"]
    assert [loc.file for loc in result.finding("b-high").locations] == ["a.sol", "b.sol"]
    assert result.exit_code() == 2


def test_parallel_scan_matches_sequential_scan(registry):
    files = [parse(contract_with_calls(index % 4), path=f"src/F{index:03d}.sol") for index in range(100)]

    sequential = AnalysisEngine(registry, workers=1).run(files)
    parallel = AnalysisEngine(registry, workers=2).run(list(reversed(files)))

    assert parallel.findings == sequential.findings
    assert sum(len(f.locations) for f in sequential.findings) == sum(index % 4 for index in range(100))


def test_detector_defect_is_isolated_and_reported(registry):
    registry.register(ExplodingDetector)

    result = AnalysisEngine(registry).run([parse(SCENARIO_A, path="Oracle.sol")])

    assert result.detector_ids() == ["steth-per-token", "get-steth"]
    assert len(result.errors) == 1
    error = result.errors[0]
    assert (error.detector_id, error.file, error.line) == ("exploding", "Oracle.sol", 1)
    assert "unexpected internal state" in error.message


def test_accumulator_corruption_is_fatal():
    class Corrupting(Detector):
        ID = "corrupting"
        NAME = "Corrupting"
        SEVERITY = Severity.LOW
        DESCRIPTION = ""

        def register_callbacks(self, visitor):
            self.observe(visitor, NodeCategory.SOURCE_UNIT, self._on_source_unit)

        def _on_source_unit(self, node, source_file):
            self.accumulator().drain()
            self.report(node, source_file)

    with pytest.raises(AccumulatorError):
        AnalysisEngine(DetectorRegistry([Corrupting])).run([parse(SCENARIO_A)])


def test_cancellation_is_honoured_between_files():
    cancel = threading.Event()

    class Canceller(Detector):
        ID = "canceller"
        NAME = "Canceller"
        SEVERITY = Severity.LOW
        DESCRIPTION = ""
        scanned = []

        def register_callbacks(self, visitor):
            self.observe(visitor, NodeCategory.SOURCE_UNIT, self._on_source_unit)

        def _on_source_unit(self, node, source_file):
            Canceller.scanned.append(source_file.path)
            cancel.set()

    files = [parse(SCENARIO_A, path="first.sol"), parse(SCENARIO_A, path="second.sol")]

    with pytest.raises(RunCancelled):
        AnalysisEngine(DetectorRegistry([Canceller])).run(files, cancel=cancel)

    assert Canceller.scanned == ["first.sol"]


def test_engine_rejects_non_positive_workers(registry):
    with pytest.raises(ValueError):
        AnalysisEngine(registry, workers=0)


def test_text_matching_detector_counts_each_occurrence_once():
    class CallText(Detector):
        ID = "call-text"
        NAME = "Call text"
        SEVERITY = Severity.LOW
        DESCRIPTION = ""

        def register_callbacks(self, visitor):
            self.observe(visitor, NodeCategory.EXPRESSION, self._on_expression)

        def _on_expression(self, node, source_file):
            if source_file.node_text(node) == "x.stEthPerToken()":
                self.report(node, source_file)

    source = parse("contract C { function f(I x) external { x.stEthPerToken(); } }")

    result = AnalysisEngine(DetectorRegistry([CallText])).run([source])

    locations = result.finding("call-text").locations
    assert [(location.line, location.column, location.snippet) for location in locations] == [
        (1, 41, "x.stEthPerToken()")
    ]


def test_fatal_error_stops_parallel_scan_early():
    scanned = []

    class Fatal(Detector):
        ID = "fatal"
        NAME = "Fatal"
        SEVERITY = Severity.LOW
        DESCRIPTION = ""

        def register_callbacks(self, visitor):
            self.observe(visitor, NodeCategory.SOURCE_UNIT, self._on_source_unit)

        def _on_source_unit(self, node, source_file):
            scanned.append(source_file.path)
            if source_file.path == "0.sol":
                raise AccumulatorError("corrupted")
            time.sleep(0.05)

    files = [parse(SCENARIO_A, path=f"{index}.sol") for index in range(20)]

    with pytest.raises(AccumulatorError):
        AnalysisEngine(DetectorRegistry([Fatal]), workers=2).run(files)

    assert len(scanned) < len(files)
