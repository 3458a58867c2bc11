"""JUnit XML formatter for CI/CD integration.

One testsuite per strategy, one testcase per identity. A testcase fails
when its recommendation is "No Match" or leaves permissions uncovered.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Sequence
from xml.dom import minidom
from xml.etree import ElementTree as ET

from ..models.recommendation import GrantAnalysis


def build_junit_tree(
    analyses: Sequence[GrantAnalysis],
    project_name: str = "rolemap",
    duration: float = 0,
) -> tuple[ET.Element, int, int]:
    """Build the <testsuites> element. Returns (root, total_tests, failures)."""
    testsuites = ET.Element("testsuites")
    testsuites.set("name", project_name)
    testsuites.set("timestamp", datetime.now().strftime("%Y-%m-%dT%H:%M:%S"))

    strategy_names: list[str] = []
    for analysis in analyses:
        for rec in analysis.recommendations:
            if rec.strategy not in strategy_names:
                strategy_names.append(rec.strategy)

    total_tests = 0
    total_failures = 0

    for strategy in strategy_names:
        testsuite = ET.SubElement(testsuites, "testsuite")
        testsuite.set("name", strategy)

        suite_tests = 0
        suite_failures = 0

        for analysis in analyses:
            rec = analysis.recommendation_for(strategy)
            if rec is None:
                continue
            total_tests += 1
            suite_tests += 1

            grant = analysis.grant
            testcase = ET.SubElement(testsuite, "testcase")
            testcase.set("name", f"{grant.label} ({grant.object_id})")
            testcase.set("classname", strategy)

            if rec.is_match and not rec.missing_permissions:
                continue

            total_failures += 1
            suite_failures += 1

            failure = ET.SubElement(testcase, "failure")
            if not rec.is_match:
                failure.set("message", f"No role fits the {strategy} criteria")
                failure.set("type", "no_match")
            else:
                failure.set("message", f"{len(rec.missing_permissions)} permissions not covered by {rec.role_name}")
                failure.set("type", "partial")

            text_parts = [f"Roles: {rec.role_name}", f"Confidence: {rec.confidence}%"]
            if rec.missing_permissions:
                text_parts.append("\nMissing:\n" + "\n".join(rec.missing_permissions))
            if rec.excess_permissions:
                text_parts.append("\nExcess:\n" + "\n".join(rec.excess_permissions))
            failure.text = "\n".join(text_parts)

        testsuite.set("tests", str(suite_tests))
        testsuite.set("failures", str(suite_failures))
        testsuite.set("errors", "0")
        testsuite.set("skipped", "0")

    testsuites.set("tests", str(total_tests))
    testsuites.set("failures", str(total_failures))
    testsuites.set("errors", "0")
    if duration > 0:
        testsuites.set("time", str(round(duration, 2)))

    return testsuites, total_tests, total_failures


def render_junit_xml(
    analyses: Sequence[GrantAnalysis],
    project_name: str = "rolemap",
    duration: float = 0,
) -> str:
    """Pretty-printed JUnit XML as text."""
    root, _, _ = build_junit_tree(analyses, project_name, duration)
    rough = ET.tostring(root, encoding="unicode")
    return minidom.parseString(rough).toprettyxml(indent="  ")


def export_junit_results(
    analyses: Sequence[GrantAnalysis],
    output_path: Path,
    project_name: str = "rolemap",
    duration: float = 0,
) -> dict:
    """Write JUnit XML to ``output_path``.

    Returns:
        Dict with: path, total_tests, failures, passed.
    """
    root, total_tests, total_failures = build_junit_tree(analyses, project_name, duration)

    output_path.parent.mkdir(parents=True, exist_ok=True)

    # Pretty-print XML
    rough = ET.tostring(root, encoding="unicode")
    dom = minidom.parseString(rough)
    xml_str = dom.toprettyxml(indent="  ", encoding="UTF-8")
    output_path.write_bytes(xml_str)

    return {
        "path": str(output_path),
        "total_tests": total_tests,
        "failures": total_failures,
        "passed": total_tests - total_failures,
    }
