"""Surefire compatible XML reports."""

import logging
import re
import socket
import threading
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from live_test_runner.models.result import CaseResult, Report

log = logging.getLogger(__name__)

_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;?]*[A-Za-z]")
# Characters XML 1.0 forbids, lone surrogates included
_INVALID_XML = re.compile(
    "[^\t\n\r\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]"
)


class ReportWriter(Protocol):
    """Persists the report of one test unit."""

    def write(self, report: Report) -> Path:
        """Write the report and return where it was stored."""
        ...


class XmlReportWriter:
    """Writes one ``TEST-<name>.xml`` file per report, surefire style.

    The first component reporting a class name owns its file for the lifetime
    of the writer. When another component contributes a class of the same
    name, its report goes to ``TEST-<component>@<name>.xml`` instead, so
    neither overwrites the other.
    """

    def __init__(self, reports_dir: Path) -> None:
        self.reports_dir = reports_dir
        self._owners: dict[str, str] = {}
        self._lock = threading.Lock()

    def path_for(self, report: Report) -> Path:
        with self._lock:
            owner = self._owners.setdefault(report.name, report.component_id)
        stem = report.name if owner == report.component_id else report.test_id
        return self.reports_dir / f"TEST-{stem}.xml"

    def write(self, report: Report) -> Path:
        self.reports_dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(report)

        tree = ET.ElementTree(self.to_element(report))
        ET.indent(tree)
        tree.write(path, encoding="UTF-8", xml_declaration=True)

        log.debug("Report for %s written to %s", report.test_id, path)
        return path

    def to_element(self, report: Report) -> ET.Element:
        suite = ET.Element(
            "testsuite",
            {
                "name": _xml_text(report.name),
                "tests": str(report.tests),
                "failures": str(report.failures),
                "errors": str(report.errors),
                "skipped": str(report.skipped),
                "time": _seconds(report.duration_millis / 1000),
                "timestamp": datetime.now(timezone.utc).isoformat(timespec="seconds"),
                "hostname": socket.gethostname(),
            },
        )

        properties = ET.SubElement(suite, "properties")
        for name, value in (
            ("component", report.component_id),
            ("test.id", report.test_id),
        ):
            ET.SubElement(
                properties, "property", {"name": name, "value": _xml_text(value)}
            )

        for case in report.cases:
            suite.append(_case_element(case))
        return suite


def _case_element(case: CaseResult) -> ET.Element:
    element = ET.Element(
        "testcase",
        {
            "name": _xml_text(case.name),
            "classname": _xml_text(case.class_name),
            "time": _seconds(case.duration),
        },
    )

    if case.status in ("failure", "error"):
        child = ET.SubElement(
            element, case.status, {"message": _xml_text(case.message)}
        )
        if case.error_type:
            child.set("type", _xml_text(case.error_type))
        child.text = _xml_text(case.trace) or None
    elif case.status == "skipped":
        skipped = ET.SubElement(element, "skipped")
        if case.message:
            skipped.set("message", _xml_text(case.message))

    if case.reruns:
        element.set("reruns", str(case.reruns))
    return element


def _seconds(value: float) -> str:
    return f"{value:.3f}"


def _xml_text(value: str | None) -> str:
    """Drop terminal colour codes and replace characters XML cannot carry."""
    if not value:
        return ""
    return _INVALID_XML.sub("\ufffd", _ANSI_ESCAPE.sub("", value))
