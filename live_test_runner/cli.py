"""CLI entry point for the live test runner."""

import argparse
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from live_test_runner.config import RunnerConfig, load_runner_config
from live_test_runner.models.result import Report
from live_test_runner.notifier import ReportCollector
from live_test_runner.registry.components import ComponentHub
from live_test_runner.registry.loading import load_registry_manifest
from live_test_runner.runner import TestRunner

STATUS_SYMBOLS = {
    "success": "✓",
    "failure": "✗",
    "error": "!",
    "skipped": "-",
}


def log_results_summary(log: logging.Logger, reports: Sequence[Report]) -> None:
    """Log a formatted summary of test reports."""
    log.info("=" * 80)
    log.info("Test Results Summary:")
    log.info("=" * 80)

    for report in reports:
        symbol = STATUS_SYMBOLS.get(report.status, "?")
        log.info(
            "%s %s: %s (%d test(s), %.2fs)",
            symbol,
            report.test_id,
            report.status,
            report.tests,
            report.duration_millis / 1000,
        )
        for message in report.failure_messages:
            log.info("  Message: %s", message)


def format_output(reports: Sequence[Report]) -> dict[str, Any]:
    """Format reports for JSON output."""
    results = [
        {
            "test_id": report.test_id,
            "status": report.status,
            "tests": report.tests,
            "duration_ms": report.duration_millis,
            "failures": list(report.failure_messages),
        }
        for report in reports
    ]

    return {
        "total": len(results),
        "passed": sum(1 for r in results if r["status"] == "success"),
        "failed": sum(1 for r in results if r["status"] == "failure"),
        "errors": sum(1 for r in results if r["status"] == "error"),
        "skipped": sum(1 for r in results if r["status"] == "skipped"),
        "results": results,
    }


def build_config(args: argparse.Namespace) -> RunnerConfig:
    """Merge the config file, the environment and command line options."""
    overrides: dict[str, Any] = {
        key: value
        for key, value in {
            "reports_path": args.reports_path,
            "rerun_count": args.rerun_count,
            "include_patterns": args.include,
            "exclude_patterns": args.exclude,
            "registry_mode": args.registry,
            "interval": args.interval,
        }.items()
        if value is not None
    }
    if args.config is not None:
        return load_runner_config(args.config, **overrides)
    return RunnerConfig(**overrides)


def run(
    config: RunnerConfig,
    components: Sequence[str],
    test_ids: Sequence[str] = (),
    continuous: bool = False,
) -> int:
    """Register components, run their tests and return exit code."""
    log = logging.getLogger("live_test_runner")

    log.info("Loading registry: %s", config.registry_mode)
    manifest = load_registry_manifest(config.registry_mode)
    registry = manifest.create()

    hub = ComponentHub()
    registry.attach(hub)
    for component_id in components:
        hub.add(component_id)

    runner = TestRunner(config)
    runner.bind_registry(registry, {"discovery": manifest.discovery})
    collector = ReportCollector()

    try:
        if continuous:
            log.info("Running every %.1fs, Ctrl+C to stop", config.interval)
            runner.start(observer=collector)
            try:
                while not runner.wait(timeout=1.0):
                    pass
            except KeyboardInterrupt:
                log.info("Interrupted, waiting for the running test to finish")
                runner.stop()
                runner.wait()
        else:
            ids = list(test_ids) or [
                unit.id
                for unit in registry.get_all()
                if runner.test_filter.accept(unit.name)
            ]
            log.info("Running %d test(s) once", len(ids))
            runner.start(ids, observer=collector)
            runner.wait()
    finally:
        registry.detach()

    reports = collector.reports
    log_results_summary(log, reports)
    print(json.dumps(format_output(reports), indent=2))

    has_failures = any(report.status in {"failure", "error"} for report in reports)
    return 1 if has_failures else 0


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Run the unittest test cases of dynamically registered components"
    )
    parser.add_argument(
        "--component",
        dest="components",
        action="append",
        required=True,
        help="Import name of a component contributing tests (repeatable)",
    )
    parser.add_argument(
        "--test-id",
        dest="test_ids",
        action="append",
        default=[],
        help="Run only this test, as <component>@<qualified class name> (repeatable)",
    )
    parser.add_argument(
        "--include",
        help="Comma or space separated glob patterns test names have to match",
    )
    parser.add_argument(
        "--exclude",
        help="Comma or space separated glob patterns excluding test names",
    )
    parser.add_argument(
        "--reports-path",
        type=Path,
        help="Directory where surefire XML reports are written",
    )
    parser.add_argument(
        "--rerun-count",
        type=int,
        help="Number of reruns for each failing test method",
    )
    parser.add_argument(
        "--registry",
        help="Registry discovery mode (auto, declared)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="YAML file with runner configuration",
    )
    parser.add_argument(
        "--continuous",
        action="store_true",
        help="Keep running newly registered tests until interrupted",
    )
    parser.add_argument(
        "--interval",
        type=float,
        help="Seconds between continuous runs",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    exit_code = run(
        config=build_config(args),
        components=args.components,
        test_ids=args.test_ids,
        continuous=args.continuous,
    )
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
