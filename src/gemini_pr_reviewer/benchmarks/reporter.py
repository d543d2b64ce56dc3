"""
Benchmark Reporter

Console table and JSON file output for a benchmark report
"""

import json
from dataclasses import asdict
from pathlib import Path
from typing import List

from .models import BenchmarkReport, CaseScore


COLUMNS = [("Case", 35), ("Recall", 8), ("Prec.", 8), ("Sev.", 8),
           ("Found", 7), ("Expect", 8), ("Extra", 7), ("Time", 8)]


def _pct(value: float) -> str:
    return f"{value * 100:.0f}%"


def _row(values: List[str]) -> str:
    cells = []
    for index, (value, (_, width)) in enumerate(zip(values, COLUMNS)):
        cells.append(value.ljust(width) if index == 0 else value.rjust(width))
    return " ".join(cells)


def format_console_report(report: BenchmarkReport) -> str:
    """Fixed-width table with one row per case and an aggregate row"""
    header = _row([name for name, _ in COLUMNS])
    lines = [
        "",
        f"Benchmark Report: {report.model}",
        "=" * len(header),
        header,
        "-" * len(header),
    ]

    for score in report.cases:
        lines.append(_row([
            score.case_name[:34],
            _pct(score.recall),
            _pct(score.precision),
            _pct(score.severity_accuracy),
            str(score.total_detected),
            str(score.total_expected),
            str(score.unmatched_comments),
            f"{score.duration_ms / 1000:.1f}s",
        ]))

    lines.append("-" * len(header))
    lines.append(_row([
        "AGGREGATE",
        _pct(report.aggregate.recall),
        _pct(report.aggregate.precision),
        _pct(report.aggregate.severity_accuracy),
        "", "", "", "",
    ]))
    lines.append("")
    return "\n".join(lines)


def format_missed_findings(scores: List[CaseScore]) -> str:
    lines = []
    for score in scores:
        if not score.missed:
            continue
        lines.append(f'  Missed in "{score.case_name}":')
        for expected in score.missed:
            lines.append(f"    - {expected.description} (line {expected.line})")
    return "\n".join(lines)


def write_json_report(report: BenchmarkReport, reports_dir: Path) -> Path:
    """Write the report under reports_dir, named after its timestamp"""
    reports_dir.mkdir(parents=True, exist_ok=True)
    safe_timestamp = report.timestamp.replace(":", "-").replace(".", "-").replace("+", "_")
    file_path = reports_dir / f"{safe_timestamp}.json"
    file_path.write_text(json.dumps(asdict(report), indent=2), encoding="utf-8")
    return file_path
