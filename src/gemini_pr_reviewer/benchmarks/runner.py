"""
Benchmark Runner

Runs the seeded cases against Gemini and reports recall, precision and
severity accuracy.
"""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Optional, Sequence

from ..config import LoggingConfig, configure_logging
from ..llm.client import GeminiClient
from .cases import ALL_CASES, get_case
from .harness import DEFAULT_MODEL, build_benchmark_config, run_case
from .reporter import format_console_report, format_missed_findings, write_json_report
from .scorer import build_report


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Benchmark the reviewer against seeded pull requests")
    parser.add_argument("-c", "--case", help="Run only the case with this id")
    parser.add_argument("-m", "--model", default=DEFAULT_MODEL, help="Gemini model name")
    parser.add_argument("--reports-dir", default="benchmark-reports", help="Directory for JSON reports")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(LoggingConfig(level=os.environ.get("LOG_LEVEL", "INFO")))

    api_key = os.environ.get("GEMINI_API_KEY")
    if not api_key:
        logger.error("GEMINI_API_KEY is required")
        return 1

    if args.case:
        case = get_case(args.case)
        if case is None:
            available = ", ".join(c.id for c in ALL_CASES)
            logger.error(f'No case found with id "{args.case}". Available cases: {available}')
            return 1
        cases = [case]
    else:
        cases = ALL_CASES

    logger.info(f"Running {len(cases)} benchmark case(s) with model: {args.model}")

    scores = []
    for case in cases:
        config = build_benchmark_config(case, api_key, args.model)
        model = GeminiClient(
            api_key=api_key,
            model_name=config.model.model_name,
            temperature=config.model.temperature,
        )
        score = asyncio.run(run_case(case, config, model))
        scores.append(score)
        logger.info(
            f"{case.name} ({case.id}): recall {score.recall:.0%}, precision {score.precision:.0%}, "
            f"found {score.total_detected}/{score.total_expected}, extra {score.unmatched_comments}, "
            f"{score.duration_ms / 1000:.1f}s"
        )

    report = build_report(args.model, scores)
    print(format_console_report(report))
    missed = format_missed_findings(scores)
    if missed:
        print(missed)

    report_path = write_json_report(report, Path(args.reports_dir))
    logger.info(f"JSON report written to: {report_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
