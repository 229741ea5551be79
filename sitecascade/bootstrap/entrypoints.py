"""
bootstrap/entrypoints.py - Application entry points

Provides the analysis CLI and the API server entry point.
"""

from __future__ import annotations
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional
import argparse
import json
import logging
import sys

from sitecascade.core.models import CascadeReport
from sitecascade.core.parsing import parse_instant
from sitecascade.errors import InvalidInputError
from sitecascade.explain.formatters import ChatFormatter, ReportFormatter
from sitecascade.explain.synthesizer import RecommendationAdvisor
from sitecascade.reporting.assembler import analyze_cascade
from .config import CascadeConfig, load_config

logger = logging.getLogger("bootstrap.entrypoints")

HANDLER_NAME = "sitecascade"

EXIT_OK = 0
EXIT_ANALYSIS_ERROR = 1
EXIT_INVALID_INPUT = 2

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    json_format: bool = False,
    log_format: str = DEFAULT_LOG_FORMAT,
) -> None:
    """
    Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional log file path
        json_format: Use JSON format for logs
        log_format: logging.Formatter pattern for plain-text logs
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if json_format:

        class JSONFormatter(logging.Formatter):
            def format(self, record):
                return json.dumps({
                    "timestamp": self.formatTime(record),
                    "level": record.levelname,
                    "logger": record.name,
                    "message": record.getMessage(),
                })

        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(log_format)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Replace handlers from an earlier call
    for handler in list(root_logger.handlers):
        if handler.get_name() == HANDLER_NAME:
            root_logger.removeHandler(handler)
            handler.close()

    # stderr keeps stdout clean for report output
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.set_name(HANDLER_NAME)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(log_level)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.set_name(HANDLER_NAME)
        file_handler.setFormatter(formatter)
        file_handler.setLevel(log_level)
        root_logger.addHandler(file_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("anthropic").setLevel(logging.WARNING)


# =============================================================================
# CLI
# =============================================================================

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="SiteCascade project delay cascade analysis",
        prog="sitecascade",
    )
    parser.add_argument(
        "-c", "--config",
        help="Path to configuration file",
        default=None,
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Log level (default: config, else WARNING)",
    )
    parser.add_argument(
        "--log-file",
        help="Log file path",
        default=None,
    )

    subparsers = parser.add_subparsers(dest="command")

    analyze = subparsers.add_parser("analyze", help="Analyze a phase list")
    analyze.add_argument(
        "phases_file",
        help='JSON file: a list of phases or {"phases": [...]}',
    )
    analyze.add_argument(
        "--now",
        help="Reference instant, ISO-8601 (default: current UTC time)",
        default=None,
    )
    analyze.add_argument(
        "--format",
        choices=["text", "markdown", "json"],
        default="text",
        help="Output format",
    )
    analyze.add_argument(
        "--diagnostics",
        action="store_true",
        help="Include input and advisory diagnostics in the output",
    )
    analyze.add_argument(
        "--use-llm",
        action="store_true",
        help="Ask the configured LLM for recommendations (templates on failure)",
    )

    return parser


def _load_phases(path: str) -> Any:
    with open(Path(path), encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        if "phases" not in data:
            raise InvalidInputError("Phases array is required")
        return data["phases"]
    return data


def _resolve_now(value: Optional[str]) -> datetime:
    if value is None:
        return datetime.now(timezone.utc)
    instant = parse_instant(value)
    if instant is None:
        raise InvalidInputError(f"Invalid --now value: {value!r}")
    return instant


def _build_llm_advisor(config: CascadeConfig) -> Optional[RecommendationAdvisor]:
    from sitecascade.llm import LLMRecommendationAdvisor, create_llm_provider_from_config

    try:
        provider = create_llm_provider_from_config(config.llm)
    except ValueError as e:
        logger.warning(f"LLM advisor disabled: {e}")
        return None

    return LLMRecommendationAdvisor(
        provider,
        region=config.advisor.region,
        timeout_seconds=config.advisor.timeout_seconds,
    )


def render_report(report: CascadeReport, output_format: str, include_diagnostics: bool = False) -> str:
    """Render a report as text, markdown or JSON."""
    if output_format == "json":
        return json.dumps(
            report.to_dict(include_diagnostics=include_diagnostics),
            indent=2,
            ensure_ascii=False,
        )

    if output_format == "markdown":
        if not include_diagnostics:
            report = CascadeReport(
                delayed_phases=report.delayed_phases,
                impacted_phases=report.impacted_phases,
                recommendations=report.recommendations,
                cascade_impact=report.cascade_impact,
                error=report.error,
                advisory_source=report.advisory_source,
            )
        return ReportFormatter().format(report)

    text = ChatFormatter().format(report)
    if include_diagnostics and report.diagnostics:
        lines: List[str] = [text, "", "**Diagnostics:**"]
        for d in report.diagnostics:
            lines.append(f"- {d.code.name} ({d.severity.value}): {d.message}")
        text = "\n".join(lines)
    return text


def _run_analyze(parsed: argparse.Namespace, config: CascadeConfig) -> int:
    try:
        phases = _load_phases(parsed.phases_file)
        now = _resolve_now(parsed.now)
    except (OSError, json.JSONDecodeError, InvalidInputError) as e:
        print(f"Invalid input: {e}", file=sys.stderr)
        return EXIT_INVALID_INPUT

    advisor = None
    if parsed.use_llm or config.advisor.enabled:
        advisor = _build_llm_advisor(config)

    try:
        report = analyze_cascade(phases, now, advisor, config=config)
    except InvalidInputError as e:
        print(f"Invalid input: {e}", file=sys.stderr)
        return EXIT_INVALID_INPUT

    print(render_report(report, parsed.format, parsed.diagnostics))
    return EXIT_ANALYSIS_ERROR if report.error is not None else EXIT_OK


def cli_main(args: Optional[list] = None) -> int:
    """
    CLI entry point.

    Args:
        args: Command line arguments (defaults to sys.argv)

    Returns:
        Exit code: 0 ok, 1 analysis error payload, 2 invalid input
    """
    parser = _build_parser()
    parsed = parser.parse_args(args)

    config = load_config(parsed.config)
    log_level = parsed.log_level or ("WARNING" if config.logging.level == "INFO" else config.logging.level)
    setup_logging(
        level=log_level,
        log_file=parsed.log_file or config.logging.log_file,
        json_format=config.logging.json_logs,
        log_format=config.logging.format,
    )

    if parsed.command != "analyze":
        parser.print_help()
        return EXIT_INVALID_INPUT

    try:
        return _run_analyze(parsed, config)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130


def api_main(args: Optional[list] = None) -> None:
    """
    API server entry point.

    Args:
        args: Command line arguments
    """
    parser = argparse.ArgumentParser(
        description="SiteCascade API Server",
        prog="sitecascade-api",
    )
    parser.add_argument(
        "-c", "--config",
        help="Path to configuration file",
        default=None,
    )
    parser.add_argument(
        "-p", "--port",
        type=int,
        help="API port",
        default=8000,
    )
    parser.add_argument(
        "-H", "--host",
        help="API host",
        default="127.0.0.1",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Log level",
    )

    parsed = parser.parse_args(args)
    setup_logging(level=parsed.log_level)

    try:
        import uvicorn
    except ImportError:
        logger.error("uvicorn not installed. Run: pip install uvicorn")
        sys.exit(1)

    from sitecascade.deployment.api import create_app

    config = load_config(parsed.config)
    uvicorn.run(
        create_app(config),
        host=parsed.host,
        port=parsed.port,
        log_level=parsed.log_level.lower(),
    )


def main():
    """Main entry point for `python -m sitecascade`."""
    if len(sys.argv) > 1 and sys.argv[1] == "api":
        api_main(sys.argv[2:])
    else:
        sys.exit(cli_main(sys.argv[1:]))


if __name__ == "__main__":
    main()
