"""Command-line interface for metrics collection and report generation.

Usage
-----
    adblock-perf -e none -f domains.txt --runner mydriver:create_runner
    adblock-perf -e dns -d example.com -l 5
    adblock-perf generate-report -i none.json,dns.json,extension.json -r report
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

from .__version__ import __version__
from .collector import MetricsCollector, load_runner
from .config.models import MetricsFileError, ReportSettings, load_reference_data
from .domain.models import TestEnvironment
from .domain.reconcile import NoCommonDomainsError
from .observability import setup_logging
from .report.generator import TIMESTAMP_FORMAT, generate_report

logger = logging.getLogger(__name__)

DEFAULT_HAR_FILENAME = "har-results.har"
EXIT_SUCCESS = 0
EXIT_ERROR = 1

ENVIRONMENTS = [env.value for env in TestEnvironment]


class ValidationError(Exception):
    """Invalid command-line input."""


def validate_file(file_path: Optional[str]) -> Path:
    """Resolve ``file_path`` and check it is an existing, readable file."""
    if not file_path:
        raise ValidationError("File path is required")

    resolved = Path(file_path).expanduser().resolve()
    if not resolved.exists():
        raise ValidationError(f"File does not exist: {resolved}")
    if not resolved.is_file():
        raise ValidationError(f"Path is not a file: {resolved}")
    if not os.access(resolved, os.R_OK):
        raise ValidationError(f"Cannot access file: {resolved}")
    return resolved


def ensure_directory(dir_path: Path) -> Path:
    """Create ``dir_path`` (and parents) if missing."""
    resolved = dir_path.expanduser().resolve()
    if not resolved.exists():
        try:
            resolved.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ValidationError(f"Could not create directory: {resolved} - {e}") from e
        logger.info("cli.directory_created", extra={"path": str(resolved)})
    return resolved


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--log-level",
        dest="log_level",
        choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
        help="Logging level (overrides environment)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging (sets DEBUG)",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for both commands."""
    parser = argparse.ArgumentParser(
        prog="adblock-perf",
        description=(
            "CLI for running adblock metrics collection and generating reports"
        ),
    )
    parser.add_argument("--version", action="version", version=__version__)
    subparsers = parser.add_subparsers(dest="command")

    collect = subparsers.add_parser(
        "collect", help="Collect page-load metrics (default command)"
    )
    collect.add_argument(
        "-e",
        "--environment",
        default=TestEnvironment.NONE.value,
        help=f"Test environment: {', '.join(ENVIRONMENTS)}",
    )
    collect.add_argument(
        "-f", "--file", help="Path to the domains list file (one domain per line)"
    )
    collect.add_argument(
        "-l", "--limit", type=int, help="Limit the number of domains to process"
    )
    collect.add_argument(
        "-d", "--domain", help="Process a single domain (alternative to -f)"
    )
    collect.add_argument(
        "-p",
        "--proxy-server",
        dest="proxy_server",
        help="Proxy server to use for requests (host:port)",
    )
    collect.add_argument(
        "-H",
        "--har",
        nargs="?",
        const=DEFAULT_HAR_FILENAME,
        help=f"Enable HAR collection (default path: {DEFAULT_HAR_FILENAME})",
    )
    collect.add_argument(
        "-x",
        "--with-extension",
        dest="with_extension",
        action="store_true",
        help="Run with the extension enabled",
    )
    collect.add_argument(
        "-o",
        "--output-file",
        dest="output_file",
        help="Output filename for metrics (without extension)",
    )
    collect.add_argument(
        "--runner",
        help="Page-load runner factory as module:attribute (overrides environment)",
    )
    _add_common_options(collect)

    report = subparsers.add_parser(
        "generate-report", help="Generate an HTML report from metrics files"
    )
    report.add_argument(
        "-i",
        "--input",
        required=True,
        help="Comma-separated list of input JSON files",
    )
    report.add_argument(
        "-r",
        "--report-output",
        dest="report_output",
        help="Output dir path (default: report)",
    )
    _add_common_options(report)
    return parser


def _normalize_argv(argv: Sequence[str]) -> List[str]:
    """Put the command first, routing option-only invocations to ``collect``.

    The command is the first token that is not an option, so options given
    before it (``-v generate-report ...``) still reach its subparser.
    """
    argv = list(argv)
    if argv and argv[0] in ("-h", "--help", "--version"):
        return argv
    for index, token in enumerate(argv):
        if token.startswith("-"):
            continue
        if token in ("collect", "generate-report"):
            return [token, *argv[:index], *argv[index + 1 :]]
        break
    return ["collect", *argv]


def run_collection(args: argparse.Namespace, settings: ReportSettings) -> None:
    """Run metrics collection for a single domain or a domains file."""
    if args.environment not in ENVIRONMENTS:
        raise ValidationError(
            f"Invalid test environment: {args.environment}. "
            f"Valid options are: {', '.join(ENVIRONMENTS)}"
        )
    if not args.domain and not args.file:
        raise ValidationError(
            "Please specify either a domains file (-f, --file) "
            "or a single domain (-d, --domain)"
        )
    domains_file = validate_file(args.file) if args.file else None
    if args.limit is not None and args.limit <= 0:
        raise ValidationError(
            f"Invalid limit value: {args.limit}. Must be a positive number."
        )

    runner_path = args.runner or settings.runner
    if not runner_path:
        raise ValidationError(
            "No page-load runner configured (use --runner or ADBLOCK_PERF_RUNNER)"
        )

    test_env = TestEnvironment(args.environment)
    output_file = args.output_file or (
        f"{test_env.value}_{datetime.now().strftime(TIMESTAMP_FORMAT)}"
    )
    har_path = args.har
    if har_path:
        ensure_directory(Path(har_path).expanduser().resolve().parent)

    try:
        runner = load_runner(runner_path, verbose=args.verbose)
    except (ImportError, ValueError) as e:
        raise ValidationError(f"Cannot load runner '{runner_path}': {e}") from e

    collector = MetricsCollector(runner, settings.metrics_dir)
    options = {
        "test_env": test_env,
        "output_file": output_file,
        "proxy_server": args.proxy_server,
        "with_extension": args.with_extension,
        "har_path": har_path,
    }
    if args.domain:
        logger.info("cli.single_domain", extra={"domain": args.domain})
        collector.process_single_domain(args.domain, **options)
    else:
        logger.info(
            "cli.domains_file",
            extra={"domains_file": str(domains_file), "limit": args.limit},
        )
        collector.process_domains(domains_file, limit=args.limit, **options)


def run_report(args: argparse.Namespace, settings: ReportSettings) -> Path:
    """Validate report inputs and generate the report."""
    input_files = [validate_file(name.strip()) for name in args.input.split(",")]
    output_dir = ensure_directory(Path(args.report_output or settings.report_dir))
    reference = load_reference_data(settings.trackers_path, settings.companies_path)
    report_path = generate_report(
        input_files,
        output_dir,
        reference=reference,
        threshold=settings.min_requests_threshold,
    )
    logger.info("cli.report_generated", extra={"report_path": str(report_path)})
    return report_path


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entrypoint.

    Returns the process exit code; errors are logged, never raised.
    """
    parser = build_parser()
    args = parser.parse_args(_normalize_argv(sys.argv[1:] if argv is None else argv))

    settings = ReportSettings()
    effective_level = args.log_level or ("DEBUG" if args.verbose else settings.log_level)
    setup_logging(effective_level)

    try:
        if args.command == "generate-report":
            run_report(args, settings)
        else:
            run_collection(args, settings)
            logger.info("cli.collection_completed")
    except ValidationError as e:
        logger.error("Validation error: %s", e)
        return EXIT_ERROR
    except (MetricsFileError, NoCommonDomainsError) as e:
        logger.error("Error generating report: %s", e)
        return EXIT_ERROR
    return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
