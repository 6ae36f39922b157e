from __future__ import annotations

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv

from survey_importer.config.loader import ConfigError, load_config
from survey_importer.gateway.client import SurveyGateway
from survey_importer.logging.error_log import ErrorLogBuffer
from survey_importer.logging.init import get_logger, log_summary, setup_logging
from survey_importer.models.processing_status import ProcessingPhase, ProcessingStatus, RunResult
from survey_importer.services.orchestrator import ImportInputError, ImportOrchestrator
from survey_importer.services.summary import render_summary_line
from survey_importer.services.template import write_template
from survey_importer.tabular.reader import CsvReadError

"""CLI entrypoint.

    survey-import --survey <HASH_ID> answers.csv
    survey-import --template template.csv

Flow: load .env and config, validate the CSV, stop on validation errors unless
the user proceeds anyway (flag or interactive prompt), submit rows, print the
SUMMARY line.
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

# validation errors printed before "...and N more"
MAX_LISTED_ERRORS = 10


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv; .env values win over the process environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="survey-import",
        description="Import NPS survey answers from a CSV file into zenloop",
    )
    p.add_argument("csv_file", nargs="?", type=Path, help="CSV file to import")
    p.add_argument("--survey", metavar="HASH_ID", help="Survey public hash id")
    p.add_argument("--config", type=Path, help="YAML config file (default: config/import.yml)")
    p.add_argument("--template", type=Path, metavar="OUT", help="Write an example CSV and exit")
    p.add_argument(
        "--proceed-anyway",
        action="store_true",
        help="On validation errors, import anyway and skip rows without a valid NPS",
    )
    p.add_argument("--no-progress", action="store_true", help="Disable the progress bar")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _report_validation_errors(status: ProcessingStatus) -> None:
    logger = get_logger()
    errors = status.validation_errors
    logger.error(f"Validation errors found: {len(errors)} issue(s) in your CSV")
    for err in errors[:MAX_LISTED_ERRORS]:
        logger.error(err.message)
    if len(errors) > MAX_LISTED_ERRORS:
        logger.error(f"...and {len(errors) - MAX_LISTED_ERRORS} more")


def _confirm_proceed() -> bool:
    """Ask on an interactive terminal; never proceed silently otherwise."""
    if not sys.stdin.isatty():
        return False
    try:
        answer = input("Proceed anyway and skip rows without a valid NPS? [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def _exit_code(result: RunResult) -> int:
    status = result.status
    if status.phase == ProcessingPhase.COMPLETE and not status.processing_errors:
        return EXIT_SUCCESS_ALL
    return EXIT_PARTIAL_FAILURE


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)
    if args.debug:
        logger.debug("debug mode enabled")

    if args.template is not None:
        path = write_template(args.template)
        logger.info(f"Template written to {path}")
        return EXIT_SUCCESS_ALL

    if not (args.survey or "").strip():
        logger.error("Please enter a Survey Hash ID (--survey)")
        return EXIT_FATAL
    if args.csv_file is None:
        logger.error("Please select a CSV file")
        return EXIT_FATAL

    _load_env_file(Path(".env"), override=True)
    try:
        cfg = load_config(args.config, required=args.config is not None)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if not cfg.api.has_credentials:
        logger.warning("ZENLOOP_API_USER / ZENLOOP_API_PASSWORD not set; requests will be unauthorized")

    logger.info(f"Importing {args.csv_file} into survey {args.survey} via {cfg.api.base_url}")

    with SurveyGateway(cfg.api) as gateway:
        orchestrator = ImportOrchestrator(
            gateway,
            row_delay_seconds=cfg.row_delay_seconds,
            error_log=ErrorLogBuffer(Path(cfg.error_log_dir)),
            show_progress=not args.no_progress,
        )
        try:
            result = orchestrator.submit(args.survey, args.csv_file)
        except (ImportInputError, CsvReadError) as e:
            logger.error(str(e))
            return EXIT_FATAL

        if result.status.phase == ProcessingPhase.VALIDATION_FAILED:
            _report_validation_errors(result.status)
            if not orchestrator.can_proceed_anyway:
                logger.error("Fix the file and upload it again")
                return EXIT_PARTIAL_FAILURE
            if not (args.proceed_anyway or _confirm_proceed()):
                logger.info("Import aborted; rerun with --proceed-anyway to skip invalid rows")
                return EXIT_PARTIAL_FAILURE
            result = orchestrator.proceed_anyway()

    summary_line = render_summary_line(result)
    # log_summary adds the "SUMMARY " label itself
    log_summary(summary_line[len("SUMMARY "):])
    return _exit_code(result)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
