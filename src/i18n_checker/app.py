import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

import requests
from tqdm.auto import tqdm

from .controllers.check_controller import CheckController
from .errors import I18nCheckerError
from .managers.config_manager import ConfigManager
from .model import CheckReport, DocumentResource, Severity
from .services.http_fetch_service import HttpFetchService
from .utils.configure_logging import configure_logger

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="i18n-checker",
        description="Checks web pages for internationalization problems.",
    )
    parser.add_argument("targets", nargs="+", metavar="TARGET",
                        help="An http(s) URL or the path of a local HTML file.")
    parser.add_argument("--header", action="append", default=[], metavar="'Name: value'",
                        help="Sent as a request header for URLs; used as a response header for files. Repeatable.")
    parser.add_argument("--format", choices=["text", "json"], default="text", help="Output format.")
    parser.add_argument("--level", choices=[s.value for s in Severity], default=Severity.INFO.value,
                        help="Only report assertions of this severity or higher.")
    parser.add_argument("--workers", type=int, default=None, help="Number of worker processes.")
    parser.add_argument("--config", type=str, default=None, help="Path of an alternative settings.json.")
    parser.add_argument("--log-level", type=str, default=None, help="Overrides logging.level from the settings.")
    return parser


def parse_header_options(values: Sequence[str]) -> Dict[str, List[str]]:
    """Turns repeated 'Name: value' options into a header mapping; repeated names keep every value."""
    headers: Dict[str, List[str]] = {}
    for raw in values:
        name, sep, value = raw.partition(":")
        if not sep or not name.strip():
            raise ValueError(f"Malformed header '{raw}', expected 'Name: value'")
        headers.setdefault(name.strip(), []).append(value.strip())
    return headers


def _is_url(target: str) -> bool:
    return target.lower().startswith(("http://", "https://"))


def load_target(
        target: str,
        headers: Dict[str, List[str]],
        fetch_service: HttpFetchService
) -> DocumentResource:
    """Fetches a URL, or reads a local file with the given headers standing in for the response headers."""
    if _is_url(target):
        request_headers = {name: "".join(values) for name, values in headers.items()}
        return fetch_service.fetch(target, request_headers)
    path = Path(target)
    return DocumentResource(url=path.resolve().as_uri(), body=path.read_bytes(), headers=headers)


def filter_report(report: CheckReport, level: Severity) -> CheckReport:
    """Drops assertions ranked below `level`. MESSAGE ranks highest, so it is always kept."""
    kept = [a for a in report.assertions if a.severity.rank >= level.rank]
    return report.model_copy(update={"assertions": kept})


def format_text(reports: Sequence[CheckReport]) -> str:
    lines = []
    for report in reports:
        lines.append("=" * 60)
        lines.append(report.url or "<unknown>")
        lines.append("=" * 60)
        if report.error:
            lines.append(f"  ❌ {report.error}")
            continue
        if not report.assertions:
            lines.append("  No findings.")
        for assertion in report.assertions:
            title = assertion.title or assertion.id
            lines.append(f"  [{assertion.severity.value:<7}] {title} ({assertion.id})")
            for context in assertion.contexts:
                lines.append(f"      {context}")
    return "\n".join(lines)


def format_json(reports: Sequence[CheckReport]) -> str:
    return json.dumps([report.to_dict() for report in reports], ensure_ascii=False, indent=2)


def run(
        targets: Sequence[str],
        headers: Dict[str, List[str]],
        controller: CheckController,
        fetch_service: HttpFetchService,
        workers: Optional[int] = None
) -> List[CheckReport]:
    """
    Loads and checks every target. Reports come back in target order; a target
    that could not be loaded is reported with its error.
    """
    loaded: List[Tuple[str, Union[DocumentResource, str]]] = []
    for target in targets:
        try:
            loaded.append((target, load_target(target, headers, fetch_service)))
        except (OSError, requests.exceptions.RequestException) as e:
            logger.error("Could not load %s: %s", target, e)
            loaded.append((target, str(e)))

    resources = [item for _, item in loaded if isinstance(item, DocumentResource)]
    pbar = tqdm(total=len(resources), desc="Checking", unit="doc", disable=len(resources) < 2)

    def progress_update(current, total):
        pbar.n = current
        pbar.refresh()

    checked = iter(controller.check_many(resources, workers=workers, progress_callback=progress_update))
    pbar.close()

    reports = []
    for target, item in loaded:
        if isinstance(item, DocumentResource):
            reports.append(next(checked))
        else:
            reports.append(CheckReport(url=target, error=item))
    return reports


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    config = ConfigManager(args.config)
    if args.log_level:
        config.set_nested("logging.level", args.log_level)
    configure_logger(
        config.get_nested("logging.level", "WARNING"),
        module_specific_levels=config.get_nested("logging.module_levels", {}),
        silenced_loggers=config.get_nested("logging.silenced_loggers", {}),
    )
    settings = config.to_settings()

    try:
        headers = parse_header_options(args.header)
        controller = CheckController(settings)
    except ValueError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 2
    except I18nCheckerError as e:
        logger.error("Checker could not start: %s", e)
        print(f"❌ {e}", file=sys.stderr)
        return 2

    reports = run(args.targets, headers, controller, HttpFetchService(settings), workers=args.workers)
    reports = [filter_report(report, Severity(args.level)) for report in reports]

    print(format_json(reports) if args.format == "json" else format_text(reports))
    return 1 if any(not report.ok for report in reports) else 0


if __name__ == "__main__":
    sys.exit(main())
