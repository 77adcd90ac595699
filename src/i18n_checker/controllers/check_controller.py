# src/i18n_checker/controllers/check_controller.py
import logging
from concurrent.futures import ProcessPoolExecutor
from typing import Callable, List, Mapping, Optional, Sequence

from ..dom.builder import FactsBuilder
from ..dom.qngine import RuleEngine
from ..model import Assertion, CheckerSettings, CheckReport, DocumentResource
from ..services.template_service import TemplateResolver
from ..utils.path_utils import PathUtils

logger = logging.getLogger(__name__)


def _build_engine(settings: CheckerSettings) -> RuleEngine:
    resolver = TemplateResolver.load(PathUtils.get_templates_file(settings.templates_file))
    return RuleEngine(resolver)


# Per worker process, set by _init_worker
_WORKER_ENGINE: Optional[RuleEngine] = None
_WORKER_ERROR: Optional[str] = None


def _init_worker(settings: CheckerSettings) -> None:
    """
    Process pool initializer: builds the engine once per worker process.
    A failure is kept and reported for every document of that worker.
    """
    global _WORKER_ENGINE, _WORKER_ERROR
    try:
        _WORKER_ENGINE = _build_engine(settings)
        _WORKER_ERROR = None
    except Exception as e:
        logger.error(f"Worker could not build the rule engine: {e}")
        _WORKER_ENGINE = None
        _WORKER_ERROR = str(e)


def _worker_check_document(resource: DocumentResource) -> CheckReport:
    """
    Worker function checking a single document in a separate process,
    with the engine built by _init_worker. Nothing is shared between processes.
    """
    if _WORKER_ENGINE is None:
        return CheckReport(url=resource.url, error=_WORKER_ERROR or "Worker has no rule engine")
    try:
        facts = FactsBuilder().extract_resource(resource)
        return CheckReport(url=resource.url, assertions=_WORKER_ENGINE.evaluate(facts))
    except Exception as e:
        logger.error(f"Worker failed on {resource.url}: {e}")
        return CheckReport(url=resource.url, error=str(e))


class CheckController:
    """
    Orchestrates one or many checks: signal extraction, rule evaluation and,
    for batches, parallel execution over a process pool.
    """

    def __init__(self, settings: Optional[CheckerSettings] = None, engine: Optional[RuleEngine] = None):
        self.settings = settings or CheckerSettings()
        self.builder = FactsBuilder()
        self.engine = engine or _build_engine(self.settings)

    def analyze(self, body: bytes, headers: Mapping[str, Sequence[str]]) -> List[Assertion]:
        """Checks raw body bytes and HTTP response headers; returns the ordered assertions."""
        return self.engine.evaluate(self.builder.extract(body, headers))

    def check(self, resource: DocumentResource) -> List[Assertion]:
        return self.engine.evaluate(self.builder.extract_resource(resource))

    def check_many(
            self,
            resources: Sequence[DocumentResource],
            workers: Optional[int] = None,
            progress_callback: Optional[Callable[[int, int], None]] = None
    ) -> List[CheckReport]:
        """
        Checks a batch of documents, in input order. A document that fails is
        reported with its error; the rest of the batch continues.
        """
        workers = workers or self.settings.workers
        total = len(resources)
        reports: List[CheckReport] = []

        if workers <= 1:
            for i, resource in enumerate(resources):
                try:
                    reports.append(CheckReport(url=resource.url, assertions=self.check(resource)))
                except Exception as e:
                    logger.error(f"Check failed on {resource.url}: {e}")
                    reports.append(CheckReport(url=resource.url, error=str(e)))
                if progress_callback:
                    progress_callback(i + 1, total)
            return reports

        with ProcessPoolExecutor(max_workers=workers, initializer=_init_worker,
                                 initargs=(self.settings,)) as executor:
            for i, report in enumerate(executor.map(_worker_check_document, resources)):
                if progress_callback:
                    progress_callback(i + 1, total)
                reports.append(report)

        failed = sum(1 for report in reports if not report.ok)
        logger.info(f"Checked {total} documents ({failed} failed).")
        return reports


def analyze(
        body: bytes,
        headers: Mapping[str, Sequence[str]],
        settings: Optional[CheckerSettings] = None
) -> List[Assertion]:
    """Convenience entry point: builds a controller and checks one document."""
    return CheckController(settings).analyze(body, headers)
