# tests/conftest.py
import pytest

from i18n_checker.dom.builder import FactsBuilder
from i18n_checker.dom.qngine import RuleEngine
from i18n_checker.services.template_service import TemplateResolver
from i18n_checker.utils.path_utils import PathUtils


@pytest.fixture(scope="session")
def resolver():
    """The template catalog shipped with the package."""
    return TemplateResolver.load(PathUtils.get_templates_file())


@pytest.fixture(scope="session")
def engine(resolver):
    return RuleEngine(resolver)


@pytest.fixture
def extract():
    """Builds facts from an HTML string (UTF-8 encoded) or raw bytes and optional headers."""
    builder = FactsBuilder()

    def _extract(body, headers=None):
        if isinstance(body, str):
            body = body.encode("utf-8")
        return builder.extract(body, headers or {})

    return _extract


@pytest.fixture
def check(engine, extract):
    """Runs the full pipeline and returns the ordered assertions."""
    def _check(body, headers=None):
        return engine.evaluate(extract(body, headers))

    return _check


@pytest.fixture
def codes():
    """The "<id>.<SEVERITY>" code of every assertion, in order."""
    def _codes(assertions):
        return [f"{a.id}.{a.severity.value}" for a in assertions]

    return _codes
