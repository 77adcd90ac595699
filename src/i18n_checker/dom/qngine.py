# src/i18n_checker/dom/qngine.py
import logging
from typing import List, Optional

from .core import code_of
from .models import ParsedDocumentFacts
from .registry import RuleRegistry
from ..errors import InvalidArgumentError
from ..model import Assertion, Severity
from ..services.template_service import TemplateResolver

logger = logging.getLogger(__name__)

NO_CONTENT_ID = "no_content"


class RuleEngine:
    """
    Rule engine for the i18n checks.

    It applies every rule of the registry to one ParsedDocumentFacts snapshot,
    turns the findings into Assertions with their template text resolved and
    returns them in their total order.
    """

    def __init__(self, resolver: TemplateResolver, registry: Optional[RuleRegistry] = None):
        """
        Loads the rule catalog and checks that the template catalog covers every
        code a rule can emit.

        Raises:
            ConfigurationError: if a rule module fails to load or a code has no template.
        """
        self.resolver = resolver
        self.registry = registry or RuleRegistry()
        self.rules = self.registry.get_all_rules()
        self.resolver.require(self.registry.get_all_possible_codes() + [code_of(NO_CONTENT_ID, Severity.MESSAGE)])
        logger.debug("Rule engine ready with %d rules.", len(self.rules))

    def _make(self, assertion_id: str, severity: Severity, contexts) -> Assertion:
        title, description = self.resolver.resolve(assertion_id, severity)
        return Assertion(
            id=assertion_id,
            severity=severity,
            title=title,
            description=description,
            contexts=tuple(contexts),
        )

    def evaluate(self, facts: ParsedDocumentFacts) -> List[Assertion]:
        """
        Runs the full rule catalog against the facts.

        A document without content gets a single no_content MESSAGE instead of any
        other assertion.
        """
        if facts is None:
            raise InvalidArgumentError("facts are required")

        if not facts.document_body:
            return [self._make(NO_CONTENT_ID, Severity.MESSAGE, ())]

        assertions = []
        for rule in self.rules:
            # A rule returns a list of (Id, Severity, Contexts); an empty list when it does not apply
            for (assertion_id, severity, contexts) in rule(facts):
                assertions.append(self._make(assertion_id, severity, contexts))

        return sorted(assertions)
