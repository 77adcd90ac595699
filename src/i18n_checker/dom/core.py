from typing import Callable, Iterable, List, Optional, Sequence, Set, Tuple

from .models import ParsedDocumentFacts
from ..model import Severity


def audit_spec(codes: List[str]):
    """
    Decorator to declare which assertion codes ("<id>.<SEVERITY>") a rule function can emit.
    The engine checks every declared code against the template catalog at start-up.
    """
    def decorator(func):
        func.defined_codes = codes
        return func
    return decorator


# A single finding of a rule: (Id, Severity, Contexts)
Finding = Tuple[str, Severity, List[str]]
Rule = Callable[[ParsedDocumentFacts], List[Finding]]


def unique(contexts: Iterable[str]) -> List[str]:
    """Drops repeated contexts, keeping the first occurrence."""
    return list(dict.fromkeys(contexts))


def code_of(assertion_id: str, severity: Severity) -> str:
    return f"{assertion_id}.{severity.value}"


class RuleSet:
    """
    Configuration object grouping an ordered list of rules under a name.
    Each rule module exposes one as DEFINITION.
    """

    def __init__(
            self,
            name: str,
            rules: Sequence[Rule],
            possible_codes: Optional[List[str]] = None
    ):
        self.name = name
        self.rules = list(rules)

        # --- Auto-Discovery of Assertion Codes ---
        final_codes: Set[str] = set(possible_codes or [])

        for rule in self.rules:
            if hasattr(rule, 'defined_codes'):
                final_codes.update(rule.defined_codes)

        self.codes = sorted(list(final_codes))
