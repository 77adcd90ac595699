# src/i18n_checker/dom/registry.py
import importlib
import pkgutil
import logging
from typing import List, Optional, Set

from .core import Rule, RuleSet
from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

RULES_PACKAGE = "i18n_checker.dom.rules"


class RuleRegistry:
    """
    Registry of the rule catalog.

    Dynamically discovers the modules of the 'i18n_checker.dom.rules' package and
    collects the RuleSet each one exposes as `DEFINITION`. Modules are loaded in
    name order, so the catalog order is stable between runs.
    """

    def __init__(self, package: str = RULES_PACKAGE, rule_sets: Optional[List[RuleSet]] = None):
        self.package = package
        self._rule_sets: List[RuleSet] = list(rule_sets) if rule_sets is not None else []
        self._loaded = rule_sets is not None

    def discover(self) -> None:
        """
        Imports every module of the rules package and registers its DEFINITION.

        Raises:
            ConfigurationError: if the package or one of its modules cannot be imported.
        """
        if self._loaded:
            return

        try:
            rules_pkg = importlib.import_module(self.package)
        except ImportError as e:
            logger.error(f"Could not find rules package {self.package}: {e}")
            raise ConfigurationError(f"Rules package {self.package} not found") from e

        for _, name, _ in sorted(pkgutil.iter_modules(rules_pkg.__path__), key=lambda info: info.name):
            full_name = f"{self.package}.{name}"
            try:
                module = importlib.import_module(full_name)
            except Exception as e:
                logger.error(f"Error loading rule module {name}: {e}")
                raise ConfigurationError(f"Rule module {full_name} failed to load: {e}") from e

            definition = getattr(module, "DEFINITION", None)
            if isinstance(definition, RuleSet):
                self._rule_sets.append(definition)
                logger.debug(f"Rule set loaded: {definition.name} ({len(definition.rules)} rules)")

        self._loaded = True

    @property
    def rule_sets(self) -> List[RuleSet]:
        self.discover()
        return list(self._rule_sets)

    def get_all_rules(self) -> List[Rule]:
        """Returns every registered rule in catalog order."""
        return [rule for rule_set in self.rule_sets for rule in rule_set.rules]

    def get_all_possible_codes(self) -> List[str]:
        """Returns every "<id>.<SEVERITY>" code the registered rules may emit."""
        codes: Set[str] = set()
        for rule_set in self.rule_sets:
            codes.update(rule_set.codes)
        return sorted(codes)
