# src/i18n_checker/services/template_service.py
import json
import logging
import re
from pathlib import Path
from typing import Dict, Iterable, Mapping, Tuple, Union

from ..errors import ConfigurationError
from ..model import Severity

logger = logging.getLogger(__name__)

# "<id>.<SEVERITY>.<field>", e.g. "rep_charset_none.ERROR.title"
_KEY_RE = re.compile(r"^(?P<id>[^.]+)\.(?P<severity>[A-Z]+)\.(?P<field>title|description)$")


def _reject_duplicates(pairs):
    result = {}
    for key, value in pairs:
        if key in result:
            raise ConfigurationError(f"Duplicate template key: '{key}'")
        result[key] = value
    return result


class TemplateResolver:
    """
    Resolves the display title and description of an assertion from a flat
    template catalog keyed by "<id>.<SEVERITY>.title" and "<id>.<SEVERITY>.description".

    The catalog is validated on load: every key must follow that shape, name a known
    severity and come in title/description pairs.
    """

    def __init__(self, templates: Mapping[str, str]):
        self._templates: Dict[Tuple[str, Severity], Dict[str, str]] = self._validate(templates)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "TemplateResolver":
        """Reads a JSON template catalog from disk."""
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                templates = json.load(f, object_pairs_hook=_reject_duplicates)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to load assertion templates from %s: %s", path, e)
            raise ConfigurationError(f"Cannot read assertion templates from {path}: {e}") from e

        if not isinstance(templates, dict):
            raise ConfigurationError(f"Assertion templates in {path} must be a JSON object")
        resolver = cls(templates)
        logger.debug("Loaded %d assertion templates from %s", len(resolver.codes), path)
        return resolver

    @staticmethod
    def _validate(templates: Mapping[str, str]) -> Dict[Tuple[str, Severity], Dict[str, str]]:
        parsed: Dict[Tuple[str, Severity], Dict[str, str]] = {}
        for key, text in templates.items():
            match = _KEY_RE.match(key)
            if not match:
                raise ConfigurationError(f"Malformed template key: '{key}'")
            try:
                severity = Severity(match.group("severity"))
            except ValueError as e:
                raise ConfigurationError(f"Unknown severity in template key: '{key}'") from e
            if not isinstance(text, str):
                raise ConfigurationError(f"Template '{key}' must be a string")
            parsed.setdefault((match.group("id"), severity), {})[match.group("field")] = text

        for (assertion_id, severity), fields in parsed.items():
            if set(fields) != {"title", "description"}:
                raise ConfigurationError(
                    f"Template '{assertion_id}.{severity.value}' needs both a title and a description"
                )
        return parsed

    @property
    def codes(self) -> Tuple[str, ...]:
        return tuple(sorted(f"{assertion_id}.{severity.value}" for assertion_id, severity in self._templates))

    def has(self, assertion_id: str, severity: Severity) -> bool:
        return (assertion_id, severity) in self._templates

    def require(self, codes: Iterable[str]) -> None:
        """
        Verifies that every "<id>.<SEVERITY>" code has a template.

        Raises:
            ConfigurationError: listing every code without a template.
        """
        known = set(self.codes)
        missing = sorted(set(codes) - known)
        if missing:
            raise ConfigurationError(f"No assertion template for: {', '.join(missing)}")

    def resolve(self, assertion_id: str, severity: Severity) -> Tuple[str, str]:
        """Returns (title, description); empty strings if the catalog has no entry."""
        fields = self._templates.get((assertion_id, severity))
        if fields is None:
            logger.warning("No template for assertion %s.%s", assertion_id, severity.value)
            return "", ""
        return fields["title"], fields["description"]
