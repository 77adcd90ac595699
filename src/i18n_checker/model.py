from enum import Enum
from typing import Dict, List, Optional, Tuple, Any

from pydantic import BaseModel, Field, field_validator


class Severity(str, Enum):
    """
    Importance of an Assertion. Declaration order is the rank used for sorting:
    INFO < WARNING < ERROR < MESSAGE.
    """
    INFO = "INFO"  # Observation relevant to i18n, nothing to act upon
    WARNING = "WARNING"  # Possible problem, not a violation of a standard
    ERROR = "ERROR"  # Serious problem, usually a violation of a standard
    MESSAGE = "MESSAGE"  # Meta-information about the checker itself

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {severity: index for index, severity in enumerate(Severity)}


class Assertion(BaseModel):
    """
    One finding of an i18n check: a stable id, a severity, the display text
    resolved from the template catalog and the evidence (contexts) taken from the document.

    Equality and hashing only consider (id, severity), so comparisons keep working
    when template text or evidence formatting changes.
    """
    id: str = Field(min_length=1)
    severity: Severity
    title: str = ""
    description: str = ""
    contexts: Tuple[str, ...]

    class Config:
        frozen = True

    @property
    def sort_key(self) -> Tuple[str, int, Tuple[str, ...]]:
        return self.id, self.severity.rank, self.contexts

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Assertion):
            return NotImplemented
        return self.id == other.id and self.severity == other.severity

    def __hash__(self) -> int:
        return hash((self.id, self.severity))

    def __lt__(self, other: "Assertion") -> bool:
        if not isinstance(other, Assertion):
            return NotImplemented
        return self.sort_key < other.sort_key

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "severity": self.severity.value,
            "title": self.title,
            "description": self.description,
            "contexts": list(self.contexts),
        }


class DocumentResource(BaseModel):
    """
    A retrieved document: origin URL, raw body bytes and the HTTP response headers.
    Header names are stored lower-cased, so lookups are case-insensitive.
    """
    url: Optional[str] = None
    body: bytes
    headers: Dict[str, List[str]] = Field(default_factory=dict)

    class Config:
        frozen = True

    @field_validator('headers', mode='before')
    @classmethod
    def normalize_headers(cls, v: Any) -> Dict[str, List[str]]:
        """Lower-cases header names and wraps single values in a list, keeping value order."""
        if v is None:
            raise ValueError("headers must not be None")
        normalized: Dict[str, List[str]] = {}
        for name, values in dict(v).items():
            if isinstance(values, (str, bytes)):
                values = [values]
            normalized.setdefault(str(name).lower(), []).extend(
                value.decode("latin-1") if isinstance(value, bytes) else str(value)
                for value in values
            )
        return normalized

    def get_header(self, name: str) -> Optional[str]:
        """
        Returns the value of a header, or None if it was not sent.
        Repeated values are concatenated in order without a separator.
        """
        values = self.headers.get(name.lower())
        if values is None:
            return None
        return "".join(values)

    def has_header(self, name: str) -> bool:
        return name.lower() in self.headers


class CheckReport(BaseModel):
    """Outcome of checking one document in a batch: its assertions, or the error that stopped it."""
    url: Optional[str] = None
    assertions: List[Assertion] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "assertions": [assertion.to_dict() for assertion in self.assertions],
            "error": self.error,
        }


class CheckerSettings(BaseModel):
    """Explicit, immutable runtime configuration handed to the controller and services."""
    templates_file: str = "assertions_en.json"
    log_level: str = "WARNING"
    request_timeout: float = 60.0
    user_agent: str = "i18n-checker/1.0 (+https://validator.w3.org/i18n-checker/)"
    workers: int = 1

    class Config:
        frozen = True
