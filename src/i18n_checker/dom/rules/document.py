from typing import List

from ..core import Finding, RuleSet, audit_spec
from ..models import ParsedDocumentFacts
from ...model import Severity


@audit_spec(codes=["dtd.INFO"])
def check_doctype(facts: ParsedDocumentFacts) -> List[Finding]:
    """Reports the doctype declaration found in the first 512 bytes."""
    if facts.doctype_declaration is None:
        return []
    return [("dtd", Severity.INFO, [facts.doctype_declaration])]


@audit_spec(codes=["mimetype.INFO"])
def check_mimetype(facts: ParsedDocumentFacts) -> List[Finding]:
    if facts.content_type is None:
        return []
    return [("mimetype", Severity.INFO, [facts.content_type])]


@audit_spec(codes=["message_xhtml5_partial_support.MESSAGE"])
def check_xhtml5(facts: ParsedDocumentFacts) -> List[Finding]:
    """HTML5 served as application/xhtml+xml is only partially covered by the checks."""
    if facts.served_as_xml and facts.is_html5():
        return [("message_xhtml5_partial_support", Severity.MESSAGE, [])]
    return []


@audit_spec(codes=["request_headers.INFO"])
def check_request_headers(facts: ParsedDocumentFacts) -> List[Finding]:
    if not facts.request_headers:
        return []
    return [("request_headers", Severity.INFO, list(facts.request_headers))]


# --- DEFINITION ---
DEFINITION = RuleSet(
    name="document",
    rules=[check_doctype, check_mimetype, check_xhtml5, check_request_headers]
)
