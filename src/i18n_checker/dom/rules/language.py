import re
from typing import List

from ..core import Finding, RuleSet, audit_spec
from ..models import ParsedDocumentFacts
from ...model import Severity

# Shape of a BCP 47 language tag: primary subtag, then alphanumeric subtags
_LANGUAGE_TAG_RE = re.compile(r"^[a-zA-Z]{1,8}(-[a-zA-Z0-9]{1,8})*$")


def _html_tag_context(facts: ParsedDocumentFacts) -> List[str]:
    return [facts.opening_html_tag] if facts.opening_html_tag else []


# --- INFORMATION ---

@audit_spec(codes=["lang_attr_lang.INFO"])
def check_lang_attr(facts: ParsedDocumentFacts) -> List[Finding]:
    if facts.lang_attr is None:
        return []
    return [("lang_attr_lang", Severity.INFO, [facts.lang_attr] + _html_tag_context(facts))]


@audit_spec(codes=["lang_attr_xmllang.INFO"])
def check_xml_lang_attr(facts: ParsedDocumentFacts) -> List[Finding]:
    if facts.xml_lang_attr is None:
        return []
    return [("lang_attr_xmllang", Severity.INFO, [facts.xml_lang_attr] + _html_tag_context(facts))]


@audit_spec(codes=["lang_meta.INFO"])
def check_lang_meta(facts: ParsedDocumentFacts) -> List[Finding]:
    if facts.content_language_meta_tag is None:
        return []
    return [("lang_meta", Severity.INFO, [facts.lang_from_meta_tag or "", facts.content_language_meta_tag])]


@audit_spec(codes=["lang_http.INFO"])
def check_lang_http(facts: ParsedDocumentFacts) -> List[Finding]:
    if facts.content_language is None:
        return []
    return [("lang_http", Severity.INFO,
             [facts.content_language, f"Content-Language: {facts.content_language}"])]


# --- REPORTS ---

@audit_spec(codes=["rep_lang_conflict.ERROR"])
def check_conflict(facts: ParsedDocumentFacts) -> List[Finding]:
    """Elements whose lang and xml:lang attributes name different languages."""
    if not facts.conflicting_lang_pairs:
        return []
    contexts = [value for pair in facts.conflicting_lang_pairs for value in pair]
    return [("rep_lang_conflict", Severity.ERROR, contexts)]


@audit_spec(codes=["rep_lang_content_lang_meta.ERROR", "rep_lang_content_lang_meta.WARNING"])
def check_content_lang_meta(facts: ParsedDocumentFacts) -> List[Finding]:
    if facts.content_language_meta_tag is None:
        return []
    severity = Severity.ERROR if facts.is_html5() else Severity.WARNING
    return [("rep_lang_content_lang_meta", severity,
             [facts.lang_from_meta_tag or "", facts.content_language_meta_tag])]


@audit_spec(codes=["rep_lang_html_no_effective_lang.WARNING"])
def check_html_no_effective_lang(facts: ParsedDocumentFacts) -> List[Finding]:
    """HTML parsers ignore xml:lang, so an <html> with only xml:lang has no language."""
    if facts.served_as_xml or not (facts.is_html() or facts.is_html5()):
        return []
    if facts.xml_lang_attr is None or facts.lang_attr is not None:
        return []
    return [("rep_lang_html_no_effective_lang", Severity.WARNING, _html_tag_context(facts))]


@audit_spec(codes=["rep_lang_malformed_attr.ERROR"])
def check_malformed_attr(facts: ParsedDocumentFacts) -> List[Finding]:
    values = facts.all_lang_attributes | facts.all_xml_lang_attributes
    malformed = sorted(value for value in values if value and not _LANGUAGE_TAG_RE.match(value))
    if not malformed:
        return []
    return [("rep_lang_malformed_attr", Severity.ERROR, malformed)]


@audit_spec(codes=["rep_lang_missing_html_attr.ERROR"])
def check_missing_html_attr(facts: ParsedDocumentFacts) -> List[Finding]:
    if not facts.is_xhtml10() or facts.served_as_xml:
        return []
    if facts.xml_lang_attr is None or facts.lang_attr is not None:
        return []
    return [("rep_lang_missing_html_attr", Severity.ERROR, _html_tag_context(facts))]


@audit_spec(codes=["rep_lang_missing_xml_attr.ERROR"])
def check_missing_xml_attr(facts: ParsedDocumentFacts) -> List[Finding]:
    if not facts.is_xhtml1x():
        return []
    if facts.lang_attr is None or facts.xml_lang_attr is not None:
        return []
    return [("rep_lang_missing_xml_attr", Severity.ERROR, _html_tag_context(facts))]


@audit_spec(codes=["rep_lang_no_lang_attr.WARNING", "rep_lang_no_xml_lang_attr.WARNING"])
def check_no_lang_attr(facts: ParsedDocumentFacts) -> List[Finding]:
    """The <html> element declares no language at all."""
    if facts.lang_attr is not None or facts.xml_lang_attr is not None:
        return []
    if facts.is_xhtml11() or facts.served_as_xml:
        return [("rep_lang_no_xml_lang_attr", Severity.WARNING, _html_tag_context(facts))]
    return [("rep_lang_no_lang_attr", Severity.WARNING, _html_tag_context(facts))]


@audit_spec(codes=["rep_lang_xml_attr_in_html.ERROR"])
def check_xml_attr_in_html(facts: ParsedDocumentFacts) -> List[Finding]:
    if not facts.is_html() or not facts.all_xml_lang_attributes:
        return []
    return [("rep_lang_xml_attr_in_html", Severity.ERROR, sorted(facts.all_xml_lang_attributes))]


# --- DEFINITION ---
DEFINITION = RuleSet(
    name="language",
    rules=[
        check_lang_attr, check_xml_lang_attr, check_lang_meta, check_lang_http,
        check_conflict, check_content_lang_meta, check_html_no_effective_lang,
        check_malformed_attr, check_missing_html_attr, check_missing_xml_attr,
        check_no_lang_attr, check_xml_attr_in_html,
    ]
)
