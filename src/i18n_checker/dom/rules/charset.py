import re
from typing import List

from ..core import Finding, RuleSet, audit_spec, unique
from ..models import ParsedDocumentFacts
from ...model import Severity
from ...utils.source_utils import SourceText

# HTML5 requires the encoding declaration within the first 1024 bytes
META_CHARSET_BYTE_LIMIT = 1024

_UTF16_RE = re.compile(r".*UTF-16.*", re.IGNORECASE)
_UTF16_LEBE_RE = re.compile(r".*UTF-16[\s]*-?[\s]*\(?[BL]E\)?.*", re.IGNORECASE)


def _declared_outside_bom(facts: ParsedDocumentFacts) -> List[str]:
    """Charset values declared by the HTTP header, the XML declaration and meta tags."""
    declarations = []
    if facts.charset_from_http:
        declarations.append(facts.charset_from_http.strip().lower())
    if facts.charset_from_xml_declaration:
        declarations.append(facts.charset_from_xml_declaration.strip().lower())
    declarations.extend(facts.charset_meta_declarations)
    return declarations


# --- INFORMATION ---

@audit_spec(codes=["charset_bom.INFO"])
def check_bom(facts: ParsedDocumentFacts) -> List[Finding]:
    if facts.byte_order_mark is None:
        return []
    return [("charset_bom", Severity.INFO, [facts.byte_order_mark.mark_name])]


@audit_spec(codes=["charset_xml.INFO"])
def check_xml_declaration(facts: ParsedDocumentFacts) -> List[Finding]:
    if facts.charset_from_xml_declaration is None:
        return []
    return [("charset_xml", Severity.INFO, [facts.charset_from_xml_declaration, facts.xml_declaration])]


@audit_spec(codes=["charset_meta.INFO"])
def check_meta(facts: ParsedDocumentFacts) -> List[Finding]:
    """Lists the declared charsets first, then every meta tag that declared one."""
    if not facts.charset_meta_declarations:
        return []
    contexts = list(facts.charset_meta_declarations) + list(facts.charset_meta_literals)
    return [("charset_meta", Severity.INFO, unique(contexts))]


@audit_spec(codes=["charset_http.INFO"])
def check_http(facts: ParsedDocumentFacts) -> List[Finding]:
    if facts.charset_from_http is None:
        return []
    return [("charset_http", Severity.INFO,
             [facts.charset_from_http, f"Content-Type: {facts.content_type}"])]


# --- REPORTS ---

@audit_spec(codes=["rep_charset_1024_limit.ERROR"])
def check_1024_limit(facts: ParsedDocumentFacts) -> List[Finding]:
    """A meta charset tag that ends beyond byte 1024 of an HTML5 document. Tags without a known offset are skipped."""
    if not facts.is_html5():
        return []
    late = [
        tag.literal for tag in facts.meta_charset_tags
        if tag.byte_offset is not None and tag.byte_offset > META_CHARSET_BYTE_LIMIT
    ]
    if not late:
        return []
    return [("rep_charset_1024_limit", Severity.ERROR, unique(late))]


@audit_spec(codes=["rep_charset_bogus_utf16.ERROR"])
def check_bogus_utf16(facts: ParsedDocumentFacts) -> List[Finding]:
    """UTF-16 declared although the document carries no UTF-16 byte order mark."""
    if facts.is_utf16():
        return []
    bogus = sorted({declaration for declaration in _declared_outside_bom(facts) if _UTF16_RE.match(declaration)})
    if not bogus:
        return []
    return [("rep_charset_bogus_utf16", Severity.ERROR, bogus)]


@audit_spec(codes=["rep_charset_utf16lebe.ERROR"])
def check_utf16lebe(facts: ParsedDocumentFacts) -> List[Finding]:
    """With a UTF-16 BOM the encoding must be declared as plain UTF-16, not UTF-16LE/BE."""
    if not facts.is_utf16():
        return []
    specific = sorted({
        declaration for declaration in _declared_outside_bom(facts) if _UTF16_LEBE_RE.match(declaration)
    })
    if not specific:
        return []
    return [("rep_charset_utf16lebe", Severity.ERROR, specific)]


@audit_spec(codes=["rep_charset_utf16_meta.WARNING"])
def check_utf16_meta(facts: ParsedDocumentFacts) -> List[Finding]:
    if not facts.is_utf16() or not facts.meta_charset_tags:
        return []
    return [("rep_charset_utf16_meta", Severity.WARNING, list(facts.charset_meta_literals))]


@audit_spec(codes=["rep_charset_bom_found.WARNING"])
def check_bom_found(facts: ParsedDocumentFacts) -> List[Finding]:
    bom = facts.byte_order_mark
    if bom is None or bom.charset_name != "UTF-8":
        return []
    return [("rep_charset_bom_found", Severity.WARNING, [bom.mark_name])]


@audit_spec(codes=["rep_charset_bom_in_content.WARNING"])
def check_bom_in_content(facts: ParsedDocumentFacts) -> List[Finding]:
    if not facts.bom_found_in_content:
        return []
    return [("rep_charset_bom_in_content", Severity.WARNING, [])]


@audit_spec(codes=["rep_charset_charset_attr.ERROR", "rep_charset_charset_attr.WARNING"])
def check_charset_attr(facts: ParsedDocumentFacts) -> List[Finding]:
    """The charset attribute on <a> and <link> is obsolete in HTML5 and useless elsewhere."""
    if facts.document is None:
        return []
    source = SourceText(facts.document_body)
    literals = [
        source.opening_tag(tag)[0]
        for tag in facts.document.find_all(["a", "link"])
        if tag.has_attr("charset")
    ]
    if not literals:
        return []
    severity = Severity.ERROR if facts.is_html5() else Severity.WARNING
    return [("rep_charset_charset_attr", severity, unique(literals))]


@audit_spec(codes=["rep_charset_conflict.ERROR"])
def check_conflict(facts: ParsedDocumentFacts) -> List[Finding]:
    if len(facts.all_charset_declarations) <= 1:
        return []
    return [("rep_charset_conflict", Severity.ERROR, sorted(facts.all_charset_declarations))]


@audit_spec(codes=["rep_charset_incorrect_use_meta.ERROR", "rep_charset_incorrect_use_meta.WARNING"])
def check_incorrect_use_meta(facts: ParsedDocumentFacts) -> List[Finding]:
    """Meta encoding declarations are not used by XML parsers."""
    if not facts.served_as_xml or not facts.meta_charset_tags:
        return []
    severity = Severity.ERROR if facts.is_html5() else Severity.WARNING
    return [("rep_charset_incorrect_use_meta", severity, list(facts.charset_meta_literals))]


@audit_spec(codes=["rep_charset_meta_charset_invalid.WARNING"])
def check_meta_charset_invalid(facts: ParsedDocumentFacts) -> List[Finding]:
    """<meta charset> is only valid in HTML5; it fails validation for other doctypes."""
    if facts.is_html5():
        return []
    literals = unique(tag.literal for tag in facts.meta_charset_tags if tag.has_charset_attr)
    if not literals:
        return []
    return [("rep_charset_meta_charset_invalid", Severity.WARNING, literals)]


@audit_spec(codes=["rep_charset_meta_ineffective.INFO"])
def check_meta_ineffective(facts: ParsedDocumentFacts) -> List[Finding]:
    """Meta declarations are overridden by the HTTP header and by a BOM."""
    if facts.served_as_xml or not facts.meta_charset_tags:
        return []
    if facts.charset_from_http is None and facts.byte_order_mark is None:
        return []
    return [("rep_charset_meta_ineffective", Severity.INFO, list(facts.charset_meta_literals))]


@audit_spec(codes=["rep_charset_multiple_meta.ERROR"])
def check_multiple_meta(facts: ParsedDocumentFacts) -> List[Finding]:
    if len(facts.meta_charset_tags) <= 1:
        return []
    return [("rep_charset_multiple_meta", Severity.ERROR, list(facts.charset_meta_literals))]


@audit_spec(codes=["rep_charset_no_effective_charset.WARNING"])
def check_no_effective_charset(facts: ParsedDocumentFacts) -> List[Finding]:
    """Only the XML declaration declares the encoding, and text/html parsers ignore it."""
    if facts.charset_from_xml_declaration is None:
        return []
    if facts.charset_from_http or facts.byte_order_mark or facts.charset_meta_declarations:
        return []
    if facts.is_html() or facts.is_html5() or (facts.is_xhtml10() and not facts.served_as_xml):
        return [("rep_charset_no_effective_charset", Severity.WARNING, [facts.xml_declaration])]
    return []


@audit_spec(codes=["rep_charset_no_encoding_xml.WARNING"])
def check_no_encoding_xml(facts: ParsedDocumentFacts) -> List[Finding]:
    """XML defaults to UTF-8/UTF-16; any other encoding has to be named in the XML declaration."""
    if facts.xml_declaration is None or facts.charset_from_xml_declaration is not None:
        return []
    others = [charset for charset in facts.non_utf8_charset_declarations if not charset.startswith("utf-16")]
    if not others:
        return []
    return [("rep_charset_no_encoding_xml", Severity.WARNING, [facts.xml_declaration])]


@audit_spec(codes=["rep_charset_no_in_doc.WARNING"])
def check_no_in_doc(facts: ParsedDocumentFacts) -> List[Finding]:
    if facts.in_document_charset_declarations or not facts.charset_from_http:
        return []
    return [("rep_charset_no_in_doc", Severity.WARNING, [])]


@audit_spec(codes=["rep_charset_none.ERROR", "rep_charset_none.WARNING"])
def check_none(facts: ParsedDocumentFacts) -> List[Finding]:
    """No encoding declared anywhere. XML documents default to UTF-8 and are not reported."""
    if facts.all_charset_declarations or facts.served_as_xml:
        return []
    severity = Severity.ERROR if facts.is_html5() else Severity.WARNING
    return [("rep_charset_none", severity, [])]


@audit_spec(codes=["rep_charset_no_utf8.ERROR"])
def check_no_utf8(facts: ParsedDocumentFacts) -> List[Finding]:
    if not facts.non_utf8_charset_declarations:
        return []
    return [("rep_charset_no_utf8", Severity.ERROR, sorted(facts.non_utf8_charset_declarations))]


@audit_spec(codes=["rep_charset_no_visible_charset.WARNING"])
def check_no_visible_charset(facts: ParsedDocumentFacts) -> List[Finding]:
    """A BOM alone is invisible to anyone reading the source."""
    if facts.byte_order_mark is None or facts.served_as_xml:
        return []
    if facts.charset_meta_declarations or facts.charset_from_xml_declaration:
        return []
    return [("rep_charset_no_visible_charset", Severity.WARNING, [facts.byte_order_mark.mark_name])]


@audit_spec(codes=["rep_charset_pragma.INFO"])
def check_pragma(facts: ParsedDocumentFacts) -> List[Finding]:
    if not facts.is_html5():
        return []
    literals = unique(tag.literal for tag in facts.meta_charset_tags if tag.is_pragma)
    if not literals:
        return []
    return [("rep_charset_pragma", Severity.INFO, literals)]


@audit_spec(codes=["rep_charset_xml_decl.ERROR"])
def check_xml_decl(facts: ParsedDocumentFacts) -> List[Finding]:
    """HTML never honours the XML declaration; HTML5 and XHTML 1.0 only ignore it when served as text/html."""
    if facts.charset_from_xml_declaration is None:
        return []
    if facts.is_html() or (not facts.served_as_xml and (facts.is_html5() or facts.is_xhtml10())):
        return [("rep_charset_xml_decl", Severity.ERROR, [facts.charset_from_xml_declaration])]
    return []


# --- DEFINITION ---
DEFINITION = RuleSet(
    name="charset",
    rules=[
        check_bom, check_xml_declaration, check_meta, check_http,
        check_1024_limit, check_bogus_utf16, check_utf16lebe, check_utf16_meta,
        check_bom_found, check_bom_in_content, check_charset_attr, check_conflict,
        check_incorrect_use_meta, check_meta_charset_invalid, check_meta_ineffective,
        check_multiple_meta, check_no_effective_charset, check_no_encoding_xml,
        check_no_in_doc, check_none, check_no_utf8, check_no_visible_charset,
        check_pragma, check_xml_decl,
    ]
)
