import unicodedata
from typing import List

from ..core import Finding, RuleSet, audit_spec, unique
from ..models import ParsedDocumentFacts
from ...model import Severity
from ...utils.source_utils import SourceText

DIR_VALUES = ("ltr", "rtl")
HTML5_DIR_VALUES = DIR_VALUES + ("auto",)


def _literal_tags(facts: ParsedDocumentFacts, name: str, missing_attr: str) -> List[str]:
    """Verbatim opening tags of every <name> element lacking `missing_attr`."""
    if facts.document is None:
        return []
    source = SourceText(facts.document_body)
    return unique(
        source.opening_tag(tag)[0]
        for tag in facts.document.find_all(name)
        if not tag.has_attr(missing_attr)
    )


# --- INFORMATION ---

@audit_spec(codes=["dir_default.INFO"])
def check_dir_default(facts: ParsedDocumentFacts) -> List[Finding]:
    if facts.dir_attr is None:
        return []
    contexts = [facts.dir_attr]
    if facts.opening_html_tag:
        contexts.append(facts.opening_html_tag)
    return [("dir_default", Severity.INFO, contexts)]


@audit_spec(codes=["class_id.INFO"])
def check_class_id(facts: ParsedDocumentFacts) -> List[Finding]:
    if not facts.non_nfc_class_or_id_names:
        return []
    return [("class_id", Severity.INFO, sorted(facts.non_nfc_class_or_id_names))]


# --- REPORTS ---

@audit_spec(codes=["rep_markup_bdo_no_dir.WARNING"])
def check_bdo_no_dir(facts: ParsedDocumentFacts) -> List[Finding]:
    literals = _literal_tags(facts, "bdo", "dir")
    if not literals:
        return []
    return [("rep_markup_bdo_no_dir", Severity.WARNING, literals)]


@audit_spec(codes=["rep_markup_dir_incorrect.ERROR"])
def check_dir_incorrect(facts: ParsedDocumentFacts) -> List[Finding]:
    allowed = HTML5_DIR_VALUES if facts.is_html5() else DIR_VALUES
    incorrect = sorted(value for value in facts.all_dir_attribute_values if value.strip().lower() not in allowed)
    if not incorrect:
        return []
    return [("rep_markup_dir_incorrect", Severity.ERROR, incorrect)]


@audit_spec(codes=["rep_markup_tags_no_class.INFO"])
def check_tags_no_class(facts: ParsedDocumentFacts) -> List[Finding]:
    """<b> and <i> without a class give translators no hint of why the text is styled."""
    literals = unique(_literal_tags(facts, "b", "class") + _literal_tags(facts, "i", "class"))
    if not literals:
        return []
    return [("rep_markup_tags_no_class", Severity.INFO, literals)]


@audit_spec(codes=["rep_latin_non_nfc.WARNING"])
def check_non_nfc(facts: ParsedDocumentFacts) -> List[Finding]:
    names = sorted(
        name for name in facts.non_nfc_class_or_id_names
        if not unicodedata.is_normalized("NFC", name)
    )
    if not names:
        return []
    tags = [literal for name in names for literal in facts.class_id_tags.get(name, ())]
    return [("rep_latin_non_nfc", Severity.WARNING, unique(names + tags))]


# --- DEFINITION ---
DEFINITION = RuleSet(
    name="markup",
    rules=[
        check_dir_default, check_class_id, check_bdo_no_dir,
        check_dir_incorrect, check_tags_no_class, check_non_nfc,
    ]
)
