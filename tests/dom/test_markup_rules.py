# tests/dom/test_markup_rules.py
from i18n_checker.dom.models import ParsedDocumentFacts
from i18n_checker.dom.rules import document, markup
from i18n_checker.model import Severity

HTML401 = '<!DOCTYPE HTML PUBLIC "-//W3C//DTD HTML 4.01//EN" "http://www.w3.org/TR/html4/strict.dtd">'
DECOMPOSED = "cafe\u0301"
COMPOSED = "caf\u00e9"


def find(assertions, assertion_id):
    matches = [a for a in assertions if a.id == assertion_id]
    assert len(matches) == 1, f"expected one {assertion_id}, got {matches}"
    return matches[0]


def ids(assertions):
    return {a.id for a in assertions}


def html5(body="", html_tag='<html lang="en">'):
    return f'<!DOCTYPE html>\n{html_tag}<head><meta charset="utf-8"></head><body>{body}</body></html>'


# --- Direction ---

def test_dir_default(check):
    result = check(html5(html_tag='<html lang="ar" dir="rtl">'))
    assert find(result, "dir_default").contexts == ("rtl", '<html lang="ar" dir="rtl">')


def test_bdo_without_dir(check):
    result = check(html5('<bdo>abc</bdo><bdo dir="rtl">def</bdo><bdo>ghi</bdo>'))
    assertion = find(result, "rep_markup_bdo_no_dir")
    assert assertion.severity == Severity.WARNING
    assert assertion.contexts == ("<bdo>",)


def test_incorrect_dir_values(check):
    result = check(html5('<p dir="up">a</p><p dir="RTL">b</p><p dir="auto">c</p><p dir="down">d</p>'))
    assert find(result, "rep_markup_dir_incorrect").contexts == ("down", "up")


def test_auto_dir_is_incorrect_before_html5(check):
    body = HTML401 + '<html lang="en"><head><meta http-equiv="Content-Type" content="text/html; charset=utf-8">' \
                     '</head><body><p dir="auto">x</p></body></html>'
    assert find(check(body), "rep_markup_dir_incorrect").contexts == ("auto",)


# --- Presentational tags ---

def test_b_and_i_without_class(check):
    result = check(html5('<b>bold</b><b class="term">term</b><i>it</i><i title="x">it</i>'))
    assertion = find(result, "rep_markup_tags_no_class")
    assert assertion.severity == Severity.INFO
    assert assertion.contexts == ("<b>", "<i>", '<i title="x">')


def test_b_and_i_with_class_are_fine(check):
    result = check(html5('<b class="a">x</b><i class="b">y</i>'))
    assert "rep_markup_tags_no_class" not in ids(result)


# --- Class and id names ---

def test_non_ascii_but_normalized_name(check):
    result = check(html5(f'<p class="{COMPOSED}">x</p>'))
    assert find(result, "class_id").contexts == (COMPOSED,)
    assert "rep_latin_non_nfc" not in ids(result)


def test_non_nfc_names_and_their_tags(check):
    result = check(html5(f'<p class="{DECOMPOSED}">x</p><div id="{DECOMPOSED}">y</div><span id="ok">z</span>'))
    assert find(result, "class_id").contexts == (DECOMPOSED,)
    assertion = find(result, "rep_latin_non_nfc")
    assert assertion.severity == Severity.WARNING
    assert assertion.contexts == (DECOMPOSED, f'<p class="{DECOMPOSED}">', f'<div id="{DECOMPOSED}">')


def test_ascii_names_are_not_reported(check):
    result = check(html5('<p class="intro lead" id="top">x</p>'))
    assert "class_id" not in ids(result)


def test_markup_rules_need_a_parsed_tree():
    facts = ParsedDocumentFacts(document_body="<bdo>x</bdo>")
    assert markup.check_bdo_no_dir(facts) == []
    assert markup.check_tags_no_class(facts) == []


# --- Document ---

def test_doctype_and_mimetype(check):
    result = check(html5(), {"Content-Type": ["text/html; charset=utf-8"]})
    assert find(result, "dtd").contexts == ("<!DOCTYPE html>",)
    assert find(result, "mimetype").contexts == ("text/html; charset=utf-8",)


def test_request_headers(check):
    result = check(html5(), {"Accept-Language": ["fr"], "Accept-Charset": ["utf-8"]})
    assert find(result, "request_headers").contexts == ("Accept-Language: fr", "Accept-Charset: utf-8")


def test_html5_served_as_xml_message(check):
    result = check(html5(), {"Content-Type": ["application/xhtml+xml; charset=utf-8"]})
    assertion = find(result, "message_xhtml5_partial_support")
    assert assertion.severity == Severity.MESSAGE
    assert assertion.contexts == ()


def test_document_rules_on_hand_built_facts():
    facts = ParsedDocumentFacts(document_body="x", doctype_declaration="<!DOCTYPE html>")
    assert document.check_doctype(facts) == [("dtd", Severity.INFO, ["<!DOCTYPE html>"])]
    assert document.check_mimetype(facts) == []
    assert document.check_xhtml5(facts) == []
