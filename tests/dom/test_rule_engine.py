# tests/dom/test_rule_engine.py
import random

import pytest

from i18n_checker.dom.core import RuleSet, audit_spec
from i18n_checker.dom.models import ParsedDocumentFacts
from i18n_checker.dom.qngine import RuleEngine
from i18n_checker.dom.registry import RuleRegistry
from i18n_checker.errors import ConfigurationError, InvalidArgumentError
from i18n_checker.model import Severity
from i18n_checker.services.template_service import TemplateResolver

KITCHEN_SINK = (
    '<?xml version="1.0" encoding="iso-8859-1"?>\n'
    '<!DOCTYPE html>\n'
    '<html xml:lang="en" dir="sideways"><head>'
    '<meta charset="utf-8"><meta http-equiv="Content-Type" content="text/html; charset=windows-1252">'
    '<meta http-equiv="Content-Language" content="en">'
    '</head><body>'
    '<p lang="fr" xml:lang="de" class="café">x</p><b>y</b><bdo>z</bdo>'
    '<a href="x" charset="utf-8">link</a>'
    '</body></html>'
)
KITCHEN_SINK_HEADERS = {
    "Content-Type": ["text/html; charset=utf-8"],
    "Content-Language": ["en"],
    "Accept-Language": ["en"],
}


def test_registry_discovers_every_rule_module():
    registry = RuleRegistry()
    names = [rule_set.name for rule_set in registry.rule_sets]
    assert names == ["charset", "document", "language", "markup"]
    codes = registry.get_all_possible_codes()
    assert "rep_charset_1024_limit.ERROR" in codes
    assert "rep_lang_no_xml_lang_attr.WARNING" in codes
    assert codes == sorted(codes)


def test_registry_reports_missing_package():
    with pytest.raises(ConfigurationError):
        RuleRegistry(package="i18n_checker.dom.no_such_rules").discover()


def test_engine_requires_a_template_for_every_code(resolver):
    @audit_spec(codes=["undocumented.ERROR"])
    def rule(facts):
        return []

    registry = RuleRegistry(rule_sets=[RuleSet(name="extra", rules=[rule])])
    with pytest.raises(ConfigurationError, match="undocumented.ERROR"):
        RuleEngine(resolver, registry)


def test_every_shipped_code_has_a_template(resolver):
    resolver.require(RuleRegistry().get_all_possible_codes())


def test_evaluate_none_is_rejected(engine):
    with pytest.raises(InvalidArgumentError):
        engine.evaluate(None)


# --- No content ---

@pytest.mark.parametrize("body, headers", [
    (b"", {}),
    (b"", {"Content-Type": ["text/html; charset=iso-8859-1"], "Accept-Language": ["fr"]}),
    (b"\xef\xbb\xbf", {}),
])
def test_no_content_replaces_the_whole_catalog(check, codes, body, headers):
    result = check(body, headers)
    assert codes(result) == ["no_content.MESSAGE"]
    assert result[0].contexts == ()
    assert result[0].title


# --- End to end ---

def test_clean_html5_document(check, codes):
    body = '<!DOCTYPE html><html lang="en"><head><meta charset="utf-8"><title>t</title></head><body><p>Hi</p></body></html>'
    assert codes(check(body)) == ["charset_meta.INFO", "dtd.INFO", "lang_attr_lang.INFO"]


def test_utf8_declared_only_over_http(check, codes):
    body = '<!DOCTYPE html><html lang="en"><head><title>t</title></head><body></body></html>'
    result = check(body, {"Content-Type": ["text/html; charset=utf-8"]})
    assert codes(result) == [
        "charset_http.INFO",
        "dtd.INFO",
        "lang_attr_lang.INFO",
        "mimetype.INFO",
        "rep_charset_no_in_doc.WARNING",
    ]


def test_document_without_any_declaration(check, codes):
    result = check("<html><head><title>t</title></head><body></body></html>")
    assert codes(result) == ["rep_charset_none.ERROR", "rep_lang_no_lang_attr.WARNING"]


def test_lang_conflict_scenario(check):
    body = ('<!DOCTYPE html><html lang="en"><head><meta charset="utf-8"></head>'
            '<body><p lang="fr" xml:lang="de">x</p></body></html>')
    result = check(body)
    conflict = [a for a in result if a.id == "rep_lang_conflict"]
    assert len(conflict) == 1
    assert conflict[0].severity == Severity.ERROR
    assert conflict[0].contexts == ("fr", "de")


def test_output_is_totally_ordered(check):
    result = check(KITCHEN_SINK, KITCHEN_SINK_HEADERS)
    assert len(result) > 20
    assert [a.sort_key for a in result] == sorted(a.sort_key for a in result)


def test_titles_are_resolved(check):
    for assertion in check(KITCHEN_SINK, KITCHEN_SINK_HEADERS):
        assert assertion.title, assertion.id
        assert assertion.description, assertion.id


def test_evaluation_is_idempotent(check):
    first = [a.to_dict() for a in check(KITCHEN_SINK, KITCHEN_SINK_HEADERS)]
    second = [a.to_dict() for a in check(KITCHEN_SINK, KITCHEN_SINK_HEADERS)]
    assert first == second


@pytest.mark.parametrize("seed", [1, 7, 42])
def test_rule_order_does_not_change_the_result(resolver, engine, extract, seed):
    facts = extract(KITCHEN_SINK, KITCHEN_SINK_HEADERS)
    rules = RuleRegistry().get_all_rules()
    shuffled = random.Random(seed).sample(rules, len(rules))
    shuffled_engine = RuleEngine(resolver, RuleRegistry(rule_sets=[RuleSet(name="shuffled", rules=shuffled)]))

    expected = [a.to_dict() for a in engine.evaluate(facts)]
    assert [a.to_dict() for a in shuffled_engine.evaluate(facts)] == expected


def test_engine_runs_a_custom_rule_set():
    @audit_spec(codes=["custom.INFO"])
    def rule(facts):
        return [("custom", Severity.INFO, ["evidence"])]

    resolver = TemplateResolver({
        "custom.INFO.title": "Custom",
        "custom.INFO.description": "A custom check.",
        "no_content.MESSAGE.title": "No content",
        "no_content.MESSAGE.description": "Nothing to check.",
    })
    engine = RuleEngine(resolver, RuleRegistry(rule_sets=[RuleSet(name="custom", rules=[rule])]))
    result = engine.evaluate(ParsedDocumentFacts(document_body="x"))
    assert result[0].title == "Custom"
    assert result[0].contexts == ("evidence",)
