import logging

import pytest

from fieldkeeper.dom.html_tree import HtmlTree
from fieldkeeper.matching.hashing import descriptor_hash
from fieldkeeper.matching.models import FallbackAttributes, FieldDescriptor, SelectorSet
from fieldkeeper.matching.resolver import FieldResolver
from fieldkeeper.matching.synthesizer import SelectorSynthesizer


def _descriptor(primary, *, structural="", contextual=(), fuzzy_patterns=(), **attributes):
    selectors = SelectorSet(
        primary=primary,
        structural=structural,
        contextual=list(contextual),
        fuzzy_patterns=list(fuzzy_patterns),
        fallback_attributes=FallbackAttributes(tag="input", **attributes),
    )
    return FieldDescriptor(hash=descriptor_hash(selectors), selectors=selectors, confidence=0.5)


def _learn(tree, selector="input"):
    return SelectorSynthesizer(tree).synthesize(tree.select(selector, tree.root)[0])


def test_descriptor_resolves_its_own_field_via_primary(make_tree):
    tree = make_tree(
        '<div class="page"><input type="email" name="user_email" placeholder="Enter your email address"></div>'
    )
    field = tree.select("input", tree.root)[0]
    descriptor = SelectorSynthesizer(tree).synthesize(field)

    result = FieldResolver(tree).resolve(descriptor, tree.root)

    assert result is not None
    assert result.element is field
    assert result.method == "primary"
    assert result.confidence == pytest.approx(0.95)
    assert result.hash == descriptor.hash


def test_renamed_field_falls_back_to_structural(make_tree):
    descriptor = _learn(make_tree('<div class="page"><input type="email" name="user_email"></div>'))
    tree = make_tree('<div class="page"><input type="email" name="email_address"></div>')

    result = FieldResolver(tree).resolve(descriptor, tree.root)

    assert result.method == "structural"
    assert result.confidence == pytest.approx(0.80)
    assert tree.attribute(result.element, "name") == "email_address"


def test_structural_match_must_be_a_field(make_tree):
    tree = make_tree('<div class="page"><span>nothing here</span></div>')
    descriptor = _descriptor('input[name="gone"]', structural="div.page > span")

    assert FieldResolver(tree).resolve(descriptor, tree.root) is None


def test_contextual_label_match(make_tree):
    tree = make_tree('<label>Work email <input name="w"></label><label>Home email <input name="h"></label>')
    descriptor = _descriptor(
        'input[name="missing"]',
        contextual=['label:has-text("work email") + input, label:has-text("work email") input'],
        label_text="work email",
    )

    result = FieldResolver(tree).resolve(descriptor, tree.root)

    assert result.method == "contextual"
    assert result.confidence == pytest.approx(0.75)
    assert tree.attribute(result.element, "name") == "w"


def test_contextual_candidate_matching_several_fields_is_skipped(make_tree):
    tree = make_tree('<form id="f"><input name="a"><input name="b"></form>')
    descriptor = _descriptor('input[name="missing"]', contextual=["form#f input"])

    assert FieldResolver(tree).resolve(descriptor, tree.root) is None


def test_fuzzy_match_after_generated_id_changes(make_tree):
    descriptor = _learn(make_tree('<div class="profile"><input class="nickname-input" id="field-123456"></div>'))
    tree = make_tree('<div class="profile"><input class="nick" id="field-987654"></div>')

    result = FieldResolver(tree).resolve(descriptor, tree.root)

    assert result.method == "fuzzy"
    assert result.confidence == pytest.approx(0.70)
    assert tree.attribute(result.element, "id") == "field-987654"


def test_fuzzy_candidate_with_dissimilar_snapshot_is_rejected(make_tree):
    descriptor = _learn(make_tree('<div class="profile"><input class="nickname-input" id="field-123456"></div>'))
    tree = make_tree('<div class="other"><input class="nick" id="field-987654" type="email" required></div>')

    assert FieldResolver(tree).resolve(descriptor, tree.root) is None


def test_primary_disambiguation_picks_most_similar(make_tree):
    tree = make_tree(
        '<input class="field" type="text">'
        '<input class="field" type="email" aria-label="Work email">'
        '<input class="field" type="email" aria-label="Home email">'
    )
    descriptor = _descriptor("input.field", type="email", aria_label="Work email")

    result = FieldResolver(tree).resolve(descriptor, tree.root)

    assert result.method == "primary_disambiguated"
    assert result.confidence == pytest.approx(0.85)
    assert tree.attribute(result.element, "aria-label") == "Work email"


def test_ambiguous_primary_without_a_clear_winner_resolves_nothing(make_tree):
    tree = make_tree('<input class="field"><input class="field"><input class="field">')
    descriptor = _descriptor("input.field", type="email", aria_label="Work email")

    assert FieldResolver(tree).resolve(descriptor, tree.root) is None


def test_invalid_primary_selector_only_disqualifies_its_tier(make_tree, caplog):
    tree = make_tree('<div class="page"><input name="q"></div>')
    descriptor = _descriptor('input[name="x"', structural="div.page > input")

    with caplog.at_level(logging.WARNING, logger="fieldkeeper.matching.resolver"):
        result = FieldResolver(tree).resolve(descriptor, tree.root)

    assert result.method == "structural"
    assert "Primary selector failed" in caplog.text


def test_resolve_all_isolates_broken_descriptors(make_tree, caplog):
    tree = make_tree('<input name="a"><input name="b"><input name="c"><input name="d">')
    descriptors = [_descriptor(f'input[name="{name}"]') for name in "abcd"]
    broken = _descriptor(
        'input[name="x"',
        structural="!!!",
        contextual=["label:has-text("],
        fuzzy_patterns=["[["],
    )

    with caplog.at_level(logging.WARNING):
        results = FieldResolver(tree).resolve_all(descriptors[:2] + [broken] + descriptors[2:], tree.root)

    assert [result.method for result in results] == ["primary"] * 4
    assert {tree.attribute(result.element, "name") for result in results} == set("abcd")
    assert caplog.text.count("selector failed") == 4


class _ExplodingTree(HtmlTree):
    def select(self, selector, scope=None):
        if "boom" in selector:
            raise RuntimeError("backend crashed")
        return super().select(selector, scope)


def test_resolve_all_survives_unexpected_backend_errors(caplog):
    tree = _ExplodingTree.from_string('<html><body><input name="a"><input name="boom"></body></html>')
    descriptors = [_descriptor('input[name="boom"]'), _descriptor('input[name="a"]')]

    with caplog.at_level(logging.ERROR, logger="fieldkeeper.matching.resolver"):
        results = FieldResolver(tree).resolve_all(descriptors, tree.root)

    assert [tree.attribute(result.element, "name") for result in results] == ["a"]
    assert "Failed to resolve descriptor" in caplog.text


def test_resolve_all_orders_by_confidence(make_tree):
    tree = make_tree('<div class="page"><input name="renamed"></div><input name="kept">')
    structural_only = _descriptor('input[name="old"]', structural="div.page > input")
    exact = _descriptor('input[name="kept"]')

    results = FieldResolver(tree).resolve_all([structural_only, exact], tree.root)

    assert [result.method for result in results] == ["primary", "structural"]
    assert results[0].hash == exact.hash


def test_unresolvable_descriptor_returns_none(make_tree):
    tree = make_tree("<p>No fields at all</p>")

    assert FieldResolver(tree).resolve(_learn(make_tree('<input name="q">')), tree.root) is None


def test_descriptor_with_utility_classes_resolves_via_primary(make_tree):
    tree = make_tree('<input type="email" name="user_email" class="w-full md:w-1/2"><input name="other">')
    descriptor = _learn(tree)

    result = FieldResolver(tree).resolve(descriptor, tree.root)

    assert descriptor.selectors.primary.endswith(".w-full.md\\:w-1\\/2")
    assert result.method == "primary"
    assert result.confidence == pytest.approx(0.95)
    assert tree.attribute(result.element, "name") == "user_email"


def test_structural_path_resolves_inside_an_element_scope(make_tree):
    tree = make_tree(
        '<div class="page"><section class="card"><input name="renamed"></section></div>'
        '<section class="card"><input name="outside"></section>'
    )
    section = tree.select("div.page > section.card", tree.root)[0]
    descriptor = _descriptor('input[name="old"]', structural="div.page > section.card > input")

    result = FieldResolver(tree).resolve(descriptor, section)

    assert result.method == "structural"
    assert result.confidence == pytest.approx(0.80)
    assert tree.attribute(result.element, "name") == "renamed"
