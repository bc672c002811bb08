import pytest

from fieldkeeper.autofill import FILLED_CLASS, Autofiller
from fieldkeeper.storage import FieldStore

URL_KEY = "https://example.com/signup"
SIGNUP_FORM = '<form id="signup"><input type="email" name="email"><input name="nick"></form>'


@pytest.fixture
def store(tmp_path):
    return FieldStore(tmp_path / "fields.json")


def _remember(make_tree, store, markup=SIGNUP_FORM, selector="input", value="ada@example.com"):
    tree = make_tree(markup)
    element = tree.select(selector, tree.root)[0]
    return Autofiller(tree, store).remember(URL_KEY, element, value)


def test_remembered_value_is_filled_on_reload(make_tree, store):
    saved_hash = _remember(make_tree, store)
    tree = make_tree(SIGNUP_FORM)

    report = Autofiller(tree, store).apply(URL_KEY, tree.root)

    email = tree.select('input[name="email"]', tree.root)[0]
    assert report.filled_count == 1
    assert tree.value(email) == "ada@example.com"
    assert tree.has_class(email, FILLED_CLASS)
    assert tree.attribute(email, "data-autofill-method") == "primary"
    assert tree.attribute(email, "data-autofill-hash") == saved_hash
    assert tree.attribute(email, "data-autofill-confidence") == "0.95"
    assert store.get(URL_KEY)[saved_hash]["use_count"] == 1


def test_fields_with_values_are_left_alone(make_tree, store):
    _remember(make_tree, store)
    tree = make_tree('<form id="signup"><input type="email" name="email" value="typed@example.com"></form>')

    report = Autofiller(tree, store).apply(URL_KEY, tree.root)

    assert report.filled_count == 0
    assert report.skipped_not_empty == 1
    assert tree.value(tree.select("input", tree.root)[0]) == "typed@example.com"


def test_second_pass_fills_nothing(make_tree, store):
    _remember(make_tree, store)
    tree = make_tree(SIGNUP_FORM)
    filler = Autofiller(tree, store)

    filler.apply(URL_KEY, tree.root)
    report = filler.apply(URL_KEY, tree.root)

    assert report.filled_count == 0


def test_low_confidence_matches_are_skipped(make_tree, store):
    _remember(make_tree, store)
    # Renamed field only resolves structurally (0.80)
    tree = make_tree('<form id="signup"><input type="email" name="mail"><input name="nick"></form>')

    report = Autofiller(tree, store, min_confidence=0.9).apply(URL_KEY, tree.root)

    assert report.filled_count == 0
    assert report.skipped_low_confidence == 1

    report = Autofiller(tree, store, min_confidence=0.5).apply(URL_KEY, tree.root)
    assert [action.method for action in report.filled] == ["structural"]


def test_legacy_entries_fill_remaining_fields(make_tree, store):
    store.set(URL_KEY, {"input_text_first_Firstname_pos0": "Ada"})
    tree = make_tree('<input type="text" id="first" placeholder="First name"><input type="text" id="last">')

    report = Autofiller(tree, store).apply(URL_KEY, tree.root)

    first = tree.select("#first", tree.root)[0]
    assert [(action.method, action.value) for action in report.filled] == [("legacy", "Ada")]
    assert tree.value(first) == "Ada"
    assert tree.attribute(first, "data-autofill-method") == "legacy"
    assert tree.attribute(first, "data-autofill-hash") is None


def test_empty_value_forgets_field(make_tree, store):
    saved_hash = _remember(make_tree, store)

    forgotten = _remember(make_tree, store, value="   ")

    assert forgotten == saved_hash
    assert store.descriptors(URL_KEY) == []


def test_empty_value_for_unknown_field_is_a_no_op(make_tree, store):
    assert _remember(make_tree, store, value="") is None
    assert store.get(URL_KEY) == {}
