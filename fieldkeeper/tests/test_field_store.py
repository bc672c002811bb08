import json
import logging

import pytest

from fieldkeeper.matching.synthesizer import SelectorSynthesizer
from fieldkeeper.storage import STORAGE_VERSION, VERSION_KEY, FieldStore, FieldStoreError, page_key
from fieldkeeper.storage.legacy import legacy_field_id, legacy_fields

URL_KEY = "https://example.com/signup"


@pytest.fixture
def store(tmp_path):
    return FieldStore(tmp_path / "fields.json")


@pytest.fixture
def descriptor(make_tree):
    tree = make_tree('<form id="signup"><input type="email" name="email"></form>')
    return SelectorSynthesizer(tree).synthesize(tree.select("input", tree.root)[0])


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://Example.com/signup?step=2#top", "https://example.com/signup"),
        ("http://example.com", "http://example.com/"),
        ("https://example.com:8443/a/b", "https://example.com:8443/a/b"),
        ("signup.html", "signup.html"),
    ],
)
def test_page_key(url, expected):
    assert page_key(url) == expected


def test_missing_file_reads_as_empty(store):
    assert store.get(URL_KEY) == {}
    assert store.all_pages() == {}
    assert store.storage_version() is None


def test_save_field_writes_advanced_record(store, descriptor):
    saved_hash = store.save_field(URL_KEY, descriptor, "ada@example.com")

    record = json.loads(store.path.read_text(encoding="utf-8"))[URL_KEY][saved_hash]
    assert saved_hash == descriptor.hash
    assert record["value"] == "ada@example.com"
    assert record["selectors"]["primary"] == 'input[type="email"][name="email"]'
    assert record["confidence"] == descriptor.confidence
    assert record["created"] == descriptor.created
    assert record["use_count"] == 0


def test_descriptors_round_trip(store, descriptor):
    store.save_field(URL_KEY, descriptor, "ada@example.com")

    (loaded,) = store.descriptors(URL_KEY)

    assert loaded.hash == descriptor.hash
    assert loaded.selectors == descriptor.selectors
    assert store.value_for(URL_KEY, descriptor.hash) == "ada@example.com"


def test_resaving_keeps_created_and_usage(store, descriptor):
    store.save_field(URL_KEY, descriptor, "first")
    store.record_usage(URL_KEY, descriptor.hash)
    store.record_usage(URL_KEY, descriptor.hash)

    store.save_field(URL_KEY, descriptor, "second")

    record = store.get(URL_KEY)[descriptor.hash]
    assert record["value"] == "second"
    assert record["use_count"] == 2
    assert record["created"] == descriptor.created


def test_record_usage_ignores_legacy_entries(store):
    store.set(URL_KEY, {"input_text_pos0": "legacy"})

    store.record_usage(URL_KEY, "input_text_pos0")

    assert store.get(URL_KEY) == {"input_text_pos0": "legacy"}


def test_delete(store, descriptor):
    store.save_field(URL_KEY, descriptor, "value")

    assert store.delete(URL_KEY, descriptor.hash) is True
    assert store.delete(URL_KEY, descriptor.hash) is False
    assert store.descriptors(URL_KEY) == []


def test_legacy_values_and_descriptors_are_kept_apart(store, descriptor):
    store.save_field(URL_KEY, descriptor, "advanced")
    page = store.get(URL_KEY)
    page["input_text_first_pos1"] = "legacy"
    store.set(URL_KEY, page)

    assert store.legacy_values(URL_KEY) == {"input_text_first_pos1": "legacy"}
    assert [item.hash for item in store.descriptors(URL_KEY)] == [descriptor.hash]
    assert store.value_for(URL_KEY, "input_text_first_pos1") == "legacy"


def test_malformed_records_are_skipped(store, descriptor, caplog):
    store.save_field(URL_KEY, descriptor, "ok")
    page = store.get(URL_KEY)
    page["broken"] = {"value": "x", "selectors": {"structural": "div"}}
    store.set(URL_KEY, page)

    with caplog.at_level(logging.WARNING, logger="fieldkeeper.storage.field_store"):
        descriptors = store.descriptors(URL_KEY)

    assert [item.hash for item in descriptors] == [descriptor.hash]
    assert "Skipping malformed record broken" in caplog.text


def test_unreadable_store_raises(store):
    store.path.write_text("{not json", encoding="utf-8")

    with pytest.raises(FieldStoreError):
        store.get(URL_KEY)


def test_non_object_store_raises(store):
    store.path.write_text("[]", encoding="utf-8")

    with pytest.raises(FieldStoreError):
        store.all_pages()


def test_migrate_legacy_only_writes_version_marker(store):
    store.set(URL_KEY, {"input_text_pos0": "legacy"})

    assert store.migrate_legacy() is True
    assert store.migrate_legacy() is False

    data = json.loads(store.path.read_text(encoding="utf-8"))
    assert data[VERSION_KEY] == STORAGE_VERSION
    assert data[URL_KEY] == {"input_text_pos0": "legacy"}
    assert store.all_pages() == {URL_KEY: {"input_text_pos0": "legacy"}}


def test_clear_page_and_clear_all(store, descriptor):
    store.save_field(URL_KEY, descriptor, "one")
    store.save_field("https://example.com/other", descriptor, "two")
    store.migrate_legacy()

    store.clear_page(URL_KEY)
    assert list(store.all_pages()) == ["https://example.com/other"]

    store.clear_all()
    assert store.all_pages() == {}
    assert store.storage_version() == STORAGE_VERSION


def test_legacy_field_id(make_tree):
    tree = make_tree(
        '<input type="text" id="first" placeholder="First name">'
        '<input type="checkbox" name="agree">'
        "<textarea></textarea>"
    )
    first, agree, notes = tree.select("input, textarea", tree.root)

    assert legacy_field_id(tree, first) == "input_text_first_Firstname_pos0"
    assert legacy_field_id(tree, agree) == "input_checkbox_agree_pos1"
    assert legacy_field_id(tree, notes) == "textarea_textarea_pos2"


def test_legacy_fields_include_checkboxes_but_not_buttons(make_tree):
    tree = make_tree('<input type="checkbox"><input type="submit"><input type="radio"><select></select>')

    assert [tree.field_type(el) for el in legacy_fields(tree, tree.root)] == ["checkbox", "radio", "select-one"]
