import pytest

from vcardio.errors import DuplicateElementError
from vcardio.store import MULTIPLE_PROPERTIES_ALLOWED, PropertyStore


def test_properties_keep_insertion_order():
    store = PropertyStore()
    store.set_property("name", "N", "Doe;John;;;")
    store.set_property("note", "NOTE", "hello")
    store.set_property("email", "EMAIL;INTERNET", "a@example.com")
    assert [p["key"] for p in store.properties] == ["N", "NOTE", "EMAIL;INTERNET"]
    assert len(store) == 3


def test_single_valued_element_rejected_twice():
    store = PropertyStore()
    store.set_property("note", "NOTE", "first")
    with pytest.raises(DuplicateElementError) as exc:
        store.set_property("note", "NOTE", "second")
    assert exc.value.element == "note"
    assert str(exc.value) == 'You can only set "note" once.'
    assert [p["value"] for p in store.properties] == ["first"]


@pytest.mark.parametrize("element", sorted(MULTIPLE_PROPERTIES_ALLOWED))
def test_multi_valued_elements_repeat(element):
    store = PropertyStore()
    for i in range(3):
        store.set_property(element, "X", str(i))
    assert len(store) == 3


def test_has_property_needs_exact_key_and_value():
    store = PropertyStore()
    store.set_property("fullname", "FN;CHARSET=utf-8", "")
    store.set_property("role", "ROLE", "Lead")
    assert not store.has_property("FN;CHARSET=utf-8")
    assert not store.has_property("FN")
    assert store.has_property("ROLE")


def test_properties_returns_a_copy():
    store = PropertyStore()
    store.set_property("role", "ROLE", "Lead")
    store.properties.clear()
    assert len(store) == 1
