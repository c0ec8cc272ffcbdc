"""Tests for per-device LocalStorage."""

import json

import pytest

from storefront.data.local_storage import CART_KEY, LAST_ORDER_KEY, LocalStorage


def test_missing_key_is_none(storage):
    assert storage.get_item(CART_KEY) is None


def test_set_and_get(storage):
    storage.set_item(CART_KEY, [{"id": 1, "quantity": 2}])

    assert storage.get_item(CART_KEY) == [{"id": 1, "quantity": 2}]


def test_keys_are_independent(storage):
    storage.set_item(CART_KEY, [])
    storage.set_item(LAST_ORDER_KEY, {"id": 5})

    storage.remove_item(CART_KEY)

    assert storage.get_item(CART_KEY) is None
    assert storage.get_item(LAST_ORDER_KEY) == {"id": 5}


def test_devices_do_not_share_data(storage, tmp_path):
    other = LocalStorage("device-2", tmp_path / "devices")
    storage.set_item(CART_KEY, [{"id": 1}])

    assert other.get_item(CART_KEY) is None


def test_survives_a_new_instance(storage):
    storage.set_item(LAST_ORDER_KEY, {"id": 9})

    again = LocalStorage(storage.device_id, storage.root)

    assert again.get_item(LAST_ORDER_KEY) == {"id": 9}


def test_write_leaves_no_temp_files(storage):
    storage.set_item(CART_KEY, [{"id": 1}])
    storage.set_item(CART_KEY, [{"id": 2}])

    assert [p.name for p in storage.root.iterdir()] == ["device-1.json"]


def test_corrupt_document_reads_as_empty(storage):
    storage.root.mkdir(parents=True)
    storage.path.write_text("{not json", encoding="utf-8")

    assert storage.get_item(CART_KEY) is None

    storage.set_item(CART_KEY, [])
    assert json.loads(storage.path.read_text(encoding="utf-8")) == {CART_KEY: []}


def test_non_object_document_reads_as_empty(storage):
    storage.root.mkdir(parents=True)
    storage.path.write_text("[1, 2]", encoding="utf-8")

    assert storage.get_item(CART_KEY) is None


def test_remove_missing_key_is_noop(storage):
    storage.remove_item(CART_KEY)

    assert not storage.path.exists()


@pytest.mark.parametrize("device_id", ["", "../etc", "a/b", "x" * 129])
def test_invalid_device_id(device_id, tmp_path):
    with pytest.raises(ValueError):
        LocalStorage(device_id, tmp_path)
