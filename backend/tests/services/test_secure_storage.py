"""Secure Storage — layouts, key rotation, and corruption recovery.

Invariants:
    - Plaintext never reaches the underlying stores
    - Each set_item writes a fresh key
    - Corrupt key or ciphertext → item removed, None returned
"""

import pytest

from app.config import Settings
from app.core import token_cipher
from app.core.errors import StorageError
from app.infrastructure.key_value_stores import JsonFileStore, MemoryStore
from app.services.secure_storage import LargeSecureStore, build_secure_store

KEY = "sb-abcd-auth-token"
VALUE = '{"access_token": "access-1"}'


class _FailingStore(MemoryStore):
    def set(self, key, value):
        raise StorageError("disk full")

    def delete(self, key):
        raise StorageError("disk gone")


def test_web_mode_keeps_key_beside_ciphertext():
    store = MemoryStore()
    secure = LargeSecureStore("web", store)

    secure.set_item(KEY, VALUE)

    assert set(store.keys()) == {KEY, f"encryption_key_{KEY}"}
    assert VALUE not in store.get(KEY)
    assert len(bytes.fromhex(store.get(f"encryption_key_{KEY}"))) == 32
    assert secure.get_item(KEY) == VALUE


def test_native_mode_splits_ciphertext_and_key():
    values, keys = MemoryStore(), MemoryStore()
    secure = LargeSecureStore("native", values, keys)

    secure.set_item(KEY, VALUE)

    assert values.keys() == [KEY]
    assert keys.keys() == [KEY]
    key = token_cipher.key_from_hex(keys.get(KEY))
    assert token_cipher.decrypt(key, values.get(KEY)) == VALUE
    assert secure.get_item(KEY) == VALUE


def test_every_write_rotates_the_key():
    values, keys = MemoryStore(), MemoryStore()
    secure = LargeSecureStore("native", values, keys)

    secure.set_item(KEY, VALUE)
    first_key, first_cipher = keys.get(KEY), values.get(KEY)
    secure.set_item(KEY, VALUE)

    assert keys.get(KEY) != first_key
    assert values.get(KEY) != first_cipher
    assert secure.get_item(KEY) == VALUE


def test_missing_value_or_key_reads_none():
    values, keys = MemoryStore(), MemoryStore()
    secure = LargeSecureStore("native", values, keys)
    assert secure.get_item(KEY) is None

    secure.set_item(KEY, VALUE)
    keys.delete(KEY)
    assert secure.get_item(KEY) is None
    assert values.get(KEY) is not None


def test_wrong_key_size_clears_item():
    store = MemoryStore()
    secure = LargeSecureStore("web", store)
    secure.set_item(KEY, VALUE)
    store.set(f"encryption_key_{KEY}", "00" * 16)

    assert secure.get_item(KEY) is None
    assert store.keys() == []


def test_corrupt_ciphertext_clears_item():
    values, keys = MemoryStore(), MemoryStore()
    secure = LargeSecureStore("native", values, keys)
    secure.set_item(KEY, VALUE)
    values.set(KEY, "not-hex")

    assert secure.get_item(KEY) is None
    assert values.keys() == []
    assert keys.keys() == []


def test_non_hex_key_clears_item():
    store = MemoryStore()
    secure = LargeSecureStore("web", store)
    secure.set_item(KEY, VALUE)
    store.set(f"encryption_key_{KEY}", "zz")

    assert secure.get_item(KEY) is None
    assert store.get(KEY) is None


def test_remove_item_deletes_both_halves():
    values, keys = MemoryStore(), MemoryStore()
    secure = LargeSecureStore("native", values, keys)
    secure.set_item(KEY, VALUE)

    secure.remove_item(KEY)

    assert values.keys() == [] and keys.keys() == []


def test_web_clear_only_touches_session_keys():
    store = MemoryStore({"theme": "dark"})
    secure = LargeSecureStore("web", store)
    secure.set_item(KEY, VALUE)

    secure.clear()

    assert store.keys() == ["theme"]


def test_native_clear_empties_value_store():
    values, keys = MemoryStore({"other": "x"}), MemoryStore()
    secure = LargeSecureStore("native", values, keys)
    secure.set_item(KEY, VALUE)

    secure.clear()

    assert values.keys() == []


def test_set_item_failure_is_raised():
    secure = LargeSecureStore("web", _FailingStore())
    with pytest.raises(StorageError):
        secure.set_item(KEY, VALUE)


def test_remove_and_clear_failures_are_logged_not_raised():
    secure = LargeSecureStore("native", _FailingStore({KEY: "x"}), _FailingStore())
    secure.remove_item(KEY)
    secure.clear()


def test_invalid_construction():
    with pytest.raises(ValueError):
        LargeSecureStore("cloud", MemoryStore())
    with pytest.raises(ValueError):
        LargeSecureStore("native", MemoryStore())


def test_build_native_store_uses_two_files(tmp_path):
    settings = Settings(storage_mode="native", storage_dir=str(tmp_path))
    secure = build_secure_store(settings)

    secure.set_item(KEY, VALUE)

    assert sorted(p.name for p in tmp_path.iterdir()) == ["keys.json", "session.json"]
    assert build_secure_store(settings).get_item(KEY) == VALUE


def test_build_web_store_uses_one_file(tmp_path):
    settings = Settings(storage_mode="web", storage_dir=str(tmp_path))
    build_secure_store(settings).set_item(KEY, VALUE)

    store = JsonFileStore(tmp_path / "local_storage.json")
    assert set(store.keys()) == {KEY, f"encryption_key_{KEY}"}
