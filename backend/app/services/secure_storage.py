"""Secure Storage Wrapper — encrypt-then-store / decrypt-then-read for session tokens.

Invariants:
    - Every set_item generates a fresh 32-byte key; ciphertext and key are stored apart
    - Decryption failure (bad key size, bad hex, bad UTF-8) clears the item and returns None
    - A missing ciphertext or a missing key reads as None without touching other state
    - get_item / remove_item / clear never raise; set_item logs and re-raises

Design Decisions:
    - Two layouts, mirroring the mobile client's storage split:
        web    — one store; ciphertext under `key`, hex key under `encryption_key_<key>`
        native — ciphertext in the value store, hex key in a separate key store under `key`
    - clear() in web mode only touches session-related keys (sb-*, encryption_key_*),
      the shared store may hold unrelated entries
"""

import logging
import os
from typing import Literal

from app.config import Settings
from app.core import token_cipher
from app.core.repository_protocols import KeyValueStore
from app.infrastructure.key_value_stores import JsonFileStore

logger = logging.getLogger(__name__)

StorageMode = Literal["native", "web"]

ENCRYPTION_KEY_PREFIX = "encryption_key_"
SESSION_KEY_PREFIX = "sb-"


class LargeSecureStore:
    """Encrypts values with AES-256-CTR before they reach a KeyValueStore."""

    def __init__(
        self,
        mode: StorageMode,
        value_store: KeyValueStore,
        key_store: KeyValueStore | None = None,
    ):
        if mode not in ("native", "web"):
            raise ValueError(f"Unknown storage mode: {mode!r}")
        if mode == "native" and key_store is None:
            raise ValueError("native mode requires a separate key store")
        self.mode = mode
        self.value_store = value_store
        self.key_store = key_store if mode == "native" else value_store

    # ─── Public API ─────────────────────────────────────────────

    def get_item(self, key: str) -> str | None:
        try:
            encrypted = self.value_store.get(key)
            if not encrypted:
                return None
            return self._decrypt(key, encrypted)
        except Exception as e:
            logger.error(f"Error getting item: {e}", extra={"storage_key": key})
            return None

    def set_item(self, key: str, value: str) -> None:
        try:
            encrypted = self._encrypt(key, value)
            self.value_store.set(key, encrypted)
        except Exception as e:
            logger.error(f"Error setting item: {e}", extra={"storage_key": key})
            raise

    def remove_item(self, key: str) -> None:
        try:
            self.value_store.delete(key)
            self.key_store.delete(self._key_slot(key))
        except Exception as e:
            logger.error(f"Error removing item: {e}", extra={"storage_key": key})

    def clear(self) -> None:
        try:
            if self.mode == "web":
                for stored in self.value_store.keys():
                    if stored.startswith((SESSION_KEY_PREFIX, ENCRYPTION_KEY_PREFIX)):
                        self.value_store.delete(stored)
            else:
                self.value_store.clear()
        except Exception as e:
            logger.error(f"Error clearing storage: {e}")

    # ─── Internals ──────────────────────────────────────────────

    def _key_slot(self, key: str) -> str:
        return f"{ENCRYPTION_KEY_PREFIX}{key}" if self.mode == "web" else key

    def _encrypt(self, key: str, value: str) -> str:
        encryption_key = token_cipher.generate_key()
        ciphertext = token_cipher.encrypt(encryption_key, value)
        self.key_store.set(self._key_slot(key), token_cipher.key_to_hex(encryption_key))
        return ciphertext

    def _decrypt(self, key: str, value: str) -> str | None:
        key_hex = self.key_store.get(self._key_slot(key))
        if not key_hex:
            return None
        try:
            encryption_key = token_cipher.key_from_hex(key_hex)
            if len(encryption_key) != token_cipher.KEY_SIZE:
                logger.warning(
                    "Invalid key size, clearing corrupted data",
                    extra={"storage_key": key},
                )
                self.remove_item(key)
                return None
            return token_cipher.decrypt(encryption_key, value)
        except token_cipher.CipherError as e:
            logger.error(f"Decryption error: {e}", extra={"storage_key": key})
            self.remove_item(key)
            return None


def build_secure_store(settings: Settings) -> LargeSecureStore:
    """Wire file-backed stores under settings.storage_dir for the configured mode."""
    root = os.path.expanduser(settings.storage_dir)
    if settings.storage_mode == "web":
        return LargeSecureStore(
            "web", JsonFileStore(os.path.join(root, "local_storage.json")),
        )
    return LargeSecureStore(
        "native",
        value_store=JsonFileStore(os.path.join(root, "session.json")),
        key_store=JsonFileStore(os.path.join(root, "keys.json")),
    )
