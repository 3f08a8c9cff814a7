"""Boundary Protocols — contracts between core/services and the storage shell.

Invariants:
    - Services depend on KeyValueStore, never on a concrete backend
    - Implementations live in infrastructure/key_value_stores.py

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Synchronous contract: backends are local (memory, file), no network IO
"""

from typing import Protocol


class KeyValueStore(Protocol):
    """String-to-string persistent map (localStorage / SecureStore / AsyncStorage shape)."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def keys(self) -> list[str]: ...

    def clear(self) -> None: ...
