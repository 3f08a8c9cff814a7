"""Starter API Package — auth proxy, test CRUD resource, and client-side token storage.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
