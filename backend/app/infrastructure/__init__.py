"""Infrastructure Layer — database, logging, identity provider, local storage.

Invariants:
    - All external calls wrapped with retry/timeout/error mapping
    - Failures surface as StarterError subclasses (core/errors.py)
"""
