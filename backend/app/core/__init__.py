"""Core Layer — pure logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - All functions are deterministic given their inputs (randomness only in key generation)
"""
