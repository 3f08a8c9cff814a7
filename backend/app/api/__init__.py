"""API Layer — FastAPI routes, dependencies, and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - Success bodies use the ApiResponse / PaginatedResponse envelopes
"""
