"""Services Layer — orchestration over infrastructure and core.

Invariants:
    - secure_storage and auth_session are client-side: they run wherever the
      tokens live, never inside a request handler
    - test_items is request-scoped and receives its AsyncSession from the route
"""
