"""Pydantic Schemas — request/response validation shared by routes and clients.

Invariants:
    - Schemas validate at system boundary (user input, provider responses, API responses)
    - Wire format is camelCase (schemas/common.CamelModel)

Design Decisions:
    - Separate from models: schemas are API contracts, models are persistence
"""
