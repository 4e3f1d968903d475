"""Pydantic Schemas — response contracts for the scheduler control surface.

Invariants:
    - Schemas serialize with camelCase aliases (the operator console's contract)
    - Domain types from core/ used for enum fields

Design Decisions:
    - Separate from models: schemas are API contracts, models are persistence
"""
