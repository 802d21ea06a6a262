"""Pydantic Schemas — mutation request models validated at the container boundary.

Invariants:
    - Every request model carries a Literal discriminant field
    - Request unions are closed per container

Design Decisions:
    - Separate from models: schemas are write contracts, models are persistence
"""
