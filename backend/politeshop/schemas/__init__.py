"""Pydantic Schemas: wire formats at system boundaries.

Invariants:
    - Upstream bodies (Siren entities, site API JSON) validated on decode
    - API responses validated on the way out

Design Decisions:
    - Separate from models: schemas are wire contracts, models are persistence
"""
