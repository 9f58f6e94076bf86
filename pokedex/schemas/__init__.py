"""Pydantic Schemas — validation at every system boundary.

Invariants:
    - upstream.py validates what the data and translation APIs send us
    - species.py defines what we send to our own callers

Design Decisions:
    - Separate from core entities: schemas are wire contracts, entities are domain
"""
