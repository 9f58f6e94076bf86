"""API Layer — FastAPI routes, middleware, and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All /api endpoints return the data/meta/error JSON envelope
    - error_handlers.py is the only place error kinds become HTTP status codes

Design Decisions:
    - Thin routes delegate to services; services know nothing about HTTP
"""
