"""Infrastructure Layer — outbound clients, server lifecycle, and observability.

Invariants:
    - Infrastructure never imports from services/ or api/
    - Every outbound failure is mapped to a core error before leaving this layer

Design Decisions:
    - One shared httpx.AsyncClient per process, injected into both gateways
    - No retry wrappers: a single failed attempt is final
"""
