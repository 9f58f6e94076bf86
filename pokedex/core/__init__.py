"""Core Layer — domain types, pure validation rules, and the error taxonomy.

Invariants:
    - Core never imports from infrastructure/, services/ or api/
    - No network or file IO in core; request_context.py reads only the event-loop
      clock and the system random source

Design Decisions:
    - Boundary contracts as Protocols (gateway_protocols.py): services depend on
      shapes, not on httpx clients
"""
